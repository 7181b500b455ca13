"""Exceptions raised by the payoff engine."""

from __future__ import annotations

from typing import Iterable


class DebtSageError(Exception):
    """Base exception for the engine."""


class DebtValidationError(DebtSageError, ValueError):
    """One or more debt inputs are structurally invalid.

    All problems found in a batch are collected so the caller gets a single
    error describing everything that needs fixing.
    """

    def __init__(self, problems: Iterable[str]):
        self.problems = list(problems)
        summary = "; ".join(self.problems) if self.problems else "invalid debt input"
        super().__init__(summary)


class UnknownStrategyError(DebtSageError, ValueError):
    """An unsupported payoff method or payment frequency was requested."""


class CurveContinuityError(DebtSageError):
    """Historical and projected curves disagree at the current-period boundary."""
