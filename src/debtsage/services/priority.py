"""Snowball and avalanche priority ordering."""

from __future__ import annotations

from typing import Iterable, Optional

from ..exceptions import UnknownStrategyError
from .debts import Debt


def _avalanche_key(debt: Debt):
    return (-debt.interest_rate, -debt.remaining_balance_cents, debt.id)


def _snowball_key(debt: Debt):
    return (debt.remaining_balance_cents, -debt.interest_rate, debt.id)


def prioritize(debts: Iterable[Debt], method: str) -> list[Debt]:
    """Return debts in payoff priority order.

    Avalanche: highest APR first, then larger balance, then id.
    Snowball: smallest balance first, then higher APR, then id.
    """
    if method == "avalanche":
        return sorted(debts, key=_avalanche_key)
    if method == "snowball":
        return sorted(debts, key=_snowball_key)
    raise UnknownStrategyError(f"Invalid debt payoff strategy: {method!r}")


def focus_debt_id(debts: Iterable[Debt], method: str) -> Optional[str]:
    """Id of the first debt in priority order that still has a balance."""

    for debt in prioritize(debts, method):
        if debt.remaining_balance_cents > 0:
            return debt.id
    return None


__all__ = ["focus_debt_id", "prioritize"]
