"""Concrete repository implementations using SQLModel."""

from .debt_sources import SQLModelDebtSourceRepository

__all__ = ["SQLModelDebtSourceRepository"]
