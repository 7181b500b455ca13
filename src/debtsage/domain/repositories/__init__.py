"""Repository protocol definitions for domain layer."""

from .debt_sources import DebtSourceRepository

__all__ = ["DebtSourceRepository"]
