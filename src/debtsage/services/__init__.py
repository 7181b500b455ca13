"""Service module exports."""

from . import (
    debt_sources,
    debts,
    engine,
    history,
    priority,
    projection,
    settings,
    strategy,
)

__all__ = [
    "debt_sources",
    "debts",
    "engine",
    "history",
    "priority",
    "projection",
    "settings",
    "strategy",
]
