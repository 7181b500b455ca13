"""DebtSage debt payoff planning package."""

from __future__ import annotations

from .config import BaseConfig, DevConfig
from .services.engine import plan_household

__all__ = ["BaseConfig", "DevConfig", "plan_household"]
