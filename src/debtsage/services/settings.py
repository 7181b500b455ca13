"""Resolve strategy settings from whichever settings row exists."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..logging_config import get_logger
from ..models.settings import HouseholdDebtSettings, LegacyDebtSettings
from ..money import to_cents
from .debts import PAYMENT_FREQUENCIES, PAYOFF_METHODS, StrategySettings

logger = get_logger(__name__)

DEFAULT_METHOD = "avalanche"
DEFAULT_FREQUENCY = "monthly"


@dataclass(frozen=True, slots=True)
class ResolvedSettings:
    settings: StrategySettings
    debt_strategy_enabled: bool
    origin: str  # household | legacy | default


def normalize_method(value: object) -> Optional[str]:
    if isinstance(value, str) and value.strip().lower() in PAYOFF_METHODS:
        return value.strip().lower()
    return None


def normalize_frequency(value: object) -> Optional[str]:
    if isinstance(value, str) and value.strip().lower() in PAYMENT_FREQUENCIES:
        return value.strip().lower()
    return None


def _extra_cents(value: Optional[float]) -> int:
    if value is None:
        return 0
    return max(to_cents(value), 0)


def resolve_strategy_settings(
    household: Optional[HouseholdDebtSettings] = None,
    legacy: Optional[LegacyDebtSettings] = None,
) -> ResolvedSettings:
    """Household row first, then the legacy per-user row, then defaults.

    Unknown method/frequency strings fall back to the defaults and a
    negative extra payment becomes zero; nothing here raises.
    """
    if household is not None:
        resolved = ResolvedSettings(
            settings=StrategySettings(
                extra_monthly_payment_cents=_extra_cents(household.extra_monthly_payment),
                method=normalize_method(household.debt_payoff_method) or DEFAULT_METHOD,
                payment_frequency=(
                    normalize_frequency(household.payment_frequency) or DEFAULT_FREQUENCY
                ),
            ),
            debt_strategy_enabled=bool(household.debt_strategy_enabled),
            origin="household",
        )
    elif legacy is not None:
        resolved = ResolvedSettings(
            settings=StrategySettings(
                extra_monthly_payment_cents=_extra_cents(legacy.extra_monthly_payment),
                method=normalize_method(legacy.preferred_method) or DEFAULT_METHOD,
                payment_frequency=(
                    normalize_frequency(legacy.payment_frequency) or DEFAULT_FREQUENCY
                ),
            ),
            debt_strategy_enabled=False,
            origin="legacy",
        )
    else:
        resolved = ResolvedSettings(
            settings=StrategySettings(),
            debt_strategy_enabled=False,
            origin="default",
        )

    logger.debug(
        "Resolved strategy settings",
        extra={
            "origin": resolved.origin,
            "method": resolved.settings.method,
            "frequency": resolved.settings.payment_frequency,
        },
    )
    return resolved


__all__ = [
    "ResolvedSettings",
    "normalize_frequency",
    "normalize_method",
    "resolve_strategy_settings",
]
