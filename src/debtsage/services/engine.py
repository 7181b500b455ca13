"""One-call payoff planning for a household."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from ..domain.repositories.debt_sources import DebtSourceRepository
from ..logging_config import get_logger
from .debt_sources import normalize_debt_sources
from .debts import Debt, StrategySettings
from .history import (
    DEFAULT_HISTORY_PERIODS,
    CurvePoint,
    ProjectionSummary,
    merge_curves,
    reconstruct_history,
    summarize,
)
from .projection import DEFAULT_HORIZON_MONTHS, ProjectionRun
from .settings import ResolvedSettings, resolve_strategy_settings
from .strategy import StrategyResult, calculate_strategy

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class HouseholdPlan:
    strategy: StrategyResult
    projection: list[CurvePoint]
    summary: ProjectionSummary
    run: ProjectionRun


def load_household_inputs(
    repository: DebtSourceRepository,
    household_id: str,
    *,
    user_id: Optional[str] = None,
    include_zero_balances: bool = False,
) -> tuple[list[Debt], ResolvedSettings]:
    """Read one household's sources and settings through the repository."""

    debts = normalize_debt_sources(
        household_id,
        accounts=repository.list_credit_accounts(household_id=household_id),
        bills=repository.list_debt_bills(household_id=household_id),
        debts=repository.list_debt_records(household_id=household_id),
        payments=repository.list_payments(household_id=household_id),
        include_zero_balances=include_zero_balances,
    )
    legacy = None
    household = repository.get_household_settings(household_id=household_id)
    if household is None and user_id is not None:
        legacy = repository.get_legacy_settings(household_id=household_id, user_id=user_id)
    return debts, resolve_strategy_settings(household=household, legacy=legacy)


def plan_household(
    debts: Iterable[Debt],
    settings: StrategySettings,
    as_of: date,
    *,
    horizon_months: Optional[int] = None,
    history_periods: Optional[int] = None,
) -> HouseholdPlan:
    """Strategy, merged actual/projected curve and summary for one household.

    Pure: no I/O and no shared state, so separate households can be planned
    concurrently.
    """
    debt_list = list(debts)
    strategy = calculate_strategy(
        debt_list,
        settings,
        as_of,
        horizon_months=DEFAULT_HORIZON_MONTHS if horizon_months is None else horizon_months,
    )
    run = strategy.run

    history = reconstruct_history(
        debt_list,
        as_of,
        settings.payment_frequency,
        periods=DEFAULT_HISTORY_PERIODS if history_periods is None else history_periods,
    )
    curve = merge_curves(history, run.points)
    summary = summarize(debt_list, run)

    logger.info(
        "Planned household debts",
        extra={
            "debts": len(debt_list),
            "method": settings.method,
            "focus_debt_id": strategy.focus_debt_id,
            "debt_free_date": summary.debt_free_date,
            "curve_points": len(curve),
        },
    )
    return HouseholdPlan(strategy=strategy, projection=curve, summary=summary, run=run)


__all__ = ["HouseholdPlan", "load_household_inputs", "plan_household"]
