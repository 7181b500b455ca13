"""Debt payoff strategy: priority order, focus debt and recommended payments."""

# Payoff dates in the strategy come from the projection run with the same
# inputs, so the plan and the projected curve always agree.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional

from ..logging_config import get_logger
from ..money import sum_cents
from .debts import Debt, StrategySettings, ensure_unique_ids
from .priority import focus_debt_id, prioritize
from .projection import DEFAULT_HORIZON_MONTHS, ProjectionRun, simulate

logger = get_logger(__name__)

DEFAULT_COMPARISON_MONTHS = 360


@dataclass(frozen=True, slots=True)
class RolldownEntry:
    """Where a debt sits in the plan and when it is projected to be paid."""

    debt_id: str
    debt_name: str
    order: int  # 1-based priority position
    is_focus: bool
    current_payment_cents: int
    active_payment_cents: int
    reaches_focus: bool  # false when paid off first or stuck behind an unfinished debt
    payoff_period_index: Optional[int]
    payoff_date: Optional[date]


@dataclass(frozen=True, slots=True)
class StrategyResult:
    """Recommended plan for the current period."""

    method: str
    payment_frequency: str
    as_of: date
    ordered_debt_ids: tuple[str, ...]
    focus_debt_id: Optional[str]
    recommended_payments: dict[str, int]
    rolldown_schedule: list[RolldownEntry]
    debt_free_period: Optional[int]
    debt_free_date: Optional[date]
    total_interest_cents: int
    run: ProjectionRun = field(compare=False, repr=False)

    @property
    def is_debt_free(self) -> bool:
        return self.focus_debt_id is None

    @property
    def has_debts(self) -> bool:
        return bool(self.ordered_debt_ids)

    @property
    def total_recommended_cents(self) -> int:
        return sum_cents(self.recommended_payments.values())


def recommended_payment_cents(
    debt: Debt, *, is_focus: bool, settings: StrategySettings
) -> int:
    """Current-period payment: own commitment, plus the shared extra on the focus."""

    if debt.remaining_balance_cents == 0:
        return 0
    amount = debt.monthly_commitment_cents
    if is_focus:
        amount += max(settings.extra_monthly_payment_cents, 0)
    return amount


def _active_payment_cents(
    debt: Debt,
    position: int,
    ordered: list[Debt],
    run: ProjectionRun,
    settings: StrategySettings,
) -> tuple[int, bool]:
    """Payment the debt gets once everything ahead of it has rolled down.

    Returns ``(payment, reaches_focus)``. The debt keeps its current payment
    when a debt ahead of it is not paid off inside the horizon, or when its
    own payments clear it before the debts ahead of it are gone.
    """
    current = recommended_payment_cents(debt, is_focus=False, settings=settings)
    if debt.remaining_balance_cents == 0:
        return 0, False

    ahead = [d for d in ordered[:position] if d.remaining_balance_cents > 0]
    ahead_payoffs = [run.payoff_periods[d.id] for d in ahead]
    if any(payoff is None for payoff in ahead_payoffs):
        return current, False

    becomes_focus_after = max(ahead_payoffs, default=0)
    own_payoff = run.payoff_periods[debt.id]
    if own_payoff is not None and own_payoff <= becomes_focus_after:
        return current, False

    rolled = sum_cents(
        other.monthly_commitment_cents
        for other in ordered
        if other.id != debt.id
        and other.remaining_balance_cents > 0
        and run.payoff_periods[other.id] is not None
        and run.payoff_periods[other.id] <= becomes_focus_after
    )
    return current + max(settings.extra_monthly_payment_cents, 0) + rolled, True


def calculate_strategy(
    debts: Iterable[Debt],
    settings: StrategySettings,
    as_of: date,
    *,
    horizon_months: int = DEFAULT_HORIZON_MONTHS,
) -> StrategyResult:
    """Order debts, pick the focus debt and recommend this period's payments."""

    debt_list = ensure_unique_ids(debts)
    ordered = prioritize(debt_list, settings.method)
    focus_id = focus_debt_id(ordered, settings.method)
    run = simulate(ordered, settings, as_of, horizon_months=horizon_months)

    if focus_id is None:
        logger.info(
            "No outstanding debts to plan",
            extra={"debts": len(debt_list), "method": settings.method},
        )

    recommended: dict[str, int] = {}
    schedule: list[RolldownEntry] = []
    for position, debt in enumerate(ordered):
        is_focus = debt.id == focus_id
        current = recommended_payment_cents(debt, is_focus=is_focus, settings=settings)
        recommended[debt.id] = current
        if is_focus:
            active, reaches_focus = current, True
        else:
            active, reaches_focus = _active_payment_cents(
                debt, position, ordered, run, settings
            )
        schedule.append(
            RolldownEntry(
                debt_id=debt.id,
                debt_name=debt.name,
                order=position + 1,
                is_focus=is_focus,
                current_payment_cents=current,
                active_payment_cents=active,
                reaches_focus=reaches_focus,
                payoff_period_index=run.payoff_periods[debt.id],
                payoff_date=run.payoff_dates[debt.id],
            )
        )

    return StrategyResult(
        method=settings.method,
        payment_frequency=settings.payment_frequency,
        as_of=as_of,
        ordered_debt_ids=tuple(debt.id for debt in ordered),
        focus_debt_id=focus_id,
        recommended_payments=recommended,
        rolldown_schedule=schedule,
        debt_free_period=run.debt_free_period,
        debt_free_date=run.debt_free_date,
        total_interest_cents=run.total_interest_cents,
        run=run,
    )


@dataclass(frozen=True, slots=True)
class MethodComparison:
    """Snowball vs avalanche over the same debts and budget."""

    snowball: StrategyResult
    avalanche: StrategyResult
    period_savings: int  # periods avalanche finishes ahead of snowball
    interest_savings_cents: int  # interest avalanche saves over snowball
    recommended_method: str


def _periods_to_finish(result: StrategyResult) -> int:
    if result.debt_free_period is not None:
        return result.debt_free_period
    # Unfinished runs count as the whole horizon.
    return result.run.horizon_periods


def compare_methods(
    debts: Iterable[Debt],
    settings: StrategySettings,
    as_of: date,
    *,
    horizon_months: int = DEFAULT_COMPARISON_MONTHS,
) -> MethodComparison:
    """Run both methods and recommend one.

    Avalanche is recommended when it saves interest or time; otherwise
    snowball wins for its quicker early payoffs.
    """
    debt_list = list(debts)
    results = {}
    for method in ("snowball", "avalanche"):
        method_settings = StrategySettings(
            extra_monthly_payment_cents=settings.extra_monthly_payment_cents,
            method=method,
            payment_frequency=settings.payment_frequency,
        )
        results[method] = calculate_strategy(
            debt_list, method_settings, as_of, horizon_months=horizon_months
        )

    snowball, avalanche = results["snowball"], results["avalanche"]
    period_savings = _periods_to_finish(snowball) - _periods_to_finish(avalanche)
    interest_savings = snowball.total_interest_cents - avalanche.total_interest_cents
    recommended = "avalanche" if interest_savings > 0 or period_savings > 0 else "snowball"

    logger.info(
        "Compared payoff methods",
        extra={
            "debts": len(debt_list),
            "period_savings": period_savings,
            "interest_savings_cents": interest_savings,
            "recommended": recommended,
        },
    )
    return MethodComparison(
        snowball=snowball,
        avalanche=avalanche,
        period_savings=period_savings,
        interest_savings_cents=interest_savings,
        recommended_method=recommended,
    )


__all__ = [
    "MethodComparison",
    "RolldownEntry",
    "StrategyResult",
    "calculate_strategy",
    "compare_methods",
    "focus_debt_id",
    "prioritize",
    "recommended_payment_cents",
]
