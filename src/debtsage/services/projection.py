"""Forward balance projection with snowball/avalanche rolldown.

The simulation is a fold over immutable :class:`SimulationState` snapshots:
``step(plan, state)`` returns the next snapshot and never touches the one it
was given, so a run can be replayed from any intermediate state.

Within a period every active debt first accrues interest on its
pre-payment balance and then receives its payment. Payments are clamped at
the amount owed; anything above that is not moved to another debt in the
same period. When a debt reaches zero its minimum and standing additional
payment join the rolled pool, which the focus debt (first active debt in the
fixed period-0 order) receives from the next period on, together with the
shared extra budget.
"""

from __future__ import annotations

import calendar
import math
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from ..logging_config import get_logger
from ..money import apply_rate, split_cents, sum_cents
from .debts import Debt, StrategySettings, ensure_unique_ids
from .priority import prioritize

logger = get_logger(__name__)

DEFAULT_HORIZON_MONTHS = 24

DAYS_PER_YEAR = Decimal(365)
COMPOUNDING_PERIODS_PER_YEAR = {"daily": 365, "monthly": 12, "quarterly": 4, "annually": 1}
PAYMENT_PERIODS_PER_YEAR = {"weekly": 52, "biweekly": 26, "monthly": 12}
# Monthly amounts are spread over this many payment periods.
PERIODS_PER_PAYMENT_CYCLE = {"weekly": 4, "biweekly": 2, "monthly": 1}
PAYMENT_PERIOD_DAYS = {
    "weekly": Decimal(7),
    "biweekly": Decimal(14),
    "monthly": DAYS_PER_YEAR / Decimal(12),
}


# ---------------------------------------------------------------------------
# Calendar helpers
# ---------------------------------------------------------------------------


def add_months(value: date, months: int) -> date:
    """Shift *value* by whole months, clamping the day to the month's end."""

    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def period_date(start: date, index: int, frequency: str) -> date:
    """Calendar date of period boundary *index* (negative walks backwards)."""

    if frequency == "monthly":
        return add_months(start, index)
    step_days = 7 if frequency == "weekly" else 14
    return start + timedelta(days=step_days * index)


def period_label(value: date, frequency: str) -> str:
    return value.strftime("%Y-%m") if frequency == "monthly" else value.isoformat()


def horizon_periods(months: int, frequency: str) -> int:
    """Express a horizon in months as a number of payment periods."""

    if frequency == "monthly":
        return months
    return math.ceil(months * PAYMENT_PERIODS_PER_YEAR[frequency] / 12)


# ---------------------------------------------------------------------------
# Interest
# ---------------------------------------------------------------------------


def period_interest_factor(debt: Debt, payment_frequency: str) -> Decimal:
    """Fraction of the balance accrued as interest over one payment period.

    The compounding period (from ``compounding_frequency`` or the
    ``billing_cycle_days`` override) is independent of the payment period;
    interest compounds ``period_days / compounding_days`` times per payment
    period.
    """
    if debt.interest_rate == 0:
        return Decimal(0)

    annual = Decimal(debt.interest_rate) / Decimal(100)
    if debt.billing_cycle_days:
        compounding_days = Decimal(debt.billing_cycle_days)
        periodic_rate = annual * compounding_days / DAYS_PER_YEAR
    else:
        per_year = COMPOUNDING_PERIODS_PER_YEAR[debt.compounding_frequency]
        compounding_days = DAYS_PER_YEAR / Decimal(per_year)
        periodic_rate = annual / Decimal(per_year)

    exponent = PAYMENT_PERIOD_DAYS[payment_frequency] / compounding_days
    if exponent == 1:
        return periodic_rate
    return (Decimal(1) + periodic_rate) ** exponent - Decimal(1)


# ---------------------------------------------------------------------------
# Simulation state
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PaymentLine:
    """What one debt was charged and paid in one period.

    ``principal_cents`` is the payment less the interest accrued, so it is
    negative when the payment does not cover the interest.
    """

    debt_id: str
    payment_cents: int
    interest_cents: int
    principal_cents: int
    balance_cents: int  # after the payment


@dataclass(frozen=True, slots=True)
class SimulationPlan:
    """Everything that stays fixed for the length of one simulation."""

    debts: tuple[Debt, ...]  # period-0 priority order
    interest_factors: tuple[Decimal, ...]
    extra_monthly_payment_cents: int
    payment_frequency: str

    @property
    def cycle_length(self) -> int:
        return PERIODS_PER_PAYMENT_CYCLE[self.payment_frequency]


@dataclass(frozen=True, slots=True)
class SimulationState:
    """Balances and bookkeeping after ``period`` payment periods."""

    period: int
    balances: tuple[int, ...]
    payoff_periods: tuple[Optional[int], ...]
    interest_cents: tuple[int, ...]
    rolled_cents: int = 0  # monthly capacity freed by debts already paid off
    payments: tuple[PaymentLine, ...] = ()  # lines for the period just stepped

    @property
    def total_cents(self) -> int:
        return sum_cents(self.balances)

    @property
    def is_debt_free(self) -> bool:
        return all(balance == 0 for balance in self.balances)

    def focus_index(self) -> Optional[int]:
        for index, balance in enumerate(self.balances):
            if balance > 0:
                return index
        return None


def build_plan(debts: Iterable[Debt], settings: StrategySettings) -> SimulationPlan:
    """Fix the priority order and per-debt interest factors for a run.

    Raises:
        DebtValidationError: two debts share an id.
    """
    debt_list = ensure_unique_ids(debts)
    ordered = tuple(prioritize(debt_list, settings.method))
    return SimulationPlan(
        debts=ordered,
        interest_factors=tuple(
            period_interest_factor(debt, settings.payment_frequency) for debt in ordered
        ),
        extra_monthly_payment_cents=max(settings.extra_monthly_payment_cents, 0),
        payment_frequency=settings.payment_frequency,
    )


def initial_state(plan: SimulationPlan) -> SimulationState:
    balances = tuple(debt.remaining_balance_cents for debt in plan.debts)
    return SimulationState(
        period=0,
        balances=balances,
        # Debts that start at zero count as paid off "now" but free no capacity.
        payoff_periods=tuple(0 if balance == 0 else None for balance in balances),
        interest_cents=tuple(0 for _ in plan.debts),
    )


def monthly_payment_cents(plan: SimulationPlan, state: SimulationState, index: int) -> int:
    """Monthly amount debt *index* receives while *state* is current."""

    debt = plan.debts[index]
    amount = debt.monthly_commitment_cents
    if index == state.focus_index():
        amount += plan.extra_monthly_payment_cents + state.rolled_cents
    return amount


def step(plan: SimulationPlan, state: SimulationState) -> SimulationState:
    """Advance one payment period: accrue, pay, then record payoffs."""

    period = state.period + 1
    cycle_slot = (period - 1) % plan.cycle_length

    balances = list(state.balances)
    payoff_periods = list(state.payoff_periods)
    interest = list(state.interest_cents)
    lines: list[PaymentLine] = []
    freed = 0

    for index, debt in enumerate(plan.debts):
        balance = state.balances[index]
        if balance <= 0:
            continue

        accrued_interest = apply_rate(balance, plan.interest_factors[index])
        owed = balance + accrued_interest
        scheduled = split_cents(
            monthly_payment_cents(plan, state, index), plan.cycle_length
        )[cycle_slot]
        # Same clamp for both loan types: a revolving minimum shrinks to what
        # is owed and a fixed installment is cut short on its last payment.
        payment = min(scheduled, owed)

        balances[index] = owed - payment
        interest[index] += accrued_interest
        lines.append(
            PaymentLine(
                debt_id=debt.id,
                payment_cents=payment,
                interest_cents=accrued_interest,
                principal_cents=payment - accrued_interest,
                balance_cents=balances[index],
            )
        )
        if balances[index] == 0:
            payoff_periods[index] = period
            freed += debt.monthly_commitment_cents

    return SimulationState(
        period=period,
        balances=tuple(balances),
        payoff_periods=tuple(payoff_periods),
        interest_cents=tuple(interest),
        rolled_cents=state.rolled_cents + freed,
        payments=tuple(lines),
    )


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ProjectionPoint:
    """Balances at one period boundary; point 0 is "now"."""

    period_index: int
    period_date: date
    period_label: str
    projected_total_cents: int
    by_debt: dict[str, int]
    payments: tuple[PaymentLine, ...] = ()  # empty for point 0


@dataclass(frozen=True, slots=True)
class ProjectionRun:
    """Outcome of a forward simulation."""

    method: str
    payment_frequency: str
    as_of: date
    ordered_debt_ids: tuple[str, ...]
    points: list[ProjectionPoint]
    payoff_periods: dict[str, Optional[int]]
    payoff_dates: dict[str, Optional[date]]
    interest_by_debt: dict[str, int]
    horizon_periods: int
    debt_free_period: Optional[int] = None
    debt_free_date: Optional[date] = None
    final_state: Optional[SimulationState] = field(default=None, compare=False)

    @property
    def total_interest_cents(self) -> int:
        return sum_cents(self.interest_by_debt.values())

    @property
    def horizon_exhausted(self) -> bool:
        return self.debt_free_period is None

    def schedule_for(self, debt_id: str) -> list[PaymentLine]:
        """Per-period amortization rows for one debt, oldest first."""
        return [
            line
            for point in self.points
            for line in point.payments
            if line.debt_id == debt_id
        ]


def _point(plan: SimulationPlan, state: SimulationState, as_of: date) -> ProjectionPoint:
    when = period_date(as_of, state.period, plan.payment_frequency)
    by_debt = {debt.id: balance for debt, balance in zip(plan.debts, state.balances)}
    return ProjectionPoint(
        period_index=state.period,
        period_date=when,
        period_label=period_label(when, plan.payment_frequency),
        projected_total_cents=sum_cents(by_debt.values()),
        by_debt=by_debt,
        payments=state.payments,
    )


def simulate(
    debts: Iterable[Debt],
    settings: StrategySettings,
    as_of: date,
    *,
    horizon_months: int = DEFAULT_HORIZON_MONTHS,
) -> ProjectionRun:
    """Project balances forward until every debt is paid or the horizon ends."""

    plan = build_plan(debts, settings)
    horizon = horizon_periods(horizon_months, settings.payment_frequency)

    state = initial_state(plan)
    points = [_point(plan, state, as_of)]
    while not state.is_debt_free and state.period < horizon:
        state = step(plan, state)
        points.append(_point(plan, state, as_of))

    debt_free_period = state.period if state.is_debt_free else None
    payoff_dates = {
        debt.id: (
            period_date(as_of, payoff, settings.payment_frequency)
            if payoff is not None
            else None
        )
        for debt, payoff in zip(plan.debts, state.payoff_periods)
    }
    run = ProjectionRun(
        method=settings.method,
        payment_frequency=settings.payment_frequency,
        as_of=as_of,
        ordered_debt_ids=tuple(debt.id for debt in plan.debts),
        points=points,
        payoff_periods={
            debt.id: payoff for debt, payoff in zip(plan.debts, state.payoff_periods)
        },
        payoff_dates=payoff_dates,
        interest_by_debt={
            debt.id: cents for debt, cents in zip(plan.debts, state.interest_cents)
        },
        horizon_periods=horizon,
        debt_free_period=debt_free_period,
        debt_free_date=(
            period_date(as_of, debt_free_period, settings.payment_frequency)
            if debt_free_period is not None
            else None
        ),
        final_state=state,
    )
    logger.debug(
        "Projection complete",
        extra={
            "method": settings.method,
            "frequency": settings.payment_frequency,
            "debts": len(plan.debts),
            "periods": state.period,
            "debt_free_period": debt_free_period,
        },
    )
    return run


__all__ = [
    "PaymentLine",
    "ProjectionPoint",
    "ProjectionRun",
    "SimulationPlan",
    "SimulationState",
    "add_months",
    "build_plan",
    "horizon_periods",
    "initial_state",
    "period_date",
    "period_interest_factor",
    "period_label",
    "simulate",
    "step",
]
