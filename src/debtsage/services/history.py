"""Historical balance reconstruction and the combined balance curve."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from ..exceptions import CurveContinuityError
from ..money import percentage, sum_cents
from .debts import Debt, ensure_unique_ids
from .projection import (
    PaymentLine,
    ProjectionPoint,
    ProjectionRun,
    period_date,
    period_label,
)

DEFAULT_HISTORY_PERIODS = 12


@dataclass(frozen=True, slots=True)
class HistoryPoint:
    """Reconstructed balances at a past period boundary (index <= 0)."""

    period_index: int
    period_date: date
    period_label: str
    actual_total_cents: int
    by_debt: dict[str, int]


@dataclass(frozen=True, slots=True)
class CurvePoint:
    """One point of the merged actual + projected balance curve."""

    period_index: int
    period_date: date
    period_label: str
    projected_total_cents: int
    actual_total_cents: Optional[int]
    by_debt: dict[str, int]
    payments: tuple[PaymentLine, ...] = ()  # projected periods only

    @property
    def is_historical(self) -> bool:
        return self.actual_total_cents is not None


@dataclass(frozen=True, slots=True)
class ProjectionSummary:
    total_original_cents: int
    total_current_cents: int
    total_paid_cents: int
    percentage_complete: Decimal
    debt_free_date: Optional[date]


def balance_at(debt: Debt, when: date, as_of: date) -> int:
    """Balance at *when*: current balance plus principal paid in ``(when, as_of]``.

    Only as good as the payment history; principal reductions that were never
    recorded as payments are invisible here.
    """
    repaid = sum_cents(
        payment.principal_cents
        for payment in debt.payments
        if when < payment.payment_date <= as_of
    )
    return debt.remaining_balance_cents + repaid


def reconstruct_history(
    debts: Iterable[Debt],
    as_of: date,
    payment_frequency: str,
    *,
    periods: int = DEFAULT_HISTORY_PERIODS,
) -> list[HistoryPoint]:
    """Walk back up to *periods* boundaries from *as_of*, oldest point first.

    The walk stops at the first boundary that precedes every recorded
    payment, since older boundaries would only repeat that balance. The last
    point is always *as_of* with the current balances.

    Raises:
        DebtValidationError: two debts share an id.
    """
    debt_list = ensure_unique_ids(debts)
    payment_dates = [
        payment.payment_date
        for debt in debt_list
        for payment in debt.payments
        if payment.payment_date <= as_of
    ]
    earliest = min(payment_dates) if payment_dates else None

    offsets = [0]
    for back in range(1, periods + 1):
        newer_boundary = period_date(as_of, -(back - 1), payment_frequency)
        if earliest is None or newer_boundary < earliest:
            break
        offsets.append(-back)

    points: list[HistoryPoint] = []
    for offset in reversed(offsets):
        when = period_date(as_of, offset, payment_frequency)
        by_debt = {debt.id: balance_at(debt, when, as_of) for debt in debt_list}
        points.append(
            HistoryPoint(
                period_index=offset,
                period_date=when,
                period_label=period_label(when, payment_frequency),
                actual_total_cents=sum_cents(by_debt.values()),
                by_debt=by_debt,
            )
        )
    return points


def merge_curves(
    history: Sequence[HistoryPoint], projection: Sequence[ProjectionPoint]
) -> list[CurvePoint]:
    """Join history and projection at "now" without duplicating that point.

    Raises:
        CurveContinuityError: the two curves disagree about current balances.
    """
    merged = [
        CurvePoint(
            period_index=point.period_index,
            period_date=point.period_date,
            period_label=point.period_label,
            projected_total_cents=point.actual_total_cents,
            actual_total_cents=point.actual_total_cents,
            by_debt=dict(point.by_debt),
        )
        for point in history
    ]
    future = list(projection)
    if merged and future:
        now_actual, now_projected = history[-1], future[0]
        if (
            now_actual.period_date != now_projected.period_date
            or now_actual.by_debt != now_projected.by_debt
        ):
            raise CurveContinuityError(
                f"History ends at {now_actual.period_label} with "
                f"{now_actual.actual_total_cents} but projection starts at "
                f"{now_projected.period_label} with {now_projected.projected_total_cents}"
            )
        future = future[1:]

    merged.extend(
        CurvePoint(
            period_index=point.period_index,
            period_date=point.period_date,
            period_label=point.period_label,
            projected_total_cents=point.projected_total_cents,
            actual_total_cents=None,
            by_debt=dict(point.by_debt),
            payments=point.payments,
        )
        for point in future
    )
    return merged


def summarize(debts: Iterable[Debt], run: ProjectionRun) -> ProjectionSummary:
    """Totals across debts plus the projected debt-free date."""

    debt_list = list(debts)
    original = sum_cents(debt.original_balance_cents for debt in debt_list)
    current = sum_cents(debt.remaining_balance_cents for debt in debt_list)
    paid = original - current
    return ProjectionSummary(
        total_original_cents=original,
        total_current_cents=current,
        total_paid_cents=paid,
        percentage_complete=percentage(paid, original),
        debt_free_date=run.debt_free_date,
    )


__all__ = [
    "CurvePoint",
    "HistoryPoint",
    "ProjectionSummary",
    "balance_at",
    "merge_curves",
    "reconstruct_history",
    "summarize",
]
