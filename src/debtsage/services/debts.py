"""Canonical debt inputs for payoff planning."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from ..exceptions import DebtValidationError, UnknownStrategyError

PAYOFF_METHODS = ("snowball", "avalanche")
PAYMENT_FREQUENCIES = ("weekly", "biweekly", "monthly")
COMPOUNDING_FREQUENCIES = ("daily", "monthly", "quarterly", "annually")
LOAN_TYPES = ("revolving", "installment")
DEBT_SOURCES = ("account", "bill", "debt")


@dataclass(frozen=True, slots=True)
class DebtPayment:
    """Principal paid against a debt on a given day."""

    payment_date: date
    principal_cents: int


@dataclass(frozen=True, slots=True)
class Debt:
    """A debt after normalization; all money in cents.

    Instances validate themselves and are never mutated by the engine.

    ``loan_type`` does not change the projection. The monthly commitment is
    a fixed amount for both types and the simulator only caps it at the
    balance owed, which is how a revolving minimum shrinks and how the last
    installment is cut short. No balance-percentage minimum is modelled.
    """

    id: str
    name: str
    remaining_balance_cents: int
    original_balance_cents: int
    minimum_payment_cents: int
    interest_rate: Decimal = Decimal(0)  # APR percent, e.g. Decimal("19.99")
    additional_monthly_payment_cents: int = 0
    loan_type: str = "revolving"
    compounding_frequency: str = "monthly"
    billing_cycle_days: Optional[int] = None
    source: str = "debt"
    source_type: str = "other"
    payments: tuple[DebtPayment, ...] = field(default=())

    def __post_init__(self) -> None:
        problems = validate_debt_fields(
            label=self.id,
            remaining_balance_cents=self.remaining_balance_cents,
            original_balance_cents=self.original_balance_cents,
            minimum_payment_cents=self.minimum_payment_cents,
            additional_monthly_payment_cents=self.additional_monthly_payment_cents,
            interest_rate=self.interest_rate,
            loan_type=self.loan_type,
            compounding_frequency=self.compounding_frequency,
            billing_cycle_days=self.billing_cycle_days,
            source=self.source,
        )
        if problems:
            raise DebtValidationError(problems)

    @property
    def monthly_commitment_cents(self) -> int:
        """Minimum plus the standing additional payment."""
        return self.minimum_payment_cents + self.additional_monthly_payment_cents

    @property
    def paid_cents(self) -> int:
        return self.original_balance_cents - self.remaining_balance_cents


@dataclass(frozen=True, slots=True)
class StrategySettings:
    """Household strategy preferences in canonical form."""

    extra_monthly_payment_cents: int = 0
    method: str = "avalanche"
    payment_frequency: str = "monthly"

    def __post_init__(self) -> None:
        # A negative budget is an operational slip, not a structural error.
        if self.extra_monthly_payment_cents < 0:
            object.__setattr__(self, "extra_monthly_payment_cents", 0)
        if self.method not in PAYOFF_METHODS:
            raise UnknownStrategyError(f"unknown payoff method {self.method!r}")
        if self.payment_frequency not in PAYMENT_FREQUENCIES:
            raise UnknownStrategyError(f"unknown payment frequency {self.payment_frequency!r}")


def validate_debt_fields(
    *,
    label: str,
    remaining_balance_cents: int,
    original_balance_cents: int,
    minimum_payment_cents: int,
    additional_monthly_payment_cents: int,
    interest_rate: Decimal,
    loan_type: str,
    compounding_frequency: str,
    billing_cycle_days: Optional[int],
    source: str,
) -> list[str]:
    """Return a list of human-readable problems; empty when the fields are valid."""

    problems: list[str] = []
    if remaining_balance_cents < 0:
        problems.append(f"{label}: remaining balance is negative")
    if original_balance_cents < remaining_balance_cents:
        problems.append(f"{label}: original balance is below remaining balance")
    if minimum_payment_cents < 0:
        problems.append(f"{label}: minimum payment is negative")
    if additional_monthly_payment_cents < 0:
        problems.append(f"{label}: additional monthly payment is negative")
    if interest_rate < 0:
        problems.append(f"{label}: interest rate is negative")
    if loan_type not in LOAN_TYPES:
        problems.append(f"{label}: unknown loan type {loan_type!r}")
    if compounding_frequency not in COMPOUNDING_FREQUENCIES:
        problems.append(f"{label}: unknown compounding frequency {compounding_frequency!r}")
    if billing_cycle_days is not None and billing_cycle_days <= 0:
        problems.append(f"{label}: billing cycle must be at least one day")
    if source not in DEBT_SOURCES:
        problems.append(f"{label}: unknown source {source!r}")
    return problems


def ensure_unique_ids(debts: Iterable[Debt]) -> list[Debt]:
    """Return *debts* as a list, rejecting ids that appear more than once.

    Balances, payoffs and payments are keyed by ``Debt.id``, so a repeated id
    would silently fold two debts into one.
    """
    debt_list = list(debts)
    seen: set[str] = set()
    problems: list[str] = []
    for debt in debt_list:
        if debt.id in seen:
            problems.append(f"{debt.id}: duplicate debt id")
        seen.add(debt.id)
    if problems:
        raise DebtValidationError(problems)
    return debt_list


__all__ = [
    "COMPOUNDING_FREQUENCIES",
    "DEBT_SOURCES",
    "Debt",
    "DebtPayment",
    "LOAN_TYPES",
    "PAYMENT_FREQUENCIES",
    "PAYOFF_METHODS",
    "StrategySettings",
    "ensure_unique_ids",
    "validate_debt_fields",
]
