"""Turn credit accounts, debt bills and debt records into one canonical debt list.

Rows arrive already fetched (see ``infra.repositories.debt_sources``). This
module only filters, converts amounts to cents and validates; every problem
found across the batch is reported together in one ``DebtValidationError``.

Original balances are raised to the remaining balance when accrued interest
has pushed a debt past the amount first borrowed.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from ..exceptions import DebtValidationError
from ..logging_config import get_logger
from ..models.account import Account
from ..models.bill import Bill
from ..models.debt import DebtPaymentRecord, DebtRecord
from ..money import to_cents, to_decimal
from .debts import COMPOUNDING_FREQUENCIES, Debt, DebtPayment

logger = get_logger(__name__)

CREDIT_ACCOUNT_TYPES = frozenset({"credit", "line_of_credit"})
ACTIVE_DEBT_STATUS = "active"


def debt_key(source: str, record_id: object) -> str:
    """Stable canonical id, unique across the three sources."""
    return f"{source}:{record_id}"


class _Problems:
    """Collects validation messages while converting a batch."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def cents(self, value: object, label: str, field_name: str) -> int:
        if value is None:
            return 0
        try:
            return to_cents(value)  # type: ignore[arg-type]
        except ValueError:
            self.messages.append(f"{label}: {field_name} is not a valid amount ({value!r})")
            return 0

    def rate(self, value: object, label: str) -> Decimal:
        if value is None:
            return Decimal(0)
        try:
            return to_decimal(value)  # type: ignore[arg-type]
        except ValueError:
            self.messages.append(f"{label}: interest rate is not a number ({value!r})")
            return Decimal(0)

    def build(self, **fields) -> Optional[Debt]:
        try:
            return Debt(**fields)
        except DebtValidationError as exc:
            self.messages.extend(exc.problems)
            return None


def _additional_cents(
    problems: _Problems,
    label: str,
    explicit: Optional[float],
    budgeted: Optional[float],
    minimum_cents: int,
) -> int:
    """Standing extra payment: explicit value, else budgeted minus minimum."""

    if explicit is not None:
        return problems.cents(explicit, label, "additional monthly payment")
    if budgeted:
        return max(0, problems.cents(budgeted, label, "budgeted payment") - minimum_cents)
    return 0


def _compounding_from_interest_type(interest_type: Optional[str]) -> str:
    if interest_type in COMPOUNDING_FREQUENCIES:
        return interest_type  # type: ignore[return-value]
    if interest_type == "variable":
        return "daily"
    return "monthly"


def _group_payments(
    household_id: str, payments: Iterable[DebtPaymentRecord], problems: _Problems
) -> dict[str, tuple[DebtPayment, ...]]:
    """Chronological principal payments keyed by canonical debt id."""

    grouped: dict[str, list[DebtPayment]] = defaultdict(list)
    for record in payments:
        if record.household_id != household_id:
            continue
        label = f"payment:{record.id}"
        paid_on = record.payment_date
        if isinstance(paid_on, datetime):
            paid_on = paid_on.date()
        if not isinstance(paid_on, date):
            problems.messages.append(f"{label}: payment date is missing or malformed")
            continue
        principal = problems.cents(record.principal_amount, label, "principal amount")
        if principal < 0:
            problems.messages.append(f"{label}: principal amount is negative")
            continue
        grouped[debt_key(record.source, record.source_id)].append(
            DebtPayment(payment_date=paid_on, principal_cents=principal)
        )
    return {
        key: tuple(sorted(items, key=lambda p: (p.payment_date, p.principal_cents)))
        for key, items in grouped.items()
    }


def drop_linked_bills(
    bills: Sequence[Bill], account_ids: Iterable[int]
) -> tuple[list[Bill], list[Bill]]:
    """Split bills into (kept, dropped) where dropped bills point at a kept account."""

    linked_to = set(account_ids)
    kept: list[Bill] = []
    dropped: list[Bill] = []
    for bill in bills:
        if bill.linked_account_id is not None and bill.linked_account_id in linked_to:
            dropped.append(bill)
        else:
            kept.append(bill)
    return kept, dropped


def _from_account(
    account: Account, problems: _Problems, payments: dict[str, tuple[DebtPayment, ...]]
) -> Optional[Debt]:
    key = debt_key("account", account.id)
    balance = abs(problems.cents(account.current_balance, key, "current balance"))
    minimum = problems.cents(account.minimum_payment_amount, key, "minimum payment")
    # Credit limit stands in for the original balance.
    original = (
        problems.cents(account.credit_limit, key, "credit limit")
        if account.credit_limit is not None
        else balance
    )
    return problems.build(
        id=key,
        name=account.name,
        remaining_balance_cents=balance,
        original_balance_cents=max(original, balance),
        minimum_payment_cents=minimum,
        additional_monthly_payment_cents=_additional_cents(
            problems,
            key,
            account.additional_monthly_payment,
            account.budgeted_monthly_payment,
            minimum,
        ),
        interest_rate=problems.rate(account.interest_rate, key),
        loan_type="revolving",
        compounding_frequency="daily" if account.interest_type == "variable" else "monthly",
        source="account",
        source_type=account.account_type,
        payments=payments.get(key, ()),
    )


def _from_bill(
    bill: Bill, problems: _Problems, payments: dict[str, tuple[DebtPayment, ...]]
) -> Optional[Debt]:
    key = debt_key("bill", bill.id)
    balance = problems.cents(bill.remaining_balance, key, "remaining balance")
    minimum = problems.cents(bill.minimum_payment, key, "minimum payment")
    original = (
        problems.cents(bill.original_balance, key, "original balance")
        if bill.original_balance
        else balance
    )
    return problems.build(
        id=key,
        name=bill.name,
        remaining_balance_cents=balance,
        original_balance_cents=max(original, balance),
        minimum_payment_cents=minimum,
        additional_monthly_payment_cents=_additional_cents(
            problems,
            key,
            bill.additional_monthly_payment,
            bill.budgeted_monthly_payment,
            minimum,
        ),
        interest_rate=problems.rate(bill.interest_rate, key),
        loan_type="installment",
        compounding_frequency=_compounding_from_interest_type(bill.interest_type),
        source="bill",
        source_type=bill.debt_type or "other",
        payments=payments.get(key, ()),
    )


def _from_debt_record(
    record: DebtRecord, problems: _Problems, payments: dict[str, tuple[DebtPayment, ...]]
) -> Optional[Debt]:
    key = debt_key("debt", record.id)
    balance = problems.cents(record.remaining_balance, key, "remaining balance")
    original = (
        problems.cents(record.original_amount, key, "original amount")
        if record.original_amount
        else balance
    )
    inferred_loan_type = "revolving" if record.debt_type == "credit_card" else "installment"
    return problems.build(
        id=key,
        name=record.name,
        remaining_balance_cents=balance,
        original_balance_cents=max(original, balance),
        minimum_payment_cents=problems.cents(record.minimum_payment, key, "minimum payment"),
        additional_monthly_payment_cents=problems.cents(
            record.additional_monthly_payment, key, "additional monthly payment"
        ),
        interest_rate=problems.rate(record.interest_rate, key),
        loan_type=record.loan_type or inferred_loan_type,
        compounding_frequency=record.compounding_frequency or "monthly",
        billing_cycle_days=record.billing_cycle_days,
        source="debt",
        source_type=record.debt_type or "other",
        payments=payments.get(key, ()),
    )


def normalize_debt_sources(
    household_id: str,
    *,
    accounts: Iterable[Account] = (),
    bills: Iterable[Bill] = (),
    debts: Iterable[DebtRecord] = (),
    payments: Iterable[DebtPaymentRecord] = (),
    include_zero_balances: bool = False,
    in_strategy_only: bool = True,
    dedupe_linked_bills: bool = True,
) -> list[Debt]:
    """Return the household's debts in canonical form.

    Output order is accounts, then bills, then debt records, each in input
    order. Bills linked to an included credit account are dropped unless
    ``dedupe_linked_bills`` is False.

    Raises:
        DebtValidationError: listing every structural problem in the batch.
    """
    problems = _Problems()
    payments_by_debt = _group_payments(household_id, payments, problems)

    candidates: list[Debt] = []
    included_account_ids: list[int] = []

    for account in accounts:
        if (
            account.household_id != household_id
            or not account.is_active
            or account.account_type not in CREDIT_ACCOUNT_TYPES
        ):
            continue
        if in_strategy_only and not account.include_in_payoff_strategy:
            continue
        debt = _from_account(account, problems, payments_by_debt)
        if debt is None:
            continue
        if debt.remaining_balance_cents == 0 and not include_zero_balances:
            continue
        candidates.append(debt)
        if account.id is not None:
            included_account_ids.append(account.id)

    debt_bills = [
        bill
        for bill in bills
        if bill.household_id == household_id and bill.is_debt and bill.is_active
    ]
    if dedupe_linked_bills:
        debt_bills, dropped = drop_linked_bills(debt_bills, included_account_ids)
        for bill in dropped:
            logger.info(
                "Skipping bill already represented by its credit account",
                extra={
                    "household_id": household_id,
                    "bill_id": bill.id,
                    "account_id": bill.linked_account_id,
                },
            )

    for bill in debt_bills:
        if in_strategy_only and not bill.include_in_payoff_strategy:
            continue
        debt = _from_bill(bill, problems, payments_by_debt)
        if debt is None:
            continue
        if debt.remaining_balance_cents == 0 and not include_zero_balances:
            continue
        candidates.append(debt)

    for record in debts:
        if record.household_id != household_id or record.status != ACTIVE_DEBT_STATUS:
            continue
        debt = _from_debt_record(record, problems, payments_by_debt)
        if debt is None:
            continue
        if debt.remaining_balance_cents == 0 and not include_zero_balances:
            continue
        candidates.append(debt)

    if problems.messages:
        logger.warning(
            "Rejected debt sources",
            extra={"household_id": household_id, "problems": problems.messages},
        )
        raise DebtValidationError(problems.messages)

    logger.debug(
        "Normalized debt sources",
        extra={"household_id": household_id, "debts": len(candidates)},
    )
    return candidates


__all__ = [
    "CREDIT_ACCOUNT_TYPES",
    "debt_key",
    "drop_linked_bills",
    "normalize_debt_sources",
]
