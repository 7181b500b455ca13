"""SQLModel implementation of the debt source repository."""

from __future__ import annotations

from typing import Callable, Optional

from sqlmodel import Session, select

from ...models.account import Account
from ...models.bill import Bill
from ...models.debt import DebtPaymentRecord, DebtRecord
from ...models.settings import HouseholdDebtSettings, LegacyDebtSettings
from ...services.debt_sources import ACTIVE_DEBT_STATUS, CREDIT_ACCOUNT_TYPES


class SQLModelDebtSourceRepository:
    """SQLModel-based debt source repository implementation."""

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def list_credit_accounts(self, *, household_id: str) -> list[Account]:
        """Active credit and line-of-credit accounts."""
        with self.session_factory() as session:
            statement = (
                select(Account)
                .where(Account.household_id == household_id)
                .where(Account.account_type.in_(sorted(CREDIT_ACCOUNT_TYPES)))  # type: ignore[attr-defined]
                .where(Account.is_active == True)  # noqa: E712
                .order_by(Account.id)  # type: ignore
            )
            return list(session.exec(statement).all())

    def list_debt_bills(self, *, household_id: str) -> list[Bill]:
        """Active bills flagged as debts."""
        with self.session_factory() as session:
            statement = (
                select(Bill)
                .where(Bill.household_id == household_id)
                .where(Bill.is_debt == True)  # noqa: E712
                .where(Bill.is_active == True)  # noqa: E712
                .order_by(Bill.id)  # type: ignore
            )
            return list(session.exec(statement).all())

    def list_debt_records(self, *, household_id: str) -> list[DebtRecord]:
        """Standalone debts with status ``active``."""
        with self.session_factory() as session:
            statement = (
                select(DebtRecord)
                .where(DebtRecord.household_id == household_id)
                .where(DebtRecord.status == ACTIVE_DEBT_STATUS)
                .order_by(DebtRecord.id)  # type: ignore
            )
            return list(session.exec(statement).all())

    def list_payments(self, *, household_id: str) -> list[DebtPaymentRecord]:
        """Recorded payments ordered by date."""
        with self.session_factory() as session:
            statement = (
                select(DebtPaymentRecord)
                .where(DebtPaymentRecord.household_id == household_id)
                .order_by(DebtPaymentRecord.payment_date, DebtPaymentRecord.id)  # type: ignore
            )
            return list(session.exec(statement).all())

    def get_household_settings(self, *, household_id: str) -> Optional[HouseholdDebtSettings]:
        """Household-level strategy settings, if saved."""
        with self.session_factory() as session:
            return session.get(HouseholdDebtSettings, household_id)

    def get_legacy_settings(
        self, *, household_id: str, user_id: str
    ) -> Optional[LegacyDebtSettings]:
        """Per-user settings from the older schema, if present."""
        with self.session_factory() as session:
            statement = select(LegacyDebtSettings).where(
                LegacyDebtSettings.household_id == household_id,
                LegacyDebtSettings.user_id == user_id,
            )
            return session.exec(statement).first()
