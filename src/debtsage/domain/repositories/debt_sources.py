"""Debt source repository protocol."""

from __future__ import annotations

from typing import Optional, Protocol

from ...models.account import Account
from ...models.bill import Bill
from ...models.debt import DebtPaymentRecord, DebtRecord
from ...models.settings import HouseholdDebtSettings, LegacyDebtSettings


class DebtSourceRepository(Protocol):
    """Read access to everything the payoff engine needs for a household."""

    def list_credit_accounts(self, *, household_id: str) -> list[Account]:
        """Active credit and line-of-credit accounts."""
        ...

    def list_debt_bills(self, *, household_id: str) -> list[Bill]:
        """Active bills flagged as debts."""
        ...

    def list_debt_records(self, *, household_id: str) -> list[DebtRecord]:
        """Standalone debts with status ``active``."""
        ...

    def list_payments(self, *, household_id: str) -> list[DebtPaymentRecord]:
        """Recorded payments ordered by date."""
        ...

    def get_household_settings(self, *, household_id: str) -> Optional[HouseholdDebtSettings]:
        """Household-level strategy settings, if saved."""
        ...

    def get_legacy_settings(
        self, *, household_id: str, user_id: str
    ) -> Optional[LegacyDebtSettings]:
        """Per-user settings from the older schema, if present."""
        ...
