"""SQLModel table exports."""

from .account import Account
from .bill import Bill
from .debt import DebtPaymentRecord, DebtRecord
from .settings import HouseholdDebtSettings, LegacyDebtSettings

__all__ = [
    "Account",
    "Bill",
    "DebtRecord",
    "DebtPaymentRecord",
    "HouseholdDebtSettings",
    "LegacyDebtSettings",
]
