"""Debt strategy settings rows (current and legacy schema)."""

from __future__ import annotations

from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class HouseholdDebtSettings(SQLModel, table=True):
    """Household-level strategy preferences."""

    __tablename__: ClassVar[str] = "household_settings"

    household_id: str = Field(primary_key=True, max_length=64)
    extra_monthly_payment: Optional[float] = Field(default=None)
    debt_payoff_method: Optional[str] = Field(default=None, max_length=16)
    payment_frequency: Optional[str] = Field(default=None, max_length=16)
    debt_strategy_enabled: Optional[bool] = Field(default=None)


class LegacyDebtSettings(SQLModel, table=True):
    """Per-user settings from before strategy moved to the household."""

    __tablename__: ClassVar[str] = "debt_settings"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(nullable=False, index=True, max_length=64)
    household_id: str = Field(nullable=False, index=True, max_length=64)
    extra_monthly_payment: Optional[float] = Field(default=None)
    preferred_method: Optional[str] = Field(default=None, max_length=16)
    payment_frequency: Optional[str] = Field(default=None, max_length=16)
