"""Standalone debt records and their recorded payments."""

from __future__ import annotations

from datetime import date
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class DebtRecord(SQLModel, table=True):
    """Installment or revolving debt entered directly by the household."""

    __tablename__: ClassVar[str] = "debt"

    id: Optional[int] = Field(default=None, primary_key=True)
    household_id: str = Field(nullable=False, index=True, max_length=64)
    name: str = Field(nullable=False, max_length=128)
    debt_type: Optional[str] = Field(default=None, max_length=32)
    status: str = Field(default="active", max_length=16, index=True)
    original_amount: Optional[float] = Field(default=None)
    remaining_balance: float = Field(default=0.0, nullable=False)
    minimum_payment: Optional[float] = Field(default=None)
    additional_monthly_payment: Optional[float] = Field(default=None)
    interest_rate: Optional[float] = Field(default=None, description="APR percent")
    loan_type: Optional[str] = Field(default=None, max_length=16)
    compounding_frequency: Optional[str] = Field(default=None, max_length=16)
    billing_cycle_days: Optional[int] = Field(default=None)
    start_date: Optional[date] = Field(default=None)


class DebtPaymentRecord(SQLModel, table=True):
    """A recorded payment against any debt source."""

    __tablename__: ClassVar[str] = "debt_payment"

    id: Optional[int] = Field(default=None, primary_key=True)
    household_id: str = Field(nullable=False, index=True, max_length=64)
    source: str = Field(nullable=False, max_length=16)  # account | bill | debt
    source_id: int = Field(nullable=False, index=True)
    payment_date: Optional[date] = Field(default=None, index=True)
    amount: float = Field(default=0.0, nullable=False)
    principal_amount: float = Field(default=0.0, nullable=False)
    interest_amount: float = Field(default=0.0, nullable=False)
