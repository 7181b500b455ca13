"""Recurring bills, some of which are flagged as debts."""

from __future__ import annotations

from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class Bill(SQLModel, table=True):
    """A recurring bill; ``is_debt`` bills carry a balance to pay down."""

    __tablename__: ClassVar[str] = "bill"

    id: Optional[int] = Field(default=None, primary_key=True)
    household_id: str = Field(nullable=False, index=True, max_length=64)
    name: str = Field(nullable=False, max_length=128)
    is_active: bool = Field(default=True)
    is_debt: bool = Field(default=False, index=True)
    debt_type: Optional[str] = Field(default=None, max_length=32)
    remaining_balance: Optional[float] = Field(default=None)
    original_balance: Optional[float] = Field(default=None)
    minimum_payment: Optional[float] = Field(default=None)
    additional_monthly_payment: Optional[float] = Field(default=None)
    budgeted_monthly_payment: Optional[float] = Field(default=None)
    interest_rate: Optional[float] = Field(default=None, description="APR percent")
    interest_type: Optional[str] = Field(default=None, max_length=16)
    # Set when the bill is the payment side of a credit account already tracked.
    linked_account_id: Optional[int] = Field(default=None, foreign_key="account.id")
    include_in_payoff_strategy: bool = Field(default=True)
