"""Liability-type ledger accounts (credit cards, lines of credit)."""

from __future__ import annotations

from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


class Account(SQLModel, table=True):
    """A household account; only credit-type accounts are debts."""

    __tablename__: ClassVar[str] = "account"

    id: Optional[int] = Field(default=None, primary_key=True)
    household_id: str = Field(nullable=False, index=True, max_length=64)
    name: str = Field(nullable=False, max_length=128)
    account_type: str = Field(default="checking", max_length=32, index=True)
    is_active: bool = Field(default=True)
    # Credit accounts carry their balance as a negative (money owed) or positive number.
    current_balance: float = Field(default=0.0, nullable=False)
    credit_limit: Optional[float] = Field(default=None)
    minimum_payment_amount: Optional[float] = Field(default=None)
    additional_monthly_payment: Optional[float] = Field(default=None)
    budgeted_monthly_payment: Optional[float] = Field(default=None)
    interest_rate: Optional[float] = Field(default=None, description="APR percent")
    interest_type: Optional[str] = Field(default=None, max_length=16)  # fixed | variable
    include_in_payoff_strategy: bool = Field(default=True)
