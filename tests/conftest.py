"""Pytest configuration and shared fixtures for DebtSage tests.

This module provides database fixtures, test data factories, and helper utilities
for testing the payoff engine, the normalizer and the repository without touching
a real household database.
"""

from __future__ import annotations

import logging
import tempfile
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
from sqlmodel import Session, SQLModel, create_engine

from debtsage.infra.database import create_session_factory
from debtsage.infra.repositories import SQLModelDebtSourceRepository

# Import all models to ensure they're registered with SQLModel metadata
from debtsage.models import (
    Account,
    Bill,
    DebtPaymentRecord,
    DebtRecord,
    HouseholdDebtSettings,
    LegacyDebtSettings,
)
from debtsage.services.debts import Debt, DebtPayment, StrategySettings

HOUSEHOLD = "house-1"
AS_OF = date(2024, 6, 15)


# =============================================================================
# Logging Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers installed by setup_logging so tests do not leak file handles."""
    yield
    logger = logging.getLogger("debtsage")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


# =============================================================================
# Engine Input Helpers
# =============================================================================


def make_debt(
    debt_id: str = "debt:1",
    balance: int = 100_000,
    rate: str | int = "0",
    minimum: int = 5_000,
    *,
    additional: int = 0,
    original: int | None = None,
    name: str | None = None,
    loan_type: str = "revolving",
    compounding: str = "monthly",
    billing_cycle_days: int | None = None,
    payments: tuple[DebtPayment, ...] = (),
) -> Debt:
    """Build a canonical debt; money arguments are in cents.

    Args:
        debt_id: Canonical id, e.g. ``"debt:1"``
        balance: Remaining balance in cents
        rate: APR percent (string/int so it converts to an exact Decimal)
        minimum: Minimum monthly payment in cents

    Returns:
        Debt: Validated canonical debt
    """
    return Debt(
        id=debt_id,
        name=name or debt_id,
        remaining_balance_cents=balance,
        original_balance_cents=balance if original is None else original,
        minimum_payment_cents=minimum,
        interest_rate=Decimal(rate),
        additional_monthly_payment_cents=additional,
        loan_type=loan_type,
        compounding_frequency=compounding,
        billing_cycle_days=billing_cycle_days,
        payments=payments,
    )


def make_settings(
    method: str = "avalanche", extra: int = 0, frequency: str = "monthly"
) -> StrategySettings:
    """Strategy settings with the extra budget in cents."""
    return StrategySettings(
        extra_monthly_payment_cents=extra, method=method, payment_frequency=frequency
    )


@pytest.fixture
def two_debts() -> list[Debt]:
    """A: $1,000 at 24% min $50; B: $500 at 10% min $25."""
    return [
        make_debt("debt:a", 100_000, "24", 5_000, name="Card A"),
        make_debt("debt:b", 50_000, "10", 2_500, name="Loan B"),
    ]


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database for each test.

    Each test gets a fresh database with all tables created.
    The database is automatically cleaned up after the test.

    Yields:
        Engine: SQLModel engine connected to test database
    """
    # Create temporary database file
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    SQLModel.metadata.create_all(engine)

    yield engine

    # Cleanup: close connections and delete database file
    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Create a database session for a single test.

    Yields:
        Session: SQLModel session for test
    """
    session = Session(db_engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory matching what the repositories expect."""
    return create_session_factory(db_engine)


@pytest.fixture
def repository(session_factory) -> SQLModelDebtSourceRepository:
    return SQLModelDebtSourceRepository(session_factory)


# =============================================================================
# Test Data Factories
# =============================================================================


def _persist(session: Session, row):
    session.add(row)
    session.commit()
    session.refresh(row)
    return row


@pytest.fixture
def account_factory(db_session):
    """Factory for creating credit accounts.

    Returns:
        Callable: Function that creates and persists Account instances
    """

    def _create_account(
        name: str = "Visa",
        current_balance: float = -1000.00,
        *,
        household_id: str = HOUSEHOLD,
        account_type: str = "credit",
        minimum_payment_amount: float | None = 50.00,
        interest_rate: float | None = 24.0,
        **fields,
    ) -> Account:
        account = Account(
            household_id=household_id,
            name=name,
            account_type=account_type,
            current_balance=current_balance,
            minimum_payment_amount=minimum_payment_amount,
            interest_rate=interest_rate,
            **fields,
        )
        return _persist(db_session, account)

    return _create_account


@pytest.fixture
def bill_factory(db_session):
    """Factory for creating debt-flagged bills.

    Returns:
        Callable: Function that creates and persists Bill instances
    """

    def _create_bill(
        name: str = "Car loan",
        remaining_balance: float | None = 5000.00,
        *,
        household_id: str = HOUSEHOLD,
        is_debt: bool = True,
        minimum_payment: float | None = 200.00,
        interest_rate: float | None = 6.5,
        **fields,
    ) -> Bill:
        bill = Bill(
            household_id=household_id,
            name=name,
            is_debt=is_debt,
            remaining_balance=remaining_balance,
            minimum_payment=minimum_payment,
            interest_rate=interest_rate,
            **fields,
        )
        return _persist(db_session, bill)

    return _create_bill


@pytest.fixture
def debt_record_factory(db_session):
    """Factory for creating standalone debt records.

    Returns:
        Callable: Function that creates and persists DebtRecord instances
    """

    def _create_debt_record(
        name: str = "Student loan",
        remaining_balance: float = 12000.00,
        *,
        household_id: str = HOUSEHOLD,
        status: str = "active",
        minimum_payment: float | None = 150.00,
        interest_rate: float | None = 4.5,
        **fields,
    ) -> DebtRecord:
        record = DebtRecord(
            household_id=household_id,
            name=name,
            status=status,
            remaining_balance=remaining_balance,
            minimum_payment=minimum_payment,
            interest_rate=interest_rate,
            **fields,
        )
        return _persist(db_session, record)

    return _create_debt_record


@pytest.fixture
def payment_factory(db_session):
    """Factory for recording payments against any debt source."""

    def _create_payment(
        source: str,
        source_id: int,
        payment_date: date | None,
        principal_amount: float,
        *,
        household_id: str = HOUSEHOLD,
        interest_amount: float = 0.0,
    ) -> DebtPaymentRecord:
        payment = DebtPaymentRecord(
            household_id=household_id,
            source=source,
            source_id=source_id,
            payment_date=payment_date,
            amount=principal_amount + interest_amount,
            principal_amount=principal_amount,
            interest_amount=interest_amount,
        )
        return _persist(db_session, payment)

    return _create_payment


@pytest.fixture
def household_settings_factory(db_session):
    def _create(
        household_id: str = HOUSEHOLD,
        extra_monthly_payment: float | None = 100.0,
        debt_payoff_method: str | None = "avalanche",
        payment_frequency: str | None = "monthly",
        debt_strategy_enabled: bool | None = True,
    ) -> HouseholdDebtSettings:
        row = HouseholdDebtSettings(
            household_id=household_id,
            extra_monthly_payment=extra_monthly_payment,
            debt_payoff_method=debt_payoff_method,
            payment_frequency=payment_frequency,
            debt_strategy_enabled=debt_strategy_enabled,
        )
        return _persist(db_session, row)

    return _create


@pytest.fixture
def legacy_settings_factory(db_session):
    def _create(
        user_id: str = "user-1",
        household_id: str = HOUSEHOLD,
        extra_monthly_payment: float | None = 40.0,
        preferred_method: str | None = "snowball",
        payment_frequency: str | None = "biweekly",
    ) -> LegacyDebtSettings:
        row = LegacyDebtSettings(
            user_id=user_id,
            household_id=household_id,
            extra_monthly_payment=extra_monthly_payment,
            preferred_method=preferred_method,
            payment_frequency=payment_frequency,
        )
        return _persist(db_session, row)

    return _create


# =============================================================================
# Helper Utilities
# =============================================================================


def assert_curve_conserves(points) -> None:
    """Every point's total must equal the exact sum of its per-debt balances."""
    for point in points:
        total = getattr(point, "projected_total_cents", None)
        if total is None:
            total = point.actual_total_cents
        assert total == sum(point.by_debt.values()), (
            f"Point {point.period_label}: total {total} != {sum(point.by_debt.values())}"
        )
