"""Tests for the forward balance simulation and its calendar helpers.

These tests verify:
- Per-period interest factors for every compounding/payment combination
- Conservation of per-debt balances in every point
- Rolldown of freed payments to the next debt
- Termination on payoff and on the horizon
- The immutable step function
- The per-period payment, interest and principal breakdown
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from debtsage.exceptions import DebtValidationError
from debtsage.money import apply_rate
from debtsage.services.projection import (
    PaymentLine,
    add_months,
    build_plan,
    horizon_periods,
    initial_state,
    monthly_payment_cents,
    period_date,
    period_interest_factor,
    period_label,
    simulate,
    step,
)
from tests.conftest import AS_OF, assert_curve_conserves, make_debt, make_settings


class TestCalendar:
    def test_add_months_clamps_day(self):
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)
        assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)
        assert add_months(date(2024, 3, 31), -1) == date(2024, 2, 29)

    def test_period_date_by_frequency(self):
        assert period_date(AS_OF, 2, "monthly") == date(2024, 8, 15)
        assert period_date(AS_OF, 2, "biweekly") == date(2024, 7, 13)
        assert period_date(AS_OF, 1, "weekly") == date(2024, 6, 22)
        assert period_date(AS_OF, -1, "weekly") == date(2024, 6, 8)

    def test_period_label(self):
        assert period_label(AS_OF, "monthly") == "2024-06"
        assert period_label(AS_OF, "weekly") == "2024-06-15"

    def test_horizon_in_payment_periods(self):
        """Twenty-four months is 24 monthly, 52 biweekly or 104 weekly periods."""
        assert horizon_periods(24, "monthly") == 24
        assert horizon_periods(24, "biweekly") == 52
        assert horizon_periods(24, "weekly") == 104


class TestInterestFactor:
    """Compounding frequency and payment frequency are independent."""

    def test_monthly_compounding_monthly_payment_is_rate_over_twelve(self):
        debt = make_debt(rate="12")
        assert period_interest_factor(debt, "monthly") == Decimal("0.01")

    def test_zero_rate(self):
        assert period_interest_factor(make_debt(rate="0"), "weekly") == 0

    def test_daily_compounding_exceeds_monthly(self):
        monthly = period_interest_factor(make_debt(rate="12"), "monthly")
        daily = period_interest_factor(make_debt(rate="12", compounding="daily"), "monthly")
        assert daily > monthly
        assert daily < Decimal("0.0101")

    def test_biweekly_payments_with_monthly_compounding(self):
        """Two 14-day periods cover less than one month of interest."""
        monthly = period_interest_factor(make_debt(rate="12"), "monthly")
        biweekly = period_interest_factor(make_debt(rate="12"), "biweekly")
        assert Decimal(0) < biweekly < monthly
        assert (1 + biweekly) ** 2 < 1 + monthly

    def test_billing_cycle_overrides_compounding(self):
        """A 14-day billing cycle with biweekly payments accrues APR * 14 / 365."""
        debt = make_debt(rate="12", billing_cycle_days=14)
        expected = Decimal("0.12") * Decimal(14) / Decimal(365)
        assert period_interest_factor(debt, "biweekly") == expected


class TestSimulate:
    """End-to-end projection runs."""

    def test_zero_interest_single_debt_takes_six_periods(self):
        """$300 at 0% with a $50 minimum: six payments, debt free in six months."""
        run = simulate([make_debt("debt:1", 30_000, "0", 5_000)], make_settings(), AS_OF)

        assert [p.projected_total_cents for p in run.points] == [
            30_000, 25_000, 20_000, 15_000, 10_000, 5_000, 0,
        ]
        assert run.debt_free_period == 6
        assert run.debt_free_date == date(2024, 12, 15)
        assert run.payoff_periods == {"debt:1": 6}
        assert run.total_interest_cents == 0
        assert not run.horizon_exhausted

    def test_first_point_is_now(self, two_debts):
        run = simulate(two_debts, make_settings(extra=10_000), AS_OF)
        first = run.points[0]
        assert first.period_index == 0
        assert first.period_date == AS_OF
        assert first.by_debt == {"debt:a": 100_000, "debt:b": 50_000}

    def test_conservation_every_period(self, two_debts):
        """Aggregate equals the exact sum of per-debt balances in every point."""
        for frequency in ("monthly", "biweekly", "weekly"):
            run = simulate(two_debts, make_settings(extra=10_000, frequency=frequency), AS_OF)
            assert_curve_conserves(run.points)

    def test_balances_never_increase_or_go_negative(self, two_debts):
        run = simulate(two_debts, make_settings(extra=10_000), AS_OF)
        for debt_id in ("debt:a", "debt:b"):
            series = [p.by_debt[debt_id] for p in run.points]
            assert all(later <= earlier for earlier, later in zip(series, series[1:]))
            assert min(series) >= 0
            assert series[-1] == 0

    def test_rolldown_after_payoff(self, two_debts):
        """From the period after A is paid, B receives A's minimum plus the extra budget."""
        run = simulate(two_debts, make_settings(extra=10_000), AS_OF)
        factor = period_interest_factor(two_debts[1], "monthly")
        payoff_a = run.payoff_periods["debt:a"]

        def paid_to_b(period: int) -> int:
            before = run.points[period - 1].by_debt["debt:b"]
            after = run.points[period].by_debt["debt:b"]
            return before + apply_rate(before, factor) - after

        assert paid_to_b(payoff_a) == 2_500
        assert run.points[payoff_a + 1].by_debt["debt:b"] > 0
        assert paid_to_b(payoff_a + 1) == 2_500 + 5_000 + 10_000

    def test_focus_payment_in_first_period(self, two_debts):
        """A accrues 2% then pays $150 in period one."""
        run = simulate(two_debts, make_settings(extra=10_000), AS_OF)
        assert run.points[1].by_debt["debt:a"] == 100_000 + 2_000 - 15_000

    def test_overpayment_is_not_moved_within_the_period(self):
        """A small debt's leftover capacity reaches the next debt only next period."""
        debts = [
            make_debt("debt:small", 1_000, "0", 5_000),
            make_debt("debt:large", 100_000, "0", 1_000),
        ]
        run = simulate(debts, make_settings("snowball"), AS_OF)

        assert run.points[1].by_debt == {"debt:small": 0, "debt:large": 99_000}
        assert run.points[2].by_debt["debt:large"] == 99_000 - 6_000

    def test_debts_starting_at_zero_free_no_capacity(self):
        debts = [
            make_debt("debt:done", 0, "0", 5_000),
            make_debt("debt:open", 10_000, "0", 1_000),
        ]
        run = simulate(debts, make_settings("snowball"), AS_OF)

        assert run.payoff_periods["debt:done"] == 0
        assert run.points[1].by_debt["debt:open"] == 9_000
        assert run.debt_free_period == 10

    def test_installment_last_payment_is_cut_short(self):
        debt = make_debt("debt:1", 12_000, "0", 5_000, loan_type="installment")
        run = simulate([debt], make_settings(), AS_OF)
        assert [p.projected_total_cents for p in run.points] == [12_000, 7_000, 2_000, 0]

    def test_loan_type_does_not_change_the_projection(self):
        """Both loan types pay a fixed commitment capped at the balance owed."""
        revolving = simulate([make_debt("debt:1", 12_000, "18", 5_000)], make_settings(), AS_OF)
        installment = simulate(
            [make_debt("debt:1", 12_000, "18", 5_000, loan_type="installment")],
            make_settings(),
            AS_OF,
        )
        assert revolving.points == installment.points

    def test_duplicate_ids_are_rejected(self):
        debts = [make_debt("dup", 100_000, "20"), make_debt("dup", 20_000, "5")]

        with pytest.raises(DebtValidationError) as excinfo:
            simulate(debts, make_settings(), AS_OF)

        assert excinfo.value.problems == ["dup: duplicate debt id"]

    def test_weekly_split_hands_remainder_to_first_week(self):
        """$50.01 a month over four weeks: 12.51, then 12.50 three times."""
        debt = make_debt("debt:1", 100_000, "0", 5_001)
        run = simulate([debt], make_settings(frequency="weekly"), AS_OF)
        totals = [p.projected_total_cents for p in run.points[:5]]
        assert totals == [100_000, 98_749, 97_499, 96_249, 94_999]

    def test_horizon_exhausted_without_error(self):
        debt = make_debt("debt:1", 10_000_000, "20", 170_000)
        run = simulate([debt], make_settings(), AS_OF)

        assert len(run.points) == 25
        assert run.debt_free_period is None
        assert run.debt_free_date is None
        assert run.horizon_exhausted
        assert run.payoff_dates == {"debt:1": None}

    def test_custom_horizon(self):
        debt = make_debt("debt:1", 10_000_000, "20", 170_000)
        run = simulate([debt], make_settings(frequency="biweekly"), AS_OF, horizon_months=6)
        assert run.horizon_periods == 13
        assert len(run.points) == 14

    def test_no_debts_single_zero_point(self):
        run = simulate([], make_settings(), AS_OF)
        assert len(run.points) == 1
        assert run.points[0].projected_total_cents == 0
        assert run.debt_free_period == 0
        assert run.debt_free_date == AS_OF

    def test_biweekly_finishes_no_later_than_monthly(self, two_debts):
        monthly = simulate(two_debts, make_settings(extra=10_000), AS_OF)
        biweekly = simulate(two_debts, make_settings(extra=10_000, frequency="biweekly"), AS_OF)
        assert biweekly.debt_free_date <= monthly.debt_free_date
        assert biweekly.total_interest_cents <= monthly.total_interest_cents

    def test_interest_accumulates_per_debt(self, two_debts):
        run = simulate(two_debts, make_settings(extra=10_000), AS_OF)
        assert run.interest_by_debt["debt:a"] > run.interest_by_debt["debt:b"] > 0
        assert run.total_interest_cents == sum(run.interest_by_debt.values())


class TestStep:
    """The pure state transition behind the simulation."""

    def test_step_does_not_touch_previous_state(self, two_debts):
        plan = build_plan(two_debts, make_settings(extra=10_000))
        start = initial_state(plan)

        after = step(plan, start)

        assert start.period == 0
        assert start.balances == (100_000, 50_000)
        assert after.period == 1
        assert after.balances != start.balances

    def test_replay_from_any_state_is_deterministic(self, two_debts):
        plan = build_plan(two_debts, make_settings(extra=10_000))
        state = initial_state(plan)
        for _ in range(5):
            state = step(plan, state)

        assert step(plan, state) == step(plan, state)

    def test_monthly_payment_follows_focus(self, two_debts):
        plan = build_plan(two_debts, make_settings(extra=10_000))
        state = initial_state(plan)
        assert monthly_payment_cents(plan, state, 0) == 15_000
        assert monthly_payment_cents(plan, state, 1) == 2_500

    def test_rolled_capacity_recorded_on_payoff(self):
        plan = build_plan(
            [make_debt("debt:1", 4_000, "0", 5_000), make_debt("debt:2", 50_000, "0", 1_000)],
            make_settings("snowball", extra=2_000),
        )
        state = step(plan, initial_state(plan))

        assert state.balances == (0, 49_000)
        assert state.payoff_periods == (1, None)
        assert state.rolled_cents == 5_000
        assert state.focus_index() == 1
        assert monthly_payment_cents(plan, state, 1) == 1_000 + 2_000 + 5_000


class TestPaymentBreakdown:
    """Per-period amortization rows recorded by each step."""

    def test_first_period_rows(self, two_debts):
        run = simulate(two_debts, make_settings(extra=10_000), AS_OF)

        assert run.points[0].payments == ()
        assert run.points[1].payments == (
            PaymentLine("debt:a", 15_000, 2_000, 13_000, 87_000),
            PaymentLine("debt:b", 2_500, 417, 2_083, 47_917),
        )

    def test_rows_reconcile_with_balances(self, two_debts):
        """Payment splits into principal and interest; principal is the balance drop."""
        run = simulate(two_debts, make_settings(extra=10_000), AS_OF)

        for before, after in zip(run.points, run.points[1:]):
            for line in after.payments:
                assert line.payment_cents == line.principal_cents + line.interest_cents
                assert line.principal_cents == (
                    before.by_debt[line.debt_id] - after.by_debt[line.debt_id]
                )
                assert line.balance_cents == after.by_debt[line.debt_id]

    def test_schedule_for_one_debt(self, two_debts):
        run = simulate(two_debts, make_settings(extra=10_000), AS_OF)

        schedule = run.schedule_for("debt:a")

        assert len(schedule) == run.payoff_periods["debt:a"]
        assert schedule[-1].balance_cents == 0
        assert sum(line.interest_cents for line in schedule) == run.interest_by_debt["debt:a"]
        assert sum(line.principal_cents for line in schedule) == 100_000

    def test_paid_off_debts_get_no_rows(self):
        debts = [
            make_debt("debt:done", 0, "0", 1_000),
            make_debt("debt:open", 3_000, "0", 1_000),
        ]
        run = simulate(debts, make_settings(), AS_OF)

        assert run.schedule_for("debt:done") == []
        assert [line.payment_cents for line in run.schedule_for("debt:open")] == [1_000] * 3

    def test_payment_below_interest_has_negative_principal(self):
        run = simulate([make_debt("debt:1", 1_000_000, "24", 10_000)], make_settings(), AS_OF)

        first = run.points[1].payments[0]
        assert (first.interest_cents, first.principal_cents) == (20_000, -10_000)
        assert first.balance_cents == 1_010_000

    def test_step_records_only_the_period_it_advanced(self, two_debts):
        plan = build_plan(two_debts, make_settings(extra=10_000))
        start = initial_state(plan)

        after = step(plan, start)

        assert start.payments == ()
        assert [line.debt_id for line in after.payments] == ["debt:a", "debt:b"]
