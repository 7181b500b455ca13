"""Command line entry points for DebtSage."""

from __future__ import annotations

from datetime import date
from typing import Optional

import click

from .config import BaseConfig
from .exceptions import DebtSageError
from .infra.database import bootstrap_database
from .infra.repositories import SQLModelDebtSourceRepository
from .logging_config import get_logger, setup_logging
from .money import format_cents
from .services.engine import load_household_inputs, plan_household
from .services.strategy import compare_methods

logger = get_logger(__name__)


def _repository(ctx: click.Context) -> SQLModelDebtSourceRepository:
    config: BaseConfig = ctx.obj["config"]
    _engine, session_factory = bootstrap_database(config)
    return SQLModelDebtSourceRepository(session_factory)


def _as_of(value: Optional[str]) -> date:
    if value is None:
        return date.today()
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise click.BadParameter(f"expected YYYY-MM-DD, got {value!r}") from exc


@click.group()
@click.pass_context
def main(ctx: click.Context) -> None:
    """Debt payoff planning for a household."""

    ctx.ensure_object(dict)
    if "config" not in ctx.obj:
        ctx.obj["config"] = BaseConfig()
    setup_logging(ctx.obj["config"])


@main.command("init-db")
@click.pass_context
def init_db(ctx: click.Context) -> None:
    """Create the debt source tables."""

    config: BaseConfig = ctx.obj["config"]
    bootstrap_database(config)
    click.echo(f"Database ready: {config.DATABASE_URL}")


@main.command("plan")
@click.argument("household_id")
@click.option("--user-id", default=None, help="Fallback to this user's legacy settings")
@click.option("--as-of", "as_of", default=None, help="Plan date (YYYY-MM-DD), default today")
@click.option("--history", "show_history", is_flag=True, default=False, help="Print the balance curve")
@click.pass_context
def plan(
    ctx: click.Context,
    household_id: str,
    user_id: Optional[str],
    as_of: Optional[str],
    show_history: bool,
) -> None:
    """Show the payoff plan for HOUSEHOLD_ID."""

    config: BaseConfig = ctx.obj["config"]
    when = _as_of(as_of)
    try:
        debts, resolved = load_household_inputs(
            _repository(ctx), household_id, user_id=user_id
        )
        result = plan_household(
            debts,
            resolved.settings,
            when,
            horizon_months=config.PROJECTION_MONTHS,
            history_periods=config.HISTORY_PERIODS,
        )
    except DebtSageError as exc:
        logger.error("Planning failed", extra={"household_id": household_id})
        raise click.ClickException(str(exc)) from exc

    strategy = result.strategy
    click.echo(
        f"Method: {strategy.method} ({strategy.payment_frequency}, settings: {resolved.origin})"
    )
    if not strategy.has_debts or strategy.is_debt_free:
        click.echo("No outstanding debts.")
        return

    for entry in strategy.rolldown_schedule:
        marker = "*" if entry.is_focus else " "
        payoff = entry.payoff_date.isoformat() if entry.payoff_date else "beyond horizon"
        line = (
            f"{marker} {entry.order}. {entry.debt_name}: "
            f"pay {format_cents(entry.current_payment_cents)} now"
        )
        if entry.reaches_focus and not entry.is_focus:
            line += f", {format_cents(entry.active_payment_cents)} once focused"
        click.echo(f"{line}, paid off {payoff}")

    summary = result.summary
    click.echo(f"Total recommended: {format_cents(strategy.total_recommended_cents)}")
    click.echo(
        f"Paid {format_cents(summary.total_paid_cents)} of "
        f"{format_cents(summary.total_original_cents)} ({summary.percentage_complete}%)"
    )
    if summary.debt_free_date is not None:
        click.echo(f"Debt free: {summary.debt_free_date.isoformat()}")
    else:
        click.echo("Debt free: beyond projection horizon")

    if show_history:
        for point in result.projection:
            kind = "actual" if point.is_historical else "projected"
            click.echo(
                f"{point.period_label} {kind:9} {format_cents(point.projected_total_cents)}"
            )
    logger.debug(
        "Plan printed",
        extra={"household_id": household_id, "debts": len(strategy.rolldown_schedule)},
    )


@main.command("compare")
@click.argument("household_id")
@click.option("--user-id", default=None, help="Fallback to this user's legacy settings")
@click.option("--as-of", "as_of", default=None, help="Plan date (YYYY-MM-DD), default today")
@click.pass_context
def compare(
    ctx: click.Context, household_id: str, user_id: Optional[str], as_of: Optional[str]
) -> None:
    """Compare snowball and avalanche for HOUSEHOLD_ID."""

    config: BaseConfig = ctx.obj["config"]
    when = _as_of(as_of)
    try:
        debts, resolved = load_household_inputs(
            _repository(ctx), household_id, user_id=user_id
        )
        comparison = compare_methods(
            debts, resolved.settings, when, horizon_months=config.COMPARISON_MONTHS
        )
    except DebtSageError as exc:
        logger.error("Comparison failed", extra={"household_id": household_id})
        raise click.ClickException(str(exc)) from exc

    for result in (comparison.snowball, comparison.avalanche):
        finish = result.debt_free_date.isoformat() if result.debt_free_date else "beyond horizon"
        click.echo(
            f"{result.method:9} interest {format_cents(result.total_interest_cents)}, "
            f"debt free {finish}"
        )
    click.echo(
        f"Avalanche saves {format_cents(comparison.interest_savings_cents)} "
        f"and {comparison.period_savings} period(s)"
    )
    click.echo(f"Recommended: {comparison.recommended_method}")


if __name__ == "__main__":  # pragma: no cover
    main()
