"""Command line entry point for DebtSage.

All money arguments are integer cents.
"""

from __future__ import annotations

import functools
import json
from dataclasses import asdict
from datetime import date
from pathlib import Path
from typing import Any, Callable

import click

from .config import BaseConfig
from .constants.debts import DEBT_CATEGORIES, DEBT_STATUSES
from .context import AppContext, create_app_context
from .domain.exceptions import DebtSageError
from .logging_config import setup_logging
from .models.debt import Debt
from .services import debts as debt_service
from .services.payments import record_payment
from .services.strategies import compare_strategies
from .services.summary import portfolio_summary
from .services.whatif import what_if_extra_payment


def _echo_json(payload: Any) -> None:
    click.echo(json.dumps(payload, indent=2, default=str))


def _debt_payload(debt: Debt) -> dict[str, Any]:
    return debt.model_dump()


def _handle_domain_errors(func: Callable[..., None]) -> Callable[..., None]:
    """Surface domain errors as click errors (message + non-zero exit)."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> None:
        try:
            func(*args, **kwargs)
        except DebtSageError as exc:
            raise click.ClickException(str(exc)) from exc

    return wrapper


@click.group()
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding the database and logs (default: $DEBTSAGE_DATA_DIR or ./instance).",
)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Echo log lines to stderr.")
@click.pass_context
def cli(ctx: click.Context, data_dir: Path | None, verbose: bool) -> None:
    """Project debt payoff dates and compare payoff strategies."""

    config = BaseConfig(data_dir)
    setup_logging(config, console=verbose)
    ctx.obj = create_app_context(config)


@cli.command("add")
@click.argument("name")
@click.option("--category", type=click.Choice(DEBT_CATEGORIES), default="other", show_default=True)
@click.option("--balance", "balance_cents", type=int, required=True, help="Current balance.")
@click.option(
    "--original-balance",
    "original_balance_cents",
    type=int,
    default=None,
    help="Balance when the debt was opened (defaults to --balance).",
)
@click.option("--apr", "apr_percent", type=float, default=0.0, show_default=True)
@click.option("--minimum", "minimum_payment_cents", type=int, default=None)
@click.option("--due-day", type=int, default=None)
@click.pass_obj
@_handle_domain_errors
def add_debt(
    app: AppContext,
    name: str,
    category: str,
    balance_cents: int,
    original_balance_cents: int | None,
    apr_percent: float,
    minimum_payment_cents: int | None,
    due_day: int | None,
) -> None:
    """Create a debt."""

    debt = debt_service.create_debt(
        app.debt_repo,
        name=name,
        category=category,
        original_balance_cents=original_balance_cents or balance_cents,
        current_balance_cents=balance_cents,
        apr_percent=apr_percent,
        minimum_payment_cents=minimum_payment_cents,
        due_day=due_day,
    )
    _echo_json(_debt_payload(debt))


@cli.command("list")
@click.option("--all", "include_all", is_flag=True, default=False, help="Include inactive debts.")
@click.pass_obj
def list_debts(app: AppContext, include_all: bool) -> None:
    """List debts, most dangerous first."""

    rows = app.debt_repo.list_all() if include_all else app.debt_repo.list_active_debts()
    _echo_json([_debt_payload(debt) for debt in rows])


@cli.command("show")
@click.argument("debt_id", type=int)
@click.pass_obj
@_handle_domain_errors
def show_debt(app: AppContext, debt_id: int) -> None:
    """Show a debt with its projection and payment history."""

    detail = debt_service.get_debt_detail(app.debt_repo, debt_id)
    _echo_json(
        {
            "debt": _debt_payload(detail.debt),
            "projection": asdict(detail.projection),
            "payments": [payment.model_dump() for payment in detail.payments],
        }
    )


@cli.command("update")
@click.argument("debt_id", type=int)
@click.option("--name", default=None)
@click.option("--category", type=click.Choice(DEBT_CATEGORIES), default=None)
@click.option("--apr", "apr_percent", type=float, default=None)
@click.option("--minimum", "minimum_payment_cents", type=int, default=None)
@click.option("--due-day", type=int, default=None)
@click.option("--status", type=click.Choice(DEBT_STATUSES), default=None)
@click.pass_obj
@_handle_domain_errors
def update_debt(app: AppContext, debt_id: int, **options: Any) -> None:
    """Edit a debt's details."""

    changes = {key: value for key, value in options.items() if value is not None}
    if not changes:
        raise click.UsageError("Nothing to update.")
    debt = debt_service.update_debt(app.debt_repo, debt_id, **changes)
    _echo_json(_debt_payload(debt))


@cli.command("pay")
@click.argument("debt_id", type=int)
@click.argument("amount_cents", type=int)
@click.option("--date", "payment_date", default=None, help="ISO date (default: today).")
@click.option("--ref", "external_ref", default=None, help="External reference, e.g. a bank id.")
@click.pass_obj
@_handle_domain_errors
def pay_debt(
    app: AppContext,
    debt_id: int,
    amount_cents: int,
    payment_date: str | None,
    external_ref: str | None,
) -> None:
    """Record a payment."""

    receipt = record_payment(
        app.debt_repo,
        debt_id,
        amount_cents,
        payment_date or date.today(),
        external_ref,
    )
    _echo_json(
        {
            "payment": receipt.payment.model_dump(),
            "debt": _debt_payload(receipt.debt),
            "projection": asdict(receipt.projection),
        }
    )


@cli.command("charge")
@click.argument("debt_id", type=int)
@click.argument("amount_cents", type=int)
@click.pass_obj
@_handle_domain_errors
def charge_debt(app: AppContext, debt_id: int, amount_cents: int) -> None:
    """Add a new charge to a debt's balance."""

    debt = debt_service.apply_new_charge(app.debt_repo, debt_id, amount_cents)
    _echo_json(_debt_payload(debt))


@cli.command("strategies")
@click.option("--extra", "extra_cents", type=int, default=0, show_default=True)
@click.pass_obj
@_handle_domain_errors
def strategies(app: AppContext, extra_cents: int) -> None:
    """Compare avalanche, snowball and hybrid payoff orderings."""

    _echo_json([asdict(result) for result in compare_strategies(app.debt_repo, extra_cents)])


@cli.command("what-if")
@click.argument("debt_id", type=int)
@click.argument("extra_cents", type=int)
@click.pass_obj
@_handle_domain_errors
def what_if(app: AppContext, debt_id: int, extra_cents: int) -> None:
    """Show the effect of paying EXTRA_CENTS more every month."""

    _echo_json(asdict(what_if_extra_payment(app.debt_repo, debt_id, extra_cents)))


@cli.command("summary")
@click.pass_obj
def summary(app: AppContext) -> None:
    """Totals and averages across active debts."""

    _echo_json(asdict(portfolio_summary(app.debt_repo)))


def main() -> None:
    cli()


if __name__ == "__main__":  # pragma: no cover
    main()
