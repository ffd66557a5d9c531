"""CLI helpers for parsing option values, exiting on bad input."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import click

from fundtrack.domain.account import AccountService
from fundtrack.domain.errors import DomainError
from fundtrack.utils.account_resolver import resolve_account
from fundtrack.utils.amount_parser import parse_amount, to_milli_units
from fundtrack.utils.date_parser import parse_date


def resolve_account_or_exit(
    ctx: click.Context, account_service: AccountService, owner: str, account: str | int
) -> int:
    """Resolve account name or ID, or exit with a CLI error.

    This keeps error messaging and exit behavior consistent across commands.
    """
    try:
        return resolve_account(account_service, owner, account)
    except DomainError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)


def date_or_exit(ctx: click.Context, value: str | None, label: str = "date") -> date | None:
    """Parse a date option; None stays None."""
    if value is None:
        return None
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def money_or_exit(ctx: click.Context, value: str | None, label: str = "amount") -> int | None:
    """Parse a currency option into milli-units; None stays None."""
    if value is None:
        return None
    try:
        return to_milli_units(parse_amount(value))
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def decimal_or_exit(ctx: click.Context, value: str | None, label: str = "quantity") -> Decimal | None:
    """Parse a plain decimal option such as a quantity or percentage."""
    if value is None:
        return None
    try:
        return parse_amount(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)
