"""Credit card and statement commands."""

import click
from fundtrack.cli.error_handling import handle_domain_error, owner_or_exit
from fundtrack.cli.parsing import date_or_exit, money_or_exit, resolve_account_or_exit
from fundtrack.domain.account import AccountService
from fundtrack.domain.credit_card import CreditCardService
from fundtrack.domain.entities import StatementStatus
from fundtrack.domain.errors import DomainError
from fundtrack.domain.filters import StatementFilter
from fundtrack.utils.amount_parser import format_amount


@click.group()
def card_group():
    """Credit card overview."""
    pass


@card_group.command("list")
@click.option("--as-of", help="Reference date (defaults to today)")
@click.pass_context
def list_cards(ctx, as_of: str | None):
    """List credit cards with balance, utilization and next payment."""
    owner = owner_or_exit(ctx)
    summaries = CreditCardService(ctx.obj["db"]).list_credit_cards(
        owner, today=date_or_exit(ctx, as_of, "as-of date")
    )
    if not summaries:
        click.echo("No credit cards found.")
        return

    click.echo("\nCredit cards:")
    click.echo("-" * 80)
    for summary in summaries:
        utilization = f"{summary.utilization:.1%}" if summary.utilization is not None else "-"
        click.echo(
            f"ID: {summary.account.id:3d} | {summary.account.name:20s} | "
            f"owed {format_amount(summary.current_owed):>12s} | "
            f"available {format_amount(summary.available_credit):>12s} | used {utilization}"
        )
        upcoming = summary.next_statement
        if upcoming is not None:
            statement = upcoming.statement
            line = (
                f"      next payment {format_amount(statement.payment_due_amount - statement.paid_amount)} "
                f"due {statement.due_date} ({upcoming.days_until_due} day(s))"
            )
            if upcoming.interest_estimate is not None:
                line += f", est. interest {format_amount(upcoming.interest_estimate)}"
            click.echo(line)


@click.group()
def statement_group():
    """Close and review credit card statements."""
    pass


@statement_group.command("preview")
@click.argument("account", metavar="ACCOUNT")
@click.option("--as-of", help="Reference date (defaults to today)")
@click.pass_context
def preview_statement(ctx, account: str, as_of: str | None) -> None:
    """Show what closing the current cycle would record."""
    owner = owner_or_exit(ctx)
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), owner, account)
    try:
        preview = CreditCardService(db).preview_statement(
            owner, account_id, today=date_or_exit(ctx, as_of, "as-of date")
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Period:          {preview.period_start} to {preview.statement_date}")
    click.echo(f"Payment due:     {preview.due_date}")
    click.echo(f"Balance:         {format_amount(preview.statement_balance)}")
    click.echo(f"Amount due:      {format_amount(preview.payment_due_amount)}")
    click.echo(
        f"Minimum payment: {format_amount(preview.minimum_payment)} "
        f"({preview.minimum_payment_percentage}%)"
    )


@statement_group.command("close")
@click.argument("account", metavar="ACCOUNT")
@click.option("--amount", help="Amount due to record instead of the full balance")
@click.option("--as-of", help="Reference date (defaults to today)")
@click.pass_context
def close_statement(ctx, account: str, amount: str | None, as_of: str | None) -> None:
    """Close the most recent billing cycle of a card.

    Examples:
        fundtrack statement close Visa
        fundtrack statement close Visa --amount 300
    """
    owner = owner_or_exit(ctx)
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), owner, account)
    try:
        statement_id = CreditCardService(db).close_statement(
            owner,
            account_id,
            payment_due_override=money_or_exit(ctx, amount),
            today=date_or_exit(ctx, as_of, "as-of date"),
        )
        click.echo(f"Closed statement {statement_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@statement_group.command("list")
@click.option("--account", help="Card account name or ID")
@click.option("--status", type=click.Choice([s.value for s in StatementStatus]), help="Paid or unpaid only")
@click.pass_context
def list_statements(ctx, account: str | None, status: str | None) -> None:
    """List closed statements, newest first."""
    owner = owner_or_exit(ctx)
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), owner, account) if account else None
    statements = CreditCardService(db).list_statements(
        owner,
        StatementFilter(account_id=account_id, status=StatementStatus(status) if status else None),
    )
    if not statements:
        click.echo("No statements found.")
        return

    click.echo(f"\nFound {len(statements)} statement(s):")
    click.echo("-" * 90)
    click.echo(
        f"{'ID':<5} {'Account':<8} {'Closed':<12} {'Due':<12} {'Amount due':>14} {'Paid':>14} {'Status':<8}"
    )
    click.echo("-" * 90)
    for statement in statements:
        status_label = "PAID" if statement.is_paid else "UNPAID"
        click.echo(
            f"{statement.id:<5} {statement.account_id:<8} {str(statement.statement_date):<12} "
            f"{str(statement.due_date):<12} {format_amount(statement.payment_due_amount):>14} "
            f"{format_amount(statement.paid_amount):>14} {status_label:<8}"
        )


@statement_group.command("edit")
@click.argument("statement_id", type=int)
@click.argument("amount")
@click.pass_context
def edit_statement(ctx, statement_id: int, amount: str) -> None:
    """Change the amount due of a closed statement."""
    owner = owner_or_exit(ctx)
    try:
        CreditCardService(ctx.obj["db"]).edit_statement(owner, statement_id, money_or_exit(ctx, amount))
        click.echo(f"Updated statement {statement_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register credit card commands with main CLI."""
    cli.add_command(card_group, name="card")
    cli.add_command(statement_group, name="statement")
