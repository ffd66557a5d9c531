"""Account management commands."""

import click
from fundtrack.cli.error_handling import handle_domain_error, owner_or_exit
from fundtrack.cli.parsing import date_or_exit, decimal_or_exit, money_or_exit, resolve_account_or_exit
from fundtrack.domain.account import AccountService
from fundtrack.domain.entities import AccountType, CreditCardSettings
from fundtrack.domain.errors import DomainError
from fundtrack.utils.amount_parser import format_amount

ACCOUNT_TYPES = [t.value for t in AccountType]


def credit_card_options(func):
    """Attach the credit card billing options to a command."""
    options = [
        click.option("--close-day", type=int, help="Statement close day of month (1-31)"),
        click.option("--close-eom", is_flag=True, help="Statement closes on the last day of the month"),
        click.option("--due-day", type=int, help="Payment due day of month (1-31)"),
        click.option("--due-days", type=int, help="Payment due this many days after statement close"),
        click.option("--min-pct", help="Minimum payment percentage (default 2)"),
        click.option("--limit", "credit_limit", help="Credit limit (e.g., 5000.00)"),
        click.option("--apr", help="Annual percentage rate (e.g., 24.9)"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def build_credit_card_settings(
    ctx, close_day, close_eom, due_day, due_days, min_pct, credit_limit, apr
) -> CreditCardSettings | None:
    """Build billing settings from options, or None when none were given."""
    values = (close_day, close_eom or None, due_day, due_days, min_pct, credit_limit, apr)
    if all(value is None for value in values):
        return None
    return CreditCardSettings(
        statement_close_day=close_day,
        statement_close_is_eom=bool(close_eom),
        payment_due_day=due_day,
        payment_due_days=due_days,
        minimum_payment_percentage=decimal_or_exit(ctx, min_pct, "minimum payment percentage"),
        credit_limit=money_or_exit(ctx, credit_limit, "credit limit"),
        apr=decimal_or_exit(ctx, apr, "APR"),
    )


@click.group()
def account_group():
    """Manage accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option(
    "--type", "account_type", type=click.Choice(ACCOUNT_TYPES, case_sensitive=False), default="BANK",
    help="Account type",
)
@click.option("--balance", help="Starting balance (e.g., 1500.00)")
@click.option("--date", help="Date of the starting balance (defaults to today)")
@click.option("--hidden", is_flag=True, help="Hide the account from summaries")
@credit_card_options
@click.pass_context
def create_account(
    ctx, name, account_type, balance, date, hidden,
    close_day, close_eom, due_day, due_days, min_pct, credit_limit, apr,
):
    """Create a new account.

    Credit card accounts need a close day (or --close-eom) and a due day
    (or --due-days).

    Examples:
        fundtrack account create "Checking" --balance 1500
        fundtrack account create "Visa" --type CREDIT_CARD --close-day 25 --due-days 20 --limit 5000
    """
    owner = owner_or_exit(ctx)
    service = AccountService(ctx.obj["db"])
    settings = build_credit_card_settings(
        ctx, close_day, close_eom, due_day, due_days, min_pct, credit_limit, apr
    )

    try:
        account_id = service.create_account(
            owner,
            name=name,
            account_type=AccountType(account_type.upper()),
            starting_balance=money_or_exit(ctx, balance, "balance") or 0,
            is_hidden=hidden,
            credit_card=settings,
            opened_on=date_or_exit(ctx, date),
        )
        click.echo(f"Created account '{name}' (ID: {account_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("list")
@click.option("--as-of", help="Balance date (defaults to today)")
@click.pass_context
def list_accounts(ctx, as_of: str | None):
    """List accounts with their balances."""
    owner = owner_or_exit(ctx)
    service = AccountService(ctx.obj["db"])

    balances = service.list_account_balances(owner, as_of=date_or_exit(ctx, as_of, "as-of date"))
    if not balances:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 72)
    for item in balances:
        acc = item.account
        hidden = " (hidden)" if acc.is_hidden else ""
        click.echo(
            f"ID: {acc.id:3d} | {acc.name:20s} | {acc.account_type.value:11s} | "
            f"{format_amount(item.balance):>14s}{hidden}"
        )


@account_group.command("update")
@click.argument("account", metavar="ACCOUNT")
@click.option("--name", help="New account name")
@click.option("--type", "account_type", type=click.Choice(ACCOUNT_TYPES, case_sensitive=False))
@click.option("--hidden/--visible", default=None, help="Hide or show the account")
@credit_card_options
@click.pass_context
def update_account(
    ctx, account, name, account_type, hidden,
    close_day, close_eom, due_day, due_days, min_pct, credit_limit, apr,
) -> None:
    """Edit an account.

    ACCOUNT can be an account name or ID. Billing options replace the card's
    settings as a whole.

    Examples:
        fundtrack account update "Checking" --name "Main Checking"
        fundtrack account update Visa --close-eom --due-day 15
    """
    owner = owner_or_exit(ctx)
    service = AccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, owner, account)
    settings = build_credit_card_settings(
        ctx, close_day, close_eom, due_day, due_days, min_pct, credit_limit, apr
    )

    try:
        service.update_account(
            owner,
            account_id,
            name=name,
            account_type=AccountType(account_type.upper()) if account_type else None,
            is_hidden=hidden,
            credit_card=settings,
        )
        click.echo(f"Updated account {account_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("delete")
@click.argument("account", metavar="ACCOUNT")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_account(ctx, account: str, yes: bool) -> None:
    """Delete an account.

    ACCOUNT can be an account name or ID. The account is hidden from every
    listing and its transactions no longer count toward balances.
    """
    owner = owner_or_exit(ctx)
    service = AccountService(ctx.obj["db"])
    account_id = resolve_account_or_exit(ctx, service, owner, account)
    account_obj = service.require_account(owner, account_id)

    if not yes and not click.confirm(
        f"Are you sure you want to delete account '{account_obj.name}' (ID: {account_id})?"
    ):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_account(owner, account_id)
        click.echo(f"Deleted account '{account_obj.name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


@account_group.command("bulk-delete")
@click.argument("account_ids", nargs=-1, type=int, required=True)
@click.pass_context
def bulk_delete_accounts(ctx, account_ids: tuple[int, ...]) -> None:
    """Delete several accounts by ID; IDs you do not own are skipped."""
    owner = owner_or_exit(ctx)
    deleted = AccountService(ctx.obj["db"]).bulk_delete_accounts(owner, account_ids)
    click.echo(f"Deleted {len(deleted)} account(s)")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
