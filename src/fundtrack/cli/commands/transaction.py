"""Transaction management commands."""

import click
from fundtrack.cli.commands.category import resolve_category_or_exit
from fundtrack.cli.error_handling import handle_domain_error, owner_or_exit
from fundtrack.cli.parsing import date_or_exit, money_or_exit, resolve_account_or_exit
from fundtrack.domain.account import AccountService
from fundtrack.domain.category import CategoryService
from fundtrack.domain.errors import DomainError
from fundtrack.domain.filters import DateRange, TransactionFilter
from fundtrack.domain.transaction import TransactionService
from fundtrack.utils.amount_parser import format_amount


@click.group()
def transaction_group():
    """Manage transactions."""
    pass


@transaction_group.command("add")
@click.option("--account", required=True, help="Account name or ID")
@click.option("--amount", required=True, help="Transaction amount (e.g., 123.45 or -123.45)")
@click.option("--date", "txn_date", default="today", help="Transaction date (defaults to today)")
@click.option("--payee", default="", help="Payee")
@click.option("--category", help="Category name or ID")
@click.option("--notes", help="Notes")
@click.pass_context
def add_transaction(ctx, account, amount, txn_date, payee, category, notes):
    """Record a transaction. Negative amounts are spending.

    Examples:
        fundtrack transaction add --account Checking --amount -42.50 --payee "Grocer" --category Groceries
        fundtrack transaction add --account 1 --amount 2500 --payee Employer --date 2024-06-01
    """
    owner = owner_or_exit(ctx)
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), owner, account)
    category_id = None
    if category is not None:
        category_id = resolve_category_or_exit(ctx, CategoryService(db), owner, category)

    try:
        transaction_id = TransactionService(db).create_transaction(
            owner,
            account_id=account_id,
            amount=money_or_exit(ctx, amount),
            date=date_or_exit(ctx, txn_date),
            payee=payee,
            notes=notes,
            category_id=category_id,
        )
        click.echo(f"Created transaction {transaction_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("list")
@click.option("--start-date", help="Start date (defaults to the first of this month)")
@click.option("--end-date", help="End date (defaults to today)")
@click.option("--account", help="Account name or ID")
@click.option("--category", help="Category name or ID")
@click.pass_context
def list_transactions(ctx, start_date, end_date, account, category):
    """List transactions, newest first."""
    owner = owner_or_exit(ctx)
    db = ctx.obj["db"]
    account_service = AccountService(db)

    dates = DateRange.month_to_date()
    if start_date or end_date:
        dates = DateRange(
            start=date_or_exit(ctx, start_date, "start date"),
            end=date_or_exit(ctx, end_date, "end date"),
        )
    criteria = TransactionFilter(
        dates=dates,
        account_id=resolve_account_or_exit(ctx, account_service, owner, account) if account else None,
        category_id=resolve_category_or_exit(ctx, CategoryService(db), owner, category) if category else None,
    )

    try:
        transactions = TransactionService(db).list_transactions(owner, criteria)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not transactions:
        click.echo("No transactions found.")
        return

    accounts = {acc.id: acc.name for acc in account_service.list_accounts(owner)}
    click.echo(f"\nFound {len(transactions)} transaction(s):")
    click.echo("-" * 100)
    click.echo(f"{'ID':<6} {'Date':<12} {'Amount':>14} {'Account':<20} {'Type':<15} {'Payee':<30}")
    click.echo("-" * 100)
    for txn in transactions:
        click.echo(
            f"{txn.id:<6} {str(txn.date):<12} {format_amount(txn.amount):>14} "
            f"{accounts.get(txn.account_id, 'Unknown'):<20} {txn.type.value:<15} {txn.payee[:30]:<30}"
        )


@transaction_group.command("update")
@click.argument("transaction_id", type=int)
@click.option("--account", help="Account name or ID")
@click.option("--amount", help="Transaction amount (e.g., -123.45)")
@click.option("--date", "txn_date", help="Transaction date")
@click.option("--payee", help="Payee")
@click.option("--category", help="Category name or ID, or empty string to clear")
@click.option("--notes", help="Notes")
@click.pass_context
def update_transaction(ctx, transaction_id, account, amount, txn_date, payee, category, notes) -> None:
    """Update a user-created transaction.

    Transfer and asset rows are changed through their transfer or asset.
    Use --category "" to clear the category.
    """
    owner = owner_or_exit(ctx)
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), owner, account) if account else None
    category_id = None
    clear_category = category == ""
    if category:
        category_id = resolve_category_or_exit(ctx, CategoryService(db), owner, category)

    try:
        TransactionService(db).update_transaction(
            owner,
            transaction_id,
            account_id=account_id,
            amount=money_or_exit(ctx, amount),
            date=date_or_exit(ctx, txn_date),
            payee=payee,
            notes=notes,
            category_id=category_id,
            clear_category=clear_category,
        )
        click.echo(f"Updated transaction {transaction_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("delete")
@click.argument("transaction_id", type=int)
@click.pass_context
def delete_transaction(ctx, transaction_id: int) -> None:
    """Delete a user-created transaction."""
    owner = owner_or_exit(ctx)
    try:
        TransactionService(ctx.obj["db"]).delete_transaction(owner, transaction_id)
        click.echo(f"Deleted transaction {transaction_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@transaction_group.command("bulk-delete")
@click.argument("transaction_ids", nargs=-1, type=int, required=True)
@click.pass_context
def bulk_delete_transactions(ctx, transaction_ids) -> None:
    """Delete several transactions; system generated or foreign IDs are skipped."""
    owner = owner_or_exit(ctx)
    deleted = TransactionService(ctx.obj["db"]).bulk_delete_transactions(owner, transaction_ids)
    skipped = len(set(transaction_ids)) - len(deleted)
    click.echo(f"Deleted {len(deleted)} transaction(s)")
    if skipped:
        click.echo(f"Skipped {skipped} transaction(s) that are not yours or are system generated")


def register_commands(cli):
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
