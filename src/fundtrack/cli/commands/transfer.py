"""Transfer commands."""

import click
from fundtrack.cli.error_handling import handle_domain_error, owner_or_exit
from fundtrack.cli.parsing import date_or_exit, money_or_exit, resolve_account_or_exit
from fundtrack.domain.account import AccountService
from fundtrack.domain.errors import DomainError
from fundtrack.domain.filters import DateRange, TransferFilter
from fundtrack.domain.transfer import TransferService
from fundtrack.utils.amount_parser import format_amount


def _side(names: dict[int, str], account_id: int | None) -> str:
    if account_id is None:
        return "(external)"
    return names.get(account_id, "Unknown")


@click.group()
def transfer_group():
    """Move money between accounts."""
    pass


@transfer_group.command("create")
@click.argument("amount")
@click.option("--from", "from_account", help="Sending account name or ID")
@click.option("--to", "to_account", help="Receiving account name or ID")
@click.option("--charge", help="Transfer charge paid by the sender")
@click.option("--date", "transfer_date", default="today", help="Transfer date (defaults to today)")
@click.option("--notes", help="Notes")
@click.option("--statement", "statement_id", type=int, help="Credit card statement this transfer pays")
@click.pass_context
def create_transfer(ctx, amount, from_account, to_account, charge, transfer_date, notes, statement_id):
    """Create a transfer.

    Either side may be omitted for money entering or leaving the tracked
    accounts, but not both.

    Examples:
        fundtrack transfer create 250 --from Checking --to Savings
        fundtrack transfer create 1200 --from Checking --to Visa --statement 3
        fundtrack transfer create 80 --to Checking --notes "Refund"
    """
    owner = owner_or_exit(ctx)
    db = ctx.obj["db"]
    account_service = AccountService(db)
    from_id = resolve_account_or_exit(ctx, account_service, owner, from_account) if from_account else None
    to_id = resolve_account_or_exit(ctx, account_service, owner, to_account) if to_account else None

    try:
        transfer_id = TransferService(db).create_transfer(
            owner,
            amount=money_or_exit(ctx, amount),
            date=date_or_exit(ctx, transfer_date),
            from_account_id=from_id,
            to_account_id=to_id,
            transfer_charge=money_or_exit(ctx, charge, "charge") or 0,
            notes=notes,
            credit_card_statement_id=statement_id,
        )
        click.echo(f"Created transfer {transfer_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@transfer_group.command("list")
@click.option("--start-date", help="Start date (defaults to the first of this month)")
@click.option("--end-date", help="End date (defaults to today)")
@click.option("--account", help="Only transfers touching this account")
@click.pass_context
def list_transfers(ctx, start_date, end_date, account):
    """List transfers, newest first."""
    owner = owner_or_exit(ctx)
    db = ctx.obj["db"]
    account_service = AccountService(db)

    dates = DateRange.month_to_date()
    if start_date or end_date:
        dates = DateRange(
            start=date_or_exit(ctx, start_date, "start date"),
            end=date_or_exit(ctx, end_date, "end date"),
        )
    account_id = resolve_account_or_exit(ctx, account_service, owner, account) if account else None

    try:
        transfers = TransferService(db).list_transfers(
            owner, TransferFilter(dates=dates, account_id=account_id)
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not transfers:
        click.echo("No transfers found.")
        return

    names = {acc.id: acc.name for acc in account_service.list_accounts(owner)}
    click.echo(f"\nFound {len(transfers)} transfer(s):")
    click.echo("-" * 90)
    click.echo(f"{'ID':<6} {'Date':<12} {'Amount':>14} {'Charge':>10} {'From':<20} {'To':<20}")
    click.echo("-" * 90)
    for transfer in transfers:
        click.echo(
            f"{transfer.id:<6} {str(transfer.date):<12} {format_amount(transfer.amount):>14} "
            f"{format_amount(transfer.transfer_charge):>10} "
            f"{_side(names, transfer.from_account_id):<20} {_side(names, transfer.to_account_id):<20}"
        )


@transfer_group.command("show")
@click.argument("transfer_id", type=int)
@click.pass_context
def show_transfer(ctx, transfer_id: int) -> None:
    """Show a transfer and the ledger rows it generated."""
    owner = owner_or_exit(ctx)
    db = ctx.obj["db"]
    service = TransferService(db)

    try:
        transfer = service.require_transfer(owner, transfer_id)
        legs = service.list_transfer_transactions(owner, transfer_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    names = {acc.id: acc.name for acc in AccountService(db).list_accounts(owner)}
    click.echo(f"Transfer {transfer.id} on {transfer.date}")
    click.echo(f"  Amount:  {format_amount(transfer.amount)}")
    click.echo(f"  Charge:  {format_amount(transfer.transfer_charge)}")
    click.echo(f"  From:    {_side(names, transfer.from_account_id)}")
    click.echo(f"  To:      {_side(names, transfer.to_account_id)}")
    if transfer.credit_card_statement_id is not None:
        click.echo(f"  Pays statement {transfer.credit_card_statement_id}")
    if transfer.notes:
        click.echo(f"  Notes:   {transfer.notes}")
    click.echo("  Ledger rows:")
    for leg in legs:
        click.echo(
            f"    {leg.id:<6} {names.get(leg.account_id, 'Unknown'):<20} "
            f"{format_amount(leg.amount):>14} {leg.type.value}"
        )


@transfer_group.command("update")
@click.argument("transfer_id", type=int)
@click.option("--amount", help="New amount")
@click.option("--from", "from_account", help="Sending account name or ID")
@click.option("--to", "to_account", help="Receiving account name or ID")
@click.option("--clear-from", is_flag=True, help="Make the transfer external on the sending side")
@click.option("--clear-to", is_flag=True, help="Make the transfer external on the receiving side")
@click.option("--charge", help="New transfer charge")
@click.option("--date", "transfer_date", help="New date")
@click.option("--notes", help="New notes")
@click.option("--statement", "statement_id", type=int, help="Link to a credit card statement")
@click.option("--clear-statement", is_flag=True, help="Unlink the credit card statement")
@click.pass_context
def update_transfer(
    ctx, transfer_id, amount, from_account, to_account, clear_from, clear_to,
    charge, transfer_date, notes, statement_id, clear_statement,
) -> None:
    """Edit a transfer; its ledger rows follow."""
    owner = owner_or_exit(ctx)
    db = ctx.obj["db"]
    account_service = AccountService(db)
    from_id = resolve_account_or_exit(ctx, account_service, owner, from_account) if from_account else None
    to_id = resolve_account_or_exit(ctx, account_service, owner, to_account) if to_account else None

    try:
        TransferService(db).update_transfer(
            owner,
            transfer_id,
            amount=money_or_exit(ctx, amount),
            date=date_or_exit(ctx, transfer_date),
            from_account_id=from_id,
            to_account_id=to_id,
            transfer_charge=money_or_exit(ctx, charge, "charge"),
            notes=notes,
            credit_card_statement_id=statement_id,
            clear_from_account=clear_from,
            clear_to_account=clear_to,
            clear_statement=clear_statement,
        )
        click.echo(f"Updated transfer {transfer_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@transfer_group.command("delete")
@click.argument("transfer_id", type=int)
@click.pass_context
def delete_transfer(ctx, transfer_id: int) -> None:
    """Delete a transfer and its ledger rows."""
    owner = owner_or_exit(ctx)
    try:
        TransferService(ctx.obj["db"]).delete_transfer(owner, transfer_id)
        click.echo(f"Deleted transfer {transfer_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@transfer_group.command("bulk-delete")
@click.argument("transfer_ids", nargs=-1, type=int, required=True)
@click.pass_context
def bulk_delete_transfers(ctx, transfer_ids) -> None:
    """Delete several transfers by ID; IDs you do not own are skipped."""
    owner = owner_or_exit(ctx)
    try:
        deleted = TransferService(ctx.obj["db"]).bulk_delete_transfers(owner, transfer_ids)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted {len(deleted)} transfer(s)")


def register_commands(cli):
    """Register transfer commands with main CLI."""
    cli.add_command(transfer_group, name="transfer")
