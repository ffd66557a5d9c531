"""Recurring payment commands."""

import click
from fundtrack.cli.commands.category import resolve_category_or_exit
from fundtrack.cli.error_handling import handle_domain_error, owner_or_exit
from fundtrack.cli.parsing import date_or_exit, money_or_exit, resolve_account_or_exit
from fundtrack.domain.account import AccountService
from fundtrack.domain.category import CategoryService
from fundtrack.domain.entities import Cadence, RecurringType, TransferDraft
from fundtrack.domain.errors import DomainError
from fundtrack.domain.recurring import RecurringPaymentService
from fundtrack.domain.transaction import TransactionService
from fundtrack.domain.transfer import TransferService
from fundtrack.utils.amount_parser import format_amount

CADENCES = [c.value for c in Cadence]
RECURRING_TYPES = [t.value for t in RecurringType]


def _due_label(days_remaining: int) -> str:
    if days_remaining < 0:
        return f"overdue {-days_remaining} day(s)"
    if days_remaining == 0:
        return "due today"
    return f"in {days_remaining} day(s)"


@click.group()
def recurring_group():
    """Manage recurring payment reminders."""
    pass


@recurring_group.command("create")
@click.argument("name")
@click.option("--amount", required=True, help="Amount per occurrence")
@click.option(
    "--type", "payment_type", type=click.Choice(RECURRING_TYPES, case_sensitive=False),
    default="TRANSACTION", help="Record as a transaction or a transfer",
)
@click.option(
    "--cadence", type=click.Choice(CADENCES, case_sensitive=False), default="MONTHLY",
    help="How often the payment repeats",
)
@click.option("--start-date", default="today", help="First due date (defaults to today)")
@click.option("--day", "day_of_month", type=int, help="Day of month (monthly and yearly)")
@click.option("--month", type=int, help="Month (yearly)")
@click.option("--account", help="Paying account name or ID")
@click.option("--to", "to_account", help="Receiving account for transfers")
@click.option("--category", help="Category name or ID")
@click.option("--charge", help="Transfer charge")
@click.option("--notes", help="Notes")
@click.option("--inactive", is_flag=True, help="Create the reminder paused")
@click.pass_context
def create_recurring(
    ctx, name, amount, payment_type, cadence, start_date, day_of_month, month,
    account, to_account, category, charge, notes, inactive,
):
    """Create a recurring payment.

    Examples:
        fundtrack recurring create Rent --amount 1200 --day 1 --account Checking
        fundtrack recurring create "Card payment" --type TRANSFER --amount 300 --day 31 \\
            --account Checking --to Visa
        fundtrack recurring create Insurance --amount 540 --cadence YEARLY --month 3 --day 15 --account Checking
    """
    owner = owner_or_exit(ctx)
    db = ctx.obj["db"]
    account_service = AccountService(db)
    account_id = resolve_account_or_exit(ctx, account_service, owner, account) if account else None
    to_id = resolve_account_or_exit(ctx, account_service, owner, to_account) if to_account else None
    category_id = resolve_category_or_exit(ctx, CategoryService(db), owner, category) if category else None

    try:
        payment_id = RecurringPaymentService(db).create_recurring_payment(
            owner,
            name=name,
            type=RecurringType(payment_type.upper()),
            cadence=Cadence(cadence.upper()),
            amount=money_or_exit(ctx, amount),
            start_date=date_or_exit(ctx, start_date, "start date"),
            account_id=account_id,
            to_account_id=to_id,
            category_id=category_id,
            transfer_charge=money_or_exit(ctx, charge, "charge") or 0,
            notes=notes,
            day_of_month=day_of_month,
            month=month,
            is_active=not inactive,
        )
        click.echo(f"Created recurring payment '{name}' (ID: {payment_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@recurring_group.command("list")
@click.option("--as-of", help="Reference date (defaults to today)")
@click.pass_context
def list_recurring(ctx, as_of: str | None):
    """List recurring payments with their next due date."""
    owner = owner_or_exit(ctx)
    scheduled = RecurringPaymentService(ctx.obj["db"]).list_recurring_payments(
        owner, today=date_or_exit(ctx, as_of, "as-of date")
    )
    if not scheduled:
        click.echo("No recurring payments found.")
        return

    click.echo("\nRecurring payments:")
    click.echo("-" * 90)
    click.echo(f"{'ID':<5} {'Name':<24} {'Type':<12} {'Cadence':<8} {'Amount':>12} {'Next due':<12} Status")
    click.echo("-" * 90)
    for item in sorted(scheduled, key=lambda s: s.next_due_date):
        payment = item.payment
        status = _due_label(item.days_remaining) if payment.is_active else "paused"
        click.echo(
            f"{payment.id:<5} {payment.name[:24]:<24} {payment.type.value:<12} {payment.cadence.value:<8} "
            f"{format_amount(payment.amount):>12} {str(item.next_due_date):<12} {status}"
        )


@recurring_group.command("update")
@click.argument("payment_id", type=int)
@click.option("--name", help="New name")
@click.option("--amount", help="New amount")
@click.option("--type", "payment_type", type=click.Choice(RECURRING_TYPES, case_sensitive=False))
@click.option("--cadence", type=click.Choice(CADENCES, case_sensitive=False))
@click.option("--start-date", help="New start date")
@click.option("--day", "day_of_month", type=int, help="Day of month")
@click.option("--month", type=int, help="Month")
@click.option("--account", help="Paying account name or ID")
@click.option("--to", "to_account", help="Receiving account name or ID")
@click.option("--category", help="Category name or ID")
@click.option("--charge", help="Transfer charge")
@click.option("--notes", help="Notes")
@click.option("--active/--paused", default=None, help="Resume or pause the reminder")
@click.pass_context
def update_recurring(
    ctx, payment_id, name, amount, payment_type, cadence, start_date, day_of_month, month,
    account, to_account, category, charge, notes, active,
) -> None:
    """Edit a recurring payment; only the given options change."""
    owner = owner_or_exit(ctx)
    db = ctx.obj["db"]
    account_service = AccountService(db)

    changes = {}
    if name is not None:
        changes["name"] = name
    if amount is not None:
        changes["amount"] = money_or_exit(ctx, amount)
    if payment_type is not None:
        changes["type"] = RecurringType(payment_type.upper())
    if cadence is not None:
        changes["cadence"] = Cadence(cadence.upper())
    if start_date is not None:
        changes["start_date"] = date_or_exit(ctx, start_date, "start date")
    if day_of_month is not None:
        changes["day_of_month"] = day_of_month
    if month is not None:
        changes["month"] = month
    if account is not None:
        changes["account_id"] = resolve_account_or_exit(ctx, account_service, owner, account)
    if to_account is not None:
        changes["to_account_id"] = resolve_account_or_exit(ctx, account_service, owner, to_account)
    if category is not None:
        changes["category_id"] = resolve_category_or_exit(ctx, CategoryService(db), owner, category)
    if charge is not None:
        changes["transfer_charge"] = money_or_exit(ctx, charge, "charge")
    if notes is not None:
        changes["notes"] = notes
    if active is not None:
        changes["is_active"] = active

    if not changes:
        click.echo("Nothing to update.")
        return

    try:
        RecurringPaymentService(db).update_recurring_payment(owner, payment_id, **changes)
        click.echo(f"Updated recurring payment {payment_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@recurring_group.command("delete")
@click.argument("payment_id", type=int)
@click.pass_context
def delete_recurring(ctx, payment_id: int) -> None:
    """Delete a recurring payment. Recorded payments are kept."""
    owner = owner_or_exit(ctx)
    try:
        RecurringPaymentService(ctx.obj["db"]).delete_recurring_payment(owner, payment_id)
        click.echo(f"Deleted recurring payment {payment_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@recurring_group.command("complete")
@click.argument("payment_id", type=int)
@click.option("--as-of", help="Reference date (defaults to today)")
@click.option("--dry-run", is_flag=True, help="Show what would be recorded without writing")
@click.pass_context
def complete_recurring(ctx, payment_id: int, as_of: str | None, dry_run: bool) -> None:
    """Record the next occurrence and mark it completed.

    Transaction reminders become an outflow from their account; transfer
    reminders become a transfer between their accounts.
    """
    owner = owner_or_exit(ctx)
    db = ctx.obj["db"]
    service = RecurringPaymentService(db)
    today = date_or_exit(ctx, as_of, "as-of date")

    try:
        proposal = service.propose_completion(owner, payment_id, today=today)
    except DomainError as e:
        handle_domain_error(ctx, e)

    draft = proposal.draft
    is_transfer = isinstance(draft, TransferDraft)
    kind = "transfer" if is_transfer else "transaction"
    click.echo(f"Due {proposal.due_date}: {kind} of {format_amount(draft.amount)}")
    if dry_run:
        return

    try:
        if is_transfer:
            record_id = TransferService(db).create_from_draft(owner, draft)
        else:
            record_id = TransactionService(db).create_transaction(
                owner,
                account_id=draft.account_id,
                amount=draft.amount,
                date=draft.date,
                payee=draft.payee,
                notes=draft.notes,
                category_id=draft.category_id,
            )
        service.complete(owner, payment_id, completed_at=proposal.due_date)
        click.echo(f"Recorded {kind} {record_id} and completed recurring payment {payment_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register recurring payment commands with main CLI."""
    cli.add_command(recurring_group, name="recurring")
