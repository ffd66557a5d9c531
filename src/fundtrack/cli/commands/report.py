"""Balance, net worth and period summary reports."""

import click
from fundtrack.cli.error_handling import handle_domain_error, owner_or_exit
from fundtrack.cli.parsing import date_or_exit, resolve_account_or_exit
from fundtrack.domain.account import AccountService
from fundtrack.domain.balance import BalanceService
from fundtrack.domain.errors import DomainError
from fundtrack.domain.summary import SummaryService
from fundtrack.utils.amount_parser import format_amount


@click.command("balance")
@click.option("--as-of", help="Balance date (defaults to today)")
@click.option("--account", help="Restrict to one account (name or ID)")
@click.option("--exclude-hidden", is_flag=True, help="Leave hidden accounts out of the total")
@click.pass_context
def balance(ctx, as_of: str | None, account: str | None, exclude_hidden: bool) -> None:
    """Show the balance derived from the transaction log.

    Examples:
        fundtrack balance
        fundtrack balance --account Checking --as-of 2024-06-30
    """
    owner = owner_or_exit(ctx)
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), owner, account) if account else None
    as_of_date = date_or_exit(ctx, as_of, "as-of date")

    try:
        total = BalanceService(db).compute_balance(
            owner, as_of=as_of_date, account_id=account_id, include_hidden=not exclude_hidden
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    label = f"Balance of {account}" if account else "Total balance"
    suffix = f" as of {as_of_date}" if as_of_date else ""
    click.echo(f"{label}{suffix}: {format_amount(total)}")


@click.command("networth")
@click.option("--start-date", help="First month of the series")
@click.option("--end-date", help="Report date (defaults to today)")
@click.pass_context
def networth(ctx, start_date: str | None, end_date: str | None) -> None:
    """Show assets, liabilities and net worth, with a monthly series.

    Examples:
        fundtrack networth
        fundtrack networth --start-date 2024-01-01 --end-date 2024-06-30
    """
    owner = owner_or_exit(ctx)
    try:
        report = BalanceService(ctx.obj["db"]).net_worth(
            owner,
            end_date=date_or_exit(ctx, end_date, "end date"),
            start_date=date_or_exit(ctx, start_date, "start date"),
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nNet worth as of {report.end_date}")
    click.echo("=" * 40)
    click.echo(f"{'Assets':<20} {format_amount(report.assets):>19}")
    click.echo(f"{'Liabilities':<20} {format_amount(report.liabilities):>19}")
    click.echo("-" * 40)
    click.echo(f"{'Net worth':<20} {format_amount(report.net_worth):>19}")

    if len(report.series) > 1:
        click.echo("\nHistory:")
        for point in report.series:
            click.echo(f"  {str(point.date):<12} {format_amount(point.balance):>19}")


def _change(value) -> str:
    return f"({value:+.2f}%)"


@click.command("summary")
@click.option("--start-date", help="First day (defaults to start of this month)")
@click.option("--end-date", help="Last day (defaults to today)")
@click.option("--account", help="Restrict to one account (name or ID)")
@click.option("--daily", is_flag=True, help="List income and expenses for each active day")
@click.pass_context
def summary(ctx, start_date: str | None, end_date: str | None, account: str | None, daily: bool) -> None:
    """Show income, expenses and spending by category for a period.

    Changes compare against the previous period of the same length.

    Examples:
        fundtrack summary
        fundtrack summary --start-date 2024-06-01 --end-date 2024-06-30 --daily
    """
    owner = owner_or_exit(ctx)
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), owner, account) if account else None
    try:
        report = SummaryService(db).period_summary(
            owner,
            start_date=date_or_exit(ctx, start_date, "start date"),
            end_date=date_or_exit(ctx, end_date, "end date"),
            account_id=account_id,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nSummary {report.start_date} to {report.end_date}")
    click.echo("=" * 50)
    click.echo(f"{'Income':<14} {format_amount(report.income):>18} {_change(report.income_change):>16}")
    click.echo(f"{'Expenses':<14} {format_amount(report.expenses):>18} {_change(report.expense_change):>16}")
    click.echo(f"{'Remaining':<14} {format_amount(report.remaining):>18} {_change(report.remaining_change):>16}")

    if report.categories:
        click.echo("\nSpending by category:")
        for item in report.categories:
            click.echo(f"  {item.name:<30} {format_amount(item.amount):>16}")

    if daily:
        active = [day for day in report.days if day.income or day.expenses]
        if active:
            click.echo("\nDaily activity:")
            for day in active:
                click.echo(
                    f"  {str(day.date):<12} {format_amount(day.income):>16} {format_amount(day.expenses):>16}"
                )


@click.command("payees")
@click.option("--start-date", help="First day (defaults to start of this month)")
@click.option("--end-date", help="Last day (defaults to today)")
@click.option("--account", help="Restrict to one account (name or ID)")
@click.pass_context
def payees(ctx, start_date: str | None, end_date: str | None, account: str | None) -> None:
    """Show the net amount per payee, with the same window in earlier months.

    Examples:
        fundtrack payees --start-date 2024-06-01 --end-date 2024-06-30
    """
    owner = owner_or_exit(ctx)
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), owner, account) if account else None
    try:
        rows = SummaryService(db).payee_spending(
            owner,
            start_date=date_or_exit(ctx, start_date, "start date"),
            end_date=date_or_exit(ctx, end_date, "end date"),
            account_id=account_id,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not rows:
        click.echo("No payee activity in this period.")
        return

    click.echo(f"\n{'Payee':<30} {'Amount':>16}  Earlier months")
    click.echo("-" * 70)
    for row in rows:
        history = " ".join(format_amount(amount) for amount in row.previous_amounts)
        click.echo(f"{(row.payee or '(no payee)'):<30} {format_amount(row.amount):>16}  {history}")


def register_commands(cli):
    """Register report commands with main CLI."""
    cli.add_command(balance)
    cli.add_command(networth)
    cli.add_command(summary)
    cli.add_command(payees)
