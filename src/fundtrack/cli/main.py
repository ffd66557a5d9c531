"""Main CLI entry point."""

import logging

import click
from fundtrack.database.factories import create_sqlite_database
from fundtrack.utils.logging import setup_logging

# Import and register all commands at module level
from fundtrack.cli.commands import (
    account,
    asset,
    category,
    credit_card,
    recurring,
    report,
    transaction,
    transfer,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides FUNDTRACK_DB_PATH environment variable)",
    envvar="FUNDTRACK_DB_PATH",
)
@click.option(
    "--user",
    "owner",
    help="Identity whose data is read and written (or set FUNDTRACK_USER)",
    envvar="FUNDTRACK_USER",
)
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr")
@click.pass_context
def cli(ctx, db_path: str | None, owner: str | None, verbose: bool):
    """Fundtrack - personal finance ledger.

    Track accounts, transfers, asset holdings, credit card statements and
    recurring payments. Balances are always derived from the transaction log.
    """
    ctx.ensure_object(dict)
    setup_logging(logging.DEBUG if verbose else logging.WARNING)
    ctx.obj["owner"] = owner

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None and "db" not in ctx.obj:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db


# Register all commands
account.register_commands(cli)
category.register_commands(cli)
transaction.register_commands(cli)
transfer.register_commands(cli)
asset.register_commands(cli)
credit_card.register_commands(cli)
recurring.register_commands(cli)
report.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
