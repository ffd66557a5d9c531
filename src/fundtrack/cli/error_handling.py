"""CLI error handling helpers."""

import click

from fundtrack.domain.errors import DomainError, ValidationError, require_owner


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    if isinstance(error, ValidationError) and error.field:
        click.echo(f"Error: {error} (field: {error.field})", err=True)
    else:
        click.echo(f"Error: {error}", err=True)
    ctx.exit(1)


def owner_or_exit(ctx: click.Context) -> str:
    """Return the caller identity, or exit when none was given.

    Every command calls this before touching the database.
    """
    try:
        return require_owner(ctx.obj.get("owner"))
    except DomainError as e:
        handle_domain_error(ctx, e)
