"""Category management commands."""

import click
from fundtrack.cli.error_handling import handle_domain_error, owner_or_exit
from fundtrack.domain.category import CategoryService
from fundtrack.domain.errors import DomainError, NotFoundError


def resolve_category_or_exit(ctx, service: CategoryService, owner: str, category: str) -> int:
    """Resolve a category name or ID, or exit with a CLI error."""
    try:
        if category.isdigit():
            return service.require_category(owner, int(category)).id
        found = service.get_category_by_name(owner, category)
        if found is None:
            raise NotFoundError(f"Category '{category}' not found")
        return found.id
    except DomainError as e:
        handle_domain_error(ctx, e)


@click.group()
def category_group():
    """Manage categories."""
    pass


@category_group.command("create")
@click.argument("name")
@click.pass_context
def create_category(ctx, name: str):
    """Create a new category.

    Examples:
        fundtrack category create "Groceries"
    """
    owner = owner_or_exit(ctx)
    try:
        category_id = CategoryService(ctx.obj["db"]).create_category(owner, name)
        click.echo(f"Created category '{name}' (ID: {category_id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@category_group.command("list")
@click.pass_context
def list_categories(ctx):
    """List all categories."""
    owner = owner_or_exit(ctx)
    categories = CategoryService(ctx.obj["db"]).list_categories(owner)
    if not categories:
        click.echo("No categories found.")
        return

    click.echo("\nCategories:")
    click.echo("-" * 40)
    for cat in categories:
        click.echo(f"ID: {cat.id:3d} | {cat.name}")


@category_group.command("rename")
@click.argument("category")
@click.argument("new_name")
@click.pass_context
def rename_category(ctx, category: str, new_name: str):
    """Rename a category. CATEGORY can be a name or ID."""
    owner = owner_or_exit(ctx)
    service = CategoryService(ctx.obj["db"])
    category_id = resolve_category_or_exit(ctx, service, owner, category)
    try:
        service.rename_category(owner, category_id, new_name)
        click.echo(f"Renamed category to '{new_name}'")
    except DomainError as e:
        handle_domain_error(ctx, e)


@category_group.command("delete")
@click.argument("category")
@click.pass_context
def delete_category(ctx, category: str):
    """Delete a category; its transactions become uncategorized."""
    owner = owner_or_exit(ctx)
    service = CategoryService(ctx.obj["db"])
    category_id = resolve_category_or_exit(ctx, service, owner, category)
    service.delete_category(owner, category_id)
    click.echo(f"Deleted category {category_id}")


def register_commands(cli):
    """Register category commands with main CLI."""
    cli.add_command(category_group, name="category")
