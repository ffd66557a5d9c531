"""Asset holding commands."""

import click
from fundtrack.cli.error_handling import handle_domain_error, owner_or_exit
from fundtrack.cli.parsing import (
    date_or_exit,
    decimal_or_exit,
    money_or_exit,
    resolve_account_or_exit,
)
from fundtrack.domain.account import AccountService
from fundtrack.domain.asset import AssetService
from fundtrack.domain.errors import DomainError
from fundtrack.utils.amount_parser import format_amount


@click.group()
def asset_group():
    """Track asset holdings and their cost basis."""
    pass


@asset_group.command("buy")
@click.argument("name")
@click.argument("quantity")
@click.argument("unit_price")
@click.option("--account", required=True, help="Paying account name or ID")
@click.option("--type", "asset_type", required=True, help="Asset type used for price lookups (e.g., GOLD)")
@click.option("--unit", default="unit", help="Unit of quantity (e.g., gram)")
@click.option("--charge", help="Extra charge such as a broker fee")
@click.option("--date", "buy_date", default="today", help="Purchase date (defaults to today)")
@click.pass_context
def buy_asset(ctx, name, quantity, unit_price, account, asset_type, unit, charge, buy_date):
    """Buy QUANTITY of asset NAME at UNIT_PRICE.

    Buying a name you already hold adds a lot to the existing asset.

    Examples:
        fundtrack asset buy "Gold" 10 60 --account Checking --type GOLD --unit gram
    """
    owner = owner_or_exit(ctx)
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), owner, account)

    try:
        asset = AssetService(db).buy_asset(
            owner,
            name=name,
            asset_type=asset_type,
            unit=unit,
            quantity=decimal_or_exit(ctx, quantity),
            unit_price=money_or_exit(ctx, unit_price, "unit price"),
            account_id=account_id,
            date=date_or_exit(ctx, buy_date),
            extra_charge=money_or_exit(ctx, charge, "charge") or 0,
        )
        click.echo(f"Bought {quantity} {asset.unit} of '{asset.name}' (asset ID: {asset.id})")
    except DomainError as e:
        handle_domain_error(ctx, e)


@asset_group.command("sell")
@click.argument("asset_id", type=int)
@click.argument("quantity")
@click.argument("sale_amount")
@click.option("--account", required=True, help="Receiving account name or ID")
@click.option("--charge", help="Extra charge deducted from the proceeds")
@click.option("--date", "sell_date", default="today", help="Sale date (defaults to today)")
@click.option("--notes", help="Notes")
@click.pass_context
def sell_asset(ctx, asset_id, quantity, sale_amount, account, charge, sell_date, notes):
    """Sell QUANTITY of an asset for a total of SALE_AMOUNT."""
    owner = owner_or_exit(ctx)
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), owner, account)

    try:
        asset = AssetService(db).sell_asset(
            owner,
            asset_id,
            quantity=decimal_or_exit(ctx, quantity),
            sale_amount=money_or_exit(ctx, sale_amount, "sale amount"),
            account_id=account_id,
            date=date_or_exit(ctx, sell_date),
            extra_charge=money_or_exit(ctx, charge, "charge") or 0,
            notes=notes,
        )
        if asset.is_sold:
            click.echo(f"Sold all of '{asset.name}'")
        else:
            click.echo(f"Sold {quantity} {asset.unit} of '{asset.name}', {asset.quantity} remaining")
    except DomainError as e:
        handle_domain_error(ctx, e)


@asset_group.command("list")
@click.pass_context
def list_assets(ctx):
    """List holdings valued at the latest known price."""
    owner = owner_or_exit(ctx)
    holdings = AssetService(ctx.obj["db"]).list_holdings(owner)
    if not holdings:
        click.echo("No assets found.")
        return

    click.echo("\nAssets:")
    click.echo("-" * 100)
    click.echo(
        f"{'ID':<5} {'Name':<20} {'Quantity':>12} {'Avg price':>12} {'Paid':>14} "
        f"{'Value':>14} {'Unrealized':>12}"
    )
    click.echo("-" * 100)
    for holding in holdings:
        asset = holding.asset
        status = " (sold)" if asset.is_sold else ""
        click.echo(
            f"{asset.id:<5} {asset.name[:20]:<20} {str(asset.quantity):>12} "
            f"{format_amount(asset.asset_price):>12} {format_amount(asset.total_paid):>14} "
            f"{format_amount(holding.current_value):>14} "
            f"{format_amount(holding.unrealized_profit_loss):>12}{status}"
        )


@asset_group.command("show")
@click.argument("asset_id", type=int)
@click.pass_context
def show_asset(ctx, asset_id: int) -> None:
    """Show an asset with its lots."""
    owner = owner_or_exit(ctx)
    service = AssetService(ctx.obj["db"])
    try:
        asset = service.get_asset(owner, asset_id)
        lots = service.list_asset_lots(owner, asset_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"{asset.name} ({asset.asset_type}), ID {asset.id}")
    click.echo(f"  Quantity:      {asset.quantity} {asset.unit}")
    click.echo(f"  Average price: {format_amount(asset.asset_price)}")
    click.echo(f"  Total paid:    {format_amount(asset.total_paid)}")
    click.echo(f"  Extra charges: {format_amount(asset.extra_charge)}")
    if asset.is_sold:
        click.echo(f"  Sold on {asset.sold_at} for {format_amount(asset.sell_amount)}")
    click.echo("\n  Lots:")
    for lot in lots:
        kind = "SELL" if lot.is_sell else "BUY"
        click.echo(
            f"    {lot.id:<5} {str(lot.date):<12} {kind:<5} {str(lot.quantity):>12} "
            f"{format_amount(lot.asset_price):>12} {format_amount(lot.total_paid):>14}"
        )


@asset_group.command("update")
@click.argument("asset_id", type=int)
@click.option("--name", help="New asset name")
@click.option("--unit", help="New unit")
@click.option("--account", help="New default account name or ID")
@click.pass_context
def update_asset(ctx, asset_id, name, unit, account) -> None:
    """Edit an asset's name, unit or account."""
    owner = owner_or_exit(ctx)
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), owner, account) if account else None
    try:
        AssetService(db).update_asset(owner, asset_id, name=name, unit=unit, account_id=account_id)
        click.echo(f"Updated asset {asset_id}")
    except DomainError as e:
        handle_domain_error(ctx, e)


@asset_group.command("edit-lot")
@click.argument("lot_id", type=int)
@click.option("--quantity", help="New quantity")
@click.option("--unit-price", help="New unit price")
@click.option("--charge", help="New extra charge")
@click.option("--account", help="New paying account name or ID")
@click.option("--date", "lot_date", help="New purchase date")
@click.pass_context
def edit_lot(ctx, lot_id, quantity, unit_price, charge, account, lot_date) -> None:
    """Correct a buy lot; its purchase transaction follows.

    Setting the quantity to 0 removes the lot, and the asset too when
    nothing else is held.
    """
    owner = owner_or_exit(ctx)
    db = ctx.obj["db"]
    account_id = resolve_account_or_exit(ctx, AccountService(db), owner, account) if account else None
    try:
        asset = AssetService(db).edit_asset_lot(
            owner,
            lot_id,
            quantity=decimal_or_exit(ctx, quantity),
            unit_price=money_or_exit(ctx, unit_price, "unit price"),
            extra_charge=money_or_exit(ctx, charge, "charge"),
            account_id=account_id,
            date=date_or_exit(ctx, lot_date),
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    if asset is None:
        click.echo(f"Updated lot {lot_id}; asset removed")
    else:
        click.echo(f"Updated lot {lot_id}")


@asset_group.command("delete-lot")
@click.argument("lot_id", type=int)
@click.pass_context
def delete_lot(ctx, lot_id: int) -> None:
    """Delete a lot and the transactions it generated."""
    owner = owner_or_exit(ctx)
    try:
        asset = AssetService(ctx.obj["db"]).delete_asset_lot(owner, lot_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if asset is None:
        click.echo(f"Deleted lot {lot_id}; asset removed")
    else:
        click.echo(f"Deleted lot {lot_id}")


@asset_group.command("price")
@click.argument("asset_type")
@click.argument("price")
@click.option("--unit", default="unit", help="Unit the price is quoted in")
@click.pass_context
def record_price(ctx, asset_type, price, unit) -> None:
    """Record a feed price for an asset type."""
    owner_or_exit(ctx)
    try:
        AssetService(ctx.obj["db"]).record_asset_price(
            asset_type, unit, money_or_exit(ctx, price, "price")
        )
        click.echo(f"Recorded price {price} per {unit} for {asset_type}")
    except DomainError as e:
        handle_domain_error(ctx, e)


def register_commands(cli):
    """Register asset commands with main CLI."""
    cli.add_command(asset_group, name="asset")
