"""Asset cost-basis engine.

An asset's numeric fields are always recomputed as sums over its lots. Buys
append positive lots and write an ASSET_BUY debit; sells append negative
lots and allocate cost by ratio of quantity sold, writing an ASSET_RETURN
leg for the principal and an ASSET_SELL leg for any profit.
"""

import logging
from datetime import date, datetime, UTC
from decimal import Decimal
from typing import Iterable, Optional

from fundtrack.database.base import Database
from fundtrack.domain.entities import (
    Asset,
    AssetAggregates,
    AssetHolding,
    AssetLot,
    AssetPrice,
    TransactionType,
)
from fundtrack.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    account_not_found,
    asset_lot_not_found,
    asset_not_found,
    require_owner,
)
from fundtrack.utils.amount_parser import round_half_up

logger = logging.getLogger(__name__)

# Matches the Numeric(18, 6) quantity columns
QUANTITY_STEP = Decimal("0.000001")
MAX_QUANTITY = Decimal(10) ** 12


def checked_quantity(quantity: Decimal | int | str) -> Decimal:
    """Return quantity as a Decimal the quantity columns store exactly.

    Raises:
        ValidationError: If the columns cannot store it exactly
    """
    quantity = Decimal(quantity)
    if not quantity.is_finite() or abs(quantity) >= MAX_QUANTITY:
        raise ValidationError("Quantity is out of range", field="quantity")
    if quantity != quantity.quantize(QUANTITY_STEP):
        raise ValidationError("Quantity allows at most 6 decimal places", field="quantity")
    return quantity


def compute_asset_aggregates(lots: Iterable[AssetLot]) -> AssetAggregates:
    """Sum lots into asset aggregates.

    The average price is sum(price x qty) / quantity rounded half up, or 0
    when nothing is held. It is a display figure and can drift from
    total_paid / quantity after repeated partial sells.
    """
    lots = list(lots)
    quantity = sum((lot.quantity for lot in lots), Decimal(0))
    base_cost = sum((Decimal(lot.asset_price) * lot.quantity for lot in lots), Decimal(0))
    return AssetAggregates(
        quantity=quantity,
        total_paid=sum(lot.total_paid for lot in lots),
        extra_charge=sum(lot.extra_charge for lot in lots),
        asset_price=round_half_up(base_cost / quantity) if quantity > 0 else 0,
    )


def realized_profit_loss(lots: Iterable[AssetLot]) -> int:
    """Booked profit of sell lots: proceeds minus allocated principal and fees."""
    total = 0
    for lot in lots:
        if not lot.is_sell:
            continue
        proceeds = round_half_up(Decimal(lot.sell_price or 0) * abs(lot.quantity))
        total += proceeds - (-lot.total_paid) - lot.extra_charge
    return total


def lot_cost(quantity: Decimal, unit_price: int, extra_charge: int) -> int:
    """Amount paid for a buy lot: quantity x price + extra charge."""
    return round_half_up(Decimal(quantity) * unit_price) + extra_charge


def _now() -> datetime:
    return datetime.now(UTC)


class AssetService:
    """Service for buying, selling and correcting asset holdings."""

    def __init__(self, db: Database):
        """Initialize asset service.

        Args:
            db: Database instance
        """
        self.db = db

    def _require_account(self, owner: str, account_id: int) -> None:
        if self.db.get_account(owner, account_id) is None:
            raise NotFoundError(account_not_found(account_id))

    def get_asset(self, owner: str, asset_id: int) -> Asset:
        """Get an asset, raising NotFoundError if missing or not owned."""
        require_owner(owner)
        asset = self.db.get_asset(owner, asset_id)
        if asset is None:
            raise NotFoundError(asset_not_found(asset_id))
        return asset

    def list_asset_lots(self, owner: str, asset_id: int) -> list[AssetLot]:
        """Lots of an asset, newest first."""
        self.get_asset(owner, asset_id)
        return self.db.list_asset_lots(asset_id)

    def _recompute(self, asset_id: int, **sold_state) -> AssetAggregates:
        aggregates = compute_asset_aggregates(self.db.list_asset_lots(asset_id))
        self.db.update_asset_aggregates(asset_id, aggregates, _now(), **sold_state)
        return aggregates

    def _recompute_or_remove(self, asset_id: int) -> Optional[AssetAggregates]:
        """Recompute after a lot correction; an asset left with nothing is deleted."""
        aggregates = compute_asset_aggregates(self.db.list_asset_lots(asset_id))
        if aggregates.quantity < 0:
            raise ValidationError(
                "Change would leave more units sold than bought", field="quantity"
            )
        if aggregates.quantity == 0:
            self.db.delete_asset(asset_id)
            logger.info("Removed asset %s after its quantity reached zero", asset_id)
            return None
        self.db.update_asset_aggregates(asset_id, aggregates, _now())
        return aggregates

    def buy_asset(
        self,
        owner: str,
        name: str,
        asset_type: str,
        unit: str,
        quantity: Decimal,
        unit_price: int,
        account_id: int,
        date: date,
        extra_charge: int = 0,
    ) -> Asset:
        """Record a purchase, merging into an existing asset of the same name and type.

        Args:
            owner: Caller identity
            name: Asset name
            asset_type: Asset type, also the price feed key
            unit: Unit of quantity (grams, shares, ...)
            quantity: Units bought
            unit_price: Price per unit in milli-units
            account_id: Account paying for the purchase
            date: Purchase date
            extra_charge: Fees on top of the price

        Returns:
            The asset after its aggregates were recomputed

        Raises:
            ValidationError: If quantity, price or charge are out of range
            NotFoundError: If the account is not owned
        """
        require_owner(owner)
        name = (name or "").strip()
        if not name:
            raise ValidationError("Asset name is required", field="name")
        if not asset_type:
            raise ValidationError("Asset type is required", field="asset_type")
        quantity = checked_quantity(quantity)
        if quantity <= 0:
            raise ValidationError("Quantity must be positive", field="quantity")
        if unit_price < 0:
            raise ValidationError("Price cannot be negative", field="unit_price")
        if extra_charge < 0:
            raise ValidationError("Extra charge cannot be negative", field="extra_charge")
        self._require_account(owner, account_id)

        total_paid = lot_cost(quantity, unit_price, extra_charge)
        with self.db.atomic():
            buy_transaction_id = self.db.create_transaction(
                account_id=account_id,
                amount=-total_paid,
                type=TransactionType.ASSET_BUY,
                date=date,
                payee=f"Asset purchase - {name}",
                notes="Purchase including extra charge" if extra_charge else "Asset purchase",
            )
            asset = self.db.find_asset(owner, name, asset_type)
            if asset is None:
                asset_id = self.db.create_asset(owner, name, asset_type, unit, account_id)
            else:
                asset_id = asset.id
            self.db.create_asset_lot(
                asset_id=asset_id,
                quantity=quantity,
                unit=unit,
                asset_price=unit_price,
                extra_charge=extra_charge,
                total_paid=total_paid,
                account_id=account_id,
                date=date,
                buy_transaction_id=buy_transaction_id,
            )
            # A new purchase reopens a fully sold asset
            self._recompute(asset_id, is_sold=False, sold_at=None, sell_amount=None)
        logger.info("Bought %s %s of asset %s for %d", quantity, unit, asset_id, total_paid)
        return self.get_asset(owner, asset_id)

    def sell_asset(
        self,
        owner: str,
        asset_id: int,
        quantity: Decimal,
        sale_amount: int,
        account_id: int,
        date: date,
        extra_charge: int = 0,
        notes: Optional[str] = None,
    ) -> Asset:
        """Sell part or all of an asset.

        Principal is the share of total_paid proportional to the quantity
        sold; profit is what the sale brings in above principal and fees.
        A loss is absorbed: only the actual sale amount is returned as
        principal and no income leg is written. Selling everything keeps the
        asset, flagged as sold.

        Args:
            owner: Caller identity
            asset_id: Asset to sell from
            quantity: Units sold
            sale_amount: Total proceeds in milli-units
            account_id: Account receiving the proceeds
            date: Sale date
            extra_charge: Fees paid on the sale
            notes: Optional notes for the ledger rows

        Returns:
            The asset after its aggregates were recomputed

        Raises:
            NotFoundError: If the asset or account is not owned
            ValidationError: If the asset is sold, or quantity exceeds holdings
        """
        asset = self.get_asset(owner, asset_id)
        if asset.is_sold:
            raise ValidationError("Asset already sold", field="asset_id")
        quantity = checked_quantity(quantity)
        if quantity <= 0:
            raise ValidationError("Quantity must be positive", field="quantity")
        if sale_amount < 0:
            raise ValidationError("Sale amount cannot be negative", field="sale_amount")
        if extra_charge < 0:
            raise ValidationError("Extra charge cannot be negative", field="extra_charge")
        if quantity > asset.quantity:
            raise ValidationError("Cannot sell more than you own", field="quantity")
        self._require_account(owner, account_id)

        ratio = quantity / asset.quantity
        principal = round_half_up(Decimal(asset.total_paid) * ratio)
        profit = sale_amount - principal - extra_charge
        returned = sale_amount if profit < 0 else principal

        with self.db.atomic():
            principal_id = self.db.create_transaction(
                account_id=account_id,
                amount=returned,
                type=TransactionType.ASSET_RETURN,
                date=date,
                payee=f"Asset sale (principal) - {asset.name}",
                notes=notes or "Asset sale principal return",
            )
            profit_id = None
            if profit > 0:
                profit_id = self.db.create_transaction(
                    account_id=account_id,
                    amount=profit,
                    type=TransactionType.ASSET_SELL,
                    date=date,
                    payee=f"Asset sale (profit) - {asset.name}",
                    notes=notes or "Asset sale profit",
                )
            self.db.create_asset_lot(
                asset_id=asset_id,
                quantity=-quantity,
                unit=asset.unit,
                asset_price=asset.asset_price,
                extra_charge=extra_charge,
                total_paid=-principal,
                account_id=account_id,
                date=date,
                sell_price=round_half_up(Decimal(sale_amount) / quantity),
                sell_principal_transaction_id=principal_id,
                sell_profit_transaction_id=profit_id,
            )
            aggregates = compute_asset_aggregates(self.db.list_asset_lots(asset_id))
            fully_sold = aggregates.quantity == 0
            self.db.update_asset_aggregates(
                asset_id,
                aggregates,
                _now(),
                is_sold=fully_sold,
                sold_at=date if fully_sold else None,
                sell_amount=sale_amount if fully_sold else None,
            )
        logger.info(
            "Sold %s of asset %s: principal=%d profit=%d", quantity, asset_id, principal, profit
        )
        return self.get_asset(owner, asset_id)

    def _require_lot(self, owner: str, lot_id: int) -> AssetLot:
        require_owner(owner)
        lot = self.db.get_asset_lot(owner, lot_id)
        if lot is None:
            raise NotFoundError(asset_lot_not_found(lot_id))
        return lot

    def edit_asset_lot(
        self,
        owner: str,
        lot_id: int,
        quantity: Optional[Decimal] = None,
        unit_price: Optional[int] = None,
        extra_charge: Optional[int] = None,
        account_id: Optional[int] = None,
        date: Optional[date] = None,
    ) -> Optional[Asset]:
        """Correct a historical buy lot.

        The lot's total_paid is recomputed and pushed to its ASSET_BUY
        transaction. If the asset's quantity becomes zero the asset row is
        deleted outright (unlike selling to zero).

        Returns:
            The updated asset, or None if it was deleted

        Raises:
            NotFoundError: If the lot or account is not owned
            ValidationError: If the lot is a sell lot, a value is out of
                range, or the change would make the holding negative
        """
        lot = self._require_lot(owner, lot_id)
        if lot.is_sell:
            raise ValidationError("Sell lots cannot be edited; delete the sale instead", field="lot_id")
        new_quantity = lot.quantity if quantity is None else checked_quantity(quantity)
        new_price = lot.asset_price if unit_price is None else unit_price
        new_charge = lot.extra_charge if extra_charge is None else extra_charge
        new_account_id = lot.account_id if account_id is None else account_id
        new_date = date or lot.date
        if new_quantity < 0:
            raise ValidationError("Quantity cannot be negative", field="quantity")
        if new_price < 0:
            raise ValidationError("Price cannot be negative", field="unit_price")
        if new_charge < 0:
            raise ValidationError("Extra charge cannot be negative", field="extra_charge")
        self._require_account(owner, new_account_id)

        total_paid = lot_cost(new_quantity, new_price, new_charge)
        with self.db.atomic():
            self.db.update_asset_lot(
                lot_id=lot_id,
                quantity=new_quantity,
                asset_price=new_price,
                extra_charge=new_charge,
                total_paid=total_paid,
                account_id=new_account_id,
                date=new_date,
            )
            if lot.buy_transaction_id is not None:
                txn = self.db.get_transaction(owner, lot.buy_transaction_id)
                if txn is not None:
                    self.db.update_transaction(
                        transaction_id=txn.id,
                        account_id=new_account_id,
                        amount=-total_paid,
                        date=new_date,
                        payee=txn.payee,
                        notes="Purchase including extra charge" if new_charge else "Asset purchase",
                        category_id=txn.category_id,
                    )
            remaining = self._recompute_or_remove(lot.asset_id)
        logger.info("Edited lot %s of asset %s", lot_id, lot.asset_id)
        return None if remaining is None else self.get_asset(owner, lot.asset_id)

    def delete_asset_lot(self, owner: str, lot_id: int) -> Optional[Asset]:
        """Delete a lot and the ledger rows it produced.

        Returns:
            The updated asset, or None if it was deleted

        Raises:
            NotFoundError: If the lot is not owned
            ValidationError: If removing the lot would make the holding negative
        """
        lot = self._require_lot(owner, lot_id)
        with self.db.atomic():
            self.db.delete_asset_lot(lot_id)
            self.db.delete_transactions(lot.transaction_ids)
            remaining = self._recompute_or_remove(lot.asset_id)
        logger.info("Deleted lot %s of asset %s", lot_id, lot.asset_id)
        return None if remaining is None else self.get_asset(owner, lot.asset_id)

    def update_asset(
        self,
        owner: str,
        asset_id: int,
        name: Optional[str] = None,
        unit: Optional[str] = None,
        account_id: Optional[int] = None,
    ) -> Asset:
        """Edit descriptive fields of an unsold asset.

        Raises:
            NotFoundError: If the asset or account is not owned
            ValidationError: If the asset is sold or the name is empty
            ConflictError: If another asset already has the new name and type
        """
        asset = self.get_asset(owner, asset_id)
        if asset.is_sold:
            raise ValidationError("Cannot edit a sold asset", field="asset_id")
        new_name = asset.name if name is None else name.strip()
        if not new_name:
            raise ValidationError("Asset name is required", field="name")
        other = self.db.find_asset(owner, new_name, asset.asset_type)
        if other is not None and other.id != asset_id:
            raise ConflictError(f"Asset '{new_name}' of type {asset.asset_type} already exists")
        new_account_id = asset.account_id if account_id is None else account_id
        self._require_account(owner, new_account_id)
        self.db.update_asset_details(asset_id, new_name, unit or asset.unit, new_account_id)
        logger.info("Updated asset %s", asset_id)
        return self.get_asset(owner, asset_id)

    def list_holdings(self, owner: str) -> list[AssetHolding]:
        """Assets joined with the latest feed price for their type.

        Current value and unrealized profit are None when no price is known.
        """
        require_owner(owner)
        prices = self.db.latest_asset_prices()
        holdings = []
        for asset in self.db.list_assets(owner):
            price = prices.get(asset.asset_type)
            live_unit_price = price.price if price is not None else None
            current_value = None
            unrealized = None
            if live_unit_price:
                current_value = round_half_up(Decimal(live_unit_price) * asset.quantity)
                unrealized = current_value - asset.total_paid
            holdings.append(
                AssetHolding(
                    asset=asset,
                    live_unit_price=live_unit_price,
                    current_value=current_value,
                    unrealized_profit_loss=unrealized,
                    realized_profit_loss=realized_profit_loss(self.db.list_asset_lots(asset.id)),
                )
            )
        return holdings

    def record_asset_price(
        self, asset_type: str, unit: str, price: int, fetched_at: Optional[datetime] = None
    ) -> AssetPrice:
        """Store a price feed observation; the latest one per type wins."""
        if price < 0:
            raise ValidationError("Price cannot be negative", field="price")
        fetched_at = fetched_at or _now()
        price_id = self.db.record_asset_price(asset_type, unit, price, fetched_at)
        logger.debug("Recorded price %d for %s", price, asset_type)
        return AssetPrice(id=price_id, asset_type=asset_type, unit=unit, price=price, fetched_at=fetched_at)
