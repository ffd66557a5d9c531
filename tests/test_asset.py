"""Tests for the asset cost-basis engine."""

import pytest
from datetime import date, datetime, UTC
from decimal import Decimal

from fundtrack.domain.asset import compute_asset_aggregates, lot_cost, realized_profit_loss
from fundtrack.domain.entities import AssetLot, TransactionType
from fundtrack.domain.errors import ConflictError, NotFoundError, ValidationError
from fundtrack.domain.filters import DateRange, TransactionFilter


def buy_gold(asset_service, owner, account_id, quantity, price, day=1, charge=0):
    return asset_service.buy_asset(
        owner,
        name="Gold",
        asset_type="GOLD",
        unit="gram",
        quantity=Decimal(quantity),
        unit_price=price,
        account_id=account_id,
        date=date(2024, 3, day),
        extra_charge=charge,
    )


@pytest.fixture
def gold(asset_service, checking, owner):
    """Two lots: 100 @ 10.00 and 50 @ 12.00."""
    buy_gold(asset_service, owner, checking.id, 100, 10_000, day=1)
    return buy_gold(asset_service, owner, checking.id, 50, 12_000, day=2)


def ledger(transaction_service, owner, account_id):
    return transaction_service.list_transactions(
        owner, TransactionFilter(dates=DateRange(), account_id=account_id)
    )


class TestAggregates:
    """Tests for lot aggregation helpers."""

    def test_lot_cost(self):
        assert lot_cost(Decimal("2.5"), 10_000, 300) == 25_300

    def test_empty_lots(self):
        aggregates = compute_asset_aggregates([])
        assert aggregates.quantity == 0
        assert aggregates.total_paid == 0
        assert aggregates.asset_price == 0

    def test_realized_profit(self):
        sell = AssetLot(
            id=1, asset_id=1, quantity=Decimal(-10), unit="g", asset_price=10_000, extra_charge=500,
            total_paid=-100_000, account_id=1, date=date(2024, 3, 1), sell_price=12_000,
        )
        assert realized_profit_loss([sell]) == 19_500


class TestBuy:
    """Tests for buying assets."""

    def test_buy_merges_lots(self, gold):
        assert gold.quantity == Decimal(150)
        assert gold.total_paid == 1_600_000
        assert gold.asset_price == 10_667
        assert gold.is_sold is False

    def test_buy_writes_debit(self, asset_service, transaction_service, checking, owner):
        buy_gold(asset_service, owner, checking.id, 10, 60_000, charge=2_000)

        buys = [t for t in ledger(transaction_service, owner, checking.id) if t.type == TransactionType.ASSET_BUY]
        assert len(buys) == 1
        assert buys[0].amount == -602_000
        assert buys[0].payee == "Asset purchase - Gold"

    def test_buy_rejects_non_positive_quantity(self, asset_service, checking, owner):
        with pytest.raises(ValidationError):
            buy_gold(asset_service, owner, checking.id, 0, 10_000)

    def test_buy_from_foreign_account(self, asset_service, checking, other_owner):
        with pytest.raises(NotFoundError):
            buy_gold(asset_service, other_owner, checking.id, 1, 10_000)

    def test_aggregates_equal_lot_sums(self, asset_service, gold, owner):
        lots = asset_service.list_asset_lots(owner, gold.id)
        assert sum(lot.quantity for lot in lots) == gold.quantity
        assert sum(lot.total_paid for lot in lots) == gold.total_paid
        assert sum(lot.extra_charge for lot in lots) == gold.extra_charge


class TestSell:
    """Tests for selling assets."""

    def test_partial_sell_with_profit(self, asset_service, transaction_service, gold, checking, owner):
        asset = asset_service.sell_asset(
            owner, gold.id, Decimal(75), 900_000, checking.id, date(2024, 4, 1)
        )

        assert asset.quantity == Decimal(75)
        assert asset.total_paid == 800_000
        assert asset.is_sold is False

        legs = {
            t.type: t.amount
            for t in ledger(transaction_service, owner, checking.id)
            if t.date == date(2024, 4, 1)
        }
        assert legs == {TransactionType.ASSET_RETURN: 800_000, TransactionType.ASSET_SELL: 100_000}

    def test_sell_at_loss_writes_only_return(self, asset_service, transaction_service, gold, checking, owner):
        asset = asset_service.sell_asset(
            owner, gold.id, Decimal(75), 700_000, checking.id, date(2024, 4, 1)
        )

        legs = [t for t in ledger(transaction_service, owner, checking.id) if t.date == date(2024, 4, 1)]
        assert [(t.type, t.amount) for t in legs] == [(TransactionType.ASSET_RETURN, 700_000)]
        assert asset.total_paid == 800_000

    def test_sell_everything_keeps_sold_asset(self, asset_service, gold, checking, owner):
        asset = asset_service.sell_asset(
            owner, gold.id, Decimal(150), 1_800_000, checking.id, date(2024, 4, 1)
        )

        assert asset.is_sold is True
        assert asset.quantity == 0
        assert asset.sold_at == date(2024, 4, 1)
        assert asset.sell_amount == 1_800_000
        assert asset.total_paid == 0
        assert asset_service.get_asset(owner, gold.id).id == gold.id

    def test_sell_sold_asset_rejected(self, asset_service, gold, checking, owner):
        asset_service.sell_asset(owner, gold.id, Decimal(150), 1_800_000, checking.id, date(2024, 4, 1))
        with pytest.raises(ValidationError, match="Asset already sold"):
            asset_service.sell_asset(owner, gold.id, Decimal(1), 10_000, checking.id, date(2024, 4, 2))

    def test_oversell_rejected(self, asset_service, gold, checking, owner):
        with pytest.raises(ValidationError, match="Cannot sell more than you own"):
            asset_service.sell_asset(owner, gold.id, Decimal(151), 2_000_000, checking.id, date(2024, 4, 1))

    def test_buy_reopens_sold_asset(self, asset_service, gold, checking, owner):
        asset_service.sell_asset(owner, gold.id, Decimal(150), 1_800_000, checking.id, date(2024, 4, 1))
        asset = buy_gold(asset_service, owner, checking.id, 5, 11_000, day=20)

        assert asset.id == gold.id
        assert asset.is_sold is False
        assert asset.quantity == Decimal(5)

    def test_sold_asset_cannot_be_edited(self, asset_service, gold, checking, owner):
        asset_service.sell_asset(owner, gold.id, Decimal(150), 1_800_000, checking.id, date(2024, 4, 1))
        with pytest.raises(ValidationError, match="Cannot edit a sold asset"):
            asset_service.update_asset(owner, gold.id, name="Old gold")


class TestLotCorrections:
    """Tests for editing and deleting lots."""

    def test_edit_lot_propagates_to_purchase(self, asset_service, transaction_service, gold, owner):
        lot = [lot for lot in asset_service.list_asset_lots(owner, gold.id) if lot.quantity == 50][0]

        asset = asset_service.edit_asset_lot(owner, lot.id, quantity=Decimal(60))

        assert asset.quantity == Decimal(160)
        assert asset.total_paid == 1_720_000
        txn = transaction_service.get_transaction(owner, lot.buy_transaction_id)
        assert txn.amount == -720_000
        assert txn.type == TransactionType.ASSET_BUY

    def test_edit_lot_to_zero_deletes_asset(self, asset_service, checking, owner):
        asset = buy_gold(asset_service, owner, checking.id, 10, 10_000)
        (lot,) = asset_service.list_asset_lots(owner, asset.id)

        assert asset_service.edit_asset_lot(owner, lot.id, quantity=Decimal(0)) is None
        with pytest.raises(NotFoundError):
            asset_service.get_asset(owner, asset.id)

    def test_delete_last_lot_deletes_asset(self, asset_service, transaction_service, checking, owner):
        asset = buy_gold(asset_service, owner, checking.id, 10, 10_000)
        (lot,) = asset_service.list_asset_lots(owner, asset.id)

        assert asset_service.delete_asset_lot(owner, lot.id) is None

        with pytest.raises(NotFoundError):
            asset_service.get_asset(owner, asset.id)
        assert asset_service.db.list_assets(owner) == []
        assert transaction_service.get_transaction(owner, lot.buy_transaction_id) is None

    def test_edit_sell_lot_rejected(self, asset_service, gold, checking, owner):
        asset_service.sell_asset(owner, gold.id, Decimal(10), 120_000, checking.id, date(2024, 4, 1))
        sell_lot = [lot for lot in asset_service.list_asset_lots(owner, gold.id) if lot.is_sell][0]
        with pytest.raises(ValidationError):
            asset_service.edit_asset_lot(owner, sell_lot.id, quantity=Decimal(5))

    def test_edit_cannot_undercut_sales(self, asset_service, gold, checking, owner):
        asset_service.sell_asset(owner, gold.id, Decimal(140), 1_500_000, checking.id, date(2024, 4, 1))
        lot = [lot for lot in asset_service.list_asset_lots(owner, gold.id) if lot.quantity == 100][0]
        with pytest.raises(ValidationError):
            asset_service.edit_asset_lot(owner, lot.id, quantity=Decimal(50))
        assert asset_service.get_asset(owner, gold.id).quantity == Decimal(10)

    def test_delete_lot_removes_its_transactions(self, asset_service, transaction_service, gold, owner):
        lot = [lot for lot in asset_service.list_asset_lots(owner, gold.id) if lot.quantity == 50][0]

        asset = asset_service.delete_asset_lot(owner, lot.id)

        assert asset.quantity == Decimal(100)
        assert asset.total_paid == 1_000_000
        assert transaction_service.get_transaction(owner, lot.buy_transaction_id) is None

    def test_other_owner_cannot_touch_lot(self, asset_service, gold, owner, other_owner):
        lot = asset_service.list_asset_lots(owner, gold.id)[0]
        with pytest.raises(NotFoundError):
            asset_service.delete_asset_lot(other_owner, lot.id)


class TestQuantityPrecision:
    """Quantities must fit the six decimal places the lot table stores."""

    def test_buy_rejects_seventh_decimal(self, asset_service, checking, owner):
        with pytest.raises(ValidationError, match="6 decimal places") as excinfo:
            buy_gold(asset_service, owner, checking.id, "1.0000004", 10_000)
        assert excinfo.value.field == "quantity"
        assert asset_service.db.list_assets(owner) == []

    def test_trailing_zeros_are_accepted(self, asset_service, checking, owner):
        asset = buy_gold(asset_service, owner, checking.id, "1.50000000", 10_000)
        assert asset.quantity == Decimal("1.5")

    def test_six_decimals_sell_back_exactly(self, asset_service, checking, owner):
        asset = buy_gold(asset_service, owner, checking.id, "1.000001", 10_000)

        sold = asset_service.sell_asset(owner, asset.id, Decimal("1.000001"), 12_000, checking.id, date(2024, 4, 1))

        assert sold.quantity == 0
        assert sold.is_sold is True

    def test_sell_rejects_seventh_decimal(self, asset_service, gold, checking, owner):
        with pytest.raises(ValidationError, match="6 decimal places"):
            asset_service.sell_asset(owner, gold.id, Decimal("0.0000001"), 1, checking.id, date(2024, 4, 1))

    def test_edit_lot_rejects_seventh_decimal(self, asset_service, gold, owner):
        lot = asset_service.list_asset_lots(owner, gold.id)[0]
        with pytest.raises(ValidationError, match="6 decimal places"):
            asset_service.edit_asset_lot(owner, lot.id, quantity=Decimal("2.1234567"))
        assert asset_service.get_asset(owner, gold.id).quantity == Decimal(150)


class TestHoldings:
    """Tests for valuations and descriptive edits."""

    def test_holdings_use_latest_price(self, asset_service, gold, checking, owner):
        asset_service.sell_asset(owner, gold.id, Decimal(75), 900_000, checking.id, date(2024, 4, 1))
        asset_service.record_asset_price("GOLD", "gram", 9_000, fetched_at=datetime(2024, 4, 1, tzinfo=UTC))
        asset_service.record_asset_price("GOLD", "gram", 11_000, fetched_at=datetime(2024, 4, 2, tzinfo=UTC))

        (holding,) = asset_service.list_holdings(owner)
        assert holding.live_unit_price == 11_000
        assert holding.current_value == 825_000
        assert holding.unrealized_profit_loss == 25_000
        assert holding.realized_profit_loss == 100_000

    def test_holdings_without_price(self, asset_service, gold, owner):
        (holding,) = asset_service.list_holdings(owner)
        assert holding.live_unit_price is None
        assert holding.current_value is None
        assert holding.unrealized_profit_loss is None

    def test_negative_price_rejected(self, asset_service):
        with pytest.raises(ValidationError):
            asset_service.record_asset_price("GOLD", "gram", -1)

    def test_rename_collision(self, asset_service, gold, checking, owner):
        silver = asset_service.buy_asset(
            owner, "Silver", "GOLD", "gram", Decimal(1), 1_000, checking.id, date(2024, 3, 1)
        )
        with pytest.raises(ConflictError):
            asset_service.update_asset(owner, silver.id, name="Gold")

    def test_update_asset(self, asset_service, gold, savings, owner):
        asset = asset_service.update_asset(owner, gold.id, name="Gold bars", unit="oz", account_id=savings.id)
        assert asset.name == "Gold bars"
        assert asset.unit == "oz"
        assert asset.account_id == savings.id


def test_asset_cli_flow(run_cli, checking):
    bought = run_cli(
        "asset", "buy", "Gold", "10", "60", "--account", "Checking", "--type", "GOLD", "--unit", "gram",
        "--date", "2024-03-01",
    )
    assert bought.exit_code == 0
    assert "Bought 10 gram of 'Gold'" in bought.output
    asset_id = bought.output.strip().rstrip(")").split()[-1]

    sold = run_cli("asset", "sell", asset_id, "4", "300", "--account", "Checking", "--date", "2024-04-01")
    assert sold.exit_code == 0
    assert "remaining" in sold.output

    run_cli("asset", "price", "GOLD", "70", "--unit", "gram")
    listed = run_cli("asset", "list")
    assert listed.exit_code == 0
    assert "Gold" in listed.output
    assert "420.00" in listed.output

    shown = run_cli("asset", "show", asset_id)
    assert shown.exit_code == 0
    assert "SELL" in shown.output


def test_asset_oversell_cli(run_cli, asset_service, checking, owner):
    asset = buy_gold(asset_service, owner, checking.id, 1, 10_000)
    result = run_cli("asset", "sell", str(asset.id), "2", "30", "--account", "Checking")

    assert result.exit_code == 1
    assert "Cannot sell more than you own" in result.output
    assert "(field: quantity)" in result.output


def test_asset_sell_rejects_infinite_amount_cli(run_cli, asset_service, checking, owner):
    asset = buy_gold(asset_service, owner, checking.id, 1, 10_000)
    result = run_cli("asset", "sell", str(asset.id), "1", "inf", "--account", "Checking")

    assert result.exit_code == 1
    assert "Invalid sale amount" in result.output
    assert "Traceback" not in result.output
