"""Tests for Database interface returning domain models."""

import pytest
from datetime import date, datetime, UTC
from decimal import Decimal

from sqlalchemy.exc import OperationalError

from fundtrack.database.factories import create_sqlite_database
from fundtrack.domain import entities
from fundtrack.domain.credit_card import CreditCardService
from fundtrack.domain.entities import AccountType, TransactionType
from fundtrack.domain.errors import ConflictError, PersistenceError, ValidationError
from fundtrack.domain.filters import DateRange, StatementFilter, TransactionFilter


class TestDatabaseInterface:
    """Tests to verify Database interface returns domain models."""

    def test_get_account_returns_domain_model(self, temp_db, owner):
        """Test that get_account returns a domain Account entity."""
        account_id = temp_db.create_account(owner, "Test Account", AccountType.CASH)

        account = temp_db.get_account(owner, account_id)

        assert isinstance(account, entities.Account)
        assert account.id == account_id
        assert account.account_type == AccountType.CASH
        assert account.credit_card is None
        assert isinstance(account.created_at, datetime)

    def test_get_account_is_owner_scoped(self, temp_db, owner, other_owner):
        account_id = temp_db.create_account(owner, "Test Account", AccountType.BANK)
        assert temp_db.get_account(other_owner, account_id) is None

    def test_soft_deleted_accounts_are_hidden(self, temp_db, owner):
        account_id = temp_db.create_account(owner, "Old", AccountType.BANK)
        temp_db.soft_delete_accounts(owner, [account_id])

        assert temp_db.get_account(owner, account_id) is None
        assert temp_db.get_account(owner, account_id, include_deleted=True).is_deleted is True
        assert temp_db.list_accounts(owner) == []

    def test_get_transaction_returns_domain_model(self, temp_db, owner):
        """Test that get_transaction returns a domain Transaction entity."""
        account_id = temp_db.create_account(owner, "Test Account", AccountType.BANK)
        txn_id = temp_db.create_transaction(
            account_id=account_id,
            amount=-12_345,
            type=TransactionType.USER_CREATED,
            date=date(2024, 1, 15),
            payee="Grocery Store",
        )

        txn = temp_db.get_transaction(owner, txn_id)

        assert isinstance(txn, entities.Transaction)
        assert txn.amount == -12_345
        assert isinstance(txn.amount, int)
        assert txn.type == TransactionType.USER_CREATED
        assert txn.date == date(2024, 1, 15)

    def test_asset_quantity_is_decimal(self, temp_db, owner):
        account_id = temp_db.create_account(owner, "Broker", AccountType.BANK)
        asset_id = temp_db.create_asset(owner, "Gold", "GOLD", "gram", account_id)
        temp_db.create_asset_lot(
            asset_id=asset_id,
            quantity=Decimal("1.25"),
            unit="gram",
            asset_price=60_000,
            extra_charge=0,
            total_paid=75_000,
            account_id=account_id,
            date=date(2024, 1, 15),
        )

        (lot,) = temp_db.list_asset_lots(asset_id)
        assert isinstance(lot.quantity, Decimal)
        assert lot.quantity == Decimal("1.25")


class TestAtomic:
    """Tests for the atomic() unit of work."""

    def test_rollback_on_error(self, temp_db, owner):
        account_id = temp_db.create_account(owner, "Test Account", AccountType.BANK)

        with pytest.raises(ValidationError):
            with temp_db.atomic():
                temp_db.create_transaction(
                    account_id=account_id,
                    amount=1_000,
                    type=TransactionType.USER_CREATED,
                    date=date(2024, 1, 15),
                )
                raise ValidationError("abort")

        assert temp_db.list_transactions(owner, TransactionFilter(dates=DateRange())) == []

    def test_nested_blocks_commit_once(self, temp_db, owner):
        account_id = temp_db.create_account(owner, "Test Account", AccountType.BANK)

        with temp_db.atomic():
            with temp_db.atomic():
                temp_db.create_transaction(
                    account_id=account_id,
                    amount=1_000,
                    type=TransactionType.USER_CREATED,
                    date=date(2024, 1, 15),
                )
            temp_db.create_transaction(
                account_id=account_id,
                amount=2_000,
                type=TransactionType.USER_CREATED,
                date=date(2024, 1, 16),
            )

        assert temp_db.sum_transactions(owner, date(2024, 12, 31)) == 3_000


class TestCascades:
    """Tests for ownership links between rows."""

    def test_deleting_transfer_removes_legs(self, temp_db, owner):
        account_id = temp_db.create_account(owner, "Test Account", AccountType.BANK)
        transfer_id = temp_db.create_transfer(
            owner,
            amount=5_000,
            transfer_charge=0,
            date=date(2024, 1, 15),
            from_account_id=account_id,
            to_account_id=None,
        )
        temp_db.create_transaction(
            account_id=account_id,
            amount=-5_000,
            type=TransactionType.SELF_TRANSFER,
            date=date(2024, 1, 15),
            transfer_id=transfer_id,
        )

        temp_db.delete_transfer(transfer_id)

        assert temp_db.list_transfer_transactions(transfer_id) == []

    def test_duplicate_statement_is_conflict(self, credit_card_service, credit_card, owner):
        credit_card_service.close_statement(owner, credit_card.id, today=date(2024, 6, 10))
        with pytest.raises(ConflictError):
            credit_card_service.close_statement(owner, credit_card.id, today=date(2024, 6, 10))

    def test_latest_price_per_type(self, temp_db):
        temp_db.record_asset_price("GOLD", "gram", 60_000, datetime(2024, 1, 1, tzinfo=UTC))
        temp_db.record_asset_price("GOLD", "gram", 61_000, datetime(2024, 1, 2, tzinfo=UTC))
        temp_db.record_asset_price("SILVER", "gram", 900, datetime(2024, 1, 1, tzinfo=UTC))

        prices = temp_db.latest_asset_prices()
        assert prices["GOLD"].price == 61_000
        assert prices["SILVER"].price == 900


class TestStatementUniqueness:
    """The unique close date guard holds even when the pre-check is stale."""

    def test_concurrent_close_is_conflict(self, temp_db, credit_card_service, credit_card, owner):
        today = date(2024, 6, 10)
        preview = credit_card_service.preview_statement(owner, credit_card.id, today=today)

        other_db = create_sqlite_database(database_path=temp_db.database_path)
        try:
            CreditCardService(other_db).close_statement(owner, credit_card.id, today=today)
        finally:
            other_db.disconnect()

        with pytest.raises(ConflictError):
            with temp_db.atomic():
                temp_db.create_credit_card_statement(
                    owner=owner,
                    preview=preview,
                    payment_due_amount=preview.payment_due_amount,
                    is_payment_due_overridden=False,
                )

        statements = credit_card_service.list_statements(owner, StatementFilter(account_id=credit_card.id))
        assert len(statements) == 1
        # The session is still usable after the rejected insert
        assert temp_db.create_account(owner, "After", AccountType.CASH) is not None


class TestStorageFailures:
    """Driver errors surface as PersistenceError."""

    @staticmethod
    def failing(*args, **kwargs):
        raise OperationalError("INSERT", {}, Exception("disk I/O error"))

    def test_failed_commit_outside_atomic(self, temp_db, owner, monkeypatch):
        monkeypatch.setattr(temp_db._get_session(), "commit", self.failing)

        with pytest.raises(PersistenceError, match="nothing was saved"):
            temp_db.create_account(owner, "Broken", AccountType.CASH)

    def test_failed_flush_inside_atomic(self, temp_db, owner, monkeypatch):
        account_id = temp_db.create_account(owner, "Test Account", AccountType.BANK)
        monkeypatch.setattr(temp_db._get_session(), "flush", self.failing)

        with pytest.raises(PersistenceError):
            with temp_db.atomic():
                temp_db.create_transaction(
                    account_id=account_id,
                    amount=1_000,
                    type=TransactionType.USER_CREATED,
                    date=date(2024, 1, 15),
                )
        monkeypatch.undo()

        assert temp_db.list_transactions(owner, TransactionFilter(dates=DateRange())) == []

    def test_cli_reports_storage_failure(self, run_cli, monkeypatch):
        from fundtrack.database.sqlalchemy_db import SQLAlchemyDatabase

        original = SQLAlchemyDatabase._get_session

        def get_session(db):
            session = original(db)
            session.commit = self.failing
            return session

        monkeypatch.setattr(SQLAlchemyDatabase, "_get_session", get_session)
        result = run_cli("category", "create", "Groceries")

        assert result.exit_code == 1
        assert "Error: Storage failure" in result.output
