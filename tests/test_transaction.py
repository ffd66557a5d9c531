"""Tests for the transaction ledger: service rules and CLI commands."""

import pytest
from datetime import date

from fundtrack.domain.entities import TransactionDraft, TransactionType
from fundtrack.domain.errors import (
    NotFoundError,
    StructuralProtectionError,
    UnauthorizedError,
    ValidationError,
)
from fundtrack.domain.filters import DateRange, TransactionFilter

ALL_DATES = TransactionFilter(dates=DateRange())


class TestTransactionService:
    """Tests for TransactionService."""

    def test_create_transaction_is_user_created(self, transaction_service, checking, groceries, owner):
        txn_id = transaction_service.create_transaction(
            owner, checking.id, -42_500, date(2024, 2, 3), payee="Grocer", category_id=groceries.id
        )
        txn = transaction_service.get_transaction(owner, txn_id)
        assert txn.type == TransactionType.USER_CREATED
        assert txn.amount == -42_500
        assert txn.payee == "Grocer"
        assert txn.category_id == groceries.id

    def test_create_transaction_in_foreign_account(self, transaction_service, checking, other_owner):
        with pytest.raises(NotFoundError):
            transaction_service.create_transaction(other_owner, checking.id, 1_000, date(2024, 2, 3))

    def test_create_transaction_without_owner(self, transaction_service, checking):
        with pytest.raises(UnauthorizedError):
            transaction_service.create_transaction(None, checking.id, 1_000, date(2024, 2, 3))

    def test_get_transaction_of_other_owner(self, transaction_service, checking, owner, other_owner):
        txn_id = transaction_service.create_transaction(owner, checking.id, 1_000, date(2024, 2, 3))
        assert transaction_service.get_transaction(other_owner, txn_id) is None

    def test_list_defaults_to_month_to_date(self, transaction_service, checking, owner):
        old_id = transaction_service.create_transaction(owner, checking.id, -1_000, date(2020, 5, 1))
        new_id = transaction_service.create_transaction(owner, checking.id, -2_000, date.today())

        ids = [txn.id for txn in transaction_service.list_transactions(owner)]
        assert new_id in ids
        assert old_id not in ids

    def test_list_filters_by_category(self, transaction_service, checking, groceries, owner):
        tagged = transaction_service.create_transaction(
            owner, checking.id, -1_000, date(2024, 2, 3), category_id=groceries.id
        )
        transaction_service.create_transaction(owner, checking.id, -2_000, date(2024, 2, 4))

        rows = transaction_service.list_transactions(
            owner, TransactionFilter(dates=DateRange(), category_id=groceries.id)
        )
        assert [txn.id for txn in rows] == [tagged]

    def test_list_rejects_inverted_range(self, transaction_service, owner):
        with pytest.raises(ValidationError):
            transaction_service.list_transactions(
                owner, TransactionFilter(dates=DateRange(start=date(2024, 3, 1), end=date(2024, 2, 1)))
            )

    def test_update_transaction(self, transaction_service, checking, groceries, owner):
        txn_id = transaction_service.create_transaction(
            owner, checking.id, -1_000, date(2024, 2, 3), category_id=groceries.id
        )
        transaction_service.update_transaction(owner, txn_id, amount=-3_000, payee="Bakery", clear_category=True)

        txn = transaction_service.get_transaction(owner, txn_id)
        assert txn.amount == -3_000
        assert txn.payee == "Bakery"
        assert txn.category_id is None
        assert txn.date == date(2024, 2, 3)

    def test_initial_balance_is_protected(self, transaction_service, checking, owner):
        (initial,) = transaction_service.list_transactions(
            owner, TransactionFilter(dates=DateRange(), account_id=checking.id)
        )
        with pytest.raises(StructuralProtectionError):
            transaction_service.update_transaction(owner, initial.id, amount=5)
        with pytest.raises(StructuralProtectionError):
            transaction_service.delete_transaction(owner, initial.id)

    def test_transfer_legs_are_protected(self, transaction_service, transfer_service, checking, savings, owner):
        transfer_id = transfer_service.create_transfer(
            owner, 100_000, date(2024, 2, 1), from_account_id=checking.id, to_account_id=savings.id
        )
        leg = transfer_service.list_transfer_transactions(owner, transfer_id)[0]
        with pytest.raises(StructuralProtectionError):
            transaction_service.delete_transaction(owner, leg.id)

    def test_delete_missing_transaction(self, transaction_service, owner):
        with pytest.raises(NotFoundError):
            transaction_service.delete_transaction(owner, 999)

    def test_bulk_delete_is_best_effort(self, transaction_service, account_service, checking, owner, other_owner):
        mine = transaction_service.create_transaction(owner, checking.id, -1_000, date(2024, 2, 3))
        foreign_account = account_service.create_account(other_owner, "Theirs")
        theirs = transaction_service.create_transaction(other_owner, foreign_account, -1_000, date(2024, 2, 3))
        (initial,) = [
            txn for txn in transaction_service.list_transactions(owner, ALL_DATES)
            if txn.type == TransactionType.INITIAL_BALANCE
        ]

        deleted = transaction_service.bulk_delete_transactions(owner, [mine, theirs, initial.id])

        assert deleted == [mine]
        assert transaction_service.get_transaction(other_owner, theirs) is not None
        assert transaction_service.get_transaction(owner, initial.id) is not None

    def test_bulk_create_rejects_system_types(self, transaction_service, checking, owner):
        drafts = [
            TransactionDraft(account_id=checking.id, amount=-1_000, date=date(2024, 2, 3)),
            TransactionDraft(
                account_id=checking.id, amount=5_000, date=date(2024, 2, 3), type=TransactionType.ASSET_SELL
            ),
        ]
        before = len(transaction_service.list_transactions(owner, ALL_DATES))

        with pytest.raises(ValidationError):
            transaction_service.bulk_create_transactions(owner, drafts)
        assert len(transaction_service.list_transactions(owner, ALL_DATES)) == before

    def test_bulk_create(self, transaction_service, checking, owner):
        ids = transaction_service.bulk_create_transactions(
            owner,
            [
                TransactionDraft(account_id=checking.id, amount=-1_000, date=date(2024, 2, 3), payee="A"),
                TransactionDraft(account_id=checking.id, amount=-2_000, date=date(2024, 2, 4), payee="B"),
            ],
        )
        assert len(ids) == 2
        assert all(
            transaction_service.get_transaction(owner, txn_id).type == TransactionType.USER_CREATED
            for txn_id in ids
        )


def test_add_transaction_cli(run_cli, checking):
    """Test adding a transaction by account name."""
    result = run_cli(
        "transaction", "add", "--account", "Checking", "--amount", "-50.00", "--date", "2024-01-15",
        "--payee", "Grocer",
    )

    assert result.exit_code == 0
    assert "Created transaction" in result.output


def test_add_transaction_invalid_amount_cli(run_cli, checking):
    result = run_cli("transaction", "add", "--account", "Checking", "--amount", "abc")

    assert result.exit_code == 1
    assert "Invalid amount" in result.output


def test_add_transaction_unknown_category_cli(run_cli, checking):
    result = run_cli("transaction", "add", "--account", "Checking", "--amount", "-5", "--category", "Nope")

    assert result.exit_code == 1
    assert "not found" in result.output


def test_list_transactions_cli(run_cli, checking):
    result = run_cli("transaction", "list", "--start-date", "2024-01-01", "--end-date", "2024-01-31")

    assert result.exit_code == 0
    assert "Found 1 transaction(s)" in result.output
    assert "INITIAL_BALANCE" in result.output
    assert "1,000.00" in result.output


def test_list_transactions_empty_cli(run_cli, checking):
    result = run_cli("transaction", "list", "--start-date", "2010-01-01", "--end-date", "2010-01-31")

    assert result.exit_code == 0
    assert "No transactions found." in result.output


def test_update_system_transaction_cli(run_cli, transaction_service, checking, owner):
    (initial,) = transaction_service.list_transactions(owner, ALL_DATES)
    result = run_cli("transaction", "update", str(initial.id), "--amount", "5")

    assert result.exit_code == 1
    assert "system generated" in result.output


def test_bulk_delete_cli(run_cli, transaction_service, checking, owner):
    txn_id = transaction_service.create_transaction(owner, checking.id, -1_000, date(2024, 2, 3))
    (initial,) = [
        txn for txn in transaction_service.list_transactions(owner, ALL_DATES) if txn.id != txn_id
    ]
    result = run_cli("transaction", "bulk-delete", str(txn_id), str(initial.id))

    assert result.exit_code == 0
    assert "Deleted 1 transaction(s)" in result.output
    assert "Skipped 1 transaction(s)" in result.output
