"""Shared pytest fixtures for fundtrack tests."""

import os
import tempfile
from datetime import date
from decimal import Decimal

import pytest

from fundtrack.database.factories import create_sqlite_database
from fundtrack.domain.account import AccountService
from fundtrack.domain.asset import AssetService
from fundtrack.domain.balance import BalanceService
from fundtrack.domain.category import CategoryService
from fundtrack.domain.credit_card import CreditCardService
from fundtrack.domain.entities import AccountType, CreditCardSettings
from fundtrack.domain.recurring import RecurringPaymentService
from fundtrack.domain.transaction import TransactionService
from fundtrack.domain.transfer import TransferService

OWNER = "alice"
OTHER_OWNER = "mallory"


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for CLI tests that open their own connection
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def owner():
    return OWNER


@pytest.fixture
def other_owner():
    return OTHER_OWNER


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def category_service(temp_db):
    """Create a CategoryService with a temporary database."""
    return CategoryService(temp_db)


@pytest.fixture
def transaction_service(temp_db):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db)


@pytest.fixture
def transfer_service(temp_db):
    """Create a TransferService with a temporary database."""
    return TransferService(temp_db)


@pytest.fixture
def balance_service(temp_db):
    """Create a BalanceService with a temporary database."""
    return BalanceService(temp_db)


@pytest.fixture
def asset_service(temp_db):
    """Create an AssetService with a temporary database."""
    return AssetService(temp_db)


@pytest.fixture
def credit_card_service(temp_db):
    """Create a CreditCardService with a temporary database."""
    return CreditCardService(temp_db)


@pytest.fixture
def recurring_service(temp_db):
    """Create a RecurringPaymentService with a temporary database."""
    return RecurringPaymentService(temp_db)


@pytest.fixture
def checking(account_service, owner):
    """A bank account opened with 1,000.00 on 2024-01-01."""
    account_id = account_service.create_account(
        owner, "Checking", starting_balance=1_000_000, opened_on=date(2024, 1, 1)
    )
    return account_service.require_account(owner, account_id)


@pytest.fixture
def savings(account_service, owner):
    """An empty savings account."""
    account_id = account_service.create_account(owner, "Savings")
    return account_service.require_account(owner, account_id)


@pytest.fixture
def card_settings():
    """Card closing on the 25th with payment due on the 14th."""
    return CreditCardSettings(
        statement_close_day=25,
        payment_due_day=14,
        minimum_payment_percentage=Decimal(5),
        credit_limit=5_000_000,
        apr=Decimal("24"),
    )


@pytest.fixture
def credit_card(account_service, owner, card_settings):
    """A credit card account with no activity."""
    account_id = account_service.create_account(
        owner, "Visa", account_type=AccountType.CREDIT_CARD, credit_card=card_settings
    )
    return account_service.require_account(owner, account_id)


@pytest.fixture
def groceries(category_service, owner):
    """A sample category."""
    return category_service.require_category(owner, category_service.create_category(owner, "Groceries"))


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def run_cli(cli_runner, temp_db, owner):
    """Invoke the CLI against the temporary database as the default owner."""
    from fundtrack.cli.main import cli

    def invoke(*args, user=OWNER, input=None):
        base = ["--db-path", temp_db.database_path]
        if user is not None:
            base += ["--user", user]
        return cli_runner.invoke(cli, base + list(args), input=input)

    return invoke
