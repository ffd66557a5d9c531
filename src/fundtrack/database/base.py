"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Iterable

# Import entities directly to avoid circular import through domain/__init__.py
from fundtrack.domain.entities import (
    Account,
    AccountType,
    Asset,
    AssetAggregates,
    AssetLot,
    AssetPrice,
    Category,
    CreditCardSettings,
    CreditCardStatement,
    RecurringPayment,
    StatementPreview,
    Transaction,
    TransactionType,
    Transfer,
)
from fundtrack.domain.filters import StatementFilter, TransactionFilter, TransferFilter


class Database(ABC):
    """Abstract database interface for fundtrack.

    Every read that can be scoped by caller identity takes an ``owner``
    argument; rows belonging to other owners behave as missing.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def atomic(self) -> AbstractContextManager[None]:
        """Group writes into one all-or-nothing unit.

        Writes issued inside the block are flushed but not committed; the
        block commits once on success and rolls back on any exception.
        Blocks may be nested; only the outermost one commits.
        """
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        owner: str,
        name: str,
        account_type: AccountType,
        is_hidden: bool = False,
        credit_card: Optional[CreditCardSettings] = None,
    ) -> int:
        """Create a new account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, owner: str, account_id: int, include_deleted: bool = False) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def list_accounts(
        self,
        owner: str,
        account_type: Optional[AccountType] = None,
        include_deleted: bool = False,
    ) -> list[Account]:
        """List accounts, optionally restricted to one type."""
        pass

    @abstractmethod
    def update_account(
        self,
        account_id: int,
        name: str,
        account_type: AccountType,
        is_hidden: bool,
        credit_card: Optional[CreditCardSettings],
    ) -> None:
        """Overwrite the editable account fields."""
        pass

    @abstractmethod
    def soft_delete_accounts(self, owner: str, account_ids: Iterable[int]) -> list[int]:
        """Flag the owner's accounts as deleted. Returns the affected IDs."""
        pass

    # Category operations
    @abstractmethod
    def create_category(self, owner: str, name: str) -> int:
        """Create a category. Returns category ID."""
        pass

    @abstractmethod
    def get_category(self, owner: str, category_id: int) -> Optional[Category]:
        """Get category by ID."""
        pass

    @abstractmethod
    def get_category_by_name(self, owner: str, name: str) -> Optional[Category]:
        """Get category by name."""
        pass

    @abstractmethod
    def list_categories(self, owner: str) -> list[Category]:
        """List the owner's categories."""
        pass

    @abstractmethod
    def update_category_name(self, category_id: int, name: str) -> None:
        """Rename a category."""
        pass

    @abstractmethod
    def delete_category(self, category_id: int) -> None:
        """Delete a category, clearing it from transactions."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(
        self,
        account_id: int,
        amount: int,
        type: TransactionType,
        date: date,
        payee: str = "",
        notes: Optional[str] = None,
        category_id: Optional[int] = None,
        transfer_id: Optional[int] = None,
    ) -> int:
        """Create a ledger row. Returns transaction ID."""
        pass

    @abstractmethod
    def get_transaction(self, owner: str, transaction_id: int) -> Optional[Transaction]:
        """Get a transaction whose account belongs to owner."""
        pass

    @abstractmethod
    def list_transactions(self, owner: str, criteria: TransactionFilter) -> list[Transaction]:
        """List transactions matching the filter, newest first."""
        pass

    @abstractmethod
    def list_transfer_transactions(self, transfer_id: int) -> list[Transaction]:
        """List the ledger rows owned by a transfer."""
        pass

    @abstractmethod
    def update_transaction(
        self,
        transaction_id: int,
        account_id: int,
        amount: int,
        date: date,
        payee: str,
        notes: Optional[str],
        category_id: Optional[int],
        type: Optional[TransactionType] = None,
    ) -> None:
        """Overwrite a ledger row's fields (type only when given)."""
        pass

    @abstractmethod
    def delete_transactions(self, transaction_ids: Iterable[int]) -> list[int]:
        """Delete ledger rows by ID. Returns the IDs actually deleted."""
        pass

    @abstractmethod
    def user_created_transaction_ids(self, owner: str, transaction_ids: Iterable[int]) -> list[int]:
        """Restrict IDs to USER_CREATED rows whose account belongs to owner."""
        pass

    @abstractmethod
    def sum_transactions(
        self,
        owner: str,
        as_of: date,
        account_id: Optional[int] = None,
        include_hidden: bool = False,
    ) -> int:
        """Sum amounts dated on or before as_of over non-deleted accounts."""
        pass

    @abstractmethod
    def earliest_transaction_date(self, owner: str) -> Optional[date]:
        """Date of the owner's oldest transaction, if any."""
        pass

    # Transfer operations
    @abstractmethod
    def create_transfer(
        self,
        owner: str,
        amount: int,
        transfer_charge: int,
        date: date,
        from_account_id: Optional[int],
        to_account_id: Optional[int],
        notes: Optional[str] = None,
        credit_card_statement_id: Optional[int] = None,
    ) -> int:
        """Create a transfer row. Returns transfer ID."""
        pass

    @abstractmethod
    def get_transfer(self, owner: str, transfer_id: int) -> Optional[Transfer]:
        """Get transfer by ID."""
        pass

    @abstractmethod
    def list_transfers(self, owner: str, criteria: TransferFilter) -> list[Transfer]:
        """List transfers matching the filter, newest first."""
        pass

    @abstractmethod
    def list_statement_transfers(self, statement_id: int) -> list[Transfer]:
        """List transfers that pay a credit card statement."""
        pass

    @abstractmethod
    def update_transfer(
        self,
        transfer_id: int,
        amount: int,
        transfer_charge: int,
        date: date,
        from_account_id: Optional[int],
        to_account_id: Optional[int],
        notes: Optional[str],
        credit_card_statement_id: Optional[int],
    ) -> None:
        """Overwrite a transfer's fields."""
        pass

    @abstractmethod
    def delete_transfer(self, transfer_id: int) -> None:
        """Delete a transfer and the ledger rows it owns."""
        pass

    @abstractmethod
    def owned_transfer_ids(self, owner: str, transfer_ids: Iterable[int]) -> list[int]:
        """Restrict IDs to transfers belonging to owner."""
        pass

    # Asset operations
    @abstractmethod
    def create_asset(self, owner: str, name: str, asset_type: str, unit: str, account_id: int) -> int:
        """Create an empty asset. Returns asset ID."""
        pass

    @abstractmethod
    def get_asset(self, owner: str, asset_id: int) -> Optional[Asset]:
        """Get asset by ID."""
        pass

    @abstractmethod
    def find_asset(self, owner: str, name: str, asset_type: str) -> Optional[Asset]:
        """Find an asset by its identity key."""
        pass

    @abstractmethod
    def list_assets(self, owner: str) -> list[Asset]:
        """List the owner's assets, newest first."""
        pass

    @abstractmethod
    def update_asset_details(self, asset_id: int, name: str, unit: str, account_id: int) -> None:
        """Change descriptive asset fields."""
        pass

    @abstractmethod
    def update_asset_aggregates(
        self,
        asset_id: int,
        aggregates: AssetAggregates,
        updated_at: datetime,
        is_sold: Optional[bool] = None,
        sold_at: Optional[date] = None,
        sell_amount: Optional[int] = None,
    ) -> None:
        """Store recomputed lot sums (and sold state when is_sold is given)."""
        pass

    @abstractmethod
    def delete_asset(self, asset_id: int) -> None:
        """Delete an asset and its lots."""
        pass

    @abstractmethod
    def create_asset_lot(
        self,
        asset_id: int,
        quantity: Decimal,
        unit: str,
        asset_price: int,
        extra_charge: int,
        total_paid: int,
        account_id: int,
        date: date,
        sell_price: Optional[int] = None,
        buy_transaction_id: Optional[int] = None,
        sell_principal_transaction_id: Optional[int] = None,
        sell_profit_transaction_id: Optional[int] = None,
    ) -> int:
        """Create a lot. Returns lot ID."""
        pass

    @abstractmethod
    def get_asset_lot(self, owner: str, lot_id: int) -> Optional[AssetLot]:
        """Get a lot whose asset belongs to owner."""
        pass

    @abstractmethod
    def list_asset_lots(self, asset_id: int) -> list[AssetLot]:
        """List an asset's lots, newest first."""
        pass

    @abstractmethod
    def update_asset_lot(
        self,
        lot_id: int,
        quantity: Decimal,
        asset_price: int,
        extra_charge: int,
        total_paid: int,
        account_id: int,
        date: date,
    ) -> None:
        """Overwrite a buy lot's fields."""
        pass

    @abstractmethod
    def delete_asset_lot(self, lot_id: int) -> None:
        """Delete a lot."""
        pass

    @abstractmethod
    def record_asset_price(self, asset_type: str, unit: str, price: int, fetched_at: datetime) -> int:
        """Store a price feed row. Returns its ID."""
        pass

    @abstractmethod
    def latest_asset_prices(self) -> dict[str, AssetPrice]:
        """Most recently fetched price per asset type."""
        pass

    # Credit card statement operations
    @abstractmethod
    def create_credit_card_statement(
        self,
        owner: str,
        preview: StatementPreview,
        payment_due_amount: int,
        is_payment_due_overridden: bool,
    ) -> int:
        """Persist a closed statement. Returns statement ID.

        Raises:
            ConflictError: If a statement already exists for the account and close date
        """
        pass

    @abstractmethod
    def find_statement_by_close_date(self, account_id: int, statement_date: date) -> Optional[CreditCardStatement]:
        """Find the statement closed on a calendar date."""
        pass

    @abstractmethod
    def get_credit_card_statement(self, owner: str, statement_id: int) -> Optional[CreditCardStatement]:
        """Get statement by ID."""
        pass

    @abstractmethod
    def list_credit_card_statements(self, owner: str, criteria: StatementFilter) -> list[CreditCardStatement]:
        """List statements matching the filter, newest close date first."""
        pass

    @abstractmethod
    def next_unpaid_statement(self, account_id: int) -> Optional[CreditCardStatement]:
        """Earliest-due unpaid statement of an account."""
        pass

    @abstractmethod
    def update_statement_payment_due(self, statement_id: int, payment_due_amount: int) -> None:
        """Override the amount due and flag the override."""
        pass

    @abstractmethod
    def update_statement_payment_status(
        self, statement_id: int, paid_amount: int, is_paid: bool, paid_at: Optional[date]
    ) -> None:
        """Store the paid state derived from linked transfers."""
        pass

    # Recurring payment operations
    @abstractmethod
    def create_recurring_payment(self, payment: RecurringPayment) -> int:
        """Persist a recurring payment (its id field is ignored). Returns ID."""
        pass

    @abstractmethod
    def get_recurring_payment(self, owner: str, payment_id: int) -> Optional[RecurringPayment]:
        """Get recurring payment by ID."""
        pass

    @abstractmethod
    def list_recurring_payments(self, owner: str) -> list[RecurringPayment]:
        """List the owner's recurring payments."""
        pass

    @abstractmethod
    def update_recurring_payment(self, payment: RecurringPayment) -> None:
        """Overwrite every field of a recurring payment."""
        pass

    @abstractmethod
    def set_recurring_payment_completed(self, payment_id: int, completed_at: date) -> None:
        """Stamp the last completion date."""
        pass

    @abstractmethod
    def delete_recurring_payment(self, payment_id: int) -> None:
        """Delete a recurring payment."""
        pass
