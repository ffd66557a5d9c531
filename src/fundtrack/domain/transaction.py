"""Transaction ledger domain service."""

import logging
from datetime import date
from typing import Iterable, Optional

from fundtrack.database.base import Database
from fundtrack.domain.entities import (
    Transaction as TransactionEntity,
    TransactionDraft,
    TransactionType,
)
from fundtrack.domain.errors import (
    NotFoundError,
    StructuralProtectionError,
    ValidationError,
    account_not_found,
    category_not_found,
    require_owner,
    system_generated_transaction,
    transaction_not_found,
)
from fundtrack.domain.filters import DateRange, TransactionFilter

logger = logging.getLogger(__name__)


class TransactionService:
    """Service for user-created ledger rows.

    Rows of any other type belong to an account, transfer or asset and are
    only changed through that owner.
    """

    def __init__(self, db: Database):
        """Initialize transaction service.

        Args:
            db: Database instance
        """
        self.db = db

    def _check_references(self, owner: str, account_id: int, category_id: Optional[int]) -> None:
        if self.db.get_account(owner, account_id) is None:
            raise NotFoundError(account_not_found(account_id))
        if category_id is not None and self.db.get_category(owner, category_id) is None:
            raise NotFoundError(category_not_found(category_id))

    def create_transaction(
        self,
        owner: str,
        account_id: int,
        amount: int,
        date: date,
        payee: str = "",
        notes: Optional[str] = None,
        category_id: Optional[int] = None,
    ) -> int:
        """Create a user transaction.

        Args:
            owner: Caller identity
            account_id: Account ID
            amount: Signed amount in milli-units
            date: Transaction date
            payee: Counterparty
            notes: Optional notes
            category_id: Optional category ID

        Returns:
            Transaction ID

        Raises:
            NotFoundError: If the account or category is missing or not owned
        """
        require_owner(owner)
        self._check_references(owner, account_id, category_id)
        transaction_id = self.db.create_transaction(
            account_id=account_id,
            amount=amount,
            type=TransactionType.USER_CREATED,
            date=date,
            payee=payee,
            notes=notes,
            category_id=category_id,
        )
        logger.info("Created transaction %s on account %s", transaction_id, account_id)
        return transaction_id

    def bulk_create_transactions(self, owner: str, drafts: Iterable[TransactionDraft]) -> list[int]:
        """Create several user transactions in one unit.

        Raises:
            ValidationError: If any draft is not USER_CREATED; nothing is written
            NotFoundError: If any account or category is missing or not owned
        """
        require_owner(owner)
        drafts = list(drafts)
        for draft in drafts:
            if draft.type != TransactionType.USER_CREATED:
                raise ValidationError(
                    f"Only {TransactionType.USER_CREATED.value} transactions can be created directly",
                    field="type",
                )
            self._check_references(owner, draft.account_id, draft.category_id)

        with self.db.atomic():
            ids = [
                self.db.create_transaction(
                    account_id=draft.account_id,
                    amount=draft.amount,
                    type=TransactionType.USER_CREATED,
                    date=draft.date,
                    payee=draft.payee,
                    notes=draft.notes,
                    category_id=draft.category_id,
                )
                for draft in drafts
            ]
        logger.info("Bulk created %d transaction(s) for %s", len(ids), owner)
        return ids

    def get_transaction(self, owner: str, transaction_id: int) -> Optional[TransactionEntity]:
        """Get transaction by ID.

        Returns:
            Transaction entity or None if not found
        """
        require_owner(owner)
        return self.db.get_transaction(owner, transaction_id)

    def _require_user_created(self, owner: str, transaction_id: int, action: str) -> TransactionEntity:
        txn = self.get_transaction(owner, transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        if txn.type != TransactionType.USER_CREATED:
            raise StructuralProtectionError(system_generated_transaction(transaction_id, action))
        return txn

    def list_transactions(
        self, owner: str, criteria: Optional[TransactionFilter] = None
    ) -> list[TransactionEntity]:
        """List transactions, newest first.

        Without criteria the listing covers the current month to date.
        """
        require_owner(owner)
        if criteria is None:
            criteria = TransactionFilter(dates=DateRange.month_to_date())
        criteria.dates.validate()
        return self.db.list_transactions(owner, criteria)

    def update_transaction(
        self,
        owner: str,
        transaction_id: int,
        account_id: Optional[int] = None,
        amount: Optional[int] = None,
        date: Optional[date] = None,
        payee: Optional[str] = None,
        notes: Optional[str] = None,
        category_id: Optional[int] = None,
        clear_category: bool = False,
    ) -> None:
        """Update transaction fields.

        Args:
            owner: Caller identity
            transaction_id: Transaction ID to update
            account_id: Optional new account ID
            amount: Optional new amount
            date: Optional new date
            payee: Optional new payee
            notes: Optional new notes
            category_id: Optional new category ID
            clear_category: If True, clear the category (category_id must be None)

        Raises:
            NotFoundError: If the transaction, account or category is missing
            StructuralProtectionError: If the transaction is system generated
            ValidationError: If category_id and clear_category are both given
        """
        txn = self._require_user_created(owner, transaction_id, "edited")
        if clear_category and category_id is not None:
            raise ValidationError("Cannot set both category_id and clear_category", field="category_id")

        new_account_id = account_id if account_id is not None else txn.account_id
        if clear_category:
            new_category_id = None
        else:
            new_category_id = category_id if category_id is not None else txn.category_id
        self._check_references(owner, new_account_id, new_category_id)

        self.db.update_transaction(
            transaction_id=transaction_id,
            account_id=new_account_id,
            amount=amount if amount is not None else txn.amount,
            date=date or txn.date,
            payee=payee if payee is not None else txn.payee,
            notes=notes if notes is not None else txn.notes,
            category_id=new_category_id,
        )
        logger.info("Updated transaction %s", transaction_id)

    def delete_transaction(self, owner: str, transaction_id: int) -> None:
        """Delete a user transaction.

        Raises:
            NotFoundError: If the transaction is missing or not owned
            StructuralProtectionError: If the transaction is system generated
        """
        self._require_user_created(owner, transaction_id, "deleted")
        self.db.delete_transactions([transaction_id])
        logger.info("Deleted transaction %s", transaction_id)

    def bulk_delete_transactions(self, owner: str, transaction_ids: Iterable[int]) -> list[int]:
        """Delete the owned USER_CREATED subset of transaction_ids.

        Rows that are missing, foreign or system generated are skipped.

        Returns:
            IDs that were actually deleted
        """
        require_owner(owner)
        eligible = self.db.user_created_transaction_ids(owner, transaction_ids)
        deleted = self.db.delete_transactions(eligible)
        logger.info("Bulk deleted %d transaction(s) for %s", len(deleted), owner)
        return deleted
