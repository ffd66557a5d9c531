"""Transfer reconciler.

A transfer owns one ledger row per tracked side: the from-side is debited
``amount + transfer_charge`` and the to-side credited ``amount``. Rows are
PEER_TRANSFER when both sides are tracked and SELF_TRANSFER when money
crosses the boundary of the tracked system.
"""

import logging
from datetime import date
from typing import Iterable, Optional

from fundtrack.database.base import Database
from fundtrack.domain.credit_card import refresh_payment_status
from fundtrack.domain.entities import Transaction, Transfer, TransferDraft, TransactionType
from fundtrack.domain.errors import (
    NotFoundError,
    ValidationError,
    account_not_found,
    require_owner,
    statement_not_found,
    transfer_not_found,
)
from fundtrack.domain.filters import DateRange, TransferFilter

logger = logging.getLogger(__name__)

FROM_PAYEE = "Transferred to another account"
TO_PAYEE = "Transferred from another account"


def leg_type(from_account_id: Optional[int], to_account_id: Optional[int]) -> TransactionType:
    """Ledger type for the legs of a transfer with the given sides."""
    if from_account_id is not None and to_account_id is not None:
        return TransactionType.PEER_TRANSFER
    return TransactionType.SELF_TRANSFER


def split_legs(legs: Iterable[Transaction]) -> tuple[Optional[Transaction], Optional[Transaction]]:
    """Return the (from, to) ledger rows of a transfer, told apart by sign."""
    from_leg = None
    to_leg = None
    for leg in legs:
        if leg.amount < 0:
            from_leg = leg
        else:
            to_leg = leg
    return from_leg, to_leg


class TransferService:
    """Service for transfers and the ledger rows they own."""

    def __init__(self, db: Database):
        """Initialize transfer service.

        Args:
            db: Database instance
        """
        self.db = db

    def _validate(self, owner: str, draft: TransferDraft) -> None:
        if draft.amount <= 0:
            raise ValidationError("Transfer amount must be positive", field="amount")
        if draft.transfer_charge < 0:
            raise ValidationError("Transfer charge cannot be negative", field="transfer_charge")
        if draft.from_account_id is None and draft.to_account_id is None:
            raise ValidationError(
                "A transfer needs a from account, a to account, or both", field="from_account_id"
            )
        if draft.from_account_id is not None and draft.from_account_id == draft.to_account_id:
            raise ValidationError("Cannot transfer to the same account", field="to_account_id")
        for account_id in (draft.from_account_id, draft.to_account_id):
            if account_id is not None and self.db.get_account(owner, account_id) is None:
                raise NotFoundError(account_not_found(account_id))
        if draft.credit_card_statement_id is not None:
            statement = self.db.get_credit_card_statement(owner, draft.credit_card_statement_id)
            if statement is None:
                raise NotFoundError(statement_not_found(draft.credit_card_statement_id))
            if statement.account_id != draft.to_account_id:
                raise ValidationError(
                    "A statement payment must transfer into the credit card account",
                    field="credit_card_statement_id",
                )

    def _reconcile_leg(
        self,
        transfer_id: int,
        existing: Optional[Transaction],
        account_id: Optional[int],
        amount: int,
        draft: TransferDraft,
        payee: str,
    ) -> None:
        """Bring one side's ledger row in line with the transfer.

        absent -> present inserts, present -> present updates in place,
        present -> absent deletes, absent -> absent does nothing.
        """
        type = leg_type(draft.from_account_id, draft.to_account_id)
        if account_id is None:
            if existing is not None:
                self.db.delete_transactions([existing.id])
            return
        if existing is None:
            self.db.create_transaction(
                account_id=account_id,
                amount=amount,
                type=type,
                date=draft.date,
                payee=payee,
                notes=draft.notes,
                transfer_id=transfer_id,
            )
            return
        self.db.update_transaction(
            transaction_id=existing.id,
            account_id=account_id,
            amount=amount,
            date=draft.date,
            payee=existing.payee or payee,
            notes=draft.notes,
            category_id=existing.category_id,
            type=type,
        )

    def _reconcile(self, transfer_id: int, draft: TransferDraft) -> None:
        from_leg, to_leg = split_legs(self.db.list_transfer_transactions(transfer_id))
        self._reconcile_leg(
            transfer_id,
            from_leg,
            draft.from_account_id,
            -(draft.amount + draft.transfer_charge),
            draft,
            FROM_PAYEE,
        )
        self._reconcile_leg(transfer_id, to_leg, draft.to_account_id, draft.amount, draft, TO_PAYEE)

    def create_transfer(
        self,
        owner: str,
        amount: int,
        date: date,
        from_account_id: Optional[int] = None,
        to_account_id: Optional[int] = None,
        transfer_charge: int = 0,
        notes: Optional[str] = None,
        credit_card_statement_id: Optional[int] = None,
    ) -> int:
        """Create a transfer and its ledger rows.

        Args:
            owner: Caller identity
            amount: Amount received by the to-side, in milli-units
            date: Transfer date
            from_account_id: Debited account, None for money entering from outside
            to_account_id: Credited account, None for money leaving the system
            transfer_charge: Fee paid by the from-side on top of amount
            notes: Optional notes copied to the ledger rows
            credit_card_statement_id: Statement this transfer pays

        Returns:
            Transfer ID

        Raises:
            ValidationError: If neither side is set or amounts are invalid
            NotFoundError: If a referenced account or statement is not owned
        """
        require_owner(owner)
        draft = TransferDraft(
            amount=amount,
            date=date,
            from_account_id=from_account_id,
            to_account_id=to_account_id,
            transfer_charge=transfer_charge,
            notes=notes,
            credit_card_statement_id=credit_card_statement_id,
        )
        return self.create_from_draft(owner, draft)

    def create_from_draft(self, owner: str, draft: TransferDraft) -> int:
        """Create a transfer from a prepared draft (see create_transfer)."""
        require_owner(owner)
        self._validate(owner, draft)
        with self.db.atomic():
            transfer_id = self.db.create_transfer(
                owner=owner,
                amount=draft.amount,
                transfer_charge=draft.transfer_charge,
                date=draft.date,
                from_account_id=draft.from_account_id,
                to_account_id=draft.to_account_id,
                notes=draft.notes,
                credit_card_statement_id=draft.credit_card_statement_id,
            )
            self._reconcile(transfer_id, draft)
            if draft.credit_card_statement_id is not None:
                refresh_payment_status(self.db, owner, draft.credit_card_statement_id)
        logger.info(
            "Created transfer %s (%s -> %s)", transfer_id, draft.from_account_id, draft.to_account_id
        )
        return transfer_id

    def get_transfer(self, owner: str, transfer_id: int) -> Optional[Transfer]:
        """Get transfer by ID, or None if not found."""
        require_owner(owner)
        return self.db.get_transfer(owner, transfer_id)

    def require_transfer(self, owner: str, transfer_id: int) -> Transfer:
        transfer = self.get_transfer(owner, transfer_id)
        if transfer is None:
            raise NotFoundError(transfer_not_found(transfer_id))
        return transfer

    def list_transfers(self, owner: str, criteria: Optional[TransferFilter] = None) -> list[Transfer]:
        """List transfers, newest first; defaults to the current month to date."""
        require_owner(owner)
        if criteria is None:
            criteria = TransferFilter(dates=DateRange.month_to_date())
        criteria.dates.validate()
        return self.db.list_transfers(owner, criteria)

    def list_transfer_transactions(self, owner: str, transfer_id: int) -> list[Transaction]:
        """Ledger rows owned by a transfer."""
        self.require_transfer(owner, transfer_id)
        return self.db.list_transfer_transactions(transfer_id)

    def update_transfer(
        self,
        owner: str,
        transfer_id: int,
        amount: Optional[int] = None,
        date: Optional[date] = None,
        from_account_id: Optional[int] = None,
        to_account_id: Optional[int] = None,
        transfer_charge: Optional[int] = None,
        notes: Optional[str] = None,
        credit_card_statement_id: Optional[int] = None,
        clear_from_account: bool = False,
        clear_to_account: bool = False,
        clear_statement: bool = False,
    ) -> None:
        """Edit a transfer and reconcile its ledger rows side by side.

        Fields left as None keep their value; the clear_* flags unset a side
        or the statement link.

        Raises:
            NotFoundError: If the transfer or a referenced account is not owned
            ValidationError: If the edit leaves no side set or amounts are invalid
        """
        existing = self.require_transfer(owner, transfer_id)
        if clear_from_account and from_account_id is not None:
            raise ValidationError("Cannot set and clear the from account", field="from_account_id")
        if clear_to_account and to_account_id is not None:
            raise ValidationError("Cannot set and clear the to account", field="to_account_id")

        def pick(value, current, clear=False):
            if clear:
                return None
            return current if value is None else value

        draft = TransferDraft(
            amount=pick(amount, existing.amount),
            date=pick(date, existing.date),
            from_account_id=pick(from_account_id, existing.from_account_id, clear_from_account),
            to_account_id=pick(to_account_id, existing.to_account_id, clear_to_account),
            transfer_charge=pick(transfer_charge, existing.transfer_charge),
            notes=pick(notes, existing.notes),
            credit_card_statement_id=pick(
                credit_card_statement_id, existing.credit_card_statement_id, clear_statement
            ),
        )
        self._validate(owner, draft)

        with self.db.atomic():
            self.db.update_transfer(
                transfer_id=transfer_id,
                amount=draft.amount,
                transfer_charge=draft.transfer_charge,
                date=draft.date,
                from_account_id=draft.from_account_id,
                to_account_id=draft.to_account_id,
                notes=draft.notes,
                credit_card_statement_id=draft.credit_card_statement_id,
            )
            self._reconcile(transfer_id, draft)
            for statement_id in {existing.credit_card_statement_id, draft.credit_card_statement_id}:
                if statement_id is not None:
                    refresh_payment_status(self.db, owner, statement_id)
        logger.info("Updated transfer %s", transfer_id)

    def delete_transfer(self, owner: str, transfer_id: int) -> None:
        """Delete a transfer together with its ledger rows."""
        transfer = self.require_transfer(owner, transfer_id)
        with self.db.atomic():
            self.db.delete_transfer(transfer_id)
            if transfer.credit_card_statement_id is not None:
                refresh_payment_status(self.db, owner, transfer.credit_card_statement_id)
        logger.info("Deleted transfer %s", transfer_id)

    def bulk_delete_transfers(self, owner: str, transfer_ids: Iterable[int]) -> list[int]:
        """Delete the subset of transfer_ids owned by the caller.

        Returns:
            IDs that were actually deleted
        """
        require_owner(owner)
        deleted = []
        for transfer_id in self.db.owned_transfer_ids(owner, transfer_ids):
            self.delete_transfer(owner, transfer_id)
            deleted.append(transfer_id)
        logger.info("Bulk deleted %d transfer(s) for %s", len(deleted), owner)
        return deleted
