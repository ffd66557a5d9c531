"""Recurring payment scheduler.

Recurring payments never move money on their own. Completion is two
phases: ``propose_completion`` returns a pre-filled draft for the caller to
record through TransactionService or TransferService, and only after that
write succeeds does the caller stamp the template with ``complete``.
"""

import dataclasses
import logging
from datetime import date, timedelta
from typing import Optional

from dateutil.relativedelta import relativedelta

from fundtrack.database.base import Database
from fundtrack.domain.entities import (
    Cadence,
    RecurringPayment,
    RecurringProposal,
    RecurringType,
    ScheduledPayment,
    TransactionDraft,
    TransferDraft,
)
from fundtrack.domain.errors import (
    NotFoundError,
    ValidationError,
    account_not_found,
    category_not_found,
    recurring_payment_not_found,
    require_owner,
)
from fundtrack.utils.date_parser import clamp_day_of_month

logger = logging.getLogger(__name__)

# Fields a caller may change after creation
EDITABLE_FIELDS = frozenset(
    {
        "name",
        "type",
        "cadence",
        "amount",
        "transfer_charge",
        "account_id",
        "to_account_id",
        "category_id",
        "notes",
        "start_date",
        "day_of_month",
        "month",
        "is_active",
    }
)


def _anchor(value: date, payment: RecurringPayment) -> date:
    """Pin value to the payment's configured month and day, clamped."""
    if payment.cadence == Cadence.MONTHLY:
        day = payment.day_of_month or value.day
        return value.replace(day=clamp_day_of_month(value, day))
    if payment.cadence == Cadence.YEARLY:
        month_start = value.replace(month=payment.month or value.month, day=1)
        day = payment.day_of_month or value.day
        return month_start.replace(day=clamp_day_of_month(month_start, day))
    return value


def _step(value: date, payment: RecurringPayment) -> date:
    if payment.cadence == Cadence.DAILY:
        return value + timedelta(days=1)
    if payment.cadence == Cadence.MONTHLY:
        return value + relativedelta(months=1)
    return value + relativedelta(years=1)


def next_due_date(payment: RecurringPayment, today: date) -> date:
    """Next due date of a recurring payment as seen on ``today``.

    The seed is the last completion (advanced one cadence step) or, before
    the first completion, the start date itself. Monthly and yearly dates
    are pinned to the configured day, clamped to the month's length, so a
    day-31 payment falls on Feb 28/29 rather than rolling into March. The
    result is then stepped forward until it is no longer in the past.
    """
    if payment.last_completed_at is not None:
        due = _anchor(_step(payment.last_completed_at, payment), payment)
    else:
        due = _anchor(payment.start_date, payment)
    while due < today:
        due = _anchor(_step(due, payment), payment)
    return due


def validate_recurring_payment(payment: RecurringPayment) -> None:
    """Check the field combinations a cadence and type require."""
    if not (payment.name or "").strip():
        raise ValidationError("Name is required", field="name")
    if payment.amount < 0:
        raise ValidationError("Amount cannot be negative", field="amount")
    if payment.transfer_charge < 0:
        raise ValidationError("Transfer charge cannot be negative", field="transfer_charge")
    if payment.type == RecurringType.TRANSFER and not (payment.account_id or payment.to_account_id):
        raise ValidationError("Sender or receiver account is required for transfers", field="account_id")
    if payment.day_of_month is not None and not 1 <= payment.day_of_month <= 31:
        raise ValidationError("Day of month must be between 1 and 31", field="day_of_month")
    if payment.month is not None and not 1 <= payment.month <= 12:
        raise ValidationError("Month must be between 1 and 12", field="month")
    if payment.cadence == Cadence.MONTHLY and not payment.day_of_month:
        raise ValidationError("Day of month is required for monthly cadence", field="day_of_month")
    if payment.cadence == Cadence.YEARLY and not (payment.day_of_month and payment.month):
        raise ValidationError("Month and day are required for yearly cadence", field="month")


class RecurringPaymentService:
    """Service for recurring payment templates and their schedule."""

    def __init__(self, db: Database):
        """Initialize recurring payment service.

        Args:
            db: Database instance
        """
        self.db = db

    def _check_references(self, owner: str, payment: RecurringPayment) -> None:
        for account_id in (payment.account_id, payment.to_account_id):
            if account_id is not None and self.db.get_account(owner, account_id) is None:
                raise NotFoundError(account_not_found(account_id))
        if payment.category_id is not None and self.db.get_category(owner, payment.category_id) is None:
            raise NotFoundError(category_not_found(payment.category_id))

    def create_recurring_payment(
        self,
        owner: str,
        name: str,
        type: RecurringType,
        cadence: Cadence,
        amount: int,
        start_date: date,
        account_id: Optional[int] = None,
        to_account_id: Optional[int] = None,
        category_id: Optional[int] = None,
        transfer_charge: int = 0,
        notes: Optional[str] = None,
        day_of_month: Optional[int] = None,
        month: Optional[int] = None,
        is_active: bool = True,
    ) -> int:
        """Create a recurring payment template.

        Returns:
            Recurring payment ID

        Raises:
            ValidationError: If the cadence or type is missing required fields
            NotFoundError: If a referenced account or category is not owned
        """
        require_owner(owner)
        payment = RecurringPayment(
            id=0,
            owner=owner,
            name=(name or "").strip(),
            type=type,
            cadence=cadence,
            amount=amount,
            start_date=start_date,
            transfer_charge=transfer_charge,
            account_id=account_id,
            to_account_id=to_account_id,
            category_id=category_id,
            notes=notes,
            day_of_month=day_of_month,
            month=month,
            is_active=is_active,
        )
        validate_recurring_payment(payment)
        self._check_references(owner, payment)
        payment_id = self.db.create_recurring_payment(payment)
        logger.info("Created recurring payment %s (%s)", payment_id, cadence.value)
        return payment_id

    def get_recurring_payment(self, owner: str, payment_id: int) -> RecurringPayment:
        """Get a recurring payment, raising NotFoundError if missing or not owned."""
        require_owner(owner)
        payment = self.db.get_recurring_payment(owner, payment_id)
        if payment is None:
            raise NotFoundError(recurring_payment_not_found(payment_id))
        return payment

    def schedule(self, payment: RecurringPayment, today: Optional[date] = None) -> ScheduledPayment:
        """Attach next due date and days remaining (negative when overdue)."""
        today = today or date.today()
        due = next_due_date(payment, today)
        logger.debug("Recurring payment %s next due %s", payment.id, due)
        return ScheduledPayment(payment=payment, next_due_date=due, days_remaining=(due - today).days)

    def list_recurring_payments(self, owner: str, today: Optional[date] = None) -> list[ScheduledPayment]:
        """List the owner's recurring payments with their schedule."""
        require_owner(owner)
        return [self.schedule(p, today) for p in self.db.list_recurring_payments(owner)]

    def update_recurring_payment(self, owner: str, payment_id: int, **changes) -> RecurringPayment:
        """Change template fields.

        Args:
            owner: Caller identity
            payment_id: Recurring payment ID
            **changes: New values keyed by field name (see EDITABLE_FIELDS);
                pass None to clear an optional field

        Raises:
            ValidationError: If a field is not editable or the result is invalid
            NotFoundError: If the payment or a referenced entity is not owned
        """
        current = self.get_recurring_payment(owner, payment_id)
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            field = sorted(unknown)[0]
            raise ValidationError(f"Field '{field}' cannot be edited", field=field)
        updated = dataclasses.replace(current, **changes)
        validate_recurring_payment(updated)
        self._check_references(owner, updated)
        self.db.update_recurring_payment(updated)
        logger.info("Updated recurring payment %s", payment_id)
        return updated

    def delete_recurring_payment(self, owner: str, payment_id: int) -> None:
        self.get_recurring_payment(owner, payment_id)
        self.db.delete_recurring_payment(payment_id)
        logger.info("Deleted recurring payment %s", payment_id)

    def propose_completion(
        self, owner: str, payment_id: int, today: Optional[date] = None
    ) -> RecurringProposal:
        """Phase one of completion: the draft to record for the next due date.

        TRANSACTION templates become an outflow of ``amount`` from their
        account with the template name as payee; TRANSFER templates become a
        transfer between their accounts. Nothing is written.

        Raises:
            ValidationError: If a TRANSACTION template has no account
        """
        scheduled = self.schedule(self.get_recurring_payment(owner, payment_id), today)
        payment = scheduled.payment
        if payment.type == RecurringType.TRANSFER:
            draft = TransferDraft(
                amount=payment.amount,
                date=scheduled.next_due_date,
                from_account_id=payment.account_id,
                to_account_id=payment.to_account_id,
                transfer_charge=payment.transfer_charge,
                notes=payment.notes,
            )
        else:
            if payment.account_id is None:
                raise ValidationError(
                    "An account is required to record this payment", field="account_id"
                )
            draft = TransactionDraft(
                account_id=payment.account_id,
                amount=-payment.amount,
                date=scheduled.next_due_date,
                payee=payment.name,
                notes=payment.notes,
                category_id=payment.category_id,
            )
        return RecurringProposal(payment_id=payment_id, due_date=scheduled.next_due_date, draft=draft)

    def complete(self, owner: str, payment_id: int, completed_at: Optional[date] = None) -> None:
        """Phase two of completion: stamp last_completed_at.

        Call only after the proposed transaction or transfer was recorded.
        """
        self.get_recurring_payment(owner, payment_id)
        completed_at = completed_at or date.today()
        self.db.set_recurring_payment_completed(payment_id, completed_at)
        logger.info("Completed recurring payment %s on %s", payment_id, completed_at)
