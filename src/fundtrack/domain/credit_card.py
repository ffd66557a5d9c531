"""Credit card billing-cycle engine.

Per cycle a card is OPEN until a statement row exists for its close date
(CLOSED), and PAID once linked payment transfers cover the amount due.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from fundtrack.database.base import Database
from fundtrack.domain import billing_cycle
from fundtrack.domain.account import DEFAULT_MINIMUM_PAYMENT_PERCENTAGE
from fundtrack.domain.entities import (
    Account,
    AccountType,
    CreditCardStatement,
    CreditCardSummary,
    StatementPreview,
    UpcomingStatement,
)
from fundtrack.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    payment_below_minimum,
    require_owner,
    statement_already_closed,
    statement_not_found,
)
from fundtrack.domain.filters import StatementFilter

logger = logging.getLogger(__name__)


def refresh_payment_status(db: Database, owner: str, statement_id: int) -> None:
    """Recompute a statement's paid state from the transfers linked to it.

    Only transfers landing in the card account count as payments. The
    statement is paid once they cover the amount due; paid_at is the date
    of the latest one.
    """
    statement = db.get_credit_card_statement(owner, statement_id)
    if statement is None:
        return
    payments = [
        t for t in db.list_statement_transfers(statement_id) if t.to_account_id == statement.account_id
    ]
    paid_amount = sum(t.amount for t in payments)
    is_paid = bool(payments) and paid_amount >= statement.payment_due_amount
    paid_at = max(t.date for t in payments) if is_paid else None
    db.update_statement_payment_status(statement_id, paid_amount, is_paid, paid_at)
    logger.debug("Statement %s paid %d of %d", statement_id, paid_amount, statement.payment_due_amount)


class CreditCardService:
    """Service for credit card statements and card summaries."""

    def __init__(self, db: Database):
        """Initialize credit card service.

        Args:
            db: Database instance
        """
        self.db = db

    def _require_card(self, owner: str, account_id: int) -> Account:
        require_owner(owner)
        account = self.db.get_account(owner, account_id)
        if account is None or account.account_type != AccountType.CREDIT_CARD:
            raise NotFoundError(f"Credit card account {account_id} not found")
        return account

    def _balance(self, owner: str, account_id: int, as_of: date) -> int:
        return self.db.sum_transactions(owner, as_of, account_id=account_id, include_hidden=True)

    def preview_statement(self, owner: str, account_id: int, today: Optional[date] = None) -> StatementPreview:
        """Compute the statement that closing the current cycle would produce.

        Args:
            owner: Caller identity
            account_id: Credit card account ID
            today: Reference day (today by default)

        Returns:
            StatementPreview for the most recent close date

        Raises:
            NotFoundError: If the account is not an owned credit card
            ConflictError: If a statement already exists for that close date
        """
        account = self._require_card(owner, account_id)
        settings = account.credit_card
        today = today or date.today()

        statement_date = billing_cycle.most_recent_close_date(today, settings)
        if self.db.find_statement_by_close_date(account_id, statement_date) is not None:
            raise ConflictError(statement_already_closed(account_id))

        statement_balance = max(0, -self._balance(owner, account_id, statement_date))
        percentage = settings.minimum_payment_percentage
        if percentage is None:
            percentage = DEFAULT_MINIMUM_PAYMENT_PERCENTAGE
        return StatementPreview(
            account_id=account_id,
            period_start=billing_cycle.period_start(statement_date, settings),
            statement_date=statement_date,
            due_date=billing_cycle.payment_due_date(statement_date, settings),
            statement_balance=statement_balance,
            payment_due_amount=statement_balance,
            minimum_payment=billing_cycle.minimum_payment(statement_balance, percentage),
            minimum_payment_percentage=Decimal(percentage),
        )

    def close_statement(
        self,
        owner: str,
        account_id: int,
        payment_due_override: Optional[int] = None,
        today: Optional[date] = None,
    ) -> int:
        """Close the current billing cycle and persist its statement.

        Args:
            owner: Caller identity
            account_id: Credit card account ID
            payment_due_override: Amount due to record instead of the full balance
            today: Reference day (today by default)

        Returns:
            Statement ID

        Raises:
            NotFoundError: If the account is not an owned credit card
            ValidationError: If the override is below the minimum payment
            ConflictError: If the period was already closed, including by a
                concurrent close that won the insert
        """
        with self.db.atomic():
            preview = self.preview_statement(owner, account_id, today)
            payment_due_amount = preview.payment_due_amount
            if payment_due_override is not None:
                payment_due_amount = payment_due_override
            if payment_due_amount < 0:
                raise ValidationError("Payment due amount cannot be negative", field="payment_due_amount")
            if payment_due_amount < preview.minimum_payment:
                raise ValidationError(
                    payment_below_minimum(payment_due_amount, preview.minimum_payment),
                    field="payment_due_amount",
                )
            statement_id = self.db.create_credit_card_statement(
                owner=owner,
                preview=preview,
                payment_due_amount=payment_due_amount,
                is_payment_due_overridden=payment_due_amount != preview.payment_due_amount,
            )
        logger.info(
            "Closed statement %s for account %s on %s", statement_id, account_id, preview.statement_date
        )
        return statement_id

    def get_statement(self, owner: str, statement_id: int) -> CreditCardStatement:
        """Get a statement, raising NotFoundError if missing or not owned."""
        require_owner(owner)
        statement = self.db.get_credit_card_statement(owner, statement_id)
        if statement is None:
            raise NotFoundError(statement_not_found(statement_id))
        return statement

    def edit_statement(self, owner: str, statement_id: int, payment_due_amount: int) -> None:
        """Override the amount due of a closed statement.

        Raises:
            NotFoundError: If the statement is missing or not owned
            ValidationError: If the amount is below the minimum recorded at close
        """
        statement = self.get_statement(owner, statement_id)
        if payment_due_amount < statement.minimum_payment:
            raise ValidationError(
                payment_below_minimum(payment_due_amount, statement.minimum_payment),
                field="payment_due_amount",
            )
        with self.db.atomic():
            self.db.update_statement_payment_due(statement_id, payment_due_amount)
            refresh_payment_status(self.db, owner, statement_id)
        logger.info("Overrode payment due of statement %s to %d", statement_id, payment_due_amount)

    def list_statements(
        self, owner: str, criteria: Optional[StatementFilter] = None
    ) -> list[CreditCardStatement]:
        """List statements, newest close date first."""
        require_owner(owner)
        return self.db.list_credit_card_statements(owner, criteria or StatementFilter())

    def next_statement(
        self, owner: str, account_id: int, today: Optional[date] = None
    ) -> Optional[UpcomingStatement]:
        """Earliest-due unpaid statement with days until due and interest estimate."""
        account = self._require_card(owner, account_id)
        statement = self.db.next_unpaid_statement(account_id)
        if statement is None:
            return None
        today = today or date.today()
        return UpcomingStatement(
            statement=statement,
            days_until_due=(statement.due_date - today).days,
            interest_estimate=billing_cycle.interest_estimate(
                statement.payment_due_amount, account.credit_card.apr
            ),
        )

    def summarize_card(self, owner: str, account_id: int, today: Optional[date] = None) -> CreditCardSummary:
        """Balance, utilization and next statement of one card."""
        account = self._require_card(owner, account_id)
        today = today or date.today()
        balance = self._balance(owner, account_id, today)
        owed = max(0, -balance)
        limit = account.credit_card.credit_limit or 0
        return CreditCardSummary(
            account=account,
            current_balance=balance,
            current_owed=owed,
            utilization=Decimal(owed) / Decimal(limit) if limit > 0 else None,
            available_credit=max(0, limit - owed) if limit > 0 else None,
            next_statement=self.next_statement(owner, account_id, today),
        )

    def list_credit_cards(self, owner: str, today: Optional[date] = None) -> list[CreditCardSummary]:
        """Summaries of the owner's credit card accounts, by name."""
        require_owner(owner)
        cards = sorted(
            self.db.list_accounts(owner, account_type=AccountType.CREDIT_CARD), key=lambda acc: acc.name
        )
        return [self.summarize_card(owner, card.id, today) for card in cards]

    def refresh_payment_status(self, owner: str, statement_id: int) -> CreditCardStatement:
        """Recompute and return a statement's paid state."""
        self.get_statement(owner, statement_id)
        refresh_payment_status(self.db, owner, statement_id)
        return self.get_statement(owner, statement_id)
