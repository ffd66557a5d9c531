"""Account domain service."""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from fundtrack.database.base import Database
from fundtrack.domain.entities import (
    Account as AccountEntity,
    AccountBalance,
    AccountType,
    CreditCardSettings,
    TransactionType,
)
from fundtrack.domain.errors import NotFoundError, ValidationError, account_not_found, require_owner

logger = logging.getLogger(__name__)

DEFAULT_MINIMUM_PAYMENT_PERCENTAGE = Decimal(2)


def validate_credit_card_settings(settings: Optional[CreditCardSettings]) -> CreditCardSettings:
    """Check the billing configuration of a CREDIT_CARD account.

    Args:
        settings: Billing configuration to check

    Returns:
        The settings, unchanged

    Raises:
        ValidationError: If a close-day or due-day strategy is missing, or a
            value is out of range
    """
    if settings is None:
        raise ValidationError(
            "Credit card accounts need a statement close day and a payment due day",
            field="credit_card",
        )
    if settings.statement_close_day is None and not settings.statement_close_is_eom:
        raise ValidationError(
            "Set a statement close day or mark the statement as closing at end of month",
            field="statement_close_day",
        )
    if settings.payment_due_day is None and settings.payment_due_days is None:
        raise ValidationError(
            "Set a payment due day or a number of days after statement close",
            field="payment_due_day",
        )
    for field, day in (
        ("statement_close_day", settings.statement_close_day),
        ("payment_due_day", settings.payment_due_day),
    ):
        if day is not None and not 1 <= day <= 31:
            raise ValidationError(f"{field} must be between 1 and 31", field=field)
    if settings.payment_due_days is not None and settings.payment_due_days < 0:
        raise ValidationError("payment_due_days cannot be negative", field="payment_due_days")
    pct = settings.minimum_payment_percentage
    if pct is not None and not Decimal(0) <= pct <= Decimal(100):
        raise ValidationError(
            "Minimum payment percentage must be between 0 and 100",
            field="minimum_payment_percentage",
        )
    if settings.credit_limit is not None and settings.credit_limit < 0:
        raise ValidationError("Credit limit cannot be negative", field="credit_limit")
    if settings.apr is not None and settings.apr < 0:
        raise ValidationError("APR cannot be negative", field="apr")
    return settings


class AccountService:
    """Service for managing accounts."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db

    def _check_name(self, owner: str, name: str, account_id: Optional[int] = None) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Account name is required", field="name")
        for acc in self.db.list_accounts(owner):
            if acc.id != account_id and acc.name == name:
                raise ValidationError(f"Account with name '{name}' already exists", field="name")
        return name

    def create_account(
        self,
        owner: str,
        name: str,
        account_type: AccountType = AccountType.BANK,
        starting_balance: int = 0,
        is_hidden: bool = False,
        credit_card: Optional[CreditCardSettings] = None,
        opened_on: Optional[date] = None,
    ) -> int:
        """Create a new account.

        A non-zero starting balance is recorded as one INITIAL_BALANCE
        transaction dated ``opened_on`` (today by default).

        Args:
            owner: Caller identity
            name: Account name, unique among the owner's live accounts
            account_type: Kind of account
            starting_balance: Opening balance in milli-units
            is_hidden: Exclude from default balance summaries
            credit_card: Billing configuration, required for CREDIT_CARD
            opened_on: Date of the opening balance transaction

        Returns:
            Account ID

        Raises:
            ValidationError: If the name is empty or taken, or billing settings are invalid
        """
        require_owner(owner)
        name = self._check_name(owner, name)
        if account_type == AccountType.CREDIT_CARD:
            validate_credit_card_settings(credit_card)
        else:
            credit_card = None

        with self.db.atomic():
            account_id = self.db.create_account(
                owner=owner,
                name=name,
                account_type=account_type,
                is_hidden=is_hidden,
                credit_card=credit_card,
            )
            if starting_balance:
                self.db.create_transaction(
                    account_id=account_id,
                    amount=starting_balance,
                    type=TransactionType.INITIAL_BALANCE,
                    date=opened_on or date.today(),
                    payee="Initial balance",
                )
        logger.info("Created account %s (%s) for %s", account_id, account_type.value, owner)
        return account_id

    def get_account(self, owner: str, account_id: int) -> Optional[AccountEntity]:
        """Get account by ID.

        Returns:
            Account entity or None if not found
        """
        require_owner(owner)
        return self.db.get_account(owner, account_id)

    def require_account(self, owner: str, account_id: int) -> AccountEntity:
        """Get an account, raising NotFoundError if it is missing or not owned."""
        account = self.get_account(owner, account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    def list_accounts(
        self, owner: str, account_type: Optional[AccountType] = None
    ) -> list[AccountEntity]:
        """List the owner's live accounts, visible ones first."""
        require_owner(owner)
        return self.db.list_accounts(owner, account_type=account_type)

    def list_account_balances(
        self, owner: str, as_of: Optional[date] = None
    ) -> list[AccountBalance]:
        """List the owner's accounts with their balance as of a date (today by default)."""
        as_of = as_of or date.today()
        return [
            AccountBalance(
                account=acc,
                balance=self.db.sum_transactions(owner, as_of, account_id=acc.id, include_hidden=True),
            )
            for acc in self.list_accounts(owner)
        ]

    def update_account(
        self,
        owner: str,
        account_id: int,
        name: Optional[str] = None,
        account_type: Optional[AccountType] = None,
        is_hidden: Optional[bool] = None,
        credit_card: Optional[CreditCardSettings] = None,
    ) -> None:
        """Edit an account; fields left as None keep their value.

        Raises:
            NotFoundError: If the account is missing or not owned
            ValidationError: If the new name is taken or billing settings are invalid
        """
        account = self.require_account(owner, account_id)
        new_name = self._check_name(owner, name, account_id) if name is not None else account.name
        new_type = account_type or account.account_type
        settings = credit_card or account.credit_card
        if new_type == AccountType.CREDIT_CARD:
            validate_credit_card_settings(settings)
        else:
            settings = None

        self.db.update_account(
            account_id=account_id,
            name=new_name,
            account_type=new_type,
            is_hidden=account.is_hidden if is_hidden is None else is_hidden,
            credit_card=settings,
        )
        logger.info("Updated account %s", account_id)

    def delete_account(self, owner: str, account_id: int) -> None:
        """Soft-delete an account; its transactions stop counting toward balances."""
        self.require_account(owner, account_id)
        self.db.soft_delete_accounts(owner, [account_id])
        logger.info("Deleted account %s", account_id)

    def bulk_delete_accounts(self, owner: str, account_ids: Iterable[int]) -> list[int]:
        """Soft-delete the subset of account_ids owned by the caller.

        Returns:
            IDs that were actually deleted
        """
        require_owner(owner)
        deleted = self.db.soft_delete_accounts(owner, account_ids)
        logger.info("Bulk deleted %d account(s) for %s", len(deleted), owner)
        return deleted
