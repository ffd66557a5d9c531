"""Shared domain error messages and error types."""

from typing import Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class UnauthorizedError(DomainError):
    """No caller identity was resolved for the request."""


class ValidationError(DomainError):
    """Invalid input or failed business precondition.

    Attributes:
        field: Name of the offending input field, when one can be named
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotFoundError(DomainError):
    """Requested entity does not exist or is not owned by the caller."""


class StructuralProtectionError(DomainError):
    """Direct mutation of a system-generated ledger row."""


class ConflictError(DomainError):
    """Domain conflict, such as closing an already-closed statement period."""


class PersistenceError(DomainError):
    """Unexpected storage failure; the whole operation was rolled back."""


def missing_identity() -> str:
    """Return message for a request without a caller identity."""
    return "Unauthorized: no user identity was provided"


def require_owner(owner: Optional[str]) -> str:
    """Return the caller identity, raising UnauthorizedError when it is blank."""
    if owner is None or not owner.strip():
        raise UnauthorizedError(missing_identity())
    return owner


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def category_not_found(category_id: int) -> str:
    """Return message for missing category by ID."""
    return f"Category {category_id} not found"


def transaction_not_found(transaction_id: int) -> str:
    return f"Transaction {transaction_id} not found"


def transfer_not_found(transfer_id: int) -> str:
    return f"Transfer {transfer_id} not found"


def asset_not_found(asset_id: int) -> str:
    return f"Asset {asset_id} not found"


def asset_lot_not_found(lot_id: int) -> str:
    return f"Asset lot {lot_id} not found"


def statement_not_found(statement_id: int) -> str:
    return f"Credit card statement {statement_id} not found"


def recurring_payment_not_found(payment_id: int) -> str:
    return f"Recurring payment {payment_id} not found"


def system_generated_transaction(transaction_id: int, action: str) -> str:
    """Return message for an attempt to touch a non user-created transaction."""
    return (
        f"Transaction {transaction_id} is system generated and cannot be {action}. "
        "Change the transfer or asset it belongs to instead."
    )


def statement_already_closed(account_id: int) -> str:
    return f"Statement already closed for this period (account {account_id})"


def payment_below_minimum(amount: int, minimum: int) -> str:
    return (
        f"Payment due amount {amount} cannot be lower than minimum payment {minimum}"
    )
