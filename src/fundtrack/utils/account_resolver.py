"""Utility for resolving account names to IDs."""

from fundtrack.domain.account import AccountService
from fundtrack.domain.errors import NotFoundError


def resolve_account(account_service: AccountService, owner: str, account: str | int) -> int:
    """Resolve account name or ID to account ID.

    Args:
        account_service: AccountService instance
        owner: Caller identity the account must belong to
        account: Account name (str) or ID (int or string representation of int)

    Returns:
        Account ID

    Raises:
        NotFoundError: If account is not found for the owner
    """
    if isinstance(account, int):
        account_service.require_account(owner, account)
        return account

    try:
        account_id = int(account)
    except (ValueError, TypeError):
        account_id = None

    if account_id is not None:
        account_service.require_account(owner, account_id)
        return account_id

    for acc in account_service.list_accounts(owner):
        if acc.name == account:
            return acc.id

    raise NotFoundError(f"Account '{account}' not found")
