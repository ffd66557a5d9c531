"""Balance queries derived from the transaction log.

Balances are never stored: every figure here is a sum over ledger rows
dated on or before the requested day, so it is always consistent with the
log at the moment of the query.
"""

import logging
from datetime import date
from typing import Optional

from fundtrack.database.base import Database
from fundtrack.domain.entities import NetWorthPoint, NetWorthReport
from fundtrack.domain.errors import require_owner
from fundtrack.utils.date_parser import month_starts_between

logger = logging.getLogger(__name__)


class BalanceService:
    """Read-only balance and net worth queries."""

    def __init__(self, db: Database):
        """Initialize balance service.

        Args:
            db: Database instance
        """
        self.db = db

    def compute_balance(
        self,
        owner: str,
        as_of: Optional[date] = None,
        account_id: Optional[int] = None,
        include_hidden: bool = True,
    ) -> int:
        """Sum the owner's transactions dated on or before as_of.

        Args:
            owner: Caller identity
            as_of: Inclusive cut-off date (today by default)
            account_id: Restrict the sum to one account
            include_hidden: Count transactions of hidden accounts

        Returns:
            Signed balance in milli-units
        """
        require_owner(owner)
        as_of = as_of or date.today()
        balance = self.db.sum_transactions(
            owner, as_of, account_id=account_id, include_hidden=include_hidden
        )
        logger.debug("Balance for %s account=%s as of %s: %d", owner, account_id, as_of, balance)
        return balance

    def current_owed(self, owner: str, account_id: int, as_of: Optional[date] = None) -> int:
        """Amount owed on a liability account (never negative)."""
        return max(0, -self.compute_balance(owner, as_of, account_id=account_id))

    def net_worth(
        self,
        owner: str,
        end_date: Optional[date] = None,
        start_date: Optional[date] = None,
    ) -> NetWorthReport:
        """Summarize assets, liabilities and net worth with a monthly series.

        Positive account balances count as assets and negative ones as
        liabilities (reported as a negative number). The series has one
        point per month start from ``start_date`` (the oldest transaction by
        default) plus one for ``end_date``.
        """
        require_owner(owner)
        end_date = end_date or date.today()
        if start_date is None:
            start_date = self.db.earliest_transaction_date(owner)

        assets = 0
        liabilities = 0
        for account in self.db.list_accounts(owner):
            balance = self.db.sum_transactions(owner, end_date, account_id=account.id, include_hidden=True)
            if balance > 0:
                assets += balance
            else:
                liabilities += balance

        series = []
        if start_date is not None and start_date <= end_date:
            boundaries = [d for d in month_starts_between(start_date, end_date) if d >= start_date]
            if not boundaries or boundaries[-1] != end_date:
                boundaries.append(end_date)
            series = [
                NetWorthPoint(date=d, balance=self.db.sum_transactions(owner, d, include_hidden=True))
                for d in boundaries
            ]

        return NetWorthReport(
            assets=assets,
            liabilities=liabilities,
            net_worth=assets + liabilities,
            start_date=start_date,
            end_date=end_date,
            series=tuple(series),
        )
