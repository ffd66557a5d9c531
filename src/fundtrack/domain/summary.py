"""Period summaries over the transaction log.

Income and expenses only count USER_CREATED rows, so transfer legs, asset
legs and opening balances never show up as earnings or spending. The
remaining balance is the ordinary balance at the end of the period.
"""

import logging
from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from dateutil.relativedelta import relativedelta

from fundtrack.database.base import Database
from fundtrack.domain.entities import (
    CategorySpending,
    DailyActivity,
    PayeeSpending,
    PeriodSummary,
    Transaction,
    TransactionType,
)
from fundtrack.domain.errors import NotFoundError, account_not_found, require_owner
from fundtrack.domain.filters import DateRange, TransactionFilter

logger = logging.getLogger(__name__)

PAYEE_HISTORY_MONTHS = 6
PERCENT_STEP = Decimal("0.01")


def percentage_change(current: int, previous: int) -> Decimal:
    """Change from previous to current in percent, to two places.

    Any move away from zero counts as 100 percent.
    """
    if previous == 0:
        return Decimal(0) if current == 0 else Decimal(100)
    change = Decimal(current - previous) / Decimal(previous) * 100
    return change.quantize(PERCENT_STEP, rounding=ROUND_HALF_UP)


def _user_rows(transactions: Iterable[Transaction]) -> list[Transaction]:
    return [txn for txn in transactions if txn.type == TransactionType.USER_CREATED]


def income_and_expenses(transactions: Iterable[Transaction]) -> tuple[int, int]:
    """Sum user-entered rows into (income, expenses); expenses stay negative."""
    income = 0
    expenses = 0
    for txn in _user_rows(transactions):
        if txn.amount >= 0:
            income += txn.amount
        else:
            expenses += txn.amount
    return income, expenses


def daily_activity(transactions: Iterable[Transaction], start: date, end: date) -> list[DailyActivity]:
    """Income and expenses per day from start to end, with quiet days as zero."""
    income: dict[date, int] = defaultdict(int)
    expenses: dict[date, int] = defaultdict(int)
    for txn in _user_rows(transactions):
        if txn.amount >= 0:
            income[txn.date] += txn.amount
        else:
            expenses[txn.date] += txn.amount

    days = []
    current = start
    while current <= end:
        days.append(DailyActivity(date=current, income=income.get(current, 0), expenses=expenses.get(current, 0)))
        current += timedelta(days=1)
    return days


def spending_by_category(
    transactions: Iterable[Transaction], category_names: dict[int, str]
) -> list[CategorySpending]:
    """Debits grouped by category, largest first. Uncategorized rows are left out."""
    totals: dict[int, int] = defaultdict(int)
    for txn in transactions:
        if txn.amount < 0 and txn.category_id is not None:
            totals[txn.category_id] -= txn.amount
    spending = [
        CategorySpending(category_id=category_id, name=category_names.get(category_id, str(category_id)), amount=amount)
        for category_id, amount in totals.items()
    ]
    spending.sort(key=lambda item: (-item.amount, item.name))
    return spending


def spending_by_payee(transactions: Iterable[Transaction]) -> dict[str, int]:
    """Net amount of user-entered rows per payee."""
    totals: dict[str, int] = defaultdict(int)
    for txn in _user_rows(transactions):
        totals[txn.payee or ""] += txn.amount
    return dict(totals)


class SummaryService:
    """Read-only income and spending reports."""

    def __init__(self, db: Database):
        """Initialize summary service.

        Args:
            db: Database instance
        """
        self.db = db

    def _period(
        self, start_date: Optional[date], end_date: Optional[date], today: Optional[date]
    ) -> DateRange:
        default = DateRange.month_to_date(today)
        period = DateRange(start=start_date or default.start, end=end_date or default.end)
        period.validate()
        return period

    def _transactions(
        self, owner: str, start: date, end: date, account_id: Optional[int]
    ) -> list[Transaction]:
        return self.db.list_transactions(
            owner, TransactionFilter(dates=DateRange(start=start, end=end), account_id=account_id)
        )

    def _check_account(self, owner: str, account_id: Optional[int]) -> None:
        if account_id is not None and self.db.get_account(owner, account_id) is None:
            raise NotFoundError(account_not_found(account_id))

    def period_summary(
        self,
        owner: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[int] = None,
        today: Optional[date] = None,
    ) -> PeriodSummary:
        """Summarize a date range and compare it with the range just before it.

        Args:
            owner: Caller identity
            start_date: First day (start of the current month by default)
            end_date: Last day (today by default)
            account_id: Restrict the report to one account
            today: Reference day for the defaults

        Returns:
            PeriodSummary with per-category spending and a daily series

        Raises:
            ValidationError: If start_date is after end_date
            NotFoundError: If the account is not owned
        """
        require_owner(owner)
        period = self._period(start_date, end_date, today)
        self._check_account(owner, account_id)

        length = timedelta(days=(period.end - period.start).days + 1)
        previous_start = period.start - length
        previous_end = period.end - length

        current = self._transactions(owner, period.start, period.end, account_id)
        income, expenses = income_and_expenses(current)
        previous_income, previous_expenses = income_and_expenses(
            self._transactions(owner, previous_start, previous_end, account_id)
        )

        # A single account is reported even when it is hidden
        include_hidden = account_id is not None
        remaining = self.db.sum_transactions(
            owner, period.end, account_id=account_id, include_hidden=include_hidden
        )
        previous_remaining = self.db.sum_transactions(
            owner, previous_end, account_id=account_id, include_hidden=include_hidden
        )

        names = {category.id: category.name for category in self.db.list_categories(owner)}
        logger.debug(
            "Summary for %s from %s to %s: %d rows", owner, period.start, period.end, len(current)
        )
        return PeriodSummary(
            start_date=period.start,
            end_date=period.end,
            account_id=account_id,
            income=income,
            income_change=percentage_change(income, previous_income),
            expenses=expenses,
            expense_change=percentage_change(expenses, previous_expenses),
            remaining=remaining,
            remaining_change=percentage_change(remaining, previous_remaining),
            categories=tuple(spending_by_category(current, names)),
            days=tuple(daily_activity(current, period.start, period.end)),
        )

    def payee_spending(
        self,
        owner: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[int] = None,
        today: Optional[date] = None,
    ) -> list[PayeeSpending]:
        """Net amount per payee, with the same window in each of the prior months.

        Up to six earlier months are included, dropping the oldest ones with
        no activity at all. Payees are ordered by the absolute size of their
        current amount.
        """
        require_owner(owner)
        period = self._period(start_date, end_date, today)
        self._check_account(owner, account_id)

        current = spending_by_payee(self._transactions(owner, period.start, period.end, account_id))
        history = []
        for offset in range(1, PAYEE_HISTORY_MONTHS + 1):
            shift = relativedelta(months=offset)
            history.append(
                spending_by_payee(
                    self._transactions(owner, period.start - shift, period.end - shift, account_id)
                )
            )
        while history and not history[-1]:
            history.pop()

        payees = dict.fromkeys(current)
        for month in history:
            payees.update(dict.fromkeys(month))

        result = [
            PayeeSpending(
                payee=payee,
                amount=current.get(payee, 0),
                previous_amounts=tuple(month.get(payee, 0) for month in history),
            )
            for payee in payees
        ]
        result.sort(key=lambda item: abs(item.amount), reverse=True)
        return result
