"""Credit card billing-cycle date arithmetic.

Pure functions over calendar dates and a card's CreditCardSettings. A
statement period runs from the day after the previous close date through
the close date, inclusive.
"""

import math
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from dateutil.relativedelta import relativedelta

from fundtrack.domain.entities import CreditCardSettings
from fundtrack.utils.amount_parser import round_half_up
from fundtrack.utils.date_parser import end_of_month, with_day

DEFAULT_DUE_DAYS = 15


def close_date_for_month(reference: date, settings: CreditCardSettings) -> date:
    """Statement close date within reference's month.

    End-of-month cards close on the last calendar day; otherwise the
    configured day is clamped to the month's length. A card with neither
    closes on reference's own day.
    """
    if settings.statement_close_is_eom:
        return end_of_month(reference)
    day = settings.statement_close_day or reference.day
    return with_day(reference, day)


def most_recent_close_date(today: date, settings: CreditCardSettings) -> date:
    """This month's close date if already reached, else last month's."""
    close_this_month = close_date_for_month(today, settings)
    if close_this_month <= today:
        return close_this_month
    return close_date_for_month(today - relativedelta(months=1), settings)


def previous_close_date(statement_date: date, settings: CreditCardSettings) -> date:
    return most_recent_close_date(statement_date - timedelta(days=1), settings)


def period_start(statement_date: date, settings: CreditCardSettings) -> date:
    """First day of the period that closes on statement_date."""
    return previous_close_date(statement_date, settings) + timedelta(days=1)


def payment_due_date(statement_date: date, settings: CreditCardSettings) -> date:
    """Due date of the statement closing on statement_date.

    A positive days-after-close setting wins; otherwise the next occurrence
    of the due day strictly after the close date (clamped to month length);
    otherwise fifteen days after close.
    """
    if settings.payment_due_days and settings.payment_due_days > 0:
        return statement_date + timedelta(days=settings.payment_due_days)

    if settings.payment_due_day and settings.payment_due_day > 0:
        due_this_month = with_day(statement_date, settings.payment_due_day)
        if due_this_month > statement_date:
            return due_this_month
        next_month = statement_date + relativedelta(months=1)
        return with_day(next_month, settings.payment_due_day)

    return statement_date + timedelta(days=DEFAULT_DUE_DAYS)


def minimum_payment(statement_balance: int, percentage: Decimal) -> int:
    """ceil(balance x pct / 100), never more than the balance itself."""
    return min(statement_balance, math.ceil(Decimal(statement_balance) * Decimal(percentage) / 100))


def interest_estimate(payment_due_amount: int, apr: Optional[Decimal]) -> Optional[int]:
    """One month of simple interest on the amount due, None without an APR."""
    if not apr:
        return None
    return max(0, round_half_up(Decimal(payment_due_amount) * Decimal(apr) / 100 / 12))
