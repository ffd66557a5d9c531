"""Date parsing and calendar utilities."""

import calendar
from datetime import date, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports various formats including relative dates:
    - Absolute dates: "2024-01-15", "January 15, 2024", etc.
    - Relative dates: "today", "yesterday", "tomorrow", "last month", "this year", etc.

    Args:
        date_str: Date string in various formats

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    if date_str.startswith("last "):
        period = date_str[5:]
        if period == "month":
            return (today - relativedelta(months=1)).replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1) - relativedelta(years=1)
        elif period == "week":
            return today - timedelta(days=today.weekday() + 7)

    elif date_str.startswith("this "):
        period = date_str[5:]
        if period == "month":
            return today.replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1)
        elif period == "week":
            return today - timedelta(days=today.weekday())

    elif date_str.startswith("next "):
        period = date_str[5:]
        if period == "month":
            return (today + relativedelta(months=1)).replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1) + relativedelta(years=1)
        elif period == "week":
            return today + timedelta(days=(7 - today.weekday()))

    try:
        return date_parser.parse(date_str).date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def days_in_month(value: date) -> int:
    """Return the number of days in the month containing value."""
    return calendar.monthrange(value.year, value.month)[1]


def clamp_day_of_month(value: date, day: int) -> int:
    """Clamp a day-of-month into the valid range for value's month."""
    return min(max(day, 1), days_in_month(value))


def with_day(value: date, day: int) -> date:
    """Return value moved to day (clamped) within the same month."""
    return value.replace(day=clamp_day_of_month(value, day))


def end_of_month(value: date) -> date:
    """Return the last calendar day of value's month."""
    return value.replace(day=days_in_month(value))


def month_starts_between(start: date, end: date) -> list[date]:
    """Return the first day of every month from start's month through end's month."""
    result = []
    current = start.replace(day=1)
    while current <= end:
        result.append(current)
        current = current + relativedelta(months=1)
    return result
