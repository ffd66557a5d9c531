"""Utility functions for fundtrack."""

from fundtrack.utils.date_parser import parse_date
from fundtrack.utils.amount_parser import parse_amount, to_milli_units, from_milli_units
from fundtrack.utils.account_resolver import resolve_account

__all__ = ["parse_date", "parse_amount", "to_milli_units", "from_milli_units", "resolve_account"]
