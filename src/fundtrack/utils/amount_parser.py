"""Amount parsing and milli-unit conversion utilities.

Money is stored as signed integers in milli-units (value x 1000). Parsing
and display conversion happen only at the CLI boundary.
"""

from decimal import Decimal, InvalidOperation, ROUND_FLOOR
import re

MILLI_UNITS = 1000


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "$123.45"
    - "-123.45"
    - "1,234.56"
    - "(123.45)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    amount_str = re.sub(r"[$€£¥₹]", "", amount_str)
    amount_str = amount_str.replace(",", "").strip()

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}")
    if not amount.is_finite():
        raise ValueError(f"Amount must be a finite number, got '{amount_str}'")
    return -amount if is_negative else amount


def round_half_up(value: Decimal | int) -> int:
    """Round to the nearest integer, halves toward positive infinity."""
    return int((Decimal(value) + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR))


def to_milli_units(amount: Decimal | int | str) -> int:
    """Convert a decimal amount to integer milli-units."""
    return round_half_up(Decimal(amount) * MILLI_UNITS)


def from_milli_units(amount: int) -> Decimal:
    """Convert integer milli-units back to a decimal amount."""
    return Decimal(amount) / MILLI_UNITS


def format_amount(amount: int | None) -> str:
    """Render milli-units for terminal output."""
    if amount is None:
        return "-"
    return f"{from_milli_units(amount):,.2f}"
