"""Filter objects for listing queries.

Each filter is an immutable value; the database layer turns the fields that
are set into a list of predicates, so optional criteria never become
conditional query fragments.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from fundtrack.domain.entities import StatementStatus
from fundtrack.domain.errors import ValidationError


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar date range; either end may be open."""

    start: Optional[date] = None
    end: Optional[date] = None

    @classmethod
    def month_to_date(cls, today: Optional[date] = None) -> "DateRange":
        """Range from the first day of today's month through today."""
        today = today or date.today()
        return cls(start=today.replace(day=1), end=today)

    def validate(self) -> None:
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ValidationError(
                f"Start date {self.start} is after end date {self.end}", field="start_date"
            )


@dataclass(frozen=True)
class TransactionFilter:
    """Criteria for listing ledger rows."""

    dates: DateRange = DateRange()
    account_id: Optional[int] = None
    category_id: Optional[int] = None


@dataclass(frozen=True)
class TransferFilter:
    """Criteria for listing transfers; account matches either side."""

    dates: DateRange = DateRange()
    account_id: Optional[int] = None


@dataclass(frozen=True)
class StatementFilter:
    """Criteria for listing credit card statements."""

    account_id: Optional[int] = None
    status: Optional[StatementStatus] = None
