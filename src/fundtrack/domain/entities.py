"""Domain model entities for fundtrack.

These are pure data classes representing business concepts, independent of
database schema. All monetary fields are signed integers in milli-units
(value x 1000); quantities are Decimals so fractional units (grams, shares)
sum exactly.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional, Union


class AccountType(str, Enum):
    """Kinds of accounts a user can track."""

    CASH = "CASH"
    BANK = "BANK"
    CREDIT_CARD = "CREDIT_CARD"
    LOAN = "LOAN"
    OTHER = "OTHER"


class TransactionType(str, Enum):
    """Origin of a ledger row.

    Only USER_CREATED rows may be edited or deleted directly; every other
    type is owned by an account, transfer or asset aggregate.
    """

    USER_CREATED = "USER_CREATED"
    INITIAL_BALANCE = "INITIAL_BALANCE"
    PEER_TRANSFER = "PEER_TRANSFER"
    SELF_TRANSFER = "SELF_TRANSFER"
    ASSET_BUY = "ASSET_BUY"
    ASSET_RETURN = "ASSET_RETURN"
    ASSET_SELL = "ASSET_SELL"


class Cadence(str, Enum):
    """Repetition rule for recurring payments."""

    DAILY = "DAILY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class RecurringType(str, Enum):
    """What a recurring payment turns into when completed."""

    TRANSACTION = "TRANSACTION"
    TRANSFER = "TRANSFER"


class StatementStatus(str, Enum):
    """Paid/unpaid filter for statement listings."""

    PAID = "paid"
    UNPAID = "unpaid"


@dataclass(frozen=True)
class CreditCardSettings:
    """Billing configuration of a CREDIT_CARD account."""

    statement_close_day: Optional[int] = None
    statement_close_is_eom: bool = False
    payment_due_day: Optional[int] = None
    payment_due_days: Optional[int] = None
    minimum_payment_percentage: Optional[Decimal] = None
    credit_limit: Optional[int] = None
    apr: Optional[Decimal] = None


@dataclass(frozen=True)
class Account:
    """Account domain entity."""

    id: int
    owner: str
    name: str
    account_type: AccountType
    is_hidden: bool
    is_deleted: bool
    created_at: datetime
    credit_card: Optional[CreditCardSettings] = None


@dataclass(frozen=True)
class AccountBalance:
    """Account together with its balance as of a date."""

    account: Account
    balance: int


@dataclass(frozen=True)
class Category:
    """Category domain entity."""

    id: int
    owner: str
    name: str
    created_at: datetime


@dataclass(frozen=True)
class Transaction:
    """Ledger row domain entity."""

    id: int
    account_id: int
    amount: int
    type: TransactionType
    date: date
    payee: str
    notes: Optional[str] = None
    category_id: Optional[int] = None
    transfer_id: Optional[int] = None


@dataclass(frozen=True)
class TransactionDraft:
    """Unsaved transaction, used for bulk creation and recurring proposals."""

    account_id: int
    amount: int
    date: date
    payee: str = ""
    notes: Optional[str] = None
    category_id: Optional[int] = None
    type: TransactionType = TransactionType.USER_CREATED


@dataclass(frozen=True)
class Transfer:
    """Transfer between zero, one or two tracked accounts."""

    id: int
    owner: str
    amount: int
    transfer_charge: int
    date: date
    from_account_id: Optional[int] = None
    to_account_id: Optional[int] = None
    notes: Optional[str] = None
    credit_card_statement_id: Optional[int] = None


@dataclass(frozen=True)
class TransferDraft:
    """Unsaved transfer, produced by recurring payment proposals."""

    amount: int
    date: date
    from_account_id: Optional[int] = None
    to_account_id: Optional[int] = None
    transfer_charge: int = 0
    notes: Optional[str] = None
    credit_card_statement_id: Optional[int] = None


@dataclass(frozen=True)
class Asset:
    """Holding aggregate; every numeric field is a literal sum over its lots."""

    id: int
    owner: str
    name: str
    asset_type: str
    unit: str
    quantity: Decimal
    asset_price: int
    extra_charge: int
    total_paid: int
    account_id: int
    is_sold: bool = False
    sold_at: Optional[date] = None
    sell_amount: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class AssetLot:
    """One buy (positive quantity) or sell (negative quantity) event."""

    id: int
    asset_id: int
    quantity: Decimal
    unit: str
    asset_price: int
    extra_charge: int
    total_paid: int
    account_id: int
    date: date
    sell_price: Optional[int] = None
    buy_transaction_id: Optional[int] = None
    sell_principal_transaction_id: Optional[int] = None
    sell_profit_transaction_id: Optional[int] = None

    @property
    def is_sell(self) -> bool:
        return self.quantity < 0

    @property
    def transaction_ids(self) -> list[int]:
        """Ledger rows this lot produced."""
        ids = [
            self.buy_transaction_id,
            self.sell_principal_transaction_id,
            self.sell_profit_transaction_id,
        ]
        return [txn_id for txn_id in ids if txn_id is not None]


@dataclass(frozen=True)
class AssetAggregates:
    """Sums over an asset's lots."""

    quantity: Decimal
    total_paid: int
    extra_charge: int
    asset_price: int


@dataclass(frozen=True)
class AssetPrice:
    """Price feed row written by an external ingestion job."""

    id: int
    asset_type: str
    unit: str
    price: int
    fetched_at: datetime


@dataclass(frozen=True)
class AssetHolding:
    """Asset read model joined with the latest feed price."""

    asset: Asset
    live_unit_price: Optional[int]
    current_value: Optional[int]
    unrealized_profit_loss: Optional[int]
    realized_profit_loss: int


@dataclass(frozen=True)
class CreditCardStatement:
    """A closed billing cycle of a credit card account."""

    id: int
    owner: str
    account_id: int
    period_start: date
    statement_date: date
    due_date: date
    statement_balance: int
    payment_due_amount: int
    minimum_payment: int
    is_payment_due_overridden: bool = False
    paid_amount: int = 0
    is_paid: bool = False
    paid_at: Optional[date] = None


@dataclass(frozen=True)
class StatementPreview:
    """Statement as it would be persisted if the cycle were closed now."""

    account_id: int
    period_start: date
    statement_date: date
    due_date: date
    statement_balance: int
    payment_due_amount: int
    minimum_payment: int
    minimum_payment_percentage: Decimal


@dataclass(frozen=True)
class UpcomingStatement:
    """Earliest unpaid statement with due-date derived figures."""

    statement: CreditCardStatement
    days_until_due: int
    interest_estimate: Optional[int]


@dataclass(frozen=True)
class CreditCardSummary:
    """Per-card overview used by the credit card listing."""

    account: Account
    current_balance: int
    current_owed: int
    utilization: Optional[Decimal]
    available_credit: Optional[int]
    next_statement: Optional[UpcomingStatement] = None


@dataclass(frozen=True)
class RecurringPayment:
    """Template for a payment that repeats on a cadence."""

    id: int
    owner: str
    name: str
    type: RecurringType
    cadence: Cadence
    amount: int
    start_date: date
    transfer_charge: int = 0
    account_id: Optional[int] = None
    to_account_id: Optional[int] = None
    category_id: Optional[int] = None
    notes: Optional[str] = None
    day_of_month: Optional[int] = None
    month: Optional[int] = None
    last_completed_at: Optional[date] = None
    is_active: bool = True


@dataclass(frozen=True)
class ScheduledPayment:
    """Recurring payment with its next due date relative to a reference day."""

    payment: RecurringPayment
    next_due_date: date
    days_remaining: int


@dataclass(frozen=True)
class RecurringProposal:
    """First phase of completing a recurring payment.

    The caller records ``draft`` through the ledger or transfer service and
    only then calls ``RecurringPaymentService.complete``.
    """

    payment_id: int
    due_date: date
    draft: Union[TransactionDraft, TransferDraft]


@dataclass(frozen=True)
class NetWorthPoint:
    """Total balance at one bucket boundary."""

    date: date
    balance: int


@dataclass(frozen=True)
class NetWorthReport:
    """Assets, liabilities and balance history for the owner's accounts."""

    assets: int
    liabilities: int
    net_worth: int
    start_date: Optional[date]
    end_date: date
    series: tuple[NetWorthPoint, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class CategorySpending:
    """Expenses booked to one category over a period, as a positive amount."""

    category_id: int
    name: str
    amount: int


@dataclass(frozen=True)
class DailyActivity:
    """User-entered income and expenses on one day; expenses are negative."""

    date: date
    income: int
    expenses: int


@dataclass(frozen=True)
class PeriodSummary:
    """Income, expenses and remaining balance for a date range.

    Each change is a percentage against the previous period of the same
    length, ending the day before ``start_date``.
    """

    start_date: date
    end_date: date
    account_id: Optional[int]
    income: int
    income_change: Decimal
    expenses: int
    expense_change: Decimal
    remaining: int
    remaining_change: Decimal
    categories: tuple[CategorySpending, ...] = field(default_factory=tuple)
    days: tuple[DailyActivity, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PayeeSpending:
    """Net user-entered amount for one payee.

    ``previous_amounts`` holds the same window shifted back one month per
    entry, newest first.
    """

    payee: str
    amount: int
    previous_amounts: tuple[int, ...] = field(default_factory=tuple)
