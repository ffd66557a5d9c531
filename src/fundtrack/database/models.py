"""SQLAlchemy models for fundtrack database."""

from datetime import datetime, UTC
from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

from fundtrack.domain.entities import (
    AccountType,
    Cadence,
    RecurringType,
    TransactionType,
)

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Account(Base):
    """Account model; credit card billing columns are null for other types."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    owner = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    account_type = Column(Enum(AccountType, native_enum=False), nullable=False, default=AccountType.BANK)
    is_hidden = Column(Boolean, default=False, nullable=False)
    is_deleted = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    statement_close_day = Column(Integer, nullable=True)
    statement_close_is_eom = Column(Boolean, default=False, nullable=False)
    payment_due_day = Column(Integer, nullable=True)
    payment_due_days = Column(Integer, nullable=True)
    minimum_payment_percentage = Column(Numeric(7, 4), nullable=True)
    credit_limit = Column(BigInteger, nullable=True)
    apr = Column(Numeric(7, 4), nullable=True)

    # Relationships
    transactions = relationship("Transaction", back_populates="account", cascade="all, delete-orphan")


class Category(Base):
    """Category model."""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    owner = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    transactions = relationship("Transaction", back_populates="category")


class Transfer(Base):
    """Transfer model; owns up to two transaction rows."""

    __tablename__ = "transfers"

    id = Column(Integer, primary_key=True)
    owner = Column(String, nullable=False, index=True)
    amount = Column(BigInteger, nullable=False)
    transfer_charge = Column(BigInteger, default=0, nullable=False)
    from_account_id = Column(Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    to_account_id = Column(Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    date = Column(Date, nullable=False)
    notes = Column(String, nullable=True)
    credit_card_statement_id = Column(
        Integer, ForeignKey("credit_card_statements.id", ondelete="SET NULL"), nullable=True
    )
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    transactions = relationship("Transaction", back_populates="transfer", cascade="all, delete-orphan")


class Transaction(Base):
    """Ledger row model."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    amount = Column(BigInteger, nullable=False)
    type = Column(
        Enum(TransactionType, native_enum=False, length=20),
        default=TransactionType.USER_CREATED,
        nullable=False,
    )
    date = Column(Date, nullable=False)
    payee = Column(String, nullable=False, default="")
    notes = Column(String, nullable=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)
    transfer_id = Column(Integer, ForeignKey("transfers.id", ondelete="CASCADE"), nullable=True)

    __table_args__ = (Index("ix_transactions_account_date", "account_id", "date"),)

    # Relationships
    account = relationship("Account", back_populates="transactions")
    category = relationship("Category", back_populates="transactions")
    transfer = relationship("Transfer", back_populates="transactions")


class Asset(Base):
    """Asset model; numeric columns are recomputed from lots."""

    __tablename__ = "assets"

    id = Column(Integer, primary_key=True)
    owner = Column(String, nullable=False)
    name = Column(String, nullable=False)
    asset_type = Column(String, nullable=False)
    unit = Column(String, nullable=False)
    quantity = Column(Numeric(18, 6), nullable=False, default=0)
    asset_price = Column(BigInteger, nullable=False, default=0)
    extra_charge = Column(BigInteger, nullable=False, default=0)
    total_paid = Column(BigInteger, nullable=False, default=0)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    is_sold = Column(Boolean, default=False, nullable=False)
    sold_at = Column(Date, nullable=True)
    sell_amount = Column(BigInteger, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, nullable=False)

    __table_args__ = (UniqueConstraint("owner", "name", "asset_type", name="uq_asset_identity"),)

    # Relationships
    lots = relationship("AssetLot", back_populates="asset", cascade="all, delete-orphan")


class AssetLot(Base):
    """One buy or sell event of an asset."""

    __tablename__ = "asset_lots"

    id = Column(Integer, primary_key=True)
    asset_id = Column(Integer, ForeignKey("assets.id", ondelete="CASCADE"), nullable=False)
    quantity = Column(Numeric(18, 6), nullable=False)
    unit = Column(String, nullable=False)
    asset_price = Column(BigInteger, nullable=False)
    sell_price = Column(BigInteger, nullable=True)
    extra_charge = Column(BigInteger, nullable=False, default=0)
    total_paid = Column(BigInteger, nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    date = Column(Date, nullable=False)
    buy_transaction_id = Column(Integer, ForeignKey("transactions.id", ondelete="SET NULL"), nullable=True)
    sell_principal_transaction_id = Column(
        Integer, ForeignKey("transactions.id", ondelete="SET NULL"), nullable=True
    )
    sell_profit_transaction_id = Column(
        Integer, ForeignKey("transactions.id", ondelete="SET NULL"), nullable=True
    )
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    asset = relationship("Asset", back_populates="lots")


class AssetPrice(Base):
    """Latest-wins price feed rows, populated by external ingestion jobs."""

    __tablename__ = "asset_prices"

    id = Column(Integer, primary_key=True)
    asset_type = Column(String, nullable=False, index=True)
    unit = Column(String, nullable=False)
    price = Column(BigInteger, nullable=False)
    fetched_at = Column(DateTime, default=_utcnow, nullable=False)


class CreditCardStatement(Base):
    """Closed billing cycle of a credit card account."""

    __tablename__ = "credit_card_statements"

    id = Column(Integer, primary_key=True)
    owner = Column(String, nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    period_start = Column(Date, nullable=False)
    statement_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    statement_balance = Column(BigInteger, nullable=False)
    payment_due_amount = Column(BigInteger, nullable=False)
    is_payment_due_overridden = Column(Boolean, default=False, nullable=False)
    minimum_payment = Column(BigInteger, nullable=False)
    paid_amount = Column(BigInteger, default=0, nullable=False)
    is_paid = Column(Boolean, default=False, nullable=False)
    paid_at = Column(Date, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # One statement per account per calendar close date
    __table_args__ = (
        UniqueConstraint("account_id", "statement_date", name="uq_statement_account_close_date"),
    )


class RecurringPayment(Base):
    """Recurring payment template."""

    __tablename__ = "recurring_payments"

    id = Column(Integer, primary_key=True)
    owner = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    type = Column(Enum(RecurringType, native_enum=False), nullable=False)
    cadence = Column(Enum(Cadence, native_enum=False), nullable=False)
    amount = Column(BigInteger, nullable=False)
    transfer_charge = Column(BigInteger, default=0, nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    to_account_id = Column(Integer, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True)
    notes = Column(String, nullable=True)
    start_date = Column(Date, nullable=False)
    day_of_month = Column(Integer, nullable=True)
    month = Column(Integer, nullable=True)
    last_completed_at = Column(Date, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """Turn on FK enforcement so ON DELETE rules apply under SQLite."""
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
