"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so the domain entities stay stable
when the database schema changes.
"""

from decimal import Decimal
from typing import Optional

from fundtrack.domain import entities as domain
from fundtrack.domain.entities import AccountType
from fundtrack.database.models import (
    Account as ORMAccount,
    Asset as ORMAsset,
    AssetLot as ORMAssetLot,
    AssetPrice as ORMAssetPrice,
    Category as ORMCategory,
    CreditCardStatement as ORMCreditCardStatement,
    RecurringPayment as ORMRecurringPayment,
    Transaction as ORMTransaction,
    Transfer as ORMTransfer,
)


def _quantity(value) -> Decimal:
    # SQLite hands Numeric back through float; normalise to the column scale
    return Decimal(value if value is not None else 0).quantize(Decimal("0.000001"))


def _optional_decimal(value) -> Optional[Decimal]:
    return None if value is None else Decimal(value)


def credit_card_settings_to_domain(orm_account: ORMAccount) -> Optional[domain.CreditCardSettings]:
    """Build billing settings for credit card accounts, None otherwise."""
    if orm_account.account_type != AccountType.CREDIT_CARD:
        return None
    return domain.CreditCardSettings(
        statement_close_day=orm_account.statement_close_day,
        statement_close_is_eom=bool(orm_account.statement_close_is_eom),
        payment_due_day=orm_account.payment_due_day,
        payment_due_days=orm_account.payment_due_days,
        minimum_payment_percentage=_optional_decimal(orm_account.minimum_payment_percentage),
        credit_limit=orm_account.credit_limit,
        apr=_optional_decimal(orm_account.apr),
    )


def apply_credit_card_settings(
    orm_account: ORMAccount, settings: Optional[domain.CreditCardSettings]
) -> None:
    """Copy billing settings onto an ORM account, clearing them when None."""
    settings = settings or domain.CreditCardSettings()
    orm_account.statement_close_day = settings.statement_close_day
    orm_account.statement_close_is_eom = settings.statement_close_is_eom
    orm_account.payment_due_day = settings.payment_due_day
    orm_account.payment_due_days = settings.payment_due_days
    orm_account.minimum_payment_percentage = settings.minimum_payment_percentage
    orm_account.credit_limit = settings.credit_limit
    orm_account.apr = settings.apr


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        owner=orm_account.owner,
        name=orm_account.name,
        account_type=orm_account.account_type,
        is_hidden=orm_account.is_hidden,
        is_deleted=orm_account.is_deleted,
        created_at=orm_account.created_at,
        credit_card=credit_card_settings_to_domain(orm_account),
    )


def category_to_domain(orm_category: ORMCategory) -> domain.Category:
    """Convert SQLAlchemy Category model to domain Category entity."""
    return domain.Category(
        id=orm_category.id,
        owner=orm_category.owner,
        name=orm_category.name,
        created_at=orm_category.created_at,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    return domain.Transaction(
        id=orm_transaction.id,
        account_id=orm_transaction.account_id,
        amount=orm_transaction.amount,
        type=orm_transaction.type,
        date=orm_transaction.date,
        payee=orm_transaction.payee,
        notes=orm_transaction.notes,
        category_id=orm_transaction.category_id,
        transfer_id=orm_transaction.transfer_id,
    )


def transfer_to_domain(orm_transfer: ORMTransfer) -> domain.Transfer:
    """Convert SQLAlchemy Transfer model to domain Transfer entity."""
    return domain.Transfer(
        id=orm_transfer.id,
        owner=orm_transfer.owner,
        amount=orm_transfer.amount,
        transfer_charge=orm_transfer.transfer_charge,
        date=orm_transfer.date,
        from_account_id=orm_transfer.from_account_id,
        to_account_id=orm_transfer.to_account_id,
        notes=orm_transfer.notes,
        credit_card_statement_id=orm_transfer.credit_card_statement_id,
    )


def asset_to_domain(orm_asset: ORMAsset) -> domain.Asset:
    """Convert SQLAlchemy Asset model to domain Asset entity."""
    return domain.Asset(
        id=orm_asset.id,
        owner=orm_asset.owner,
        name=orm_asset.name,
        asset_type=orm_asset.asset_type,
        unit=orm_asset.unit,
        quantity=_quantity(orm_asset.quantity),
        asset_price=orm_asset.asset_price,
        extra_charge=orm_asset.extra_charge,
        total_paid=orm_asset.total_paid,
        account_id=orm_asset.account_id,
        is_sold=orm_asset.is_sold,
        sold_at=orm_asset.sold_at,
        sell_amount=orm_asset.sell_amount,
        created_at=orm_asset.created_at,
        updated_at=orm_asset.updated_at,
    )


def asset_lot_to_domain(orm_lot: ORMAssetLot) -> domain.AssetLot:
    """Convert SQLAlchemy AssetLot model to domain AssetLot entity."""
    return domain.AssetLot(
        id=orm_lot.id,
        asset_id=orm_lot.asset_id,
        quantity=_quantity(orm_lot.quantity),
        unit=orm_lot.unit,
        asset_price=orm_lot.asset_price,
        extra_charge=orm_lot.extra_charge,
        total_paid=orm_lot.total_paid,
        account_id=orm_lot.account_id,
        date=orm_lot.date,
        sell_price=orm_lot.sell_price,
        buy_transaction_id=orm_lot.buy_transaction_id,
        sell_principal_transaction_id=orm_lot.sell_principal_transaction_id,
        sell_profit_transaction_id=orm_lot.sell_profit_transaction_id,
    )


def asset_price_to_domain(orm_price: ORMAssetPrice) -> domain.AssetPrice:
    return domain.AssetPrice(
        id=orm_price.id,
        asset_type=orm_price.asset_type,
        unit=orm_price.unit,
        price=orm_price.price,
        fetched_at=orm_price.fetched_at,
    )


def statement_to_domain(orm_statement: ORMCreditCardStatement) -> domain.CreditCardStatement:
    """Convert SQLAlchemy CreditCardStatement model to domain entity."""
    return domain.CreditCardStatement(
        id=orm_statement.id,
        owner=orm_statement.owner,
        account_id=orm_statement.account_id,
        period_start=orm_statement.period_start,
        statement_date=orm_statement.statement_date,
        due_date=orm_statement.due_date,
        statement_balance=orm_statement.statement_balance,
        payment_due_amount=orm_statement.payment_due_amount,
        minimum_payment=orm_statement.minimum_payment,
        is_payment_due_overridden=orm_statement.is_payment_due_overridden,
        paid_amount=orm_statement.paid_amount,
        is_paid=orm_statement.is_paid,
        paid_at=orm_statement.paid_at,
    )


def recurring_payment_to_domain(orm_payment: ORMRecurringPayment) -> domain.RecurringPayment:
    """Convert SQLAlchemy RecurringPayment model to domain entity."""
    return domain.RecurringPayment(
        id=orm_payment.id,
        owner=orm_payment.owner,
        name=orm_payment.name,
        type=orm_payment.type,
        cadence=orm_payment.cadence,
        amount=orm_payment.amount,
        start_date=orm_payment.start_date,
        transfer_charge=orm_payment.transfer_charge,
        account_id=orm_payment.account_id,
        to_account_id=orm_payment.to_account_id,
        category_id=orm_payment.category_id,
        notes=orm_payment.notes,
        day_of_month=orm_payment.day_of_month,
        month=orm_payment.month,
        last_completed_at=orm_payment.last_completed_at,
        is_active=orm_payment.is_active,
    )
