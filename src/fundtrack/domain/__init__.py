"""Domain layer for fundtrack application.

Services are imported lazily: the database layer imports entities from this
package, and the services import the database layer.
"""

_SERVICES = {
    "AccountService": "fundtrack.domain.account",
    "BalanceService": "fundtrack.domain.balance",
    "CategoryService": "fundtrack.domain.category",
    "TransactionService": "fundtrack.domain.transaction",
    "TransferService": "fundtrack.domain.transfer",
    "AssetService": "fundtrack.domain.asset",
    "CreditCardService": "fundtrack.domain.credit_card",
    "RecurringPaymentService": "fundtrack.domain.recurring",
}

__all__ = list(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        from importlib import import_module

        return getattr(import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
