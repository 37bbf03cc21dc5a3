"""Domain layer for spendtrack.

Services are imported lazily: the database layer imports
``spendtrack.domain.entities``, and eager imports here would cycle back into it.
"""

_SERVICES = {
    "LedgerService": "spendtrack.domain.ledger",
    "RecurringPaymentService": "spendtrack.domain.recurring",
    "RecurringPaymentScheduler": "spendtrack.domain.scheduler",
}

__all__ = list(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        from importlib import import_module

        return getattr(import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
