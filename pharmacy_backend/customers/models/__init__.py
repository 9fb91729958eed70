# customers/models/__init__.py

from customers.models.customer import Customer
from customers.models.reconciliation import BalanceReconciliation

__all__ = [
    "Customer",
    "BalanceReconciliation",
]
