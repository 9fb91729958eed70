# accounting/services/exceptions.py

"""
LEDGER SERVICE ERRORS

Centralized domain errors shared by the ledger, customer balance,
settlement and stock services. API views map these to HTTP statuses.
"""


class LedgerServiceError(Exception):
    """Base exception for all ledger / balance service failures."""


class LedgerValidationError(LedgerServiceError):
    """Missing or malformed input. Carries the offending field name."""

    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.field = field


class NotFoundError(LedgerServiceError):
    """Customer, product or order lookup failed."""


class PersistenceFailure(LedgerServiceError):
    """Store unreachable or write rejected. Nothing was committed."""


class BalanceInconsistencyError(LedgerServiceError):
    """Register and ledger disagree by more than the allowed tolerance."""

    def __init__(self, message: str, *, customer_id=None, register=None, ledger=None):
        super().__init__(message)
        self.customer_id = customer_id
        self.register = register
        self.ledger = ledger

    @property
    def drift(self):
        if self.register is None or self.ledger is None:
            return None
        return self.ledger - self.register


class IdempotencyError(LedgerServiceError):
    """Raised on duplicate or retried ledger events."""
