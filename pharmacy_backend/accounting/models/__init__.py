# accounting/models/__init__.py

"""
ACCOUNTING MODELS PACKAGE EXPORTS

Note:
- Keep this file *imports-only* (no business logic).
- Do NOT import services from models anywhere (models must stay pure).
"""

from accounting.models.ledger import LedgerEntry
from accounting.models.sequence import LedgerSequence

__all__ = [
    "LedgerEntry",
    "LedgerSequence",
]
