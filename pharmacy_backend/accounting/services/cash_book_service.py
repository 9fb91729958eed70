# accounting/services/cash_book_service.py

"""
MANUAL CASH BOOK ENTRIES

Expenses, remittances to the company, commission payouts, refunds and
adjustments typed in by staff.

Rules:
- exactly one of credit / debit is > 0
- customer-bearing types (sale, payment, advance) are refused here;
  they must go through the services that also move the customer register
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal

from accounting.models import LedgerEntry
from accounting.services.exceptions import LedgerValidationError
from accounting.services.ledger_service import append_entry, to_money

logger = logging.getLogger("ledger")

ZERO = Decimal("0.00")

CUSTOMER_TYPES = frozenset(
    {LedgerEntry.TYPE_SALE, LedgerEntry.TYPE_PAYMENT, LedgerEntry.TYPE_ADVANCE}
)
MANUAL_TYPES = LedgerEntry.TYPES - CUSTOMER_TYPES


def create_manual_entry(
    *,
    type: str,
    method: str = LedgerEntry.METHOD_CASH,
    credit=None,
    debit=None,
    description: str = "",
    date: datetime | None = None,
    party: str = "",
    reference: str = "",
    idempotency_key: str | None = None,
) -> LedgerEntry:
    if type in CUSTOMER_TYPES:
        raise LedgerValidationError(
            f"'{type}' entries are recorded through orders and customer payments",
            field="type",
        )
    if type not in MANUAL_TYPES:
        raise LedgerValidationError(f"Invalid ledger type: {type!r}", field="type")

    credit_amt = to_money(credit, field="credit")
    debit_amt = to_money(debit, field="debit")

    if (credit_amt > ZERO) == (debit_amt > ZERO):
        raise LedgerValidationError(
            "Exactly one of credit or debit must be greater than zero", field="credit"
        )

    description = (description or "").strip()
    if not description:
        raise LedgerValidationError("Description is required", field="description")

    entry = append_entry(
        type=type,
        method=method,
        credit=credit_amt,
        debit=debit_amt,
        date=date,
        description=description,
        party=party,
        reference=reference,
        idempotency_key=idempotency_key,
    )
    logger.info(
        "Manual cash book entry created",
        extra={"txn_id": entry.txn_id, "type": type, "credit": str(credit_amt), "debit": str(debit_amt)},
    )
    return entry
