# customers/services/reconciliation.py

"""
======================================================
PATH: customers/services/reconciliation.py
======================================================
BALANCE RECONCILIATION UTILITY

Recomputes a customer's balance from the ledger of record:
    + credit  for `payment` entries
    + credit  for `advance` entries with credit > 0
    - debit   for `sale` entries
over every entry tagged with the customer.

- check_balance(): read-only drift report; raises
  BalanceInconsistencyError when drift exceeds tolerance
- recalculate_from_ledger(): repairs the register through
  adjust_balance (delta = ledger - register) and writes a
  BalanceReconciliation audit row for every non-zero repair

Idempotent: a second run with no new ledger writes has delta 0.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import Q, Sum

from accounting.models import LedgerEntry
from accounting.services.exceptions import BalanceInconsistencyError
from customers.models import BalanceReconciliation
from customers.services.balance_register import (
    adjust_balance,
    get_customer,
    lock_customer,
)

logger = logging.getLogger("customers.reconciliation")

ZERO = Decimal("0.00")

PAYMENT_CREDITS = Q(type=LedgerEntry.TYPE_PAYMENT)
ADVANCE_CREDITS = Q(type=LedgerEntry.TYPE_ADVANCE, credit__gt=0)
SALE_DEBITS = Q(type=LedgerEntry.TYPE_SALE)


def drift_tolerance() -> Decimal:
    return Decimal(str(getattr(settings, "BALANCE_DRIFT_TOLERANCE", "0.00")))


def _ledger_totals(customer_id) -> dict:
    totals = LedgerEntry.objects.filter(customer_id=customer_id).aggregate(
        sales=Sum("debit", filter=SALE_DEBITS),
        payments=Sum("credit", filter=PAYMENT_CREDITS),
        advances=Sum("credit", filter=ADVANCE_CREDITS),
    )
    sales = totals["sales"] or ZERO
    payments = totals["payments"] or ZERO
    advances = totals["advances"] or ZERO
    return {
        "total_sales": sales,
        "total_payments": payments,
        "total_advances": advances,
        "ledger_balance": payments + advances - sales,
    }


def ledger_balance_for(customer_id) -> Decimal:
    return _ledger_totals(customer_id)["ledger_balance"]


def _balance_status(value: Decimal) -> str:
    if value > ZERO:
        return "advance"
    if value < ZERO:
        return "owing"
    return "balanced"


def summarize_customer_ledger(customer_id) -> dict:
    customer = get_customer(customer_id)
    totals = _ledger_totals(customer.pk)
    register = Decimal(customer.balance)
    return {
        "customer_id": customer.pk,
        "register_balance": register,
        **totals,
        "drift": totals["ledger_balance"] - register,
        "status": _balance_status(register),
        "entry_count": LedgerEntry.objects.filter(customer_id=customer.pk).count(),
    }


def check_balance(customer_id, *, tolerance: Decimal | None = None) -> dict:
    """
    Compare register vs ledger without writing anything.
    """
    tolerance = drift_tolerance() if tolerance is None else Decimal(tolerance)
    summary = summarize_customer_ledger(customer_id)
    drift = summary["drift"]

    if drift != ZERO:
        logger.warning(
            "Customer balance drift detected",
            extra={
                "customer_id": str(summary["customer_id"]),
                "register": str(summary["register_balance"]),
                "ledger": str(summary["ledger_balance"]),
                "drift": str(drift),
            },
        )

    if abs(drift) > tolerance:
        logger.error(
            "Customer balance inconsistent beyond tolerance",
            extra={
                "customer_id": str(summary["customer_id"]),
                "drift": str(drift),
                "tolerance": str(tolerance),
            },
        )
        raise BalanceInconsistencyError(
            f"Customer {summary['customer_id']} register {summary['register_balance']} "
            f"differs from ledger {summary['ledger_balance']} by {drift}",
            customer_id=summary["customer_id"],
            register=summary["register_balance"],
            ledger=summary["ledger_balance"],
        )

    return summary


@transaction.atomic
def recalculate_from_ledger(customer_id, *, triggered_by: str = "manual") -> Decimal:
    customer = lock_customer(customer_id)
    register = Decimal(customer.balance)
    recalculated = ledger_balance_for(customer.pk)
    delta = recalculated - register

    if delta == ZERO:
        logger.info(
            "Customer balance consistent",
            extra={"customer_id": str(customer.pk), "balance": str(register)},
        )
        return register

    tolerance = drift_tolerance()
    exceeded = abs(delta) > tolerance
    log = logger.error if exceeded else logger.warning
    log(
        "Repairing customer balance from ledger",
        extra={
            "customer_id": str(customer.pk),
            "register": str(register),
            "ledger": str(recalculated),
            "delta": str(delta),
            "tolerance": str(tolerance),
        },
    )

    new_balance = adjust_balance(customer.pk, delta, reason="reconciliation")

    BalanceReconciliation.objects.create(
        customer=customer,
        register_before=register,
        ledger_balance=recalculated,
        delta=delta,
        register_after=new_balance,
        exceeded_tolerance=exceeded,
        triggered_by=(triggered_by or "")[:64],
    )
    return new_balance
