# accounting/services/ledger_service.py

"""
======================================================
PATH: accounting/services/ledger_service.py
======================================================
LEDGER APPEND SERVICE (RUNNING-BALANCE CALCULATOR)

This module is the ONLY place allowed to create LedgerEntry rows.

Rules:
- credit/debit >= 0, type/method from the closed enumerations
- date defaults to now
- running_balance = running_balance of the most recently dated entry
  (tie-break: creation order) + credit - debit; 0 when the store is empty
- The balance lookup and the insert are one atomic unit. If the lookup
  fails, nothing is written (no fabricated running balance).
- Appends are serialized globally by locking the LedgerSequence head row,
  which also issues sequential TXN ids.
- Never touches the customer balance register. Callers that need the
  register moved must call customers.services.balance_register separately.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from accounting.models import LedgerEntry, LedgerSequence
from accounting.services.exceptions import (
    IdempotencyError,
    LedgerValidationError,
    PersistenceFailure,
)

logger = logging.getLogger("ledger")

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")

# DecimalField(max_digits=14, decimal_places=2) holds 12 integer digits.
MAX_MONEY = Decimal("999999999999.99")


def check_money_range(amount: Decimal, *, field: str = "amount") -> Decimal:
    if abs(amount) > MAX_MONEY:
        raise LedgerValidationError(
            f"Amount {amount} exceeds the largest storable value {MAX_MONEY}", field=field
        )
    return amount


def to_money(value, *, field: str = "amount") -> Decimal:
    if value is None or value == "":
        return ZERO

    if isinstance(value, Decimal):
        amt = value
    else:
        try:
            amt = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError) as exc:
            raise LedgerValidationError(f"Invalid money value: {value!r}", field=field) from exc

    if not amt.is_finite():
        raise LedgerValidationError(f"Invalid money value: {value!r}", field=field)

    # quantize fails once the digits exceed the context precision (e.g. 1e30)
    try:
        amt = amt.quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise LedgerValidationError(f"Invalid money value: {value!r}", field=field) from exc

    return check_money_range(amt, field=field)


# Settle against the customer register; no money changes hands.
NON_CASH_METHODS = frozenset({LedgerEntry.METHOD_ON_ACCOUNT, LedgerEntry.METHOD_ADVANCE})


def cash_method(method: str | None, *, field: str = "method") -> str:
    method = (method or "").strip().lower()
    if method not in LedgerEntry.METHODS:
        raise LedgerValidationError(f"Invalid payment method: {method!r}", field=field)
    if method in NON_CASH_METHODS:
        raise LedgerValidationError(f"{method} does not move money", field=field)
    return method


def _as_aware_dt(dt: datetime | None) -> datetime:
    if dt is None:
        return timezone.now()
    if timezone.is_naive(dt):
        return timezone.make_aware(dt, timezone.get_current_timezone())
    return dt


def format_txn_id(number: int) -> str:
    prefix = getattr(settings, "LEDGER_TXN_PREFIX", "TXN")
    pad = int(getattr(settings, "LEDGER_TXN_PAD", 6))
    return f"{prefix}-{number:0{pad}d}"


def _lock_sequence() -> LedgerSequence:
    head, _ = LedgerSequence.objects.select_for_update().get_or_create(
        pk=LedgerSequence.SINGLETON_PK
    )
    return head


def _latest_running_balance() -> Decimal:
    latest = (
        LedgerEntry.objects.order_by("-date", "-created_at", "-id")
        .values_list("running_balance", flat=True)
        .first()
    )
    return ZERO if latest is None else Decimal(latest)


def current_running_balance() -> Decimal:
    """Read-only: running balance of the most recently dated entry."""
    return _latest_running_balance()


def _first_error(exc: DjangoValidationError) -> tuple[str, str | None]:
    if hasattr(exc, "message_dict"):
        for field, messages in exc.message_dict.items():
            if messages:
                return str(messages[0]), (None if field == "__all__" else field)
    return "; ".join(exc.messages), None


@transaction.atomic
def append_entry(
    *,
    type: str,
    method: str = LedgerEntry.METHOD_CASH,
    credit=None,
    debit=None,
    date: datetime | None = None,
    description: str = "",
    customer=None,
    product=None,
    order_no: str = "",
    party: str = "",
    reference: str = "",
    txn_id: str | None = None,
    idempotency_key: str | None = None,
) -> LedgerEntry:
    if type not in LedgerEntry.TYPES:
        raise LedgerValidationError(f"Invalid ledger type: {type!r}", field="type")

    if method not in LedgerEntry.METHODS:
        raise LedgerValidationError(f"Invalid payment method: {method!r}", field="method")

    credit_amt = to_money(credit, field="credit")
    debit_amt = to_money(debit, field="debit")

    if credit_amt < 0:
        raise LedgerValidationError("Credit cannot be negative", field="credit")
    if debit_amt < 0:
        raise LedgerValidationError("Debit cannot be negative", field="debit")

    idempotency_key = (idempotency_key or "").strip() or None
    if idempotency_key and LedgerEntry.objects.filter(idempotency_key=idempotency_key).exists():
        raise IdempotencyError(f"Ledger entry already recorded for key {idempotency_key!r}")

    try:
        head = _lock_sequence()
        previous_balance = _latest_running_balance()
    except DatabaseError as exc:
        logger.exception("Running balance lookup failed; append aborted")
        raise PersistenceFailure("Ledger store unavailable; entry not written") from exc

    running_balance = (previous_balance + credit_amt - debit_amt).quantize(
        TWOPLACES, rounding=ROUND_HALF_UP
    )

    number = head.last_number + 1
    entry = LedgerEntry(
        txn_id=(txn_id or "").strip() or format_txn_id(number),
        date=_as_aware_dt(date),
        type=type,
        method=method,
        description=(description or "").strip()[:255],
        credit=credit_amt,
        debit=debit_amt,
        running_balance=running_balance,
        customer=customer,
        product=product,
        order_no=order_no or "",
        party=(party or "").strip(),
        reference=(reference or "").strip(),
        idempotency_key=idempotency_key,
    )

    try:
        entry.save()
        head.last_number = number
        head.save(update_fields=["last_number", "updated_at"])
    except DjangoValidationError as exc:
        message, field = _first_error(exc)
        raise LedgerValidationError(message, field=field) from exc
    except IntegrityError as exc:
        if idempotency_key:
            raise IdempotencyError(
                f"Ledger entry already recorded for key {idempotency_key!r}"
            ) from exc
        logger.exception("Ledger insert rejected", extra={"txn_id": entry.txn_id})
        raise PersistenceFailure("Ledger insert rejected") from exc
    except DatabaseError as exc:
        logger.exception("Ledger insert failed", extra={"txn_id": entry.txn_id})
        raise PersistenceFailure("Ledger store unavailable; entry not written") from exc

    logger.info(
        "Ledger entry appended",
        extra={
            "txn_id": entry.txn_id,
            "type": entry.type,
            "method": entry.method,
            "credit": str(entry.credit),
            "debit": str(entry.debit),
            "running_balance": str(entry.running_balance),
            "customer_id": str(entry.customer_id) if entry.customer_id else None,
            "order_no": entry.order_no or None,
        },
    )
    return entry
