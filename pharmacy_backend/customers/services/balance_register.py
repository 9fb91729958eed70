# customers/services/balance_register.py

"""
======================================================
PATH: customers/services/balance_register.py
======================================================
CUSTOMER BALANCE REGISTER

The ONLY sanctioned writer of Customer.balance.

Protocol (per call, inside one transaction):
1) lock the customer row (select_for_update) -> serializes all
   mutations for that customer
2) read current, compute current + delta
3) write via queryset update()
4) re-read and confirm the persisted value

The returned value is the re-read value, never a local echo.
This service does NOT write ledger entries; callers append their own.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, transaction

from accounting.services.exceptions import NotFoundError, PersistenceFailure
from accounting.services.ledger_service import check_money_range, to_money
from customers.models import Customer

logger = logging.getLogger("customers.balance")


def get_customer(customer_id) -> Customer:
    try:
        return Customer.objects.get(pk=customer_id)
    except (Customer.DoesNotExist, DjangoValidationError, ValueError, TypeError) as exc:
        raise NotFoundError(f"Customer {customer_id} not found") from exc


def lock_customer(customer_id) -> Customer:
    """
    Row-lock the customer for the rest of the current transaction.
    Must be called inside transaction.atomic.
    """
    try:
        return Customer.objects.select_for_update().get(pk=customer_id)
    except (Customer.DoesNotExist, DjangoValidationError, ValueError, TypeError) as exc:
        raise NotFoundError(f"Customer {customer_id} not found") from exc


def get_balance(customer_id) -> Decimal:
    return get_customer(customer_id).balance


@transaction.atomic
def adjust_balance(customer_id, delta, reason: str) -> Decimal:
    amount = to_money(delta, field="delta")

    customer = lock_customer(customer_id)
    current = Decimal(customer.balance)
    target = check_money_range(current + amount, field="delta")

    try:
        Customer.objects.filter(pk=customer.pk).update(balance=target)
        confirmed = (
            Customer.objects.filter(pk=customer.pk)
            .values_list("balance", flat=True)
            .get()
        )
    except DatabaseError as exc:
        logger.exception(
            "Balance write failed",
            extra={"customer_id": str(customer.pk), "delta": str(amount), "reason": reason},
        )
        raise PersistenceFailure(f"Balance update for customer {customer.pk} failed") from exc

    if Decimal(confirmed) != target:
        logger.error(
            "Balance write not confirmed",
            extra={
                "customer_id": str(customer.pk),
                "expected": str(target),
                "persisted": str(confirmed),
            },
        )
        raise PersistenceFailure(
            f"Balance update for customer {customer.pk} did not persist "
            f"(expected {target}, read back {confirmed})"
        )

    logger.info(
        "Customer balance adjusted",
        extra={
            "customer_id": str(customer.pk),
            "previous": str(current),
            "delta": str(amount),
            "balance": str(confirmed),
            "reason": reason,
        },
    )
    return Decimal(confirmed)
