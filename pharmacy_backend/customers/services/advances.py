# customers/services/advances.py

"""
======================================================
PATH: customers/services/advances.py
======================================================
ADVANCE / DEBT / CUSTOMER PAYMENT SERVICE

Entry points used at onboarding and at the cash counter.

Each operation, in one transaction with the customer row locked:
- appends the matching ledger entry (credit for money in, debit for debt)
- moves the register exactly once via balance_register.adjust_balance

Onboarding with both an opening advance and an opening debt books both
entries but applies ONE net delta (advance - debt).
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal

from django.db import transaction

from accounting.models import LedgerEntry
from accounting.services.exceptions import LedgerValidationError
from accounting.services.ledger_service import append_entry, to_money
from customers.models import Customer
from customers.services.balance_register import adjust_balance, lock_customer

logger = logging.getLogger("customers.balance")

ZERO = Decimal("0.00")


def _positive_amount(value, *, field: str = "amount") -> Decimal:
    amount = to_money(value, field=field)
    if amount <= ZERO:
        raise LedgerValidationError(f"{field} must be greater than zero", field=field)
    return amount


def _receipt_method(method: str | None) -> str:
    method = (method or "").strip()
    if not method:
        raise LedgerValidationError("Payment method is required", field="method")
    if method not in LedgerEntry.METHODS:
        raise LedgerValidationError(f"Invalid payment method: {method!r}", field="method")
    if method == LedgerEntry.METHOD_ON_ACCOUNT:
        raise LedgerValidationError(
            "on_account is not a way of receiving money", field="method"
        )
    return method


def _book_advance(*, customer, amount, method, reference="", date=None, note="", idempotency_key=None):
    return append_entry(
        type=LedgerEntry.TYPE_ADVANCE,
        method=method,
        credit=amount,
        date=date,
        description=note or f"Advance received from {customer.full_name}",
        customer=customer,
        party=customer.full_name,
        reference=reference,
        idempotency_key=idempotency_key,
    )


def _book_debt(*, customer, amount, reference="", date=None, note="", idempotency_key=None):
    return append_entry(
        type=LedgerEntry.TYPE_SALE,
        method=LedgerEntry.METHOD_ON_ACCOUNT,
        debit=amount,
        date=date,
        description=note or f"Opening balance owed by {customer.full_name}",
        customer=customer,
        party=customer.full_name,
        reference=reference,
        idempotency_key=idempotency_key,
    )


# ============================================================
# ADVANCE / DEBT
# ============================================================


@transaction.atomic
def record_advance(
    customer_id,
    amount,
    method: str,
    reference: str = "",
    *,
    date: datetime | None = None,
    note: str = "",
    idempotency_key: str | None = None,
) -> Decimal:
    amount = _positive_amount(amount)
    method = _receipt_method(method)

    customer = lock_customer(customer_id)
    entry = _book_advance(
        customer=customer,
        amount=amount,
        method=method,
        reference=reference,
        date=date,
        note=note,
        idempotency_key=idempotency_key,
    )
    balance = adjust_balance(customer.pk, amount, reason=f"advance:{entry.txn_id}")

    logger.info(
        "Advance recorded",
        extra={"customer_id": str(customer.pk), "amount": str(amount), "txn_id": entry.txn_id},
    )
    return balance


@transaction.atomic
def record_debt(
    customer_id,
    amount,
    reference: str = "",
    *,
    date: datetime | None = None,
    note: str = "",
    idempotency_key: str | None = None,
) -> Decimal:
    amount = _positive_amount(amount)

    customer = lock_customer(customer_id)
    entry = _book_debt(
        customer=customer,
        amount=amount,
        reference=reference,
        date=date,
        note=note,
        idempotency_key=idempotency_key,
    )
    balance = adjust_balance(customer.pk, -amount, reason=f"debt:{entry.txn_id}")

    logger.info(
        "Debt recorded",
        extra={"customer_id": str(customer.pk), "amount": str(amount), "txn_id": entry.txn_id},
    )
    return balance


# ============================================================
# ONBOARDING
# ============================================================


@transaction.atomic
def onboard_customer(
    *,
    first_name: str,
    phone: str,
    last_name: str = "",
    email: str = "",
    address: str = "",
    role: str = Customer.ROLE_CUSTOMER,
    initial_advance=None,
    advance_method: str = LedgerEntry.METHOD_CASH,
    advance_reference: str = "",
    initial_debt=None,
    debt_reference: str = "",
    date: datetime | None = None,
) -> Customer:
    first_name = (first_name or "").strip()
    phone = (phone or "").strip()

    if not first_name:
        raise LedgerValidationError("First name is required", field="first_name")
    if not phone:
        raise LedgerValidationError("Phone is required", field="phone")
    if role not in dict(Customer.ROLE_CHOICES):
        raise LedgerValidationError(f"Invalid role: {role!r}", field="role")
    if Customer.objects.filter(phone=phone).exists():
        raise LedgerValidationError("A customer with this phone already exists", field="phone")

    advance = to_money(initial_advance, field="initial_advance")
    debt = to_money(initial_debt, field="initial_debt")
    if advance < ZERO:
        raise LedgerValidationError("initial_advance cannot be negative", field="initial_advance")
    if debt < ZERO:
        raise LedgerValidationError("initial_debt cannot be negative", field="initial_debt")
    if advance > ZERO:
        advance_method = _receipt_method(advance_method)

    customer = Customer.objects.create(
        first_name=first_name,
        last_name=(last_name or "").strip(),
        phone=phone,
        email=(email or "").strip(),
        address=(address or "").strip(),
        role=role,
    )
    customer = lock_customer(customer.pk)

    booked = []
    if advance > ZERO:
        booked.append(
            _book_advance(
                customer=customer,
                amount=advance,
                method=advance_method,
                reference=advance_reference,
                date=date,
                note=f"Initial advance from {customer.full_name}",
            ).txn_id
        )
    if debt > ZERO:
        booked.append(
            _book_debt(
                customer=customer,
                amount=debt,
                reference=debt_reference,
                date=date,
            ).txn_id
        )

    if booked:
        adjust_balance(customer.pk, advance - debt, reason="onboarding:" + ",".join(booked))

    customer.refresh_from_db()
    logger.info(
        "Customer onboarded",
        extra={
            "customer_id": str(customer.pk),
            "initial_advance": str(advance),
            "initial_debt": str(debt),
            "balance": str(customer.balance),
        },
    )
    return customer


# ============================================================
# CUSTOMER PAYMENT (COUNTER RECEIPT)
# ============================================================


@transaction.atomic
def record_customer_payment(
    customer_id,
    amount,
    method: str,
    reference: str,
    *,
    date: datetime | None = None,
    note: str = "",
    idempotency_key: str | None = None,
) -> dict:
    """
    Money received from a customer outside any specific order.

    Settles debt when the customer currently owes (type `payment`),
    otherwise tops up their advance (type `advance`). Either way the
    register moves by +amount.
    """
    amount = _positive_amount(amount)
    method = _receipt_method(method)
    reference = (reference or "").strip()
    if not reference:
        raise LedgerValidationError("Payment reference is required", field="reference")

    customer = lock_customer(customer_id)
    owes = Decimal(customer.balance) < ZERO
    entry_type = LedgerEntry.TYPE_PAYMENT if owes else LedgerEntry.TYPE_ADVANCE

    entry = append_entry(
        type=entry_type,
        method=method,
        credit=amount,
        date=date,
        description=note
        or (
            f"Payment received from {customer.full_name}"
            if owes
            else f"Advance received from {customer.full_name}"
        ),
        customer=customer,
        party=customer.full_name,
        reference=reference,
        idempotency_key=idempotency_key,
    )
    balance = adjust_balance(customer.pk, amount, reason=f"customer-payment:{entry.txn_id}")

    logger.info(
        "Customer payment recorded",
        extra={
            "customer_id": str(customer.pk),
            "amount": str(amount),
            "type": entry_type,
            "txn_id": entry.txn_id,
        },
    )
    return {"ledger_entry": entry, "balance": balance, "type": entry_type}
