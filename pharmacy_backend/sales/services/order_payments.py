# sales/services/order_payments.py

"""
ORDER PAYMENT SERVICE

Takes a payment against an existing order.

Rules:
- amount > 0 and <= the order's outstanding balance
- paid / completed / cancelled orders accept no payments
- amount_received, balance and status change together in one save
- one `payment` ledger entry (credit = amount) tagged with order + customer
- customer register moves by +amount (the order's debit was booked in full
  at creation, so every payment reduces what the customer owes)
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction

from accounting.models import LedgerEntry
from accounting.services.exceptions import LedgerValidationError, NotFoundError
from accounting.services.ledger_service import append_entry, cash_method, to_money
from customers.services.balance_register import adjust_balance, lock_customer
from sales.models import Order, OrderPayment

logger = logging.getLogger("sales.payments")

ZERO = Decimal("0.00")

CLOSED_STATUSES = (Order.STATUS_PAID, Order.STATUS_COMPLETED, Order.STATUS_CANCELLED)


def _get_order(order_id, *, for_update: bool = False) -> Order:
    qs = Order.objects.select_for_update() if for_update else Order.objects.all()
    try:
        return qs.get(pk=order_id)
    except (Order.DoesNotExist, DjangoValidationError, ValueError, TypeError) as exc:
        raise NotFoundError(f"Order {order_id} not found") from exc


@transaction.atomic
def record_order_payment(
    *,
    order_id,
    amount,
    method: str,
    reference: str = "",
    note: str = "",
    date: datetime | None = None,
) -> Order:
    amount = to_money(amount)
    if amount <= ZERO:
        raise LedgerValidationError("Payment amount must be greater than zero", field="amount")

    method = cash_method(method)

    # lock order: customer -> order
    customer = lock_customer(_get_order(order_id).customer_id)
    order = _get_order(order_id, for_update=True)

    if order.status in CLOSED_STATUSES:
        raise LedgerValidationError(f"Order is already {order.status}", field="status")

    if amount > order.balance:
        raise LedgerValidationError(
            f"Payment {amount} exceeds outstanding balance {order.balance}", field="amount"
        )

    entry = append_entry(
        type=LedgerEntry.TYPE_PAYMENT,
        method=method,
        credit=amount,
        date=date,
        description=note or f"Payment for order {order.order_no} - {customer.full_name}",
        customer=customer,
        order_no=order.order_no,
        party=customer.full_name,
        reference=reference,
    )

    order.amount_received = order.amount_received + amount
    order.balance = order.balance - amount
    order.status = Order.STATUS_PAID if order.balance <= ZERO else Order.STATUS_PARTIAL
    order.save(update_fields=["amount_received", "balance", "status", "updated_at"])

    OrderPayment.objects.create(
        order=order,
        amount=amount,
        method=method,
        reference=(reference or "").strip(),
        note=(note or "").strip()[:255],
        ledger_entry=entry,
        paid_at=entry.date,
    )

    new_balance = adjust_balance(customer.pk, amount, reason=f"order-payment:{order.order_no}")

    logger.info(
        "Order payment recorded",
        extra={
            "order_no": order.order_no,
            "amount": str(amount),
            "method": method,
            "order_balance": str(order.balance),
            "status": order.status,
            "txn_id": entry.txn_id,
            "customer_balance": str(new_balance),
        },
    )
    return order
