# sales/services/settlement.py

"""
ORDER SETTLEMENT ENGINE (APPLICATION SERVICE)

Purpose:
- Turn an order request into an Order, its ledger entries, a stock
  decrement and ONE customer balance mutation.

Flow (ordering matters):
1) validate customer (role=customer) and every line's product + stock
2) subtotal / item discounts / order discount / grand total (tax = 0)
3) read the customer's balance; auto-allocate advance:
   advance_used = min(balance, grand_total) when balance > 0.
   on_account forces amount_received = 0 (advance allocation is kept)
4) persist Order + lines, status derived from totals
5) conditional stock decrement per line
6) `sale` ledger entry, debit = grand_total (full amount)
7) `payment` ledger entry, credit = amount_received (if > 0 and money
   actually changed hands)
8) adjust_balance(customer, -grand_total + amount_received), once

Hard rules:
- Steps 1-8 run in ONE transaction with the customer row locked, so
  validation failures write nothing and any later failure rolls back
  the order, stock, ledger and register together.
- Money is computed server-side in Decimal (2dp, ROUND_HALF_UP).
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from django.db import transaction

from accounting.models import LedgerEntry
from accounting.services.exceptions import (
    IdempotencyError,
    LedgerValidationError,
    NotFoundError,
)
from accounting.services.ledger_service import append_entry, check_money_range, to_money
from customers.models import Customer
from customers.services.balance_register import adjust_balance, get_customer, lock_customer
from products.services.stock import decrement_stock, ensure_available, find_product, to_int_qty
from sales.models import Order, OrderItem

logger = logging.getLogger("sales.settlement")

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")

# Methods where no money changes hands at order time.
NON_RECEIPT_METHODS = frozenset({LedgerEntry.METHOD_ON_ACCOUNT, LedgerEntry.METHOD_ADVANCE})


# ============================================================
# VALUE OBJECTS
# ============================================================


@dataclass(frozen=True)
class OrderLine:
    product: object
    qty: int
    price: Decimal
    discount_value: Decimal

    @property
    def gross(self) -> Decimal:
        return (self.price * self.qty).quantize(TWOPLACES, rounding=ROUND_HALF_UP)

    @property
    def total(self) -> Decimal:
        return self.gross - self.discount_value


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    item_discount_total: Decimal
    order_discount_total: Decimal
    discount_total: Decimal
    tax_total: Decimal
    grand_total: Decimal
    previous_balance: Decimal
    advance_used: Decimal
    amount_received: Decimal
    balance: Decimal
    change_due: Decimal
    status: str

    @property
    def balance_after(self) -> Decimal:
        """Customer register value once this order is settled."""
        return self.previous_balance - self.grand_total + self.amount_received

    def as_dict(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "item_discount_total": self.item_discount_total,
            "order_discount_total": self.order_discount_total,
            "discount_total": self.discount_total,
            "tax_total": self.tax_total,
            "grand_total": self.grand_total,
            "previous_balance": self.previous_balance,
            "advance_used": self.advance_used,
            "amount_received": self.amount_received,
            "balance": self.balance,
            "change_due": self.change_due,
            "status": self.status,
            "balance_after": self.balance_after,
        }


# ============================================================
# INPUT NORMALIZATION
# ============================================================


def _normalize_payment(payment) -> tuple[str, Decimal, str]:
    if not payment:
        return LedgerEntry.METHOD_ON_ACCOUNT, ZERO, ""

    method = (payment.get("method") or "").strip().lower()
    if not method:
        raise LedgerValidationError("Payment method is required", field="payment.method")
    if method not in LedgerEntry.METHODS:
        raise LedgerValidationError(f"Invalid payment method: {method!r}", field="payment.method")

    amount = to_money(payment.get("amount_received"), field="payment.amount_received")
    if amount < ZERO:
        raise LedgerValidationError(
            "amount_received cannot be negative", field="payment.amount_received"
        )

    if method in NON_RECEIPT_METHODS:
        amount = ZERO

    return method, amount, (payment.get("reference") or "").strip()


def _normalize_order_discount(order_discount) -> tuple[str, Decimal]:
    if not order_discount:
        return "", ZERO

    kind = (order_discount.get("type") or "").strip().lower()
    value = to_money(order_discount.get("value"), field="order_discount.value")

    if kind not in (Order.DISCOUNT_PERCENTAGE, Order.DISCOUNT_FLAT):
        raise LedgerValidationError(
            f"Invalid order discount type: {kind!r}", field="order_discount.type"
        )
    if value < ZERO:
        raise LedgerValidationError("Discount cannot be negative", field="order_discount.value")
    if kind == Order.DISCOUNT_PERCENTAGE and value > HUNDRED:
        raise LedgerValidationError(
            "Percentage discount cannot exceed 100", field="order_discount.value"
        )
    return kind, value


def _build_lines(items) -> list[OrderLine]:
    if not items:
        raise LedgerValidationError("Order must contain at least one item", field="items")

    lines: list[OrderLine] = []
    for idx, item in enumerate(items):
        product_id = item.get("product_id")
        if not product_id:
            raise LedgerValidationError("product_id is required", field=f"items[{idx}].product_id")

        product = find_product(product_id)
        qty = to_int_qty(item.get("qty"), field=f"items[{idx}].qty")

        raw_price = item.get("price")
        price = product.price if raw_price in (None, "") else raw_price
        price = to_money(price, field=f"items[{idx}].price")
        if price < ZERO:
            raise LedgerValidationError("Price cannot be negative", field=f"items[{idx}].price")

        discount = to_money(item.get("discount_value"), field=f"items[{idx}].discount_value")
        if discount < ZERO:
            raise LedgerValidationError(
                "Discount cannot be negative", field=f"items[{idx}].discount_value"
            )

        line = OrderLine(product=product, qty=qty, price=price, discount_value=discount)
        if discount > line.gross:
            raise LedgerValidationError(
                "Line discount cannot exceed the line amount",
                field=f"items[{idx}].discount_value",
            )
        lines.append(line)

    return lines


def _check_stock(lines: list[OrderLine]) -> None:
    requested: dict = defaultdict(int)
    products: dict = {}
    for line in lines:
        requested[line.product.pk] += line.qty
        products[line.product.pk] = line.product

    for product_id, qty in requested.items():
        ensure_available(product=products[product_id], qty=qty)


def _validate_customer(customer: Customer) -> None:
    if not customer.is_customer:
        raise NotFoundError(f"{customer.pk} is not a customer")


# ============================================================
# TOTALS (PURE)
# ============================================================


def derive_status(*, balance: Decimal, advance_used: Decimal) -> str:
    if balance <= ZERO:
        return Order.STATUS_PAID
    if advance_used > ZERO:
        return Order.STATUS_PARTIAL
    return Order.STATUS_CREATED


def compute_order_totals(
    *,
    lines: list[OrderLine],
    current_balance: Decimal,
    payment_method: str,
    amount_received: Decimal,
    discount_type: str = "",
    discount_value: Decimal = ZERO,
) -> OrderTotals:
    subtotal = check_money_range(sum((line.gross for line in lines), ZERO), field="items")
    item_discounts = sum((line.discount_value for line in lines), ZERO)

    if discount_type == Order.DISCOUNT_PERCENTAGE:
        order_discount = (subtotal * discount_value / HUNDRED).quantize(
            TWOPLACES, rounding=ROUND_HALF_UP
        )
    elif discount_type == Order.DISCOUNT_FLAT:
        order_discount = discount_value
    else:
        order_discount = ZERO

    discount_total = item_discounts + order_discount
    if discount_total > subtotal:
        raise LedgerValidationError("Discounts cannot exceed the order subtotal", field="order_discount")

    tax_total = ZERO
    grand_total = subtotal - discount_total + tax_total

    current_balance = Decimal(current_balance)
    advance_used = min(current_balance, grand_total) if current_balance > ZERO else ZERO

    if payment_method in NON_RECEIPT_METHODS:
        amount_received = ZERO

    outstanding = grand_total - amount_received - advance_used
    balance = max(outstanding, ZERO)
    change_due = max(-outstanding, ZERO)

    return OrderTotals(
        subtotal=subtotal,
        item_discount_total=item_discounts,
        order_discount_total=order_discount,
        discount_total=discount_total,
        tax_total=tax_total,
        grand_total=grand_total,
        previous_balance=current_balance,
        advance_used=advance_used,
        amount_received=amount_received,
        balance=balance,
        change_due=change_due,
        status=derive_status(balance=balance, advance_used=advance_used),
    )


def preview_order_totals(*, customer_id, items, payment=None, order_discount=None) -> OrderTotals:
    """
    Totals an order would get right now, including the customer's
    balance after it. Read-only.
    """
    customer = get_customer(customer_id)
    _validate_customer(customer)
    method, amount, _ = _normalize_payment(payment)
    discount_type, discount_value = _normalize_order_discount(order_discount)
    lines = _build_lines(items)

    return compute_order_totals(
        lines=lines,
        current_balance=customer.balance,
        payment_method=method,
        amount_received=amount,
        discount_type=discount_type,
        discount_value=discount_value,
    )


# ============================================================
# CREATE ORDER
# ============================================================


def _replay(*, idempotency_key: str, customer_id) -> Order | None:
    existing = Order.objects.filter(idempotency_key=idempotency_key).first()
    if existing is None:
        return None
    if str(existing.customer_id) != str(customer_id):
        raise IdempotencyError(
            f"Idempotency key {idempotency_key!r} already used for another customer"
        )
    logger.info(
        "Order replayed for idempotency key",
        extra={"order_no": existing.order_no, "idempotency_key": idempotency_key},
    )
    return existing


@transaction.atomic
def create_order(
    *,
    customer_id,
    items,
    payment: dict | None = None,
    order_discount: dict | None = None,
    notes: str = "",
    date: datetime | None = None,
    idempotency_key: str | None = None,
) -> Order:
    if not customer_id:
        raise LedgerValidationError("Customer is required", field="customer_id")

    # ---- 1) validate (no writes) ----
    customer = lock_customer(customer_id)

    idempotency_key = (idempotency_key or "").strip() or None
    if idempotency_key:
        existing = _replay(idempotency_key=idempotency_key, customer_id=customer.pk)
        if existing is not None:
            return existing

    _validate_customer(customer)
    method, amount_received, payment_reference = _normalize_payment(payment)
    discount_type, discount_value = _normalize_order_discount(order_discount)
    lines = _build_lines(items)
    _check_stock(lines)

    # ---- 2) + 3) totals and advance allocation ----
    totals = compute_order_totals(
        lines=lines,
        current_balance=customer.balance,
        payment_method=method,
        amount_received=amount_received,
        discount_type=discount_type,
        discount_value=discount_value,
    )

    # ---- 4) persist order ----
    order = Order.objects.create(
        customer=customer,
        customer_name=customer.full_name,
        customer_phone=customer.phone,
        payment_method=method,
        payment_reference=payment_reference,
        order_discount_type=discount_type,
        order_discount_value=discount_value,
        subtotal=totals.subtotal,
        discount_total=totals.discount_total,
        tax_total=totals.tax_total,
        grand_total=totals.grand_total,
        amount_received=totals.amount_received,
        advance_used=totals.advance_used,
        balance=totals.balance,
        change_due=totals.change_due,
        status=totals.status,
        notes=(notes or "").strip(),
        idempotency_key=idempotency_key,
    )
    OrderItem.objects.bulk_create(
        [
            OrderItem(
                order=order,
                product=line.product,
                product_name=line.product.name,
                qty=line.qty,
                price=line.price,
                discount_value=line.discount_value,
                total=line.total,
            )
            for line in lines
        ]
    )

    # ---- 5) stock ----
    for line in lines:
        decrement_stock(line.product.pk, line.qty)

    # ---- 6) sale entry (full amount) ----
    sale_entry = append_entry(
        type=LedgerEntry.TYPE_SALE,
        method=method,
        debit=totals.grand_total,
        date=date,
        description=f"Order {order.order_no} - {customer.full_name}",
        customer=customer,
        order_no=order.order_no,
        party=customer.full_name,
    )

    # ---- 7) payment entry ----
    payment_entry = None
    if totals.amount_received > ZERO and method not in NON_RECEIPT_METHODS:
        payment_entry = append_entry(
            type=LedgerEntry.TYPE_PAYMENT,
            method=method,
            credit=totals.amount_received,
            date=date,
            description=f"Payment for order {order.order_no} - {customer.full_name}",
            customer=customer,
            order_no=order.order_no,
            party=customer.full_name,
            reference=payment_reference,
        )

    # ---- 8) one net balance mutation ----
    new_balance = adjust_balance(
        customer.pk,
        totals.amount_received - totals.grand_total,
        reason=f"order:{order.order_no}",
    )

    logger.info(
        "Order settled",
        extra={
            "order_no": order.order_no,
            "customer_id": str(customer.pk),
            "grand_total": str(totals.grand_total),
            "advance_used": str(totals.advance_used),
            "amount_received": str(totals.amount_received),
            "status": totals.status,
            "sale_txn": sale_entry.txn_id,
            "payment_txn": payment_entry.txn_id if payment_entry else None,
            "customer_balance": str(new_balance),
        },
    )
    return order
