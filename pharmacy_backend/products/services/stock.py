# products/services/stock.py

"""
STOCK SERVICE

Purpose:
- findProduct / decrementStock for order settlement
- Purchase intake (adds quantity, books a `purchase` ledger entry)

Rules:
- Quantities are whole integer units.
- A decrement is ONE conditional UPDATE (quantity >= qty), never a
  separate check-then-write, so concurrent orders cannot oversell.
- A failed decrement leaves stock unchanged and raises InsufficientStockError.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import F

from accounting.models import LedgerEntry
from accounting.services.exceptions import (
    LedgerServiceError,
    LedgerValidationError,
    NotFoundError,
)
from accounting.services.ledger_service import (
    append_entry,
    cash_method,
    check_money_range,
    to_money,
)
from products.models import Product

logger = logging.getLogger("products.stock")

TWOPLACES = Decimal("0.01")

# PositiveIntegerField upper bound
MAX_QTY = 2_147_483_647


# ============================================================
# DOMAIN ERRORS
# ============================================================


class InsufficientStockError(LedgerServiceError):
    def __init__(self, *, product: Product, requested: int, available: int | None = None):
        self.product_id = product.id
        self.product_name = product.name
        self.requested = int(requested)
        self.available = int(product.quantity if available is None else available)
        super().__init__(
            f"Insufficient stock for {self.product_name}. "
            f"Available: {self.available}, Requested: {self.requested}"
        )


def to_int_qty(value, *, field: str = "qty") -> int:
    """
    Quantity normalizer.
    HARD RULE: quantities are integer units in this system.
    """
    if isinstance(value, bool) or value is None or value == "":
        raise LedgerValidationError("quantity must be a whole integer unit", field=field)

    if isinstance(value, int):
        qty = value
    elif isinstance(value, str) and value.strip().isdigit():
        qty = int(value.strip())
    else:
        raise LedgerValidationError("quantity must be a whole integer unit", field=field)

    if qty <= 0:
        raise LedgerValidationError("quantity must be greater than zero", field=field)
    if qty > MAX_QTY:
        raise LedgerValidationError(f"quantity cannot exceed {MAX_QTY}", field=field)
    return qty


# ============================================================
# LOOKUPS
# ============================================================


def find_product(product_id) -> Product:
    try:
        return Product.objects.get(pk=product_id)
    except (Product.DoesNotExist, DjangoValidationError, ValueError, TypeError) as exc:
        raise NotFoundError(f"Product {product_id} not found") from exc


def ensure_available(*, product: Product, qty: int) -> None:
    if int(product.quantity) < qty:
        raise InsufficientStockError(product=product, requested=qty)


# ============================================================
# MUTATIONS
# ============================================================


def decrement_stock(product_id, qty) -> int:
    """
    Atomic conditional decrement. Returns the remaining quantity.
    """
    qty = to_int_qty(qty)

    updated = Product.objects.filter(pk=product_id, quantity__gte=qty).update(
        quantity=F("quantity") - qty
    )

    if updated == 0:
        product = find_product(product_id)
        raise InsufficientStockError(product=product, requested=qty)

    remaining = Product.objects.filter(pk=product_id).values_list("quantity", flat=True).get()
    logger.info(
        "Stock decremented",
        extra={"product_id": str(product_id), "qty": qty, "remaining": remaining},
    )
    return remaining


@transaction.atomic
def purchase_stock(
    *,
    product_id,
    qty,
    unit_cost,
    method: str = "cash",
    supplier: str = "",
    reference: str = "",
    date: datetime | None = None,
):
    """
    Receive stock from a supplier.

    Adds quantity, records the unit cost and books one `purchase` ledger
    entry with debit = qty x unit_cost. Returns (product, ledger_entry).
    """
    qty = to_int_qty(qty)
    method = cash_method(method)
    cost = to_money(unit_cost, field="unit_cost")
    if cost <= 0:
        raise LedgerValidationError("unit_cost must be greater than zero", field="unit_cost")

    product = find_product(product_id)
    product = Product.objects.select_for_update().get(pk=product.pk)

    if product.quantity + qty > MAX_QTY:
        raise LedgerValidationError(f"quantity on hand cannot exceed {MAX_QTY}", field="qty")

    total_cost = check_money_range(
        (cost * qty).quantize(TWOPLACES, rounding=ROUND_HALF_UP), field="unit_cost"
    )

    Product.objects.filter(pk=product.pk).update(
        quantity=F("quantity") + qty,
        purchase_price=cost,
    )
    product.refresh_from_db()

    entry = append_entry(
        type=LedgerEntry.TYPE_PURCHASE,
        method=method,
        debit=total_cost,
        date=date,
        description=f"Stock purchase: {product.name} x{qty}",
        product=product,
        party=supplier,
        reference=reference,
    )

    logger.info(
        "Stock purchased",
        extra={
            "product_id": str(product.id),
            "qty": qty,
            "unit_cost": str(cost),
            "txn_id": entry.txn_id,
        },
    )
    return product, entry
