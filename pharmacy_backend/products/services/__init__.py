from .stock import (
    InsufficientStockError,
    decrement_stock,
    ensure_available,
    find_product,
    purchase_stock,
    to_int_qty,
)

__all__ = [
    "InsufficientStockError",
    "decrement_stock",
    "ensure_available",
    "find_product",
    "purchase_stock",
    "to_int_qty",
]
