from .order import (
    OrderCreateSerializer,
    OrderItemSerializer,
    OrderPaymentInputSerializer,
    OrderPaymentSerializer,
    OrderPreviewSerializer,
    OrderSerializer,
)

__all__ = [
    "OrderSerializer",
    "OrderItemSerializer",
    "OrderPaymentSerializer",
    "OrderCreateSerializer",
    "OrderPreviewSerializer",
    "OrderPaymentInputSerializer",
]
