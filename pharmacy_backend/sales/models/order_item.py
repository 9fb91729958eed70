# sales/models/order_item.py

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from products.models import Product
from sales.models.order import Order


class OrderItem(models.Model):
    """
    One order line. Price and name are snapshots taken at order time.
    total = qty * price - discount_value
    """

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="order_items")

    product_name = models.CharField(max_length=255)
    qty = models.PositiveIntegerField()
    price = models.DecimalField(max_digits=12, decimal_places=2)
    discount_value = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=14, decimal_places=2)

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return f"{self.product_name} x{self.qty}"

    def clean(self):
        if self.qty is None or self.qty <= 0:
            raise ValidationError("Quantity must be greater than zero")
        if self.price is None or self.price < 0:
            raise ValidationError("Price cannot be negative")
        if self.discount_value < 0:
            raise ValidationError("Discount cannot be negative")
