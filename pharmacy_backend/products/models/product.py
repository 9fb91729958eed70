# products/models/product.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models


class Product(models.Model):
    """
    Represents a sellable product.

    STOCK MODEL:
    - `quantity` is the on-hand unit count, never negative (DB constraint)
    - Quantity moves ONLY through products.services.stock
      (conditional decrement on sale, increment on purchase)
    - `price` is the current selling price; order lines snapshot it
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sku = models.CharField(max_length=128, unique=True, db_index=True)
    name = models.CharField(max_length=255, db_index=True)

    price = models.DecimalField(max_digits=12, decimal_places=2)

    purchase_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Last unit cost paid to the supplier.",
    )

    quantity = models.PositiveIntegerField(default=0)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=0),
                name="product_quantity_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.sku})"

    def clean(self):
        if self.price is None or Decimal(self.price) < 0:
            raise ValidationError("Price cannot be negative")

        if self.purchase_price is not None and Decimal(self.purchase_price) < 0:
            raise ValidationError("Purchase price cannot be negative")

    @property
    def stock_value(self) -> Decimal:
        return Decimal(self.price) * int(self.quantity or 0)
