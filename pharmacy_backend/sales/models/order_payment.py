# sales/models/order_payment.py

"""
ORDER PAYMENT HISTORY

Append-only record of each payment taken against an order after
creation. Each row points at the ledger entry that booked it.
"""

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from accounting.models import LedgerEntry
from sales.models.order import Order


class OrderPayment(models.Model):
    order = models.ForeignKey(Order, on_delete=models.PROTECT, related_name="payments")

    amount = models.DecimalField(max_digits=14, decimal_places=2)
    method = models.CharField(max_length=16)
    reference = models.CharField(max_length=128, blank=True, default="")
    note = models.CharField(max_length=255, blank=True, default="")

    ledger_entry = models.OneToOneField(
        LedgerEntry,
        on_delete=models.PROTECT,
        related_name="order_payment",
    )

    paid_at = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["paid_at", "id"]

    def __str__(self):
        return f"{self.order_id} +{self.amount} ({self.method})"

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValidationError("Order payments are immutable")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Order payments cannot be deleted")
