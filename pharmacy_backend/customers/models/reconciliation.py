# customers/models/reconciliation.py

"""
BALANCE RECONCILIATION AUDIT

One row per repair made by the reconciliation utility.
Append-only; this is the audit trail for every corrective register write.
"""

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import models

from customers.models.customer import Customer


class BalanceReconciliation(models.Model):
    customer = models.ForeignKey(
        Customer,
        on_delete=models.PROTECT,
        related_name="reconciliations",
    )

    register_before = models.DecimalField(max_digits=14, decimal_places=2)
    ledger_balance = models.DecimalField(max_digits=14, decimal_places=2)
    delta = models.DecimalField(max_digits=14, decimal_places=2)
    register_after = models.DecimalField(max_digits=14, decimal_places=2)

    exceeded_tolerance = models.BooleanField(default=False)
    triggered_by = models.CharField(max_length=64, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["customer", "created_at"], name="reconciliation_customer_idx"),
        ]

    def __str__(self):
        return f"{self.customer_id} drift {self.delta}"

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValidationError("Reconciliation records are immutable")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("Reconciliation records cannot be deleted")
