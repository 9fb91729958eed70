# customers/models/customer.py

"""
======================================================
PATH: customers/models/customer.py
======================================================
CUSTOMER MODEL (+ BALANCE REGISTER)

`balance` is the customer balance register:
- positive: usable advance held for the customer
- negative: amount the customer owes
- zero: settled

Rules:
- New customers always start at 0.00
- The register is written ONLY by customers.services.balance_register
  (queryset .update() under a row lock). A plain save() that tries to
  change it is rejected.
- The register is never recalculated on read; drift is repaired by
  customers.services.reconciliation.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models


class Customer(models.Model):
    ROLE_CUSTOMER = "customer"
    ROLE_SALESMAN = "salesman"
    ROLE_SUPPLIER = "supplier"

    ROLE_CHOICES = [
        (ROLE_CUSTOMER, "Customer"),
        (ROLE_SALESMAN, "Salesman"),
        (ROLE_SUPPLIER, "Supplier"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    first_name = models.CharField(max_length=120)
    last_name = models.CharField(max_length=120, blank=True, default="")
    phone = models.CharField(max_length=32, unique=True)
    email = models.EmailField(blank=True, default="")
    address = models.CharField(max_length=255, blank=True, default="")

    role = models.CharField(
        max_length=16,
        choices=ROLE_CHOICES,
        default=ROLE_CUSTOMER,
    )

    balance = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        editable=False,
        help_text="Signed register: + advance held, - amount owed.",
    )

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["first_name", "last_name"]
        indexes = [
            models.Index(fields=["role"], name="customer_role_idx"),
            models.Index(fields=["phone"], name="customer_phone_idx"),
        ]

    def __str__(self):
        return f"{self.full_name} ({self.phone})"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_customer(self) -> bool:
        return self.role == self.ROLE_CUSTOMER

    def save(self, *args, **kwargs):
        if self._state.adding:
            if self.balance not in (None, Decimal("0.00")):
                raise ValidationError(
                    "New customers start at a zero balance; "
                    "record an advance or debt instead."
                )
            self.balance = Decimal("0.00")
        else:
            stored = (
                Customer.objects.filter(pk=self.pk)
                .values_list("balance", flat=True)
                .first()
            )
            if stored is not None and Decimal(self.balance) != stored:
                raise ValidationError(
                    "Customer balance can only change through the balance register."
                )

        super().save(*args, **kwargs)
