# sales/models/order.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from customers.models import Customer


class Order(models.Model):
    """
    A customer order taken by the order desk.

    GUARANTEES:
    - grand_total = subtotal - discount_total + tax_total
    - balance = grand_total - amount_received - advance_used, clamped at 0;
      any excess is kept in change_due (it stays on the customer's advance)
    - Totals are frozen at creation. Only order payments may move
      amount_received / balance / status, and always together.
    - Written ONLY by sales.services.settlement and sales.services.order_payments
    """

    STATUS_CREATED = "created"
    STATUS_PARTIAL = "partial"
    STATUS_PAID = "paid"
    STATUS_CANCELLED = "cancelled"
    STATUS_COMPLETED = "completed"

    STATUS_CHOICES = [
        (STATUS_CREATED, "Created"),
        (STATUS_PARTIAL, "Partially Paid"),
        (STATUS_PAID, "Paid"),
        (STATUS_CANCELLED, "Cancelled"),
        (STATUS_COMPLETED, "Completed"),
    ]

    DISCOUNT_PERCENTAGE = "percentage"
    DISCOUNT_FLAT = "flat"

    DISCOUNT_CHOICES = [
        (DISCOUNT_PERCENTAGE, "Percentage"),
        (DISCOUNT_FLAT, "Flat"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order_no = models.CharField(
        max_length=64,
        unique=True,
        blank=True,
        help_text="System-generated order number",
    )

    customer = models.ForeignKey(
        Customer,
        on_delete=models.PROTECT,
        related_name="orders",
    )
    customer_name = models.CharField(max_length=255, blank=True, default="")
    customer_phone = models.CharField(max_length=32, blank=True, default="")

    payment_method = models.CharField(max_length=16, default="on_account")
    payment_reference = models.CharField(max_length=128, blank=True, default="")

    order_discount_type = models.CharField(
        max_length=16, choices=DISCOUNT_CHOICES, blank=True, default=""
    )
    order_discount_value = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )

    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    discount_total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    tax_total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    grand_total = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    amount_received = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    advance_used = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    balance = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    change_due = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_CREATED)

    notes = models.TextField(blank=True, default="")

    idempotency_key = models.CharField(max_length=128, unique=True, null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["created_at"], name="order_created_idx"),
            models.Index(fields=["status"], name="order_status_idx"),
            models.Index(fields=["customer", "created_at"], name="order_customer_idx"),
        ]

    _FROZEN_FIELDS = (
        "customer_id",
        "subtotal",
        "discount_total",
        "tax_total",
        "grand_total",
        "advance_used",
        "order_discount_type",
        "order_discount_value",
    )

    def __str__(self):
        return f"{self.order_no} | {self.grand_total} | {self.status}"

    @property
    def is_settled(self) -> bool:
        return self.status in (self.STATUS_PAID, self.STATUS_COMPLETED)

    def clean(self):
        expected_grand = self.subtotal - self.discount_total + self.tax_total
        if self.grand_total != expected_grand:
            raise ValidationError(
                f"grand_total {self.grand_total} != subtotal - discount + tax ({expected_grand})"
            )

        outstanding = self.grand_total - self.amount_received - self.advance_used
        if self.balance != max(outstanding, Decimal("0.00")):
            raise ValidationError(
                f"balance {self.balance} does not match totals (expected {max(outstanding, Decimal('0.00'))})"
            )

        if self.amount_received < 0 or self.advance_used < 0 or self.discount_total < 0:
            raise ValidationError("Order amounts cannot be negative")

    def _validate_frozen(self, previous: "Order"):
        for field in self._FROZEN_FIELDS:
            if getattr(self, field) != getattr(previous, field):
                raise ValidationError(
                    f"Order totals are frozen after creation. Field '{field}' cannot be changed."
                )

    def save(self, *args, **kwargs):
        if self.pk and not self._state.adding:
            previous = Order.objects.filter(pk=self.pk).first()
            if previous is not None:
                self._validate_frozen(previous)

        if not self.order_no:
            prefix = timezone.now().strftime("ORD%Y%m%d")
            self.order_no = f"{prefix}-{uuid.uuid4().hex[:8].upper()}"

        self.clean()
        super().save(*args, **kwargs)
