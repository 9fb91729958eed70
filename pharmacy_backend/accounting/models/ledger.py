# accounting/models/ledger.py

"""
======================================================
PATH: accounting/models/ledger.py
======================================================
LEDGER ENTRY MODEL (CASH BOOK)

One financial event with a credit and a debit side and the global
running balance after it.

Guarantees:
- Immutable once created (no updates, no deletes)
- credit/debit are both >= 0; both columns always exist
- running_balance is the whole-business position after this entry,
  NOT a per-customer figure
- month/year/month_number/day are derived from `date` on insert

Corrections are new `adjustment` / `refund` entries, never edits.
Rows are written ONLY by accounting.services.ledger_service.append_entry.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from customers.models import Customer
from products.models import Product


class LedgerEntry(models.Model):
    # ---------------------------
    # Entry types
    # ---------------------------
    TYPE_SALE = "sale"
    TYPE_PURCHASE = "purchase"
    TYPE_PAYMENT = "payment"
    TYPE_EXPENSE = "expense"
    TYPE_COMPANY_REMIT = "company_remit"
    TYPE_COMMISSION = "commission"
    TYPE_ADVANCE = "advance"
    TYPE_REFUND = "refund"
    TYPE_ADJUSTMENT = "adjustment"
    TYPE_OTHER = "other"

    TYPE_CHOICES = [
        (TYPE_SALE, "Sale"),
        (TYPE_PURCHASE, "Purchase"),
        (TYPE_PAYMENT, "Payment"),
        (TYPE_EXPENSE, "Expense"),
        (TYPE_COMPANY_REMIT, "Sent to Company"),
        (TYPE_COMMISSION, "Commission"),
        (TYPE_ADVANCE, "Advance"),
        (TYPE_REFUND, "Refund"),
        (TYPE_ADJUSTMENT, "Adjustment"),
        (TYPE_OTHER, "Other"),
    ]

    # ---------------------------
    # Payment channels
    # ---------------------------
    METHOD_CASH = "cash"
    METHOD_JAZZCASH = "jazzcash"
    METHOD_BANK = "bank"
    METHOD_CARD = "card"
    METHOD_ADVANCE = "advance"
    METHOD_ON_ACCOUNT = "on_account"
    METHOD_OTHER = "other"

    METHOD_CHOICES = [
        (METHOD_CASH, "Cash"),
        (METHOD_JAZZCASH, "JazzCash"),
        (METHOD_BANK, "Bank"),
        (METHOD_CARD, "Card"),
        (METHOD_ADVANCE, "Advance"),
        (METHOD_ON_ACCOUNT, "On Account"),
        (METHOD_OTHER, "Other"),
    ]

    TYPES = frozenset(value for value, _ in TYPE_CHOICES)
    METHODS = frozenset(value for value, _ in METHOD_CHOICES)

    txn_id = models.CharField(
        max_length=32,
        unique=True,
        help_text="Sequential label, e.g. TXN-000123",
    )

    date = models.DateTimeField(
        default=timezone.now,
        help_text="Logical transaction date (may differ from created_at)",
    )

    type = models.CharField(max_length=16, choices=TYPE_CHOICES)
    method = models.CharField(
        max_length=16,
        choices=METHOD_CHOICES,
        default=METHOD_CASH,
    )

    description = models.CharField(max_length=255, blank=True, default="")

    credit = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    debit = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )

    running_balance = models.DecimalField(max_digits=16, decimal_places=2)

    # ---------------------------
    # ref: what caused this entry
    # ---------------------------
    customer = models.ForeignKey(
        Customer,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="ledger_entries",
    )
    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="ledger_entries",
    )
    order_no = models.CharField(max_length=64, blank=True, default="", db_index=True)
    party = models.CharField(max_length=255, blank=True, default="")
    reference = models.CharField(
        max_length=128,
        blank=True,
        default="",
        help_text="External voucher / transfer / cheque number",
    )

    idempotency_key = models.CharField(
        max_length=128,
        unique=True,
        null=True,
        blank=True,
    )

    # ---------------------------
    # Derived reporting keys
    # ---------------------------
    month = models.CharField(max_length=7, editable=False)  # YYYY-MM
    year = models.PositiveSmallIntegerField(editable=False)
    month_number = models.PositiveSmallIntegerField(editable=False)
    day = models.PositiveSmallIntegerField(editable=False)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Ledger Entry"
        verbose_name_plural = "Ledger Entries"
        ordering = ["date", "created_at", "id"]
        indexes = [
            models.Index(fields=["date", "created_at"], name="ledger_date_idx"),
            models.Index(fields=["month"], name="ledger_month_idx"),
            models.Index(fields=["year", "month_number"], name="ledger_period_idx"),
            models.Index(fields=["type"], name="ledger_type_idx"),
            models.Index(fields=["method"], name="ledger_method_idx"),
            models.Index(fields=["customer", "date"], name="ledger_customer_date_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(credit__gte=0) & models.Q(debit__gte=0),
                name="ledger_entry_amounts_non_negative",
            ),
        ]

    def __str__(self):
        return f"{self.txn_id} {self.type} +{self.credit} -{self.debit} = {self.running_balance}"

    @property
    def net_amount(self) -> Decimal:
        return Decimal(self.credit) - Decimal(self.debit)

    def clean(self):
        if self.type not in self.TYPES:
            raise ValidationError({"type": f"Invalid ledger type: {self.type!r}"})

        if self.method not in self.METHODS:
            raise ValidationError({"method": f"Invalid payment method: {self.method!r}"})

        if self.credit is None or self.credit < 0:
            raise ValidationError({"credit": "Credit cannot be negative"})

        if self.debit is None or self.debit < 0:
            raise ValidationError({"debit": "Debit cannot be negative"})

    def _derive_period_fields(self):
        local = timezone.localtime(self.date) if timezone.is_aware(self.date) else self.date
        self.year = local.year
        self.month_number = local.month
        self.day = local.day
        self.month = f"{local.year:04d}-{local.month:02d}"

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValidationError("LedgerEntry records are immutable and cannot be modified")

        if self.date is None:
            self.date = timezone.now()

        self._derive_period_fields()
        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("LedgerEntry records are immutable and cannot be deleted")
