# accounting/migrations/0001_initial.py

from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("customers", "0001_initial"),
        ("products", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="LedgerSequence",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("last_number", models.PositiveBigIntegerField(default=0)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Ledger Sequence",
            },
        ),
        migrations.CreateModel(
            name="LedgerEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("txn_id", models.CharField(help_text="Sequential label, e.g. TXN-000123", max_length=32, unique=True)),
                (
                    "date",
                    models.DateTimeField(
                        default=django.utils.timezone.now,
                        help_text="Logical transaction date (may differ from created_at)",
                    ),
                ),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("sale", "Sale"),
                            ("purchase", "Purchase"),
                            ("payment", "Payment"),
                            ("expense", "Expense"),
                            ("company_remit", "Sent to Company"),
                            ("commission", "Commission"),
                            ("advance", "Advance"),
                            ("refund", "Refund"),
                            ("adjustment", "Adjustment"),
                            ("other", "Other"),
                        ],
                        max_length=16,
                    ),
                ),
                (
                    "method",
                    models.CharField(
                        choices=[
                            ("cash", "Cash"),
                            ("jazzcash", "JazzCash"),
                            ("bank", "Bank"),
                            ("card", "Card"),
                            ("advance", "Advance"),
                            ("on_account", "On Account"),
                            ("other", "Other"),
                        ],
                        default="cash",
                        max_length=16,
                    ),
                ),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                (
                    "credit",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=14,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                (
                    "debit",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=14,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                ("running_balance", models.DecimalField(decimal_places=2, max_digits=16)),
                ("order_no", models.CharField(blank=True, db_index=True, default="", max_length=64)),
                ("party", models.CharField(blank=True, default="", max_length=255)),
                (
                    "reference",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="External voucher / transfer / cheque number",
                        max_length=128,
                    ),
                ),
                ("idempotency_key", models.CharField(blank=True, max_length=128, null=True, unique=True)),
                ("month", models.CharField(editable=False, max_length=7)),
                ("year", models.PositiveSmallIntegerField(editable=False)),
                ("month_number", models.PositiveSmallIntegerField(editable=False)),
                ("day", models.PositiveSmallIntegerField(editable=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "customer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="ledger_entries",
                        to="customers.customer",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="ledger_entries",
                        to="products.product",
                    ),
                ),
            ],
            options={
                "verbose_name": "Ledger Entry",
                "verbose_name_plural": "Ledger Entries",
                "ordering": ["date", "created_at", "id"],
                "indexes": [
                    models.Index(fields=["date", "created_at"], name="ledger_date_idx"),
                    models.Index(fields=["month"], name="ledger_month_idx"),
                    models.Index(fields=["year", "month_number"], name="ledger_period_idx"),
                    models.Index(fields=["type"], name="ledger_type_idx"),
                    models.Index(fields=["method"], name="ledger_method_idx"),
                    models.Index(fields=["customer", "date"], name="ledger_customer_date_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("credit__gte", 0), ("debit__gte", 0)),
                        name="ledger_entry_amounts_non_negative",
                    ),
                ],
            },
        ),
    ]
