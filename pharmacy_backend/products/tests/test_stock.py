# products/tests/test_stock.py

import uuid
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from accounting.models import LedgerEntry
from accounting.services.exceptions import LedgerValidationError, NotFoundError
from products.models import Product
from products.services.stock import (
    InsufficientStockError,
    decrement_stock,
    ensure_available,
    find_product,
    purchase_stock,
    to_int_qty,
)

User = get_user_model()


class StockDecrementTests(TestCase):
    """
    Stock-level tests.

    GUARANTEES:
    - Quantities never go below zero
    - A failed decrement leaves stock unchanged
    - Quantities are whole units
    """

    def setUp(self):
        self.product = Product.objects.create(
            name="Paracetamol 500mg",
            sku="PCM-500",
            price=Decimal("100.00"),
            quantity=10,
        )

    def test_decrement_returns_remaining(self):
        self.assertEqual(decrement_stock(self.product.pk, 4), 6)
        self.assertEqual(decrement_stock(self.product.pk, 6), 0)

        self.product.refresh_from_db()
        self.assertEqual(self.product.quantity, 0)

    def test_oversell_rejected_and_stock_unchanged(self):
        with self.assertRaises(InsufficientStockError) as ctx:
            decrement_stock(self.product.pk, 11)

        self.assertEqual(ctx.exception.product_id, self.product.pk)
        self.assertEqual(ctx.exception.available, 10)
        self.assertEqual(ctx.exception.requested, 11)
        self.assertIn("Paracetamol 500mg", str(ctx.exception))

        self.product.refresh_from_db()
        self.assertEqual(self.product.quantity, 10)

    def test_ensure_available(self):
        ensure_available(product=self.product, qty=10)
        with self.assertRaises(InsufficientStockError):
            ensure_available(product=self.product, qty=11)

    def test_quantity_must_be_whole_positive_units(self):
        for bad in (0, -1, 1.5, "2.5", "", None, True):
            with self.assertRaises(LedgerValidationError):
                to_int_qty(bad)
        self.assertEqual(to_int_qty("3"), 3)

    def test_find_product(self):
        self.assertEqual(find_product(self.product.pk), self.product)
        with self.assertRaises(NotFoundError):
            find_product(uuid.uuid4())
        with self.assertRaises(NotFoundError):
            find_product("garbage")

    def test_stock_value(self):
        self.assertEqual(self.product.stock_value, Decimal("1000.00"))


class StockPurchaseTests(TestCase):
    """
    GUARANTEES:
    - A purchase adds quantity and books one `purchase` debit
    - The last unit cost is remembered
    """

    def setUp(self):
        self.product = Product.objects.create(
            name="ORS Sachet",
            sku="ORS-001",
            price=Decimal("50.00"),
            quantity=2,
        )

    def test_purchase_adds_stock_and_books_debit(self):
        product, entry = purchase_stock(
            product_id=self.product.pk,
            qty=12,
            unit_cost="30.50",
            supplier="Getz Pharma",
            reference="INV-2231",
        )

        self.assertEqual(product.quantity, 14)
        self.assertEqual(product.purchase_price, Decimal("30.50"))

        self.assertEqual(entry.type, LedgerEntry.TYPE_PURCHASE)
        self.assertEqual(entry.debit, Decimal("366.00"))
        self.assertEqual(entry.credit, Decimal("0.00"))
        self.assertEqual(entry.product, self.product)
        self.assertEqual(entry.party, "Getz Pharma")
        self.assertEqual(entry.running_balance, Decimal("-366.00"))

    def test_invalid_purchase_writes_nothing(self):
        with self.assertRaises(LedgerValidationError):
            purchase_stock(product_id=self.product.pk, qty=5, unit_cost="0")
        with self.assertRaises(NotFoundError):
            purchase_stock(product_id=uuid.uuid4(), qty=5, unit_cost="1.00")

        self.product.refresh_from_db()
        self.assertEqual(self.product.quantity, 2)
        self.assertEqual(LedgerEntry.objects.count(), 0)

    def test_purchase_needs_a_money_moving_method(self):
        for method in ("on_account", "advance", "cheque"):
            with self.assertRaises(LedgerValidationError) as ctx:
                purchase_stock(product_id=self.product.pk, qty=5, unit_cost="10.00", method=method)
            self.assertEqual(ctx.exception.field, "method")

        self.product.refresh_from_db()
        self.assertEqual(self.product.quantity, 2)
        self.assertEqual(LedgerEntry.objects.count(), 0)

    def test_purchase_beyond_storable_range(self):
        with self.assertRaises(LedgerValidationError) as ctx:
            purchase_stock(product_id=self.product.pk, qty=2, unit_cost="999999999999.99")
        self.assertEqual(ctx.exception.field, "unit_cost")

        with self.assertRaises(LedgerValidationError) as ctx:
            purchase_stock(product_id=self.product.pk, qty=2_147_483_647, unit_cost="0.01")
        self.assertEqual(ctx.exception.field, "qty")

        self.product.refresh_from_db()
        self.assertEqual(self.product.quantity, 2)
        self.assertEqual(self.product.purchase_price, Decimal("0.00"))
        self.assertEqual(LedgerEntry.objects.count(), 0)

    def test_purchase_api_refuses_on_account(self):
        admin = User.objects.create_superuser(
            username="storekeeper", email="store@example.com", password="password123"
        )
        client = APIClient()
        client.force_authenticate(admin)

        res = client.post(
            reverse("product-purchase", args=[self.product.pk]),
            {"qty": 3, "unit_cost": "20.00", "method": "on_account"},
            format="json",
        )

        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(LedgerEntry.objects.count(), 0)

    def test_purchase_api(self):
        admin = User.objects.create_superuser(
            username="storekeeper", email="store@example.com", password="password123"
        )
        client = APIClient()
        client.force_authenticate(admin)

        res = client.post(
            reverse("product-purchase", args=[self.product.pk]),
            {"qty": 3, "unit_cost": "20.00", "method": "bank", "supplier": "Abbott"},
            format="json",
        )

        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(res.data["product"]["quantity"], 5)
        self.assertEqual(res.data["ledger_entry"]["debit"], "60.00")

    def test_purchase_api_requires_permission(self):
        clerk = User.objects.create_user(username="clerk", password="password123")
        client = APIClient()
        client.force_authenticate(clerk)

        res = client.post(
            reverse("product-purchase", args=[self.product.pk]),
            {"qty": 3, "unit_cost": "20.00"},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)
