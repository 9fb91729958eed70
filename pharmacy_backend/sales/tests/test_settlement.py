# sales/tests/test_settlement.py

import uuid
from decimal import Decimal
from unittest import mock

from django.core.exceptions import ValidationError
from django.test import TestCase

from accounting.models import LedgerEntry
from accounting.services.exceptions import (
    IdempotencyError,
    LedgerValidationError,
    NotFoundError,
    PersistenceFailure,
)
from customers.models import Customer
from customers.services.advances import record_advance, record_debt
from customers.services.balance_register import get_balance
from customers.services.reconciliation import ledger_balance_for
from products.models import Product
from products.services.stock import InsufficientStockError
from sales.models import Order, OrderItem
from sales.services.settlement import create_order, preview_order_totals


class SettlementTestMixin:
    def setUp(self):
        self.customer = Customer.objects.create(first_name="Kashif", last_name="Raza", phone="03009998877")
        self.amoxil = Product.objects.create(sku="AMX-500", name="Amoxil 500mg", price=Decimal("250.00"), quantity=10)
        self.panadol = Product.objects.create(sku="PND-10", name="Panadol 10s", price=Decimal("100.00"), quantity=5)

    def _items(self, *pairs):
        return [{"product_id": product.pk, "qty": qty} for product, qty in pairs]

    def _stock(self, product):
        return Product.objects.values_list("quantity", flat=True).get(pk=product.pk)


class OrderScenarioTests(SettlementTestMixin, TestCase):
    """
    Order settlement.

    GUARANTEES:
    - customer balance after = before - grand_total + amount_received
    - on_account orders never receive money but still use advance
    - one sale debit for the full total, one payment credit if money came in
    - status is derived, never chosen
    """

    def test_cash_order_paid_in_full(self):
        order = create_order(
            customer_id=self.customer.pk,
            items=self._items((self.amoxil, 4)),
            payment={"method": "cash", "amount_received": "1000.00"},
        )

        self.assertEqual(order.grand_total, Decimal("1000.00"))
        self.assertEqual(order.status, Order.STATUS_PAID)
        self.assertEqual(order.balance, Decimal("0.00"))
        self.assertEqual(get_balance(self.customer.pk), Decimal("0.00"))

        entries = LedgerEntry.objects.filter(order_no=order.order_no).order_by("id")
        self.assertEqual(
            [(e.type, e.debit, e.credit) for e in entries],
            [
                (LedgerEntry.TYPE_SALE, Decimal("1000.00"), Decimal("0.00")),
                (LedgerEntry.TYPE_PAYMENT, Decimal("0.00"), Decimal("1000.00")),
            ],
        )
        self.assertEqual(self._stock(self.amoxil), 6)

    def test_on_account_order_uses_advance(self):
        record_advance(self.customer.pk, "500.00", "cash")

        order = create_order(
            customer_id=self.customer.pk,
            items=self._items((self.amoxil, 4), (self.panadol, 2)),
            payment={"method": "on_account"},
        )

        self.assertEqual(order.grand_total, Decimal("1200.00"))
        self.assertEqual(order.advance_used, Decimal("500.00"))
        self.assertEqual(order.amount_received, Decimal("0.00"))
        self.assertEqual(order.balance, Decimal("700.00"))
        self.assertEqual(order.status, Order.STATUS_PARTIAL)
        self.assertEqual(get_balance(self.customer.pk), Decimal("-700.00"))

        entries = LedgerEntry.objects.filter(order_no=order.order_no)
        self.assertEqual(entries.count(), 1)
        self.assertEqual(entries.get().debit, Decimal("1200.00"))

    def test_on_account_ignores_amount_received(self):
        for method in ("on_account", "advance"):
            order = create_order(
                customer_id=self.customer.pk,
                items=self._items((self.panadol, 1)),
                payment={"method": method, "amount_received": "999.00"},
            )
            self.assertEqual(order.amount_received, Decimal("0.00"))
            self.assertEqual(order.advance_used, Decimal("0.00"))
            self.assertEqual(order.status, Order.STATUS_CREATED)

        self.assertEqual(get_balance(self.customer.pk), Decimal("-200.00"))
        self.assertFalse(LedgerEntry.objects.filter(type=LedgerEntry.TYPE_PAYMENT).exists())

    def test_no_payment_is_on_account(self):
        order = create_order(customer_id=self.customer.pk, items=self._items((self.panadol, 3)))

        self.assertEqual(order.payment_method, LedgerEntry.METHOD_ON_ACCOUNT)
        self.assertEqual(order.balance, Decimal("300.00"))
        self.assertEqual(get_balance(self.customer.pk), Decimal("-300.00"))

    def test_balance_conservation_with_advance_and_partial_cash(self):
        record_advance(self.customer.pk, "300.00", "cash")

        order = create_order(
            customer_id=self.customer.pk,
            items=self._items((self.amoxil, 4)),
            payment={"method": "jazzcash", "amount_received": "400.00", "reference": "JC-55"},
        )

        self.assertEqual(order.advance_used, Decimal("300.00"))
        self.assertEqual(order.balance, Decimal("300.00"))
        self.assertEqual(order.status, Order.STATUS_PARTIAL)
        self.assertEqual(get_balance(self.customer.pk), Decimal("-300.00"))

        payment = LedgerEntry.objects.get(order_no=order.order_no, type=LedgerEntry.TYPE_PAYMENT)
        self.assertEqual(payment.reference, "JC-55")
        self.assertEqual(payment.method, "jazzcash")

    def test_balance_conservation_for_indebted_customer(self):
        record_debt(self.customer.pk, "200.00")

        order = create_order(
            customer_id=self.customer.pk,
            items=self._items((self.panadol, 5)),
            payment={"method": "cash", "amount_received": "500.00"},
        )

        self.assertEqual(order.advance_used, Decimal("0.00"))
        self.assertEqual(order.status, Order.STATUS_PAID)
        self.assertEqual(get_balance(self.customer.pk), Decimal("-200.00"))

    def test_overpayment_stays_as_advance(self):
        order = create_order(
            customer_id=self.customer.pk,
            items=self._items((self.amoxil, 4)),
            payment={"method": "cash", "amount_received": "1200.00"},
        )

        self.assertEqual(order.balance, Decimal("0.00"))
        self.assertEqual(order.change_due, Decimal("200.00"))
        self.assertEqual(order.status, Order.STATUS_PAID)
        self.assertEqual(get_balance(self.customer.pk), Decimal("200.00"))

    def test_advance_covers_whole_order(self):
        record_advance(self.customer.pk, "2000.00", "bank")

        order = create_order(
            customer_id=self.customer.pk,
            items=self._items((self.amoxil, 2)),
            payment={"method": "on_account"},
        )

        self.assertEqual(order.advance_used, Decimal("500.00"))
        self.assertEqual(order.status, Order.STATUS_PAID)
        self.assertEqual(get_balance(self.customer.pk), Decimal("1500.00"))

    def test_register_matches_ledger_after_orders(self):
        record_advance(self.customer.pk, "500.00", "cash")
        create_order(
            customer_id=self.customer.pk,
            items=self._items((self.amoxil, 4), (self.panadol, 2)),
            payment={"method": "on_account"},
        )
        create_order(
            customer_id=self.customer.pk,
            items=self._items((self.panadol, 1)),
            payment={"method": "card", "amount_received": "60.00"},
        )

        self.assertEqual(get_balance(self.customer.pk), Decimal("-740.00"))
        self.assertEqual(ledger_balance_for(self.customer.pk), Decimal("-740.00"))

    def test_running_balance_stays_global(self):
        other = Customer.objects.create(first_name="Rabia", phone="03001119999")
        create_order(
            customer_id=self.customer.pk,
            items=self._items((self.panadol, 1)),
            payment={"method": "cash", "amount_received": "100.00"},
        )
        create_order(customer_id=other.pk, items=self._items((self.panadol, 2)))

        previous = Decimal("0.00")
        for entry in LedgerEntry.objects.order_by("date", "created_at", "id"):
            self.assertEqual(entry.running_balance, previous + entry.credit - entry.debit)
            previous = entry.running_balance
        self.assertEqual(previous, Decimal("-200.00"))


class OrderTotalsTests(SettlementTestMixin, TestCase):
    """
    GUARANTEES:
    - grand_total = subtotal - item discounts - order discount (tax 0)
    - Line prices default to the product price and are snapshotted
    """

    def test_item_and_percentage_discounts(self):
        order = create_order(
            customer_id=self.customer.pk,
            items=[{"product_id": self.amoxil.pk, "qty": 4, "discount_value": "50.00"}],
            order_discount={"type": "percentage", "value": "10"},
            payment={"method": "cash", "amount_received": "850.00"},
        )

        self.assertEqual(order.subtotal, Decimal("1000.00"))
        self.assertEqual(order.discount_total, Decimal("150.00"))
        self.assertEqual(order.tax_total, Decimal("0.00"))
        self.assertEqual(order.grand_total, Decimal("850.00"))
        self.assertEqual(order.status, Order.STATUS_PAID)

        item = OrderItem.objects.get(order=order)
        self.assertEqual(item.total, Decimal("950.00"))
        self.assertEqual(item.product_name, "Amoxil 500mg")

    def test_flat_discount_and_price_override(self):
        order = create_order(
            customer_id=self.customer.pk,
            items=[{"product_id": self.amoxil.pk, "qty": 2, "price": "240.00"}],
            order_discount={"type": "flat", "value": "30.00"},
        )

        self.assertEqual(order.subtotal, Decimal("480.00"))
        self.assertEqual(order.grand_total, Decimal("450.00"))
        self.assertEqual(OrderItem.objects.get(order=order).price, Decimal("240.00"))

    def test_discount_limits(self):
        with self.assertRaises(LedgerValidationError):
            create_order(
                customer_id=self.customer.pk,
                items=self._items((self.panadol, 1)),
                order_discount={"type": "flat", "value": "100.01"},
            )
        with self.assertRaises(LedgerValidationError):
            create_order(
                customer_id=self.customer.pk,
                items=self._items((self.panadol, 1)),
                order_discount={"type": "percentage", "value": "101"},
            )
        with self.assertRaises(LedgerValidationError):
            create_order(
                customer_id=self.customer.pk,
                items=[{"product_id": self.panadol.pk, "qty": 1, "discount_value": "150.00"}],
            )

        self.assertEqual(Order.objects.count(), 0)

    def test_preview_matches_creation_without_writes(self):
        record_advance(self.customer.pk, "500.00", "cash")
        entries_before = LedgerEntry.objects.count()

        totals = preview_order_totals(
            customer_id=self.customer.pk,
            items=self._items((self.amoxil, 4), (self.panadol, 2)),
            payment={"method": "on_account"},
        )

        self.assertEqual(totals.grand_total, Decimal("1200.00"))
        self.assertEqual(totals.advance_used, Decimal("500.00"))
        self.assertEqual(totals.balance, Decimal("700.00"))
        self.assertEqual(totals.status, Order.STATUS_PARTIAL)
        self.assertEqual(totals.balance_after, Decimal("-700.00"))

        self.assertEqual(Order.objects.count(), 0)
        self.assertEqual(LedgerEntry.objects.count(), entries_before)
        self.assertEqual(self._stock(self.amoxil), 10)

    def test_totals_are_frozen(self):
        order = create_order(customer_id=self.customer.pk, items=self._items((self.panadol, 1)))

        order.grand_total = Decimal("1.00")
        order.subtotal = Decimal("1.00")
        with self.assertRaises(ValidationError):
            order.save()


class OrderValidationTests(SettlementTestMixin, TestCase):
    """
    GUARANTEES:
    - Validation and lookup failures write nothing
    - Stock never goes negative
    """

    def _assert_nothing_written(self):
        self.assertEqual(Order.objects.count(), 0)
        self.assertEqual(LedgerEntry.objects.count(), 0)
        self.assertEqual(get_balance(self.customer.pk), Decimal("0.00"))
        self.assertEqual(self._stock(self.amoxil), 10)
        self.assertEqual(self._stock(self.panadol), 5)

    def test_insufficient_stock(self):
        with self.assertRaises(InsufficientStockError) as ctx:
            create_order(
                customer_id=self.customer.pk,
                items=self._items((self.amoxil, 2), (self.panadol, 6)),
            )

        self.assertEqual(ctx.exception.product_id, self.panadol.pk)
        self.assertEqual(ctx.exception.available, 5)
        self._assert_nothing_written()

    def test_repeated_product_lines_are_summed(self):
        with self.assertRaises(InsufficientStockError):
            create_order(
                customer_id=self.customer.pk,
                items=self._items((self.panadol, 3), (self.panadol, 3)),
            )
        self._assert_nothing_written()

    def test_exact_stock_can_be_sold(self):
        create_order(customer_id=self.customer.pk, items=self._items((self.panadol, 5)))
        self.assertEqual(self._stock(self.panadol), 0)

        with self.assertRaises(InsufficientStockError):
            create_order(customer_id=self.customer.pk, items=self._items((self.panadol, 1)))
        self.assertEqual(self._stock(self.panadol), 0)

    def test_non_customer_role_rejected(self):
        supplier = Customer.objects.create(
            first_name="Getz", phone="02111111111", role=Customer.ROLE_SUPPLIER
        )
        with self.assertRaises(NotFoundError):
            create_order(customer_id=supplier.pk, items=self._items((self.panadol, 1)))
        self._assert_nothing_written()

    def test_lookup_failures(self):
        with self.assertRaises(NotFoundError):
            create_order(customer_id=uuid.uuid4(), items=self._items((self.panadol, 1)))
        with self.assertRaises(NotFoundError):
            create_order(customer_id=self.customer.pk, items=[{"product_id": uuid.uuid4(), "qty": 1}])
        self._assert_nothing_written()

    def test_malformed_input(self):
        bad_calls = [
            {"customer_id": None, "items": self._items((self.panadol, 1))},
            {"customer_id": self.customer.pk, "items": []},
            {"customer_id": self.customer.pk, "items": [{"qty": 1}]},
            {"customer_id": self.customer.pk, "items": [{"product_id": self.panadol.pk, "qty": 0}]},
            {
                "customer_id": self.customer.pk,
                "items": self._items((self.panadol, 1)),
                "payment": {"method": ""},
            },
            {
                "customer_id": self.customer.pk,
                "items": self._items((self.panadol, 1)),
                "payment": {"method": "cash", "amount_received": "-1"},
            },
        ]
        for kwargs in bad_calls:
            with self.assertRaises(LedgerValidationError):
                create_order(**kwargs)
        self._assert_nothing_written()

    def test_subtotal_beyond_storable_range(self):
        Product.objects.filter(pk=self.amoxil.pk).update(price=Decimal("999999999999.99"))

        with self.assertRaises(LedgerValidationError) as ctx:
            create_order(customer_id=self.customer.pk, items=self._items((self.amoxil, 2)))

        self.assertEqual(ctx.exception.field, "items")
        self._assert_nothing_written()


class OrderAtomicityTests(SettlementTestMixin, TestCase):
    """
    GUARANTEES:
    - A failure after the order row is written rolls back order,
      stock, ledger and register together
    - An idempotency key settles an order at most once
    """

    def _assert_untouched(self):
        self.assertEqual(Order.objects.count(), 0)
        self.assertEqual(OrderItem.objects.count(), 0)
        self.assertEqual(self._stock(self.amoxil), 10)
        self.assertEqual(get_balance(self.customer.pk), Decimal("0.00"))

    def test_ledger_failure_rolls_back_everything(self):
        with mock.patch(
            "sales.services.settlement.append_entry",
            side_effect=PersistenceFailure("ledger store unavailable"),
        ):
            with self.assertRaises(PersistenceFailure):
                create_order(
                    customer_id=self.customer.pk,
                    items=self._items((self.amoxil, 2)),
                    payment={"method": "cash", "amount_received": "500.00"},
                )

        self._assert_untouched()
        self.assertEqual(LedgerEntry.objects.count(), 0)

    def test_register_failure_rolls_back_ledger(self):
        with mock.patch(
            "sales.services.settlement.adjust_balance",
            side_effect=PersistenceFailure("balance write not confirmed"),
        ):
            with self.assertRaises(PersistenceFailure):
                create_order(
                    customer_id=self.customer.pk,
                    items=self._items((self.amoxil, 2)),
                    payment={"method": "cash", "amount_received": "500.00"},
                )

        self._assert_untouched()
        self.assertEqual(LedgerEntry.objects.count(), 0)

    def test_idempotent_replay(self):
        kwargs = {
            "customer_id": self.customer.pk,
            "items": self._items((self.amoxil, 2)),
            "payment": {"method": "on_account"},
            "idempotency_key": "desk-1-0001",
        }
        first = create_order(**kwargs)
        second = create_order(**kwargs)

        self.assertEqual(first.pk, second.pk)
        self.assertEqual(Order.objects.count(), 1)
        self.assertEqual(self._stock(self.amoxil), 8)
        self.assertEqual(get_balance(self.customer.pk), Decimal("-500.00"))
        self.assertEqual(LedgerEntry.objects.count(), 1)

    def test_idempotency_key_bound_to_customer(self):
        other = Customer.objects.create(first_name="Other", phone="03001110000")
        create_order(
            customer_id=self.customer.pk,
            items=self._items((self.panadol, 1)),
            idempotency_key="desk-1-0002",
        )

        with self.assertRaises(IdempotencyError):
            create_order(
                customer_id=other.pk,
                items=self._items((self.panadol, 1)),
                idempotency_key="desk-1-0002",
            )
        self.assertEqual(get_balance(other.pk), Decimal("0.00"))
