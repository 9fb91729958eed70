# sales/tests/test_order_payments.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from accounting.models import LedgerEntry
from accounting.services.exceptions import LedgerValidationError, NotFoundError
from customers.models import Customer
from customers.services.advances import record_advance
from customers.services.balance_register import get_balance
from customers.services.reconciliation import ledger_balance_for
from products.models import Product
from sales.models import Order, OrderPayment
from sales.services.order_payments import record_order_payment
from sales.services.settlement import create_order


class OrderPaymentTests(TestCase):
    """
    Payments against an open order.

    GUARANTEES:
    - amount_received, balance and status move together
    - each payment books one `payment` credit and one history row
    - the customer register moves by +amount
    - closed orders and overpayments are refused
    """

    def setUp(self):
        self.customer = Customer.objects.create(first_name="Asad", phone="03334445566")
        self.product = Product.objects.create(sku="AUG-1G", name="Augmentin 1g", price=Decimal("500.00"), quantity=20)
        self.order = create_order(
            customer_id=self.customer.pk,
            items=[{"product_id": self.product.pk, "qty": 2}],
            payment={"method": "on_account"},
        )

    def test_partial_then_full_payment(self):
        order = record_order_payment(order_id=self.order.pk, amount="400.00", method="cash", reference="R-1")

        self.assertEqual(order.amount_received, Decimal("400.00"))
        self.assertEqual(order.balance, Decimal("600.00"))
        self.assertEqual(order.status, Order.STATUS_PARTIAL)
        self.assertEqual(get_balance(self.customer.pk), Decimal("-600.00"))

        order = record_order_payment(order_id=self.order.pk, amount="600.00", method="bank")

        self.assertEqual(order.balance, Decimal("0.00"))
        self.assertEqual(order.status, Order.STATUS_PAID)
        self.assertEqual(get_balance(self.customer.pk), Decimal("0.00"))
        self.assertEqual(ledger_balance_for(self.customer.pk), Decimal("0.00"))

    def test_payment_history_links_ledger_entry(self):
        record_order_payment(order_id=self.order.pk, amount="250.00", method="jazzcash", note="first instalment")

        payment = OrderPayment.objects.get(order=self.order)
        self.assertEqual(payment.amount, Decimal("250.00"))
        self.assertEqual(payment.ledger_entry.type, LedgerEntry.TYPE_PAYMENT)
        self.assertEqual(payment.ledger_entry.credit, Decimal("250.00"))
        self.assertEqual(payment.ledger_entry.order_no, self.order.order_no)
        self.assertEqual(payment.ledger_entry.customer, self.customer)
        self.assertEqual(payment.paid_at, payment.ledger_entry.date)

        with self.assertRaises(ValidationError):
            payment.delete()

    def test_register_follows_ledger_while_customer_owes(self):
        record_advance(self.customer.pk, "300.00", "cash")
        order = create_order(
            customer_id=self.customer.pk,
            items=[{"product_id": self.product.pk, "qty": 1}],
            payment={"method": "on_account"},
        )
        # still owing after the advance, so nothing is allocated
        self.assertEqual(order.advance_used, Decimal("0.00"))

        order = record_order_payment(order_id=order.pk, amount="500.00", method="cash")
        self.assertEqual(order.status, Order.STATUS_PAID)
        self.assertEqual(get_balance(self.customer.pk), ledger_balance_for(self.customer.pk))

    def test_overpayment_refused(self):
        with self.assertRaises(LedgerValidationError) as ctx:
            record_order_payment(order_id=self.order.pk, amount="1000.01", method="cash")

        self.assertEqual(ctx.exception.field, "amount")
        self.assertEqual(OrderPayment.objects.count(), 0)

    def test_paid_order_refuses_payment(self):
        record_order_payment(order_id=self.order.pk, amount="1000.00", method="cash")

        with self.assertRaises(LedgerValidationError) as ctx:
            record_order_payment(order_id=self.order.pk, amount="1.00", method="cash")
        self.assertEqual(ctx.exception.field, "status")

    def test_non_receipt_methods_refused(self):
        for method in ("on_account", "advance", "cheque"):
            with self.assertRaises(LedgerValidationError):
                record_order_payment(order_id=self.order.pk, amount="10.00", method=method)

        self.assertEqual(get_balance(self.customer.pk), Decimal("-1000.00"))

    def test_non_positive_amount_refused(self):
        with self.assertRaises(LedgerValidationError):
            record_order_payment(order_id=self.order.pk, amount="0", method="cash")

    def test_unknown_order(self):
        with self.assertRaises(NotFoundError):
            record_order_payment(order_id=uuid.uuid4(), amount="10.00", method="cash")
