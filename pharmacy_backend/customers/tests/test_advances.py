# customers/tests/test_advances.py

import uuid
from decimal import Decimal
from unittest import mock

from django.test import TestCase

from accounting.models import LedgerEntry
from accounting.services.exceptions import (
    IdempotencyError,
    LedgerValidationError,
    NotFoundError,
)
from customers.models import Customer
from customers.services import advances
from customers.services.advances import (
    onboard_customer,
    record_advance,
    record_customer_payment,
    record_debt,
)
from customers.services.balance_register import adjust_balance, get_balance
from customers.services.reconciliation import recalculate_from_ledger


class AdvanceAndDebtTests(TestCase):
    """
    Advances and debts.

    GUARANTEES:
    - Each call books one ledger entry and moves the register once
    - on_account is never a way of receiving money
    - Rejected calls write nothing
    """

    def setUp(self):
        self.customer = Customer.objects.create(first_name="Sana", phone="03335556677")

    def test_record_advance(self):
        balance = record_advance(self.customer.pk, "500.00", "cash", "RCPT-1")

        self.assertEqual(balance, Decimal("500.00"))
        entry = LedgerEntry.objects.get()
        self.assertEqual(entry.type, LedgerEntry.TYPE_ADVANCE)
        self.assertEqual(entry.credit, Decimal("500.00"))
        self.assertEqual(entry.debit, Decimal("0.00"))
        self.assertEqual(entry.customer, self.customer)
        self.assertEqual(entry.reference, "RCPT-1")

    def test_record_debt(self):
        balance = record_debt(self.customer.pk, "300.00", "OPENING")

        self.assertEqual(balance, Decimal("-300.00"))
        entry = LedgerEntry.objects.get()
        self.assertEqual(entry.type, LedgerEntry.TYPE_SALE)
        self.assertEqual(entry.method, LedgerEntry.METHOD_ON_ACCOUNT)
        self.assertEqual(entry.debit, Decimal("300.00"))

    def test_on_account_advance_rejected(self):
        with self.assertRaises(LedgerValidationError) as ctx:
            record_advance(self.customer.pk, "100.00", "on_account")

        self.assertEqual(ctx.exception.field, "method")
        self.assertEqual(LedgerEntry.objects.count(), 0)
        self.assertEqual(get_balance(self.customer.pk), Decimal("0.00"))

    def test_non_positive_amount_rejected(self):
        for amount in ("0", "-5.00"):
            with self.assertRaises(LedgerValidationError):
                record_advance(self.customer.pk, amount, "cash")
            with self.assertRaises(LedgerValidationError):
                record_debt(self.customer.pk, amount)

    def test_unknown_customer(self):
        with self.assertRaises(NotFoundError):
            record_advance(uuid.uuid4(), "10.00", "cash")
        self.assertEqual(LedgerEntry.objects.count(), 0)

    def test_retried_advance_with_same_key_is_rejected(self):
        record_advance(self.customer.pk, "100.00", "cash", idempotency_key="adv-42")

        with self.assertRaises(IdempotencyError):
            record_advance(self.customer.pk, "100.00", "cash", idempotency_key="adv-42")

        self.assertEqual(get_balance(self.customer.pk), Decimal("100.00"))
        self.assertEqual(LedgerEntry.objects.count(), 1)

    def test_debt_then_matching_advance_settles_to_zero(self):
        self.assertEqual(record_debt(self.customer.pk, "300.00"), Decimal("-300.00"))
        self.assertEqual(record_advance(self.customer.pk, "300.00", "cash"), Decimal("0.00"))

        self.assertEqual(recalculate_from_ledger(self.customer.pk), Decimal("0.00"))
        self.assertEqual(get_balance(self.customer.pk), Decimal("0.00"))


class OnboardingTests(TestCase):
    """
    GUARANTEES:
    - Opening advance and debt are both booked
    - The register moves by ONE net delta
    """

    def test_plain_onboarding(self):
        customer = onboard_customer(first_name="Hamza", phone="03000000001")

        self.assertEqual(customer.balance, Decimal("0.00"))
        self.assertEqual(customer.role, Customer.ROLE_CUSTOMER)
        self.assertEqual(LedgerEntry.objects.count(), 0)

    def test_advance_and_debt_apply_one_net_delta(self):
        with mock.patch.object(advances, "adjust_balance", wraps=adjust_balance) as spy:
            customer = onboard_customer(
                first_name="Hamza",
                phone="03000000002",
                initial_advance="500.00",
                advance_method="jazzcash",
                initial_debt="200.00",
            )

        spy.assert_called_once()
        self.assertEqual(spy.call_args.args[1], Decimal("300.00"))
        self.assertEqual(customer.balance, Decimal("300.00"))

        types = sorted(LedgerEntry.objects.filter(customer=customer).values_list("type", flat=True))
        self.assertEqual(types, [LedgerEntry.TYPE_ADVANCE, LedgerEntry.TYPE_SALE])
        self.assertEqual(recalculate_from_ledger(customer.pk), Decimal("300.00"))

    def test_onboarding_with_debt_only(self):
        customer = onboard_customer(first_name="Hamza", phone="03000000003", initial_debt="75.50")
        self.assertEqual(customer.balance, Decimal("-75.50"))

    def test_duplicate_phone_rejected(self):
        onboard_customer(first_name="Hamza", phone="03000000004")

        with self.assertRaises(LedgerValidationError) as ctx:
            onboard_customer(first_name="Other", phone="03000000004", initial_advance="10.00")

        self.assertEqual(ctx.exception.field, "phone")
        self.assertEqual(Customer.objects.count(), 1)
        self.assertEqual(LedgerEntry.objects.count(), 0)

    def test_required_fields(self):
        with self.assertRaises(LedgerValidationError):
            onboard_customer(first_name="", phone="03000000005")
        with self.assertRaises(LedgerValidationError):
            onboard_customer(first_name="Hamza", phone="  ")
        with self.assertRaises(LedgerValidationError):
            onboard_customer(first_name="Hamza", phone="03000000005", role="wholesaler")


class CustomerPaymentTests(TestCase):
    """
    GUARANTEES:
    - Money in settles debt when the customer owes, else tops up advance
    - The register always moves by +amount
    """

    def setUp(self):
        self.customer = Customer.objects.create(first_name="Usman", phone="03451230000")

    def test_payment_against_debt(self):
        record_debt(self.customer.pk, "300.00")

        result = record_customer_payment(self.customer.pk, "100.00", "bank", "IBFT-1")

        self.assertEqual(result["type"], LedgerEntry.TYPE_PAYMENT)
        self.assertEqual(result["balance"], Decimal("-200.00"))
        self.assertEqual(result["ledger_entry"].credit, Decimal("100.00"))

    def test_payment_without_debt_becomes_advance(self):
        result = record_customer_payment(self.customer.pk, "50.00", "cash", "RCPT-9")

        self.assertEqual(result["type"], LedgerEntry.TYPE_ADVANCE)
        self.assertEqual(result["balance"], Decimal("50.00"))

    def test_reference_required(self):
        with self.assertRaises(LedgerValidationError) as ctx:
            record_customer_payment(self.customer.pk, "50.00", "cash", "")
        self.assertEqual(ctx.exception.field, "reference")

    def test_register_matches_ledger_after_mixed_activity(self):
        record_debt(self.customer.pk, "300.00")
        record_customer_payment(self.customer.pk, "350.00", "cash", "RCPT-10")
        record_advance(self.customer.pk, "20.00", "card")

        self.assertEqual(get_balance(self.customer.pk), Decimal("70.00"))
        self.assertEqual(recalculate_from_ledger(self.customer.pk), Decimal("70.00"))
