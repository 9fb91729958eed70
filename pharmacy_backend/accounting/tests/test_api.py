# accounting/tests/test_api.py

from __future__ import annotations

from datetime import datetime

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from accounting.models import LedgerEntry
from accounting.services.ledger_service import append_entry

User = get_user_model()


def _at(year, month, day, hour=12):
    return timezone.make_aware(datetime(year, month, day, hour, 0))


class LedgerApiTests(TestCase):
    """
    Ledger HTTP surface.

    GUARANTEES:
    - Listing is paginated, newest first, filterable
    - Manual entries are validated and permission-checked
    - Service errors map to 4xx bodies with a field
    """

    def setUp(self):
        self.admin = User.objects.create_superuser(
            username="accountant", email="accountant@example.com", password="password123"
        )
        self.clerk = User.objects.create_user(username="clerk", password="password123")

        self.client = APIClient()
        self.client.force_authenticate(self.admin)

        append_entry(type=LedgerEntry.TYPE_ADJUSTMENT, credit="500.00", date=_at(2026, 3, 1))
        append_entry(type=LedgerEntry.TYPE_EXPENSE, debit="75.00", description="Rent", date=_at(2026, 3, 5))

    # =====================================================
    # LISTING
    # =====================================================

    def test_list_newest_first(self):
        res = self.client.get(reverse("ledger-entry-list"))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        results = res.data["results"]
        self.assertEqual([r["txn_id"] for r in results], ["TXN-000002", "TXN-000001"])
        self.assertEqual(results[0]["running_balance"], "425.00")

    def test_list_filters(self):
        res = self.client.get(reverse("ledger-entry-list"), {"type": "expense", "month": "2026-03"})

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(len(res.data["results"]), 1)
        self.assertEqual(res.data["results"][0]["description"], "Rent")

    def test_invalid_month_is_bad_request(self):
        res = self.client.get(reverse("ledger-entry-list"), {"month": "2026-13"})

        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(res.data["field"], "month")

    def test_list_requires_permission(self):
        self.client.force_authenticate(self.clerk)
        res = self.client.get(reverse("ledger-entry-list"))
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

    def test_anonymous_rejected(self):
        self.client.force_authenticate(None)
        res = self.client.get(reverse("ledger-entry-list"))
        self.assertEqual(res.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_ledger_is_read_only(self):
        entry = LedgerEntry.objects.first()
        res = self.client.delete(reverse("ledger-entry-detail", args=[entry.pk]))
        self.assertEqual(res.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)

    # =====================================================
    # MANUAL ENTRIES
    # =====================================================

    def test_manual_entry_created(self):
        res = self.client.post(
            reverse("ledger-manual-entry"),
            {
                "type": "company_remit",
                "method": "bank",
                "debit": "200.00",
                "description": "Weekly remittance",
                "reference": "HBL-99",
            },
            format="json",
        )

        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(res.data["txn_id"], "TXN-000003")
        self.assertEqual(res.data["running_balance"], "225.00")

    def test_manual_entry_rejects_customer_types(self):
        res = self.client.post(
            reverse("ledger-manual-entry"),
            {"type": "sale", "debit": "10.00", "description": "x"},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(LedgerEntry.objects.count(), 2)

    def test_manual_entry_duplicate_key_conflicts(self):
        payload = {
            "type": "expense",
            "debit": "10.00",
            "description": "Tea",
            "idempotency_key": "petty-1",
        }
        first = self.client.post(reverse("ledger-manual-entry"), payload, format="json")
        second = self.client.post(reverse("ledger-manual-entry"), payload, format="json")

        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertEqual(second.status_code, status.HTTP_409_CONFLICT)

    def test_manual_entry_requires_permission(self):
        self.client.force_authenticate(self.clerk)
        res = self.client.post(
            reverse("ledger-manual-entry"),
            {"type": "expense", "debit": "10.00", "description": "Tea"},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

    # =====================================================
    # MONTHLY SUMMARY
    # =====================================================

    def test_monthly_summary(self):
        res = self.client.get(reverse("monthly-summary"), {"month": "2026-03"})

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["opening_balance"], "0.00")
        self.assertEqual(res.data["closing_balance"], "425.00")
        self.assertEqual(res.data["debits_by_type"]["expenses"], "75.00")
        self.assertEqual(res.data["entry_count"], 2)

    def test_monthly_summary_bad_month(self):
        res = self.client.get(reverse("monthly-summary"), {"month": "2026-00"})
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    # =====================================================
    # SALES / PURCHASE REPORT
    # =====================================================

    def test_sales_purchase_report(self):
        append_entry(
            type=LedgerEntry.TYPE_SALE,
            method=LedgerEntry.METHOD_ON_ACCOUNT,
            debit="240.00",
            date=_at(2026, 3, 5),
        )
        append_entry(type=LedgerEntry.TYPE_PURCHASE, debit="90.00", date=_at(2026, 3, 9))

        res = self.client.get(reverse("sales-purchase-report"), {"month": "2026-03"})

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["total_sales"], "240.00")
        self.assertEqual(res.data["total_purchases"], "90.00")
        self.assertEqual(res.data["net_amount"], "150.00")
        self.assertEqual(res.data["sales"]["by_method"]["on_account"], "240.00")
        self.assertEqual(len(res.data["days"]), 31)
        self.assertEqual(res.data["days"][4]["sales"], "240.00")
        self.assertEqual(res.data["days"][4]["sale_count"], 1)
        self.assertEqual(res.data["days"][8]["purchases"], "90.00")

    def test_sales_purchase_report_bad_month(self):
        res = self.client.get(reverse("sales-purchase-report"), {"month": "2026-13"})

        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(res.data["field"], "month")

    def test_sales_purchase_report_requires_permission(self):
        self.client.force_authenticate(self.clerk)
        res = self.client.get(reverse("sales-purchase-report"), {"month": "2026-03"})
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)


class HealthCheckTests(TestCase):
    """
    GUARANTEES:
    - /api/health/ is public
    - it reports the last issued TXN id, not balances
    """

    def test_empty_ledger(self):
        res = APIClient().get(reverse("health-check"))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["db"], "ok")
        self.assertIsNone(res.data["ledger"]["last_txn"])

    def test_reports_ledger_head(self):
        append_entry(type=LedgerEntry.TYPE_EXPENSE, debit="10.00", description="Tea")
        append_entry(type=LedgerEntry.TYPE_OTHER, credit="5.00", description="Scrap sold")

        res = APIClient().get(reverse("health-check"))

        self.assertEqual(res.data["ledger"]["last_txn"], "TXN-000002")
        self.assertNotIn("running_balance", res.data["ledger"])
