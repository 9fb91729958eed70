# accounting/api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from accounting.api.views.ledger import LedgerEntryViewSet, ManualEntryCreateView
from accounting.api.views.reports import MonthlySummaryView, SalesPurchaseReportView

router = DefaultRouter()
router.register("ledger", LedgerEntryViewSet, basename="ledger-entry")

urlpatterns = [
    # explicit routes BEFORE router URLs (router would read "manual" as a pk)
    path("ledger/manual/", ManualEntryCreateView.as_view(), name="ledger-manual-entry"),
    path(
        "reports/monthly-summary/",
        MonthlySummaryView.as_view(),
        name="monthly-summary",
    ),
    path(
        "reports/sales-purchase/",
        SalesPurchaseReportView.as_view(),
        name="sales-purchase-report",
    ),
    path("", include(router.urls)),
]
