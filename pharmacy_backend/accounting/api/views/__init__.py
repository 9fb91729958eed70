# accounting/api/views/__init__.py

"""
accounting.api.views package

Do NOT import accounting.api.urls from here to avoid circular imports.
"""

from accounting.api.views.ledger import LedgerEntryViewSet, ManualEntryCreateView
from accounting.api.views.reports import MonthlySummaryView, SalesPurchaseReportView

__all__ = [
    "LedgerEntryViewSet",
    "ManualEntryCreateView",
    "MonthlySummaryView",
    "SalesPurchaseReportView",
]
