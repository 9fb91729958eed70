# accounting/api/serializers/__init__.py

from accounting.api.serializers.ledger_entries import (
    LedgerEntrySerializer,
    ManualEntryCreateSerializer,
)
from accounting.api.serializers.reports import (
    MonthlySummarySerializer,
    SalesPurchaseReportSerializer,
)

__all__ = [
    "LedgerEntrySerializer",
    "ManualEntryCreateSerializer",
    "MonthlySummarySerializer",
    "SalesPurchaseReportSerializer",
]
