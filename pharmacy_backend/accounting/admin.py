# accounting/admin.py

from django.contrib import admin

from accounting.models import LedgerEntry, LedgerSequence


class _ReadOnlyAdmin(admin.ModelAdmin):
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# ============================================================
# LEDGER ENTRY (STRICTLY IMMUTABLE)
# ============================================================


@admin.register(LedgerEntry)
class LedgerEntryAdmin(_ReadOnlyAdmin):
    list_display = (
        "txn_id",
        "date",
        "type",
        "method",
        "credit",
        "debit",
        "running_balance",
        "customer",
        "order_no",
    )
    list_filter = ("type", "method", "month")
    search_fields = ("txn_id", "description", "party", "order_no", "reference")
    ordering = ("-date", "-created_at")
    date_hierarchy = "date"


@admin.register(LedgerSequence)
class LedgerSequenceAdmin(_ReadOnlyAdmin):
    list_display = ("id", "last_number", "updated_at")
