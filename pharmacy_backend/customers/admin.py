# customers/admin.py

from django.contrib import admin

from customers.models import BalanceReconciliation, Customer


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("first_name", "last_name", "phone", "role", "balance", "is_active")
    list_filter = ("role", "is_active")
    search_fields = ("first_name", "last_name", "phone", "email")
    readonly_fields = ("balance", "created_at", "updated_at")


@admin.register(BalanceReconciliation)
class BalanceReconciliationAdmin(admin.ModelAdmin):
    list_display = (
        "customer",
        "register_before",
        "ledger_balance",
        "delta",
        "exceeded_tolerance",
        "triggered_by",
        "created_at",
    )
    list_filter = ("exceeded_tolerance",)
    readonly_fields = [f.name for f in BalanceReconciliation._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
