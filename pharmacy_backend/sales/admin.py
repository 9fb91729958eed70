# sales/admin.py

from django.contrib import admin

from sales.models import Order, OrderItem, OrderPayment


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    can_delete = False
    readonly_fields = ("product", "product_name", "qty", "price", "discount_value", "total")

    def has_add_permission(self, request, obj=None):
        return False


class OrderPaymentInline(admin.TabularInline):
    model = OrderPayment
    extra = 0
    can_delete = False
    readonly_fields = ("amount", "method", "reference", "note", "ledger_entry", "paid_at")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "order_no",
        "customer_name",
        "grand_total",
        "advance_used",
        "amount_received",
        "balance",
        "status",
        "created_at",
    )
    list_filter = ("status", "payment_method")
    search_fields = ("order_no", "customer_name", "customer_phone")
    inlines = [OrderItemInline, OrderPaymentInline]
    readonly_fields = [f.name for f in Order._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
