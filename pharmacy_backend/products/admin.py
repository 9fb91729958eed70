# products/admin.py

from django.contrib import admin

from products.models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("name", "sku", "price", "purchase_price", "quantity", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "sku")
    readonly_fields = ("quantity", "created_at", "updated_at")
