# products/api/serializers.py

from rest_framework import serializers

from accounting.models import LedgerEntry
from accounting.services.ledger_service import NON_CASH_METHODS
from products.models import Product


class ProductSerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = [
            "id",
            "sku",
            "name",
            "price",
            "purchase_price",
            "quantity",
            "is_active",
        ]
        read_only_fields = fields


class StockPurchaseSerializer(serializers.Serializer):
    qty = serializers.IntegerField(min_value=1)
    unit_cost = serializers.DecimalField(max_digits=12, decimal_places=2)
    method = serializers.ChoiceField(
        choices=[
            (value, label)
            for value, label in LedgerEntry.METHOD_CHOICES
            if value not in NON_CASH_METHODS
        ],
        default=LedgerEntry.METHOD_CASH,
    )
    supplier = serializers.CharField(required=False, allow_blank=True, default="")
    reference = serializers.CharField(required=False, allow_blank=True, default="")
    date = serializers.DateTimeField(required=False, allow_null=True)

    def validate_unit_cost(self, value):
        if value <= 0:
            raise serializers.ValidationError("unit_cost must be > 0")
        return value
