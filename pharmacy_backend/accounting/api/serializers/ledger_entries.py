# accounting/api/serializers/ledger_entries.py

from rest_framework import serializers

from accounting.models import LedgerEntry
from accounting.services.cash_book_service import MANUAL_TYPES


class LedgerEntrySerializer(serializers.ModelSerializer):
    """
    Output serializer (DB truth). Ledger rows are never written via API
    serializers; appends go through the services.
    """

    customer_name = serializers.SerializerMethodField()
    product_name = serializers.SerializerMethodField()

    class Meta:
        model = LedgerEntry
        fields = [
            "id",
            "txn_id",
            "date",
            "type",
            "method",
            "description",
            "credit",
            "debit",
            "running_balance",
            "customer",
            "customer_name",
            "product",
            "product_name",
            "order_no",
            "party",
            "reference",
            "month",
            "year",
            "month_number",
            "day",
            "created_at",
        ]
        read_only_fields = fields

    def get_customer_name(self, obj):
        c = getattr(obj, "customer", None)
        return c.full_name if c else None

    def get_product_name(self, obj):
        p = getattr(obj, "product", None)
        return p.name if p else None


class ManualEntryCreateSerializer(serializers.Serializer):
    """
    Input serializer for staff-typed cash book lines.
    """

    type = serializers.ChoiceField(choices=sorted(MANUAL_TYPES))
    method = serializers.ChoiceField(choices=LedgerEntry.METHOD_CHOICES, default=LedgerEntry.METHOD_CASH)
    credit = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, default=0)
    debit = serializers.DecimalField(max_digits=14, decimal_places=2, required=False, default=0)
    description = serializers.CharField(max_length=255)
    date = serializers.DateTimeField(required=False, allow_null=True)
    party = serializers.CharField(required=False, allow_blank=True, default="")
    reference = serializers.CharField(required=False, allow_blank=True, default="")
    idempotency_key = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate(self, attrs):
        credit = attrs.get("credit") or 0
        debit = attrs.get("debit") or 0

        if credit < 0 or debit < 0:
            raise serializers.ValidationError("credit and debit cannot be negative")
        if (credit > 0) == (debit > 0):
            raise serializers.ValidationError("Exactly one of credit or debit must be greater than zero")

        attrs["description"] = attrs["description"].strip()
        return attrs
