# customers/api/serializers.py

from rest_framework import serializers

from accounting.models import LedgerEntry
from customers.models import Customer

RECEIPT_METHODS = [
    (value, label)
    for value, label in LedgerEntry.METHOD_CHOICES
    if value != LedgerEntry.METHOD_ON_ACCOUNT
]


class CustomerSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = Customer
        fields = [
            "id",
            "first_name",
            "last_name",
            "full_name",
            "phone",
            "email",
            "address",
            "role",
            "balance",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class CustomerLedgerSummarySerializer(serializers.Serializer):
    register_balance = serializers.DecimalField(max_digits=16, decimal_places=2)
    ledger_balance = serializers.DecimalField(max_digits=16, decimal_places=2)
    drift = serializers.DecimalField(max_digits=16, decimal_places=2)
    total_sales = serializers.DecimalField(max_digits=16, decimal_places=2)
    total_payments = serializers.DecimalField(max_digits=16, decimal_places=2)
    total_advances = serializers.DecimalField(max_digits=16, decimal_places=2)
    status = serializers.CharField()
    entry_count = serializers.IntegerField()


class CustomerOnboardSerializer(serializers.Serializer):
    """
    Input serializer: new customer with optional opening advance / debt.
    """

    first_name = serializers.CharField(max_length=120)
    last_name = serializers.CharField(max_length=120, required=False, allow_blank=True, default="")
    phone = serializers.CharField(max_length=32)
    email = serializers.EmailField(required=False, allow_blank=True, default="")
    address = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    role = serializers.ChoiceField(choices=Customer.ROLE_CHOICES, default=Customer.ROLE_CUSTOMER)

    initial_advance = serializers.DecimalField(
        max_digits=14, decimal_places=2, required=False, allow_null=True, min_value=0
    )
    advance_method = serializers.ChoiceField(choices=RECEIPT_METHODS, default=LedgerEntry.METHOD_CASH)
    advance_reference = serializers.CharField(required=False, allow_blank=True, default="")
    initial_debt = serializers.DecimalField(
        max_digits=14, decimal_places=2, required=False, allow_null=True, min_value=0
    )
    debt_reference = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_phone(self, value):
        v = (value or "").strip()
        if not v:
            raise serializers.ValidationError("phone is required")
        return v


class _MoneyInSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    date = serializers.DateTimeField(required=False, allow_null=True)
    note = serializers.CharField(required=False, allow_blank=True, default="")
    idempotency_key = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("amount must be > 0")
        return value


class CustomerPaymentSerializer(_MoneyInSerializer):
    method = serializers.ChoiceField(choices=RECEIPT_METHODS)
    reference = serializers.CharField(max_length=128)


class AdvanceSerializer(_MoneyInSerializer):
    method = serializers.ChoiceField(choices=RECEIPT_METHODS)
    reference = serializers.CharField(max_length=128, required=False, allow_blank=True, default="")


class DebtSerializer(_MoneyInSerializer):
    reference = serializers.CharField(max_length=128, required=False, allow_blank=True, default="")
