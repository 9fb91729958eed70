# sales/serializers/order.py

from rest_framework import serializers

from accounting.models import LedgerEntry
from sales.models import Order, OrderItem, OrderPayment


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product",
            "product_name",
            "qty",
            "price",
            "discount_value",
            "total",
        ]
        read_only_fields = fields


class OrderPaymentSerializer(serializers.ModelSerializer):
    txn_id = serializers.CharField(source="ledger_entry.txn_id", read_only=True)

    class Meta:
        model = OrderPayment
        fields = [
            "id",
            "amount",
            "method",
            "reference",
            "note",
            "paid_at",
            "txn_id",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """
    CANONICAL ORDER SERIALIZER (read-only)

    totals are grouped the way the order desk displays them.
    """

    items = OrderItemSerializer(many=True, read_only=True)
    payments = OrderPaymentSerializer(many=True, read_only=True)
    totals = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "order_no",
            "customer",
            "customer_name",
            "customer_phone",
            "payment_method",
            "payment_reference",
            "order_discount_type",
            "order_discount_value",
            "totals",
            "status",
            "notes",
            "items",
            "payments",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_totals(self, obj):
        return {
            "subtotal": f"{obj.subtotal:.2f}",
            "discount_total": f"{obj.discount_total:.2f}",
            "tax_total": f"{obj.tax_total:.2f}",
            "grand_total": f"{obj.grand_total:.2f}",
            "amount_received": f"{obj.amount_received:.2f}",
            "advance_used": f"{obj.advance_used:.2f}",
            "balance": f"{obj.balance:.2f}",
            "change_due": f"{obj.change_due:.2f}",
        }


# ============================================================
# INPUT
# ============================================================


class OrderLineInputSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    qty = serializers.IntegerField(min_value=1)
    price = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    discount_value = serializers.DecimalField(
        max_digits=12, decimal_places=2, required=False, default=0, min_value=0
    )


class PaymentInputSerializer(serializers.Serializer):
    method = serializers.ChoiceField(choices=LedgerEntry.METHOD_CHOICES)
    amount_received = serializers.DecimalField(
        max_digits=14, decimal_places=2, required=False, default=0, min_value=0
    )
    reference = serializers.CharField(required=False, allow_blank=True, default="")


class OrderDiscountInputSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=Order.DISCOUNT_CHOICES)
    value = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0)


class OrderCreateSerializer(serializers.Serializer):
    customer_id = serializers.UUIDField()
    items = OrderLineInputSerializer(many=True)
    payment = PaymentInputSerializer(required=False, allow_null=True)
    order_discount = OrderDiscountInputSerializer(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    date = serializers.DateTimeField(required=False, allow_null=True)
    idempotency_key = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("Order must contain at least one item")
        return value


class OrderPreviewSerializer(serializers.Serializer):
    customer_id = serializers.UUIDField()
    items = OrderLineInputSerializer(many=True)
    payment = PaymentInputSerializer(required=False, allow_null=True)
    order_discount = OrderDiscountInputSerializer(required=False, allow_null=True)


class OrderPaymentInputSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    method = serializers.ChoiceField(
        choices=[
            (value, label)
            for value, label in LedgerEntry.METHOD_CHOICES
            if value not in (LedgerEntry.METHOD_ON_ACCOUNT, LedgerEntry.METHOD_ADVANCE)
        ]
    )
    reference = serializers.CharField(required=False, allow_blank=True, default="")
    note = serializers.CharField(required=False, allow_blank=True, default="")
    date = serializers.DateTimeField(required=False, allow_null=True)

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("amount must be > 0")
        return value
