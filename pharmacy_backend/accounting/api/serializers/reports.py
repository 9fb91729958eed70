# accounting/api/serializers/reports.py

from rest_framework import serializers


class MethodBreakdownSerializer(serializers.Serializer):
    total = serializers.DecimalField(max_digits=16, decimal_places=2)
    by_method = serializers.DictField(child=serializers.DecimalField(max_digits=16, decimal_places=2))


class DebitsByTypeSerializer(serializers.Serializer):
    sales = serializers.DecimalField(max_digits=16, decimal_places=2)
    purchases = serializers.DecimalField(max_digits=16, decimal_places=2)
    expenses = serializers.DecimalField(max_digits=16, decimal_places=2)
    commission = serializers.DecimalField(max_digits=16, decimal_places=2)


class MonthlySummarySerializer(serializers.Serializer):
    month = serializers.CharField()
    opening_balance = serializers.DecimalField(max_digits=16, decimal_places=2)
    total_credit = serializers.DecimalField(max_digits=16, decimal_places=2)
    total_debit = serializers.DecimalField(max_digits=16, decimal_places=2)
    closing_balance = serializers.DecimalField(max_digits=16, decimal_places=2)
    cash_in = MethodBreakdownSerializer()
    cash_sent_to_company = MethodBreakdownSerializer()
    debits_by_type = DebitsByTypeSerializer()
    cash_in_hand = serializers.DecimalField(max_digits=16, decimal_places=2)
    savings_profit = serializers.DecimalField(max_digits=16, decimal_places=2)
    stock_value = serializers.DecimalField(max_digits=18, decimal_places=2)
    entry_count = serializers.IntegerField()


class TradeSideSerializer(serializers.Serializer):
    total = serializers.DecimalField(max_digits=16, decimal_places=2)
    count = serializers.IntegerField()
    by_method = serializers.DictField(child=serializers.DecimalField(max_digits=16, decimal_places=2))


class TradeDaySerializer(serializers.Serializer):
    day = serializers.IntegerField()
    sales = serializers.DecimalField(max_digits=16, decimal_places=2)
    sale_count = serializers.IntegerField()
    purchases = serializers.DecimalField(max_digits=16, decimal_places=2)
    purchase_count = serializers.IntegerField()


class SalesPurchaseReportSerializer(serializers.Serializer):
    month = serializers.CharField()
    total_sales = serializers.DecimalField(max_digits=16, decimal_places=2)
    total_purchases = serializers.DecimalField(max_digits=16, decimal_places=2)
    net_amount = serializers.DecimalField(max_digits=16, decimal_places=2)
    sales = TradeSideSerializer()
    purchases = TradeSideSerializer()
    days = TradeDaySerializer(many=True)
