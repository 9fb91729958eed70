# accounting/services/reporting_service.py

"""
LEDGER REPORTING SERVICE

Read-only views over the cash book:
- list_ledger_entries(): filtered listing
- get_monthly_summary(): one month's opening/closing position and
  per-type / per-method breakdowns
- get_sales_purchase_report(): one month of sales and purchases, day by day

Contract:
- No mutations, no postings.
- Decimal 2dp values; serializers decide JSON representation.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal

from django.db.models import Count, DecimalField, ExpressionWrapper, F, Q, Sum
from django.utils import timezone

from accounting.models import LedgerEntry
from accounting.services.exceptions import LedgerValidationError
from products.models import Product

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def _q2(amount) -> Decimal:
    return (amount or ZERO).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def parse_month(month: str) -> tuple[int, int]:
    try:
        parsed = datetime.strptime((month or "").strip(), "%Y-%m")
    except ValueError:
        raise LedgerValidationError("Invalid month format (YYYY-MM)", field="month")
    return parsed.year, parsed.month


def _parse_day(value, *, field: str) -> date | None:
    if not value:
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise LedgerValidationError(f"Invalid {field} format (YYYY-MM-DD)", field=field)


def _day_start(day: date) -> datetime:
    return timezone.make_aware(datetime.combine(day, time.min), timezone.get_current_timezone())


# ============================================================
# LISTING
# ============================================================


def list_ledger_entries(
    *,
    queryset=None,
    month: str | None = None,
    type: str | None = None,
    method: str | None = None,
    query: str | None = None,
    customer_id=None,
    date_from=None,
    date_to=None,
):
    qs = LedgerEntry.objects.all() if queryset is None else queryset
    qs = qs.select_related("customer", "product")

    if month:
        parse_month(month)
        qs = qs.filter(month=month)

    if type:
        if type not in LedgerEntry.TYPES:
            raise LedgerValidationError(f"Invalid ledger type: {type!r}", field="type")
        qs = qs.filter(type=type)

    if method:
        if method not in LedgerEntry.METHODS:
            raise LedgerValidationError(f"Invalid payment method: {method!r}", field="method")
        qs = qs.filter(method=method)

    if customer_id:
        qs = qs.filter(customer_id=customer_id)

    start = _parse_day(date_from, field="date_from")
    end = _parse_day(date_to, field="date_to")
    if start:
        qs = qs.filter(date__gte=_day_start(start))
    if end:
        qs = qs.filter(date__lt=_day_start(end + timedelta(days=1)))

    query = (query or "").strip()
    if query:
        qs = qs.filter(
            Q(description__icontains=query)
            | Q(party__icontains=query)
            | Q(order_no__icontains=query)
            | Q(txn_id__icontains=query)
            | Q(reference__icontains=query)
        )

    return qs.order_by("-date", "-created_at", "-id")


# ============================================================
# MONTHLY SUMMARY
# ============================================================


def _by_method(qs, column: str) -> dict:
    rows = qs.values("method").annotate(total=Sum(column)).order_by("method")
    out = {method: ZERO for method, _ in LedgerEntry.METHOD_CHOICES}
    for row in rows:
        out[row["method"]] = _q2(row["total"])
    return out


def _sum(qs, column: str) -> Decimal:
    return _q2(qs.aggregate(total=Sum(column)).get("total"))


def get_monthly_summary(month: str) -> dict:
    year, month_number = parse_month(month)
    key = f"{year:04d}-{month_number:02d}"

    before = LedgerEntry.objects.filter(
        Q(year__lt=year) | Q(year=year, month_number__lt=month_number)
    )
    opening_totals = before.aggregate(credit=Sum("credit"), debit=Sum("debit"))
    opening = _q2(opening_totals["credit"]) - _q2(opening_totals["debit"])

    entries = LedgerEntry.objects.filter(month=key)
    total_credit = _sum(entries, "credit")
    total_debit = _sum(entries, "debit")

    sales = _sum(entries.filter(type=LedgerEntry.TYPE_SALE), "debit")
    purchases = _sum(entries.filter(type=LedgerEntry.TYPE_PURCHASE), "debit")
    expenses = _sum(entries.filter(type=LedgerEntry.TYPE_EXPENSE), "debit")
    commission = _sum(entries.filter(type=LedgerEntry.TYPE_COMMISSION), "debit")

    remits = entries.filter(type=LedgerEntry.TYPE_COMPANY_REMIT)
    company_remit = _sum(remits, "debit")

    cash_in_by_method = _by_method(entries.filter(credit__gt=0), "credit")
    remit_by_method = _by_method(remits, "debit")

    stock_value = _q2(
        Product.objects.filter(is_active=True).aggregate(
            total=Sum(
                ExpressionWrapper(
                    F("price") * F("quantity"),
                    output_field=DecimalField(max_digits=18, decimal_places=2),
                )
            )
        )["total"]
    )

    return {
        "month": key,
        "opening_balance": opening,
        "total_credit": total_credit,
        "total_debit": total_debit,
        "closing_balance": opening + total_credit - total_debit,
        "cash_in": {"total": total_credit, "by_method": cash_in_by_method},
        "cash_sent_to_company": {"total": company_remit, "by_method": remit_by_method},
        "debits_by_type": {
            "sales": sales,
            "purchases": purchases,
            "expenses": expenses,
            "commission": commission,
        },
        "cash_in_hand": opening + total_credit - company_remit - expenses,
        "savings_profit": sales - purchases - expenses + commission,
        "stock_value": stock_value,
        "entry_count": entries.count(),
    }


# ============================================================
# SALES / PURCHASE REPORT
# ============================================================


def _trade_side(entries) -> dict:
    return {
        "total": _sum(entries, "debit"),
        "count": entries.count(),
        "by_method": _by_method(entries, "debit"),
    }


def get_sales_purchase_report(month: str) -> dict:
    """
    Day-by-day sales and purchases for one month.

    `days` covers every calendar day of the month, zero-filled, so the
    rows line up with a chart axis.
    """
    year, month_number = parse_month(month)
    key = f"{year:04d}-{month_number:02d}"

    entries = LedgerEntry.objects.filter(
        year=year,
        month_number=month_number,
        type__in=[LedgerEntry.TYPE_SALE, LedgerEntry.TYPE_PURCHASE],
    )
    sales = entries.filter(type=LedgerEntry.TYPE_SALE)
    purchases = entries.filter(type=LedgerEntry.TYPE_PURCHASE)

    is_sale = Q(type=LedgerEntry.TYPE_SALE)
    is_purchase = Q(type=LedgerEntry.TYPE_PURCHASE)
    rows = (
        entries.values("day")
        .annotate(
            sales=Sum("debit", filter=is_sale),
            sale_count=Count("id", filter=is_sale),
            purchases=Sum("debit", filter=is_purchase),
            purchase_count=Count("id", filter=is_purchase),
        )
        .order_by("day")
    )
    by_day = {row["day"]: row for row in rows}

    days = []
    for day in range(1, calendar.monthrange(year, month_number)[1] + 1):
        row = by_day.get(day, {})
        days.append(
            {
                "day": day,
                "sales": _q2(row.get("sales")),
                "sale_count": row.get("sale_count", 0),
                "purchases": _q2(row.get("purchases")),
                "purchase_count": row.get("purchase_count", 0),
            }
        )

    sales_side = _trade_side(sales)
    purchase_side = _trade_side(purchases)

    return {
        "month": key,
        "total_sales": sales_side["total"],
        "total_purchases": purchase_side["total"],
        "net_amount": sales_side["total"] - purchase_side["total"],
        "sales": sales_side,
        "purchases": purchase_side,
        "days": days,
    }
