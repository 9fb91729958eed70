# accounting/api/filters.py

"""
Ledger listing filters.

django-filter parses and validates the query string; the filtering
itself is delegated to reporting_service.list_ledger_entries so the
API and any other caller share one definition.
"""

import django_filters

from accounting.models import LedgerEntry
from accounting.services.reporting_service import list_ledger_entries


class LedgerEntryFilter(django_filters.FilterSet):
    month = django_filters.CharFilter(method="_noop", help_text="YYYY-MM")
    type = django_filters.ChoiceFilter(choices=LedgerEntry.TYPE_CHOICES, method="_noop")
    method = django_filters.ChoiceFilter(choices=LedgerEntry.METHOD_CHOICES, method="_noop")
    customer = django_filters.UUIDFilter(method="_noop")
    date_from = django_filters.DateFilter(method="_noop")
    date_to = django_filters.DateFilter(method="_noop")
    q = django_filters.CharFilter(
        method="_noop",
        help_text="Search description, party, order number, txn id, reference",
    )

    class Meta:
        model = LedgerEntry
        fields = []

    def _noop(self, queryset, name, value):
        return queryset

    def filter_queryset(self, queryset):
        data = self.form.cleaned_data
        return list_ledger_entries(
            queryset=queryset,
            month=data.get("month") or None,
            type=data.get("type") or None,
            method=data.get("method") or None,
            query=data.get("q") or None,
            customer_id=data.get("customer"),
            date_from=data.get("date_from"),
            date_to=data.get("date_to"),
        )
