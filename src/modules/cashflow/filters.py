"""Cash flow list filters.

Date bounds are calendar days in the shop's time zone: ``date_from``
starts at local midnight and ``date_to`` runs until the last instant of
that local day.
"""

import django_filters
from django.db.models import Q

from modules.cashflow.constants import EntryType
from modules.cashflow.models import CashFlowEntry
from modules.core.dates import LocalCalendarDate


class CashFlowFilter(django_filters.FilterSet):
    date_from = django_filters.DateFilter(method="filter_date_from")
    date_to = django_filters.DateFilter(method="filter_date_to")
    type = django_filters.ChoiceFilter(choices=EntryType.choices)
    search = django_filters.CharFilter(method="filter_search")

    class Meta:
        model = CashFlowEntry
        fields = ["date_from", "date_to", "type", "search"]

    def filter_date_from(self, queryset, name, value):
        start = LocalCalendarDate.from_date(value).to_local_midnight()
        return queryset.filter(payment_date__gte=start)

    def filter_date_to(self, queryset, name, value):
        end = LocalCalendarDate.from_date(value).end_of_day()
        return queryset.filter(payment_date__lte=end)

    def filter_search(self, queryset, name, value):
        term = value.strip()
        if not term:
            return queryset
        return queryset.filter(
            Q(description__icontains=term)
            | Q(order__customer_name__icontains=term)
            | Q(order__phone__icontains=term)
        )
