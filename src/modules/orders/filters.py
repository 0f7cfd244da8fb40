"""Admin order list filters.

``date_from``/``date_to`` are local calendar days over ``created_at``.
``search`` matches the order id (so the short ``#1a2b3c4d`` code
printed on receipts works), the snapshotted customer name, the account
name and the phone.
"""

import django_filters
from django.db.models import CharField, Q
from django.db.models.functions import Cast

from modules.core.dates import LocalCalendarDate
from modules.orders.constants import OrderStatus, PaymentMethod
from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method="filter_search")
    status = django_filters.ChoiceFilter(choices=OrderStatus.choices)
    payment_method = django_filters.ChoiceFilter(choices=PaymentMethod.choices)
    date_from = django_filters.DateFilter(method="filter_date_from")
    date_to = django_filters.DateFilter(method="filter_date_to")

    class Meta:
        model = Order
        fields = ["search", "status", "payment_method", "date_from", "date_to"]

    def filter_search(self, queryset, name, value):
        term = value.strip().lstrip("#")
        if not term:
            return queryset
        return queryset.annotate(
            id_text=Cast("id", output_field=CharField())
        ).filter(
            Q(id_text__icontains=term.replace("-", ""))
            | Q(id_text__icontains=term)
            | Q(customer_name__icontains=term)
            | Q(user__name__icontains=term)
            | Q(phone__icontains=term)
        )

    def filter_date_from(self, queryset, name, value):
        start = LocalCalendarDate.from_date(value).to_local_midnight()
        return queryset.filter(created_at__gte=start)

    def filter_date_to(self, queryset, name, value):
        end = LocalCalendarDate.from_date(value).end_of_day()
        return queryset.filter(created_at__lte=end)
