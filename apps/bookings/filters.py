"""FilterSet definitions for booking listings."""

from __future__ import annotations

import django_filters  # type: ignore
from django.db.models import Q  # type: ignore

from .models import Booking


class BookingFilterSet(django_filters.FilterSet):
    """Filters for the booking list: status, package, date window and free text."""

    status = django_filters.ChoiceFilter(choices=Booking.Status.choices)
    package = django_filters.NumberFilter(field_name="package_id", lookup_expr="exact")
    date_from = django_filters.DateFilter(field_name="wedding_date", lookup_expr="gte")
    date_to = django_filters.DateFilter(field_name="wedding_date", lookup_expr="lte")
    search = django_filters.CharFilter(method="filter_search")

    class Meta:
        model = Booking
        fields = ["status", "package"]

    def filter_search(self, queryset, name, value):  # type: ignore
        value = (value or "").strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(booking_code__icontains=value)
            | Q(location__icontains=value)
            | Q(package__title__icontains=value)
            | Q(client__username__icontains=value)
            | Q(client__email__icontains=value)
        )
