# services/reservation-service/src/apps/api/views/filters.py
"""
API Filters

Django Filter classes for the reservation API.
"""

import django_filters

from apps.core.models import Booking


class BookingFilter(django_filters.FilterSet):
    """Filter for booking queries."""

    # Date filters
    booking_date = django_filters.DateFilter()
    date_from = django_filters.DateFilter(
        field_name='booking_date',
        lookup_expr='gte'
    )
    date_to = django_filters.DateFilter(
        field_name='booking_date',
        lookup_expr='lte'
    )

    # Status filters
    status = django_filters.ChoiceFilter(
        choices=Booking.Status.choices
    )
    payment_status = django_filters.ChoiceFilter(
        choices=Booking.PaymentStatus.choices
    )
    active = django_filters.BooleanFilter(
        method='filter_active'
    )

    # Resource filters
    field = django_filters.UUIDFilter(field_name='field_id')
    stadium = django_filters.UUIDFilter(field_name='stadium_id')
    membership = django_filters.UUIDFilter(field_name='membership_id')
    user_id = django_filters.UUIDFilter()

    booking_type = django_filters.ChoiceFilter(
        choices=Booking.BookingType.choices
    )

    booking_number = django_filters.CharFilter(
        lookup_expr='icontains'
    )

    class Meta:
        model = Booking
        fields = []

    def filter_active(self, queryset, name, value):
        if value:
            return queryset.filter(status__in=Booking.get_active_statuses())
        return queryset.exclude(status__in=Booking.get_active_statuses())
