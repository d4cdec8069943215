# services/reservation-service/src/apps/api/urls.py
"""
Reservation API URL Configuration
"""

from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import (
    # Booking
    BookingViewSet,
    SweepElapsedBookingsView,
    # Membership
    MembershipViewSet,
    # Availability
    FieldAvailabilityView,
    FieldAvailabilityCheckView,
    FieldPriceView,
    FieldStaffView,
)

app_name = 'api'

router = DefaultRouter()
router.register(r'bookings', BookingViewSet, basename='booking')
router.register(r'memberships', MembershipViewSet, basename='membership')

urlpatterns = [
    # Router URLs
    path('', include(router.urls)),

    # Field lookups
    path(
        'fields/<uuid:field_id>/availability/',
        FieldAvailabilityView.as_view(),
        name='field-availability'
    ),
    path(
        'fields/<uuid:field_id>/availability/check/',
        FieldAvailabilityCheckView.as_view(),
        name='field-availability-check'
    ),
    path('fields/<uuid:field_id>/price/', FieldPriceView.as_view(), name='field-price'),
    path('fields/<uuid:field_id>/staff/', FieldStaffView.as_view(), name='field-staff'),

    # Maintenance
    path('sweep/', SweepElapsedBookingsView.as_view(), name='sweep'),
]
