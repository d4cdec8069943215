# services/reservation-service/src/apps/api/views/__init__.py
"""
Reservation API Views
"""

from .booking_views import (
    BookingViewSet,
    SweepElapsedBookingsView,
)

from .membership_views import (
    MembershipViewSet,
)

from .availability_views import (
    FieldAvailabilityView,
    FieldAvailabilityCheckView,
    FieldPriceView,
    FieldStaffView,
)


__all__ = [
    # Booking
    'BookingViewSet',
    'SweepElapsedBookingsView',

    # Membership
    'MembershipViewSet',

    # Availability
    'FieldAvailabilityView',
    'FieldAvailabilityCheckView',
    'FieldPriceView',
    'FieldStaffView',
]
