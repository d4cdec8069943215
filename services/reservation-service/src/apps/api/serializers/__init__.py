# services/reservation-service/src/apps/api/serializers/__init__.py
"""
Reservation API Serializers
"""

from .booking_serializers import (
    BookingSerializer,
    BookingListSerializer,
    BookingDetailSerializer,
    BookingHistorySerializer,
    PaymentSerializer,
    StaffAssignmentSerializer,
    BookingDiscountSerializer,
    BookingKindSerializer,
    RegularBookingCreateSerializer,
    MembershipBookingCreateSerializer,
    BookingCancelSerializer,
    BookingRescheduleSerializer,
    PaymentCreateSerializer,
    DiscountCreateSerializer,
    StaffAssignSerializer,
    get_request_serializer_class,
)

from .membership_serializers import (
    MembershipSeriesSerializer,
    MembershipCancelSerializer,
)

from .availability_serializers import (
    DateQuerySerializer,
    SlotQuerySerializer,
    StaffQuerySerializer,
    StaffCandidateSerializer,
)


__all__ = [
    # Booking
    'BookingSerializer',
    'BookingListSerializer',
    'BookingDetailSerializer',
    'BookingHistorySerializer',
    'PaymentSerializer',
    'StaffAssignmentSerializer',
    'BookingDiscountSerializer',
    'BookingKindSerializer',
    'RegularBookingCreateSerializer',
    'MembershipBookingCreateSerializer',
    'BookingCancelSerializer',
    'BookingRescheduleSerializer',
    'PaymentCreateSerializer',
    'DiscountCreateSerializer',
    'StaffAssignSerializer',
    'get_request_serializer_class',

    # Membership
    'MembershipSeriesSerializer',
    'MembershipCancelSerializer',

    # Availability
    'DateQuerySerializer',
    'SlotQuerySerializer',
    'StaffQuerySerializer',
    'StaffCandidateSerializer',
]
