# services/reservation-service/src/apps/core/models/__init__.py
"""
Reservation Service Models
"""

from .facility import Stadium, Field
from .pricing import PricingTier, SeasonalRate
from .schedule import DayOfWeek, ScheduleSlot, SpecialDate, day_of_week
from .staff import Staff, StaffAvailability
from .membership import MembershipSeries
from .booking import Booking
from .history import BookingHistory
from .charges import Payment, StaffAssignment, BookingDiscount

__all__ = [
    'Stadium',
    'Field',
    'PricingTier',
    'SeasonalRate',
    'DayOfWeek',
    'ScheduleSlot',
    'SpecialDate',
    'day_of_week',
    'Staff',
    'StaffAvailability',
    'MembershipSeries',
    'Booking',
    'BookingHistory',
    'Payment',
    'StaffAssignment',
    'BookingDiscount',
]
