# services/reservation-service/src/apps/core/services/__init__.py
"""
Reservation Service Business Logic
"""

from .pricing_service import PricingService, PriceQuote
from .availability_service import AvailabilityService, AvailabilityResult
from .staff_service import StaffMatchingService
from .recurring_service import RecurringSeriesGenerator, SeriesResult
from .cancellation_policy import CancellationPolicy, CancellationDecision
from .booking_service import BookingService, derive_payment_status
from .requests import (
    Actor,
    RegularBookingRequest,
    MembershipBookingRequest,
    BookingRequest,
)


# Custom Exceptions
class BookingServiceError(Exception):
    """Base exception for reservation service errors."""

    def __init__(self, message: str = '', details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class BookingValidationError(BookingServiceError):
    """Malformed or missing input."""
    pass


class InvalidInputError(BookingValidationError):
    """Malformed date or time value."""
    pass


class SlotConflictError(BookingServiceError):
    """The slot is held by another reservation."""
    pass


class SlotUnavailableError(SlotConflictError):
    """The field is not open for the requested slot."""
    pass


class BookingNotFoundError(BookingServiceError):
    """Booking not found."""
    pass


class ResourceNotFoundError(BookingNotFoundError):
    """Stadium, field, staff member or membership not found."""
    pass


class BookingAuthorizationError(BookingServiceError):
    """Actor lacks the role or ownership required for the action."""
    pass


class PolicyViolationError(BookingServiceError):
    """Operation not allowed by booking policy."""
    pass


class BookingStateError(PolicyViolationError):
    """Invalid booking state transition."""
    pass


__all__ = [
    # Services
    'PricingService',
    'PriceQuote',
    'AvailabilityService',
    'AvailabilityResult',
    'StaffMatchingService',
    'RecurringSeriesGenerator',
    'SeriesResult',
    'CancellationPolicy',
    'CancellationDecision',
    'BookingService',
    'derive_payment_status',

    # Requests
    'Actor',
    'RegularBookingRequest',
    'MembershipBookingRequest',
    'BookingRequest',

    # Exceptions
    'BookingServiceError',
    'BookingValidationError',
    'InvalidInputError',
    'SlotConflictError',
    'SlotUnavailableError',
    'BookingNotFoundError',
    'ResourceNotFoundError',
    'BookingAuthorizationError',
    'PolicyViolationError',
    'BookingStateError',
]
