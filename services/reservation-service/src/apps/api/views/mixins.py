# services/reservation-service/src/apps/api/views/mixins.py
"""
Service error translation for API views.
"""

import logging

from shared.common.exceptions import (
    ForbiddenException,
    InvalidInputException,
    NotFoundException,
    PolicyViolationException,
    SlotConflictException,
    ValidationException,
)
from apps.core.services import (
    BookingAuthorizationError,
    BookingNotFoundError,
    BookingServiceError,
    BookingValidationError,
    InvalidInputError,
    PolicyViolationError,
    SlotConflictError,
    SlotUnavailableError,
)
from apps.core.services.requests import Actor

logger = logging.getLogger(__name__)

# Most specific first
SERVICE_ERRORS = [
    (SlotUnavailableError, SlotConflictException, 'SLOT_UNAVAILABLE'),
    (SlotConflictError, SlotConflictException, None),
    (InvalidInputError, InvalidInputException, None),
    (BookingValidationError, ValidationException, None),
    (BookingNotFoundError, NotFoundException, None),
    (BookingAuthorizationError, ForbiddenException, None),
    (PolicyViolationError, PolicyViolationException, None),
]


def to_api_exception(exc: BookingServiceError):
    for error_class, api_class, error_code in SERVICE_ERRORS:
        if isinstance(exc, error_class):
            return api_class(
                detail=exc.message or None,
                error_code=error_code,
                extra_data=exc.details,
            )
    return ValidationException(detail=exc.message or None, extra_data=exc.details)


class ServiceErrorMixin:
    """Maps reservation service errors onto the shared API exceptions."""

    def handle_exception(self, exc):
        if isinstance(exc, BookingServiceError):
            logger.info(f"{type(exc).__name__}: {exc.message}")
            exc = to_api_exception(exc)
        return super().handle_exception(exc)

    def get_actor(self) -> Actor:
        return Actor.from_token_user(self.request.user)
