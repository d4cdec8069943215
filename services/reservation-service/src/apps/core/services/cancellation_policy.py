# services/reservation-service/src/apps/core/services/cancellation_policy.py
"""
Cancellation Policy

Pure decision on whether a booking may be cancelled and how much is
refunded. Applying the decision is BookingService's job.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from django.conf import settings

from apps.core.models import Booking
from shared.common.constants import PRIVILEGED_ROLES

VIOLATION_STATE = 'state'
VIOLATION_NOTICE = 'notice'


@dataclass
class CancellationDecision:
    allowed: bool
    refund_amount: Decimal
    refund_percent: int
    hours_until_booking: float
    reason: Optional[str] = None
    violation: Optional[str] = None

    def as_dict(self) -> dict:
        return {
            'allowed': self.allowed,
            'reason': self.reason,
            'refund_amount': self.refund_amount,
            'refund_percent': self.refund_percent,
            'hours_until_booking': round(self.hours_until_booking, 2),
        }


class CancellationPolicy:
    """
    Notice-based cancellation rules.

    - Only pending or confirmed bookings can be cancelled.
    - Ordinary users cannot cancel inside the minimum notice window;
      staff, owners and admins can.
    - Paid bookings are refunded in full with enough notice, partially
      with less, and not at all inside the minimum notice window.
    """

    def __init__(
        self,
        min_notice_hours: int = None,
        full_refund_hours: int = None,
        partial_refund_hours: int = None,
        partial_refund_percent: int = None,
    ):
        self.min_notice_hours = min_notice_hours if min_notice_hours is not None else getattr(
            settings, 'BOOKING_MIN_NOTICE_HOURS', 24)
        self.full_refund_hours = full_refund_hours if full_refund_hours is not None else getattr(
            settings, 'BOOKING_FULL_REFUND_HOURS', 48)
        self.partial_refund_hours = partial_refund_hours if partial_refund_hours is not None else getattr(
            settings, 'BOOKING_PARTIAL_REFUND_HOURS', 24)
        self.partial_refund_percent = partial_refund_percent if partial_refund_percent is not None else getattr(
            settings, 'BOOKING_PARTIAL_REFUND_PERCENT', 50)

    def refund_percent(self, hours_until_booking: float) -> int:
        if hours_until_booking >= self.full_refund_hours:
            return 100
        if hours_until_booking >= self.partial_refund_hours:
            return self.partial_refund_percent
        return 0

    def evaluate(self, booking: Booking, actor_role: str, now: datetime) -> CancellationDecision:
        hours = booking.hours_until_start(now)

        if booking.status not in Booking.get_active_statuses():
            return CancellationDecision(
                allowed=False,
                refund_amount=Decimal('0'),
                refund_percent=0,
                hours_until_booking=hours,
                reason=f"Booking is already {booking.status}",
                violation=VIOLATION_STATE,
            )

        if actor_role not in PRIVILEGED_ROLES and hours < self.min_notice_hours:
            return CancellationDecision(
                allowed=False,
                refund_amount=Decimal('0'),
                refund_percent=0,
                hours_until_booking=hours,
                reason=(
                    f"Bookings cannot be cancelled less than "
                    f"{self.min_notice_hours} hours before the start time"
                ),
                violation=VIOLATION_NOTICE,
            )

        percent = 0
        refund = Decimal('0')
        if booking.payment_status == Booking.PaymentStatus.PAID:
            percent = self.refund_percent(hours)
            refund = (booking.total_amount * Decimal(percent) / Decimal(100)).quantize(
                Decimal('0.01'), rounding=ROUND_HALF_UP
            )

        return CancellationDecision(
            allowed=True,
            refund_amount=refund,
            refund_percent=percent,
            hours_until_booking=hours,
        )
