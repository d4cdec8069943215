# services/reservation-service/src/tests/unit/test_cancellation.py
"""
Unit Tests for the Cancellation Policy

The policy is pure; bookings here are never saved.
"""

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from apps.core.models import Booking, Stadium
from apps.core.services import CancellationPolicy
from apps.core.services.cancellation_policy import VIOLATION_NOTICE, VIOLATION_STATE

TZ = ZoneInfo('Asia/Vientiane')
START = datetime(2025, 12, 10, 18, 0, tzinfo=TZ)


def make_booking(status=Booking.Status.CONFIRMED, payment_status=Booking.PaymentStatus.PAID,
                 total='200000'):
    return Booking(
        stadium=Stadium(name='Stadium', timezone='Asia/Vientiane'),
        booking_date=START.date(),
        start_time=START.time(),
        end_time=time(20, 0),
        status=status,
        payment_status=payment_status,
        total_amount=Decimal(total),
    )


class TestCancellationPolicy:
    """Tests for CancellationPolicy."""

    def setup_method(self):
        self.policy = CancellationPolicy()

    def test_full_refund_with_long_notice(self):
        decision = self.policy.evaluate(make_booking(), 'user', START - timedelta(hours=50))

        assert decision.allowed
        assert decision.refund_percent == 100
        assert decision.refund_amount == Decimal('200000.00')

    def test_partial_refund(self):
        decision = self.policy.evaluate(make_booking(), 'user', START - timedelta(hours=30))

        assert decision.allowed
        assert decision.refund_percent == 50
        assert decision.refund_amount == Decimal('100000.00')

    def test_boundaries_are_inclusive(self):
        assert self.policy.evaluate(make_booking(), 'user', START - timedelta(hours=48)).refund_percent == 100
        assert self.policy.evaluate(make_booking(), 'user', START - timedelta(hours=24)).refund_percent == 50

    def test_user_blocked_inside_notice_window(self):
        decision = self.policy.evaluate(make_booking(), 'user', START - timedelta(hours=10))

        assert not decision.allowed
        assert decision.violation == VIOLATION_NOTICE
        assert decision.refund_amount == Decimal('0')
        assert '24 hours' in decision.reason

    @pytest.mark.parametrize('role', ['staff', 'stadium_owner', 'admin', 'superadmin'])
    def test_privileged_roles_bypass_notice(self, role):
        decision = self.policy.evaluate(make_booking(), role, START - timedelta(hours=10))

        assert decision.allowed
        assert decision.refund_percent == 0
        assert decision.refund_amount == Decimal('0')

    def test_unpaid_booking_refunds_nothing(self):
        booking = make_booking(payment_status=Booking.PaymentStatus.PENDING)

        decision = self.policy.evaluate(booking, 'user', START - timedelta(hours=72))

        assert decision.allowed
        assert decision.refund_amount == Decimal('0')
        assert decision.refund_percent == 0

    @pytest.mark.parametrize('status', [
        Booking.Status.CANCELLED,
        Booking.Status.COMPLETED,
        Booking.Status.NO_SHOW,
    ])
    def test_inactive_booking_cannot_be_cancelled(self, status):
        decision = self.policy.evaluate(make_booking(status=status), 'admin', START - timedelta(hours=72))

        assert not decision.allowed
        assert decision.violation == VIOLATION_STATE

    def test_pending_booking_can_be_cancelled(self):
        booking = make_booking(status=Booking.Status.PENDING)

        assert self.policy.evaluate(booking, 'user', START - timedelta(hours=72)).allowed

    def test_hours_use_facility_time_zone(self):
        # 18:00 in Vientiane is 11:00 UTC
        now = datetime(2025, 12, 9, 11, 0, tzinfo=ZoneInfo('UTC'))

        decision = self.policy.evaluate(make_booking(), 'user', now)

        assert decision.hours_until_booking == pytest.approx(24.0)
        assert decision.refund_percent == 50

    def test_custom_thresholds(self):
        policy = CancellationPolicy(min_notice_hours=2, full_refund_hours=12,
                                    partial_refund_hours=6, partial_refund_percent=25)

        decision = policy.evaluate(make_booking(), 'user', START - timedelta(hours=8))

        assert decision.allowed
        assert decision.refund_percent == 25
        assert decision.refund_amount == Decimal('50000.00')
