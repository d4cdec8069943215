# services/reservation-service/src/tests/unit/test_staff.py
"""
Unit Tests for Staff Matching
"""

from datetime import time
from decimal import Decimal

import pytest

from apps.core.models import Staff, StaffAssignment
from apps.core.services import StaffMatchingService


@pytest.mark.django_db
class TestStaffMatchingService:
    """Tests for StaffMatchingService."""

    def setup_method(self):
        self.service = StaffMatchingService()

    def test_window_must_contain_request(self, stadium, create_staff, future_date):
        day = future_date(dow=3)
        referee = create_staff(windows=[(3, '09:00', '13:00')])

        roster = self.service.get_roster(stadium.id)

        assert self.service.find_available(roster, day, time(10, 0), time(11, 0)) == [referee]
        assert self.service.find_available(roster, day, time(12, 0), time(14, 0)) == []

    def test_other_day_not_matched(self, stadium, create_staff, future_date):
        create_staff(windows=[(3, '09:00', '13:00')])
        day = future_date(dow=4)

        roster = self.service.get_roster(stadium.id)

        assert self.service.find_available(roster, day, time(10, 0), time(11, 0)) == []

    def test_role_and_status_filter(self, stadium, create_staff, future_date):
        day = future_date()
        create_staff(name='Coach', role=Staff.Role.COACH)
        create_staff(name='Suspended', status=Staff.Status.SUSPENDED)
        referee = create_staff(name='Active referee')

        roster = self.service.get_roster(stadium.id)

        assert self.service.find_available(roster, day, time(10, 0), time(11, 0)) == [referee]

    def test_roster_order_preserved(self, stadium, create_staff, future_date):
        day = future_date()
        second = create_staff(name='Second', position=2)
        first = create_staff(name='First', position=1)

        candidates = self.service.find_available(
            self.service.get_roster(stadium.id), day, time(10, 0), time(11, 0)
        )

        assert candidates == [first, second]

    def test_unavailable_window_ignored(self, stadium, create_staff, future_date):
        day = future_date(dow=2)
        member = create_staff(windows=[])
        member.availability.create(
            day_of_week=2, start_time=time(8, 0), end_time=time(22, 0), is_available=False
        )

        roster = self.service.get_roster(stadium.id)

        assert self.service.find_available(roster, day, time(10, 0), time(11, 0)) == []

    def test_busy_staff_excluded(self, stadium, create_staff, create_booking, future_date):
        day = future_date()
        busy = create_staff(name='Busy', position=0)
        free = create_staff(name='Free', position=1)
        booking = create_booking(day, '10:00', '12:00')
        self.service.assign(booking, busy)

        candidates = self.service.find_unassigned(stadium.id, day, time(11, 0), time(12, 0))

        assert candidates == [free]

    def test_compute_charge(self, create_staff):
        member = create_staff(hourly_rate='50000')

        hours, charge = self.service.compute_charge(member, time(10, 0), time(11, 30))

        assert hours == Decimal('1.50')
        assert charge == Decimal('75000.00')

    def test_auto_assign_picks_first_candidate(self, create_staff, create_booking, future_date):
        first = create_staff(name='First', position=0)
        create_staff(name='Second', position=1)
        booking = create_booking(future_date(), '10:00', '11:00')

        assignment = self.service.auto_assign(booking)

        assert assignment.staff == first
        assert assignment.total_charge == Decimal('50000.00')
        assert StaffAssignment.objects.filter(booking=booking).count() == 1

    def test_auto_assign_without_candidates(self, create_booking, future_date):
        booking = create_booking(future_date(), '10:00', '11:00')

        assert self.service.auto_assign(booking) is None
