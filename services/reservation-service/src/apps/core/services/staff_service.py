# services/reservation-service/src/apps/core/services/staff_service.py
"""
Staff Matching Service

Finds staff whose declared weekly availability covers a booking window.
"""

import uuid
import logging
from collections import defaultdict
from datetime import date, time
from decimal import Decimal
from typing import Dict, Iterable, List, Tuple

from django.db.models import Prefetch

from apps.core.models import Booking, Staff, StaffAssignment, StaffAvailability, day_of_week
from .clock import to_minutes, duration_hours

logger = logging.getLogger(__name__)


class RosterIndex:
    """Availability windows of a roster keyed by day of week, roster order kept."""

    def __init__(self, roster: Iterable[Staff]):
        self.roster: List[Staff] = list(roster)
        self._windows: Dict[int, Dict[uuid.UUID, List[Tuple[int, int]]]] = defaultdict(dict)

        for member in self.roster:
            for window in member.availability.all():
                if not window.is_available:
                    continue
                self._windows[window.day_of_week].setdefault(member.id, []).append(
                    (to_minutes(window.start_time), to_minutes(window.end_time))
                )

    def covers(self, member: Staff, dow: int, start: int, end: int) -> bool:
        windows = self._windows.get(dow, {}).get(member.id, [])
        return any(w_start <= start and end <= w_end for w_start, w_end in windows)


class StaffMatchingService:
    """
    Matches staff to booking windows.

    Candidates are returned in roster declaration order and the first one
    is the auto-assignment pick.
    """

    def get_roster(self, stadium_id: uuid.UUID):
        return Staff.objects.filter(stadium_id=stadium_id).prefetch_related(
            Prefetch('availability', queryset=StaffAvailability.objects.order_by('start_time'))
        )

    def find_available(
        self,
        roster: Iterable[Staff],
        booking_date: date,
        start_time: time,
        end_time: time,
        role: str = Staff.Role.REFEREE,
    ) -> List[Staff]:
        """
        Active staff of ``role`` with one availability window fully
        containing [start_time, end_time) on the booking's day of week.

        Does not look at other bookings; see ``find_unassigned``.
        """
        index = RosterIndex(roster)
        dow = day_of_week(booking_date)
        start = to_minutes(start_time)
        end = to_minutes(end_time)

        return [
            member for member in index.roster
            if member.role == role
            and member.status == Staff.Status.ACTIVE
            and index.covers(member, dow, start, end)
        ]

    def busy_staff_ids(
        self,
        booking_date: date,
        start_time: time,
        end_time: time,
        exclude_booking_id: uuid.UUID = None,
    ) -> set:
        """Staff assigned to another active booking overlapping the window."""
        assignments = StaffAssignment.objects.filter(
            booking__booking_date=booking_date,
            booking__status__in=Booking.get_active_statuses(),
            booking__start_time__lt=end_time,
            booking__end_time__gt=start_time,
        )
        if exclude_booking_id:
            assignments = assignments.exclude(booking_id=exclude_booking_id)
        return set(assignments.values_list('staff_id', flat=True))

    def find_unassigned(
        self,
        stadium_id: uuid.UUID,
        booking_date: date,
        start_time: time,
        end_time: time,
        role: str = Staff.Role.REFEREE,
        exclude_booking_id: uuid.UUID = None,
    ) -> List[Staff]:
        """Available candidates that are not already working another booking."""
        candidates = self.find_available(
            self.get_roster(stadium_id), booking_date, start_time, end_time, role
        )
        busy = self.busy_staff_ids(booking_date, start_time, end_time, exclude_booking_id)
        return [member for member in candidates if member.id not in busy]

    @staticmethod
    def compute_charge(member: Staff, start_time: time, end_time: time) -> Tuple[Decimal, Decimal]:
        """(hours, hours x hourly rate) for a window."""
        hours = duration_hours(start_time, end_time)
        return hours, (hours * member.hourly_rate).quantize(Decimal('0.01'))

    def assign(self, booking: Booking, member: Staff) -> StaffAssignment:
        """Attach a staff member to a booking. Caller recalculates totals."""
        hours, charge = self.compute_charge(member, booking.start_time, booking.end_time)
        assignment = StaffAssignment.objects.create(
            booking=booking,
            staff=member,
            role=member.role,
            hours=hours,
            hourly_rate=member.hourly_rate,
            total_charge=charge,
        )
        logger.info(
            f"Assigned {member.role} {member.name} to booking {booking.booking_number}",
            extra={'booking_id': str(booking.id), 'staff_id': str(member.id)}
        )
        return assignment

    def auto_assign(self, booking: Booking, role: str = Staff.Role.REFEREE):
        """Assign the first free candidate, if any."""
        candidates = self.find_unassigned(
            booking.stadium_id,
            booking.booking_date,
            booking.start_time,
            booking.end_time,
            role=role,
            exclude_booking_id=booking.id,
        )
        assigned = set(booking.staff_assignments.values_list('staff_id', flat=True))
        candidates = [member for member in candidates if member.id not in assigned]
        if not candidates:
            logger.info(f"No {role} available for booking {booking.booking_number}")
            return None
        return self.assign(booking, candidates[0])

    def reconcile(self, booking: Booking) -> Dict[str, List[str]]:
        """
        Re-validate a booking's assignments against its current window.

        Staff whose availability no longer covers the window, or who work
        another booking at that time, are released and replaced with the
        first free candidate of the same role. Kept assignments are
        re-charged for the new duration. Caller recalculates totals.
        """
        index = RosterIndex(self.get_roster(booking.stadium_id))
        dow = day_of_week(booking.booking_date)
        start = to_minutes(booking.start_time)
        end = to_minutes(booking.end_time)
        busy = self.busy_staff_ids(
            booking.booking_date, booking.start_time, booking.end_time,
            exclude_booking_id=booking.id,
        )

        released, assigned = [], []
        for assignment in list(booking.staff_assignments.select_related('staff')):
            member = assignment.staff
            if (
                member.status == Staff.Status.ACTIVE
                and member.id not in busy
                and index.covers(member, dow, start, end)
            ):
                assignment.hours = duration_hours(booking.start_time, booking.end_time)
                assignment.total_charge = (assignment.hours * assignment.hourly_rate).quantize(
                    Decimal('0.01')
                )
                assignment.save(update_fields=['hours', 'total_charge'])
                continue

            role = assignment.role
            assignment.delete()
            released.append(str(member.id))
            logger.info(
                f"Released {role} {member.name} from booking {booking.booking_number}",
                extra={'booking_id': str(booking.id), 'staff_id': str(member.id)}
            )

            replacement = self.auto_assign(booking, role=role)
            if replacement is not None:
                assigned.append(str(replacement.staff_id))

        return {'released': released, 'assigned': assigned}
