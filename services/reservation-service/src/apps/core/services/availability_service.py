# services/reservation-service/src/apps/core/services/availability_service.py
"""
Availability Service

Decides whether a field is free for a date and time range, and classifies
the declared slots of a day for calendar views.

Reads go through a short-lived per field/date snapshot in the cache. The
snapshot is never the reservation gate: BookingService re-checks overlaps
inside the reserving transaction.
"""

import uuid
import logging
from dataclasses import dataclass, field as dataclass_field
from datetime import date
from typing import Optional, Dict, Any, List

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction

from shared.common.cache import CacheKeyBuilder, cache_client, cached
from shared.common.constants import CACHE_TTL_SHORT
from apps.core.models import Booking, Field, ScheduleSlot, SpecialDate, day_of_week
from .clock import parse_date, parse_range, to_minutes, from_minutes, format_time
from .pricing_service import PricingService

logger = logging.getLogger(__name__)

key_builder = CacheKeyBuilder(getattr(settings, 'SERVICE_NAME', 'reservation-service'))

REASON_FIELD_INACTIVE = 'Field is not active'
REASON_SCHEDULE = 'Not available in schedule'


def snapshot_key(field_id, day: date) -> str:
    return key_builder.availability(field_id, day.isoformat())


def snapshot_ttl() -> int:
    return getattr(settings, 'AVAILABILITY_CACHE_TTL', CACHE_TTL_SHORT)


def build_day_snapshot(field_id, day: date) -> Dict[str, Any]:
    """Declared slots and active bookings of a field for one date."""
    special = SpecialDate.objects.filter(field_id=field_id, date=day).first()
    if special is not None:
        slots = special.slots.order_by('start_time')
        source = 'special_date'
    else:
        slots = ScheduleSlot.objects.filter(
            field_id=field_id,
            day_of_week=day_of_week(day),
            special_date__isnull=True,
        ).order_by('start_time')
        source = 'weekly'

    slot_rows = [
        {
            'start': to_minutes(slot.start_time),
            'end': to_minutes(slot.end_time),
            'is_available': slot.is_available,
            'special_rate': slot.special_rate,
        }
        for slot in slots
    ]
    if special is None and not slot_rows:
        source = 'none'

    bookings = Booking.objects.filter(
        field_id=field_id,
        booking_date=day,
        status__in=Booking.get_active_statuses(),
    ).order_by('start_time')

    return {
        'source': source,
        'slots': slot_rows,
        'bookings': [
            {
                'id': str(booking.id),
                'booking_number': booking.booking_number,
                'start': to_minutes(booking.start_time),
                'end': to_minutes(booking.end_time),
                'status': booking.status,
            }
            for booking in bookings
        ],
    }


@cached('availability', timeout=snapshot_ttl, key_func=snapshot_key)
def load_day_snapshot(field_id, day: date) -> Dict[str, Any]:
    return build_day_snapshot(field_id, day)


def overlaps(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open interval overlap."""
    return start_a < end_b and end_a > start_b


def schedule_covers(slots: List[Dict[str, Any]], start: int, end: int) -> bool:
    """
    True when available slots cover [start, end) without a gap and no
    unavailable slot overlaps it.
    """
    for slot in slots:
        if not slot['is_available'] and overlaps(slot['start'], slot['end'], start, end):
            return False

    merged = []
    for slot in sorted(
        (s for s in slots if s['is_available']), key=lambda s: s['start']
    ):
        if merged and slot['start'] <= merged[-1][1]:
            merged[-1][1] = max(merged[-1][1], slot['end'])
        else:
            merged.append([slot['start'], slot['end']])

    return any(m_start <= start and end <= m_end for m_start, m_end in merged)


@dataclass
class AvailabilityResult:
    available: bool
    reason: Optional[str] = None
    reason_code: Optional[str] = None
    conflicts: List[str] = dataclass_field(default_factory=list)


class AvailabilityService:
    """
    Service for slot availability.

    Handles:
    - Boolean availability checks
    - Comprehensive day classification
    - Cache invalidation after booking writes
    """

    def __init__(self, use_cache: bool = True):
        self.use_cache = use_cache

    # ==========================================================================
    # Lookups
    # ==========================================================================

    def get_field(self, field_id: uuid.UUID) -> Field:
        from . import ResourceNotFoundError

        try:
            return Field.objects.select_related('stadium').get(id=field_id)
        except (Field.DoesNotExist, ValueError, DjangoValidationError):
            raise ResourceNotFoundError(f"Field {field_id} not found")

    def day_snapshot(self, field: Field, day: date, use_cache: bool = None) -> Dict[str, Any]:
        use_cache = self.use_cache if use_cache is None else use_cache
        if use_cache:
            return load_day_snapshot(field.id, day)
        return build_day_snapshot(field.id, day)

    # ==========================================================================
    # Checks
    # ==========================================================================

    def check(
        self,
        field: Field,
        day: date,
        start_time,
        end_time,
        exclude_booking_id: uuid.UUID = None,
        use_cache: bool = None,
    ) -> AvailabilityResult:
        """Availability of [start_time, end_time) with the reason when closed."""
        if not field.is_bookable:
            return AvailabilityResult(False, REASON_FIELD_INACTIVE, 'field_inactive')

        start = to_minutes(start_time)
        end = to_minutes(end_time)
        snapshot = self.day_snapshot(field, day, use_cache)

        if not schedule_covers(snapshot['slots'], start, end):
            return AvailabilityResult(False, REASON_SCHEDULE, 'schedule')

        excluded = str(exclude_booking_id) if exclude_booking_id else None
        conflicts = [
            booking for booking in snapshot['bookings']
            if booking['id'] != excluded
            and overlaps(booking['start'], booking['end'], start, end)
        ]
        if conflicts:
            return AvailabilityResult(
                False,
                f"Already booked ({conflicts[0]['status']})",
                'booked',
                [booking['booking_number'] for booking in conflicts],
            )

        return AvailabilityResult(True)

    def is_available(
        self,
        field_id: uuid.UUID,
        booking_date,
        start_time,
        end_time,
        exclude_booking_id: uuid.UUID = None,
    ) -> bool:
        """
        Whether the field is free for the range.

        Returns False when the field is closed or taken; raises
        InvalidInputError for malformed dates or times.
        """
        day = parse_date(booking_date, 'booking_date')
        start, end = parse_range(start_time, end_time)
        field = self.get_field(field_id)
        return self.check(field, day, start, end, exclude_booking_id).available

    # ==========================================================================
    # Calendar Views
    # ==========================================================================

    def get_comprehensive_availability(self, field_id: uuid.UUID, booking_date) -> Dict[str, Any]:
        """Classify every declared slot of the day."""
        day = parse_date(booking_date, 'date')
        field = self.get_field(field_id)
        snapshot = self.day_snapshot(field, day)
        pricing = PricingService(field)

        available_slots = []
        unavailable_slots = []

        for slot in snapshot['slots']:
            entry = {
                'start_time': format_time(from_minutes(slot['start'])),
                'end_time': format_time(from_minutes(slot['end'])),
            }
            booked = [
                booking for booking in snapshot['bookings']
                if overlaps(booking['start'], booking['end'], slot['start'], slot['end'])
            ]

            if not field.is_bookable:
                unavailable_slots.append({**entry, 'reason': REASON_FIELD_INACTIVE})
            elif not slot['is_available']:
                unavailable_slots.append({**entry, 'reason': REASON_SCHEDULE})
            elif booked:
                unavailable_slots.append({
                    **entry,
                    'reason': f"Already booked ({booked[0]['status']})",
                    'booking_number': booked[0]['booking_number'],
                })
            else:
                rate = slot['special_rate']
                if rate is None:
                    rate = pricing.resolve_rate(day, from_minutes(slot['start']))
                available_slots.append({**entry, 'rate': rate, 'currency': field.currency})

        return {
            'field_id': str(field.id),
            'date': day.isoformat(),
            'day_of_week': day_of_week(day),
            'schedule_source': snapshot['source'],
            'available_slots': available_slots,
            'unavailable_slots': unavailable_slots,
            'summary': {
                'total_slots': len(snapshot['slots']),
                'available_count': len(available_slots),
                'unavailable_count': len(unavailable_slots),
            },
        }

    def get_available_time_slots(self, field_id: uuid.UUID, booking_date) -> List[Dict[str, Any]]:
        """Free declared slots only."""
        return self.get_comprehensive_availability(field_id, booking_date)['available_slots']

    # ==========================================================================
    # Cache
    # ==========================================================================

    @staticmethod
    def invalidate(field_id, *days: date):
        """Drop cached snapshots now and again once the transaction commits."""
        keys = [snapshot_key(field_id, day) for day in set(days)]
        cache_client.delete_many(keys)
        transaction.on_commit(lambda: cache_client.delete_many(keys))
        logger.debug(f"Invalidated availability cache for field {field_id}: {keys}")
