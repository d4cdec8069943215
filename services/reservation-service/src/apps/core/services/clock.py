# services/reservation-service/src/apps/core/services/clock.py
"""
Date and time-of-day helpers shared by the booking services.

Times of day are handled as minutes since midnight so interval arithmetic
stays integral.
"""

from datetime import date, datetime, time
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

MINUTES_PER_DAY = 24 * 60


def parse_date(value: Union[str, date], field_name: str = 'date') -> date:
    """Parse a YYYY-MM-DD string (or pass a date through)."""
    from . import InvalidInputError

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value), '%Y-%m-%d').date()
    except (TypeError, ValueError):
        raise InvalidInputError(
            f"Invalid {field_name}: expected YYYY-MM-DD",
            details={field_name: value}
        )


def parse_time(value: Union[str, time], field_name: str = 'time') -> time:
    """Parse an HH:MM string on a 24-hour clock (or pass a time through)."""
    from . import InvalidInputError

    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    try:
        parsed = datetime.strptime(str(value), '%H:%M')
    except (TypeError, ValueError):
        raise InvalidInputError(
            f"Invalid {field_name}: expected HH:MM",
            details={field_name: value}
        )
    return parsed.time()


def parse_range(start, end):
    """Parse a start/end pair and require start < end."""
    from . import InvalidInputError

    start_time = parse_time(start, 'start_time')
    end_time = parse_time(end, 'end_time')
    if end_time <= start_time:
        raise InvalidInputError(
            "end_time must be after start_time",
            details={'start_time': format_time(start_time), 'end_time': format_time(end_time)}
        )
    return start_time, end_time


def to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def from_minutes(minutes: int) -> time:
    return time(minutes // 60, minutes % 60)


def format_time(value: time) -> str:
    return value.strftime('%H:%M')


def duration_hours(start: time, end: time) -> Decimal:
    minutes = to_minutes(end) - to_minutes(start)
    return (Decimal(minutes) / Decimal(60)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


def round_currency(amount: Decimal) -> Decimal:
    """Round to the nearest whole currency unit."""
    return Decimal(amount).quantize(Decimal('1'), rounding=ROUND_HALF_UP)


