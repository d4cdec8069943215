# services/reservation-service/src/apps/core/services/recurring_service.py
"""
Recurring Series Generator

Expands a membership request into dated occurrence candidates and drives
their reservation one by one, collecting per-occurrence failures.
"""

import logging
from dataclasses import dataclass, field as dataclass_field
from datetime import date, timedelta
from typing import Any, Callable, Dict, List, Optional

from dateutil.relativedelta import relativedelta, SU, MO, TU, WE, TH, FR, SA
from django.conf import settings

from apps.core.models import MembershipSeries, day_of_week
from .requests import MembershipBookingRequest

logger = logging.getLogger(__name__)

# Indexed by Sunday-first day of week
WEEKDAYS = (SU, MO, TU, WE, TH, FR, SA)

STEP_DAYS = {
    MembershipSeries.Pattern.WEEKLY: 7,
    MembershipSeries.Pattern.BIWEEKLY: 14,
}


@dataclass
class SeriesResult:
    occurrences: List[Any] = dataclass_field(default_factory=list)
    failures: List[Dict[str, Any]] = dataclass_field(default_factory=list)

    @property
    def is_partial(self) -> bool:
        return bool(self.occurrences) and bool(self.failures)


class RecurringSeriesGenerator:
    """
    Generates occurrence dates for weekly, biweekly and monthly series.

    Monthly series keep the day-of-week-in-month of the first occurrence
    (e.g. "second Wednesday"). When a month has no such day (a fifth
    weekday), the last matching weekday of that month is used.
    """

    @property
    def max_occurrences(self) -> int:
        return int(getattr(settings, 'MEMBERSHIP_MAX_OCCURRENCES', 104))

    @property
    def default_occurrences(self) -> int:
        return int(getattr(settings, 'MEMBERSHIP_DEFAULT_OCCURRENCES', 52))

    @staticmethod
    def first_occurrence(start_date: date, dow: int) -> date:
        """First date on or after start_date falling on dow."""
        offset = (dow - day_of_week(start_date)) % 7
        return start_date + timedelta(days=offset)

    @staticmethod
    def monthly_occurrence(first: date, months: int) -> date:
        weekday = WEEKDAYS[day_of_week(first)]
        nth = (first.day - 1) // 7 + 1
        month_start = first + relativedelta(months=months, day=1)
        candidate = month_start + relativedelta(weekday=weekday(+nth))
        if candidate.month != month_start.month:
            candidate = month_start + relativedelta(day=31, weekday=weekday(-1))
        return candidate

    def _step(self, first: date, pattern: str, index: int) -> date:
        if pattern == MembershipSeries.Pattern.MONTHLY:
            return self.monthly_occurrence(first, index)
        return first + timedelta(days=STEP_DAYS[pattern] * index)

    def occurrence_dates(
        self,
        start_date: date,
        dow: int,
        pattern: str,
        total_occurrences: Optional[int] = None,
        end_date: Optional[date] = None,
    ) -> List[date]:
        """Ordered candidate dates of a series."""
        from . import BookingValidationError

        if pattern not in MembershipSeries.Pattern.values:
            raise BookingValidationError(
                f"Unknown recurrence pattern: {pattern}",
                details={'recurrence_pattern': pattern}
            )
        if not 0 <= dow <= 6:
            raise BookingValidationError(
                "day_of_week must be between 0 (Sunday) and 6 (Saturday)",
                details={'day_of_week': dow}
            )
        if total_occurrences is not None and end_date is not None:
            raise BookingValidationError(
                "Provide either end_date or total_occurrences, not both"
            )
        if total_occurrences is None and end_date is None:
            total_occurrences = self.default_occurrences
        if total_occurrences is not None and not 1 <= total_occurrences <= self.max_occurrences:
            raise BookingValidationError(
                f"total_occurrences must be between 1 and {self.max_occurrences}",
                details={'total_occurrences': total_occurrences}
            )
        if end_date is not None and end_date < start_date:
            raise BookingValidationError(
                "end_date must not be before start_date",
                details={'start_date': start_date.isoformat(), 'end_date': end_date.isoformat()}
            )

        first = self.first_occurrence(start_date, dow)
        dates = []
        index = 0
        while True:
            candidate = self._step(first, pattern, index)
            if end_date is not None and candidate > end_date:
                break
            if total_occurrences is not None and len(dates) >= total_occurrences:
                break
            if len(dates) >= self.max_occurrences:
                raise BookingValidationError(
                    f"Series would exceed {self.max_occurrences} occurrences",
                    details={'end_date': end_date.isoformat()}
                )
            dates.append(candidate)
            index += 1

        return dates

    def expand(
        self,
        request: MembershipBookingRequest,
        reserve: Callable[[int, date], Any],
    ) -> SeriesResult:
        """
        Reserve every candidate of the request through ``reserve(index, date)``.

        Each call is its own atomic unit; slot conflicts and validation
        failures are recorded per occurrence instead of aborting the series.
        """
        from . import BookingValidationError, SlotConflictError

        dates = self.occurrence_dates(
            request.start_date,
            request.day_of_week,
            request.recurrence_pattern,
            total_occurrences=request.total_occurrences,
            end_date=request.end_date,
        )

        result = SeriesResult()
        for index, occurrence_date in enumerate(dates):
            try:
                result.occurrences.append(reserve(index, occurrence_date))
            except (SlotConflictError, BookingValidationError) as e:
                result.failures.append({
                    'occurrence_index': index,
                    'date': occurrence_date.isoformat(),
                    'reason': e.message or str(e),
                    'code': type(e).__name__,
                })

        logger.info(
            f"Expanded {request.recurrence_pattern} series into {len(dates)} candidates: "
            f"{len(result.occurrences)} booked, {len(result.failures)} failed"
        )
        return result
