# services/reservation-service/src/tests/unit/test_recurring.py
"""
Unit Tests for the Recurring Series Generator
"""

from datetime import date, time, timedelta

import pytest

from apps.core.services import (
    BookingValidationError,
    MembershipBookingRequest,
    RecurringSeriesGenerator,
    SlotConflictError,
)


class TestOccurrenceDates:
    """Date generation needs no database."""

    def setup_method(self):
        self.generator = RecurringSeriesGenerator()

    def test_weekly_from_monday_for_wednesday(self):
        dates = self.generator.occurrence_dates(date(2025, 12, 1), 3, 'weekly', total_occurrences=26)

        assert len(dates) == 26
        assert dates[0] == date(2025, 12, 3)
        assert all(b - a == timedelta(days=7) for a, b in zip(dates, dates[1:]))
        assert all(d.isoweekday() == 3 for d in dates)

    def test_start_date_on_matching_day(self):
        dates = self.generator.occurrence_dates(date(2025, 12, 3), 3, 'weekly', total_occurrences=1)

        assert dates == [date(2025, 12, 3)]

    def test_sunday_is_zero(self):
        dates = self.generator.occurrence_dates(date(2025, 12, 1), 0, 'weekly', total_occurrences=2)

        assert dates == [date(2025, 12, 7), date(2025, 12, 14)]

    def test_biweekly(self):
        dates = self.generator.occurrence_dates(date(2025, 12, 1), 1, 'biweekly', total_occurrences=3)

        assert dates == [date(2025, 12, 1), date(2025, 12, 15), date(2025, 12, 29)]

    def test_end_date_inclusive(self):
        dates = self.generator.occurrence_dates(
            date(2025, 12, 1), 3, 'weekly', end_date=date(2025, 12, 17)
        )

        assert dates == [date(2025, 12, 3), date(2025, 12, 10), date(2025, 12, 17)]

    def test_monthly_keeps_nth_weekday(self):
        # 2025-12-10 is the second Wednesday of December
        dates = self.generator.occurrence_dates(date(2025, 12, 10), 3, 'monthly', total_occurrences=3)

        assert dates == [date(2025, 12, 10), date(2026, 1, 14), date(2026, 2, 11)]

    def test_monthly_fifth_weekday_falls_back_to_last(self):
        # 2025-12-31 is the fifth Wednesday; February 2026 has four
        dates = self.generator.occurrence_dates(date(2025, 12, 29), 3, 'monthly', total_occurrences=3)

        assert dates == [date(2025, 12, 31), date(2026, 1, 28), date(2026, 2, 25)]

    @pytest.mark.parametrize('kwargs', [
        {'pattern': 'daily', 'total_occurrences': 3},
        {'pattern': 'weekly', 'total_occurrences': 0},
        {'pattern': 'weekly', 'total_occurrences': 105},
        {'pattern': 'weekly', 'total_occurrences': 2, 'end_date': date(2026, 1, 1)},
        {'pattern': 'weekly', 'end_date': date(2025, 11, 1)},
        {'pattern': 'weekly', 'end_date': date(2030, 1, 1)},
    ])
    def test_invalid_series(self, kwargs):
        pattern = kwargs.pop('pattern')
        with pytest.raises(BookingValidationError):
            self.generator.occurrence_dates(date(2025, 12, 1), 3, pattern, **kwargs)

    def test_day_of_week_range(self):
        with pytest.raises(BookingValidationError):
            self.generator.occurrence_dates(date(2025, 12, 1), 7, 'weekly', total_occurrences=1)

    def test_default_occurrences_without_terminator(self):
        dates = self.generator.occurrence_dates(date(2025, 12, 1), 3, 'weekly')

        assert len(dates) == 52


class TestExpand:
    """expand() isolates failures per occurrence."""

    def setup_method(self):
        self.generator = RecurringSeriesGenerator()
        self.request = MembershipBookingRequest(
            stadium_id='s',
            field_id='f',
            start_date=date(2025, 12, 1),
            day_of_week=3,
            start_time=time(18, 0),
            end_time=time(19, 0),
            recurrence_pattern='weekly',
            total_occurrences=4,
        )

    def test_partial_failures_recorded(self):
        def reserve(index, occurrence_date):
            if index == 1:
                raise SlotConflictError("The requested time slot conflicts with an existing booking")
            return occurrence_date

        result = self.generator.expand(self.request, reserve)

        assert result.occurrences == [date(2025, 12, 3), date(2025, 12, 17), date(2025, 12, 24)]
        assert result.failures == [{
            'occurrence_index': 1,
            'date': '2025-12-10',
            'reason': 'The requested time slot conflicts with an existing booking',
            'code': 'SlotConflictError',
        }]
        assert result.is_partial

    def test_unexpected_errors_propagate(self):
        def reserve(index, occurrence_date):
            raise RuntimeError('database down')

        with pytest.raises(RuntimeError):
            self.generator.expand(self.request, reserve)
