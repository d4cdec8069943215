# services/reservation-service/src/tests/conftest.py
"""
Pytest Configuration and Fixtures

Provides common fixtures for reservation service tests.
"""

import uuid
from datetime import date, datetime, time, timedelta
from decimal import Decimal

import pytest
from django.core.cache import cache
from django.utils import timezone
from rest_framework.test import APIClient

from shared.common.authentication import TokenUser
from apps.core.models import (
    Booking,
    Field,
    PricingTier,
    ScheduleSlot,
    SpecialDate,
    Stadium,
    Staff,
    StaffAvailability,
)
from apps.core.services import Actor

ALL_DAYS = range(7)


@pytest.fixture(autouse=True)
def clear_cache():
    """Availability snapshots must not leak between tests."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    """Provide API client for testing."""
    return APIClient()


@pytest.fixture
def user_id():
    """Provide a test user ID."""
    return str(uuid.uuid4())


@pytest.fixture
def other_user_id():
    return str(uuid.uuid4())


@pytest.fixture
def owner_id():
    """Provide a stadium owner ID."""
    return str(uuid.uuid4())


@pytest.fixture
def user_actor(user_id):
    return Actor(user_id=user_id, role='user')


@pytest.fixture
def owner_actor(owner_id):
    return Actor(user_id=owner_id, role='stadium_owner')


@pytest.fixture
def admin_actor():
    return Actor(user_id=str(uuid.uuid4()), role='admin')


@pytest.fixture
def token_user():
    """Build an authenticated token user."""
    def _create(user_id=None, roles=None):
        return TokenUser({
            'sub': str(user_id or uuid.uuid4()),
            'email': 'player@example.com',
            'roles': roles or ['user'],
        })
    return _create


@pytest.fixture
def future_date():
    """A date ``days`` ahead of today, optionally moved to a day of week (0=Sunday)."""
    def _create(days=7, dow=None):
        day = timezone.now().date() + timedelta(days=days)
        if dow is not None:
            day += timedelta(days=(dow - (day.weekday() + 1) % 7) % 7)
        return day
    return _create


@pytest.fixture
def create_stadium(owner_id):
    """Factory for stadiums."""
    def _create(**kwargs):
        defaults = {
            'owner_id': owner_id,
            'name': 'National Stadium',
            'timezone': 'Asia/Vientiane',
            'requires_confirmation': False,
        }
        defaults.update(kwargs)
        return Stadium.objects.create(**defaults)
    return _create


@pytest.fixture
def stadium(create_stadium):
    return create_stadium()


@pytest.fixture
def create_field(stadium):
    """Factory for fields."""
    def _create(**kwargs):
        defaults = {
            'stadium': stadium,
            'name': 'Pitch A',
            'field_type': Field.FieldType.FOOTBALL,
            'base_hourly_rate': Decimal('100000'),
            'currency': 'LAK',
        }
        defaults.update(kwargs)
        return Field.objects.create(**defaults)
    return _create


@pytest.fixture
def field(create_field):
    return create_field()


@pytest.fixture
def create_schedule():
    """Weekly schedule slots for the given days (all days by default)."""
    def _create(field, start='08:00', end='22:00', days=ALL_DAYS, is_available=True, special_rate=None):
        return [
            ScheduleSlot.objects.create(
                field=field,
                day_of_week=dow,
                start_time=time.fromisoformat(start),
                end_time=time.fromisoformat(end),
                is_available=is_available,
                special_rate=special_rate,
            )
            for dow in days
        ]
    return _create


@pytest.fixture
def open_field(field, create_schedule):
    """A field open 08:00-22:00 every day."""
    create_schedule(field)
    return field


@pytest.fixture
def create_special_date():
    def _create(field, day, slots=(), reason='Holiday'):
        special = SpecialDate.objects.create(field=field, date=day, reason=reason)
        for start, end, is_available in slots:
            ScheduleSlot.objects.create(
                field=field,
                special_date=special,
                start_time=time.fromisoformat(start),
                end_time=time.fromisoformat(end),
                is_available=is_available,
            )
        return special
    return _create


@pytest.fixture
def create_tier():
    """Factory for pricing tiers."""
    def _create(field, name, start, end, rate, days_of_week=None, position=0, **kwargs):
        return PricingTier.objects.create(
            field=field,
            name=name,
            start_time=time.fromisoformat(start),
            end_time=time.fromisoformat(end),
            rate=Decimal(rate),
            days_of_week=days_of_week or [],
            position=position,
            **kwargs
        )
    return _create


@pytest.fixture
def create_staff(stadium):
    """Factory for staff with weekly availability windows."""
    def _create(name='Referee', role=Staff.Role.REFEREE, hourly_rate='50000',
                windows=None, position=0, **kwargs):
        member = Staff.objects.create(
            stadium=kwargs.pop('stadium', stadium),
            name=name,
            role=role,
            hourly_rate=Decimal(hourly_rate),
            position=position,
            **kwargs
        )
        if windows is None:
            windows = [(dow, '08:00', '22:00') for dow in ALL_DAYS]
        for dow, start, end in windows:
            StaffAvailability.objects.create(
                staff=member,
                day_of_week=dow,
                start_time=time.fromisoformat(start),
                end_time=time.fromisoformat(end),
            )
        return member
    return _create


@pytest.fixture
def create_booking(field, user_id):
    """Create a booking row directly, bypassing the service."""
    def _create(booking_date, start='10:00', end='11:00', status=Booking.Status.CONFIRMED, **kwargs):
        defaults = {
            'user_id': user_id,
            'stadium': field.stadium,
            'field': field,
            'booking_date': booking_date,
            'start_time': time.fromisoformat(start),
            'end_time': time.fromisoformat(end),
            'duration_hours': Decimal('1.00'),
            'status': status,
            'base_rate': Decimal('100000'),
            'base_amount': Decimal('100000'),
            'total_amount': Decimal('100000'),
        }
        defaults.update(kwargs)
        return Booking.objects.create(**defaults)
    return _create


@pytest.fixture
def local_dt():
    """Aware datetime in the stadium time zone."""
    def _create(day: date, hhmm: str, tz='Asia/Vientiane'):
        from zoneinfo import ZoneInfo
        return datetime.combine(day, time.fromisoformat(hhmm), tzinfo=ZoneInfo(tz))
    return _create
