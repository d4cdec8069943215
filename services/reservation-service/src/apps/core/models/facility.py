# services/reservation-service/src/apps/core/models/facility.py
"""
Stadium and Field Models

A stadium owns fields; fields carry the base rate and the pricing and
schedule configuration used by the booking engine.
"""

import uuid
from decimal import Decimal
from zoneinfo import ZoneInfo

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models

from shared.common.constants import DEFAULT_CURRENCY, DEFAULT_TIMEZONE


def default_timezone():
    return getattr(settings, 'BOOKING_DEFAULT_TIMEZONE', DEFAULT_TIMEZONE)


def default_currency():
    return getattr(settings, 'BOOKING_DEFAULT_CURRENCY', DEFAULT_CURRENCY)


class Stadium(models.Model):
    """A facility that groups bookable fields and staff."""

    class Status(models.TextChoices):
        ACTIVE = 'active', 'Active'
        INACTIVE = 'inactive', 'Inactive'
        MAINTENANCE = 'maintenance', 'Maintenance'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner_id = models.UUIDField(db_index=True)
    name = models.CharField(max_length=200)
    timezone = models.CharField(max_length=64, default=default_timezone)
    requires_confirmation = models.BooleanField(
        default=False,
        help_text='New bookings wait for owner confirmation'
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.ACTIVE
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'stadiums'
        ordering = ['name']

    def __str__(self):
        return self.name

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone or default_timezone())

    @property
    def is_active(self) -> bool:
        return self.status == self.Status.ACTIVE


class Field(models.Model):
    """A bookable playing field inside a stadium."""

    class FieldType(models.TextChoices):
        FOOTBALL = 'football', 'Football'
        FUTSAL = 'futsal', 'Futsal'
        BASKETBALL = 'basketball', 'Basketball'
        VOLLEYBALL = 'volleyball', 'Volleyball'
        TENNIS = 'tennis', 'Tennis'
        BADMINTON = 'badminton', 'Badminton'
        OTHER = 'other', 'Other'

    class SurfaceType(models.TextChoices):
        NATURAL_GRASS = 'natural_grass', 'Natural Grass'
        ARTIFICIAL_GRASS = 'artificial_grass', 'Artificial Grass'
        CONCRETE = 'concrete', 'Concrete'
        WOOD = 'wood', 'Wood'
        SYNTHETIC = 'synthetic', 'Synthetic'
        OTHER = 'other', 'Other'

    class Status(models.TextChoices):
        ACTIVE = 'active', 'Active'
        INACTIVE = 'inactive', 'Inactive'
        MAINTENANCE = 'maintenance', 'Maintenance'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    stadium = models.ForeignKey(
        Stadium,
        on_delete=models.CASCADE,
        related_name='fields'
    )
    name = models.CharField(max_length=200)
    field_type = models.CharField(
        max_length=20,
        choices=FieldType.choices,
        default=FieldType.FOOTBALL
    )
    surface_type = models.CharField(
        max_length=20,
        choices=SurfaceType.choices,
        default=SurfaceType.ARTIFICIAL_GRASS
    )
    base_hourly_rate = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0'))]
    )
    currency = models.CharField(max_length=3, default=default_currency)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.ACTIVE
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'fields'
        ordering = ['stadium', 'name']

    def __str__(self):
        return f"{self.stadium.name} / {self.name}"

    @property
    def is_bookable(self) -> bool:
        return self.status == self.Status.ACTIVE and self.stadium.is_active
