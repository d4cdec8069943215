# services/reservation-service/src/apps/core/models/staff.py
"""
Staff Models

Stadium staff (referees, managers, ...) and their weekly availability.
"""

import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.db.models import F, Q

from .facility import default_currency
from .schedule import DayOfWeek


class Staff(models.Model):
    """A staff member of a stadium."""

    class Role(models.TextChoices):
        REFEREE = 'referee', 'Referee'
        MANAGER = 'manager', 'Manager'
        MAINTENANCE = 'maintenance', 'Maintenance'
        SECURITY = 'security', 'Security'
        COACH = 'coach', 'Coach'
        OTHER = 'other', 'Other'

    class Status(models.TextChoices):
        ACTIVE = 'active', 'Active'
        INACTIVE = 'inactive', 'Inactive'
        SUSPENDED = 'suspended', 'Suspended'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    stadium = models.ForeignKey(
        'core.Stadium',
        on_delete=models.CASCADE,
        related_name='staff_members'
    )
    name = models.CharField(max_length=200)
    role = models.CharField(max_length=20, choices=Role.choices)
    hourly_rate = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0'),
        validators=[MinValueValidator(Decimal('0'))]
    )
    currency = models.CharField(max_length=3, default=default_currency)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.ACTIVE
    )
    # Roster declaration order, used as the auto-assignment tie-break
    position = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'staff'
        ordering = ['stadium', 'position', 'created_at']
        indexes = [
            models.Index(fields=['stadium', 'role', 'status']),
        ]

    def __str__(self):
        return f"{self.name} ({self.get_role_display()})"


class StaffAvailability(models.Model):
    """Weekly window during which a staff member can work."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    staff = models.ForeignKey(
        Staff,
        on_delete=models.CASCADE,
        related_name='availability'
    )
    day_of_week = models.PositiveSmallIntegerField(
        choices=DayOfWeek.choices,
        validators=[MaxValueValidator(6)]
    )
    start_time = models.TimeField()
    end_time = models.TimeField()
    is_available = models.BooleanField(default=True)

    class Meta:
        db_table = 'staff_availability'
        ordering = ['staff', 'day_of_week', 'start_time']
        constraints = [
            models.CheckConstraint(
                condition=Q(end_time__gt=F('start_time')),
                name='staff_availability_end_after_start'
            ),
        ]

    def __str__(self):
        return f"{self.get_day_of_week_display()} {self.start_time:%H:%M}-{self.end_time:%H:%M}"
