# services/reservation-service/src/apps/core/models/schedule.py
"""
Schedule Models

Weekly opening slots per field and special-date overrides that replace the
weekly schedule for a calendar date.
"""

import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.db.models import F, Q


class DayOfWeek(models.IntegerChoices):
    SUNDAY = 0, 'Sunday'
    MONDAY = 1, 'Monday'
    TUESDAY = 2, 'Tuesday'
    WEDNESDAY = 3, 'Wednesday'
    THURSDAY = 4, 'Thursday'
    FRIDAY = 5, 'Friday'
    SATURDAY = 6, 'Saturday'


def day_of_week(value) -> int:
    """Sunday-first day index (0 = Sunday) for a date."""
    return (value.weekday() + 1) % 7


class SpecialDate(models.Model):
    """
    Calendar date whose slots replace the weekly schedule.

    A special date without slots closes the field for the day.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    field = models.ForeignKey(
        'core.Field',
        on_delete=models.CASCADE,
        related_name='special_dates'
    )
    date = models.DateField()
    reason = models.CharField(max_length=255, blank=True, default='')

    class Meta:
        db_table = 'special_dates'
        ordering = ['field', 'date']
        constraints = [
            models.UniqueConstraint(
                fields=['field', 'date'],
                name='unique_special_date_per_field'
            ),
        ]

    def __str__(self):
        return f"{self.date} ({self.reason})" if self.reason else str(self.date)


class ScheduleSlot(models.Model):
    """
    A declared time slot of a field.

    Weekly slots carry ``day_of_week``; override slots belong to a
    ``special_date``. Exactly one of the two is set.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    field = models.ForeignKey(
        'core.Field',
        on_delete=models.CASCADE,
        related_name='schedule_slots'
    )
    day_of_week = models.PositiveSmallIntegerField(
        choices=DayOfWeek.choices,
        null=True,
        blank=True,
        validators=[MaxValueValidator(6)]
    )
    special_date = models.ForeignKey(
        SpecialDate,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='slots'
    )
    start_time = models.TimeField()
    end_time = models.TimeField()
    is_available = models.BooleanField(default=True)
    special_rate = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0'))]
    )

    class Meta:
        db_table = 'schedule_slots'
        ordering = ['field', 'day_of_week', 'start_time']
        indexes = [
            models.Index(fields=['field', 'day_of_week']),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(end_time__gt=F('start_time')),
                name='schedule_slot_end_after_start'
            ),
            models.CheckConstraint(
                condition=(
                    Q(day_of_week__isnull=False, special_date__isnull=True)
                    | Q(day_of_week__isnull=True, special_date__isnull=False)
                ),
                name='schedule_slot_weekly_or_special'
            ),
        ]

    def __str__(self):
        return f"{self.start_time:%H:%M}-{self.end_time:%H:%M}"
