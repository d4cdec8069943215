# services/reservation-service/src/apps/core/models/membership.py
"""
Membership Series Model

A recurring reservation of the same field, day of week and time range.
Each persisted occurrence is an independent Booking pointing back here.
"""

import uuid
from datetime import date

from django.db import models
from django.db.models import F, Q

from .schedule import DayOfWeek


class MembershipSeries(models.Model):
    """
    Membership request and the bookkeeping of its persisted occurrences.

    ``total_occurrences`` counts the occurrences that were actually booked;
    candidates that failed are kept in ``failures``.
    """

    class Pattern(models.TextChoices):
        WEEKLY = 'weekly', 'Weekly'
        BIWEEKLY = 'biweekly', 'Biweekly'
        MONTHLY = 'monthly', 'Monthly'

    # Primary Key
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user_id = models.UUIDField(db_index=True)
    stadium = models.ForeignKey(
        'core.Stadium',
        on_delete=models.PROTECT,
        related_name='memberships'
    )
    field = models.ForeignKey(
        'core.Field',
        on_delete=models.PROTECT,
        related_name='memberships'
    )

    # Recurrence Rule
    pattern = models.CharField(max_length=20, choices=Pattern.choices)
    day_of_week = models.PositiveSmallIntegerField(choices=DayOfWeek.choices)
    start_date = models.DateField()
    end_date = models.DateField(null=True, blank=True)
    requested_occurrences = models.PositiveIntegerField(null=True, blank=True)
    start_time = models.TimeField()
    end_time = models.TimeField()

    # Progress Tracking
    total_occurrences = models.PositiveIntegerField(default=0)
    completed_occurrences = models.PositiveIntegerField(default=0)
    next_booking_date = models.DateField(null=True, blank=True)
    is_active = models.BooleanField(default=True)
    failures = models.JSONField(default=list, blank=True)

    team_info = models.JSONField(default=dict, blank=True)

    # Cancellation
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(blank=True, default='')

    # Audit
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'membership_series'
        ordering = ['-created_at']
        constraints = [
            models.CheckConstraint(
                condition=Q(end_time__gt=F('start_time')),
                name='membership_end_after_start'
            ),
        ]

    def __str__(self):
        return f"{self.get_pattern_display()} membership from {self.start_date}"

    def refresh_progress(self, today: date):
        """Recompute counters from the persisted occurrences."""
        from .booking import Booking

        occurrences = self.occurrences.all()
        self.total_occurrences = occurrences.count()
        self.completed_occurrences = occurrences.filter(
            status=Booking.Status.COMPLETED
        ).count()
        upcoming = occurrences.filter(
            status__in=Booking.get_active_statuses(),
            booking_date__gte=today,
        ).order_by('booking_date').first()
        self.next_booking_date = upcoming.booking_date if upcoming else None
        self.save(update_fields=[
            'total_occurrences', 'completed_occurrences',
            'next_booking_date', 'updated_at',
        ])
