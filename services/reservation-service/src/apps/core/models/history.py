# services/reservation-service/src/apps/core/models/history.py
"""
Booking History Model

Append-only audit trail of booking mutations.
"""

import uuid

from django.db import models


class BookingHistory(models.Model):
    """One entry per mutating transition of a booking. Never updated or deleted."""

    class Action(models.TextChoices):
        CREATED = 'created', 'Created'
        UPDATED = 'updated', 'Updated'
        CONFIRMED = 'confirmed', 'Confirmed'
        CANCELLED = 'cancelled', 'Cancelled'
        COMPLETED = 'completed', 'Completed'
        NO_SHOW = 'no_show', 'No Show'
        CHECKED_IN = 'checked_in', 'Checked In'
        RESCHEDULED = 'rescheduled', 'Rescheduled'
        PAYMENT_RECORDED = 'payment_recorded', 'Payment Recorded'
        DISCOUNT_APPLIED = 'discount_applied', 'Discount Applied'
        STAFF_ASSIGNED = 'staff_assigned', 'Staff Assigned'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking = models.ForeignKey(
        'core.Booking',
        on_delete=models.CASCADE,
        related_name='history'
    )
    sequence = models.PositiveIntegerField()
    action = models.CharField(max_length=20, choices=Action.choices)
    changed_by = models.CharField(max_length=64)
    old_values = models.JSONField(default=dict, blank=True)
    new_values = models.JSONField(default=dict, blank=True)
    notes = models.TextField(blank=True, default='')
    timestamp = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'booking_history'
        ordering = ['booking', 'sequence']
        constraints = [
            models.UniqueConstraint(
                fields=['booking', 'sequence'],
                name='unique_history_sequence'
            ),
        ]

    def __str__(self):
        return f"{self.booking_id} #{self.sequence} {self.action}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Booking history entries are immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValueError("Booking history entries are immutable")
