# services/reservation-service/src/apps/core/models/booking.py
"""
Booking Model

Core reservation of a field for a half-open time range on a calendar date.
"""

import secrets
import uuid
from datetime import datetime, timedelta
from decimal import Decimal

from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from .facility import default_currency


class Booking(models.Model):
    """
    Booking of a field.

    At most one pending or confirmed booking may hold an overlapping
    [start_time, end_time) range of a field on a given date. The unique
    constraint below guards exact duplicates at the database level; the
    reservation service re-checks overlaps inside a locked transaction.
    """

    class BookingType(models.TextChoices):
        REGULAR = 'regular', 'Regular'
        TOURNAMENT = 'tournament', 'Tournament'
        TRAINING = 'training', 'Training'
        EVENT = 'event', 'Event'
        MEMBERSHIP = 'membership', 'Membership'

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        CONFIRMED = 'confirmed', 'Confirmed'
        CANCELLED = 'cancelled', 'Cancelled'
        COMPLETED = 'completed', 'Completed'
        NO_SHOW = 'no_show', 'No Show'

    class PaymentStatus(models.TextChoices):
        PENDING = 'pending', 'Pending'
        PAID = 'paid', 'Paid'
        FAILED = 'failed', 'Failed'
        REFUNDED = 'refunded', 'Refunded'

    class RefundStatus(models.TextChoices):
        NONE = 'none', 'None'
        PENDING = 'pending', 'Pending'
        PROCESSED = 'processed', 'Processed'

    # Primary Key
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking_number = models.CharField(max_length=24, unique=True, db_index=True)

    # Ownership
    user_id = models.UUIDField(db_index=True)
    stadium = models.ForeignKey(
        'core.Stadium',
        on_delete=models.PROTECT,
        related_name='bookings'
    )
    field = models.ForeignKey(
        'core.Field',
        on_delete=models.PROTECT,
        related_name='bookings'
    )

    # Slot
    booking_date = models.DateField(db_index=True)
    start_time = models.TimeField()
    end_time = models.TimeField()
    duration_hours = models.DecimalField(max_digits=5, decimal_places=2)

    # Category
    booking_type = models.CharField(
        max_length=20,
        choices=BookingType.choices,
        default=BookingType.REGULAR
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True
    )

    # Membership occurrence
    membership = models.ForeignKey(
        'core.MembershipSeries',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='occurrences'
    )
    occurrence_index = models.PositiveIntegerField(null=True, blank=True)

    # Pricing breakdown
    base_rate = models.DecimalField(max_digits=12, decimal_places=2)
    base_amount = models.DecimalField(max_digits=12, decimal_places=2)
    staff_charges = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    discount_total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default=default_currency)
    applied_tier = models.CharField(max_length=100, blank=True, default='')
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING
    )

    # Details
    team_info = models.JSONField(default=dict, blank=True)
    special_requests = models.JSONField(default=list, blank=True)
    notes = models.TextField(blank=True, default='')

    # Attendance
    checked_in_at = models.DateTimeField(null=True, blank=True)

    # Cancellation record
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancelled_by = models.CharField(max_length=64, blank=True, default='')
    cancellation_reason = models.TextField(blank=True, default='')
    refund_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    refund_status = models.CharField(
        max_length=20,
        choices=RefundStatus.choices,
        default=RefundStatus.NONE
    )

    completed_at = models.DateTimeField(null=True, blank=True)

    # Audit
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'bookings'
        ordering = ['booking_date', 'start_time']
        indexes = [
            models.Index(fields=['field', 'booking_date', 'status']),
            models.Index(fields=['stadium', 'booking_date']),
            models.Index(fields=['user_id', 'booking_date']),
            models.Index(fields=['status', 'booking_date']),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['field', 'booking_date', 'start_time', 'end_time'],
                condition=Q(status__in=['pending', 'confirmed']),
                name='unique_active_booking_slot'
            ),
            models.UniqueConstraint(
                fields=['membership', 'occurrence_index'],
                name='unique_membership_occurrence'
            ),
            models.CheckConstraint(
                condition=Q(end_time__gt=F('start_time')),
                name='valid_booking_times'
            ),
        ]

    def __str__(self):
        return f"{self.booking_number}: {self.booking_date} {self.start_time:%H:%M}-{self.end_time:%H:%M}"

    def save(self, *args, **kwargs):
        if not self.booking_number:
            self.booking_number = self._generate_booking_number()
        super().save(*args, **kwargs)

    def _generate_booking_number(self) -> str:
        """Generate a unique booking number."""
        date_str = timezone.now().strftime('%y%m%d')
        return f"BK-{date_str}-{secrets.token_hex(4).upper()}"

    # ==========================================================================
    # Properties
    # ==========================================================================

    @property
    def starts_at(self) -> datetime:
        """Start instant in the facility's time zone."""
        return datetime.combine(self.booking_date, self.start_time, tzinfo=self.stadium.tz)

    @property
    def ends_at(self) -> datetime:
        return datetime.combine(self.booking_date, self.end_time, tzinfo=self.stadium.tz)

    @property
    def is_active(self) -> bool:
        return self.status in self.get_active_statuses()

    @property
    def can_confirm(self) -> bool:
        return self.status == self.Status.PENDING

    @property
    def can_cancel(self) -> bool:
        return self.status in self.get_active_statuses()

    @property
    def can_reschedule(self) -> bool:
        return self.status in self.get_active_statuses()

    @property
    def can_check_in(self) -> bool:
        return self.status == self.Status.CONFIRMED and self.checked_in_at is None

    @property
    def subtotal(self) -> Decimal:
        return self.base_amount + self.staff_charges + self.tax_amount

    def hours_until_start(self, now: datetime) -> float:
        """Hours between ``now`` and the start instant (negative once started)."""
        return (self.starts_at - now).total_seconds() / 3600

    def has_elapsed(self, now: datetime) -> bool:
        return self.ends_at <= now

    def overlaps(self, start_time, end_time) -> bool:
        return self.start_time < end_time and self.end_time > start_time

    # ==========================================================================
    # Status Transitions
    # ==========================================================================

    def confirm(self):
        """Confirm a pending booking."""
        if not self.can_confirm:
            raise ValueError(f"Cannot confirm booking in {self.status} status")

        self.status = self.Status.CONFIRMED
        self.save(update_fields=['status', 'updated_at'])

    def check_in(self, now: datetime = None):
        """Record arrival for a confirmed booking."""
        if not self.can_check_in:
            raise ValueError(f"Cannot check in booking in {self.status} status")

        self.checked_in_at = now or timezone.now()
        self.save(update_fields=['checked_in_at', 'updated_at'])

    def complete(self, now: datetime = None):
        """Complete a confirmed booking."""
        if self.status != self.Status.CONFIRMED:
            raise ValueError(f"Cannot complete booking in {self.status} status")

        self.status = self.Status.COMPLETED
        self.completed_at = now or timezone.now()
        self.save(update_fields=['status', 'completed_at', 'updated_at'])

    def cancel(self, actor: str, reason: str, refund_amount: Decimal, now: datetime = None):
        """Cancel the booking and record the refund decision."""
        if not self.can_cancel:
            raise ValueError(f"Cannot cancel booking in {self.status} status")

        self.status = self.Status.CANCELLED
        self.cancelled_at = now or timezone.now()
        self.cancelled_by = actor
        self.cancellation_reason = reason or ''
        self.refund_amount = refund_amount
        self.refund_status = (
            self.RefundStatus.PENDING if refund_amount > 0 else self.RefundStatus.NONE
        )
        self.save(update_fields=[
            'status', 'cancelled_at', 'cancelled_by', 'cancellation_reason',
            'refund_amount', 'refund_status', 'updated_at',
        ])

    def mark_no_show(self, now: datetime):
        """Mark an elapsed, confirmed booking without check-in as no-show."""
        if self.status != self.Status.CONFIRMED:
            raise ValueError(f"Cannot mark no-show for booking in {self.status} status")
        if not self.has_elapsed(now):
            raise ValueError("Cannot mark no-show before the slot has ended")
        if self.checked_in_at is not None:
            raise ValueError("Booking was checked in")

        self.status = self.Status.NO_SHOW
        self.save(update_fields=['status', 'updated_at'])

    # ==========================================================================
    # Class Methods
    # ==========================================================================

    @classmethod
    def get_active_statuses(cls) -> list:
        """Statuses that hold a slot."""
        return [cls.Status.PENDING, cls.Status.CONFIRMED]

    @classmethod
    def get_conflicts(
        cls,
        field_id: uuid.UUID,
        booking_date,
        start_time,
        end_time,
        exclude_booking_id: uuid.UUID = None
    ):
        """Active bookings of a field overlapping [start_time, end_time) on a date."""
        queryset = cls.objects.filter(
            field_id=field_id,
            booking_date=booking_date,
            status__in=cls.get_active_statuses(),
        ).filter(
            Q(start_time__lt=end_time) & Q(end_time__gt=start_time)
        )

        if exclude_booking_id:
            queryset = queryset.exclude(id=exclude_booking_id)

        return queryset

    @classmethod
    def elapsed_candidates(cls, now: datetime):
        """Confirmed bookings whose date may already be over in any time zone."""
        horizon = (now + timedelta(days=1)).date()
        return cls.objects.filter(
            status=cls.Status.CONFIRMED,
            booking_date__lte=horizon,
        ).select_related('stadium')
