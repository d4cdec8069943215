# services/reservation-service/src/apps/core/models/charges.py
"""
Payment, staff assignment and discount records attached to a booking.
"""

import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models


class Payment(models.Model):
    """A payment attempt recorded against a booking."""

    class Method(models.TextChoices):
        CASH = 'cash', 'Cash'
        BANK_TRANSFER = 'bank_transfer', 'Bank Transfer'
        CARD = 'card', 'Card'
        QR_CODE = 'qr_code', 'QR Code'
        WALLET = 'wallet', 'Wallet'

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        COMPLETED = 'completed', 'Completed'
        FAILED = 'failed', 'Failed'
        REFUNDED = 'refunded', 'Refunded'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking = models.ForeignKey(
        'core.Booking',
        on_delete=models.CASCADE,
        related_name='payments'
    )
    method = models.CharField(max_length=20, choices=Method.choices)
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.COMPLETED
    )
    transaction_id = models.CharField(max_length=100, blank=True, default='')
    paid_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'booking_payments'
        ordering = ['booking', 'paid_at']

    def __str__(self):
        return f"{self.amount} via {self.method} ({self.status})"


class StaffAssignment(models.Model):
    """Staff member attached to a booking with the charge it adds."""

    class Status(models.TextChoices):
        ASSIGNED = 'assigned', 'Assigned'
        CONFIRMED = 'confirmed', 'Confirmed'
        COMPLETED = 'completed', 'Completed'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking = models.ForeignKey(
        'core.Booking',
        on_delete=models.CASCADE,
        related_name='staff_assignments'
    )
    staff = models.ForeignKey(
        'core.Staff',
        on_delete=models.PROTECT,
        related_name='assignments'
    )
    role = models.CharField(max_length=20)
    hours = models.DecimalField(max_digits=5, decimal_places=2)
    hourly_rate = models.DecimalField(max_digits=12, decimal_places=2)
    total_charge = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.ASSIGNED
    )
    assigned_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'booking_staff_assignments'
        ordering = ['booking', 'assigned_at']
        constraints = [
            models.UniqueConstraint(
                fields=['booking', 'staff'],
                name='unique_staff_per_booking'
            ),
        ]

    def __str__(self):
        return f"{self.staff_id} as {self.role}"


class BookingDiscount(models.Model):
    """
    Discount applied to a booking.

    ``reference`` identifies the discount; each reference applies at most
    once per booking.
    """

    class DiscountType(models.TextChoices):
        PERCENTAGE = 'percentage', 'Percentage'
        FIXED = 'fixed', 'Fixed Amount'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking = models.ForeignKey(
        'core.Booking',
        on_delete=models.CASCADE,
        related_name='discounts'
    )
    reference = models.CharField(max_length=100)
    discount_type = models.CharField(max_length=20, choices=DiscountType.choices)
    value = models.DecimalField(max_digits=12, decimal_places=2)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    description = models.CharField(max_length=255, blank=True, default='')
    applied_by = models.CharField(max_length=64)
    applied_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'booking_discounts'
        ordering = ['booking', 'applied_at']
        constraints = [
            models.UniqueConstraint(
                fields=['booking', 'reference'],
                name='unique_discount_reference'
            ),
        ]

    def __str__(self):
        return f"{self.reference}: -{self.amount}"
