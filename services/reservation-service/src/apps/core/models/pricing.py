# services/reservation-service/src/apps/core/models/pricing.py
"""
Pricing configuration: time-bounded tiers and seasonal overrides.
"""

import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import F, Q


class PricingTier(models.Model):
    """
    Named override of a field's hourly rate for a daily time window.

    Tiers are evaluated in declaration order (``position``) and the first
    active tier covering an instant wins. An empty ``days_of_week`` list
    applies to every day.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    field = models.ForeignKey(
        'core.Field',
        on_delete=models.CASCADE,
        related_name='pricing_tiers'
    )
    name = models.CharField(max_length=100)
    start_time = models.TimeField()
    end_time = models.TimeField()
    days_of_week = models.JSONField(default=list, blank=True)
    rate = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0'))]
    )
    is_active = models.BooleanField(default=True)
    position = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'pricing_tiers'
        ordering = ['field', 'position', 'created_at']
        constraints = [
            models.CheckConstraint(
                condition=Q(end_time__gt=F('start_time')),
                name='pricing_tier_end_after_start'
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.start_time:%H:%M}-{self.end_time:%H:%M})"

    def applies_on(self, day_of_week: int) -> bool:
        return not self.days_of_week or day_of_week in self.days_of_week


class SeasonalRate(models.Model):
    """Replaces the base hourly rate between two dates (inclusive)."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    field = models.ForeignKey(
        'core.Field',
        on_delete=models.CASCADE,
        related_name='seasonal_rates'
    )
    season = models.CharField(max_length=100)
    start_date = models.DateField()
    end_date = models.DateField()
    rate = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0'))]
    )
    position = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = 'seasonal_rates'
        ordering = ['field', 'position', 'start_date']
        constraints = [
            models.CheckConstraint(
                condition=Q(end_date__gte=F('start_date')),
                name='seasonal_rate_valid_range'
            ),
        ]

    def __str__(self):
        return f"{self.season} ({self.start_date} - {self.end_date})"

    def covers(self, day) -> bool:
        return self.start_date <= day <= self.end_date
