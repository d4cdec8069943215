# services/reservation-service/src/apps/core/services/pricing_service.py
"""
Pricing Service

Resolves the hourly rate of a field for an instant and prices a booking
window by integrating the rate over fixed sub-increments.
"""

import logging
from bisect import bisect_right
from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from django.conf import settings

from apps.core.models import Field, PricingTier, day_of_week
from .clock import to_minutes, round_currency, duration_hours

logger = logging.getLogger(__name__)


@dataclass
class PriceQuote:
    total_price: Decimal
    base_rate: Decimal
    applied_tier: Optional[str]
    duration_hours: Decimal
    currency: str

    def as_dict(self) -> dict:
        return {
            'total_price': self.total_price,
            'base_rate': self.base_rate,
            'applied_tier': self.applied_tier,
            'duration_hours': self.duration_hours,
            'currency': self.currency,
        }


class TierIndex:
    """
    Per-day lookup of the tier that owns each minute of the day.

    Tiers are laid down in declaration order; a later tier only claims the
    minutes no earlier tier covers, so overlapping tiers keep first-match
    semantics while each day becomes a sorted list of disjoint segments.
    """

    def __init__(self, tiers: List[PricingTier]):
        self._starts: Dict[int, List[int]] = {}
        self._segments: Dict[int, List[Tuple[int, int, PricingTier]]] = {}

        for day in range(7):
            segments: List[Tuple[int, int, PricingTier]] = []
            for tier in tiers:
                if not tier.is_active or not tier.applies_on(day):
                    continue
                for start, end in self._uncovered(
                    segments, to_minutes(tier.start_time), to_minutes(tier.end_time)
                ):
                    segments.append((start, end, tier))
                segments.sort(key=lambda segment: segment[0])
            self._segments[day] = segments
            self._starts[day] = [segment[0] for segment in segments]

    @staticmethod
    def _uncovered(segments, start: int, end: int) -> List[Tuple[int, int]]:
        gaps = []
        cursor = start
        for seg_start, seg_end, _ in segments:
            if seg_end <= cursor:
                continue
            if seg_start >= end:
                break
            if seg_start > cursor:
                gaps.append((cursor, seg_start))
            cursor = max(cursor, seg_end)
            if cursor >= end:
                break
        if cursor < end:
            gaps.append((cursor, end))
        return gaps

    def lookup(self, day: int, minute: int) -> Optional[PricingTier]:
        starts = self._starts.get(day, [])
        position = bisect_right(starts, minute) - 1
        if position < 0:
            return None
        start, end, tier = self._segments[day][position]
        return tier if start <= minute < end else None


class PricingService:
    """
    Rate resolution for one field.

    Configuration is loaded once per instance; build a new instance after
    changing tiers or seasonal rates.
    """

    def __init__(self, field: Field):
        self.field = field
        self.tiers = list(field.pricing_tiers.filter(is_active=True))
        self.seasonal_rates = list(field.seasonal_rates.all())
        self.index = TierIndex(self.tiers)

    @property
    def increment_minutes(self) -> int:
        return int(getattr(settings, 'BOOKING_PRICING_INCREMENT_MINUTES', 30))

    def base_rate_for(self, day: date) -> Decimal:
        """Seasonal rate covering the date, else the field's base rate."""
        for seasonal in self.seasonal_rates:
            if seasonal.covers(day):
                return seasonal.rate
        return self.field.base_hourly_rate

    def resolve_tier(self, day: date, at: time) -> Optional[PricingTier]:
        return self.index.lookup(day_of_week(day), to_minutes(at))

    def resolve_rate(self, day: date, at: time) -> Decimal:
        """Hourly rate applicable at an instant."""
        tier = self.resolve_tier(day, at)
        if tier is not None:
            return tier.rate
        return self.base_rate_for(day)

    def price_window(self, day: date, start_time: time, end_time: time) -> PriceQuote:
        """
        Price [start_time, end_time) on a date.

        Each sub-increment is charged at the rate resolved at its start; a
        trailing partial increment is charged pro rata. The total is rounded
        to the nearest currency unit.
        """
        start = to_minutes(start_time)
        end = to_minutes(end_time)
        dow = day_of_week(day)
        base_rate = self.base_rate_for(day)

        total = Decimal('0')
        applied_tier = None
        minute = start
        while minute < end:
            length = min(self.increment_minutes, end - minute)
            tier = self.index.lookup(dow, minute)
            rate = tier.rate if tier is not None else base_rate
            if tier is not None and applied_tier is None:
                applied_tier = tier.name
            total += rate * Decimal(length) / Decimal(60)
            minute += length

        quote = PriceQuote(
            total_price=round_currency(total),
            base_rate=base_rate,
            applied_tier=applied_tier,
            duration_hours=duration_hours(start_time, end_time),
            currency=self.field.currency,
        )
        logger.debug(
            f"Priced field {self.field.id} on {day} "
            f"{start_time:%H:%M}-{end_time:%H:%M}: {quote.total_price}"
        )
        return quote
