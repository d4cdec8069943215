# services/reservation-service/src/tests/unit/test_pricing.py
"""
Unit Tests for Pricing

Tier resolution, seasonal rates and window pricing.
"""

from datetime import date, time
from decimal import Decimal

import pytest

from apps.core.models import PricingTier, SeasonalRate
from apps.core.services import PricingService
from apps.core.services.pricing_service import TierIndex

MONDAY = date(2025, 12, 1)
SATURDAY = date(2025, 12, 6)


def make_tier(name, start, end, rate, days=None):
    return PricingTier(
        name=name,
        start_time=time.fromisoformat(start),
        end_time=time.fromisoformat(end),
        rate=Decimal(rate),
        days_of_week=days or [],
        is_active=True,
    )


class TestTierIndex:
    """TierIndex works on unsaved tiers."""

    def test_lookup_inside_and_outside_tier(self):
        peak = make_tier('Peak', '18:00', '22:00', '150000')
        index = TierIndex([peak])

        assert index.lookup(1, 18 * 60) is peak
        assert index.lookup(1, 21 * 60 + 59) is peak
        assert index.lookup(1, 22 * 60) is None
        assert index.lookup(1, 17 * 60 + 59) is None

    def test_first_declared_tier_wins_on_overlap(self):
        evening = make_tier('Evening', '17:00', '20:00', '120000')
        peak = make_tier('Peak', '18:00', '22:00', '150000')
        index = TierIndex([evening, peak])

        assert index.lookup(1, 18 * 60 + 30) is evening
        assert index.lookup(1, 20 * 60) is peak

    def test_days_of_week_restriction(self):
        weekend = make_tier('Weekend', '08:00', '22:00', '130000', days=[0, 6])
        index = TierIndex([weekend])

        assert index.lookup(6, 10 * 60) is weekend
        assert index.lookup(0, 10 * 60) is weekend
        assert index.lookup(1, 10 * 60) is None


@pytest.mark.django_db
class TestPricingService:
    """Tests for PricingService."""

    def test_base_rate_without_tiers(self, field):
        quote = PricingService(field).price_window(MONDAY, time(10, 0), time(11, 30))

        assert quote.total_price == Decimal('150000')
        assert quote.base_rate == Decimal('100000')
        assert quote.applied_tier is None
        assert quote.duration_hours == Decimal('1.50')
        assert quote.currency == 'LAK'

    def test_window_spanning_tier_boundary(self, field, create_tier):
        create_tier(field, 'Peak', '18:00', '22:00', '150000')

        quote = PricingService(field).price_window(MONDAY, time(17, 0), time(19, 0))

        assert quote.total_price == Decimal('250000')
        assert quote.applied_tier == 'Peak'

    def test_first_match_follows_position(self, field, create_tier):
        create_tier(field, 'Happy Hour', '18:00', '19:00', '80000', position=0)
        create_tier(field, 'Peak', '18:00', '22:00', '150000', position=1)

        service = PricingService(field)

        assert service.resolve_rate(MONDAY, time(18, 30)) == Decimal('80000')
        assert service.resolve_rate(MONDAY, time(19, 0)) == Decimal('150000')

    def test_inactive_tier_ignored(self, field, create_tier):
        create_tier(field, 'Old Peak', '18:00', '22:00', '150000', is_active=False)

        assert PricingService(field).resolve_rate(MONDAY, time(19, 0)) == Decimal('100000')

    def test_weekend_tier_only_on_listed_days(self, field, create_tier):
        create_tier(field, 'Weekend', '08:00', '22:00', '130000', days_of_week=[0, 6])
        service = PricingService(field)

        assert service.price_window(SATURDAY, time(10, 0), time(11, 0)).total_price == Decimal('130000')
        assert service.price_window(MONDAY, time(10, 0), time(11, 0)).total_price == Decimal('100000')

    def test_seasonal_rate_replaces_base(self, field):
        SeasonalRate.objects.create(
            field=field,
            season='Dry season',
            start_date=date(2025, 11, 1),
            end_date=date(2025, 12, 31),
            rate=Decimal('120000'),
        )

        service = PricingService(field)

        assert service.base_rate_for(MONDAY) == Decimal('120000')
        assert service.base_rate_for(date(2026, 1, 5)) == Decimal('100000')
        assert service.price_window(MONDAY, time(10, 0), time(11, 0)).total_price == Decimal('120000')

    def test_tier_beats_seasonal_rate(self, field, create_tier):
        SeasonalRate.objects.create(
            field=field,
            season='Dry season',
            start_date=date(2025, 11, 1),
            end_date=date(2025, 12, 31),
            rate=Decimal('120000'),
        )
        create_tier(field, 'Peak', '18:00', '22:00', '150000')

        assert PricingService(field).resolve_rate(MONDAY, time(18, 0)) == Decimal('150000')

    def test_partial_increment_charged_pro_rata(self, field):
        quote = PricingService(field).price_window(MONDAY, time(10, 0), time(10, 45))

        assert quote.total_price == Decimal('75000')

    def test_total_rounded_to_currency_unit(self, create_field):
        field = create_field(base_hourly_rate=Decimal('33333'))

        quote = PricingService(field).price_window(MONDAY, time(10, 0), time(10, 30))

        assert quote.total_price == Decimal('16667')

    def test_increment_setting(self, field, create_tier, settings):
        settings.BOOKING_PRICING_INCREMENT_MINUTES = 60
        create_tier(field, 'Peak', '18:30', '22:00', '150000')

        # 18:00 increment resolves at 18:00, before the tier starts
        quote = PricingService(field).price_window(MONDAY, time(18, 0), time(19, 0))

        assert quote.total_price == Decimal('100000')
