# services/reservation-service/src/apps/core/signals.py
"""
Django Signals for Reservation Service

Keeps the availability cache in step with booking and schedule writes.
"""

import logging
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver

from .models import Booking, ScheduleSlot, SpecialDate
from .services.availability_service import AvailabilityService

logger = logging.getLogger(__name__)


# ==========================================================================
# Booking Signals
# ==========================================================================

@receiver(post_save, sender=Booking)
def booking_post_save(sender, instance, created, **kwargs):
    """Drop the cached day snapshot of the booking's field."""
    AvailabilityService.invalidate(instance.field_id, instance.booking_date)
    if created:
        logger.info(f"Booking created: {instance.booking_number}")


@receiver(post_delete, sender=Booking)
def booking_post_delete(sender, instance, **kwargs):
    AvailabilityService.invalidate(instance.field_id, instance.booking_date)
    logger.info(f"Booking deleted: {instance.booking_number}")


# ==========================================================================
# Schedule Signals
# ==========================================================================

@receiver(post_save, sender=SpecialDate)
@receiver(post_delete, sender=SpecialDate)
def special_date_changed(sender, instance, **kwargs):
    """Special dates affect exactly one cached day."""
    AvailabilityService.invalidate(instance.field_id, instance.date)


@receiver(post_save, sender=ScheduleSlot)
@receiver(post_delete, sender=ScheduleSlot)
def schedule_slot_changed(sender, instance, **kwargs):
    # Weekly slots apply to every matching date; those snapshots expire by TTL.
    if instance.special_date_id:
        special = SpecialDate.objects.filter(pk=instance.special_date_id).first()
        if special is not None:
            AvailabilityService.invalidate(special.field_id, special.date)
