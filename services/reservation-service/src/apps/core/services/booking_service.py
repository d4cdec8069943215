# services/reservation-service/src/apps/core/services/booking_service.py
"""
Booking Service

Core business logic for the reservation lifecycle.

Every slot write goes through the same reservation primitive: the field row
is locked, overlapping active bookings are re-queried inside the
transaction, and the insert is guarded by the database unique constraint.
"""

import uuid
import logging
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import Max
from django.utils import timezone

from shared.common.constants import ActorRole
from apps.core.models import (
    Booking,
    BookingDiscount,
    BookingHistory,
    Field,
    MembershipSeries,
    Payment,
    Stadium,
    Staff,
)
from .availability_service import AvailabilityService
from .cancellation_policy import CancellationPolicy, CancellationDecision, VIOLATION_NOTICE
from .clock import parse_date, parse_range, duration_hours, round_currency
from .pricing_service import PricingService
from .recurring_service import RecurringSeriesGenerator, SeriesResult
from .requests import Actor, BookingRequest, MembershipBookingRequest, RegularBookingRequest
from .staff_service import StaffMatchingService

logger = logging.getLogger(__name__)

Action = BookingHistory.Action

PRICING_FIELDS = (
    'base_rate', 'base_amount', 'staff_charges', 'discount_total',
    'tax_amount', 'total_amount', 'payment_status',
)
SLOT_FIELDS = ('booking_date', 'start_time', 'end_time', 'duration_hours')


def derive_payment_status(
    total_amount: Decimal,
    payments: Iterable[Payment],
    refund_amount: Decimal = Decimal('0'),
) -> str:
    """
    Booking-level payment status.

    ``paid`` once completed payments cover the total, ``refunded`` after a
    cancellation granted a refund, ``pending`` otherwise.
    """
    if refund_amount and refund_amount > 0:
        return Booking.PaymentStatus.REFUNDED
    paid = sum(
        (payment.amount for payment in payments if payment.status == Payment.Status.COMPLETED),
        Decimal('0'),
    )
    if paid >= total_amount:
        return Booking.PaymentStatus.PAID
    return Booking.PaymentStatus.PENDING


def _json_value(value):
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, time):
        return value.strftime('%H:%M')
    if isinstance(value, uuid.UUID):
        return str(value)
    return value


def snapshot(booking: Booking, fields: Iterable[str]) -> Dict[str, Any]:
    """JSON-safe view of selected booking fields for the history log."""
    return {name: _json_value(getattr(booking, name)) for name in fields}


class BookingService:
    """
    Service for the booking lifecycle.

    Handles:
    - Regular and membership creation
    - Status transitions (confirm, check-in, complete, no-show, cancel)
    - Rescheduling
    - Payments, discounts and staff charges
    - The elapsed-booking sweep
    """

    def __init__(
        self,
        availability_service: AvailabilityService = None,
        staff_service: StaffMatchingService = None,
        policy: CancellationPolicy = None,
        series_generator: RecurringSeriesGenerator = None,
    ):
        self.availability_service = availability_service or AvailabilityService()
        self.staff_service = staff_service or StaffMatchingService()
        self.policy = policy or CancellationPolicy()
        self.series_generator = series_generator or RecurringSeriesGenerator()

    # ==========================================================================
    # Lookups
    # ==========================================================================

    def get_booking(self, booking_id: uuid.UUID) -> Booking:
        """Get a booking by ID."""
        from . import BookingNotFoundError

        try:
            return Booking.objects.select_related('stadium', 'field').get(id=booking_id)
        except (Booking.DoesNotExist, ValueError, DjangoValidationError):
            raise BookingNotFoundError(f"Booking {booking_id} not found")

    def get_by_number(self, booking_number: str) -> Booking:
        """Get a booking by number."""
        from . import BookingNotFoundError

        try:
            return Booking.objects.select_related('stadium', 'field').get(
                booking_number=booking_number
            )
        except Booking.DoesNotExist:
            raise BookingNotFoundError(f"Booking {booking_number} not found")

    def get_history(self, booking_id: uuid.UUID) -> List[BookingHistory]:
        return list(self.get_booking(booking_id).history.order_by('sequence'))

    def get_membership(self, series_id: uuid.UUID) -> MembershipSeries:
        from . import ResourceNotFoundError

        try:
            return MembershipSeries.objects.select_related('stadium', 'field').get(id=series_id)
        except (MembershipSeries.DoesNotExist, ValueError, DjangoValidationError):
            raise ResourceNotFoundError(f"Membership {series_id} not found")

    def _lock_booking(self, booking_id: uuid.UUID) -> Booking:
        """Row-lock a booking. Must run inside a transaction."""
        from . import BookingNotFoundError

        try:
            return Booking.objects.select_for_update().get(id=booking_id)
        except (Booking.DoesNotExist, ValueError, DjangoValidationError):
            raise BookingNotFoundError(f"Booking {booking_id} not found")

    def _get_stadium_field(self, stadium_id: uuid.UUID, field_id: uuid.UUID) -> Tuple[Stadium, Field]:
        from . import ResourceNotFoundError, BookingValidationError

        field = self.availability_service.get_field(field_id)
        if str(field.stadium_id) != str(stadium_id):
            if not Stadium.objects.filter(id=stadium_id).exists():
                raise ResourceNotFoundError(f"Stadium {stadium_id} not found")
            raise BookingValidationError(
                "Field does not belong to the stadium",
                details={'stadium_id': str(stadium_id), 'field_id': str(field_id)}
            )
        return field.stadium, field

    # ==========================================================================
    # Authorization
    # ==========================================================================

    def _authorize_manager(self, stadium: Stadium, actor: Actor):
        """Staff, the stadium's owner or an administrator."""
        from . import BookingAuthorizationError

        if not actor.is_privileged:
            raise BookingAuthorizationError("This action requires a staff, owner or admin role")
        if actor.role == ActorRole.STADIUM_OWNER and str(stadium.owner_id) != str(actor.user_id):
            raise BookingAuthorizationError("You do not own this stadium")

    def _authorize_owner(self, user_id, stadium: Stadium, actor: Actor):
        """The booking's owner, or a manager of its stadium."""
        from . import BookingAuthorizationError

        if actor.is_privileged:
            self._authorize_manager(stadium, actor)
            return
        if str(user_id) != str(actor.user_id):
            raise BookingAuthorizationError("You can only manage your own bookings")

    # ==========================================================================
    # Creation
    # ==========================================================================

    def create_booking(self, request: BookingRequest, actor: Actor, now: datetime = None):
        """
        Create from a tagged request.

        Returns the Booking for a regular request and
        ``(MembershipSeries, SeriesResult)`` for a membership request.
        """
        from . import BookingValidationError

        if isinstance(request, MembershipBookingRequest):
            return self.create_membership_booking(request, actor, now)
        if isinstance(request, RegularBookingRequest):
            return self.create_regular_booking(request, actor, now)
        raise BookingValidationError(f"Unknown booking request kind: {type(request).__name__}")

    def create_regular_booking(
        self,
        request: RegularBookingRequest,
        actor: Actor,
        now: datetime = None,
    ) -> Booking:
        """Create a single booking."""
        from . import BookingValidationError

        now = now or timezone.now()
        if request.booking_type == Booking.BookingType.MEMBERSHIP:
            raise BookingValidationError("Membership bookings require a membership request")

        start_time, end_time = parse_range(request.start_time, request.end_time)
        booking_date = parse_date(request.booking_date, 'booking_date')
        stadium, field = self._get_stadium_field(request.stadium_id, request.field_id)

        booking = self._reserve(
            field,
            booking_date,
            start_time,
            end_time,
            actor,
            now,
            booking_type=request.booking_type,
            team_info=request.team_info,
            special_requests=request.special_requests,
            notes=request.notes,
            needs_referee=request.needs_referee,
        )

        logger.info(
            f"Created booking {booking.booking_number} for field {field.id} on "
            f"{booking_date} {start_time:%H:%M}-{end_time:%H:%M}",
            extra={'booking_id': str(booking.id), 'user_id': actor.user_id}
        )
        return booking

    def create_membership_booking(
        self,
        request: MembershipBookingRequest,
        actor: Actor,
        now: datetime = None,
    ) -> Tuple[MembershipSeries, SeriesResult]:
        """
        Create a membership series.

        Occurrences are reserved independently; the series keeps whichever
        succeeded and records the failures. Raises SlotConflictError when no
        occurrence could be booked.
        """
        from . import BookingValidationError, SlotConflictError

        now = now or timezone.now()
        start_time, end_time = parse_range(request.start_time, request.end_time)
        stadium, field = self._get_stadium_field(request.stadium_id, request.field_id)

        local_today = now.astimezone(stadium.tz).date()
        if request.start_date < local_today:
            raise BookingValidationError(
                "start_date cannot be in the past",
                details={'start_date': request.start_date.isoformat()}
            )

        # Validates the recurrence before anything is written
        self.series_generator.occurrence_dates(
            request.start_date,
            request.day_of_week,
            request.recurrence_pattern,
            total_occurrences=request.total_occurrences,
            end_date=request.end_date,
        )

        series = MembershipSeries.objects.create(
            user_id=actor.user_id,
            stadium=stadium,
            field=field,
            pattern=request.recurrence_pattern,
            day_of_week=request.day_of_week,
            start_date=request.start_date,
            end_date=request.end_date,
            requested_occurrences=request.total_occurrences,
            start_time=start_time,
            end_time=end_time,
            team_info=request.team_info,
        )

        pricing = PricingService(field)

        def reserve(index: int, occurrence_date: date) -> Booking:
            return self._reserve(
                field,
                occurrence_date,
                start_time,
                end_time,
                actor,
                now,
                booking_type=Booking.BookingType.MEMBERSHIP,
                team_info=request.team_info,
                needs_referee=request.needs_referee,
                membership=series,
                occurrence_index=index,
                pricing=pricing,
            )

        try:
            result = self.series_generator.expand(request, reserve)
        except Exception:
            self._settle_series(series, local_today)
            raise

        if not self._settle_series(series, local_today):
            logger.warning(
                f"Membership for field {field.id} rejected: no occurrence could be booked",
                extra={'failures': result.failures}
            )
            raise SlotConflictError(
                "No occurrence of the membership could be booked",
                details={'failures': result.failures}
            )

        series.failures = result.failures
        series.save(update_fields=['failures', 'updated_at'])

        logger.info(
            f"Created membership {series.id} with {len(result.occurrences)} occurrences "
            f"({len(result.failures)} failed)",
            extra={'membership_id': str(series.id), 'user_id': actor.user_id}
        )
        return series, result

    # ==========================================================================
    # Reservation Primitive
    # ==========================================================================

    def _validate_not_past(self, stadium: Stadium, booking_date: date, start_time: time, now: datetime):
        from . import BookingValidationError

        starts_at = datetime.combine(booking_date, start_time, tzinfo=stadium.tz)
        if starts_at <= now:
            raise BookingValidationError(
                "Cannot book a slot that has already started",
                details={'booking_date': booking_date.isoformat(), 'start_time': f"{start_time:%H:%M}"}
            )

    def _ensure_open(
        self,
        field: Field,
        booking_date: date,
        start_time: time,
        end_time: time,
        exclude_booking_id: uuid.UUID = None,
    ):
        """Reject slots the field's schedule does not offer."""
        from . import SlotUnavailableError

        result = self.availability_service.check(
            field, booking_date, start_time, end_time,
            exclude_booking_id=exclude_booking_id,
            use_cache=False,
        )
        if result.reason_code in ('field_inactive', 'schedule'):
            raise SlotUnavailableError(
                result.reason,
                details={
                    'field_id': str(field.id),
                    'booking_date': booking_date.isoformat(),
                    'start_time': f"{start_time:%H:%M}",
                    'end_time': f"{end_time:%H:%M}",
                }
            )

    def _ensure_free(
        self,
        field: Field,
        booking_date: date,
        start_time: time,
        end_time: time,
        exclude_booking_id: uuid.UUID = None,
    ):
        """Lock the field row and re-check overlaps. Must run inside a transaction."""
        from . import SlotConflictError

        Field.objects.select_for_update().filter(pk=field.pk).first()
        conflicts = list(
            Booking.get_conflicts(
                field.id, booking_date, start_time, end_time, exclude_booking_id
            ).values_list('booking_number', flat=True)
        )
        if conflicts:
            raise SlotConflictError(
                "The requested time slot conflicts with an existing booking",
                details={'conflicts': conflicts}
            )

    def _save_slot(self, booking: Booking, **kwargs):
        """Save a slot-holding row, translating constraint violations."""
        from . import SlotConflictError

        try:
            with transaction.atomic():
                booking.save(**kwargs)
        except IntegrityError as e:
            logger.warning(f"Slot constraint rejected booking on field {booking.field_id}: {e}")
            raise SlotConflictError(
                "The requested time slot was taken by another booking",
                details={'booking_date': booking.booking_date.isoformat()}
            ) from e

    def _reserve(
        self,
        field: Field,
        booking_date: date,
        start_time: time,
        end_time: time,
        actor: Actor,
        now: datetime,
        booking_type: str = Booking.BookingType.REGULAR,
        team_info: dict = None,
        special_requests: list = None,
        notes: str = '',
        needs_referee: bool = False,
        membership: MembershipSeries = None,
        occurrence_index: int = None,
        pricing: PricingService = None,
    ) -> Booking:
        """Validate, price and atomically persist one booking."""
        stadium = field.stadium
        self._validate_not_past(stadium, booking_date, start_time, now)
        self._ensure_open(field, booking_date, start_time, end_time)

        pricing = pricing or PricingService(field)
        quote = pricing.price_window(booking_date, start_time, end_time)

        initial_status = (
            Booking.Status.PENDING if stadium.requires_confirmation
            else Booking.Status.CONFIRMED
        )

        with transaction.atomic():
            self._ensure_free(field, booking_date, start_time, end_time)

            booking = Booking(
                user_id=actor.user_id if membership is None else membership.user_id,
                stadium=stadium,
                field=field,
                booking_date=booking_date,
                start_time=start_time,
                end_time=end_time,
                duration_hours=quote.duration_hours,
                booking_type=booking_type,
                status=initial_status,
                membership=membership,
                occurrence_index=occurrence_index,
                base_rate=quote.base_rate,
                base_amount=quote.total_price,
                total_amount=quote.total_price,
                currency=quote.currency,
                applied_tier=quote.applied_tier or '',
                team_info=team_info or {},
                special_requests=special_requests or [],
                notes=notes or '',
            )
            self._save_slot(booking, force_insert=True)

            if needs_referee:
                self.staff_service.auto_assign(booking)

            self._recalculate_totals(booking)
            booking.payment_status = derive_payment_status(
                booking.total_amount, booking.payments.all()
            )
            booking.save()

            self._record(
                booking,
                Action.CREATED,
                actor,
                new_values=snapshot(booking, ('status',) + SLOT_FIELDS + PRICING_FIELDS),
            )

        AvailabilityService.invalidate(field.id, booking_date)
        return booking

    # ==========================================================================
    # Status Transitions
    # ==========================================================================

    def confirm(self, booking_id: uuid.UUID, actor: Actor) -> Booking:
        """Confirm a pending booking."""
        from . import BookingStateError

        with transaction.atomic():
            booking = self._lock_booking(booking_id)
            self._authorize_manager(booking.stadium, actor)

            if not booking.can_confirm:
                raise BookingStateError(f"Cannot confirm: booking status is {booking.status}")

            old_values = snapshot(booking, ('status',))
            booking.confirm()
            self._record(booking, Action.CONFIRMED, actor, old_values, snapshot(booking, ('status',)))

        AvailabilityService.invalidate(booking.field_id, booking.booking_date)
        logger.info(f"Confirmed booking {booking.booking_number}")
        return booking

    def check_in(self, booking_id: uuid.UUID, actor: Actor, now: datetime = None) -> Booking:
        """Record the customer's arrival."""
        from . import BookingStateError

        now = now or timezone.now()
        with transaction.atomic():
            booking = self._lock_booking(booking_id)
            self._authorize_manager(booking.stadium, actor)

            if not booking.can_check_in:
                raise BookingStateError(
                    f"Cannot check in: booking status is {booking.status}"
                )

            booking.check_in(now)
            self._record(
                booking, Action.CHECKED_IN, actor,
                new_values=snapshot(booking, ('checked_in_at',))
            )

        logger.info(f"Checked in booking {booking.booking_number}")
        return booking

    def complete(self, booking_id: uuid.UUID, actor: Actor, now: datetime = None) -> Booking:
        """Complete a confirmed booking that has started."""
        from . import BookingStateError

        now = now or timezone.now()
        with transaction.atomic():
            booking = self._lock_booking(booking_id)
            self._authorize_manager(booking.stadium, actor)

            if booking.status != Booking.Status.CONFIRMED:
                raise BookingStateError(f"Cannot complete: booking status is {booking.status}")
            if now < booking.starts_at:
                raise BookingStateError("Cannot complete a booking before it starts")

            old_values = snapshot(booking, ('status',))
            booking.complete(now)
            self._record(booking, Action.COMPLETED, actor, old_values, snapshot(booking, ('status',)))
            self._refresh_series(booking, now)

        AvailabilityService.invalidate(booking.field_id, booking.booking_date)
        logger.info(f"Completed booking {booking.booking_number}")
        return booking

    def mark_no_show(self, booking_id: uuid.UUID, actor: Actor, now: datetime = None) -> Booking:
        """Mark an elapsed confirmed booking without check-in as no-show."""
        from . import BookingStateError

        now = now or timezone.now()
        with transaction.atomic():
            booking = self._lock_booking(booking_id)
            self._authorize_manager(booking.stadium, actor)

            old_values = snapshot(booking, ('status',))
            try:
                booking.mark_no_show(now)
            except ValueError as e:
                raise BookingStateError(str(e))

            self._record(booking, Action.NO_SHOW, actor, old_values, snapshot(booking, ('status',)))
            self._refresh_series(booking, now)

        AvailabilityService.invalidate(booking.field_id, booking.booking_date)
        logger.info(f"Marked booking {booking.booking_number} as no-show")
        return booking

    def quote_cancellation(
        self,
        booking_id: uuid.UUID,
        actor: Actor,
        now: datetime = None,
    ) -> CancellationDecision:
        """Evaluate the cancellation policy without applying it."""
        booking = self.get_booking(booking_id)
        self._authorize_owner(booking.user_id, booking.stadium, actor)
        return self.policy.evaluate(booking, actor.role, now or timezone.now())

    def cancel_booking(
        self,
        booking_id: uuid.UUID,
        actor: Actor,
        reason: str = '',
        now: datetime = None,
    ) -> Tuple[Booking, CancellationDecision]:
        """Cancel a booking and record the refund granted by the policy."""
        from . import BookingAuthorizationError, BookingStateError

        now = now or timezone.now()
        with transaction.atomic():
            booking = self._lock_booking(booking_id)
            self._authorize_owner(booking.user_id, booking.stadium, actor)

            decision = self.policy.evaluate(booking, actor.role, now)
            if not decision.allowed:
                logger.warning(
                    f"Cancellation of {booking.booking_number} refused: {decision.reason}",
                    extra={'booking_id': str(booking.id), 'actor_role': actor.role}
                )
                if decision.violation == VIOLATION_NOTICE:
                    raise BookingAuthorizationError(decision.reason, details=decision.as_dict())
                raise BookingStateError(decision.reason, details=decision.as_dict())

            old_values = snapshot(booking, ('status', 'payment_status'))
            booking.cancel(actor.user_id, reason, decision.refund_amount, now)
            self._refresh_payment_status(booking)
            self._record(
                booking,
                Action.CANCELLED,
                actor,
                old_values,
                snapshot(booking, ('status', 'payment_status', 'refund_amount')),
                notes=reason or '',
            )
            self._refresh_series(booking, now)

        AvailabilityService.invalidate(booking.field_id, booking.booking_date)
        logger.info(
            f"Cancelled booking {booking.booking_number} "
            f"(refund {decision.refund_amount}, {decision.refund_percent}%)"
        )
        return booking, decision

    def sweep_elapsed_bookings(self, now: datetime = None) -> List[Booking]:
        """
        Complete every confirmed booking whose slot has fully elapsed.

        Safe to call repeatedly; already completed bookings are skipped.
        """
        now = now or timezone.now()
        completed = []

        for candidate in Booking.elapsed_candidates(now):
            if not candidate.has_elapsed(now):
                continue

            with transaction.atomic():
                booking = Booking.objects.select_for_update().get(pk=candidate.pk)
                if booking.status != Booking.Status.CONFIRMED:
                    continue

                booking.complete(now)
                self._record(
                    booking,
                    Action.COMPLETED,
                    Actor.system(),
                    {'status': Booking.Status.CONFIRMED.value},
                    snapshot(booking, ('status',)),
                    notes='Automatically marked as completed',
                )
                self._refresh_series(booking, now)

            AvailabilityService.invalidate(booking.field_id, booking.booking_date)
            completed.append(booking)

        logger.info(f"Elapsed booking sweep at {now.isoformat()} completed {len(completed)} bookings")
        return completed

    # ==========================================================================
    # Rescheduling
    # ==========================================================================

    def reschedule(
        self,
        booking_id: uuid.UUID,
        booking_date,
        start_time,
        end_time,
        actor: Actor,
        now: datetime = None,
    ) -> Booking:
        """
        Move a booking to another slot of the same field.

        The booking keeps its identity, status and history; pricing and
        staff charges are recomputed for the new window. Ordinary users are
        held to the cancellation notice window, and assigned staff who do
        not fit the new window are released and replaced where possible.
        """
        from . import BookingAuthorizationError, BookingStateError

        now = now or timezone.now()
        new_date = parse_date(booking_date, 'booking_date')
        new_start, new_end = parse_range(start_time, end_time)

        with transaction.atomic():
            booking = self._lock_booking(booking_id)
            self._authorize_owner(booking.user_id, booking.stadium, actor)

            if not booking.can_reschedule:
                raise BookingStateError(f"Cannot reschedule: booking status is {booking.status}")

            decision = self.policy.evaluate(booking, actor.role, now)
            if not decision.allowed:
                logger.warning(
                    f"Reschedule of {booking.booking_number} refused: {decision.reason}",
                    extra={'booking_id': str(booking.id), 'actor_role': actor.role}
                )
                if decision.violation == VIOLATION_NOTICE:
                    raise BookingAuthorizationError(decision.reason, details=decision.as_dict())
                raise BookingStateError(decision.reason, details=decision.as_dict())

            field = booking.field
            self._validate_not_past(booking.stadium, new_date, new_start, now)
            self._ensure_open(field, new_date, new_start, new_end, exclude_booking_id=booking.id)
            self._ensure_free(field, new_date, new_start, new_end, exclude_booking_id=booking.id)

            old_date = booking.booking_date
            old_values = snapshot(booking, SLOT_FIELDS + PRICING_FIELDS)

            quote = PricingService(field).price_window(new_date, new_start, new_end)
            booking.booking_date = new_date
            booking.start_time = new_start
            booking.end_time = new_end
            booking.duration_hours = quote.duration_hours
            booking.base_rate = quote.base_rate
            booking.base_amount = quote.total_price
            booking.applied_tier = quote.applied_tier or ''

            staff_changes = self.staff_service.reconcile(booking)

            self._recalculate_totals(booking)
            booking.payment_status = derive_payment_status(
                booking.total_amount, booking.payments.all(), booking.refund_amount
            )
            self._save_slot(booking)

            new_values = snapshot(booking, SLOT_FIELDS + PRICING_FIELDS)
            if staff_changes['released']:
                new_values['staff_released'] = staff_changes['released']
                new_values['staff_assigned'] = staff_changes['assigned']
            self._record(booking, Action.RESCHEDULED, actor, old_values, new_values)
            self._refresh_series(booking, now)

        AvailabilityService.invalidate(booking.field_id, old_date, new_date)
        logger.info(
            f"Rescheduled booking {booking.booking_number} to "
            f"{new_date} {new_start:%H:%M}-{new_end:%H:%M}"
        )
        return booking

    # ==========================================================================
    # Charges
    # ==========================================================================

    def record_payment(
        self,
        booking_id: uuid.UUID,
        actor: Actor,
        amount,
        method: str,
        status: str = Payment.Status.COMPLETED,
        transaction_id: str = '',
    ) -> Tuple[Booking, Payment]:
        """Append a payment record and re-derive the payment status."""
        from . import BookingValidationError, BookingStateError

        amount = Decimal(str(amount))
        if amount <= 0:
            raise BookingValidationError("Payment amount must be positive", details={'amount': str(amount)})
        if method not in Payment.Method.values:
            raise BookingValidationError(f"Unknown payment method: {method}", details={'method': method})
        if status not in Payment.Status.values:
            raise BookingValidationError(f"Unknown payment status: {status}", details={'status': status})

        with transaction.atomic():
            booking = self._lock_booking(booking_id)
            self._authorize_owner(booking.user_id, booking.stadium, actor)

            if booking.status == Booking.Status.CANCELLED:
                raise BookingStateError("Cannot record a payment for a cancelled booking")

            payment = Payment.objects.create(
                booking=booking,
                method=method,
                amount=amount,
                status=status,
                transaction_id=transaction_id or '',
            )
            old_values = snapshot(booking, ('payment_status',))
            self._refresh_payment_status(booking)
            self._record(
                booking,
                Action.PAYMENT_RECORDED,
                actor,
                old_values,
                {
                    'payment_status': booking.payment_status,
                    'amount': str(amount),
                    'method': method,
                    'status': status,
                },
            )

        logger.info(
            f"Recorded {status} payment of {amount} for booking {booking.booking_number}; "
            f"payment status {booking.payment_status}"
        )
        return booking, payment

    def apply_discount(
        self,
        booking_id: uuid.UUID,
        actor: Actor,
        discount_type: str,
        value,
        description: str = '',
        reference: str = None,
    ) -> Booking:
        """
        Apply a percentage or fixed discount to the current total.

        A reference applies once per booking; when omitted it is derived
        from the discount's type, value and description.
        """
        from . import BookingValidationError, BookingStateError, PolicyViolationError

        value = Decimal(str(value))
        if discount_type == BookingDiscount.DiscountType.PERCENTAGE:
            if not Decimal('0') < value <= Decimal('100'):
                raise BookingValidationError("Percentage discount must be in (0, 100]")
        elif discount_type == BookingDiscount.DiscountType.FIXED:
            if value <= 0:
                raise BookingValidationError("Fixed discount must be positive")
        else:
            raise BookingValidationError(f"Unknown discount type: {discount_type}")

        reference = (reference or f"{discount_type}:{value.normalize():f}:{description}")[:100]

        with transaction.atomic():
            booking = self._lock_booking(booking_id)
            self._authorize_manager(booking.stadium, actor)

            if not booking.is_active:
                raise BookingStateError(f"Cannot discount a {booking.status} booking")
            if booking.discounts.filter(reference=reference).exists():
                raise PolicyViolationError(
                    f"Discount {reference} was already applied",
                    details={'reference': reference}
                )

            if discount_type == BookingDiscount.DiscountType.PERCENTAGE:
                amount = round_currency(booking.total_amount * value / Decimal(100))
            else:
                amount = value
            amount = min(amount, booking.total_amount)

            try:
                with transaction.atomic():
                    BookingDiscount.objects.create(
                        booking=booking,
                        reference=reference,
                        discount_type=discount_type,
                        value=value,
                        amount=amount,
                        description=description or '',
                        applied_by=actor.user_id,
                    )
            except IntegrityError:
                raise PolicyViolationError(
                    f"Discount {reference} was already applied",
                    details={'reference': reference}
                )

            old_values = snapshot(booking, ('discount_total', 'total_amount', 'payment_status'))
            self._recalculate_totals(booking)
            booking.payment_status = derive_payment_status(
                booking.total_amount, booking.payments.all()
            )
            booking.save()
            self._record(
                booking,
                Action.DISCOUNT_APPLIED,
                actor,
                old_values,
                {
                    **snapshot(booking, ('discount_total', 'total_amount', 'payment_status')),
                    'reference': reference,
                    'amount': str(amount),
                },
                notes=description or '',
            )

        logger.info(f"Applied discount {reference} ({amount}) to booking {booking.booking_number}")
        return booking

    def assign_staff(self, booking_id: uuid.UUID, actor: Actor, staff_id: uuid.UUID) -> Booking:
        """Attach a specific staff member and add their charge."""
        from . import (
            BookingStateError,
            PolicyViolationError,
            ResourceNotFoundError,
            SlotConflictError,
        )

        with transaction.atomic():
            booking = self._lock_booking(booking_id)
            self._authorize_manager(booking.stadium, actor)

            if not booking.is_active:
                raise BookingStateError(f"Cannot assign staff to a {booking.status} booking")

            try:
                member = Staff.objects.get(id=staff_id, stadium_id=booking.stadium_id)
            except (Staff.DoesNotExist, ValueError, DjangoValidationError):
                raise ResourceNotFoundError(f"Staff {staff_id} not found")

            if member.status != Staff.Status.ACTIVE:
                raise PolicyViolationError(f"Staff member is {member.status}")
            if booking.staff_assignments.filter(staff=member).exists():
                raise PolicyViolationError("Staff member is already assigned to this booking")

            busy = self.staff_service.busy_staff_ids(
                booking.booking_date, booking.start_time, booking.end_time,
                exclude_booking_id=booking.id,
            )
            if member.id in busy:
                raise SlotConflictError("Staff member is assigned to another booking at this time")

            old_values = snapshot(booking, ('staff_charges', 'total_amount'))
            self.staff_service.assign(booking, member)
            self._recalculate_totals(booking)
            booking.payment_status = derive_payment_status(
                booking.total_amount, booking.payments.all()
            )
            booking.save()
            self._record(
                booking,
                Action.STAFF_ASSIGNED,
                actor,
                old_values,
                {
                    **snapshot(booking, ('staff_charges', 'total_amount')),
                    'staff_id': str(member.id),
                },
            )

        return booking

    # ==========================================================================
    # Memberships
    # ==========================================================================

    def cancel_membership(
        self,
        series_id: uuid.UUID,
        actor: Actor,
        reason: str = '',
        now: datetime = None,
    ) -> Dict[str, Any]:
        """
        Cancel every upcoming active occurrence the policy allows and close
        the series. Occurrences the policy refuses are reported as skipped.
        """
        from . import BookingAuthorizationError, PolicyViolationError

        now = now or timezone.now()
        series = self.get_membership(series_id)
        self._authorize_owner(series.user_id, series.stadium, actor)

        cancelled = []
        skipped = []
        upcoming = series.occurrences.filter(
            status__in=Booking.get_active_statuses()
        ).select_related('stadium').order_by('booking_date', 'start_time')

        for occurrence in upcoming:
            if occurrence.starts_at <= now:
                continue
            try:
                booking, _ = self.cancel_booking(occurrence.id, actor, reason, now)
                cancelled.append(booking)
            except (BookingAuthorizationError, PolicyViolationError) as e:
                skipped.append({
                    'booking_number': occurrence.booking_number,
                    'date': occurrence.booking_date.isoformat(),
                    'reason': e.message or str(e),
                })

        series.is_active = False
        series.cancelled_at = now
        series.cancellation_reason = reason or ''
        series.save(update_fields=['is_active', 'cancelled_at', 'cancellation_reason', 'updated_at'])
        series.refresh_progress(now.astimezone(series.stadium.tz).date())

        logger.info(
            f"Cancelled membership {series.id}: {len(cancelled)} occurrences cancelled, "
            f"{len(skipped)} skipped"
        )
        return {'series': series, 'cancelled': cancelled, 'skipped': skipped}

    # ==========================================================================
    # Helpers
    # ==========================================================================

    @staticmethod
    def tax_rate() -> Decimal:
        return Decimal(str(getattr(settings, 'BOOKING_TAX_RATE', '0')))

    def _recalculate_totals(self, booking: Booking):
        """Rebuild staff charges, tax, discounts and total. Caller saves."""
        booking.staff_charges = sum(
            (assignment.total_charge for assignment in booking.staff_assignments.all()),
            Decimal('0'),
        )
        subtotal = booking.base_amount + booking.staff_charges
        booking.tax_amount = round_currency(subtotal * self.tax_rate())
        gross = subtotal + booking.tax_amount
        discounts = sum(
            (discount.amount for discount in booking.discounts.all()),
            Decimal('0'),
        )
        booking.discount_total = min(discounts, gross)
        booking.total_amount = gross - booking.discount_total

    def _refresh_payment_status(self, booking: Booking):
        booking.payment_status = derive_payment_status(
            booking.total_amount, booking.payments.all(), booking.refund_amount
        )
        booking.save(update_fields=['payment_status', 'updated_at'])

    def _settle_series(self, series: MembershipSeries, today: date) -> bool:
        """Refresh a new series' counters, or delete it when nothing was booked."""
        if not series.occurrences.exists():
            series.delete()
            return False
        series.refresh_progress(today)
        return True

    def _refresh_series(self, booking: Booking, now: datetime):
        if booking.membership_id is None:
            return
        series = MembershipSeries.objects.select_related('stadium').get(pk=booking.membership_id)
        series.refresh_progress(now.astimezone(series.stadium.tz).date())

    def _record(
        self,
        booking: Booking,
        action: str,
        actor: Actor,
        old_values: Optional[Dict[str, Any]] = None,
        new_values: Optional[Dict[str, Any]] = None,
        notes: str = '',
    ) -> BookingHistory:
        """Append a history entry after the booking row was written."""
        last = booking.history.aggregate(last=Max('sequence'))['last'] or 0
        return BookingHistory.objects.create(
            booking=booking,
            sequence=last + 1,
            action=action,
            changed_by=actor.user_id,
            old_values=old_values or {},
            new_values=new_values or {},
            notes=notes,
        )
