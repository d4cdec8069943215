# services/reservation-service/src/apps/api/views/booking_views.py
"""
Booking API Views

Booking creation, lookup and lifecycle actions.
"""

import logging

from django.db.models import Prefetch, Q
from rest_framework import filters, mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView
from django_filters.rest_framework import DjangoFilterBackend

from shared.common.constants import ActorRole
from shared.common.permissions import IsAdmin
from apps.core.models import Booking, BookingHistory, StaffAssignment
from apps.core.services import BookingService
from apps.api.serializers import (
    BookingSerializer,
    BookingListSerializer,
    BookingDetailSerializer,
    BookingCancelSerializer,
    BookingRescheduleSerializer,
    PaymentCreateSerializer,
    PaymentSerializer,
    DiscountCreateSerializer,
    StaffAssignSerializer,
    MembershipSeriesSerializer,
    get_request_serializer_class,
)
from .filters import BookingFilter
from .mixins import ServiceErrorMixin

logger = logging.getLogger(__name__)


class BookingViewSet(
    ServiceErrorMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    ViewSet for bookings.

    Ordinary users see their own bookings, stadium owners also see the
    bookings of their stadiums, staff and admins see everything.
    """

    queryset = Booking.objects.select_related('stadium', 'field')
    serializer_class = BookingSerializer
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_class = BookingFilter
    ordering_fields = ['booking_date', 'start_time', 'created_at', 'total_amount']
    ordering = ['booking_date', 'start_time']

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.booking_service = BookingService()

    def get_queryset(self):
        queryset = super().get_queryset()
        actor = self.get_actor()

        if self.action == 'retrieve':
            queryset = queryset.prefetch_related(
                Prefetch('history', queryset=BookingHistory.objects.order_by('sequence')),
                'payments',
                Prefetch('staff_assignments', queryset=StaffAssignment.objects.select_related('staff')),
                'discounts',
            )

        if actor.role in (ActorRole.SUPERADMIN, ActorRole.ADMIN, ActorRole.STAFF):
            return queryset
        if actor.role == ActorRole.STADIUM_OWNER:
            return queryset.filter(
                Q(stadium__owner_id=actor.user_id) | Q(user_id=actor.user_id)
            )
        return queryset.filter(user_id=actor.user_id)

    def get_serializer_class(self):
        if self.action == 'list':
            return BookingListSerializer
        if self.action == 'retrieve':
            return BookingDetailSerializer
        return BookingSerializer

    def _detail(self, booking: Booking) -> dict:
        return BookingDetailSerializer(booking).data

    def create(self, request, *args, **kwargs):
        """Create a regular booking or a membership series."""
        serializer_class = get_request_serializer_class(request.data)
        serializer = serializer_class(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking_request = serializer.to_request()
        actor = self.get_actor()

        if booking_request.kind == 'membership':
            series, result = self.booking_service.create_membership_booking(booking_request, actor)
            return Response({
                'membership': MembershipSeriesSerializer(series).data,
                'occurrences': BookingSerializer(result.occurrences, many=True).data,
                'failures': result.failures,
                'summary': {
                    'booked': len(result.occurrences),
                    'failed': len(result.failures),
                    'is_partial': result.is_partial,
                },
            }, status=status.HTTP_201_CREATED)

        booking = self.booking_service.create_regular_booking(booking_request, actor)
        return Response(self._detail(booking), status=status.HTTP_201_CREATED)

    # ==========================================================================
    # Lifecycle Actions
    # ==========================================================================

    @action(detail=True, methods=['post'])
    def confirm(self, request, pk=None):
        """Confirm a pending booking."""
        booking = self.booking_service.confirm(pk, self.get_actor())
        return Response(self._detail(booking))

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        """Cancel a booking and report the refund."""
        serializer = BookingCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking, decision = self.booking_service.cancel_booking(
            pk,
            self.get_actor(),
            reason=serializer.validated_data['reason'],
        )
        return Response({
            'booking': self._detail(booking),
            'refund_amount': str(decision.refund_amount),
            'refund_percent': decision.refund_percent,
        })

    @action(detail=True, methods=['get'], url_path='cancellation-quote')
    def cancellation_quote(self, request, pk=None):
        """Evaluate the cancellation policy without cancelling."""
        decision = self.booking_service.quote_cancellation(pk, self.get_actor())
        data = decision.as_dict()
        data['refund_amount'] = str(decision.refund_amount)
        return Response(data)

    @action(detail=True, methods=['post'])
    def reschedule(self, request, pk=None):
        """Move a booking to another slot."""
        serializer = BookingRescheduleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        booking = self.booking_service.reschedule(
            pk,
            data['booking_date'],
            data['start_time'],
            data['end_time'],
            self.get_actor(),
        )
        return Response(self._detail(booking))

    @action(detail=True, methods=['post'], url_path='check-in')
    def check_in(self, request, pk=None):
        booking = self.booking_service.check_in(pk, self.get_actor())
        return Response(self._detail(booking))

    @action(detail=True, methods=['post'], url_path='no-show')
    def no_show(self, request, pk=None):
        booking = self.booking_service.mark_no_show(pk, self.get_actor())
        return Response(self._detail(booking))

    @action(detail=True, methods=['post'])
    def complete(self, request, pk=None):
        booking = self.booking_service.complete(pk, self.get_actor())
        return Response(self._detail(booking))

    # ==========================================================================
    # Charges
    # ==========================================================================

    @action(detail=True, methods=['post'])
    def payments(self, request, pk=None):
        """Record a payment."""
        serializer = PaymentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking, payment = self.booking_service.record_payment(
            pk, self.get_actor(), **serializer.validated_data
        )
        return Response({
            'booking': self._detail(booking),
            'payment': PaymentSerializer(payment).data,
        }, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def discounts(self, request, pk=None):
        """Apply a discount."""
        serializer = DiscountCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking = self.booking_service.apply_discount(
            pk, self.get_actor(), **serializer.validated_data
        )
        return Response(self._detail(booking), status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def staff(self, request, pk=None):
        """Assign a staff member."""
        serializer = StaffAssignSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking = self.booking_service.assign_staff(
            pk, self.get_actor(), serializer.validated_data['staff_id']
        )
        return Response(self._detail(booking), status=status.HTTP_201_CREATED)


class SweepElapsedBookingsView(ServiceErrorMixin, APIView):
    """Complete confirmed bookings whose slot has elapsed."""

    permission_classes = [IsAdmin]

    def post(self, request):
        completed = BookingService().sweep_elapsed_bookings()
        return Response({
            'completed': len(completed),
            'booking_numbers': [booking.booking_number for booking in completed],
        })
