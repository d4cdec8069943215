# services/reservation-service/src/apps/api/serializers/booking_serializers.py
"""
Booking Serializers

Read serializers for bookings and input serializers for booking requests
and lifecycle actions. Date and time strings are parsed by the service
clock helpers so malformed values surface as INVALID_INPUT.
"""

from rest_framework import serializers

from apps.core.models import (
    Booking,
    BookingDiscount,
    BookingHistory,
    MembershipSeries,
    Payment,
    StaffAssignment,
)
from apps.core.services import MembershipBookingRequest, RegularBookingRequest
from apps.core.services.clock import parse_date, parse_time


HHMM = '%H:%M'


class BookingHistorySerializer(serializers.ModelSerializer):
    action_display = serializers.CharField(source='get_action_display', read_only=True)

    class Meta:
        model = BookingHistory
        fields = [
            'sequence', 'action', 'action_display', 'changed_by',
            'old_values', 'new_values', 'notes', 'timestamp',
        ]
        read_only_fields = fields


class PaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = ['id', 'method', 'amount', 'status', 'transaction_id', 'paid_at']
        read_only_fields = fields


class StaffAssignmentSerializer(serializers.ModelSerializer):
    staff_name = serializers.CharField(source='staff.name', read_only=True)

    class Meta:
        model = StaffAssignment
        fields = [
            'id', 'staff', 'staff_name', 'role', 'hours',
            'hourly_rate', 'total_charge', 'status', 'assigned_at',
        ]
        read_only_fields = fields


class BookingDiscountSerializer(serializers.ModelSerializer):
    class Meta:
        model = BookingDiscount
        fields = [
            'id', 'reference', 'discount_type', 'value', 'amount',
            'description', 'applied_by', 'applied_at',
        ]
        read_only_fields = fields


class BookingSerializer(serializers.ModelSerializer):
    """Base booking serializer."""

    start_time = serializers.TimeField(format=HHMM, read_only=True)
    end_time = serializers.TimeField(format=HHMM, read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    booking_type_display = serializers.CharField(
        source='get_booking_type_display',
        read_only=True
    )
    can_cancel = serializers.BooleanField(read_only=True)
    can_check_in = serializers.BooleanField(read_only=True)

    class Meta:
        model = Booking
        fields = [
            'id', 'booking_number', 'user_id', 'stadium', 'field',
            'booking_date', 'start_time', 'end_time', 'duration_hours',
            'booking_type', 'booking_type_display',
            'status', 'status_display',
            'membership', 'occurrence_index',
            'base_rate', 'base_amount', 'staff_charges', 'discount_total',
            'tax_amount', 'total_amount', 'currency', 'applied_tier',
            'payment_status',
            'team_info', 'special_requests', 'notes',
            'checked_in_at', 'completed_at',
            'cancelled_at', 'cancelled_by', 'cancellation_reason',
            'refund_amount', 'refund_status',
            'can_cancel', 'can_check_in',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class BookingListSerializer(BookingSerializer):
    """Compact serializer for booking lists."""

    class Meta(BookingSerializer.Meta):
        fields = [
            'id', 'booking_number', 'field', 'booking_date',
            'start_time', 'end_time', 'booking_type', 'status',
            'total_amount', 'currency', 'payment_status', 'membership',
        ]


class BookingDetailSerializer(BookingSerializer):
    """Booking with its history and charges."""

    history = BookingHistorySerializer(many=True, read_only=True)
    payments = PaymentSerializer(many=True, read_only=True)
    staff_assignments = StaffAssignmentSerializer(many=True, read_only=True)
    discounts = BookingDiscountSerializer(many=True, read_only=True)

    class Meta(BookingSerializer.Meta):
        fields = BookingSerializer.Meta.fields + [
            'history', 'payments', 'staff_assignments', 'discounts',
        ]


# ==========================================================================
# Booking Requests
# ==========================================================================

class BookingKindSerializer(serializers.Serializer):
    """Discriminator of the booking request union."""

    kind = serializers.ChoiceField(choices=['regular', 'membership'], default='regular')


class RegularBookingCreateSerializer(serializers.Serializer):
    kind = serializers.ChoiceField(choices=['regular'], default='regular')
    stadium_id = serializers.UUIDField()
    field_id = serializers.UUIDField()
    booking_date = serializers.CharField()
    start_time = serializers.CharField()
    end_time = serializers.CharField()
    booking_type = serializers.ChoiceField(
        choices=[
            choice for choice in Booking.BookingType.choices
            if choice[0] != Booking.BookingType.MEMBERSHIP
        ],
        default=Booking.BookingType.REGULAR
    )
    team_info = serializers.DictField(required=False, default=dict)
    special_requests = serializers.ListField(required=False, default=list)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    needs_referee = serializers.BooleanField(required=False, default=True)

    def to_request(self) -> RegularBookingRequest:
        data = self.validated_data
        return RegularBookingRequest(
            stadium_id=data['stadium_id'],
            field_id=data['field_id'],
            booking_date=parse_date(data['booking_date'], 'booking_date'),
            start_time=parse_time(data['start_time'], 'start_time'),
            end_time=parse_time(data['end_time'], 'end_time'),
            team_info=data['team_info'],
            special_requests=data['special_requests'],
            booking_type=data['booking_type'],
            notes=data['notes'],
            needs_referee=data['needs_referee'],
        )


class MembershipBookingCreateSerializer(serializers.Serializer):
    kind = serializers.ChoiceField(choices=['membership'])
    stadium_id = serializers.UUIDField()
    field_id = serializers.UUIDField()
    start_date = serializers.CharField()
    end_date = serializers.CharField(required=False, allow_null=True, default=None)
    total_occurrences = serializers.IntegerField(
        required=False,
        allow_null=True,
        default=None,
        min_value=1
    )
    day_of_week = serializers.IntegerField(min_value=0, max_value=6)
    start_time = serializers.CharField()
    end_time = serializers.CharField()
    recurrence_pattern = serializers.ChoiceField(choices=MembershipSeries.Pattern.choices)
    team_info = serializers.DictField(required=False, default=dict)
    needs_referee = serializers.BooleanField(required=False, default=False)

    def validate(self, attrs):
        if (attrs.get('end_date') is None) == (attrs.get('total_occurrences') is None):
            raise serializers.ValidationError(
                "Provide exactly one of end_date or total_occurrences"
            )
        return attrs

    def to_request(self) -> MembershipBookingRequest:
        data = self.validated_data
        end_date = data.get('end_date')
        return MembershipBookingRequest(
            stadium_id=data['stadium_id'],
            field_id=data['field_id'],
            start_date=parse_date(data['start_date'], 'start_date'),
            day_of_week=data['day_of_week'],
            start_time=parse_time(data['start_time'], 'start_time'),
            end_time=parse_time(data['end_time'], 'end_time'),
            recurrence_pattern=data['recurrence_pattern'],
            end_date=parse_date(end_date, 'end_date') if end_date is not None else None,
            total_occurrences=data.get('total_occurrences'),
            team_info=data['team_info'],
            needs_referee=data['needs_referee'],
        )


REQUEST_SERIALIZERS = {
    'regular': RegularBookingCreateSerializer,
    'membership': MembershipBookingCreateSerializer,
}


def get_request_serializer_class(data):
    """Pick the request serializer from the ``kind`` tag."""
    kind = BookingKindSerializer(data={'kind': data.get('kind', 'regular')})
    kind.is_valid(raise_exception=True)
    return REQUEST_SERIALIZERS[kind.validated_data['kind']]


# ==========================================================================
# Lifecycle Actions
# ==========================================================================

class BookingCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class BookingRescheduleSerializer(serializers.Serializer):
    booking_date = serializers.CharField()
    start_time = serializers.CharField()
    end_time = serializers.CharField()


class PaymentCreateSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    method = serializers.ChoiceField(choices=Payment.Method.choices)
    status = serializers.ChoiceField(
        choices=Payment.Status.choices,
        default=Payment.Status.COMPLETED
    )
    transaction_id = serializers.CharField(required=False, allow_blank=True, default='')


class DiscountCreateSerializer(serializers.Serializer):
    discount_type = serializers.ChoiceField(choices=BookingDiscount.DiscountType.choices)
    value = serializers.DecimalField(max_digits=12, decimal_places=2)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    reference = serializers.CharField(required=False, allow_null=True, default=None, max_length=100)


class StaffAssignSerializer(serializers.Serializer):
    staff_id = serializers.UUIDField()
