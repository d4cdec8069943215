# services/reservation-service/src/apps/api/views/availability_views.py
"""
Field Availability API Views

Read-only calendar, availability, pricing and staff lookups for a field.
"""

import logging

from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.services import AvailabilityService, PricingService, StaffMatchingService
from apps.core.services.clock import parse_date, parse_range, format_time
from apps.api.serializers import (
    DateQuerySerializer,
    SlotQuerySerializer,
    StaffQuerySerializer,
    StaffCandidateSerializer,
)
from .mixins import ServiceErrorMixin

logger = logging.getLogger(__name__)


class FieldAvailabilityView(ServiceErrorMixin, APIView):
    """Every declared slot of a day, classified."""

    def get(self, request, field_id):
        serializer = DateQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)

        data = AvailabilityService().get_comprehensive_availability(
            field_id, serializer.validated_data['date']
        )
        for slot in data['available_slots']:
            slot['rate'] = str(slot['rate'])
        return Response(data)


class FieldAvailabilityCheckView(ServiceErrorMixin, APIView):
    """Whether one range is free."""

    def get(self, request, field_id):
        serializer = SlotQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        service = AvailabilityService()
        day = parse_date(data['date'], 'date')
        start_time, end_time = parse_range(data['start_time'], data['end_time'])
        field = service.get_field(field_id)
        result = service.check(
            field, day, start_time, end_time,
            exclude_booking_id=data['exclude_booking_id'],
        )

        return Response({
            'field_id': str(field.id),
            'date': day.isoformat(),
            'start_time': format_time(start_time),
            'end_time': format_time(end_time),
            'available': result.available,
            'reason': result.reason,
            'conflicts': result.conflicts,
        })


class FieldPriceView(ServiceErrorMixin, APIView):
    """Price quote for a range."""

    def get(self, request, field_id):
        serializer = SlotQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        day = parse_date(data['date'], 'date')
        start_time, end_time = parse_range(data['start_time'], data['end_time'])
        field = AvailabilityService().get_field(field_id)
        quote = PricingService(field).price_window(day, start_time, end_time)

        return Response({
            'field_id': str(field.id),
            'date': day.isoformat(),
            'start_time': format_time(start_time),
            'end_time': format_time(end_time),
            'total_price': str(quote.total_price),
            'base_rate': str(quote.base_rate),
            'applied_tier': quote.applied_tier,
            'duration_hours': str(quote.duration_hours),
            'currency': quote.currency,
        })


class FieldStaffView(ServiceErrorMixin, APIView):
    """Staff who can work a range and are not booked elsewhere."""

    def get(self, request, field_id):
        serializer = StaffQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        day = parse_date(data['date'], 'date')
        start_time, end_time = parse_range(data['start_time'], data['end_time'])
        field = AvailabilityService().get_field(field_id)
        candidates = StaffMatchingService().find_unassigned(
            field.stadium_id, day, start_time, end_time, role=data['role']
        )

        return Response({
            'field_id': str(field.id),
            'role': data['role'],
            'candidates': StaffCandidateSerializer(candidates, many=True).data,
        })
