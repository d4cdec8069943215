# services/reservation-service/src/apps/api/serializers/availability_serializers.py
"""
Availability Serializers

Query-string serializers for the field views. Values stay strings so the
service parses them and reports malformed input consistently.
"""

from rest_framework import serializers

from apps.core.models import Staff


class DateQuerySerializer(serializers.Serializer):
    date = serializers.CharField()


class SlotQuerySerializer(DateQuerySerializer):
    start_time = serializers.CharField()
    end_time = serializers.CharField()
    exclude_booking_id = serializers.UUIDField(required=False, allow_null=True, default=None)


class StaffQuerySerializer(DateQuerySerializer):
    start_time = serializers.CharField()
    end_time = serializers.CharField()
    role = serializers.ChoiceField(choices=Staff.Role.choices, default=Staff.Role.REFEREE)


class StaffCandidateSerializer(serializers.ModelSerializer):
    class Meta:
        model = Staff
        fields = ['id', 'name', 'role', 'hourly_rate', 'currency', 'status']
        read_only_fields = fields
