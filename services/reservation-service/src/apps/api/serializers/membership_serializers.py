# services/reservation-service/src/apps/api/serializers/membership_serializers.py
"""
Membership Serializers
"""

from rest_framework import serializers

from apps.core.models import MembershipSeries


class MembershipSeriesSerializer(serializers.ModelSerializer):
    pattern_display = serializers.CharField(source='get_pattern_display', read_only=True)
    start_time = serializers.TimeField(format='%H:%M', read_only=True)
    end_time = serializers.TimeField(format='%H:%M', read_only=True)

    class Meta:
        model = MembershipSeries
        fields = [
            'id', 'user_id', 'stadium', 'field',
            'pattern', 'pattern_display', 'day_of_week',
            'start_date', 'end_date', 'requested_occurrences',
            'start_time', 'end_time',
            'total_occurrences', 'completed_occurrences', 'next_booking_date',
            'is_active', 'failures', 'team_info',
            'cancelled_at', 'cancellation_reason',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class MembershipCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')
