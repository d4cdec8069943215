# services/reservation-service/src/apps/api/views/membership_views.py
"""
Membership API Views
"""

import logging

from django.db.models import Q
from rest_framework import mixins, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from shared.common.constants import ActorRole
from apps.core.models import MembershipSeries
from apps.core.services import BookingService
from apps.api.serializers import (
    BookingListSerializer,
    MembershipCancelSerializer,
    MembershipSeriesSerializer,
)
from .mixins import ServiceErrorMixin

logger = logging.getLogger(__name__)


class MembershipViewSet(
    ServiceErrorMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """ViewSet for membership series."""

    queryset = MembershipSeries.objects.select_related('stadium', 'field')
    serializer_class = MembershipSeriesSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        actor = self.get_actor()

        if actor.role in (ActorRole.SUPERADMIN, ActorRole.ADMIN, ActorRole.STAFF):
            return queryset
        if actor.role == ActorRole.STADIUM_OWNER:
            return queryset.filter(
                Q(stadium__owner_id=actor.user_id) | Q(user_id=actor.user_id)
            )
        return queryset.filter(user_id=actor.user_id)

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        """Cancel the upcoming occurrences and close the series."""
        serializer = MembershipCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = BookingService().cancel_membership(
            pk,
            self.get_actor(),
            reason=serializer.validated_data['reason'],
        )
        return Response({
            'membership': MembershipSeriesSerializer(result['series']).data,
            'cancelled': BookingListSerializer(result['cancelled'], many=True).data,
            'skipped': result['skipped'],
        })
