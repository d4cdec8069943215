# services/reservation-service/src/apps/core/services/requests.py
"""
Booking request shapes and the acting principal.

A booking request is either a regular single-slot request or a membership
request; the ``kind`` tag is validated once at the API boundary.
"""

from dataclasses import dataclass, field
from datetime import date, time
from typing import Literal, Optional, Union
from uuid import UUID

from shared.common.constants import ActorRole, PRIVILEGED_ROLES, SYSTEM_ACTOR


@dataclass(frozen=True)
class Actor:
    """Who performs an operation."""

    user_id: str
    role: str = ActorRole.USER.value

    @property
    def is_privileged(self) -> bool:
        return self.role in PRIVILEGED_ROLES

    @classmethod
    def system(cls) -> 'Actor':
        return cls(user_id=SYSTEM_ACTOR, role=ActorRole.SUPERADMIN.value)

    @classmethod
    def from_token_user(cls, user) -> 'Actor':
        return cls(user_id=str(user.user_id), role=user.actor_role)


@dataclass
class RegularBookingRequest:
    stadium_id: UUID
    field_id: UUID
    booking_date: date
    start_time: time
    end_time: time
    team_info: dict = field(default_factory=dict)
    special_requests: list = field(default_factory=list)
    booking_type: str = 'regular'
    notes: str = ''
    needs_referee: bool = True
    kind: Literal['regular'] = 'regular'


@dataclass
class MembershipBookingRequest:
    """Exactly one of ``end_date`` / ``total_occurrences`` bounds the series."""

    stadium_id: UUID
    field_id: UUID
    start_date: date
    day_of_week: int
    start_time: time
    end_time: time
    recurrence_pattern: str
    end_date: Optional[date] = None
    total_occurrences: Optional[int] = None
    team_info: dict = field(default_factory=dict)
    needs_referee: bool = False
    kind: Literal['membership'] = 'membership'


BookingRequest = Union[RegularBookingRequest, MembershipBookingRequest]
