"""
Event API schemas.
"""

from datetime import datetime
from typing import ClassVar
from uuid import UUID

from ninja import Schema
from pydantic import Field

from apps.camps.schemas import CampResponse
from apps.core.constants import EventStatus
from apps.core.patches import PatchSchema

# --- Request Schemas ---


class CreateEventRequest(Schema):
    name: str = Field(..., min_length=1, max_length=255)
    location: str = Field("", max_length=255)
    start_time: datetime | None = None
    finish_time: datetime | None = None
    status: EventStatus = EventStatus.UPCOMING


class EventPatch(PatchSchema):
    """Content fields of an event. Status changes go through /transition."""

    non_nullable: ClassVar[frozenset[str]] = frozenset({"name", "location"})

    name: str | None = Field(None, min_length=1, max_length=255)
    location: str | None = Field(None, max_length=255)
    start_time: datetime | None = None
    finish_time: datetime | None = None


class TransitionEventRequest(Schema):
    status: EventStatus


class JoinEventRequest(Schema):
    invite_code: str = Field(..., min_length=4, max_length=16)
    camp_id: UUID | None = None


# --- Response Schemas ---


class EventResponse(Schema):
    id: UUID
    name: str
    location: str
    status: str
    start_time: datetime | None
    finish_time: datetime | None
    invite_code: str
    created_by_id: UUID | None
    created_at: datetime
    updated_at: datetime


class EventSummaryResponse(EventResponse):
    camp_count: int
    casualty_count: int
    professional_count: int


class EventDetailResponse(EventSummaryResponse):
    camps: list[CampResponse]

    @staticmethod
    def resolve_camps(obj) -> list[CampResponse]:
        return [CampResponse.from_orm(camp) for camp in obj.camp_set.with_occupancy()]


class EventMutationResponse(Schema):
    event: EventResponse
    changed_fields: list[str]


class EventDeletionResponse(Schema):
    event_id: UUID
    deleted_counts: dict[str, int]


class JoinEventResponse(Schema):
    event: EventResponse
    camp_id: UUID | None
