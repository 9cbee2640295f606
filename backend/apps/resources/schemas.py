"""
Resource request API schemas.
"""

from datetime import datetime
from typing import ClassVar
from uuid import UUID

from ninja import Schema
from pydantic import Field

from apps.core.constants import Priority
from apps.core.patches import PatchSchema


class RequestResourceRequest(Schema):
    event_id: UUID
    resource_name: str = Field(..., min_length=1, max_length=255)
    quantity: int = Field(1, ge=1, le=100000)
    priority: Priority = Priority.MEDIUM
    time_of_arrival: datetime | None = None
    notes: str = Field("", max_length=5000)


class ResourcePatch(PatchSchema):
    non_nullable: ClassVar[frozenset[str]] = frozenset(
        {"resource_name", "quantity", "priority", "notes"}
    )

    resource_name: str | None = Field(None, min_length=1, max_length=255)
    quantity: int | None = Field(None, ge=1, le=100000)
    priority: Priority | None = None
    time_of_arrival: datetime | None = None
    notes: str | None = Field(None, max_length=5000)


class ConfirmResourceRequest(Schema):
    confirmed: bool
    time_of_arrival: datetime | None = None


class ResourceRequestResponse(Schema):
    id: UUID
    event_id: UUID
    resource_name: str
    quantity: int
    priority: str
    time_of_arrival: datetime | None
    notes: str
    confirmed: bool
    confirmed_by_id: UUID | None
    confirmed_at: datetime | None
    requested_by_id: UUID
    created_at: datetime
    updated_at: datetime


class ResourceMutationResponse(Schema):
    resource: ResourceRequestResponse
    changed_fields: list[str]


class PriorityBreakdownResponse(Schema):
    priority: str
    confirmed: bool
    count: int
    total_quantity: int


class ResourceSummaryResponse(Schema):
    event_id: UUID
    total_requests: int
    confirmed_requests: int
    pending_requests: int
    critical_pending: int
    high_pending: int
    total_quantity: int
    confirmed_quantity: int
    by_priority: list[PriorityBreakdownResponse]
