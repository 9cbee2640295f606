"""
Camp API schemas.
"""

from datetime import datetime
from typing import ClassVar
from uuid import UUID

from ninja import Schema
from pydantic import Field

from apps.core.patches import PatchSchema


class CreateCampRequest(Schema):
    location_name: str = Field(..., min_length=1, max_length=255)
    capacity: int | None = Field(None, ge=0, le=10000, description="Empty for unlimited")


class CampPatch(PatchSchema):
    non_nullable: ClassVar[frozenset[str]] = frozenset({"location_name"})

    location_name: str | None = Field(None, min_length=1, max_length=255)
    capacity: int | None = Field(None, ge=0, le=10000, description="Null removes the limit")


class AssignProfessionalRequest(Schema):
    professional_id: UUID | None = Field(None, description="Defaults to the caller")


class CampResponse(Schema):
    id: UUID
    event_id: UUID
    location_name: str
    capacity: int | None
    professional_count: int
    casualty_count: int
    created_at: datetime
    updated_at: datetime

    @staticmethod
    def resolve_professional_count(obj) -> int:
        count = getattr(obj, "professional_count", None)
        return obj.professionals.count() if count is None else count

    @staticmethod
    def resolve_casualty_count(obj) -> int:
        count = getattr(obj, "casualty_count", None)
        return obj.casualties.count() if count is None else count


class CampMutationResponse(Schema):
    camp: CampResponse
    changed_fields: list[str]


class CampDeletionResponse(Schema):
    camp_id: UUID
    unassigned_professionals: int
    unassigned_casualties: int


class AssignmentResponse(Schema):
    professional_id: UUID
    camp_id: UUID | None
    changed_fields: list[str]
