"""
Casualty API schemas.
"""

from datetime import datetime
from typing import ClassVar
from uuid import UUID

from ninja import Schema
from pydantic import Field

from apps.core.constants import TriageColor
from apps.core.patches import PatchSchema


class AddCasualtyRequest(Schema):
    event_id: UUID
    camp_id: UUID | None = None
    color: TriageColor
    breathing: bool | None = None
    conscious: bool | None = None
    bleeding: bool | None = None
    hospital_status: str = Field("", max_length=255)
    other_information: str = Field("", max_length=5000)


class CasualtyPatch(PatchSchema):
    """Status fields of a casualty. ``camp_id`` moves it within its event."""

    non_nullable: ClassVar[frozenset[str]] = frozenset(
        {"color", "hospital_status", "other_information"}
    )

    camp_id: UUID | None = None
    color: TriageColor | None = None
    breathing: bool | None = None
    conscious: bool | None = None
    bleeding: bool | None = None
    hospital_status: str | None = Field(None, max_length=255)
    other_information: str | None = Field(None, max_length=5000)


class CasualtyResponse(Schema):
    id: UUID
    event_id: UUID
    camp_id: UUID | None
    color: str
    breathing: bool | None
    conscious: bool | None
    bleeding: bool | None
    hospital_status: str
    other_information: str
    created_by_id: UUID
    created_at: datetime
    updated_at: datetime


class CasualtyMutationResponse(Schema):
    casualty: CasualtyResponse
    changed_fields: list[str]
