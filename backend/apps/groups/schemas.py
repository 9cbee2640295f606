"""
Group API schemas.
"""

from datetime import datetime
from typing import Any, ClassVar
from uuid import UUID

from ninja import Schema
from pydantic import Field, field_validator

from apps.core.patches import PatchSchema
from apps.groups.models import MAX_GROUP_SIZE, MIN_GROUP_SIZE


class CreateGroupRequest(Schema):
    name: str = Field(..., min_length=2, max_length=100)
    lead_id: UUID | None = Field(None, description="Defaults to the caller")
    max_members: int | None = Field(None, ge=MIN_GROUP_SIZE, le=MAX_GROUP_SIZE)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        """Trim before the length check so "  a " is too short."""
        return v.strip() if isinstance(v, str) else v


class GroupPatch(PatchSchema):
    non_nullable: ClassVar[frozenset[str]] = frozenset({"name", "lead_id", "max_members"})

    name: str | None = Field(None, min_length=2, max_length=100)
    lead_id: UUID | None = None
    max_members: int | None = Field(None, ge=MIN_GROUP_SIZE, le=MAX_GROUP_SIZE)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v


class AddMemberRequest(Schema):
    professional_id: UUID


class GroupResponse(Schema):
    id: UUID
    name: str
    lead_id: UUID
    max_members: int
    member_ids: list[UUID]
    member_count: int
    created_at: datetime
    updated_at: datetime

    @staticmethod
    def resolve_member_ids(obj) -> list[UUID]:
        return list(obj.members.values_list("id", flat=True))

    @staticmethod
    def resolve_member_count(obj) -> int:
        count = getattr(obj, "member_count", None)
        return obj.members.count() if count is None else count


class GroupMutationResponse(Schema):
    group: GroupResponse
    changed_fields: list[str]
