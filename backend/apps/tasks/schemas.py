"""
Task API schemas.
"""

from datetime import datetime
from typing import ClassVar
from uuid import UUID

from ninja import Schema
from pydantic import Field

from apps.core.constants import Priority, TaskStatus
from apps.core.patches import PatchSchema


class CreateTaskRequest(Schema):
    event_id: UUID
    assigned_to_id: UUID
    description: str = Field(..., min_length=5, max_length=1000)
    priority: Priority = Priority.MEDIUM
    due_date: datetime | None = None
    notes: str = Field("", max_length=5000)


class TaskPatch(PatchSchema):
    non_nullable: ClassVar[frozenset[str]] = frozenset(
        {"assigned_to_id", "description", "status", "priority", "notes"}
    )

    assigned_to_id: UUID | None = None
    description: str | None = Field(None, min_length=5, max_length=1000)
    status: TaskStatus | None = None
    priority: Priority | None = None
    due_date: datetime | None = None
    notes: str | None = Field(None, max_length=5000)


class TaskResponse(Schema):
    id: UUID
    event_id: UUID
    created_by_id: UUID
    assigned_to_id: UUID
    description: str
    status: str
    priority: str
    due_date: datetime | None
    notes: str
    completed_at: datetime | None
    created_at: datetime
    updated_at: datetime


class TaskMutationResponse(Schema):
    task: TaskResponse
    changed_fields: list[str]
