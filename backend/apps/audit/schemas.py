"""
Audit API schemas.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from ninja import Schema
from pydantic import Field


class AuditEntryResponse(Schema):
    """One audit entry."""

    id: UUID
    entity_type: str
    entity_id: str
    action: str
    actor_id: str
    actor_email: str
    changes: dict[str, Any] = Field(description="{field: {from, to}}")
    metadata: dict[str, Any]
    created_at: datetime
