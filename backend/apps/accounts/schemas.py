"""
Auth API schemas - Pydantic models for request/response.
"""

from uuid import UUID

from ninja import Schema
from pydantic import EmailStr, Field

# --- Request Schemas ---


class LoginRequest(Schema):
    """Email/password login."""

    email: EmailStr = Field(..., examples=["medic@example.org"])
    password: str = Field(..., min_length=1, max_length=128)


# --- Response Schemas ---


class ProfessionalResponse(Schema):
    """A professional and their current assignments."""

    id: UUID
    email: str
    name: str
    phone_number: str
    role: str
    current_event_id: UUID | None = Field(None, description="Event currently working")
    current_camp_id: UUID | None = Field(None, description="Camp within the current event")
    group_id: UUID | None = None
