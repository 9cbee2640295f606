"""
Core schemas - shared Pydantic models for API responses.
"""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response format."""

    code: str = Field(..., description="Stable machine-readable error kind")
    detail: str = Field(..., description="Human-readable error message")

    model_config = {
        "json_schema_extra": {
            "example": {
                "code": "capacity_exceeded",
                "detail": "Camp North is at capacity (2 of 2)",
            }
        }
    }


class MessageResponse(BaseModel):
    """Generic success message."""

    message: str

    model_config = {"json_schema_extra": {"example": {"message": "Operation completed successfully."}}}
