"""Shared schema configuration and the generic response bodies."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base for every wire-facing schema.

    Accepts both `image_url` and `imageUrl` on input; FastAPI emits the
    camelCase alias on output. `from_attributes` lets response models be
    built straight from ORM objects.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(CamelModel):
    error: bool = False
    message: str


class ErrorResponse(BaseModel):
    """
    Standardized error body returned by every global exception handler.

    Example:
        {
            "error": true,
            "message": "Missing required fields: title",
            "details": {"problems": [{"field": "title", "message": "is required"}]},
            "request_id": "a1b2c3d4"
        }
    """
    error: bool = Field(default=True, description="Always true for error bodies")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(CamelModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float
