"""
Pydantic models shared by the dashboard API.

Endpoint-specific request bodies live beside their routes.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class HealthCheck(BaseModel):
    """Health check response."""

    status: str = Field(default="healthy", description="Overall system status")
    version: str = Field(default="0.1.0", description="API version")
    timestamp: datetime = Field(default_factory=datetime.now, description="Check timestamp")
    services: dict[str, str] = Field(
        default_factory=dict, description="Individual service statuses"
    )


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str = Field(..., description="Error message")
    code: str = Field(default="INTERNAL_ERROR", description="Error code")
