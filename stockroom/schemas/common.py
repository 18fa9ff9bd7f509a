"""
Stockroom — Shared Response Schemas
=====================================

What:  Error and health response models used by every service.
"""

from typing import Optional

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Plain acknowledgement, e.g. "Order event published!"."""
    message: str


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "validation_error",
            "message": "Item name is required.",
            "details": {"field": "name"},
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """
    Health check response.

    `database` is "not_used" for services that never talk to the store
    (orders, users), so their health does not depend on it.
    """
    status: str = Field(description="Overall service status: healthy, unhealthy")
    service: str = Field(description="Which service this process runs")
    version: str = Field(description="Application version")
    database: str = Field(description="connected, disconnected, or not_used")
    uptime_seconds: float = Field(description="Seconds since service started")
