"""
ParcelFlow Backend — Shared Response Schemas
==============================================

What:  The JSON envelope every endpoint answers with, and the health payload.

Envelope shape:
    success:  {"success": true,  "message": "...", "data": {...}}
    failure:  {"success": false, "error": "not_found", "message": "...",
               "details": {...}, "request_id": "a1b2c3d4"}
"""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    """Successful response wrapper."""
    success: bool = Field(default=True)
    message: Optional[str] = Field(default=None, description="Human-readable outcome")
    data: Optional[T] = Field(default=None, description="Operation payload")


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.
    Who:   Produced by the exception handlers in main.py.
    """
    success: bool = Field(default=False)
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
