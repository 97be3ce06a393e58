"""
Natours Backend — Shared Response Schemas
===========================================

What:  The two envelopes every endpoint answers with.
How:   Successful responses use {"status": "success", ...}; every error,
       whatever its origin, is shaped by the global error handler into
       ErrorResponse.

Example error (production):
    {"status": "fail", "message": "Can't find /does/not/exist on this server!"}
"""

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    status: Literal["fail", "error"] = Field(description="fail for 4xx, error for 5xx")
    message: str = Field(description="Human-readable error description")
    error: Optional[Dict[str, Any]] = Field(
        default=None, description="Failure detail (development only)"
    )
    stack: Optional[str] = Field(default=None, description="Stack trace (development only)")


class SuccessResponse(BaseModel):
    status: Literal["success"] = "success"
    requested_at: Optional[str] = Field(default=None, description="Request arrival time (UTC)")
    results: Optional[int] = Field(default=None, description="Item count for list endpoints")
    data: Dict[str, Any]
