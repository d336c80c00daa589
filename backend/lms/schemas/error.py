"""
LMS Backend — Error Envelope Schemas
=====================================

What:  Pydantic description of the JSON body every failed request returns.
Who:   Referenced in route `responses=` for OpenAPI docs; the body itself is
       rendered by lms.error_handling.build_error_body().

Example:
    {
        "error": {
            "code": "NOT_FOUND",
            "message": "Group not found",
            "statusCode": 404,
            "timestamp": "2026-01-15T12:00:00+00:00",
            "path": "/api/groups/42",
            "requestId": "a1b2c3d4"
        }
    }
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from lms.exceptions import ErrorCode


class ErrorBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    code: ErrorCode = Field(description="Machine-readable error kind")
    message: str = Field(description="Human-readable description")
    status_code: int = Field(alias="statusCode", description="HTTP status of the response")
    timestamp: datetime = Field(description="When the error was rendered (UTC ISO 8601)")
    path: Optional[str] = Field(default=None, description="Request path")
    request_id: Optional[str] = Field(
        default=None, alias="requestId", description="Correlation ID (X-Request-ID)"
    )
    details: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Structured context with sensitive keys redacted",
    )


class ErrorResponse(BaseModel):
    error: ErrorBody
