"""
LMS Backend — API Error Taxonomy
=================================

What:  The closed set of error kinds an API response can carry, and the
       exception classes route handlers and services raise to produce them.
How:   Every ApiError carries an ErrorCode; the HTTP status is derived from the
       code through STATUS_BY_CODE, so a kind and its status cannot disagree.
       The error pipeline (lms.error_handling) turns these into the JSON
       envelope at the request boundary.
Who:   Raised by services, auth helpers, rate limiters and the adapters in
       lms.error_adapters; consumed exactly once by error_response().
When:  Whenever a request cannot be completed.

Exception Hierarchy:
    ApiError (base)
    ├── UnauthorizedError          → 401 UNAUTHORIZED
    ├── InvalidCredentialsError    → 401 INVALID_CREDENTIALS
    ├── ForbiddenError             → 403 FORBIDDEN
    ├── MustChangePasswordError    → 403 MUST_CHANGE_PASSWORD
    ├── NotFoundError              → 404 NOT_FOUND
    ├── BadRequestError            → 400 BAD_REQUEST
    ├── ValidationError            → 400 VALIDATION_ERROR
    ├── ConflictError              → 409 CONFLICT
    ├── RateLimitExceededError     → 429 RATE_LIMIT_EXCEEDED
    └── InternalError              → 500 INTERNAL_ERROR
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Sequence


class ErrorCode(str, Enum):
    """Symbolic error kinds. Values are what clients dispatch on."""

    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    FORBIDDEN = "FORBIDDEN"
    MUST_CHANGE_PASSWORD = "MUST_CHANGE_PASSWORD"
    NOT_FOUND = "NOT_FOUND"
    BAD_REQUEST = "BAD_REQUEST"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFLICT = "CONFLICT"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


STATUS_BY_CODE: Dict[ErrorCode, int] = {
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.INVALID_CREDENTIALS: 401,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.MUST_CHANGE_PASSWORD: 403,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.BAD_REQUEST: 400,
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.CONFLICT: 409,
    ErrorCode.RATE_LIMIT_EXCEEDED: 429,
    ErrorCode.INTERNAL_ERROR: 500,
}


class ApiError(Exception):
    """
    Base exception for every error the API reports to a client.

    Attributes:
        code:         ErrorCode of this failure
        status_code:  HTTP status, derived from code
        message:      Client-facing description
        details:      Optional structured payload (redacted before it is sent)
        is_operational: False for failures that indicate a bug rather than a
                      condition the client caused
    """

    default_code: ErrorCode = ErrorCode.INTERNAL_ERROR
    default_message: str = "Internal server error"
    is_operational: bool = True

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        code: Optional[ErrorCode] = None,
    ):
        self._code = ErrorCode(code) if code is not None else self.default_code
        self._message = message if message is not None else self.default_message
        self._details = dict(details) if details else None
        super().__init__(self._message)

    @property
    def code(self) -> ErrorCode:
        return self._code

    @property
    def status_code(self) -> int:
        return STATUS_BY_CODE[self._code]

    @property
    def message(self) -> str:
        return self._message

    @property
    def details(self) -> Optional[Dict[str, Any]]:
        return self._details

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self._code.value}, message={self._message!r})"


class UnauthorizedError(ApiError):
    """No valid session or credentials were presented."""

    default_code = ErrorCode.UNAUTHORIZED
    default_message = "Unauthorized"


class InvalidCredentialsError(ApiError):
    """A login attempt used an unknown account or the wrong password."""

    default_code = ErrorCode.INVALID_CREDENTIALS
    default_message = "Invalid credentials"


class ForbiddenError(ApiError):
    """The caller is authenticated but not permitted to do this."""

    default_code = ErrorCode.FORBIDDEN
    default_message = "Forbidden"


class MustChangePasswordError(ApiError):
    """The account is flagged for a password rotation before anything else."""

    default_code = ErrorCode.MUST_CHANGE_PASSWORD
    default_message = "You must change your password before continuing"


class NotFoundError(ApiError):
    """
    A referenced entity does not exist.

    Either pass a full message (``NotFoundError("Group not found")``) or name
    the resource (``NotFoundError(resource="group", resource_id=gid)``), which
    yields ``"Group not found"`` with the id in details.
    """

    default_code = ErrorCode.NOT_FOUND
    default_message = "Not found"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        resource: Optional[str] = None,
        resource_id: Optional[str] = None,
    ):
        if message is None and resource:
            message = f"{resource[:1].upper()}{resource[1:]} not found"
        if resource_id is not None:
            details = {**(details or {}), "id": str(resource_id)}
        super().__init__(message=message, details=details)


class BadRequestError(ApiError):
    """Malformed or unusable request."""

    default_code = ErrorCode.BAD_REQUEST
    default_message = "Bad request"


class ValidationError(ApiError):
    """
    Field-level validation failure.

    ``issues`` is a list of ``{"path": ..., "message": ...}`` dicts and ends up
    in ``details["issues"]``. A single-field failure can be raised with
    ``field=`` instead.

    Example response:
        {
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Validation failed",
                "statusCode": 400,
                "details": {"issues": [{"path": "name", "message": "Field required"}]}
            }
        }
    """

    default_code = ErrorCode.VALIDATION_ERROR
    default_message = "Validation failed"

    def __init__(
        self,
        message: Optional[str] = None,
        issues: Optional[Sequence[Dict[str, Any]]] = None,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        collected: List[Dict[str, Any]] = [dict(issue) for issue in issues or ()]
        if field:
            collected.append({"path": field, "message": message or self.default_message})
        ctx = dict(details or {})
        if collected:
            ctx["issues"] = collected
        super().__init__(message=message, details=ctx)

    @property
    def issues(self) -> List[Dict[str, Any]]:
        return list((self.details or {}).get("issues", []))


class ConflictError(ApiError):
    """Uniqueness or state conflict; ``fields`` names the offending columns."""

    default_code = ErrorCode.CONFLICT
    default_message = "Conflict"

    def __init__(
        self,
        message: Optional[str] = None,
        fields: Optional[Sequence[str]] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        ctx = dict(details or {})
        if fields:
            ctx["fields"] = list(fields)
        super().__init__(message=message, details=ctx)


class RateLimitExceededError(ApiError):
    """
    Raised by a RateLimiter when a client has used up its window.

    ``retry_after`` (seconds until the window resets) is exposed both as an
    attribute, for the Retry-After header, and as ``details["retryAfter"]``.
    """

    default_code = ErrorCode.RATE_LIMIT_EXCEEDED
    default_message = "Too many requests"

    def __init__(
        self,
        retry_after: Optional[int] = None,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        ctx = dict(details or {})
        if retry_after is not None:
            ctx["retryAfter"] = retry_after
        super().__init__(message=message, details=ctx)
        self.retry_after = retry_after


class InternalError(ApiError):
    """Unclassified failure. Its message is replaced outside development."""

    default_code = ErrorCode.INTERNAL_ERROR
    default_message = "Internal server error"
    is_operational = False
