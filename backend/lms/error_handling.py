"""
LMS Backend — API Error Pipeline
=================================

What:  The single place where a failure becomes an HTTP response.
How:   to_api_error() classifies any value into the closed taxonomy,
       build_error_body() renders the JSON envelope (with redacted details),
       error_response() combines both and never raises. Route handlers are
       wrapped with @with_error_handler; errors raised before the handler
       runs (dependencies, request validation, unknown routes) reach the same
       error_response() through register_exception_handlers().
Who:   Route decorators, the FastAPI app factory, RateLimitMiddleware.

Envelope:
    {
        "error": {
            "code": "NOT_FOUND",
            "message": "Group not found",
            "statusCode": 404,
            "timestamp": "2026-01-15T12:00:00.000000+00:00",
            "path": "/api/groups/7",            (when known)
            "requestId": "a1b2c3d4",           (when known)
            "details": {...}                    (redacted; internal errors: development only)
        }
    }

Classification order:
    1. ApiError                              → as raised
    2. pydantic / FastAPI validation errors  → VALIDATION_ERROR (400)
    3. SQLAlchemy errors                     → CONFLICT / BAD_REQUEST / NOT_FOUND / INTERNAL
    4. Starlette HTTPException               → by status
    5. any other exception                   → INTERNAL_ERROR (500)
    6. non-exception value                   → INTERNAL_ERROR (500), generic message
"""

import functools
import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, TypeVar

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse, Response

from lms.config import settings
from lms.error_adapters import from_db_error, from_http_exception, from_validation_error
from lms.exceptions import ApiError, ErrorCode, InternalError, RateLimitExceededError
from lms.middleware.request_id import request_id_var, request_path_var

logger = logging.getLogger(__name__)

REDACTED = "[REDACTED]"
SENSITIVE_KEY_FRAGMENTS = ("password", "token", "secret", "apikey", "api_key", "accesstoken")
GENERIC_INTERNAL_MESSAGE = "An unexpected error occurred"

T = TypeVar("T")


# ══════════════════════════════════════════════════════════════════════════
# Redaction
# ══════════════════════════════════════════════════════════════════════════

def _is_sensitive(key: Any) -> bool:
    lowered = str(key).lower()
    return any(fragment in lowered for fragment in SENSITIVE_KEY_FRAGMENTS)


def redact(value: Any) -> Any:
    """
    Return a copy of ``value`` in which every mapping key whose name contains
    a sensitive fragment (case-insensitive) maps to ``"[REDACTED]"``.
    Recurses through nested mappings, lists and tuples.
    """
    if isinstance(value, Mapping):
        return {
            key: REDACTED if _is_sensitive(key) else redact(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact(item) for item in value]
    return value


# ══════════════════════════════════════════════════════════════════════════
# Classification
# ══════════════════════════════════════════════════════════════════════════

def to_api_error(value: object, *, debug: bool = False) -> ApiError:
    """Classify any raised (or otherwise caught) value. Total: never raises."""
    if isinstance(value, ApiError):
        return value
    if isinstance(value, (PydanticValidationError, RequestValidationError)):
        return from_validation_error(value)
    if isinstance(value, SQLAlchemyError):
        return from_db_error(value)
    if isinstance(value, StarletteHTTPException):
        return from_http_exception(value)
    if isinstance(value, BaseException):
        if not debug:
            return InternalError(message=GENERIC_INTERNAL_MESSAGE)
        stack = "".join(traceback.format_exception(type(value), value, value.__traceback__))
        return InternalError(
            message=str(value) or type(value).__name__,
            details={"stack": stack},
        )
    return InternalError(message=GENERIC_INTERNAL_MESSAGE)


def build_error_body(
    error: ApiError,
    *,
    debug: bool,
    path: Optional[str] = None,
    request_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Render the JSON envelope for an already-classified error."""
    is_internal = error.code is ErrorCode.INTERNAL_ERROR
    message = error.message if (debug or not is_internal) else GENERIC_INTERNAL_MESSAGE

    body: Dict[str, Any] = {
        "code": error.code.value,
        "message": message,
        "statusCode": error.status_code,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if path:
        body["path"] = path
    if request_id:
        body["requestId"] = request_id
    if error.details and (debug or not is_internal):
        body["details"] = jsonable_encoder(redact(error.details))
    return {"error": body}


def _fallback_body() -> Dict[str, Any]:
    return {
        "error": {
            "code": ErrorCode.INTERNAL_ERROR.value,
            "message": GENERIC_INTERNAL_MESSAGE,
            "statusCode": 500,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
    }


def _log_error(error: ApiError, original: object, rid: str, path: Optional[str]) -> None:
    if error.status_code >= 500:
        exc_info = original if isinstance(original, BaseException) else None
        logger.error(
            "[%s] %s %s: %s (raised %r)",
            rid,
            path or "-",
            error.code.value,
            error.message,
            original,
            exc_info=exc_info,
        )
    elif error.code is ErrorCode.RATE_LIMIT_EXCEEDED:
        logger.info("[%s] %s rate limited: %s", rid, path or "-", error.message)
    else:
        logger.warning("[%s] %s %s: %s", rid, path or "-", error.code.value, error.message)


def error_response(
    value: object,
    *,
    path: Optional[str] = None,
    request_id: Optional[str] = None,
    debug: Optional[bool] = None,
) -> JSONResponse:
    """
    Convert any caught value into the error envelope and matching status.

    Args:
        value: whatever was raised (or caught) while handling the request
        path:  request path for the envelope; defaults to the path recorded
               by RequestIDMiddleware
        request_id: request ID for the envelope; defaults to the ID recorded
               by RequestIDMiddleware
        debug: include internal messages, stack traces and internal details;
               defaults to settings.debug (environment == "development")

    This is the last line of defense: if classification or rendering fails,
    a fixed INTERNAL_ERROR envelope is returned instead of raising.
    """
    try:
        if debug is None:
            debug = settings.debug
        rid = request_id or request_id_var.get("")
        if path is None:
            path = request_path_var.get("") or None

        error = to_api_error(value, debug=debug)
        _log_error(error, value, rid, path)

        headers: Dict[str, str] = {}
        if rid:
            headers["X-Request-ID"] = rid
        if isinstance(error, RateLimitExceededError) and error.retry_after is not None:
            headers["Retry-After"] = str(error.retry_after)

        return JSONResponse(
            status_code=error.status_code,
            content=build_error_body(error, debug=debug, path=path, request_id=rid),
            headers=headers or None,
        )
    except Exception:
        logger.critical("Error translation failed for %r", value, exc_info=True)
        return JSONResponse(status_code=500, content=_fallback_body())


# ══════════════════════════════════════════════════════════════════════════
# Boundary: route wrapper and app-level handlers
# ══════════════════════════════════════════════════════════════════════════

def _find_request_path(args: tuple, kwargs: Dict[str, Any]) -> Optional[str]:
    for candidate in (*args, *kwargs.values()):
        if isinstance(candidate, Request):
            return candidate.url.path
    return None


def with_error_handler(
    handler: Callable[..., Awaitable[T]],
) -> Callable[..., Awaitable[Any]]:
    """
    Wrap an async route handler so any exception it raises is returned as an
    error envelope instead of propagating.

    The wrapper keeps the handler's signature (functools.wraps), so FastAPI
    still resolves its parameters and dependencies:

        @router.get("/groups/{group_id}", response_model=GroupResponse)
        @with_error_handler
        async def get_group(group_id: int, db: AsyncSession = Depends(get_db_session)):
            return await group_service.get_group(db, group_id)
    """

    @functools.wraps(handler)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await handler(*args, **kwargs)
        except Exception as exc:
            return error_response(exc, path=_find_request_path(args, kwargs))

    return wrapper


async def _handle_exception(request: Request, exc: Exception) -> Response:
    # request.state is stored in the scope and outlives RequestIDMiddleware
    return error_response(
        exc,
        path=request.url.path,
        request_id=getattr(request.state, "request_id", None),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Route every error that escapes a handler (or is raised before one runs)
    through error_response().

    Handled types:
        ApiError                → taxonomy as raised (auth, rate limit dependencies)
        RequestValidationError  → VALIDATION_ERROR with one issue per field
        SQLAlchemyError         → ORM adapter
        HTTPException           → mapped by status (unknown route → NOT_FOUND)
        Exception               → INTERNAL_ERROR

    The Exception handler is installed on Starlette's ServerErrorMiddleware,
    which sits outside every user middleware. It still renders the envelope
    with the request ID and X-Request-ID header, but Starlette re-raises the
    exception after the response is sent so the server logs it as well.
    Wrap routes with with_error_handler to keep such failures in-band.
    """
    for exc_type in (
        ApiError,
        RequestValidationError,
        SQLAlchemyError,
        StarletteHTTPException,
        Exception,
    ):
        app.add_exception_handler(exc_type, _handle_exception)
