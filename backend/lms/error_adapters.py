"""
LMS Backend — Third-Party Error Adapters
=========================================

What:  Converts failures raised by the ORM (SQLAlchemy) and by the validation
       library (pydantic / FastAPI request validation) into ApiError.
How:   Each adapter inspects one concrete library type and returns the
       matching member of the taxonomy in lms.exceptions. Services wrap ORM
       work in translate_db_errors() so the conversion happens where the
       failure originates; the error pipeline only ever sees ApiError or
       a value it classifies as internal.
Who:   Used by services (translate_db_errors), by the registered FastAPI
       exception handlers and by lms.error_handling.to_api_error().

Integrity error mapping:
    SQLSTATE 23505 / "UNIQUE constraint failed"      → ConflictError (409)
    SQLSTATE 23503 / "FOREIGN KEY constraint failed" → BadRequestError (400)
    NoResultFound                                    → NotFoundError (404)
    anything else from SQLAlchemy                    → InternalError (500)

Framework HTTPException (unknown route, 405, ...) is mapped by status.
"""

import logging
import re
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError, NoResultFound, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from lms.exceptions import (
    ApiError,
    BadRequestError,
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    RateLimitExceededError,
    UnauthorizedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"

_UNIQUE_MARKERS = ("unique constraint failed", "duplicate key value")
_FOREIGN_KEY_MARKERS = ("foreign key constraint failed", "violates foreign key constraint")

# SQLite:      UNIQUE constraint failed: groups.name, groups.year
# PostgreSQL:  DETAIL:  Key (email)=(a@b.c) already exists.
_SQLITE_UNIQUE_COLUMNS = re.compile(r"UNIQUE constraint failed: ([\w.,\s]+)", re.IGNORECASE)
_POSTGRES_KEY_COLUMNS = re.compile(r"Key \(([^)]+)\)=")

ROOT_PATH = "__root__"


# ══════════════════════════════════════════════════════════════════════════
# Validation library
# ══════════════════════════════════════════════════════════════════════════

def _format_loc(loc: Sequence[Any]) -> str:
    path = ".".join(str(part) for part in loc if part != "")
    return path or ROOT_PATH


def from_validation_error(
    exc: Union[PydanticValidationError, RequestValidationError],
    message: str = "Validation failed",
) -> ValidationError:
    """One issue per library error: ``{"path", "message", "type"}``."""
    raw = exc.errors(include_url=False) if isinstance(exc, PydanticValidationError) else exc.errors()
    issues: List[Dict[str, Any]] = []
    for err in raw:
        issue = {
            "path": _format_loc(err.get("loc", ())),
            "message": str(err.get("msg") or "Invalid value"),
        }
        if err.get("type"):
            issue["type"] = str(err["type"])
        issues.append(issue)
    return ValidationError(message=message, issues=issues)


# ══════════════════════════════════════════════════════════════════════════
# ORM
# ══════════════════════════════════════════════════════════════════════════

def _sqlstate(exc: IntegrityError) -> Optional[str]:
    orig = exc.orig
    for attr in ("sqlstate", "pgcode"):
        value = getattr(orig, attr, None)
        if value:
            return str(value)
    return None


def _conflicting_fields(text: str) -> List[str]:
    match = _SQLITE_UNIQUE_COLUMNS.search(text)
    if match:
        columns = [part.strip() for part in match.group(1).split(",") if part.strip()]
        return [column.rsplit(".", 1)[-1] for column in columns]
    match = _POSTGRES_KEY_COLUMNS.search(text)
    if match:
        return [column.strip() for column in match.group(1).split(",") if column.strip()]
    return []


def from_integrity_error(exc: IntegrityError) -> ApiError:
    state = _sqlstate(exc)
    text = str(exc.orig) if exc.orig is not None else str(exc)
    lowered = text.lower()

    if state == UNIQUE_VIOLATION or any(marker in lowered for marker in _UNIQUE_MARKERS):
        return ConflictError(
            message="A record with this value already exists",
            fields=_conflicting_fields(text),
        )
    if state == FOREIGN_KEY_VIOLATION or any(marker in lowered for marker in _FOREIGN_KEY_MARKERS):
        return BadRequestError(message="Referenced record does not exist")

    logger.error("Unclassified integrity error (sqlstate=%s): %s", state, text)
    return InternalError(message="A database error occurred. Please try again later.")


def from_db_error(exc: SQLAlchemyError) -> ApiError:
    """Map any SQLAlchemy exception onto the taxonomy."""
    if isinstance(exc, IntegrityError):
        return from_integrity_error(exc)
    if isinstance(exc, NoResultFound):
        return NotFoundError(message="Record not found")

    logger.error("Database error: %s", exc, exc_info=exc)
    return InternalError(message="A database error occurred. Please try again later.")


@contextmanager
def translate_db_errors() -> Iterator[None]:
    """
    Re-raise SQLAlchemy failures inside the block as ApiError.

    Usage (inside an async service method):
        with translate_db_errors():
            db.add(group)
            await db.flush()
    """
    try:
        yield
    except SQLAlchemyError as exc:
        raise from_db_error(exc) from exc


# ══════════════════════════════════════════════════════════════════════════
# Framework HTTP errors
# ══════════════════════════════════════════════════════════════════════════

_CODE_BY_HTTP_STATUS = {
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
    409: ConflictError,
    422: ValidationError,
}


def from_http_exception(exc: StarletteHTTPException) -> ApiError:
    """
    Map Starlette/FastAPI HTTPException (unknown routes, wrong methods,
    HTTPException raised by third-party dependencies) onto the taxonomy.
    Statuses without a kind of their own become BAD_REQUEST (4xx) or
    INTERNAL_ERROR (5xx).
    """
    message = exc.detail if isinstance(exc.detail, str) else None
    if exc.status_code == 429:
        return RateLimitExceededError(message=message)
    error_cls = _CODE_BY_HTTP_STATUS.get(exc.status_code)
    if error_cls is not None:
        return error_cls(message=message)
    if exc.status_code >= 500:
        return InternalError(message=message)
    return BadRequestError(message=message)
