"""
LMS Backend — Error Taxonomy Tests
===================================

What:  Every error kind carries its fixed status and code; constructors fill
       details the way the error pipeline expects.
"""

import pytest

from lms.exceptions import (
    STATUS_BY_CODE,
    ApiError,
    BadRequestError,
    ConflictError,
    ErrorCode,
    ForbiddenError,
    InternalError,
    InvalidCredentialsError,
    MustChangePasswordError,
    NotFoundError,
    RateLimitExceededError,
    UnauthorizedError,
    ValidationError,
)

EXPECTED = [
    (UnauthorizedError, ErrorCode.UNAUTHORIZED, 401),
    (InvalidCredentialsError, ErrorCode.INVALID_CREDENTIALS, 401),
    (ForbiddenError, ErrorCode.FORBIDDEN, 403),
    (MustChangePasswordError, ErrorCode.MUST_CHANGE_PASSWORD, 403),
    (NotFoundError, ErrorCode.NOT_FOUND, 404),
    (BadRequestError, ErrorCode.BAD_REQUEST, 400),
    (ValidationError, ErrorCode.VALIDATION_ERROR, 400),
    (ConflictError, ErrorCode.CONFLICT, 409),
    (RateLimitExceededError, ErrorCode.RATE_LIMIT_EXCEEDED, 429),
    (InternalError, ErrorCode.INTERNAL_ERROR, 500),
]


class TestTaxonomy:
    @pytest.mark.parametrize("error_cls,code,status", EXPECTED)
    def test_kind_has_fixed_code_and_status(self, error_cls, code, status):
        error = error_cls()
        assert error.code is code
        assert error.status_code == status
        assert isinstance(error, ApiError)

    def test_every_code_has_a_status(self):
        assert set(STATUS_BY_CODE) == set(ErrorCode)
        assert len(ErrorCode) == 10

    def test_code_override_derives_status(self):
        error = ApiError("Nope", code=ErrorCode.FORBIDDEN)
        assert error.status_code == 403
        assert error.message == "Nope"

    def test_empty_details_become_none(self):
        assert BadRequestError("x", details={}).details is None

    def test_only_internal_error_is_non_operational(self):
        assert InternalError.is_operational is False
        assert all(cls.is_operational for cls, _, _ in EXPECTED if cls is not InternalError)


class TestConstructors:
    def test_not_found_from_resource_name(self):
        error = NotFoundError(resource="group", resource_id=7)
        assert error.message == "Group not found"
        assert error.details == {"id": "7"}

    def test_not_found_with_message(self):
        error = NotFoundError("Group not found")
        assert error.message == "Group not found"
        assert error.details is None

    def test_validation_error_collects_issues(self):
        error = ValidationError(
            issues=[{"path": "name", "message": "Field required"}],
            field="year",
            message="Year out of range",
        )
        assert [issue["path"] for issue in error.issues] == ["name", "year"]
        assert error.details["issues"][1]["message"] == "Year out of range"

    def test_conflict_lists_fields(self):
        error = ConflictError("Email taken", fields=["email"])
        assert error.details == {"fields": ["email"]}

    def test_rate_limit_exposes_retry_after(self):
        error = RateLimitExceededError(retry_after=42)
        assert error.retry_after == 42
        assert error.details == {"retryAfter": 42}
        assert error.message == "Too many requests"

    def test_str_is_message(self):
        assert str(ForbiddenError("No access")) == "No access"
