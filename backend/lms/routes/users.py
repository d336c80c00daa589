"""
LMS Backend — User Route Handlers
==================================

What:  POST /api/users (account creation, admin only).
How:   The caller authenticates with HTTP Basic credentials and must hold the
       admin role (see lms.dependencies); the admin chooses the new
       account's role and whether it must change its password.

Error mapping:
    no credentials       → 401 UNAUTHORIZED
    caller below admin   → 403 FORBIDDEN
    duplicate email      → 409 CONFLICT, details.fields = ["email"]
    unknown group_id     → 400 BAD_REQUEST "Referenced record does not exist"
    invalid body         → 400 VALIDATION_ERROR, one issue per field
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from lms.database import get_db_session
from lms.dependencies import caller_with_role
from lms.error_handling import with_error_handler
from lms.schemas.error import ErrorResponse
from lms.schemas.user import UserCreate, UserResponse
from lms.services.user_service import user_service

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(caller_with_role("admin"))],
    responses={
        400: {"description": "Invalid input or unknown group", "model": ErrorResponse},
        401: {"description": "Missing or invalid credentials", "model": ErrorResponse},
        403: {"description": "Caller is not an admin", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
        429: {"description": "Rate limit exceeded", "model": ErrorResponse},
    },
    summary="Create a user account",
)
@with_error_handler
async def create_user(payload: UserCreate, db: AsyncSession = Depends(get_db_session)):
    user = await user_service.create_user(db, payload)
    return UserResponse.model_validate(user)
