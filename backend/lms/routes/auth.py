"""
LMS Backend — Authentication Route
===================================

What:  POST /api/auth/login, password login returning the user profile.
How:   Guarded by the `auth` rate limit preset (5 attempts / 15 minutes per
       client) on top of the general `api` preset. The sixth attempt inside
       the window gets 429 with a Retry-After header.

Session and token issuance are handled outside this service.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lms.database import get_db_session
from lms.error_handling import with_error_handler
from lms.middleware.rate_limit import rate_limit
from lms.schemas.error import ErrorResponse
from lms.schemas.user import LoginRequest, UserResponse
from lms.services.rate_limiter import auth_limiter
from lms.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/login",
    response_model=UserResponse,
    dependencies=[Depends(rate_limit(auth_limiter))],
    responses={
        401: {"description": "Invalid email or password", "model": ErrorResponse},
        403: {"description": "Account deactivated or password change required", "model": ErrorResponse},
        429: {"description": "Too many login attempts", "model": ErrorResponse},
    },
    summary="Log in with email and password",
)
@with_error_handler
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db_session)):
    user = await user_service.authenticate(db, payload.email, payload.password)
    logger.info("User %s logged in", user.id)
    return UserResponse.model_validate(user)
