"""
LMS Backend — Caller Identity Dependencies
===========================================

What:  FastAPI dependencies that identify the caller and enforce roles.
How:   The caller presents HTTP Basic credentials (email / password), which
       are checked by user_service.authenticate(). Missing credentials give
       401 UNAUTHORIZED; a caller below the required role gets 403 FORBIDDEN.
Who:   Used by routes that change accounts (routes/users.py).

Usage:
    @router.post("", dependencies=[Depends(caller_with_role("admin"))])
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from lms.auth import require_role
from lms.database import get_db_session
from lms.exceptions import UnauthorizedError
from lms.models.user import User
from lms.services.user_service import user_service

basic_auth = HTTPBasic(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPBasicCredentials] = Depends(basic_auth),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    if credentials is None:
        raise UnauthorizedError("Authentication required")
    return await user_service.authenticate(db, credentials.username, credentials.password)


def caller_with_role(required_role: str):
    """Dependency factory: the authenticated caller, at ``required_role`` or above."""

    async def dependency(user: User = Depends(get_current_user)) -> User:
        require_role(user, required_role)
        return user

    return dependency
