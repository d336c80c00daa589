"""
LMS Backend — User Service
===========================

What:  Account creation and password login.
How:   Password hashing and checks run in a worker thread. Inserts flush
       inside translate_db_errors() so a duplicate email becomes
       ConflictError and an unknown group_id becomes
       BadRequestError("Referenced record does not exist").
Who:   Called by routes/users.py and routes/auth.py.

Login outcomes:
    unknown email / wrong password → InvalidCredentialsError (same message
                                     for both, no account enumeration)
                                     Unknown emails are checked against a
                                     throwaway hash so both take equal time.
    inactive account               → ForbiddenError
    must_change_password set       → MustChangePasswordError
"""

import asyncio
import functools
import logging
import secrets
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from lms.auth import check_password_change_required, hash_password, verify_password
from lms.error_adapters import translate_db_errors
from lms.exceptions import ForbiddenError, InvalidCredentialsError
from lms.models.user import User
from lms.schemas.user import UserCreate

logger = logging.getLogger(__name__)


@functools.lru_cache(maxsize=1)
def _unknown_user_hash() -> str:
    return hash_password(secrets.token_urlsafe(16))


def _check_password(password: str, encoded: Optional[str]) -> bool:
    """verify_password(), against a throwaway hash when there is no account."""
    return verify_password(password, encoded if encoded is not None else _unknown_user_hash())


class UserService:
    async def create_user(self, db: AsyncSession, payload: UserCreate) -> User:
        password_hash = await asyncio.to_thread(hash_password, payload.password)
        user = User(
            email=payload.email.lower(),
            password_hash=password_hash,
            first_name=payload.first_name,
            last_name=payload.last_name,
            role=payload.role,
            group_id=payload.group_id,
            must_change_password=payload.must_change_password,
        )
        with translate_db_errors():
            db.add(user)
            await db.flush()
            await db.refresh(user)

        logger.info("User created: id=%s role=%s", user.id, user.role)
        return user

    async def authenticate(self, db: AsyncSession, email: str, password: str) -> User:
        with translate_db_errors():
            user = (
                await db.execute(select(User).where(func.lower(User.email) == email.lower()))
            ).scalar_one_or_none()

        encoded = user.password_hash if user is not None else None
        password_ok = await asyncio.to_thread(_check_password, password, encoded)
        if user is None or not password_ok:
            logger.info("Failed login attempt for %s", email)
            raise InvalidCredentialsError("Invalid email or password")

        if not user.is_active:
            raise ForbiddenError("Account is deactivated")

        check_password_change_required(user)
        return user


# ── Singleton Instance ────────────────────────────────────────────────────
user_service = UserService()
