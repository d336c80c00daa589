"""
LMS Backend — Roles & Credentials
==================================

What:  Role hierarchy checks and password hashing used by the user routes.
How:   Role checks raise ForbiddenError / MustChangePasswordError from
       lms.exceptions; the error pipeline turns them into 403 responses.
       Passwords are stored as bcrypt hashes (``$2b$<rounds>$...``).
"""

from typing import Protocol

import bcrypt

from lms.exceptions import ForbiddenError, MustChangePasswordError

# Higher number = more permissions
ROLE_HIERARCHY = {
    "admin": 100,
    "education_office_head": 90,
    "department_admin": 80,
    "lector": 50,
    "co_lecturer": 45,
    "assistant": 40,
    "mentor": 30,
    "student": 10,
}

BCRYPT_ROUNDS = 12
# bcrypt only reads the first 72 bytes of a password
BCRYPT_MAX_PASSWORD_BYTES = 72


class HasRole(Protocol):
    role: str
    must_change_password: bool


def has_role(user_role: str, required_role: str) -> bool:
    """True when ``user_role`` is ``required_role`` or ranks above it."""
    return ROLE_HIERARCHY.get(user_role, 0) >= ROLE_HIERARCHY[required_role]


def require_role(user: HasRole, required_role: str) -> None:
    if not has_role(user.role, required_role):
        raise ForbiddenError(f"This action requires {required_role} role or higher")


def check_password_change_required(user: HasRole) -> None:
    if user.must_change_password:
        raise MustChangePasswordError()


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_PASSWORD_BYTES]


def hash_password(password: str, *, rounds: int = BCRYPT_ROUNDS) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=rounds)).decode("ascii")


def verify_password(password: str, encoded: str) -> bool:
    """Check ``password`` against a hash produced by hash_password()."""
    try:
        return bcrypt.checkpw(_password_bytes(password), encoded.encode("ascii"))
    except ValueError:
        # Malformed or non-bcrypt hash
        return False
