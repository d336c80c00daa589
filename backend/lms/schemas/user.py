"""
LMS Backend — User & Login Schemas
===================================

What:  API contract for POST /api/users and POST /api/auth/login.
       password / password_hash never appear in a response model.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from lms.auth import ROLE_HIERARCHY


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    role: str = Field(default="student")
    group_id: Optional[int] = Field(default=None, description="Existing group id")
    must_change_password: bool = False

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: str) -> str:
        if v not in ROLE_HIERARCHY:
            raise ValueError(f"Unknown role '{v}'. Must be one of: {', '.join(ROLE_HIERARCHY)}")
        return v


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    first_name: str
    last_name: str
    role: str
    group_id: Optional[int] = None
    is_active: bool
    must_change_password: bool
    created_at: datetime
