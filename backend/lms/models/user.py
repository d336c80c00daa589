"""
LMS Backend — User SQLAlchemy Model
====================================

What:  ORM model for the `users` table (students, lecturers, staff).

Constraints:
    - email is unique → duplicate emails are reported as CONFLICT
    - group_id references groups.id → unknown groups are reported as
      BAD_REQUEST ("Referenced record does not exist")
    - must_change_password blocks login with MUST_CHANGE_PASSWORD
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from lms.database import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)

    # One of lms.auth.ROLE_HIERARCHY
    role: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default="student",
        server_default=text("'student'"),
    )

    group_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("groups.id"),
        nullable=True,
        default=None,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )
    must_change_password: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
