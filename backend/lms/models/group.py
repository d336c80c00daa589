"""
LMS Backend — Group SQLAlchemy Model
=====================================

What:  ORM model for the `groups` table (a study group of students).
Who:   GroupService for CRUD; users reference a group through users.group_id.

Constraints:
    - name is unique → duplicate names surface as IntegrityError and are
      reported to clients as CONFLICT
    - is_active implements soft delete; inactive groups are hidden from
      listings but keep their rows (and their users' references)
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from lms.database import Base


class Group(Base):
    __tablename__ = "groups"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        unique=True,
        comment="Display name, e.g. 'CS-101'; unique across all groups",
    )

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default=None)

    semester: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, default=None)
    year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, default=None)

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=text("true"),
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    def __repr__(self) -> str:
        return f"<Group(id={self.id}, name='{self.name}', active={self.is_active})>"
