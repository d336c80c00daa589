"""SQLAlchemy models. Importing this package registers every table with Base.metadata."""

from lms.models.group import Group
from lms.models.user import User

__all__ = ["Group", "User"]
