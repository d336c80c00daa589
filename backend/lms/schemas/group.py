"""
LMS Backend — Group Request/Response Schemas
=============================================

What:  API contract for /api/groups.
How:   Request models validate input (failures become VALIDATION_ERROR via
       the request-validation adapter); response models read from ORM rows
       with `from_attributes`.
"""

import math
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_PAGE_SIZE = 100


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class GroupCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100, description="Unique group name")
    description: Optional[str] = Field(default=None, max_length=2000)
    semester: Optional[int] = Field(default=None, ge=1, le=12)
    year: Optional[int] = Field(default=None, ge=2000, le=2100)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name must not be blank")
        return v


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class GroupResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    semester: Optional[int] = None
    year: Optional[int] = None
    is_active: bool
    created_at: datetime


class PaginationMeta(BaseModel):
    """
    Page-number pagination state.

    total_pages is ceil(total / limit); an empty collection has zero pages,
    so page 1 of it reports neither a next nor a previous page.
    """

    model_config = ConfigDict(populate_by_name=True)

    page: int
    limit: int
    total: int
    total_pages: int = Field(alias="totalPages")
    has_next_page: bool = Field(alias="hasNextPage")
    has_previous_page: bool = Field(alias="hasPreviousPage")

    @classmethod
    def create(cls, page: int, limit: int, total: int) -> "PaginationMeta":
        total_pages = math.ceil(total / limit) if limit else 0
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_previous_page=page > 1,
        )


class GroupListResponse(BaseModel):
    data: List[GroupResponse]
    meta: PaginationMeta
