"""
LMS Backend — Group Route Handlers
===================================

What:  CRUD for study groups under /api/groups.
How:   Thin handlers: extract parameters, delegate to GroupService. Every
       handler is wrapped with @with_error_handler, so NotFoundError,
       ConflictError and ORM failures come back as the standard envelope.

Rate limits:
    all routes   general `api` preset (RateLimitMiddleware)
    /search      additionally the `search` preset
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from lms.database import get_db_session
from lms.error_handling import with_error_handler
from lms.middleware.rate_limit import rate_limit
from lms.schemas.error import ErrorResponse
from lms.schemas.group import MAX_PAGE_SIZE, GroupCreate, GroupListResponse, GroupResponse
from lms.services.group_service import group_service
from lms.services.rate_limiter import search_limiter

logger = logging.getLogger(__name__)

# ── Router Configuration ──────────────────────────────────────────────────
router = APIRouter(prefix="/api/groups", tags=["Groups"])

_ERRORS = {
    400: {"description": "Invalid input", "model": ErrorResponse},
    429: {"description": "Rate limit exceeded", "model": ErrorResponse},
    500: {"description": "Server error", "model": ErrorResponse},
}


@router.get(
    "",
    response_model=GroupListResponse,
    responses=_ERRORS,
    summary="List active groups (page-number pagination)",
)
@with_error_handler
async def list_groups(
    page: int = Query(default=1, ge=1, description="1-based page number"),
    limit: int = Query(default=20, ge=1, le=MAX_PAGE_SIZE, description="Items per page"),
    db: AsyncSession = Depends(get_db_session),
):
    return await group_service.list_groups(db, page=page, limit=limit)


@router.get(
    "/search",
    response_model=List[GroupResponse],
    responses=_ERRORS,
    dependencies=[Depends(rate_limit(search_limiter))],
    summary="Search active groups by name or description",
)
@with_error_handler
async def search_groups(
    q: str = Query(min_length=1, max_length=100, description="Search text"),
    db: AsyncSession = Depends(get_db_session),
):
    return await group_service.search_groups(db, q)


@router.get(
    "/{group_id}",
    response_model=GroupResponse,
    responses={**_ERRORS, 404: {"description": "Group not found", "model": ErrorResponse}},
    summary="Get a single group",
)
@with_error_handler
async def get_group(group_id: int, db: AsyncSession = Depends(get_db_session)):
    group = await group_service.get_group(db, group_id)
    return GroupResponse.model_validate(group)


@router.post(
    "",
    response_model=GroupResponse,
    status_code=status.HTTP_201_CREATED,
    responses={**_ERRORS, 409: {"description": "Name already taken", "model": ErrorResponse}},
    summary="Create a group",
)
@with_error_handler
async def create_group(payload: GroupCreate, db: AsyncSession = Depends(get_db_session)):
    group = await group_service.create_group(db, payload)
    return GroupResponse.model_validate(group)


@router.delete(
    "/{group_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={**_ERRORS, 404: {"description": "Group not found", "model": ErrorResponse}},
    summary="Deactivate a group (soft delete)",
)
@with_error_handler
async def delete_group(group_id: int, db: AsyncSession = Depends(get_db_session)):
    await group_service.soft_delete_group(db, group_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
