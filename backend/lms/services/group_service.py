"""
LMS Backend — Group Service
============================

What:  Business logic for study groups: paginated listing, search, lookup,
       creation and soft deletion.
How:   Stateless; every method receives the request's AsyncSession. Writes
       run inside translate_db_errors() and flush before returning so
       constraint violations surface here (as ConflictError / BadRequestError)
       rather than at commit time in get_db_session().
Who:   Called by routes/groups.py.

Soft delete:
    DELETE sets is_active = false. Inactive groups are excluded from every
    read path and behave as "not found".
"""

import logging
from typing import List

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from lms.error_adapters import translate_db_errors
from lms.exceptions import NotFoundError
from lms.models.group import Group
from lms.schemas.group import (
    GroupCreate,
    GroupListResponse,
    GroupResponse,
    PaginationMeta,
)

logger = logging.getLogger(__name__)

SEARCH_RESULT_LIMIT = 20


class GroupService:
    async def list_groups(
        self, db: AsyncSession, page: int = 1, limit: int = 20
    ) -> GroupListResponse:
        """
        One page of active groups ordered by name.

        Args:
            page:  1-based page number (validated ≥ 1 by the route)
            limit: page size (validated 1..100 by the route)
        """
        with translate_db_errors():
            total = (
                await db.execute(
                    select(func.count(Group.id)).where(Group.is_active.is_(True))
                )
            ).scalar() or 0

            result = await db.execute(
                select(Group)
                .where(Group.is_active.is_(True))
                .order_by(Group.name)
                .offset((page - 1) * limit)
                .limit(limit)
            )
            groups = list(result.scalars().all())

        return GroupListResponse(
            data=[GroupResponse.model_validate(g) for g in groups],
            meta=PaginationMeta.create(page=page, limit=limit, total=total),
        )

    async def search_groups(self, db: AsyncSession, query: str) -> List[GroupResponse]:
        """Case-insensitive substring match on name and description. % and _ match literally."""
        term = query.strip()
        with translate_db_errors():
            result = await db.execute(
                select(Group)
                .where(Group.is_active.is_(True))
                .where(
                    or_(
                        Group.name.icontains(term, autoescape=True),
                        Group.description.icontains(term, autoescape=True),
                    )
                )
                .order_by(Group.name)
                .limit(SEARCH_RESULT_LIMIT)
            )
            groups = list(result.scalars().all())
        return [GroupResponse.model_validate(g) for g in groups]

    async def get_group(self, db: AsyncSession, group_id: int) -> Group:
        with translate_db_errors():
            group = (
                await db.execute(
                    select(Group).where(Group.id == group_id, Group.is_active.is_(True))
                )
            ).scalar_one_or_none()

        if group is None:
            raise NotFoundError("Group not found", resource_id=group_id)
        return group

    async def create_group(self, db: AsyncSession, payload: GroupCreate) -> Group:
        group = Group(
            name=payload.name,
            description=payload.description,
            semester=payload.semester,
            year=payload.year,
        )
        with translate_db_errors():
            db.add(group)
            await db.flush()
            await db.refresh(group)

        logger.info("Group created: id=%s name=%s", group.id, group.name)
        return group

    async def soft_delete_group(self, db: AsyncSession, group_id: int) -> None:
        group = await self.get_group(db, group_id)
        with translate_db_errors():
            group.is_active = False
            await db.flush()
        logger.info("Group deactivated: id=%s", group_id)


# ── Singleton Instance ────────────────────────────────────────────────────
group_service = GroupService()
