"""
LMS Backend — Service Unit Tests
=================================

What:  GroupService and UserService business rules.
How:   Mock DB sessions for control flow; the in-memory database where the
       behaviour depends on real constraints.

What we test:
    ✅ Missing / inactive group raises NotFoundError("Group not found")
    ✅ Constraint violations surface as ConflictError / BadRequestError
    ✅ Login outcome precedence
    ✅ Password checks run off the event loop, unknown emails included
"""

import asyncio
import time
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import IntegrityError

from lms.auth import hash_password
from lms.exceptions import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    InvalidCredentialsError,
    MustChangePasswordError,
    NotFoundError,
)
from lms.models.group import Group
from lms.models.user import User
from lms.schemas.group import GroupCreate, PaginationMeta
from lms.schemas.user import UserCreate
from lms.services.group_service import GroupService
from lms.services.user_service import UserService


class TestGroupServiceGet:
    def setup_method(self):
        self.service = GroupService()

    @pytest.mark.asyncio
    async def test_get_group_not_found(self, mock_db_session):
        """Missing group should raise NotFoundError with the standard message."""
        mock_result = MagicMock()
        mock_result.scalar_one_or_none.return_value = None
        mock_db_session.execute.return_value = mock_result

        with pytest.raises(NotFoundError) as exc_info:
            await self.service.get_group(mock_db_session, 5)

        assert exc_info.value.message == "Group not found"
        assert exc_info.value.details == {"id": "5"}

    @pytest.mark.asyncio
    async def test_flush_failure_translated(self, mock_db_session):
        """IntegrityError raised by flush leaves the service as ConflictError."""
        mock_db_session.flush.side_effect = IntegrityError(
            "INSERT", {}, Exception("UNIQUE constraint failed: groups.name")
        )

        with pytest.raises(ConflictError):
            await self.service.create_group(mock_db_session, GroupCreate(name="CS-101"))

        mock_db_session.add.assert_called_once()


class TestGroupServiceDatabase:
    def setup_method(self):
        self.service = GroupService()

    @pytest.mark.asyncio
    async def test_create_then_soft_delete(self, db_session):
        group = await self.service.create_group(db_session, GroupCreate(name="  CS-101 "))
        assert group.name == "CS-101"
        assert group.is_active is True

        await self.service.soft_delete_group(db_session, group.id)

        with pytest.raises(NotFoundError):
            await self.service.get_group(db_session, group.id)

    @pytest.mark.asyncio
    async def test_duplicate_name(self, db_session):
        await self.service.create_group(db_session, GroupCreate(name="CS-101"))
        with pytest.raises(ConflictError) as exc_info:
            await self.service.create_group(db_session, GroupCreate(name="CS-101"))
        assert exc_info.value.details == {"fields": ["name"]}

    @pytest.mark.asyncio
    async def test_list_excludes_inactive(self, db_session):
        db_session.add_all(
            [Group(name="A"), Group(name="B", is_active=False), Group(name="C")]
        )
        await db_session.flush()

        result = await self.service.list_groups(db_session, page=1, limit=10)

        assert [g.name for g in result.data] == ["A", "C"]
        assert result.meta.total == 2

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive(self, db_session):
        db_session.add_all([Group(name="Physics-1"), Group(name="Chemistry-1")])
        await db_session.flush()

        result = await self.service.search_groups(db_session, "PHYS")

        assert [g.name for g in result] == ["Physics-1"]

    @pytest.mark.asyncio
    async def test_search_wildcards_are_literal(self, db_session):
        """% and _ in the query match themselves, not arbitrary text."""
        db_session.add_all(
            [Group(name="Alpha"), Group(name="Beta"), Group(name="Top 5%"), Group(name="ML_2")]
        )
        await db_session.flush()

        percent = await self.service.search_groups(db_session, "%")
        underscore = await self.service.search_groups(db_session, "_")

        assert [g.name for g in percent] == ["Top 5%"]
        assert [g.name for g in underscore] == ["ML_2"]


class TestPaginationMeta:
    def test_middle_page(self):
        meta = PaginationMeta.create(page=2, limit=10, total=35)
        assert meta.total_pages == 4
        assert meta.has_next_page and meta.has_previous_page

    def test_empty_collection(self):
        meta = PaginationMeta.create(page=1, limit=20, total=0)
        assert meta.total_pages == 0
        assert not meta.has_next_page and not meta.has_previous_page

    def test_serialized_with_camel_case_keys(self):
        dumped = PaginationMeta.create(page=1, limit=5, total=5).model_dump(by_alias=True)
        assert set(dumped) == {
            "page", "limit", "total", "totalPages", "hasNextPage", "hasPreviousPage"
        }


class TestUserService:
    def setup_method(self):
        self.service = UserService()

    def payload(self, **overrides) -> UserCreate:
        fields = {
            "email": "Lector@Uni.edu",
            "password": "correct-horse",
            "first_name": "Grace",
            "last_name": "Hopper",
            "role": "lector",
        }
        fields.update(overrides)
        return UserCreate(**fields)

    @pytest.mark.asyncio
    async def test_create_user_hashes_password(self, db_session):
        with patch("lms.services.user_service.hash_password", return_value="hashed") as hasher:
            user = await self.service.create_user(db_session, self.payload())

        hasher.assert_called_once_with("correct-horse")
        assert user.password_hash == "hashed"
        assert user.email == "lector@uni.edu"

    @pytest.mark.asyncio
    async def test_unknown_group_rejected(self, db_session):
        with pytest.raises(BadRequestError):
            await self.service.create_user(db_session, self.payload(group_id=123))

    def test_unknown_role_rejected_by_schema(self):
        with pytest.raises(ValueError):
            self.payload(role="dean")


class TestAuthenticate:
    def setup_method(self):
        self.service = UserService()

    async def add_user(self, db_session, **fields) -> User:
        user = User(
            email="student@uni.edu",
            password_hash=hash_password("correct-horse", rounds=4),
            first_name="Ada",
            last_name="Lovelace",
            **fields,
        )
        db_session.add(user)
        await db_session.flush()
        return user

    @pytest.mark.asyncio
    async def test_success(self, db_session):
        created = await self.add_user(db_session)
        user = await self.service.authenticate(db_session, "STUDENT@uni.edu", "correct-horse")
        assert user.id == created.id

    @pytest.mark.asyncio
    async def test_unknown_email(self, db_session):
        with pytest.raises(InvalidCredentialsError):
            await self.service.authenticate(db_session, "nobody@uni.edu", "x")

    @pytest.mark.asyncio
    async def test_wrong_password(self, db_session):
        await self.add_user(db_session)
        with pytest.raises(InvalidCredentialsError):
            await self.service.authenticate(db_session, "student@uni.edu", "wrong")

    @pytest.mark.asyncio
    async def test_inactive_checked_before_password_change(self, db_session):
        await self.add_user(db_session, is_active=False, must_change_password=True)
        with pytest.raises(ForbiddenError):
            await self.service.authenticate(db_session, "student@uni.edu", "correct-horse")

    @pytest.mark.asyncio
    async def test_must_change_password(self, db_session):
        await self.add_user(db_session, must_change_password=True)
        with pytest.raises(MustChangePasswordError):
            await self.service.authenticate(db_session, "student@uni.edu", "correct-horse")

    @pytest.mark.asyncio
    async def test_unknown_email_still_checks_a_password(self, db_session):
        """Unknown and known emails both pay for one password check."""
        with patch(
            "lms.services.user_service.verify_password", return_value=False
        ) as verifier:
            with pytest.raises(InvalidCredentialsError):
                await self.service.authenticate(db_session, "nobody@uni.edu", "guess")

        verifier.assert_called_once()
        password, encoded = verifier.call_args.args
        assert password == "guess"
        assert encoded.startswith("$2b$")

    @pytest.mark.asyncio
    async def test_password_check_does_not_block_event_loop(self, db_session):
        """Other coroutines keep running while a slow password check is in progress."""
        await self.add_user(db_session)
        done = asyncio.Event()
        ticks = 0

        def slow_verify(password, encoded):
            time.sleep(0.3)
            return True

        async def ticker():
            nonlocal ticks
            while not done.is_set():
                await asyncio.sleep(0.01)
                ticks += 1

        async def login():
            try:
                return await self.service.authenticate(
                    db_session, "student@uni.edu", "correct-horse"
                )
            finally:
                done.set()

        with patch("lms.services.user_service.verify_password", side_effect=slow_verify):
            _, user = await asyncio.gather(ticker(), login())

        assert user.email == "student@uni.edu"
        assert ticks >= 10
