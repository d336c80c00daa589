"""
LMS Backend — Test Configuration (conftest.py)
===============================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session:  Mock database session (no real DB needed)
    ├── db_engine:        In-memory aiosqlite engine, tables created, FKs enforced
    ├── db_session:       AsyncSession bound to db_engine
    ├── admin_auth:       Stored admin account, as an httpx Basic auth tuple
    ├── test_client:      HTTPX AsyncClient on the app, sessions bound to db_engine
    └── reset_rate_limiters (autouse): stops sweepers and clears counters
"""

import os

# Override settings for testing BEFORE any lms imports
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_ENABLED"] = "true"

from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker  # noqa: E402

import lms.models  # noqa: E402,F401
from lms import database  # noqa: E402
from lms.auth import hash_password  # noqa: E402
from lms.database import Base, build_engine  # noqa: E402
from lms.models.user import User  # noqa: E402
from lms.services.rate_limit_store import default_store  # noqa: E402
from lms.services.rate_limiter import RATE_LIMITERS  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# ══════════════════════════════════════════════════════════════════════════
# Rate Limiter Isolation
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture(autouse=True)
async def reset_rate_limiters():
    """
    Preset limiters are module singletons sharing one store; each test starts
    with empty counters and ends with every sweeper task stopped.
    """
    default_store.clear()
    yield
    for limiter in RATE_LIMITERS.values():
        await limiter.stop()
    default_store.clear()


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_get_group(mock_db_session):
            mock_db_session.execute.return_value.scalar_one_or_none.return_value = None
            with pytest.raises(NotFoundError):
                await group_service.get_group(mock_db_session, 1)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def db_engine():
    """
    In-memory SQLite database with the full schema.

    The aiosqlite dialect keeps one connection for :memory: URLs, so every
    session of a test sees the same database.
    """
    engine = build_engine(TEST_DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine, monkeypatch):
    """Session factory on the test engine, also used by get_db_session()."""
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    monkeypatch.setattr(database, "async_session_factory", factory)
    return factory


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def admin_auth(session_factory):
    """
    Commits an admin account and returns its (email, password) for
    httpx's ``auth=`` argument. Low bcrypt cost keeps the suite fast.
    """
    email, password = "admin@uni.edu", "admin-pass-123"
    async with session_factory() as session:
        session.add(
            User(
                email=email,
                password_hash=hash_password(password, rounds=4),
                first_name="Root",
                last_name="Admin",
                role="admin",
            )
        )
        await session.commit()
    return email, password


# ══════════════════════════════════════════════════════════════════════════
# HTTP Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTPX AsyncClient talking to the app through ASGITransport.

    Requests go through the full middleware stack; request sessions come
    from the test engine.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from lms.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
