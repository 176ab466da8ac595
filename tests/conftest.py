"""Shared test fixtures."""

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
from litestar.testing import AsyncTestClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool, StaticPool

from daytrack_server.core.config import settings
from daytrack_server.models.base import Base
from tests.fixtures import MASTER_KEY, OWNER_A


@pytest.fixture
async def async_engine() -> AsyncIterator[AsyncEngine]:
    """Create async in-memory SQLite engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def async_session(async_engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Create async session for testing."""
    async_session_maker = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        yield session


@pytest.fixture
async def file_engine(tmp_path: Path) -> AsyncIterator[AsyncEngine]:
    """File-backed SQLite engine where every session gets its own connection.

    Needed wherever independent sessions must run at the same time (concurrent
    writers) or on different event loops (the test client's app thread).
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'daytrack.db'}",
        poolclass=NullPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def file_session_maker(file_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the file-backed engine."""
    return async_sessionmaker(file_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def master_key(monkeypatch: pytest.MonkeyPatch) -> str:
    """Configure the master API key for the duration of a test."""
    monkeypatch.setattr(settings, "api_key", MASTER_KEY)
    return MASTER_KEY


@pytest.fixture
async def user_api_key(async_session: AsyncSession):
    """Create a user-scoped API key for OWNER_A."""
    from daytrack_server.core.api_keys import create_api_key_for_user

    api_key, raw_key = await create_api_key_for_user(
        user_id=OWNER_A,
        name="Test User Key",
        session=async_session,
    )
    await async_session.commit()
    return api_key, raw_key


@pytest.fixture
async def service_api_key(async_session: AsyncSession):
    """Create a service-level API key."""
    from daytrack_server.core.api_keys import create_service_key

    api_key, raw_key = await create_service_key(
        name="Test Service Key",
        session=async_session,
    )
    await async_session.commit()
    return api_key, raw_key


@pytest.fixture
async def client(file_engine: AsyncEngine, master_key: str) -> AsyncIterator[AsyncTestClient]:
    """Test client serving the app from the file-backed database."""
    from daytrack_server.app import create_app

    async with AsyncTestClient(app=create_app(file_engine)) as test_client:
        yield test_client
