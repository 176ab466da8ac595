"""Database initialization and session management."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from daytrack_server.core.config import settings

logger = logging.getLogger(__name__)


def create_engine(database_url: str | None = None) -> AsyncEngine:
    """Create the async database engine.

    Args:
        database_url: Override for the configured database URL

    Returns:
        Async SQLAlchemy engine
    """
    url = database_url or settings.database_url
    kwargs: dict[str, Any] = {"echo": settings.database_echo}

    # SQLite pools don't accept sizing options
    if not url.startswith("sqlite"):
        kwargs.update(
            pool_size=10,
            max_overflow=20,
            pool_recycle=300,  # Recycle connections every 5 minutes
        )

    return create_async_engine(url, **kwargs)


# Global engine and session maker
engine = create_engine()
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_database(db_engine: AsyncEngine | None = None) -> None:
    """Verify database is ready and migrations have been applied.

    When ``auto_create_schema`` is enabled the tables are created directly
    from model metadata instead (useful for local SQLite databases).

    Args:
        db_engine: Engine to check (defaults to the global engine)
    """
    db_engine = db_engine or engine

    if settings.auto_create_schema:
        from daytrack_server.models import Base

        async with db_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema created from model metadata")
        return

    async with db_engine.connect() as conn:
        has_migrations = await conn.run_sync(
            lambda sync_conn: inspect(sync_conn).has_table("alembic_version")
        )

        if not has_migrations:
            logger.warning(
                "Database migrations have not been applied. "
                "Run 'alembic upgrade head' to initialize the database schema."
            )
        else:
            logger.info("Database initialized with Alembic migrations applied")


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session.

    Usage:
        async with get_session() as session:
            result = await session.execute(select(Activity))
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def close_database(db_engine: AsyncEngine | None = None) -> None:
    """Close database connection pool."""
    await (db_engine or engine).dispose()
