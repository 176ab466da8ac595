"""Litestar application factory."""

from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager

import structlog
from advanced_alchemy.config.asyncio import AsyncSessionConfig
from advanced_alchemy.extensions.litestar import SQLAlchemyAsyncConfig, SQLAlchemyPlugin
from litestar import Litestar, get
from litestar.openapi import OpenAPIConfig
from litestar.response import Redirect
from litestar.status_codes import HTTP_303_SEE_OTHER
from sqlalchemy.ext.asyncio import AsyncEngine

from daytrack_server import __version__
from daytrack_server.api import api_routers
from daytrack_server.api.errors import exception_handlers
from daytrack_server.core.config import settings
from daytrack_server.core.database import close_database, engine, init_database

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


@get("/", include_in_schema=False)
async def root_redirect() -> Redirect:
    """Redirect root to the interactive API docs."""
    return Redirect(path="/schema/swagger", status_code=HTTP_303_SEE_OTHER)


def make_lifespan(
    db_engine: AsyncEngine,
) -> Callable[[Litestar], AbstractAsyncContextManager[None]]:
    """Build the lifespan manager bound to a database engine."""

    @asynccontextmanager
    async def lifespan(app: Litestar) -> AsyncIterator[None]:
        """Application lifespan manager.

        Handles startup and shutdown tasks:
        - Verify (or create) the database schema on startup
        - Close database connections on shutdown
        """
        logger.info(
            "Starting daytrack-server",
            version=__version__,
            database=db_engine.dialect.name,
            master_key_configured=settings.api_key is not None,
        )

        await init_database(db_engine)
        logger.info("Database initialized")

        yield

        await close_database(db_engine)
        logger.info("Shutdown complete")

    return lifespan


def create_app(db_engine: AsyncEngine | None = None) -> Litestar:
    """Create Litestar application.

    Args:
        db_engine: Engine to serve from (defaults to the configured global engine)

    Returns:
        Configured Litestar app instance
    """
    db_engine = db_engine or engine

    return Litestar(
        route_handlers=[root_redirect, *api_routers],
        lifespan=[make_lifespan(db_engine)],
        openapi_config=OpenAPIConfig(
            title="daytrack-server API",
            version=__version__,
            description="Personal daily activity time tracker",
        ),
        plugins=[
            SQLAlchemyPlugin(
                config=SQLAlchemyAsyncConfig(
                    engine_instance=db_engine,
                    session_dependency_key="session",
                    session_config=AsyncSessionConfig(expire_on_commit=False),
                ),
            ),
        ],
        exception_handlers=exception_handlers,
        debug=settings.log_level == "DEBUG",
    )


# Application instance
app = create_app()
