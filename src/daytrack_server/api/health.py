"""Health check endpoint."""

from typing import Any

import structlog
from litestar import Response, Router, get
from litestar.status_codes import HTTP_200_OK, HTTP_503_SERVICE_UNAVAILABLE
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from daytrack_server import __version__

logger = structlog.get_logger()


@get("/health", status_code=HTTP_200_OK)
async def health_check(session: AsyncSession) -> Response[dict[str, Any]]:
    """Health check endpoint.

    Reports 503 when the database can't be reached. No authentication.

    Returns:
        Status, version and database connectivity
    """
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("Health check database query failed", error=str(exc))
        return Response(
            content={"status": "degraded", "version": __version__, "database": "unavailable"},
            status_code=HTTP_503_SERVICE_UNAVAILABLE,
        )

    return Response(
        content={"status": "ok", "version": __version__, "database": "connected"},
        status_code=HTTP_200_OK,
    )


health_router = Router(path="/", route_handlers=[health_check])
