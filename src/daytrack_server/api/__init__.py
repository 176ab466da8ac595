"""API routes."""

from litestar import Router

from daytrack_server.api.activities import activities_router
from daytrack_server.api.health import health_router
from daytrack_server.api.me import me_router
from daytrack_server.core.config import settings

# Versioned API routers (owner-scoped endpoints)
_v1_routers = [
    activities_router,
    me_router,
]

api_v1_router = Router(path=settings.api_prefix, route_handlers=_v1_routers)

# Export: health (root), v1 (prefixed)
# - health_router: /health - no auth needed, no version prefix
# - api_v1_router: /api/v1/* - all activity and identity endpoints
api_routers = [health_router, api_v1_router]

__all__ = ["api_routers"]
