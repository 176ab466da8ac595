"""Owner resolution for API requests.

Every activity route depends on ``owner``, which is resolved here once per
request and passed explicitly into the service layer. Three kinds of
credential are accepted:

1. Config master key (API_KEY env var): trusted backend, owner named in the
   X-User-Id header
2. Service-level keys from the database (user_id=None): same as above
3. User-scoped keys from the database: the key itself names the owner
"""

import logging
import re
from datetime import UTC, datetime
from typing import Any

from litestar import Request
from litestar.connection import ASGIConnection
from sqlalchemy.ext.asyncio import AsyncSession

from daytrack_server.core.api_keys import constant_time_compare, validate_api_key
from daytrack_server.core.config import settings
from daytrack_server.core.exceptions import UnauthenticatedError

logger = logging.getLogger(__name__)

# Connection state key for the resolved identity
IDENTITY_STATE_KEY = "identity"

OWNER_HEADER = "X-User-Id"

# Valid owner id format (alphanumeric, underscores, hyphens)
OWNER_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{1,100}$")


def validate_owner_id(owner: str | None) -> str:
    """Validate owner id format.

    Raises:
        UnauthenticatedError: If the id is missing or malformed
    """
    if not owner:
        raise UnauthenticatedError(f"Missing {OWNER_HEADER} header for service-level key")
    if not OWNER_ID_PATTERN.match(owner):
        raise UnauthenticatedError(
            f"Invalid {OWNER_HEADER}: must be 1-100 alphanumeric, _ or - characters"
        )
    return owner


def _extract_api_key(connection: ASGIConnection[Any, Any, Any, Any]) -> str | None:
    """Extract API key from request headers.

    Args:
        connection: The ASGI connection

    Returns:
        The API key string or None if not found
    """
    # Try X-API-Key header first
    api_key = connection.headers.get("X-API-Key")

    if not api_key:
        # Try Authorization: Bearer header
        auth_header = connection.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            api_key = auth_header[7:]

    return api_key or None


async def resolve_owner(
    connection: ASGIConnection[Any, Any, Any, Any],
    session: AsyncSession,
) -> str:
    """Resolve the owner of a request from its credentials.

    Stores the resolved identity in connection state under
    IDENTITY_STATE_KEY.

    Args:
        connection: The ASGI connection
        session: Database session

    Returns:
        Owner identifier

    Raises:
        UnauthenticatedError: If no owner can be resolved
    """
    raw_key = _extract_api_key(connection)

    if not raw_key:
        logger.warning("API request without authentication")
        raise UnauthenticatedError("Missing API key. Use X-API-Key header.")

    # Config-based master key
    if settings.api_key and constant_time_compare(raw_key, settings.api_key):
        owner = validate_owner_id(connection.headers.get(OWNER_HEADER))
        connection.state[IDENTITY_STATE_KEY] = {
            "user_id": owner,
            "key_id": None,
            "key_prefix": None,
            "is_service_level": True,
        }
        logger.debug(f"Master API key validated for owner {owner}")
        return owner

    api_key = await validate_api_key(raw_key, session)
    if api_key is None:
        logger.warning("Invalid or inactive API key attempted")
        raise UnauthenticatedError("Invalid API key")

    if api_key.is_service_level:
        owner = validate_owner_id(connection.headers.get(OWNER_HEADER))
    else:
        owner = api_key.user_id  # type: ignore[assignment]

    api_key.last_used_at = datetime.now(UTC)
    await session.commit()

    connection.state[IDENTITY_STATE_KEY] = {
        "user_id": owner,
        "key_id": api_key.id,
        "key_prefix": api_key.key_prefix,
        "is_service_level": api_key.is_service_level,
    }

    logger.debug(
        f"API key validated: id={api_key.id}, "
        f"user_scoped={'yes' if api_key.is_user_scoped else 'no'}"
    )
    return owner


async def provide_owner(request: Request[Any, Any, Any], session: AsyncSession) -> str:
    """Litestar dependency resolving the request owner."""
    return await resolve_owner(request, session)
