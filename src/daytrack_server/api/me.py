"""Identity endpoints for the authenticated caller."""

from typing import Any

import structlog
from litestar import Request, Router, get, post
from litestar.di import Provide
from litestar.status_codes import HTTP_200_OK
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from daytrack_server.core.api_keys import regenerate_api_key, revoke_api_key
from daytrack_server.core.auth import IDENTITY_STATE_KEY, provide_owner
from daytrack_server.core.exceptions import NotFoundError
from daytrack_server.models.api_key import APIKey

logger = structlog.get_logger()


class IdentityResponse(BaseModel):
    """The owner a request resolved to."""

    user_id: str
    is_service_level: bool
    key_prefix: str | None = None


class KeyRegenerateResponse(BaseModel):
    """Response with a freshly generated key."""

    api_key: str
    key_prefix: str
    message: str = "Store this key securely - it will not be shown again"


async def _current_user_key(request: Request[Any, Any, Any], session: AsyncSession) -> APIKey:
    """The user-scoped key the request authenticated with.

    Raises:
        NotFoundError: If the request used a master or service-level key
    """
    identity = request.state.get(IDENTITY_STATE_KEY) or {}
    key_id = identity.get("key_id")

    if key_id is None or identity.get("is_service_level"):
        raise NotFoundError("No user-scoped API key in use")

    result = await session.execute(
        select(APIKey).where(APIKey.id == key_id, APIKey.is_active == True)  # noqa: E712
    )
    api_key = result.scalar_one_or_none()
    if api_key is None:
        raise NotFoundError("No user-scoped API key in use")
    return api_key


@get("/me", status_code=HTTP_200_OK)
async def get_me(owner: str, request: Request[Any, Any, Any]) -> IdentityResponse:
    """Return the owner this request's credentials resolve to."""
    identity = request.state.get(IDENTITY_STATE_KEY) or {}
    return IdentityResponse(
        user_id=owner,
        is_service_level=bool(identity.get("is_service_level")),
        key_prefix=identity.get("key_prefix"),
    )


@post("/me/api-key/regenerate", status_code=HTTP_200_OK)
async def regenerate_my_key(
    owner: str,
    request: Request[Any, Any, Any],
    session: AsyncSession,
) -> KeyRegenerateResponse:
    """Regenerate the caller's API key.

    Invalidates the key used for this request and returns a new one.
    """
    api_key = await _current_user_key(request, session)
    raw_key = await regenerate_api_key(api_key, session)
    await session.commit()

    logger.info("API key regenerated", user_id=owner, key_id=api_key.id)

    return KeyRegenerateResponse(api_key=raw_key, key_prefix=api_key.key_prefix)


@post("/me/api-key/revoke", status_code=HTTP_200_OK)
async def revoke_my_key(
    owner: str,
    request: Request[Any, Any, Any],
    session: AsyncSession,
) -> dict[str, Any]:
    """Revoke the caller's API key (sign out).

    Subsequent requests with the key are rejected with 401.
    """
    api_key = await _current_user_key(request, session)
    await revoke_api_key(api_key, session)
    await session.commit()

    logger.info("API key revoked", user_id=owner, key_id=api_key.id)

    return {"message": "API key revoked successfully", "user_id": owner}


me_router = Router(
    path="/",
    dependencies={"owner": Provide(provide_owner)},
    route_handlers=[get_me, regenerate_my_key, revoke_my_key],
    tags=["Identity"],
)
