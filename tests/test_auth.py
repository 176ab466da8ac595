"""Tests for resolving the request owner from credentials."""

from types import SimpleNamespace

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from daytrack_server.core.auth import (
    IDENTITY_STATE_KEY,
    resolve_owner,
    validate_owner_id,
)
from daytrack_server.core.exceptions import UnauthenticatedError
from tests.fixtures import MASTER_KEY, OWNER_A, OWNER_B


def _connection(headers: dict[str, str]) -> SimpleNamespace:
    """Minimal stand-in for an ASGI connection."""
    return SimpleNamespace(headers=headers, state={})


class TestValidateOwnerId:
    @pytest.mark.parametrize("owner", ["user_1", "A-b-C", "x" * 100])
    def test_valid(self, owner):
        assert validate_owner_id(owner) == owner

    @pytest.mark.parametrize("owner", ["x" * 101, "has space", "semi;colon", "ünïcode"])
    def test_invalid(self, owner):
        with pytest.raises(UnauthenticatedError):
            validate_owner_id(owner)

    def test_missing(self):
        with pytest.raises(UnauthenticatedError, match="X-User-Id"):
            validate_owner_id(None)


class TestResolveOwner:
    @pytest.mark.asyncio
    async def test_missing_key(self, async_session: AsyncSession):
        with pytest.raises(UnauthenticatedError) as exc_info:
            await resolve_owner(_connection({}), async_session)

        assert exc_info.value.status_code == 401
        assert "Missing API key" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_invalid_key(self, async_session: AsyncSession):
        with pytest.raises(UnauthenticatedError, match="Invalid API key"):
            await resolve_owner(_connection({"X-API-Key": "dtk_nope"}), async_session)

    @pytest.mark.asyncio
    async def test_master_key_uses_header_owner(self, async_session: AsyncSession, master_key):
        connection = _connection({"X-API-Key": master_key, "X-User-Id": OWNER_B})

        owner = await resolve_owner(connection, async_session)

        assert owner == OWNER_B
        assert connection.state[IDENTITY_STATE_KEY]["is_service_level"] is True
        assert connection.state[IDENTITY_STATE_KEY]["key_id"] is None

    @pytest.mark.asyncio
    async def test_master_key_requires_owner_header(self, async_session: AsyncSession, master_key):
        with pytest.raises(UnauthenticatedError, match="X-User-Id"):
            await resolve_owner(_connection({"X-API-Key": master_key}), async_session)

    @pytest.mark.asyncio
    async def test_master_key_disabled_when_unset(self, async_session: AsyncSession, monkeypatch):
        from daytrack_server.core.config import settings

        monkeypatch.setattr(settings, "api_key", None)

        with pytest.raises(UnauthenticatedError, match="Invalid API key"):
            await resolve_owner(
                _connection({"X-API-Key": MASTER_KEY, "X-User-Id": OWNER_A}), async_session
            )

    @pytest.mark.asyncio
    async def test_user_key_names_owner(self, async_session: AsyncSession, user_api_key):
        api_key, raw_key = user_api_key
        # The header can't override a user-scoped key
        connection = _connection({"X-API-Key": raw_key, "X-User-Id": OWNER_B})

        owner = await resolve_owner(connection, async_session)

        assert owner == OWNER_A
        identity = connection.state[IDENTITY_STATE_KEY]
        assert identity["key_id"] == api_key.id
        assert identity["key_prefix"] == api_key.key_prefix
        assert identity["is_service_level"] is False
        assert api_key.last_used_at is not None

    @pytest.mark.asyncio
    async def test_bearer_token(self, async_session: AsyncSession, user_api_key):
        _, raw_key = user_api_key

        owner = await resolve_owner(
            _connection({"Authorization": f"Bearer {raw_key}"}), async_session
        )

        assert owner == OWNER_A

    @pytest.mark.asyncio
    async def test_service_key_uses_header_owner(self, async_session, service_api_key):
        _, raw_key = service_api_key

        owner = await resolve_owner(
            _connection({"X-API-Key": raw_key, "X-User-Id": OWNER_B}), async_session
        )

        assert owner == OWNER_B

    @pytest.mark.asyncio
    async def test_service_key_rejects_bad_owner(self, async_session, service_api_key):
        _, raw_key = service_api_key

        with pytest.raises(UnauthenticatedError):
            await resolve_owner(
                _connection({"X-API-Key": raw_key, "X-User-Id": "../etc"}), async_session
            )

    @pytest.mark.asyncio
    async def test_revoked_key_rejected(self, async_session: AsyncSession, user_api_key):
        api_key, raw_key = user_api_key
        api_key.is_active = False
        await async_session.commit()

        with pytest.raises(UnauthenticatedError, match="Invalid API key"):
            await resolve_owner(_connection({"X-API-Key": raw_key}), async_session)
