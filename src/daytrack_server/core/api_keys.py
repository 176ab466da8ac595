"""API keys: issuing, lookup and lifecycle.

Only the SHA-256 digest of a key is stored. The raw key is returned once,
when it is issued or regenerated, and can't be recovered afterwards.

Keys look like ``dtk_`` followed by 40 hex characters. The first 12
characters are kept in clear as ``key_prefix`` so operators can tell keys
apart (and revoke them from the CLI).
"""

import hashlib
import hmac
import secrets
from datetime import UTC, datetime
from typing import NamedTuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from daytrack_server.models.api_key import APIKey

KEY_PREFIX = "dtk_"
KEY_RANDOM_LENGTH = 40
DISPLAY_PREFIX_LENGTH = 12


class GeneratedKey(NamedTuple):
    """A freshly generated key and what gets persisted for it."""

    raw_key: str
    key_hash: str
    key_prefix: str


def generate_api_key() -> GeneratedKey:
    """Generate a random key.

    Example:
        >>> key = generate_api_key()
        >>> len(key.raw_key), key.raw_key[:4]
        (44, 'dtk_')
    """
    raw_key = KEY_PREFIX + secrets.token_hex(KEY_RANDOM_LENGTH // 2)
    return GeneratedKey(
        raw_key=raw_key,
        key_hash=hash_key(raw_key),
        key_prefix=raw_key[:DISPLAY_PREFIX_LENGTH],
    )


def hash_key(raw_key: str) -> str:
    """Hex SHA-256 digest used to look a key up."""
    return hashlib.sha256(raw_key.encode()).hexdigest()


def constant_time_compare(a: str, b: str) -> bool:
    """String equality that doesn't leak timing."""
    return hmac.compare_digest(a.encode(), b.encode())


async def get_api_key_by_hash(key_hash: str, session: AsyncSession) -> APIKey | None:
    """Fetch a key by digest, active or not."""
    result = await session.execute(select(APIKey).where(APIKey.key_hash == key_hash))
    return result.scalar_one_or_none()


async def validate_api_key(raw_key: str, session: AsyncSession) -> APIKey | None:
    """Resolve a raw key to its record.

    Returns:
        The APIKey, or None for unknown and revoked keys alike
    """
    api_key = await get_api_key_by_hash(hash_key(raw_key), session)
    if api_key is not None and api_key.is_active:
        return api_key
    return None


async def _issue_key(
    session: AsyncSession,
    name: str,
    user_id: str | None,
) -> tuple[APIKey, str]:
    generated = generate_api_key()
    api_key = APIKey(
        key_hash=generated.key_hash,
        key_prefix=generated.key_prefix,
        name=name,
        user_id=user_id,
        is_active=True,
    )
    session.add(api_key)
    await session.flush()
    return api_key, generated.raw_key


async def create_api_key_for_user(
    user_id: str,
    name: str,
    session: AsyncSession,
) -> tuple[APIKey, str]:
    """Issue a key that always resolves to `user_id`.

    The caller commits. The raw key in the returned tuple is the only copy.
    """
    return await _issue_key(session, name, user_id)


async def create_service_key(name: str, session: AsyncSession) -> tuple[APIKey, str]:
    """Issue a service-level key.

    Requests made with it name their owner in the X-User-Id header.
    """
    return await _issue_key(session, name, None)


async def regenerate_api_key(api_key: APIKey, session: AsyncSession) -> str:
    """Swap in a new secret for an existing key record.

    The old raw key stops working as soon as the change is committed.

    Returns:
        The new raw key
    """
    generated = generate_api_key()
    api_key.key_hash = generated.key_hash
    api_key.key_prefix = generated.key_prefix
    api_key.created_at = datetime.now(UTC)
    api_key.last_used_at = None
    await session.flush()
    return generated.raw_key


async def revoke_api_key(api_key: APIKey, session: AsyncSession) -> None:
    """Deactivate a key. Records are kept for auditing."""
    api_key.is_active = False
    await session.flush()


async def revoke_keys_by_prefix(key_prefix: str, session: AsyncSession) -> int:
    """Deactivate every active key with the given display prefix.

    Returns:
        How many keys were deactivated
    """
    result = await session.execute(
        select(APIKey).where(APIKey.key_prefix == key_prefix, APIKey.is_active.is_(True))
    )
    revoked = 0
    for api_key in result.scalars():
        api_key.is_active = False
        revoked += 1
    await session.flush()
    return revoked
