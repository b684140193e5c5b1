"""Async Redis client and the JWT revocation list used by signout."""

import time
from typing import Any, AsyncGenerator, Optional

import redis.asyncio as aioredis

from app.core.config import settings

REVOKED_TOKEN_PREFIX = "shlf:revoked:"


def revoked_key(jti: str) -> str:
    return f"{REVOKED_TOKEN_PREFIX}{jti}"


async def get_redis() -> AsyncGenerator[aioredis.Redis, None]:
    """FastAPI dependency: yield a connected Redis client, close on teardown."""
    client: aioredis.Redis = aioredis.from_url(settings.redis_url, decode_responses=True)
    try:
        yield client
    finally:
        await client.aclose()


async def revoke_token(client: aioredis.Redis, claims: dict[str, Any]) -> Optional[int]:
    """Blacklist a decoded token until it would have expired anyway.

    Returns the TTL applied, or ``None`` when the claims carry no ``jti`` /
    ``exp`` and there is nothing to revoke.
    """
    jti, exp = claims.get("jti"), claims.get("exp")
    if not jti or not exp:
        return None
    ttl = max(int(exp - time.time()), 1)
    await client.setex(revoked_key(jti), ttl, "1")
    return ttl


async def is_token_revoked(client: aioredis.Redis, jti: str) -> bool:
    return await client.exists(revoked_key(jti)) == 1
