"""Request identity resolution."""

import logging
from typing import Optional
from uuid import UUID

import redis.asyncio as aioredis
from fastapi.security.utils import get_authorization_scheme_param

from app.core.exceptions import AuthenticationError
from app.core.redis_client import is_token_revoked
from app.core.security import decode_access_token
from app.domain.entities import User
from app.domain.identity import AnonymousDevice, AuthenticatedUser, Owner, Unidentified
from app.domain.repositories import IUserRepository

logger = logging.getLogger(__name__)


class IdentityResolver:
    """Resolves ``Authorization`` / ``X-Device-ID`` headers into an ``Owner``.

    A bearer credential, when present, wins over the device id and must be
    valid: a bad token is an error, never a silent fallback to anonymous.
    """

    def __init__(self, user_repository: IUserRepository, redis_client: aioredis.Redis):
        self.user_repository = user_repository
        self.redis_client = redis_client

    async def resolve(self, authorization: Optional[str], device_id: Optional[str]) -> Owner:
        if authorization:
            user = await self.authenticate(authorization)
            return AuthenticatedUser(user_id=user.id)
        device_id = (device_id or "").strip()
        if device_id:
            return AnonymousDevice(device_id=device_id)
        return Unidentified()

    async def resolve_lenient(
        self, authorization: Optional[str], device_id: Optional[str]
    ) -> Owner:
        """Like :meth:`resolve`, but an invalid credential yields ``Unidentified``."""
        try:
            return await self.resolve(authorization, device_id)
        except AuthenticationError:
            return Unidentified()

    async def authenticate(self, authorization: str) -> User:
        """Verify a raw ``Authorization`` header and return the active user behind it."""
        scheme, token = get_authorization_scheme_param(authorization)
        if scheme.lower() != "bearer" or not token:
            raise AuthenticationError("Invalid authorization header", code="INVALID_TOKEN")

        payload = decode_access_token(token)
        if payload is None:
            logger.warning("Rejected invalid or expired token")
            raise AuthenticationError("Invalid or expired token", code="INVALID_TOKEN")

        jti: Optional[str] = payload.get("jti")
        if jti and await is_token_revoked(self.redis_client, jti):
            raise AuthenticationError("Token has been revoked", code="INVALID_TOKEN")

        try:
            user_id = UUID(str(payload.get("sub")))
        except ValueError:
            raise AuthenticationError("Invalid or expired token", code="INVALID_TOKEN")
        user = await self.user_repository.get_by_id(user_id)
        if user is None or not user.is_active:
            logger.warning("Token subject %s not found or inactive", user_id)
            raise AuthenticationError("User not found", code="INVALID_TOKEN")
        return user
