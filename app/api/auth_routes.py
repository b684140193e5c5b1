"""Authentication API routes."""

import logging
from typing import Annotated, Optional

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, Header, status
from fastapi.security.utils import get_authorization_scheme_param

from app.api.schemas import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    ProfileUpdateRequest,
    RegisterRequest,
    UserResponse,
)
from app.core.dependencies import get_auth_service, get_current_user
from app.core.redis_client import get_redis, revoke_token
from app.core.security import decode_access_token
from app.domain.entities import User
from app.services.auth_service import AuthService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
    x_device_id: Annotated[Optional[str], Header(alias="X-Device-ID")] = None,
) -> AuthResponse:
    """Create an account.

    When the request carries ``X-Device-ID``, books that device added
    anonymously move into the new account.
    """
    token, user = await auth_service.register(
        email=body.email,
        username=body.username,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
        device_id=x_device_id,
    )
    return AuthResponse(token=token, user=UserResponse.model_validate(user))


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
    x_device_id: Annotated[Optional[str], Header(alias="X-Device-ID")] = None,
) -> AuthResponse:
    """Authenticate and return a JWT."""
    token, user = await auth_service.login(body.email, body.password, device_id=x_device_id)
    return AuthResponse(token=token, user=UserResponse.model_validate(user))


@router.get("/profile", response_model=UserResponse)
async def get_profile(
    current_user: Annotated[User, Depends(get_current_user)],
) -> UserResponse:
    return UserResponse.model_validate(current_user)


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    body: ProfileUpdateRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> UserResponse:
    updated = await auth_service.update_profile(current_user, body.model_dump(exclude_unset=True))
    return UserResponse.model_validate(updated)


@router.post("/signout", response_model=MessageResponse)
async def signout(
    current_user: Annotated[User, Depends(get_current_user)],
    redis_client: Annotated[aioredis.Redis, Depends(get_redis)],
    authorization: Annotated[Optional[str], Header()] = None,
) -> MessageResponse:
    """Sign out the current user.

    The token's ``jti`` is written to the Redis revocation list with a TTL
    equal to the token's remaining lifetime, so it stops working before it
    would expire naturally.
    """
    _, token = get_authorization_scheme_param(authorization)
    claims = decode_access_token(token)
    ttl = await revoke_token(redis_client, claims) if claims else None
    if ttl is not None:
        logger.info("Token jti=%s revoked (TTL=%ds) for user %s", claims["jti"], ttl, current_user.id)
    return MessageResponse(message="Signed out")
