"""Dependency injection container."""

from typing import Annotated, Optional

import redis.asyncio as aioredis
from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import AuthenticationError
from app.core.redis_client import get_redis
from app.domain.entities import User
from app.domain.identity import Owner
from app.domain.repositories import (
    IBookRepository,
    ICollectionRepository,
    IReadingGoalRepository,
    IReadingSessionRepository,
    IUserRepository,
)
from app.domain.services import IBookService, IReadingSessionService
from app.infrastructure.database.connection import get_db
from app.infrastructure.database.repository import (
    BookRepository,
    CollectionRepository,
    ReadingGoalRepository,
    ReadingSessionRepository,
    UserRepository,
)
from app.services.auth_service import AuthService
from app.services.book_service import BookService
from app.services.collection_service import CollectionService
from app.services.goal_service import GoalService
from app.services.identity import IdentityResolver
from app.services.ownership import OwnershipGuard
from app.services.quota import QuotaEnforcer
from app.services.session_service import ReadingSessionService


# ---------------------------------------------------------------------------
# Repository providers
# ---------------------------------------------------------------------------
async def get_user_repository(session: AsyncSession = Depends(get_db)) -> IUserRepository:
    return UserRepository(session)


async def get_book_repository(session: AsyncSession = Depends(get_db)) -> IBookRepository:
    return BookRepository(session)


async def get_session_repository(
    session: AsyncSession = Depends(get_db),
) -> IReadingSessionRepository:
    return ReadingSessionRepository(session)


async def get_goal_repository(session: AsyncSession = Depends(get_db)) -> IReadingGoalRepository:
    return ReadingGoalRepository(session)


async def get_collection_repository(
    session: AsyncSession = Depends(get_db),
) -> ICollectionRepository:
    return CollectionRepository(session)


# ---------------------------------------------------------------------------
# Policy providers
# ---------------------------------------------------------------------------
async def get_ownership_guard(
    book_repo: IBookRepository = Depends(get_book_repository),
    session_repo: IReadingSessionRepository = Depends(get_session_repository),
) -> OwnershipGuard:
    return OwnershipGuard(book_repository=book_repo, session_repository=session_repo)


async def get_quota_enforcer(
    book_repo: IBookRepository = Depends(get_book_repository),
) -> QuotaEnforcer:
    return QuotaEnforcer(book_repository=book_repo, limit=settings.anonymous_book_limit)


async def get_identity_resolver(
    user_repo: IUserRepository = Depends(get_user_repository),
    redis_client: aioredis.Redis = Depends(get_redis),
) -> IdentityResolver:
    return IdentityResolver(user_repository=user_repo, redis_client=redis_client)


# ---------------------------------------------------------------------------
# Service providers
# ---------------------------------------------------------------------------
async def get_book_service(
    repo: IBookRepository = Depends(get_book_repository),
    guard: OwnershipGuard = Depends(get_ownership_guard),
    quota: QuotaEnforcer = Depends(get_quota_enforcer),
) -> IBookService:
    """Get book service with dependencies."""
    return BookService(book_repository=repo, ownership_guard=guard, quota_enforcer=quota)


async def get_reading_session_service(
    session_repo: IReadingSessionRepository = Depends(get_session_repository),
    book_repo: IBookRepository = Depends(get_book_repository),
    guard: OwnershipGuard = Depends(get_ownership_guard),
) -> IReadingSessionService:
    return ReadingSessionService(
        session_repository=session_repo,
        book_repository=book_repo,
        ownership_guard=guard,
    )


async def get_auth_service(
    user_repo: IUserRepository = Depends(get_user_repository),
    book_repo: IBookRepository = Depends(get_book_repository),
) -> AuthService:
    return AuthService(user_repository=user_repo, book_repository=book_repo)


async def get_goal_service(
    goal_repo: IReadingGoalRepository = Depends(get_goal_repository),
) -> GoalService:
    return GoalService(goal_repository=goal_repo)


async def get_collection_service(
    collection_repo: ICollectionRepository = Depends(get_collection_repository),
    guard: OwnershipGuard = Depends(get_ownership_guard),
) -> CollectionService:
    return CollectionService(collection_repository=collection_repo, ownership_guard=guard)


# ---------------------------------------------------------------------------
# Identity dependencies
# ---------------------------------------------------------------------------
async def get_owner(
    resolver: Annotated[IdentityResolver, Depends(get_identity_resolver)],
    authorization: Annotated[Optional[str], Header()] = None,
    x_device_id: Annotated[Optional[str], Header(alias="X-Device-ID")] = None,
) -> Owner:
    """Resolve the caller; a present but invalid bearer token is a 401."""
    return await resolver.resolve(authorization, x_device_id)


async def get_lenient_owner(
    resolver: Annotated[IdentityResolver, Depends(get_identity_resolver)],
    authorization: Annotated[Optional[str], Header()] = None,
    x_device_id: Annotated[Optional[str], Header(alias="X-Device-ID")] = None,
) -> Owner:
    return await resolver.resolve_lenient(authorization, x_device_id)


async def get_current_user(
    resolver: Annotated[IdentityResolver, Depends(get_identity_resolver)],
    authorization: Annotated[Optional[str], Header()] = None,
) -> User:
    """Return the account behind the bearer token; device ids are not accepted here."""
    if not authorization:
        raise AuthenticationError("Authentication required")
    return await resolver.authenticate(authorization)
