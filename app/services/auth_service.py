"""Authentication service."""

import logging
from datetime import datetime
from typing import Any, Optional
from uuid import uuid4

from app.core.exceptions import AuthenticationError, ConflictError, NotFoundError
from app.core.security import create_access_token, hash_password, verify_password
from app.domain.entities import User
from app.domain.repositories import IBookRepository, IUserRepository

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("username", "first_name", "last_name", "bio")


class AuthService:
    """Handles registration, login, profile and device hand-over."""

    def __init__(self, user_repository: IUserRepository, book_repository: IBookRepository):
        self.user_repository = user_repository
        self.book_repository = book_repository

    async def register(
        self,
        email: str,
        username: str,
        password: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        device_id: Optional[str] = None,
    ) -> tuple[str, User]:
        """Create an account and return ``(token, user)``."""
        if await self.user_repository.get_by_email(email):
            raise ConflictError("Email already registered", code="EMAIL_TAKEN")
        if await self.user_repository.get_by_username(username):
            raise ConflictError("Username already taken", code="USERNAME_TAKEN")

        user = User(
            id=uuid4(),
            email=email,
            username=username,
            hashed_password=hash_password(password),
            first_name=first_name,
            last_name=last_name,
        )
        created = await self.user_repository.create(user)
        logger.info("User registered: %s", created.id)
        await self._claim_device(device_id, created)
        return self._issue_token(created), created

    async def login(
        self, email: str, password: str, device_id: Optional[str] = None
    ) -> tuple[str, User]:
        """Authenticate and return ``(token, user)``."""
        user = await self.user_repository.get_by_email(email)
        if not user or not verify_password(password, user.hashed_password):
            raise AuthenticationError("Invalid credentials", code="INVALID_CREDENTIALS")
        if not user.is_active:
            raise AuthenticationError("Account is deactivated", code="INVALID_CREDENTIALS")

        user.last_login_at = datetime.utcnow()
        user = await self.user_repository.update(user)
        logger.info("User logged in: %s", user.id)
        await self._claim_device(device_id, user)
        return self._issue_token(user), user

    async def get_profile(self, user_id) -> User:
        user = await self.user_repository.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def update_profile(self, user: User, changes: dict[str, Any]) -> User:
        username = changes.get("username")
        if username and username != user.username:
            if await self.user_repository.get_by_username(username):
                raise ConflictError("Username already taken", code="USERNAME_TAKEN")
        for name in PROFILE_FIELDS:
            if name in changes and not (name == "username" and not changes[name]):
                setattr(user, name, changes[name])
        return await self.user_repository.update(user)

    async def _claim_device(self, device_id: Optional[str], user: User) -> None:
        device_id = (device_id or "").strip()
        if not device_id:
            return
        claimed = await self.book_repository.claim_device_books(device_id, user.id)
        if claimed:
            logger.info("Moved %d book(s) from device %s to user %s", claimed, device_id, user.id)

    @staticmethod
    def _issue_token(user: User) -> str:
        return create_access_token(data={"sub": str(user.id)})
