"""Ownership scoping for books and the sessions hanging off them."""

import logging
from uuid import UUID

from app.core.exceptions import AuthenticationError, NotFoundError
from app.domain.entities import Book, ReadingSession
from app.domain.identity import (
    AnonymousDevice,
    AuthenticatedUser,
    Owner,
    OwnerScope,
    Unidentified,
)
from app.domain.repositories import IBookRepository, IReadingSessionRepository

logger = logging.getLogger(__name__)


class OwnershipGuard:
    """Turns an ``Owner`` into a row scope and loads resources through it.

    A resource that exists but belongs to someone else is reported exactly
    like one that does not exist, so identities cannot probe each other's ids.
    """

    def __init__(
        self,
        book_repository: IBookRepository,
        session_repository: IReadingSessionRepository,
    ):
        self.book_repository = book_repository
        self.session_repository = session_repository

    @staticmethod
    def scope_for(owner: Owner) -> OwnerScope:
        if isinstance(owner, AuthenticatedUser):
            return OwnerScope(user_id=owner.user_id)
        if isinstance(owner, AnonymousDevice):
            return OwnerScope(device_id=owner.device_id)
        if isinstance(owner, Unidentified):
            raise AuthenticationError("User or device must be provided")
        raise TypeError(f"Unknown owner variant: {owner!r}")

    async def load_book(self, owner: Owner, book_id: UUID) -> Book:
        book = await self.book_repository.get_owned(book_id, self.scope_for(owner))
        if book is None:
            raise NotFoundError("Book not found")
        return book

    async def load_session(self, owner: Owner, session_id: UUID) -> tuple[ReadingSession, Book]:
        """Load a session through its parent book's owner columns."""
        found = await self.session_repository.get_owned(session_id, self.scope_for(owner))
        if found is None:
            raise NotFoundError("Session not found")
        return found
