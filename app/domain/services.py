"""Domain-level application service interfaces (ports).

Route handlers depend on these abstractions; the concrete classes in
``app/services/`` are wired in ``app/core/dependencies.py`` and can be
swapped for test doubles through ``app.dependency_overrides``.

Every method takes the resolved ``Owner`` of the request. Implementations
scope all reads and writes through :class:`OwnershipGuard`.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional
from uuid import UUID

from app.domain.entities import Book, ReadingSession
from app.domain.identity import Owner, QuotaStatus


class IBookService(ABC):

    @abstractmethod
    async def add_book(self, owner: Owner, data: dict[str, Any]) -> Book:
        """Add a book to the owner's library.

        Anonymous owners pass through the quota first; a book already in the
        owner's library (same ``open_library_id``) is rejected.
        """
        pass

    @abstractmethod
    async def get_book(self, owner: Owner, book_id: UUID) -> Book:
        pass

    @abstractmethod
    async def list_books(
        self,
        owner: Owner,
        status: Optional[str] = None,
        sort_by: str = "created_at",
        descending: bool = True,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Book], int]:
        pass

    @abstractmethod
    async def update_book(self, owner: Owner, book_id: UUID, changes: dict[str, Any]) -> Book:
        pass

    @abstractmethod
    async def delete_book(self, owner: Owner, book_id: UUID) -> None:
        pass

    @abstractmethod
    async def get_stats(self, owner: Owner) -> dict[str, Any]:
        pass

    @abstractmethod
    async def get_quota(self, owner: Owner) -> QuotaStatus:
        pass


class IReadingSessionService(ABC):

    @abstractmethod
    async def create_session(
        self, owner: Owner, book_id: UUID, data: dict[str, Any]
    ) -> ReadingSession:
        pass

    @abstractmethod
    async def update_session(
        self, owner: Owner, session_id: UUID, changes: dict[str, Any]
    ) -> ReadingSession:
        pass

    @abstractmethod
    async def delete_session(self, owner: Owner, session_id: UUID) -> None:
        pass

    @abstractmethod
    async def list_book_sessions(self, owner: Owner, book_id: UUID) -> list[ReadingSession]:
        pass

    @abstractmethod
    async def list_sessions(self, owner: Owner) -> list[tuple[ReadingSession, Book]]:
        pass
