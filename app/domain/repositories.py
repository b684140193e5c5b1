"""Repository interfaces (ports) for dependency inversion.

Owned entities (books, and sessions through their book) are only reachable
with an :class:`OwnerScope`; there is deliberately no unscoped lookup.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from app.domain.entities import Book, Collection, ReadingGoal, ReadingSession, User
from app.domain.identity import OwnerScope


class IUserRepository(ABC):

    @abstractmethod
    async def create(self, user: User) -> User:
        pass

    @abstractmethod
    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        pass

    @abstractmethod
    async def get_by_username(self, username: str) -> Optional[User]:
        pass

    @abstractmethod
    async def update(self, user: User) -> User:
        pass


class IBookRepository(ABC):

    @abstractmethod
    async def create(self, book: Book) -> Book:
        """Insert a book; raises ``ConflictError`` if the owner already holds it."""
        pass

    @abstractmethod
    async def get_owned(self, book_id: UUID, scope: OwnerScope) -> Optional[Book]:
        pass

    @abstractmethod
    async def find_by_open_library_id(
        self, open_library_id: str, scope: OwnerScope
    ) -> Optional[Book]:
        pass

    @abstractmethod
    async def list_owned(
        self,
        scope: OwnerScope,
        status: Optional[str] = None,
        sort_by: str = "created_at",
        descending: bool = True,
        skip: int = 0,
        limit: Optional[int] = 20,
    ) -> list[Book]:
        """List owned books; ``limit=None`` returns all of them."""
        pass

    @abstractmethod
    async def count_owned(self, scope: OwnerScope, status: Optional[str] = None) -> int:
        pass

    @abstractmethod
    async def update(self, book: Book) -> Book:
        pass

    @abstractmethod
    async def advance_current_page(self, book_id: UUID, page: int) -> None:
        """Raise ``current_page`` to ``page`` unless it is already at or past it."""
        pass

    @abstractmethod
    async def delete(self, book_id: UUID, scope: OwnerScope) -> bool:
        """Delete an owned book together with its sessions and collection links."""
        pass

    @abstractmethod
    async def claim_device_books(self, device_id: str, user_id: UUID) -> int:
        """Hand a device's unclaimed books to an account; returns how many moved."""
        pass


class IReadingSessionRepository(ABC):

    @abstractmethod
    async def create(self, session: ReadingSession) -> ReadingSession:
        pass

    @abstractmethod
    async def get_owned(
        self, session_id: UUID, scope: OwnerScope
    ) -> Optional[tuple[ReadingSession, Book]]:
        """Load a session and its parent book, filtering on the book's owner."""
        pass

    @abstractmethod
    async def list_for_book(self, book_id: UUID) -> list[ReadingSession]:
        pass

    @abstractmethod
    async def list_owned(self, scope: OwnerScope) -> list[tuple[ReadingSession, Book]]:
        pass

    @abstractmethod
    async def update(self, session: ReadingSession) -> ReadingSession:
        pass

    @abstractmethod
    async def delete(self, session_id: UUID) -> bool:
        pass


class IReadingGoalRepository(ABC):

    @abstractmethod
    async def get_by_year(self, user_id: UUID, year: int) -> Optional[ReadingGoal]:
        pass

    @abstractmethod
    async def list_for_user(self, user_id: UUID) -> list[ReadingGoal]:
        pass

    @abstractmethod
    async def save(self, goal: ReadingGoal) -> ReadingGoal:
        """Insert or update by id."""
        pass

    @abstractmethod
    async def delete(self, goal_id: UUID, user_id: UUID) -> bool:
        pass


class ICollectionRepository(ABC):

    @abstractmethod
    async def create(self, collection: Collection) -> Collection:
        pass

    @abstractmethod
    async def get_for_user(self, collection_id: UUID, user_id: UUID) -> Optional[Collection]:
        pass

    @abstractmethod
    async def list_for_user(self, user_id: UUID) -> list[Collection]:
        pass

    @abstractmethod
    async def update(self, collection: Collection) -> Collection:
        pass

    @abstractmethod
    async def delete(self, collection_id: UUID, user_id: UUID) -> bool:
        pass

    @abstractmethod
    async def add_book(self, collection_id: UUID, book_id: UUID) -> None:
        """Link a book; linking twice is a no-op."""
        pass

    @abstractmethod
    async def remove_book(self, collection_id: UUID, book_id: UUID) -> None:
        pass
