"""Reading-session ledger."""

import logging
from datetime import date, datetime
from typing import Any, Optional
from uuid import UUID, uuid4

from app.core.exceptions import ValidationError
from app.domain.entities import Book, ReadingSession
from app.domain.identity import Owner
from app.domain.repositories import IBookRepository, IReadingSessionRepository
from app.domain.services import IReadingSessionService
from app.services.ownership import OwnershipGuard

logger = logging.getLogger(__name__)

SESSION_FIELDS = ("start_page", "end_page", "duration", "start_time", "end_time", "date", "notes")


def validate_pages(start_page: int, end_page: int, page_count: Optional[int]) -> None:
    if start_page < 0 or end_page < 0:
        raise ValidationError("Pages cannot be negative")
    if end_page < start_page:
        raise ValidationError("endPage cannot be less than startPage")
    if page_count and end_page > page_count:
        raise ValidationError("endPage cannot exceed book page count")


class ReadingSessionService(IReadingSessionService):
    """Logs reading sessions against owned books.

    Creating a session moves the book's ``current_page`` forward to the
    session's ``end_page`` (never backward). Editing or deleting a session
    only touches the ledger; book progress is left as it is.
    """

    def __init__(
        self,
        session_repository: IReadingSessionRepository,
        book_repository: IBookRepository,
        ownership_guard: OwnershipGuard,
    ):
        self.session_repository = session_repository
        self.book_repository = book_repository
        self.ownership_guard = ownership_guard

    async def create_session(
        self, owner: Owner, book_id: UUID, data: dict[str, Any]
    ) -> ReadingSession:
        book = await self.ownership_guard.load_book(owner, book_id)
        validate_pages(data["start_page"], data["end_page"], book.page_count)

        now = datetime.utcnow()
        session = ReadingSession(
            id=uuid4(),
            book_id=book.id,
            start_page=data["start_page"],
            end_page=data["end_page"],
            duration=data.get("duration"),
            start_time=data.get("start_time"),
            end_time=data.get("end_time"),
            date=data.get("date") or date.today(),
            notes=data.get("notes"),
            created_at=now,
            updated_at=now,
        )
        created = await self.session_repository.create(session)
        if created.end_page > book.current_page:
            await self.book_repository.advance_current_page(book.id, created.end_page)
        logger.info(
            "Session %s logged for book %s (pages %d-%d)",
            created.id, book.id, created.start_page, created.end_page,
        )
        return created

    async def update_session(
        self, owner: Owner, session_id: UUID, changes: dict[str, Any]
    ) -> ReadingSession:
        session, book = await self.ownership_guard.load_session(owner, session_id)
        unknown = set(changes) - set(SESSION_FIELDS)
        if unknown:
            raise ValidationError(f"Unsupported fields: {', '.join(sorted(unknown))}")
        for name in ("start_page", "end_page", "date"):
            if name in changes and changes[name] is None:
                raise ValidationError(f"{name} cannot be null")

        validate_pages(
            changes.get("start_page", session.start_page),
            changes.get("end_page", session.end_page),
            book.page_count,
        )
        for name, value in changes.items():
            setattr(session, name, value)
        return await self.session_repository.update(session)

    async def delete_session(self, owner: Owner, session_id: UUID) -> None:
        session, _ = await self.ownership_guard.load_session(owner, session_id)
        await self.session_repository.delete(session.id)
        logger.info("Session deleted: %s", session.id)

    async def list_book_sessions(self, owner: Owner, book_id: UUID) -> list[ReadingSession]:
        book = await self.ownership_guard.load_book(owner, book_id)
        return await self.session_repository.list_for_book(book.id)

    async def list_sessions(self, owner: Owner) -> list[tuple[ReadingSession, Book]]:
        return await self.session_repository.list_owned(self.ownership_guard.scope_for(owner))
