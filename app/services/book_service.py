"""Book service with business logic."""

import logging
from datetime import datetime
from typing import Any, Optional
from uuid import UUID, uuid4

from app.core.exceptions import ConflictError
from app.domain.entities import READING_STATUSES, Book
from app.domain.identity import Owner, QuotaStatus
from app.domain.repositories import IBookRepository
from app.domain.services import IBookService
from app.services.ownership import OwnershipGuard
from app.services.progress import ProgressStateMachine
from app.services.quota import QuotaEnforcer

logger = logging.getLogger(__name__)

METADATA_FIELDS = (
    "isbn",
    "subtitle",
    "authors",
    "cover_image_url",
    "description",
    "published_date",
    "page_count",
    "subjects",
)


class BookService(IBookService):
    """Library management scoped to the requesting owner."""

    def __init__(
        self,
        book_repository: IBookRepository,
        ownership_guard: OwnershipGuard,
        quota_enforcer: QuotaEnforcer,
        progress: Optional[ProgressStateMachine] = None,
    ):
        self.book_repository = book_repository
        self.ownership_guard = ownership_guard
        self.quota_enforcer = quota_enforcer
        self.progress = progress or ProgressStateMachine()

    async def add_book(self, owner: Owner, data: dict[str, Any]) -> Book:
        await self.quota_enforcer.check_can_create(owner)
        scope = self.ownership_guard.scope_for(owner)

        open_library_id = data["open_library_id"]
        existing = await self.book_repository.find_by_open_library_id(open_library_id, scope)
        if existing:
            raise ConflictError("Book already in your library", code="BOOK_ALREADY_IN_LIBRARY")

        now = datetime.utcnow()
        book = Book(
            id=uuid4(),
            open_library_id=open_library_id,
            title=data["title"],
            created_at=now,
            updated_at=now,
            **scope.owner_columns(),
            **{name: data[name] for name in METADATA_FIELDS if data.get(name) is not None},
        )
        initial = {"reading_status": data.get("reading_status") or "want_to_read"}
        self.progress.apply(book, initial, now=now)

        created = await self.book_repository.create(book)
        logger.info(
            "Book %s ('%s') added for %s owner", created.id, created.title, owner.kind
        )
        return created

    async def get_book(self, owner: Owner, book_id: UUID) -> Book:
        return await self.ownership_guard.load_book(owner, book_id)

    async def list_books(
        self,
        owner: Owner,
        status: Optional[str] = None,
        sort_by: str = "created_at",
        descending: bool = True,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[Book], int]:
        scope = self.ownership_guard.scope_for(owner)
        books = await self.book_repository.list_owned(
            scope,
            status=status,
            sort_by=sort_by,
            descending=descending,
            skip=(page - 1) * limit,
            limit=limit,
        )
        total = await self.book_repository.count_owned(scope, status=status)
        return books, total

    async def update_book(self, owner: Owner, book_id: UUID, changes: dict[str, Any]) -> Book:
        book = await self.ownership_guard.load_book(owner, book_id)
        self.progress.apply(book, changes)
        return await self.book_repository.update(book)

    async def delete_book(self, owner: Owner, book_id: UUID) -> None:
        await self.ownership_guard.load_book(owner, book_id)
        await self.book_repository.delete(book_id, self.ownership_guard.scope_for(owner))
        logger.info("Book deleted: %s", book_id)

    async def get_stats(self, owner: Owner) -> dict[str, Any]:
        books = await self.book_repository.list_owned(
            self.ownership_guard.scope_for(owner), limit=None
        )
        by_status = {status: 0 for status in READING_STATUSES}
        for book in books:
            by_status[book.reading_status] = by_status.get(book.reading_status, 0) + 1
        rated = [b.rating for b in books if b.rating]
        pages_read = sum(
            (b.page_count or 0) if b.reading_status == "completed" else b.current_page
            for b in books
        )
        return {
            "total_books": len(books),
            "want_to_read": by_status["want_to_read"],
            "currently_reading": by_status["reading"],
            "completed": by_status["completed"],
            "did_not_finish": by_status["did_not_finish"],
            "total_pages_read": pages_read,
            "average_rating": round(sum(rated) / len(rated), 2) if rated else None,
        }

    async def get_quota(self, owner: Owner) -> QuotaStatus:
        return await self.quota_enforcer.status(owner)
