"""Reading-status state machine for books.

Clients may move a book between any two statuses; what is enforced are the
consequences of a move:

* the first time a book enters ``reading`` it gets a ``started_at`` stamp;
* the first time it enters ``completed`` it gets a ``completed_at`` stamp
  and, unless the same update sets ``current_page`` explicitly, jumps to its
  last page;
* ``current_page`` can never pass a known page count.

Updates are merges: only the keys present in ``changes`` are applied.
"""

import logging
from datetime import datetime
from typing import Any, Optional

from app.core.exceptions import ValidationError
from app.domain.entities import READING_STATUSES, Book

logger = logging.getLogger(__name__)

MUTABLE_FIELDS = frozenset(
    {"reading_status", "current_page", "rating", "review", "notes", "is_favorite"}
)
NON_NULLABLE_FIELDS = frozenset({"reading_status", "current_page", "is_favorite"})


class ProgressStateMachine:

    def apply(self, book: Book, changes: dict[str, Any], now: Optional[datetime] = None) -> Book:
        """Apply a partial update to ``book`` in place and return it."""
        now = now or datetime.utcnow()
        unknown = set(changes) - MUTABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unsupported fields: {', '.join(sorted(unknown))}")
        for name in NON_NULLABLE_FIELDS & set(changes):
            if changes[name] is None:
                raise ValidationError(f"{name} cannot be null")

        if "reading_status" in changes:
            self._enter_status(book, changes["reading_status"], now, "current_page" in changes)
        if "current_page" in changes:
            book.current_page = self.validate_page(changes["current_page"], book.page_count)
        if "rating" in changes:
            book.rating = self.validate_rating(changes["rating"])
        for name in ("review", "notes", "is_favorite"):
            if name in changes:
                setattr(book, name, changes[name])
        return book

    def _enter_status(self, book: Book, status: str, now: datetime, page_supplied: bool) -> None:
        if status not in READING_STATUSES:
            raise ValidationError(f"Invalid reading status: {status}")
        if status != book.reading_status:
            logger.debug("Book %s: %s -> %s", book.id, book.reading_status, status)
        book.reading_status = status
        if status == "reading" and book.started_at is None:
            book.started_at = now
        if status == "completed" and book.completed_at is None:
            book.completed_at = now
            if not page_supplied and book.page_count:
                book.current_page = book.page_count

    @staticmethod
    def validate_page(page: int, page_count: Optional[int]) -> int:
        if page < 0:
            raise ValidationError("Current page cannot be negative")
        if page_count and page > page_count:
            raise ValidationError("Current page cannot exceed total page count")
        return page

    @staticmethod
    def validate_rating(rating: Optional[int]) -> Optional[int]:
        if rating is not None and not 1 <= rating <= 5:
            raise ValidationError("Rating must be between 1 and 5")
        return rating
