"""Domain entities for Shlf."""

import datetime as dt
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from uuid import UUID

READING_STATUSES = ("want_to_read", "reading", "completed", "did_not_finish")


@dataclass
class User:
    id: UUID
    email: str
    username: str
    hashed_password: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    bio: Optional[str] = None
    is_active: bool = True
    last_login_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class Book:
    """A book in someone's library.

    Exactly one of ``user_id`` / ``device_id`` identifies the owner at
    creation. A book later claimed by an account keeps its ``device_id`` for
    provenance, but ``user_id`` takes precedence from then on.
    """

    id: UUID
    open_library_id: str
    title: str
    user_id: Optional[UUID] = None
    device_id: Optional[str] = None
    isbn: Optional[str] = None
    subtitle: Optional[str] = None
    authors: list[str] = field(default_factory=list)
    cover_image_url: Optional[str] = None
    description: Optional[str] = None
    published_date: Optional[str] = None
    page_count: Optional[int] = 0
    subjects: list[str] = field(default_factory=list)
    reading_status: str = "want_to_read"
    current_page: int = 0
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    rating: Optional[int] = None
    review: Optional[str] = None
    notes: Optional[str] = None
    is_favorite: bool = False
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def progress_percentage(self) -> int:
        if not self.page_count:
            return 0
        return min(round(self.current_page / self.page_count * 100), 100)


@dataclass
class ReadingSession:
    id: UUID
    book_id: UUID
    start_page: int
    end_page: int
    duration: Optional[int] = None  # minutes
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    date: dt.date = field(default_factory=dt.date.today)
    notes: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def pages_read(self) -> int:
        return self.end_page - self.start_page


@dataclass
class ReadingGoal:
    id: UUID
    user_id: UUID
    year: int
    target_books: int
    target_pages: Optional[int] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class CollectionBook:
    """Slim view of a book listed inside a collection."""

    id: UUID
    title: str
    cover_image_url: Optional[str] = None


@dataclass
class Collection:
    id: UUID
    user_id: UUID
    name: str
    icon: str = "folder.fill"
    color: str = "#007AFF"
    sort_order: int = 0
    books: list[CollectionBook] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def book_count(self) -> int:
        return len(self.books)
