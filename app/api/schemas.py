"""Pydantic schemas for API requests and responses.

Payloads are camelCase on the wire; snake_case field names are accepted on
input as well.
"""

import datetime as dt
from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

ReadingStatus = Literal["want_to_read", "reading", "completed", "did_not_finish"]
BookSortField = Literal[
    "created_at",
    "updated_at",
    "title",
    "rating",
    "current_page",
    "reading_status",
]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------
class RegisterRequest(CamelModel):
    email: EmailStr
    username: str = Field(..., min_length=3, max_length=30)
    # bcrypt only looks at the first 72 bytes
    password: str = Field(..., min_length=6, max_length=72)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=72)


class UserResponse(CamelModel):
    id: UUID
    email: str
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    bio: Optional[str] = None
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class AuthResponse(CamelModel):
    token: str
    user: UserResponse


class ProfileUpdateRequest(CamelModel):
    username: Optional[str] = Field(None, min_length=3, max_length=30)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = Field(None, max_length=500)


class MessageResponse(CamelModel):
    message: str


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------
class QuotaResponse(CamelModel):
    limit: Optional[int] = None
    used: int
    remaining: Optional[int] = None
    requires_account: bool


class IdentityResponse(CamelModel):
    kind: Literal["user", "device", "none"]
    user_id: Optional[UUID] = None
    device_id: Optional[str] = None
    quota: Optional[QuotaResponse] = None


# ---------------------------------------------------------------------------
# Books
# ---------------------------------------------------------------------------
class BookCreate(CamelModel):
    open_library_id: str = Field(..., min_length=1, max_length=64)
    title: str = Field(..., min_length=1, max_length=500)
    isbn: Optional[str] = Field(None, max_length=20)
    subtitle: Optional[str] = Field(None, max_length=500)
    authors: list[str] = Field(default_factory=list)
    cover_image_url: Optional[str] = None
    description: Optional[str] = None
    published_date: Optional[str] = Field(None, max_length=50)
    page_count: Optional[int] = Field(None, ge=0)
    subjects: list[str] = Field(default_factory=list)
    reading_status: Optional[ReadingStatus] = None


class BookUpdate(CamelModel):
    """Progress and personal fields; catalogue metadata is not editable."""

    reading_status: Optional[ReadingStatus] = None
    current_page: Optional[int] = Field(None, ge=0)
    rating: Optional[int] = Field(None, ge=1, le=5)
    review: Optional[str] = None
    notes: Optional[str] = None
    is_favorite: Optional[bool] = None


class SessionResponse(CamelModel):
    id: UUID
    book_id: UUID
    start_page: int
    end_page: int
    pages_read: int
    duration: Optional[int] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    date: dt.date
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class BookResponse(CamelModel):
    id: UUID
    open_library_id: str
    isbn: Optional[str] = None
    title: str
    subtitle: Optional[str] = None
    authors: list[str] = []
    cover_image_url: Optional[str] = None
    description: Optional[str] = None
    published_date: Optional[str] = None
    page_count: Optional[int] = 0
    subjects: list[str] = []
    reading_status: ReadingStatus
    current_page: int
    progress_percentage: int
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    rating: Optional[int] = None
    review: Optional[str] = None
    notes: Optional[str] = None
    is_favorite: bool
    created_at: datetime
    updated_at: datetime


class BookDetailResponse(BookResponse):
    reading_sessions: list[SessionResponse] = []


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class BookListResponse(CamelModel):
    books: list[BookResponse]
    pagination: Pagination


class StatsResponse(CamelModel):
    total_books: int
    want_to_read: int
    currently_reading: int
    completed: int
    did_not_finish: int
    total_pages_read: int
    average_rating: Optional[float] = None


# ---------------------------------------------------------------------------
# Reading sessions
# ---------------------------------------------------------------------------
class SessionCreate(CamelModel):
    start_page: int = Field(..., ge=0)
    end_page: int = Field(..., ge=0)
    duration: Optional[int] = Field(None, ge=0, description="Minutes")
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    date: Optional[dt.date] = None
    notes: Optional[str] = None


class SessionCreateWithBook(SessionCreate):
    book_id: UUID


class SessionUpdate(CamelModel):
    start_page: Optional[int] = Field(None, ge=0)
    end_page: Optional[int] = Field(None, ge=0)
    duration: Optional[int] = Field(None, ge=0)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    date: Optional[dt.date] = None
    notes: Optional[str] = None


class SessionBookSummary(CamelModel):
    id: UUID
    title: str
    cover_image_url: Optional[str] = None


class SessionWithBookResponse(SessionResponse):
    book: SessionBookSummary


# ---------------------------------------------------------------------------
# Goals
# ---------------------------------------------------------------------------
class GoalRequest(CamelModel):
    year: int = Field(..., ge=2000, le=2100)
    target_books: int = Field(..., ge=1, le=1000)
    target_pages: Optional[int] = Field(None, ge=0)


class GoalResponse(CamelModel):
    id: UUID
    year: int
    target_books: int
    target_pages: Optional[int] = None
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Collections
# ---------------------------------------------------------------------------
class CollectionCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    icon: Optional[str] = Field(None, max_length=50)
    color: Optional[str] = Field(None, max_length=20)
    sort_order: Optional[int] = None


class CollectionUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    icon: Optional[str] = Field(None, max_length=50)
    color: Optional[str] = Field(None, max_length=20)
    sort_order: Optional[int] = None


class CollectionBookAdd(CamelModel):
    book_id: UUID


class CollectionBookResponse(CamelModel):
    id: UUID
    title: str
    cover_image_url: Optional[str] = None


class CollectionResponse(CamelModel):
    id: UUID
    name: str
    icon: str
    color: str
    sort_order: int
    books: list[CollectionBookResponse] = []
    book_count: int = 0
    created_at: datetime
    updated_at: datetime
