"""Book API routes (library CRUD, stats, quota, per-book sessions)."""

import logging
import math
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.api.schemas import (
    BookCreate,
    BookDetailResponse,
    BookListResponse,
    BookResponse,
    BookSortField,
    BookUpdate,
    MessageResponse,
    Pagination,
    QuotaResponse,
    ReadingStatus,
    SessionCreate,
    SessionResponse,
    StatsResponse,
)
from app.core.dependencies import get_book_service, get_owner, get_reading_session_service
from app.domain.identity import Owner
from app.domain.services import IBookService, IReadingSessionService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/books", tags=["books"])


# ---------------------------------------------------------------------------
# Library
# ---------------------------------------------------------------------------
@router.get("", response_model=BookListResponse)
async def list_books(
    owner: Annotated[Owner, Depends(get_owner)],
    book_service: Annotated[IBookService, Depends(get_book_service)],
    reading_status: Annotated[Optional[ReadingStatus], Query(alias="status")] = None,
    sort: Annotated[BookSortField, Query()] = "created_at",
    order: Annotated[str, Query(pattern="^(asc|desc)$")] = "desc",
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> BookListResponse:
    """List the caller's books with filtering, sorting and pagination."""
    books, total = await book_service.list_books(
        owner,
        status=reading_status,
        sort_by=sort,
        descending=order == "desc",
        page=page,
        limit=limit,
    )
    return BookListResponse(
        books=[BookResponse.model_validate(b) for b in books],
        pagination=Pagination(
            page=page, limit=limit, total=total, total_pages=math.ceil(total / limit)
        ),
    )


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    owner: Annotated[Owner, Depends(get_owner)],
    book_service: Annotated[IBookService, Depends(get_book_service)],
) -> StatsResponse:
    return StatsResponse(**await book_service.get_stats(owner))


@router.get("/quota", response_model=QuotaResponse)
async def get_quota(
    owner: Annotated[Owner, Depends(get_owner)],
    book_service: Annotated[IBookService, Depends(get_book_service)],
) -> QuotaResponse:
    """How many books this identity may still add without an account."""
    return QuotaResponse.model_validate(await book_service.get_quota(owner))


@router.post("", response_model=BookResponse, status_code=status.HTTP_201_CREATED)
async def create_book(
    body: BookCreate,
    owner: Annotated[Owner, Depends(get_owner)],
    book_service: Annotated[IBookService, Depends(get_book_service)],
) -> BookResponse:
    """Add a book to the caller's library.

    Anonymous devices are limited to a handful of books; beyond that the
    request is refused with ``BOOK_LIMIT_REACHED`` and the client should
    prompt for an account.
    """
    book = await book_service.add_book(owner, body.model_dump(exclude_unset=True))
    return BookResponse.model_validate(book)


@router.get("/{book_id}", response_model=BookDetailResponse)
async def get_book(
    book_id: UUID,
    owner: Annotated[Owner, Depends(get_owner)],
    book_service: Annotated[IBookService, Depends(get_book_service)],
    session_service: Annotated[IReadingSessionService, Depends(get_reading_session_service)],
) -> BookDetailResponse:
    book = await book_service.get_book(owner, book_id)
    sessions = await session_service.list_book_sessions(owner, book.id)
    detail = BookDetailResponse.model_validate(book)
    detail.reading_sessions = [SessionResponse.model_validate(s) for s in sessions]
    return detail


@router.put("/{book_id}", response_model=BookResponse)
async def update_book(
    book_id: UUID,
    body: BookUpdate,
    owner: Annotated[Owner, Depends(get_owner)],
    book_service: Annotated[IBookService, Depends(get_book_service)],
) -> BookResponse:
    """Update reading progress or personal fields; omitted fields are untouched."""
    book = await book_service.update_book(owner, book_id, body.model_dump(exclude_unset=True))
    return BookResponse.model_validate(book)


@router.delete("/{book_id}", response_model=MessageResponse)
async def delete_book(
    book_id: UUID,
    owner: Annotated[Owner, Depends(get_owner)],
    book_service: Annotated[IBookService, Depends(get_book_service)],
) -> MessageResponse:
    await book_service.delete_book(owner, book_id)
    return MessageResponse(message="Book deleted")


# ---------------------------------------------------------------------------
# Sessions on a book
# ---------------------------------------------------------------------------
@router.post(
    "/{book_id}/sessions",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_book_session(
    book_id: UUID,
    body: SessionCreate,
    owner: Annotated[Owner, Depends(get_owner)],
    session_service: Annotated[IReadingSessionService, Depends(get_reading_session_service)],
) -> SessionResponse:
    session = await session_service.create_session(
        owner, book_id, body.model_dump(exclude_unset=True)
    )
    return SessionResponse.model_validate(session)
