"""Reading-session API routes."""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.api.schemas import (
    MessageResponse,
    SessionBookSummary,
    SessionCreateWithBook,
    SessionResponse,
    SessionUpdate,
    SessionWithBookResponse,
)
from app.core.dependencies import get_owner, get_reading_session_service
from app.domain.identity import Owner
from app.domain.services import IReadingSessionService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.get("", response_model=list[SessionWithBookResponse])
async def list_sessions(
    owner: Annotated[Owner, Depends(get_owner)],
    session_service: Annotated[IReadingSessionService, Depends(get_reading_session_service)],
) -> list[SessionWithBookResponse]:
    """All sessions across the caller's books, newest first."""
    rows = await session_service.list_sessions(owner)
    return [
        SessionWithBookResponse(
            **SessionResponse.model_validate(session).model_dump(),
            book=SessionBookSummary.model_validate(book),
        )
        for session, book in rows
    ]


@router.get("/book/{book_id}", response_model=list[SessionResponse])
async def list_book_sessions(
    book_id: UUID,
    owner: Annotated[Owner, Depends(get_owner)],
    session_service: Annotated[IReadingSessionService, Depends(get_reading_session_service)],
) -> list[SessionResponse]:
    sessions = await session_service.list_book_sessions(owner, book_id)
    return [SessionResponse.model_validate(s) for s in sessions]


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(
    body: SessionCreateWithBook,
    owner: Annotated[Owner, Depends(get_owner)],
    session_service: Annotated[IReadingSessionService, Depends(get_reading_session_service)],
) -> SessionResponse:
    data = body.model_dump(exclude_unset=True)
    book_id = data.pop("book_id")
    session = await session_service.create_session(owner, book_id, data)
    return SessionResponse.model_validate(session)


@router.put("/{session_id}", response_model=SessionResponse)
async def update_session(
    session_id: UUID,
    body: SessionUpdate,
    owner: Annotated[Owner, Depends(get_owner)],
    session_service: Annotated[IReadingSessionService, Depends(get_reading_session_service)],
) -> SessionResponse:
    """Edit a logged session. The book's current page is not recalculated."""
    session = await session_service.update_session(
        owner, session_id, body.model_dump(exclude_unset=True)
    )
    return SessionResponse.model_validate(session)


@router.delete("/{session_id}", response_model=MessageResponse)
async def delete_session(
    session_id: UUID,
    owner: Annotated[Owner, Depends(get_owner)],
    session_service: Annotated[IReadingSessionService, Depends(get_reading_session_service)],
) -> MessageResponse:
    await session_service.delete_session(owner, session_id)
    return MessageResponse(message="Session deleted")
