"""Collection API routes (accounts only)."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.api.schemas import (
    CollectionBookAdd,
    CollectionCreate,
    CollectionResponse,
    CollectionUpdate,
    MessageResponse,
)
from app.core.dependencies import get_collection_service, get_current_user
from app.domain.entities import User
from app.services.collection_service import CollectionService

router = APIRouter(prefix="/collections", tags=["collections"])


@router.get("", response_model=list[CollectionResponse])
async def list_collections(
    current_user: Annotated[User, Depends(get_current_user)],
    collection_service: Annotated[CollectionService, Depends(get_collection_service)],
) -> list[CollectionResponse]:
    collections = await collection_service.list_collections(current_user.id)
    return [CollectionResponse.model_validate(c) for c in collections]


@router.post("", response_model=CollectionResponse, status_code=status.HTTP_201_CREATED)
async def create_collection(
    body: CollectionCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    collection_service: Annotated[CollectionService, Depends(get_collection_service)],
) -> CollectionResponse:
    collection = await collection_service.create_collection(
        current_user.id, body.model_dump(exclude_unset=True)
    )
    return CollectionResponse.model_validate(collection)


@router.put("/{collection_id}", response_model=CollectionResponse)
async def update_collection(
    collection_id: UUID,
    body: CollectionUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    collection_service: Annotated[CollectionService, Depends(get_collection_service)],
) -> CollectionResponse:
    collection = await collection_service.update_collection(
        current_user.id, collection_id, body.model_dump(exclude_unset=True)
    )
    return CollectionResponse.model_validate(collection)


@router.delete("/{collection_id}", response_model=MessageResponse)
async def delete_collection(
    collection_id: UUID,
    current_user: Annotated[User, Depends(get_current_user)],
    collection_service: Annotated[CollectionService, Depends(get_collection_service)],
) -> MessageResponse:
    await collection_service.delete_collection(current_user.id, collection_id)
    return MessageResponse(message="Collection deleted")


@router.post("/{collection_id}/books", response_model=MessageResponse)
async def add_book_to_collection(
    collection_id: UUID,
    body: CollectionBookAdd,
    current_user: Annotated[User, Depends(get_current_user)],
    collection_service: Annotated[CollectionService, Depends(get_collection_service)],
) -> MessageResponse:
    """Add one of the caller's own books to a collection."""
    await collection_service.add_book(current_user.id, collection_id, body.book_id)
    return MessageResponse(message="Book added to collection")


@router.delete("/{collection_id}/books/{book_id}", response_model=MessageResponse)
async def remove_book_from_collection(
    collection_id: UUID,
    book_id: UUID,
    current_user: Annotated[User, Depends(get_current_user)],
    collection_service: Annotated[CollectionService, Depends(get_collection_service)],
) -> MessageResponse:
    await collection_service.remove_book(current_user.id, collection_id, book_id)
    return MessageResponse(message="Book removed from collection")
