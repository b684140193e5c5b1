"""Book collections (accounts only)."""

import logging
from typing import Any
from uuid import UUID, uuid4

from app.core.exceptions import NotFoundError
from app.domain.entities import Collection
from app.domain.identity import AuthenticatedUser
from app.domain.repositories import ICollectionRepository
from app.services.ownership import OwnershipGuard

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("name", "icon", "color", "sort_order")


class CollectionService:

    def __init__(self, collection_repository: ICollectionRepository, ownership_guard: OwnershipGuard):
        self.collection_repository = collection_repository
        self.ownership_guard = ownership_guard

    async def list_collections(self, user_id: UUID) -> list[Collection]:
        return await self.collection_repository.list_for_user(user_id)

    async def create_collection(self, user_id: UUID, data: dict[str, Any]) -> Collection:
        collection = Collection(
            id=uuid4(),
            user_id=user_id,
            **{name: data[name] for name in EDITABLE_FIELDS if data.get(name) is not None},
        )
        created = await self.collection_repository.create(collection)
        logger.info("Collection %s created for user %s", created.id, user_id)
        return created

    async def update_collection(
        self, user_id: UUID, collection_id: UUID, changes: dict[str, Any]
    ) -> Collection:
        collection = await self._load(user_id, collection_id)
        for name in EDITABLE_FIELDS:
            if changes.get(name) is not None:
                setattr(collection, name, changes[name])
        return await self.collection_repository.update(collection)

    async def delete_collection(self, user_id: UUID, collection_id: UUID) -> None:
        if not await self.collection_repository.delete(collection_id, user_id):
            raise NotFoundError("Collection not found")

    async def add_book(self, user_id: UUID, collection_id: UUID, book_id: UUID) -> None:
        await self._load(user_id, collection_id)
        await self.ownership_guard.load_book(AuthenticatedUser(user_id=user_id), book_id)
        await self.collection_repository.add_book(collection_id, book_id)

    async def remove_book(self, user_id: UUID, collection_id: UUID, book_id: UUID) -> None:
        await self._load(user_id, collection_id)
        await self.collection_repository.remove_book(collection_id, book_id)

    async def _load(self, user_id: UUID, collection_id: UUID) -> Collection:
        collection = await self.collection_repository.get_for_user(collection_id, user_id)
        if collection is None:
            raise NotFoundError("Collection not found")
        return collection
