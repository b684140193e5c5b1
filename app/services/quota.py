"""Anonymous book quota."""

import logging

from app.core.exceptions import DeviceRequiredError, QuotaExceededError
from app.domain.identity import (
    AnonymousDevice,
    AuthenticatedUser,
    Owner,
    OwnerScope,
    QuotaStatus,
)
from app.domain.repositories import IBookRepository

logger = logging.getLogger(__name__)


class QuotaEnforcer:
    """Caps how many books an anonymous device may hold before it needs an account.

    Accounts are unlimited. Only unclaimed device books count toward the cap.
    The count-then-insert sequence is not serialized, so two simultaneous
    creations from one device can both pass the check.
    """

    def __init__(self, book_repository: IBookRepository, limit: int = 3):
        self.book_repository = book_repository
        self.limit = limit

    async def check_can_create(self, owner: Owner) -> None:
        if isinstance(owner, AuthenticatedUser):
            return
        if not isinstance(owner, AnonymousDevice):
            raise DeviceRequiredError()
        used = await self._count(owner.device_id)
        if used >= self.limit:
            logger.info("Device %s hit the book limit (%d/%d)", owner.device_id, used, self.limit)
            raise QuotaExceededError(limit=self.limit, used=used)

    async def status(self, owner: Owner) -> QuotaStatus:
        if isinstance(owner, AuthenticatedUser):
            used = await self.book_repository.count_owned(OwnerScope(user_id=owner.user_id))
            return QuotaStatus(limit=None, used=used, remaining=None, requires_account=False)
        if not isinstance(owner, AnonymousDevice):
            raise DeviceRequiredError()
        used = await self._count(owner.device_id)
        return QuotaStatus(
            limit=self.limit,
            used=used,
            remaining=max(0, self.limit - used),
            requires_account=used >= self.limit,
        )

    async def _count(self, device_id: str) -> int:
        return await self.book_repository.count_owned(OwnerScope(device_id=device_id))
