import asyncio
import uuid

import pytest

from app.core.exceptions import AuthenticationError, DeviceRequiredError, NotFoundError, QuotaExceededError
from app.domain.entities import Book
from app.domain.identity import AnonymousDevice, AuthenticatedUser, OwnerScope, Unidentified
from app.services.ownership import OwnershipGuard
from app.services.quota import QuotaEnforcer


class InMemoryBooks:
    """Applies the owner predicate the same way the SQL repository does."""

    def __init__(self, books):
        self.books = {b.id: b for b in books}

    @staticmethod
    def _visible(book, scope):
        if scope.user_id is not None:
            return book.user_id == scope.user_id
        return book.device_id == scope.device_id and book.user_id is None

    async def get_owned(self, book_id, scope):
        book = self.books.get(book_id)
        return book if book and self._visible(book, scope) else None

    async def count_owned(self, scope, status=None):
        return sum(1 for b in self.books.values() if self._visible(b, scope))


class NoSessions:
    async def get_owned(self, session_id, scope):
        return None


def book_for(user_id=None, device_id=None):
    return Book(
        id=uuid.uuid4(), open_library_id=uuid.uuid4().hex, title="t",
        user_id=user_id, device_id=device_id,
    )


def test_scope_for_each_variant():
    user_id = uuid.uuid4()
    assert OwnershipGuard.scope_for(AuthenticatedUser(user_id)) == OwnerScope(user_id=user_id)
    assert OwnershipGuard.scope_for(AnonymousDevice("d1")) == OwnerScope(device_id="d1")
    with pytest.raises(AuthenticationError):
        OwnershipGuard.scope_for(Unidentified())


def test_owner_scope_requires_exactly_one_column():
    with pytest.raises(ValueError):
        OwnerScope()
    with pytest.raises(ValueError):
        OwnerScope(user_id=uuid.uuid4(), device_id="d1")


def test_foreign_and_missing_books_look_the_same():
    u1, u2 = uuid.uuid4(), uuid.uuid4()
    mine = book_for(user_id=u1)
    guard = OwnershipGuard(InMemoryBooks([mine]), NoSessions())

    assert asyncio.run(guard.load_book(AuthenticatedUser(u1), mine.id)) is mine

    with pytest.raises(NotFoundError) as foreign:
        asyncio.run(guard.load_book(AuthenticatedUser(u2), mine.id))
    with pytest.raises(NotFoundError) as missing:
        asyncio.run(guard.load_book(AuthenticatedUser(u2), uuid.uuid4()))
    assert foreign.value.payload() == missing.value.payload()


def test_claimed_book_leaves_device_scope():
    user_id = uuid.uuid4()
    claimed = book_for(user_id=user_id, device_id="d1")
    guard = OwnershipGuard(InMemoryBooks([claimed]), NoSessions())

    with pytest.raises(NotFoundError):
        asyncio.run(guard.load_book(AnonymousDevice("d1"), claimed.id))
    assert asyncio.run(guard.load_book(AuthenticatedUser(user_id), claimed.id)) is claimed


def test_missing_session_is_not_found():
    guard = OwnershipGuard(InMemoryBooks([]), NoSessions())
    with pytest.raises(NotFoundError, match="Session not found"):
        asyncio.run(guard.load_session(AnonymousDevice("d1"), uuid.uuid4()))


def test_quota_blocks_fourth_device_book():
    books = InMemoryBooks([book_for(device_id="d1") for _ in range(3)])
    quota = QuotaEnforcer(books, limit=3)

    with pytest.raises(QuotaExceededError) as exc:
        asyncio.run(quota.check_can_create(AnonymousDevice("d1")))
    payload = exc.value.payload()
    assert payload["code"] == "BOOK_LIMIT_REACHED"
    assert (payload["used"], payload["remaining"], payload["requiresAccount"]) == (3, 0, True)


def test_quota_ignores_claimed_books_and_exempts_users():
    user_id = uuid.uuid4()
    books = InMemoryBooks(
        [book_for(user_id=user_id, device_id="d1") for _ in range(5)]
        + [book_for(device_id="d1")]
    )
    quota = QuotaEnforcer(books, limit=3)

    asyncio.run(quota.check_can_create(AnonymousDevice("d1")))
    asyncio.run(quota.check_can_create(AuthenticatedUser(user_id)))

    status = asyncio.run(quota.status(AnonymousDevice("d1")))
    assert (status.limit, status.used, status.remaining, status.requires_account) == (3, 1, 2, False)

    user_status = asyncio.run(quota.status(AuthenticatedUser(user_id)))
    assert user_status.limit is None
    assert user_status.used == 5
    assert user_status.requires_account is False


def test_quota_requires_a_device():
    quota = QuotaEnforcer(InMemoryBooks([]), limit=3)
    with pytest.raises(DeviceRequiredError):
        asyncio.run(quota.check_can_create(Unidentified()))
