"""Repository implementations."""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError
from app.domain.entities import (
    Book,
    Collection,
    CollectionBook,
    ReadingGoal,
    ReadingSession,
    User,
)
from app.domain.identity import OwnerScope
from app.domain.repositories import (
    IBookRepository,
    ICollectionRepository,
    IReadingGoalRepository,
    IReadingSessionRepository,
    IUserRepository,
)
from app.infrastructure.database.models import (
    BookCollectionModel,
    BookModel,
    CollectionModel,
    ReadingGoalModel,
    ReadingSessionModel,
    UserModel,
)

logger = logging.getLogger(__name__)

BOOK_SORT_COLUMNS = {
    "created_at": BookModel.created_at,
    "updated_at": BookModel.updated_at,
    "title": BookModel.title,
    "rating": BookModel.rating,
    "current_page": BookModel.current_page,
    "reading_status": BookModel.reading_status,
}


def owned_books(scope: OwnerScope):
    """SQL predicate selecting the books visible to ``scope``."""
    if scope.user_id is not None:
        return BookModel.user_id == scope.user_id
    return and_(BookModel.device_id == scope.device_id, BookModel.user_id.is_(None))


# ---------------------------------------------------------------------------
# User Repository
# ---------------------------------------------------------------------------
class UserRepository(IUserRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, user: User) -> User:
        db_user = UserModel(
            id=user.id,
            email=user.email,
            username=user.username,
            hashed_password=user.hashed_password,
            first_name=user.first_name,
            last_name=user.last_name,
            bio=user.bio,
            is_active=user.is_active,
            last_login_at=user.last_login_at,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )
        self.session.add(db_user)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ConflictError("Email or username already registered", code="USER_EXISTS")
        await self.session.refresh(db_user)
        return self._to_entity(db_user)

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        result = await self.session.execute(select(UserModel).where(UserModel.id == user_id))
        db_user = result.scalar_one_or_none()
        return self._to_entity(db_user) if db_user else None

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(select(UserModel).where(UserModel.email == email))
        db_user = result.scalar_one_or_none()
        return self._to_entity(db_user) if db_user else None

    async def get_by_username(self, username: str) -> Optional[User]:
        result = await self.session.execute(select(UserModel).where(UserModel.username == username))
        db_user = result.scalar_one_or_none()
        return self._to_entity(db_user) if db_user else None

    async def update(self, user: User) -> User:
        result = await self.session.execute(select(UserModel).where(UserModel.id == user.id))
        db_user = result.scalar_one()
        db_user.email = user.email
        db_user.username = user.username
        db_user.hashed_password = user.hashed_password
        db_user.first_name = user.first_name
        db_user.last_name = user.last_name
        db_user.bio = user.bio
        db_user.is_active = user.is_active
        db_user.last_login_at = user.last_login_at
        db_user.updated_at = datetime.utcnow()
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ConflictError("Username already taken", code="USERNAME_TAKEN")
        await self.session.refresh(db_user)
        return self._to_entity(db_user)

    @staticmethod
    def _to_entity(model: UserModel) -> User:
        return User(
            id=model.id,
            email=model.email,
            username=model.username,
            hashed_password=model.hashed_password,
            first_name=model.first_name,
            last_name=model.last_name,
            bio=model.bio,
            is_active=model.is_active,
            last_login_at=model.last_login_at,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


# ---------------------------------------------------------------------------
# Book Repository
# ---------------------------------------------------------------------------
class BookRepository(IBookRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, book: Book) -> Book:
        db_book = BookModel(
            id=book.id,
            user_id=book.user_id,
            device_id=book.device_id,
            open_library_id=book.open_library_id,
            isbn=book.isbn,
            title=book.title,
            subtitle=book.subtitle,
            authors=book.authors,
            cover_image_url=book.cover_image_url,
            description=book.description,
            published_date=book.published_date,
            page_count=book.page_count,
            subjects=book.subjects,
            reading_status=book.reading_status,
            current_page=book.current_page,
            started_at=book.started_at,
            completed_at=book.completed_at,
            rating=book.rating,
            review=book.review,
            notes=book.notes,
            is_favorite=book.is_favorite,
            created_at=book.created_at,
            updated_at=book.updated_at,
        )
        self.session.add(db_book)
        try:
            await self.session.commit()
        except IntegrityError:
            # A concurrent insert won the race past the duplicate check.
            await self.session.rollback()
            logger.info("Duplicate book %s rejected by constraint", book.open_library_id)
            raise ConflictError("Book already in your library", code="BOOK_ALREADY_IN_LIBRARY")
        await self.session.refresh(db_book)
        return self._to_entity(db_book)

    async def get_owned(self, book_id: UUID, scope: OwnerScope) -> Optional[Book]:
        result = await self.session.execute(
            select(BookModel).where(BookModel.id == book_id, owned_books(scope))
        )
        db_book = result.scalar_one_or_none()
        return self._to_entity(db_book) if db_book else None

    async def find_by_open_library_id(
        self, open_library_id: str, scope: OwnerScope
    ) -> Optional[Book]:
        result = await self.session.execute(
            select(BookModel).where(
                BookModel.open_library_id == open_library_id, owned_books(scope)
            )
        )
        db_book = result.scalars().first()
        return self._to_entity(db_book) if db_book else None

    async def list_owned(
        self,
        scope: OwnerScope,
        status: Optional[str] = None,
        sort_by: str = "created_at",
        descending: bool = True,
        skip: int = 0,
        limit: Optional[int] = 20,
    ) -> list[Book]:
        column = BOOK_SORT_COLUMNS.get(sort_by, BookModel.created_at)
        stmt = select(BookModel).where(owned_books(scope))
        if status:
            stmt = stmt.where(BookModel.reading_status == status)
        stmt = stmt.order_by(column.desc() if descending else column.asc(), BookModel.id)
        stmt = stmt.offset(skip)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return [self._to_entity(b) for b in result.scalars().all()]

    async def count_owned(self, scope: OwnerScope, status: Optional[str] = None) -> int:
        stmt = select(func.count()).select_from(BookModel).where(owned_books(scope))
        if status:
            stmt = stmt.where(BookModel.reading_status == status)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def update(self, book: Book) -> Book:
        result = await self.session.execute(select(BookModel).where(BookModel.id == book.id))
        db_book = result.scalar_one()
        db_book.reading_status = book.reading_status
        db_book.current_page = book.current_page
        db_book.started_at = book.started_at
        db_book.completed_at = book.completed_at
        db_book.rating = book.rating
        db_book.review = book.review
        db_book.notes = book.notes
        db_book.is_favorite = book.is_favorite
        db_book.updated_at = datetime.utcnow()
        await self.session.commit()
        await self.session.refresh(db_book)
        return self._to_entity(db_book)

    async def advance_current_page(self, book_id: UUID, page: int) -> None:
        # Conditional UPDATE so concurrent sessions can only move progress forward.
        await self.session.execute(
            update(BookModel)
            .where(BookModel.id == book_id, BookModel.current_page < page)
            .values(current_page=page, updated_at=datetime.utcnow())
        )
        await self.session.commit()

    async def delete(self, book_id: UUID, scope: OwnerScope) -> bool:
        result = await self.session.execute(
            select(BookModel).where(BookModel.id == book_id, owned_books(scope))
        )
        db_book = result.scalar_one_or_none()
        if db_book is None:
            return False
        await self.session.execute(
            delete(ReadingSessionModel).where(ReadingSessionModel.book_id == book_id)
        )
        await self.session.execute(
            delete(BookCollectionModel).where(BookCollectionModel.book_id == book_id)
        )
        await self.session.execute(delete(BookModel).where(BookModel.id == book_id))
        await self.session.commit()
        return True

    async def claim_device_books(self, device_id: str, user_id: UUID) -> int:
        held = await self.session.execute(
            select(BookModel.open_library_id).where(BookModel.user_id == user_id)
        )
        already_held = set(held.scalars().all())
        result = await self.session.execute(
            select(BookModel).where(
                BookModel.device_id == device_id, BookModel.user_id.is_(None)
            )
        )
        claimed = 0
        for db_book in result.scalars().all():
            if db_book.open_library_id in already_held:
                continue
            db_book.user_id = user_id
            db_book.updated_at = datetime.utcnow()
            already_held.add(db_book.open_library_id)
            claimed += 1
        await self.session.commit()
        return claimed

    @staticmethod
    def _to_entity(model: BookModel) -> Book:
        return Book(
            id=model.id,
            user_id=model.user_id,
            device_id=model.device_id,
            open_library_id=model.open_library_id,
            isbn=model.isbn,
            title=model.title,
            subtitle=model.subtitle,
            authors=list(model.authors or []),
            cover_image_url=model.cover_image_url,
            description=model.description,
            published_date=model.published_date,
            page_count=model.page_count,
            subjects=list(model.subjects or []),
            reading_status=model.reading_status,
            current_page=model.current_page,
            started_at=model.started_at,
            completed_at=model.completed_at,
            rating=model.rating,
            review=model.review,
            notes=model.notes,
            is_favorite=model.is_favorite,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


# ---------------------------------------------------------------------------
# Reading Session Repository
# ---------------------------------------------------------------------------
class ReadingSessionRepository(IReadingSessionRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, session: ReadingSession) -> ReadingSession:
        db_session = ReadingSessionModel(
            id=session.id,
            book_id=session.book_id,
            start_page=session.start_page,
            end_page=session.end_page,
            duration=session.duration,
            start_time=session.start_time,
            end_time=session.end_time,
            date=session.date,
            notes=session.notes,
            created_at=session.created_at,
            updated_at=session.updated_at,
        )
        self.session.add(db_session)
        await self.session.commit()
        await self.session.refresh(db_session)
        return self._to_entity(db_session)

    async def get_owned(
        self, session_id: UUID, scope: OwnerScope
    ) -> Optional[tuple[ReadingSession, Book]]:
        result = await self.session.execute(
            select(ReadingSessionModel, BookModel)
            .join(BookModel, ReadingSessionModel.book_id == BookModel.id)
            .where(ReadingSessionModel.id == session_id, owned_books(scope))
        )
        row = result.first()
        if row is None:
            return None
        db_session, db_book = row
        return self._to_entity(db_session), BookRepository._to_entity(db_book)

    async def list_for_book(self, book_id: UUID) -> list[ReadingSession]:
        result = await self.session.execute(
            select(ReadingSessionModel)
            .where(ReadingSessionModel.book_id == book_id)
            .order_by(ReadingSessionModel.date.desc(), ReadingSessionModel.created_at.desc())
        )
        return [self._to_entity(s) for s in result.scalars().all()]

    async def list_owned(self, scope: OwnerScope) -> list[tuple[ReadingSession, Book]]:
        result = await self.session.execute(
            select(ReadingSessionModel, BookModel)
            .join(BookModel, ReadingSessionModel.book_id == BookModel.id)
            .where(owned_books(scope))
            .order_by(ReadingSessionModel.date.desc(), ReadingSessionModel.created_at.desc())
        )
        return [
            (self._to_entity(s), BookRepository._to_entity(b)) for s, b in result.all()
        ]

    async def update(self, session: ReadingSession) -> ReadingSession:
        result = await self.session.execute(
            select(ReadingSessionModel).where(ReadingSessionModel.id == session.id)
        )
        db_session = result.scalar_one()
        db_session.start_page = session.start_page
        db_session.end_page = session.end_page
        db_session.duration = session.duration
        db_session.start_time = session.start_time
        db_session.end_time = session.end_time
        db_session.date = session.date
        db_session.notes = session.notes
        db_session.updated_at = datetime.utcnow()
        await self.session.commit()
        await self.session.refresh(db_session)
        return self._to_entity(db_session)

    async def delete(self, session_id: UUID) -> bool:
        result = await self.session.execute(
            delete(ReadingSessionModel).where(ReadingSessionModel.id == session_id)
        )
        await self.session.commit()
        return result.rowcount > 0

    @staticmethod
    def _to_entity(model: ReadingSessionModel) -> ReadingSession:
        return ReadingSession(
            id=model.id,
            book_id=model.book_id,
            start_page=model.start_page,
            end_page=model.end_page,
            duration=model.duration,
            start_time=model.start_time,
            end_time=model.end_time,
            date=model.date,
            notes=model.notes,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


# ---------------------------------------------------------------------------
# Reading Goal Repository
# ---------------------------------------------------------------------------
class ReadingGoalRepository(IReadingGoalRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_year(self, user_id: UUID, year: int) -> Optional[ReadingGoal]:
        result = await self.session.execute(
            select(ReadingGoalModel).where(
                ReadingGoalModel.user_id == user_id, ReadingGoalModel.year == year
            )
        )
        db_goal = result.scalar_one_or_none()
        return self._to_entity(db_goal) if db_goal else None

    async def list_for_user(self, user_id: UUID) -> list[ReadingGoal]:
        result = await self.session.execute(
            select(ReadingGoalModel)
            .where(ReadingGoalModel.user_id == user_id)
            .order_by(ReadingGoalModel.year.desc())
        )
        return [self._to_entity(g) for g in result.scalars().all()]

    async def save(self, goal: ReadingGoal) -> ReadingGoal:
        result = await self.session.execute(
            select(ReadingGoalModel).where(ReadingGoalModel.id == goal.id)
        )
        db_goal = result.scalar_one_or_none()
        if db_goal is None:
            db_goal = ReadingGoalModel(
                id=goal.id,
                user_id=goal.user_id,
                year=goal.year,
                created_at=goal.created_at,
            )
            self.session.add(db_goal)
        db_goal.target_books = goal.target_books
        db_goal.target_pages = goal.target_pages
        db_goal.updated_at = datetime.utcnow()
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ConflictError("A goal for this year already exists", code="GOAL_EXISTS")
        await self.session.refresh(db_goal)
        return self._to_entity(db_goal)

    async def delete(self, goal_id: UUID, user_id: UUID) -> bool:
        result = await self.session.execute(
            delete(ReadingGoalModel).where(
                ReadingGoalModel.id == goal_id, ReadingGoalModel.user_id == user_id
            )
        )
        await self.session.commit()
        return result.rowcount > 0

    @staticmethod
    def _to_entity(model: ReadingGoalModel) -> ReadingGoal:
        return ReadingGoal(
            id=model.id,
            user_id=model.user_id,
            year=model.year,
            target_books=model.target_books,
            target_pages=model.target_pages,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


# ---------------------------------------------------------------------------
# Collection Repository
# ---------------------------------------------------------------------------
class CollectionRepository(ICollectionRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, collection: Collection) -> Collection:
        db_collection = CollectionModel(
            id=collection.id,
            user_id=collection.user_id,
            name=collection.name,
            icon=collection.icon,
            color=collection.color,
            sort_order=collection.sort_order,
            created_at=collection.created_at,
            updated_at=collection.updated_at,
        )
        self.session.add(db_collection)
        await self.session.commit()
        await self.session.refresh(db_collection)
        return self._to_entity(db_collection, [])

    async def get_for_user(self, collection_id: UUID, user_id: UUID) -> Optional[Collection]:
        result = await self.session.execute(
            select(CollectionModel).where(
                CollectionModel.id == collection_id, CollectionModel.user_id == user_id
            )
        )
        db_collection = result.scalar_one_or_none()
        if db_collection is None:
            return None
        books = await self._books_by_collection([collection_id])
        return self._to_entity(db_collection, books.get(collection_id, []))

    async def list_for_user(self, user_id: UUID) -> list[Collection]:
        result = await self.session.execute(
            select(CollectionModel)
            .where(CollectionModel.user_id == user_id)
            .order_by(CollectionModel.sort_order.asc(), CollectionModel.created_at.asc())
        )
        db_collections = result.scalars().all()
        books = await self._books_by_collection([c.id for c in db_collections])
        return [self._to_entity(c, books.get(c.id, [])) for c in db_collections]

    async def update(self, collection: Collection) -> Collection:
        result = await self.session.execute(
            select(CollectionModel).where(CollectionModel.id == collection.id)
        )
        db_collection = result.scalar_one()
        db_collection.name = collection.name
        db_collection.icon = collection.icon
        db_collection.color = collection.color
        db_collection.sort_order = collection.sort_order
        db_collection.updated_at = datetime.utcnow()
        await self.session.commit()
        await self.session.refresh(db_collection)
        return self._to_entity(db_collection, collection.books)

    async def delete(self, collection_id: UUID, user_id: UUID) -> bool:
        result = await self.session.execute(
            select(CollectionModel).where(
                CollectionModel.id == collection_id, CollectionModel.user_id == user_id
            )
        )
        db_collection = result.scalar_one_or_none()
        if db_collection is None:
            return False
        await self.session.execute(
            delete(BookCollectionModel).where(BookCollectionModel.collection_id == collection_id)
        )
        await self.session.execute(delete(CollectionModel).where(CollectionModel.id == collection_id))
        await self.session.commit()
        return True

    async def add_book(self, collection_id: UUID, book_id: UUID) -> None:
        result = await self.session.execute(
            select(BookCollectionModel).where(
                BookCollectionModel.collection_id == collection_id,
                BookCollectionModel.book_id == book_id,
            )
        )
        if result.scalar_one_or_none() is not None:
            return
        self.session.add(BookCollectionModel(collection_id=collection_id, book_id=book_id))
        try:
            await self.session.commit()
        except IntegrityError:
            # Linked concurrently; the end state is the same.
            await self.session.rollback()

    async def remove_book(self, collection_id: UUID, book_id: UUID) -> None:
        await self.session.execute(
            delete(BookCollectionModel).where(
                BookCollectionModel.collection_id == collection_id,
                BookCollectionModel.book_id == book_id,
            )
        )
        await self.session.commit()

    async def _books_by_collection(
        self, collection_ids: list[UUID]
    ) -> dict[UUID, list[CollectionBook]]:
        if not collection_ids:
            return {}
        result = await self.session.execute(
            select(BookCollectionModel.collection_id, BookModel)
            .join(BookModel, BookCollectionModel.book_id == BookModel.id)
            .where(BookCollectionModel.collection_id.in_(collection_ids))
            .order_by(BookCollectionModel.created_at.asc())
        )
        grouped: dict[UUID, list[CollectionBook]] = {}
        for collection_id, db_book in result.all():
            grouped.setdefault(collection_id, []).append(
                CollectionBook(
                    id=db_book.id, title=db_book.title, cover_image_url=db_book.cover_image_url
                )
            )
        return grouped

    @staticmethod
    def _to_entity(model: CollectionModel, books: list[CollectionBook]) -> Collection:
        return Collection(
            id=model.id,
            user_id=model.user_id,
            name=model.name,
            icon=model.icon,
            color=model.color,
            sort_order=model.sort_order,
            books=books,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )
