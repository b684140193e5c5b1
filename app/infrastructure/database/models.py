"""SQLAlchemy database models."""

import uuid
from datetime import date, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    pass


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False, unique=True, index=True)
    username = Column(String(30), nullable=False, unique=True, index=True)
    hashed_password = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    bio = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class BookModel(Base):
    __tablename__ = "books"
    # Backstops for the check-then-insert duplicate guard in BookService.
    __table_args__ = (
        UniqueConstraint("user_id", "open_library_id", name="uq_books_user_work"),
        # Claimed rows keep device_id but leave the device's library.
        Index(
            "uq_books_device_work",
            "device_id",
            "open_library_id",
            unique=True,
            postgresql_where=text("user_id IS NULL"),
            sqlite_where=text("user_id IS NULL"),
        ),
        Index("ix_books_device_unclaimed", "device_id", "user_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    device_id = Column(String(255), nullable=True, index=True)
    open_library_id = Column(String(100), nullable=False, index=True)
    isbn = Column(String(20), nullable=True)
    title = Column(String(500), nullable=False)
    subtitle = Column(String(500), nullable=True)
    authors = Column(JSON, default=list, nullable=False)
    cover_image_url = Column(String(1024), nullable=True)
    description = Column(Text, nullable=True)
    published_date = Column(String(50), nullable=True)
    page_count = Column(Integer, default=0, nullable=True)
    subjects = Column(JSON, default=list, nullable=False)
    reading_status = Column(String(20), default="want_to_read", nullable=False, index=True)
    current_page = Column(Integer, default=0, nullable=False)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    rating = Column(Integer, nullable=True)
    review = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    is_favorite = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    sessions = relationship(
        "ReadingSessionModel", back_populates="book", cascade="all, delete-orphan", passive_deletes=True
    )


class ReadingSessionModel(Base):
    __tablename__ = "reading_sessions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    book_id = Column(Uuid, ForeignKey("books.id", ondelete="CASCADE"), nullable=False, index=True)
    start_page = Column(Integer, nullable=False)
    end_page = Column(Integer, nullable=False)
    duration = Column(Integer, nullable=True)  # minutes
    start_time = Column(DateTime, nullable=True)
    end_time = Column(DateTime, nullable=True)
    date = Column(Date, default=date.today, nullable=False, index=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    book = relationship("BookModel", back_populates="sessions")


class ReadingGoalModel(Base):
    __tablename__ = "reading_goals"
    __table_args__ = (UniqueConstraint("user_id", "year", name="uq_goal_user_year"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    year = Column(Integer, nullable=False, index=True)
    target_books = Column(Integer, nullable=False)
    target_pages = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class CollectionModel(Base):
    __tablename__ = "collections"
    __table_args__ = (Index("ix_collections_user_sort", "user_id", "sort_order"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    icon = Column(String(100), default="folder.fill", nullable=False)
    color = Column(String(20), default="#007AFF", nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class BookCollectionModel(Base):
    __tablename__ = "book_collections"
    __table_args__ = (UniqueConstraint("book_id", "collection_id", name="uq_book_collection"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    book_id = Column(Uuid, ForeignKey("books.id", ondelete="CASCADE"), nullable=False, index=True)
    collection_id = Column(
        Uuid, ForeignKey("collections.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
