import asyncio
import os
import uuid

# The application engine is created at import time; keep it off Postgres.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.core.redis_client import get_redis
from app.infrastructure.database.connection import get_db
from app.infrastructure.database.models import Base
from app.main import app


class FakeRedis:
    """The slice of the redis.asyncio client the revocation list uses."""

    def __init__(self):
        self.store = {}

    async def setex(self, key, ttl, value):
        self.store[key] = value

    async def exists(self, key):
        return 1 if key in self.store else 0

    async def aclose(self):
        pass


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def client(tmp_path, fake_redis):
    db_file = tmp_path / "shlf_test.db"
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_file}", poolclass=NullPool)

    async def create_tables():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(create_tables())
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_maker() as session:
            yield session

    async def override_get_redis():
        yield fake_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    # Not used as a context manager: the lifespan would create tables on the real engine.
    test_client = TestClient(app)
    try:
        yield test_client
    finally:
        app.dependency_overrides.clear()
        asyncio.run(engine.dispose())


@pytest.fixture
def device_headers():
    def make(device_id=None):
        return {"X-Device-ID": device_id or f"device-{uuid.uuid4().hex[:8]}"}

    return make


@pytest.fixture
def register_user(client):
    """Register an account and return ``(auth_headers, body)``."""

    def register(username=None, headers=None, password="secret123"):
        username = username or f"reader{uuid.uuid4().hex[:6]}"
        response = client.post(
            "/auth/register",
            json={
                "email": f"{username}@example.com",
                "username": username,
                "password": password,
            },
            headers=headers or {},
        )
        assert response.status_code == 201, response.text
        body = response.json()
        return {"Authorization": f"Bearer {body['token']}"}, body

    return register


@pytest.fixture
def add_book(client):
    def add(headers, open_library_id=None, **fields):
        payload = {
            "openLibraryId": open_library_id or f"OL{uuid.uuid4().hex[:8]}W",
            "title": fields.pop("title", "The Left Hand of Darkness"),
            **fields,
        }
        return client.post("/books", json=payload, headers=headers)

    return add
