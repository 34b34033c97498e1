"""
Centralized Test Configuration.
"""

import itertools
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool, Pool

from carmarket.app.main import app
from carmarket.app.db.session import get_db, Base
from carmarket.app.core.jwt import create_access_token
from carmarket.app.core.security import get_password_hash
from carmarket.app.models.user import User
from carmarket.app.models.enums import UserRole
import carmarket.app.core.redis_client as redis_client_module

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "password123"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)).lower():
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self._closed = False

    async def ping(self):
        return not self._closed

    async def get(self, key):
        if self._closed:
            return None
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self._closed:
            return False
        self.store[key] = value
        return True

    async def setex(self, key, ttl, value):
        return await self.set(key, value, ex=ttl)

    async def delete(self, key):
        if self._closed:
            return 0
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def exists(self, key):
        if self._closed:
            return 0
        return 1 if key in self.store else 0

    async def flushdb(self):
        if not self._closed:
            self.store = {}

    async def aclose(self):
        self._closed = True
        self.store = {}


@pytest.fixture
async def engine():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def mock_redis(monkeypatch):
    """Replace the global redis client used by token revocation."""
    mock = MockRedis()
    monkeypatch.setattr(redis_client_module, "redis_client", mock)
    return mock


@pytest.fixture
def apply_overrides(session_factory, mock_redis):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield
    app.dependency_overrides = {}


@pytest.fixture
async def client(apply_overrides):
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture(scope="session")
def password_hash():
    # bcrypt is slow on purpose; hash once for the whole run
    return get_password_hash(TEST_PASSWORD)


@pytest.fixture
def create_user(db_session, password_hash):
    """Factory for persisted users."""
    counter = itertools.count(1)

    async def _create(
        role: UserRole = UserRole.USER,
        email: str = None,
        first_name: str = "Test",
        last_name: str = "User",
        is_active: bool = True
    ) -> User:
        user = User(
            email=email or f"{role.value}{next(counter)}@carmarket.com",
            first_name=first_name,
            last_name=last_name,
            hashed_password=password_hash,
            role=role,
            is_active=is_active,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _create


@pytest.fixture
async def owner(create_user):
    return await create_user(UserRole.USER, email="jane@carmarket.com", first_name="Jane", last_name="Doe")


@pytest.fixture
async def admin(create_user):
    return await create_user(UserRole.ADMIN, email="alice.admin@carmarket.com", first_name="Alice", last_name="Admin")


@pytest.fixture
async def second_admin(create_user):
    return await create_user(UserRole.ADMIN, email="bob.admin@carmarket.com", first_name="Bob", last_name="Admin")


def _auth_headers(user: User) -> dict:
    token = create_access_token(data={"sub": user.email, "user_id": user.id, "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for():
    """Bearer headers for any persisted user."""
    return _auth_headers


@pytest.fixture
def owner_headers(owner):
    return _auth_headers(owner)


@pytest.fixture
def admin_headers(admin):
    return _auth_headers(admin)


@pytest.fixture
def car_payload():
    """A submission that passes every listing rule."""
    return {
        "title": "2020 Civic",
        "description": "Single owner, full service history, no accidents.",
        "make": "Honda",
        "model": "Civic",
        "year": 2020,
        "mileage": 35000,
        "price": 18000,
        "fuel_type": "gasoline",
        "transmission": "automatic",
        "category": "sedan",
        "condition": "excellent",
        "listing_type": "sale",
        "images": ["https://img.carmarket.com/civic-front.jpg"],
        "location": {"city": "Austin", "state": "TX"},
    }
