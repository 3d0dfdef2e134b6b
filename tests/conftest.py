"""
Pytest configuration and fixtures for tests.
Provides reusable test fixtures for database, users, listings and a controllable clock.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret-key-that-is-at-least-32-characters")
os.environ.setdefault("LOG_FORMAT", "text")

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Callable, Dict

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from marketchat.api.v1 import messages as messages_api
from marketchat.core.database import get_db
from marketchat.core.security import create_access_token
from marketchat.main import app
from marketchat.models import Base, Listing, ListingImage, User


# In-memory SQLite for tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class StatementCounter:
    """Records every SQL statement sent to the test engine."""

    def __init__(self):
        self.statements = []

    @property
    def count(self) -> int:
        return len(self.statements)

    def reset(self) -> None:
        self.statements.clear()

    def on_execute(self, conn, cursor, statement, parameters, context, executemany):
        self.statements.append(statement)


@pytest.fixture(scope="function")
async def test_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    TestSessionLocal = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()


@pytest.fixture
def statement_counter(test_engine):
    """Count the statements executed against the test database."""
    counter = StatementCounter()
    listener = counter.on_execute
    event.listen(test_engine.sync_engine, "before_cursor_execute", listener)

    yield counter

    event.remove(test_engine.sync_engine, "before_cursor_execute", listener)


@pytest.fixture
def clock() -> FrozenClock:
    """A clock frozen at a fixed instant."""
    return FrozenClock(datetime(2026, 3, 14, 12, 0, 0, tzinfo=timezone.utc))


async def _add_user(db_session: AsyncSession, display_name, avatar_url=None) -> User:
    user = User(display_name=display_name, avatar_url=avatar_url)
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def buyer(db_session: AsyncSession) -> User:
    """Create the user who opens conversations."""
    return await _add_user(db_session, "Alice Buyer", "https://cdn.example.com/alice.png")


@pytest.fixture
async def seller(db_session: AsyncSession) -> User:
    """Create the user who owns the listings."""
    return await _add_user(db_session, "Sam Seller")


@pytest.fixture
async def stranger(db_session: AsyncSession) -> User:
    """Create a user with no display name who is not part of any conversation."""
    return await _add_user(db_session, None)


@pytest.fixture
async def listing(db_session: AsyncSession, seller) -> Listing:
    """Create an active listing with two images (the cover has position 0)."""
    listing = Listing(seller_id=seller.id, title="Vintage road bike")
    db_session.add(listing)
    await db_session.flush()

    db_session.add_all([
        ListingImage(listing_id=listing.id, image_path="listings/bike-side.jpg", position=1),
        ListingImage(listing_id=listing.id, image_path="listings/bike-front.jpg", position=0),
    ])
    await db_session.commit()
    await db_session.refresh(listing)

    return listing


@pytest.fixture
async def second_listing(db_session: AsyncSession, seller) -> Listing:
    """Create a second listing from the same seller, without images."""
    listing = Listing(seller_id=seller.id, title="Camping stove")
    db_session.add(listing)
    await db_session.commit()
    await db_session.refresh(listing)

    return listing


@pytest.fixture
def auth_headers() -> Callable[[User], Dict[str, str]]:
    """Build authentication headers for a user."""

    def _headers(user: User) -> Dict[str, str]:
        token = create_access_token(data={"sub": user.id})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client with the database dependency overridden."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    messages_api.limiter.reset()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    # Clear overrides after test
    app.dependency_overrides.clear()
