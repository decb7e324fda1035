"""
Pytest configuration and fixtures.

WHY: Fixtures provide reusable test setup/teardown logic, reducing
duplication and ensuring consistent test environments.
"""

import os

# Settings are read at import time; required values must exist first.
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-ticketdesk-tests")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
import pytest_asyncio
from typing import AsyncGenerator, Callable, Dict
from unittest.mock import AsyncMock, MagicMock
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from httpx import AsyncClient, ASGITransport

from ticketdesk.main import app
from ticketdesk.models.base import Base
from ticketdesk.models.user import User
from ticketdesk.db.session import get_db
from ticketdesk.core.auth import create_access_token
from ticketdesk.core.deps import get_notification_service
from ticketdesk.services.notification_service import NotificationService
from tests.factories import TestDataBuilder


# Test database URL
# WHY: Using SQLite for tests eliminates external database dependencies
# and makes tests faster.
TEST_ASYNC_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """
    Create a test database engine.

    WHY: Function scope ensures each test gets a fresh database state,
    preventing test pollution and ensuring test isolation.
    """
    engine = create_async_engine(TEST_ASYNC_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """
    Create a test database session.

    Yields:
        AsyncSession: Database session for the test
    """
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
def notification_spy() -> MagicMock:
    """
    Stand-in for NotificationService in API tests.

    WHY: Lets tests assert who would be notified without a webhook.
    """
    spy = MagicMock(spec=NotificationService)
    spy.notify_mentions_safe = AsyncMock(return_value=True)
    spy.notify_participants_safe = AsyncMock(return_value=True)
    return spy


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession, notification_spy: MagicMock
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test HTTP client.

    WHY: AsyncClient allows testing FastAPI endpoints without running
    a real server, making tests faster and more reliable.

    Yields:
        AsyncClient: HTTP client for making test requests
    """

    async def override_get_db():
        """Override database dependency with test session."""
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_service] = lambda: notification_spy

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def make_token(user_id: int, org_id: int) -> str:
    """Mint a bearer token for a user in an organization."""
    return create_access_token({"sub": str(user_id), "org_id": org_id})


@pytest.fixture
def auth_headers() -> Callable[[User], Dict[str, str]]:
    """
    Build the Authorization header for a user.

    Usage:
        response = await client.get(url, headers=auth_headers(user))
    """

    def _headers(user: User) -> Dict[str, str]:
        return {"Authorization": f"Bearer {make_token(user.id, user.org_id)}"}

    return _headers


@pytest_asyncio.fixture
async def world(db_session: AsyncSession) -> TestDataBuilder:
    """Standard two-tenant data set (see TestDataBuilder)."""
    return await TestDataBuilder(db_session).build()
