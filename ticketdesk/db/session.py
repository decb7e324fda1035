"""
Database session management.

WHY: Async database sessions are required for FastAPI's async/await pattern.
One session per request gives every comment operation a single transaction:
the edit-history row and the content update commit together or not at all.
"""

from typing import Any, AsyncGenerator, Dict
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from ticketdesk.core.config import settings


def _engine_options(url: str) -> Dict[str, Any]:
    """
    Engine options for the configured backend.

    WHY: pool_pre_ping recycles stale connections. Pool sizing only applies
    to server databases; SQLite (local runs, tests) uses its own pool class
    and rejects the sizing arguments.
    """
    options: Dict[str, Any] = {"echo": settings.DEBUG, "pool_pre_ping": True}
    if not url.startswith("sqlite"):
        options.update(pool_size=10, max_overflow=20)
    return options


engine = create_async_engine(
    settings.async_database_url,
    **_engine_options(settings.async_database_url),
)

# expire_on_commit=False prevents lazy-loading issues after commit.
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency to get database session.

    WHY: Each request gets its own session. The request commits once on
    success and rolls back on any exception, so a failed edit never leaves
    a history row without its content change.

    Yields:
        AsyncSession: Database session for the request
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
