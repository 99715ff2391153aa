"""
Database session management.

WHY: Async database sessions are required for FastAPI's async/await pattern.
Each request runs in one session; the session is committed when the
request succeeds and rolled back when anything raises.
"""

from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from offercraft.core.config import settings


# pool_pre_ping recycles stale connections
engine = create_async_engine(
    settings.async_database_url,
    echo=settings.DEBUG,
    pool_pre_ping=True,
    pool_size=10,
    max_overflow=20,
)

# expire_on_commit=False: offers are serialized after the commit in get_db
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency to get database session.

    WHY: Services only flush; the request-level transaction is owned here,
    so an exception anywhere in a request leaves no partial offer state.

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
