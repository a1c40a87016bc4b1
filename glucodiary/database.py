"""Local database connection and session management.

The local store is an on-device SQLite file reached through aiosqlite.
The engine is created lazily so it binds to the running event loop.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from glucodiary.config import settings
from glucodiary.models.base import Base

# Engine and session maker - lazily initialized
_engine: Optional[AsyncEngine] = None
_async_session_maker: Optional[async_sessionmaker[AsyncSession]] = None


def create_local_engine(database_url: str, *, testing: bool = False) -> AsyncEngine:
    """Create an async engine for a local SQLite database.

    When testing=True, uses NullPool so each test event loop opens its
    own connections.
    """
    if testing:
        return create_async_engine(database_url, poolclass=NullPool)
    return create_async_engine(database_url)


def get_engine() -> AsyncEngine:
    """Get or create the local database engine."""
    global _engine
    if _engine is None:
        _engine = create_local_engine(
            settings.local_database_url,
            testing=settings.testing,
        )
    return _engine


def configure_engine(database_url: str, *, testing: bool = False) -> AsyncEngine:
    """Point the shared engine at a specific database, replacing any previous one.

    The previous engine is not disposed; call close_database first if it
    was already used.
    """
    global _engine, _async_session_maker
    _engine = create_local_engine(database_url, testing=testing)
    _async_session_maker = None
    return _engine


def make_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Build a session maker whose objects stay usable after commit."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Get or create the session maker."""
    global _async_session_maker
    if _async_session_maker is None:
        _async_session_maker = make_session_maker(get_engine())
    return _async_session_maker


async def init_local_schema(engine: AsyncEngine | None = None) -> None:
    """Create the local tables and indexes if they do not exist yet."""
    # Registers every table on Base.metadata
    import glucodiary.models  # noqa: F401

    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_database() -> None:
    """Close database connections."""
    global _engine, _async_session_maker
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _async_session_maker = None
