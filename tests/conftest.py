"""Pytest configuration and shared fixtures.

Local store tests run against a real SQLite file per test; remote store
and repository tests use mocks.
"""

import os
import time
from collections.abc import AsyncGenerator
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

# Set testing mode BEFORE importing settings to use NullPool
os.environ["TESTING"] = "true"

from glucodiary.config import settings

# Override settings for testing
settings.testing = True

from glucodiary.database import create_local_engine, init_local_schema, make_session_maker
from glucodiary.services.local_store import LocalStore


@pytest_asyncio.fixture
async def local_session_maker(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session maker for a fresh SQLite file with the local schema."""
    engine = create_local_engine(f"sqlite+aiosqlite:///{tmp_path}/local.db", testing=True)
    await init_local_schema(engine)
    yield make_session_maker(engine)
    await engine.dispose()


@pytest.fixture
def local_store(local_session_maker) -> LocalStore:
    """A LocalStore backed by a fresh SQLite file."""
    return LocalStore(local_session_maker, session_ttl=timedelta(days=7))


@pytest.fixture
def device_utc_minus_3():
    """Put the device clock three hours behind UTC for the test."""
    previous = os.environ.get("TZ")
    os.environ["TZ"] = "BRT3"
    time.tzset()
    yield
    if previous is None:
        del os.environ["TZ"]
    else:
        os.environ["TZ"] = previous
    time.tzset()


@pytest.fixture
def mock_local():
    """A LocalStore stand-in with every operation mocked."""
    store = MagicMock(spec=LocalStore)
    store.get_all_readings = AsyncMock(return_value=[])
    store.get_readings_by_date_range = AsyncMock(return_value=[])
    store.add_reading = AsyncMock(return_value=1)
    store.update_reading = AsyncMock()
    store.delete_reading = AsyncMock()
    store.get_reminders_config = AsyncMock(return_value=None)
    store.save_reminders_config = AsyncMock()
    return store


@pytest.fixture
def mock_remote():
    """A SupabaseStore stand-in with every operation mocked."""
    store = MagicMock()
    store.get_all_readings = AsyncMock(return_value=[])
    store.get_readings_by_date_range = AsyncMock(return_value=[])
    store.add_reading = AsyncMock(return_value=100)
    store.update_reading = AsyncMock()
    store.delete_reading = AsyncMock()
    store.get_reminders_config = AsyncMock(return_value=None)
    store.save_reminders_config = AsyncMock()
    return store
