"""
LabelDesk Backend: Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── database:     LabelDatabase on a fresh SQLite file (schema created)
    ├── store:        LabelStore over that database
    ├── mock_store:   AsyncMock standing in for LabelStore (no database)
    ├── make_record:  factory for record-like objects returned by mock_store
    ├── clock:        deterministic, strictly increasing UTC clock
    ├── app:          create_app() wired to `database` and `clock`
    └── test_client:  HTTPX AsyncClient talking to `app` over ASGI
"""

import os
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock

# Set before any labeldesk import so the module-level settings never point
# at a real server
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./labeldesk_test.db"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from labeldesk.config import Settings
from labeldesk.database import LabelDatabase
from labeldesk.services.label_service import LabelService
from labeldesk.services.label_store import LabelStore


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'labels.db'}"


@pytest.fixture
def test_settings(database_url):
    return Settings(database_url=database_url, allowed_origin="*", log_level="WARNING")


@pytest_asyncio.fixture
async def database(database_url):
    """A connected LabelDatabase backed by a temporary SQLite file."""
    db = LabelDatabase(database_url)
    await db.connect()
    yield db
    await db.dispose()


@pytest.fixture
def store(database):
    return LabelStore(database)


@pytest.fixture
def mock_store():
    """
    Provides a mock LabelStore.

    Usage:
        mock_store.upsert.return_value = make_record(image_index=3)
        service = LabelService(mock_store)
    """
    store = AsyncMock(spec=LabelStore)
    store.list_all = AsyncMock(return_value=[])
    store.find_by_index = AsyncMock(return_value=None)
    store.upsert = AsyncMock()
    return store


@pytest.fixture
def make_record():
    """Factory for objects shaped like a LabelRecord row."""

    def _make(
        image_index=1,
        label="cat",
        notes="",
        modified_by="alice",
        last_modified=None,
    ):
        return SimpleNamespace(
            image_index=image_index,
            label=label,
            notes=notes,
            modified_by=modified_by,
            last_modified=last_modified or datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc),
        )

    return _make


@pytest.fixture
def clock():
    """A clock that advances one second on every call."""
    start = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)
    ticks = {"n": 0}

    def _now():
        ticks["n"] += 1
        return start + timedelta(seconds=ticks["n"])

    return _now


@pytest.fixture
def app(test_settings, database, clock):
    from labeldesk.main import create_app

    application = create_app(settings=test_settings, database=database)
    application.state.label_service = LabelService(application.state.label_store, clock=clock)
    return application


@pytest_asyncio.fixture
async def test_client(app):
    """
    Provides an async HTTP test client for endpoint testing.

    ASGITransport does not run the lifespan; the `database` fixture has
    already connected and created the schema.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
