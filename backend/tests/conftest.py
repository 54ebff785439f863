"""
Pytest fixtures for an in-memory database handle and an HTTP client.

The database is mongomock_motor's AsyncMongoMockClient, so unique indexes
and duplicate-key errors behave like the real driver. Each test gets a
fresh client for isolation.
"""

import os

os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017/devevent_test")

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from mongomock_motor import AsyncMongoMockClient

from app.main import app
from app.db.connection import DatabaseHandle
from app.db.indexes import ensure_indexes
from app.db.session import get_db
from app.services.event_service import create_event

TEST_DATABASE = "devevent_test"


def make_handle() -> DatabaseHandle:
    client = AsyncMongoMockClient()
    return DatabaseHandle(client=client, database=client[TEST_DATABASE])


@pytest.fixture
def event_payload() -> dict:
    """A complete, valid event body."""
    return {
        "title": "Cloud Next 2027",
        "description": "Google's premier cloud computing event.",
        "overview": "The latest in cloud-native development, Kubernetes and AI.",
        "image": "https://example.com/images/cloud-next.webp",
        "venue": "Moscone Center",
        "location": "San Francisco, CA",
        "date": "2025-04-10",
        "time": "8:30",
        "mode": "hybrid",
        "audience": "Cloud engineers, DevOps, enterprise leaders",
        "agenda": [
            "08:30 AM - 09:30 AM | Keynote",
            "09:45 AM - 11:00 AM | Deep Dives",
        ],
        "organizer": "Google Cloud",
        "tags": ["Cloud", "DevOps", "AI"],
    }


@pytest_asyncio.fixture
async def db() -> AsyncGenerator[DatabaseHandle, None]:
    """Fresh database with indexes in place."""
    handle = make_handle()
    await ensure_indexes(handle)
    yield handle


@pytest_asyncio.fixture
async def client(db: DatabaseHandle) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test handle."""

    async def override_get_db():
        return db

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_event(db: DatabaseHandle, event_payload: dict):
    """Stored copy of event_payload."""
    return await create_event(db, event_payload)
