"""
Tests for booking creation and the event referential-integrity check.
"""

import pytest
from bson import ObjectId
from httpx import AsyncClient

from app.core.config import get_settings
from app.core.exceptions import ConnectionFailure, DanglingReference, InvalidEmail
from app.db.connection import DatabaseHandle
from app.db.session import get_db
from app.main import app
from app.models.booking import BOOKINGS_COLLECTION
from app.models.event import EVENTS_COLLECTION
from app.services.booking_service import count_bookings, create_booking, list_bookings_for_event
from app.services.event_service import delete_event


@pytest.mark.asyncio
async def test_create_booking(db, test_event):
    booking = await create_booking(db, {"eventId": test_event.id, "email": " Ada@Example.com "})

    assert booking.event_id == test_event.id
    assert booking.email == "ada@example.com"
    assert await count_bookings(db, test_event.id) == 1


@pytest.mark.asyncio
async def test_booking_against_missing_event_is_dangling(db, test_event):
    for i in range(3):
        await create_booking(db, {"eventId": test_event.id, "email": f"guest{i}@example.com"})

    with pytest.raises(DanglingReference):
        await create_booking(db, {"eventId": str(ObjectId()), "email": "ada@example.com"})

    assert await count_bookings(db, test_event.id) == 3


@pytest.mark.asyncio
async def test_booking_after_event_deleted_is_dangling(db, test_event):
    await delete_event(db, test_event.slug)

    with pytest.raises(DanglingReference):
        await create_booking(db, {"eventId": test_event.id, "email": "ada@example.com"})
    assert await count_bookings(db, test_event.id) == 0


@pytest.mark.asyncio
async def test_invalid_email_aborts_write(db, test_event):
    with pytest.raises(InvalidEmail):
        await create_booking(db, {"eventId": test_event.id, "email": "not-an-email"})
    assert await count_bookings(db, test_event.id) == 0


@pytest.mark.asyncio
async def test_transactions_fall_back_without_replica_set(db, test_event):
    # The in-memory handle reports no transaction support
    booking = await create_booking(
        db, {"eventId": test_event.id, "email": "ada@example.com"}, use_transactions=True
    )
    assert booking.event_id == test_event.id


@pytest.mark.asyncio
async def test_list_bookings_for_event(db, test_event):
    await create_booking(db, {"eventId": test_event.id, "email": "a@example.com"})
    await create_booking(db, {"eventId": test_event.id, "email": "b@example.com"})

    bookings = await list_bookings_for_event(db, test_event.id)
    assert sorted(b.email for b in bookings) == ["a@example.com", "b@example.com"]


@pytest.mark.asyncio
async def test_book_event_endpoint(client: AsyncClient, test_event):
    response = await client.post(
        "/api/bookings",
        json={"eventId": test_event.id, "email": "Grace@Example.com"},
    )
    assert response.status_code == 201
    booking = response.json()["booking"]
    assert booking["eventId"] == test_event.id
    assert booking["email"] == "grace@example.com"

    count = await client.get(f"/api/events/{test_event.slug}/bookings/count")
    assert count.json() == {"slug": test_event.slug, "bookings": 1}


@pytest.mark.asyncio
async def test_book_nonexistent_event(client: AsyncClient):
    response = await client.post(
        "/api/bookings",
        json={"eventId": str(ObjectId()), "email": "grace@example.com"},
    )
    assert response.status_code == 404
    assert response.json()["message"] == "Cannot create booking: referenced event does not exist."


@pytest.mark.asyncio
async def test_book_with_malformed_event_id(client: AsyncClient):
    response = await client.post(
        "/api/bookings",
        json={"eventId": "123", "email": "grace@example.com"},
    )
    assert response.status_code == 400
    assert response.json()["field"] == "eventId"


@pytest.mark.asyncio
async def test_book_with_invalid_email(client: AsyncClient, test_event):
    response = await client.post(
        "/api/bookings",
        json={"eventId": test_event.id, "email": "grace@localhost"},
    )
    assert response.status_code == 400
    assert response.json()["field"] == "email"


class RecordingTransaction:
    def __init__(self, session):
        self.session = session

    async def __aenter__(self):
        self.session.transactions += 1
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.session.committed = True
        else:
            self.session.aborted = True
        return False


class RecordingSession:
    def __init__(self):
        self.transactions = 0
        self.committed = False
        self.aborted = False
        self.ended = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.ended = True
        return False

    def start_transaction(self):
        return RecordingTransaction(self)


class RecordingClient:
    def __init__(self):
        self.sessions = []

    async def start_session(self):
        session = RecordingSession()
        self.sessions.append(session)
        return session


class SessionRecordingCollection:
    """Forwards to the in-memory collection and records the session each write used."""

    def __init__(self, inner, calls):
        self._inner = inner
        self._calls = calls

    async def find_one_and_update(self, *args, session=None, **kwargs):
        self._calls.append(("find_one_and_update", session))
        return await self._inner.find_one_and_update(*args, **kwargs)

    async def insert_one(self, document, session=None):
        self._calls.append(("insert_one", session))
        return await self._inner.insert_one(document)

    async def find_one(self, *args, session=None, **kwargs):
        self._calls.append(("find_one", session))
        return await self._inner.find_one(*args, **kwargs)


class SessionRecordingDatabase:
    def __init__(self, inner):
        self._inner = inner
        self.calls = []

    def __getitem__(self, name):
        return SessionRecordingCollection(self._inner[name], self.calls)


@pytest.fixture
def transactional_db(db):
    """Handle over the same data that claims transaction support."""
    return DatabaseHandle(
        client=RecordingClient(),
        database=SessionRecordingDatabase(db.database),
        transactions_supported=True,
    )


@pytest.mark.asyncio
async def test_transactional_booking_runs_check_and_insert_in_one_session(
    db, transactional_db, test_event
):
    booking = await create_booking(
        transactional_db,
        {"eventId": test_event.id, "email": "ada@example.com"},
        use_transactions=True,
    )

    [session] = transactional_db.client.sessions
    assert session.transactions == 1
    assert session.committed and not session.aborted
    assert session.ended
    assert transactional_db.database.calls == [
        ("find_one_and_update", session),
        ("insert_one", session),
    ]
    assert booking.event_id == test_event.id
    assert await count_bookings(db, test_event.id) == 1

    stored = await db.collection(EVENTS_COLLECTION).find_one({"_id": ObjectId(test_event.id)})
    assert "lastBookedAt" in stored


@pytest.mark.asyncio
async def test_transactional_booking_against_missing_event_aborts(db, transactional_db, test_event):
    missing_id = ObjectId()

    with pytest.raises(DanglingReference):
        await create_booking(
            transactional_db,
            {"eventId": str(missing_id), "email": "ada@example.com"},
            use_transactions=True,
        )

    [session] = transactional_db.client.sessions
    assert session.aborted and not session.committed
    assert transactional_db.database.calls == [("find_one_and_update", session)]
    assert await count_bookings(db, missing_id) == 0
    assert await db.collection(BOOKINGS_COLLECTION).count_documents({}) == 0


@pytest.mark.asyncio
async def test_transactions_enabled_from_settings(monkeypatch, transactional_db, test_event):
    monkeypatch.setenv("BOOKING_USE_TRANSACTIONS", "true")
    get_settings.cache_clear()
    try:
        await create_booking(transactional_db, {"eventId": test_event.id, "email": "ada@example.com"})
    finally:
        monkeypatch.delenv("BOOKING_USE_TRANSACTIONS")
        get_settings.cache_clear()

    assert len(transactional_db.client.sessions) == 1


@pytest.mark.asyncio
async def test_database_unavailable_is_service_unavailable(client: AsyncClient):
    async def unavailable_db():
        raise ConnectionFailure(OSError("connection refused"))

    app.dependency_overrides[get_db] = unavailable_db

    response = await client.post(
        "/api/bookings",
        json={"eventId": str(ObjectId()), "email": "grace@example.com"},
    )
    assert response.status_code == 503
    assert response.json() == {"message": "Database unavailable."}
