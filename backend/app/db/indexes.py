"""
Index bootstrap. The unique index on events.slug is the storage-level
backstop for slug derivation collisions.
"""

from pymongo import ASCENDING

from app.core.logging import get_logger
from app.db.connection import DatabaseHandle
from app.models.booking import BOOKINGS_COLLECTION
from app.models.event import EVENTS_COLLECTION

logger = get_logger(__name__)


async def ensure_indexes(handle: DatabaseHandle) -> None:
    """Create the collection indexes. Safe to call on every startup."""
    events = handle.collection(EVENTS_COLLECTION)
    bookings = handle.collection(BOOKINGS_COLLECTION)

    await events.create_index([("slug", ASCENDING)], unique=True, name="slug_unique")
    await events.create_index([("createdAt", ASCENDING)], name="created_at")
    await bookings.create_index([("eventId", ASCENDING)], name="event_id")

    logger.info("indexes_ensured", collections=[EVENTS_COLLECTION, BOOKINGS_COLLECTION])
