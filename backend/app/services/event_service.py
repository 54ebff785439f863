"""
Event service: validated writes and the lookups route handlers use.

Writes go through validate_event() before touching the collection. Lookups
return None on a miss; callers that need a hit raise NotFound themselves.
"""

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Optional

from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from app.core.exceptions import NotFound, UniquenessViolation, ValidationFailure
from app.core.logging import get_logger
from app.core.metrics import record_event_write
from app.db.connection import DatabaseHandle
from app.models.event import EVENTS_COLLECTION, Event
from app.services.normalization import validate_slug
from app.services.validation import parse_object_id, validate_event

logger = get_logger(__name__)


def _is_slug_collision(error: DuplicateKeyError) -> bool:
    key_pattern = (error.details or {}).get("keyPattern")
    return key_pattern is None or "slug" in key_pattern


async def create_event(db: DatabaseHandle, data: Mapping[str, Any]) -> Event:
    """Validate, normalize and insert a new event."""
    try:
        doc = validate_event(data)
    except ValidationFailure as e:
        record_event_write("create", "invalid")
        logger.info("event_rejected", field=e.field, reason=e.message)
        raise

    now = datetime.now(timezone.utc)
    doc["createdAt"] = now
    doc["updatedAt"] = now

    try:
        result = await db.collection(EVENTS_COLLECTION).insert_one(doc)
    except DuplicateKeyError as e:
        if not _is_slug_collision(e):
            raise
        record_event_write("create", "duplicate")
        logger.warning("event_slug_conflict", slug=doc["slug"])
        raise UniquenessViolation("slug", doc["slug"]) from e

    doc["_id"] = result.inserted_id
    record_event_write("create", "success")
    logger.info("event_created", event_id=str(result.inserted_id), slug=doc["slug"])
    return Event.from_document(doc)


async def update_event(db: DatabaseHandle, slug: str, changes: Mapping[str, Any]) -> Event:
    """
    Apply a partial update to the event at `slug`.
    Only fields whose value changed are re-normalized; a new title moves the slug.
    """
    validate_slug(slug)
    events = db.collection(EVENTS_COLLECTION)

    existing = await events.find_one({"slug": slug})
    if existing is None:
        raise NotFound("Event", slug)

    try:
        doc = validate_event(changes, existing)
    except ValidationFailure as e:
        record_event_write("update", "invalid")
        logger.info("event_rejected", slug=slug, field=e.field, reason=e.message)
        raise

    doc["updatedAt"] = datetime.now(timezone.utc)

    try:
        updated = await events.find_one_and_update(
            {"_id": existing["_id"]},
            {"$set": doc},
            return_document=ReturnDocument.AFTER,
        )
    except DuplicateKeyError as e:
        if not _is_slug_collision(e):
            raise
        record_event_write("update", "duplicate")
        logger.warning("event_slug_conflict", slug=doc["slug"], previous_slug=slug)
        raise UniquenessViolation("slug", doc["slug"]) from e

    # Deleted between the read and the write
    if updated is None:
        raise NotFound("Event", slug)

    record_event_write("update", "success")
    logger.info("event_updated", event_id=str(existing["_id"]), slug=updated["slug"])
    return Event.from_document(updated)


async def delete_event(db: DatabaseHandle, slug: str) -> bool:
    """Delete the event at `slug`. Bookings are left untouched."""
    validate_slug(slug)
    result = await db.collection(EVENTS_COLLECTION).delete_one({"slug": slug})
    deleted = result.deleted_count == 1
    if deleted:
        logger.info("event_deleted", slug=slug)
    return deleted


async def find_event_by_slug(db: DatabaseHandle, slug: str) -> Optional[Event]:
    """Look an event up by slug. A malformed slug raises InvalidSlug."""
    validate_slug(slug)
    doc = await db.collection(EVENTS_COLLECTION).find_one({"slug": slug})
    return Event.from_document(doc) if doc else None


async def find_event_by_id(db: DatabaseHandle, event_id: Any) -> Optional[Event]:
    oid = parse_object_id(event_id)
    if oid is None:
        return None
    doc = await db.collection(EVENTS_COLLECTION).find_one({"_id": oid})
    return Event.from_document(doc) if doc else None


async def find_similar_events(db: DatabaseHandle, slug: str, limit: int = 3) -> list[Event]:
    """
    Events sharing at least one tag with the event at `slug`, newest first.
    The matched event itself is never included.
    """
    event = await find_event_by_slug(db, slug)
    if event is None:
        return []

    cursor = (
        db.collection(EVENTS_COLLECTION)
        .find({"_id": {"$ne": parse_object_id(event.id)}, "tags": {"$in": event.tags}})
        .sort("createdAt", DESCENDING)
        .limit(limit)
    )
    return [Event.from_document(doc) for doc in await cursor.to_list(length=limit)]


async def list_events(db: DatabaseHandle, limit: int = 100) -> tuple[list[Event], int]:
    """
    Newest events first, at most `limit` of them, plus the total number of
    stored events.
    """
    events = db.collection(EVENTS_COLLECTION)
    total = await events.count_documents({})
    cursor = events.find().sort("createdAt", DESCENDING).limit(limit)
    return [Event.from_document(doc) for doc in await cursor.to_list(length=limit)], total
