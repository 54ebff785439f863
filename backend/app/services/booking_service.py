"""
Booking service with a referential-integrity check against events.

INTEGRITY STRATEGY: Check-then-insert
======================================

Problem:
  A booking must never be persisted against an event that does not exist,
  but the document store has no foreign keys.

Default behaviour:
  1. Normalize and validate the candidate (email, eventId)
  2. Check that the referenced event exists
  3. Insert the booking

  Steps 2 and 3 are separate operations. An event deleted between them
  leaves a booking pointing at nothing. This race is accepted.

Strict mode (BOOKING_USE_TRANSACTIONS=true on a replica set or mongos):
  Steps 2 and 3 run in one multi-document transaction, and step 2 writes
  `lastBookedAt` on the event instead of only reading it. A concurrent
  delete of the same event then hits a write conflict and one of the two
  transactions aborts. On a standalone server strict mode falls back to the
  default behaviour and logs a warning.

No automatic retries: transaction aborts surface to the caller.
"""

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClientSession

from app.core.config import get_settings
from app.core.exceptions import DanglingReference, ValidationFailure
from app.core.logging import get_logger
from app.core.metrics import record_booking_attempt
from app.db.connection import DatabaseHandle
from app.models.booking import BOOKINGS_COLLECTION, Booking
from app.models.event import EVENTS_COLLECTION
from app.services.validation import parse_object_id, validate_booking

logger = get_logger(__name__)


async def _check_and_insert(
    db: DatabaseHandle,
    doc: dict[str, Any],
    session: Optional[AsyncIOMotorClientSession] = None,
) -> Booking:
    events = db.collection(EVENTS_COLLECTION)
    now = datetime.now(timezone.utc)
    # Only pass the session along when there is one
    extra = {"session": session} if session is not None else {}

    if session is not None:
        event = await events.find_one_and_update(
            {"_id": doc["eventId"]},
            {"$set": {"lastBookedAt": now}},
            projection={"_id": 1},
            **extra,
        )
    else:
        event = await events.find_one({"_id": doc["eventId"]}, {"_id": 1})

    if event is None:
        record_booking_attempt("dangling_reference")
        logger.warning("booking_rejected_dangling_reference", event_id=str(doc["eventId"]))
        raise DanglingReference(str(doc["eventId"]))

    doc["createdAt"] = now
    doc["updatedAt"] = now
    result = await db.collection(BOOKINGS_COLLECTION).insert_one(doc, **extra)
    doc["_id"] = result.inserted_id
    return Booking.from_document(doc)


async def create_booking(
    db: DatabaseHandle,
    data: Mapping[str, Any],
    use_transactions: Optional[bool] = None,
) -> Booking:
    """
    Create a booking for an existing event.
    Raises ValidationFailure for bad input and DanglingReference for a missing event.
    """
    try:
        doc = validate_booking(data)
    except ValidationFailure as e:
        record_booking_attempt("invalid")
        logger.info("booking_rejected", field=e.field, reason=e.message)
        raise

    if use_transactions is None:
        use_transactions = get_settings().BOOKING_USE_TRANSACTIONS

    if use_transactions and not db.transactions_supported:
        logger.warning(
            "booking_transactions_unavailable",
            message="Deployment does not support transactions; using check-then-insert",
        )
        use_transactions = False

    if use_transactions:
        async with await db.client.start_session() as session:
            async with session.start_transaction():
                booking = await _check_and_insert(db, doc, session)
    else:
        booking = await _check_and_insert(db, doc)

    record_booking_attempt("success")
    logger.info(
        "booking_created",
        booking_id=booking.id,
        event_id=booking.event_id,
        transactional=use_transactions,
    )
    return booking


async def count_bookings(db: DatabaseHandle, event_id: Any) -> int:
    """Number of bookings recorded against an event."""
    oid = parse_object_id(event_id)
    if oid is None:
        return 0
    return await db.collection(BOOKINGS_COLLECTION).count_documents({"eventId": oid})


async def list_bookings_for_event(db: DatabaseHandle, event_id: ObjectId | str) -> list[Booking]:
    """Bookings for an event, oldest first."""
    oid = parse_object_id(event_id)
    if oid is None:
        return []
    cursor = db.collection(BOOKINGS_COLLECTION).find({"eventId": oid}).sort("createdAt", 1)
    return [Booking.from_document(doc) for doc in await cursor.to_list(length=None)]
