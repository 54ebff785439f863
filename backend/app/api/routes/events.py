"""
Event endpoints. Slugs are checked against the canonical pattern before
any lookup; a malformed or missing slug is a client error.
"""

from typing import Optional, Union

from fastapi import APIRouter, Depends, Query, status

from app.core.config import get_settings
from app.core.exceptions import InvalidSlug, NotFound
from app.core.logging import get_logger
from app.db.connection import DatabaseHandle
from app.db.session import get_db
from app.models.event import Event
from app.schemas.event import (
    BookingCountResponse,
    EventCreate,
    EventEnvelope,
    EventListResponse,
    EventUpdate,
)
from app.services.booking_service import count_bookings
from app.services.event_service import (
    create_event,
    delete_event,
    find_event_by_slug,
    find_similar_events,
    list_events,
    update_event,
)
from app.services.normalization import validate_slug

logger = get_logger(__name__)
router = APIRouter(prefix="/events", tags=["Events"])

MISSING_SLUG_MESSAGE = (
    "Missing required slug. Use /api/events/{slug} (preferred) or /api/events?slug={slug}."
)


async def get_event_or_404(db: DatabaseHandle, slug: str) -> Event:
    event = await find_event_by_slug(db, validate_slug(slug))
    if event is None:
        raise NotFound("Event", slug)
    return event


@router.get("", response_model=Union[EventEnvelope, EventListResponse])
async def list_or_lookup_events_endpoint(
    slug: Optional[str] = Query(None),
    db: DatabaseHandle = Depends(get_db),
):
    """
    Without `slug`, list events newest first.
    With `?slug=...`, behave like GET /api/events/{slug}.
    """
    if slug is None:
        events, total = await list_events(db)
        return EventListResponse(events=events, total=total)

    if not slug.strip():
        raise InvalidSlug(slug, MISSING_SLUG_MESSAGE)

    event = await get_event_or_404(db, slug)
    return EventEnvelope(message="Event fetched successfully", event=event)


@router.post("", response_model=EventEnvelope, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    event_data: EventCreate,
    db: DatabaseHandle = Depends(get_db),
):
    event = await create_event(db, event_data.model_dump())
    return EventEnvelope(message="Event created successfully", event=event)


@router.get("/{slug}", response_model=EventEnvelope)
async def get_event_endpoint(
    slug: str,
    db: DatabaseHandle = Depends(get_db),
):
    """Fetch one event by slug."""
    event = await get_event_or_404(db, slug)
    return EventEnvelope(message="Event fetched successfully", event=event)


@router.patch("/{slug}", response_model=EventEnvelope)
async def update_event_endpoint(
    slug: str,
    changes: EventUpdate,
    db: DatabaseHandle = Depends(get_db),
):
    """Partial update. Changing the title moves the event to a new slug."""
    event = await update_event(db, validate_slug(slug), changes.model_dump(exclude_unset=True))
    return EventEnvelope(message="Event updated successfully", event=event)


@router.delete("/{slug}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event_endpoint(
    slug: str,
    db: DatabaseHandle = Depends(get_db),
):
    if not await delete_event(db, validate_slug(slug)):
        raise NotFound("Event", slug)


@router.get("/{slug}/similar", response_model=list[Event])
async def similar_events_endpoint(
    slug: str,
    db: DatabaseHandle = Depends(get_db),
):
    """Events sharing a tag with this one, excluding it."""
    await get_event_or_404(db, slug)
    return await find_similar_events(db, slug, limit=get_settings().SIMILAR_EVENTS_LIMIT)


@router.get("/{slug}/bookings/count", response_model=BookingCountResponse)
async def booking_count_endpoint(
    slug: str,
    db: DatabaseHandle = Depends(get_db),
):
    event = await get_event_or_404(db, slug)
    return BookingCountResponse(slug=event.slug, bookings=await count_bookings(db, event.id))
