"""
Pydantic schemas for event-related request/response validation.

Request bodies only check shape; normalization and the real field rules
live in app.services.validation so every write path shares them.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict

from app.models.event import Event


class EventCreate(BaseModel):
    title: str
    description: str
    overview: str
    image: str
    venue: str
    location: str
    date: str
    time: str
    mode: str
    audience: str
    agenda: list[str]
    organizer: str
    tags: list[str]


class EventUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None
    description: Optional[str] = None
    overview: Optional[str] = None
    image: Optional[str] = None
    venue: Optional[str] = None
    location: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    mode: Optional[str] = None
    audience: Optional[str] = None
    agenda: Optional[list[str]] = None
    organizer: Optional[str] = None
    tags: Optional[list[str]] = None


class EventEnvelope(BaseModel):
    message: str
    event: Event


class EventListResponse(BaseModel):
    events: list[Event]
    total: int


class BookingCountResponse(BaseModel):
    slug: str
    bookings: int
