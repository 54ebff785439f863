from app.schemas.event import (
    BookingCountResponse,
    EventCreate,
    EventEnvelope,
    EventListResponse,
    EventUpdate,
)
from app.schemas.booking import BookingCreate, BookingEnvelope

__all__ = [
    "EventCreate", "EventUpdate", "EventEnvelope", "EventListResponse",
    "BookingCountResponse", "BookingCreate", "BookingEnvelope",
]
