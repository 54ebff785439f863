from app.models.event import Event, EVENTS_COLLECTION
from app.models.booking import Booking, BOOKINGS_COLLECTION

__all__ = ["Event", "EVENTS_COLLECTION", "Booking", "BOOKINGS_COLLECTION"]
