"""
Booking endpoints. The referenced event must exist when the booking is made.
"""

from fastapi import APIRouter, Depends, status

from app.db.connection import DatabaseHandle
from app.db.session import get_db
from app.schemas.booking import BookingCreate, BookingEnvelope
from app.services.booking_service import create_booking

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("", response_model=BookingEnvelope, status_code=status.HTTP_201_CREATED)
async def create_booking_endpoint(
    booking_data: BookingCreate,
    db: DatabaseHandle = Depends(get_db),
):
    """
    Book a place at an event.

    Returns 400 for a malformed email or event id and 404 when the
    event does not exist.
    """
    booking = await create_booking(
        db, {"eventId": booking_data.event_id, "email": booking_data.email}
    )
    return BookingEnvelope(message="Booking created successfully", booking=booking)
