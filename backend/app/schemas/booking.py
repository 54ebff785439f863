"""
Pydantic schemas for booking-related request/response validation.
"""

from pydantic import BaseModel, ConfigDict, Field

from app.models.booking import Booking


class BookingCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event_id: str = Field(alias="eventId")
    email: str


class BookingEnvelope(BaseModel):
    message: str
    booking: Booking
