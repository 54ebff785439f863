"""
Booking document stored in the `bookings` collection.

Key design decisions:
- `eventId` holds the referenced event's ObjectId; existence is checked by the
  booking service before insert, not by the storage engine
- `email` is stored trimmed and lowercased
- `eventId` is indexed to speed up per-event lookups and counts
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

BOOKINGS_COLLECTION = "bookings"


class Booking(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    event_id: str = Field(alias="eventId")
    email: str
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "Booking":
        return cls.model_validate({
            "id": str(doc["_id"]),
            "eventId": str(doc["eventId"]),
            "email": doc["email"],
            "createdAt": doc["createdAt"],
            "updatedAt": doc["updatedAt"],
        })

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, event={self.event_id}, email={self.email})>"
