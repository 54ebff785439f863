"""
Event document stored in the `events` collection.

Key design decisions:
- `slug` is derived from `title` and carries a unique index (see app.db.indexes)
- `date` is stored as an ISO-8601 instant string, `time` as zero-padded HH:MM
- `agenda` and `tags` keep their insertion order
- createdAt/updatedAt are managed by the service layer, never by callers
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

EVENTS_COLLECTION = "events"

REQUIRED_STRING_FIELDS = (
    "title",
    "description",
    "overview",
    "image",
    "venue",
    "location",
    "date",
    "time",
    "mode",
    "audience",
    "organizer",
)
COLLECTION_FIELDS = ("agenda", "tags")
EDITABLE_FIELDS = REQUIRED_STRING_FIELDS + COLLECTION_FIELDS


class Event(BaseModel):
    """Plain record returned to callers. Holds no reference to the driver."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    slug: str
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
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "Event":
        data = {k: v for k, v in doc.items() if k != "_id"}
        data["id"] = str(doc["_id"])
        return cls.model_validate(data)

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, slug={self.slug}, date={self.date})>"
