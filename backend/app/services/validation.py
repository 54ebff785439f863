"""
Pre-write validation for events and bookings.

Both validators are pure: they take a candidate mapping and either return the
normalized document to persist or raise a ValidationFailure subclass. They never
touch the database; the services call them before any write.

Event pipeline, in order:
  1. derive slug when the title changed or no slug exists yet
  2. normalize date when it changed
  3. normalize time when it changed
  4. required-field and agenda/tags checks (all failures reported together)
"""

from collections.abc import Mapping
from typing import Any, Optional

from bson import ObjectId
from bson.errors import InvalidId

from app.core.exceptions import (
    EmptyRequiredField,
    InvalidCollection,
    InvalidEmail,
    InvalidSlug,
    ValidationFailure,
)
from app.models.event import COLLECTION_FIELDS, EDITABLE_FIELDS, REQUIRED_STRING_FIELDS
from app.services.normalization import (
    is_valid_email,
    normalize_date,
    normalize_email,
    normalize_time,
    slugify,
)


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _clean_collection(value: Any, dedupe: bool = False) -> Optional[list[str]]:
    """Trimmed copy of a list of strings, or None when any element is invalid."""
    if not isinstance(value, (list, tuple)) or not value:
        return None
    if any(_is_blank(item) for item in value):
        return None
    items = [item.strip() for item in value]
    if dedupe:
        items = list(dict.fromkeys(items))
    return items


def validate_event(
    candidate: Mapping[str, Any],
    existing: Optional[Mapping[str, Any]] = None,
) -> dict[str, Any]:
    """
    Validate and normalize an event.

    On create pass only `candidate`. On update pass the stored document as
    `existing` and the requested changes as `candidate`; only fields whose
    value differs from the stored one are re-normalized.

    Returns the editable fields plus `slug`. A caller-supplied slug is ignored.
    """
    existing = existing or {}
    changes = {k: candidate[k] for k in EDITABLE_FIELDS if k in candidate}

    doc: dict[str, Any] = {k: existing[k] for k in EDITABLE_FIELDS if k in existing}
    changed: set[str] = set()
    for field, value in changes.items():
        if isinstance(value, str):
            value = value.strip()
        if field not in existing or existing[field] != value:
            changed.add(field)
        doc[field] = value

    slug = existing.get("slug")
    title = doc.get("title")
    if ("title" in changed or not slug) and not _is_blank(title):
        slug = slugify(title)
        if not slug:
            raise InvalidSlug(
                title,
                "Title must contain at least one letter or digit to derive a slug.",
            )
    doc["slug"] = slug

    if "date" in changed and not _is_blank(doc["date"]):
        doc["date"] = normalize_date(doc["date"])

    if "time" in changed and not _is_blank(doc["time"]):
        doc["time"] = normalize_time(doc["time"])

    failures: list[ValidationFailure] = [
        EmptyRequiredField(field)
        for field in REQUIRED_STRING_FIELDS
        if _is_blank(doc.get(field))
    ]
    for field in COLLECTION_FIELDS:
        cleaned = _clean_collection(doc.get(field), dedupe=(field == "tags"))
        if cleaned is None:
            failures.append(InvalidCollection(field))
        else:
            doc[field] = cleaned

    if failures:
        first = failures[0]
        first.errors = [err for failure in failures for err in failure.errors]
        raise first

    return doc


def parse_object_id(value: Any) -> Optional[ObjectId]:
    """ObjectId for `value`, or None if it cannot be one."""
    if isinstance(value, ObjectId):
        return value
    if value is None:
        return None
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def validate_booking(candidate: Mapping[str, Any]) -> dict[str, Any]:
    """Normalize the email and check its format; coerce eventId to an ObjectId."""
    raw_event_id = candidate.get("eventId")
    if raw_event_id is None or (isinstance(raw_event_id, str) and not raw_event_id.strip()):
        raise EmptyRequiredField("eventId")

    event_id = parse_object_id(raw_event_id)
    if event_id is None:
        raise ValidationFailure("eventId", "Event id must be a valid identifier.")

    email = normalize_email(candidate.get("email"))
    if _is_blank(email):
        raise EmptyRequiredField("email")
    if not is_valid_email(email):
        raise InvalidEmail(candidate.get("email"))

    return {"eventId": event_id, "email": email}
