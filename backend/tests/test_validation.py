"""
Tests for the pre-write event and booking validators.
"""

import pytest
from bson import ObjectId

from app.core.exceptions import (
    EmptyRequiredField,
    InvalidCollection,
    InvalidDateFormat,
    InvalidEmail,
    InvalidSlug,
    InvalidTimeFormat,
    ValidationFailure,
)
from app.services.validation import validate_booking, validate_event


def test_create_derives_slug_and_normalizes(event_payload):
    doc = validate_event(event_payload)
    assert doc["slug"] == "cloud-next-2027"
    assert doc["date"] == "2025-04-10T00:00:00.000Z"
    assert doc["time"] == "08:30"


def test_caller_supplied_slug_is_ignored(event_payload):
    doc = validate_event({**event_payload, "slug": "hand-picked"})
    assert doc["slug"] == "cloud-next-2027"


def test_string_fields_are_trimmed(event_payload):
    doc = validate_event({**event_payload, "venue": "  Moscone Center  "})
    assert doc["venue"] == "Moscone Center"


def test_tags_keep_order_and_drop_duplicates(event_payload):
    doc = validate_event({**event_payload, "tags": ["AI", " Cloud ", "AI", "DevOps"]})
    assert doc["tags"] == ["AI", "Cloud", "DevOps"]


def test_all_punctuation_title_is_rejected(event_payload):
    with pytest.raises(InvalidSlug) as exc_info:
        validate_event({**event_payload, "title": "!!!"})
    assert exc_info.value.field == "slug"


def test_invalid_date_is_rejected(event_payload):
    with pytest.raises(InvalidDateFormat):
        validate_event({**event_payload, "date": "someday"})


def test_invalid_time_is_rejected(event_payload):
    with pytest.raises(InvalidTimeFormat):
        validate_event({**event_payload, "time": "24:00"})


def test_missing_required_fields_are_all_reported(event_payload):
    candidate = dict(event_payload)
    del candidate["venue"]
    candidate["organizer"] = "   "

    with pytest.raises(EmptyRequiredField) as exc_info:
        validate_event(candidate)

    err = exc_info.value
    assert err.field == "venue"
    assert {e["field"] for e in err.errors} == {"venue", "organizer"}
    assert err.message == "Venue is required and cannot be empty."


@pytest.mark.parametrize("agenda", [[], ["Keynote", "  "], "Keynote", None])
def test_agenda_must_be_non_empty_strings(event_payload, agenda):
    with pytest.raises(InvalidCollection) as exc_info:
        validate_event({**event_payload, "agenda": agenda})
    assert exc_info.value.field == "agenda"


def test_empty_tags_rejected(event_payload):
    with pytest.raises(ValidationFailure) as exc_info:
        validate_event({**event_payload, "tags": []})
    assert exc_info.value.field == "tags"


def test_update_only_renormalizes_changed_fields(event_payload):
    stored = validate_event(event_payload)
    # A stored value that no longer parses is left alone when untouched
    stored["date"] = "legacy"

    doc = validate_event({"time": "9:45"}, stored)
    assert doc["time"] == "09:45"
    assert doc["date"] == "legacy"
    assert doc["slug"] == "cloud-next-2027"


def test_update_title_regenerates_slug(event_payload):
    stored = validate_event(event_payload)
    doc = validate_event({"title": "Cloud Next 2028"}, stored)
    assert doc["slug"] == "cloud-next-2028"


def test_update_same_title_keeps_slug(event_payload):
    stored = validate_event(event_payload)
    stored["slug"] = "cloud-next-2027"
    doc = validate_event({"title": "  Cloud Next 2027 "}, stored)
    assert doc["slug"] == "cloud-next-2027"


def test_missing_slug_is_derived_on_update(event_payload):
    stored = validate_event(event_payload)
    del stored["slug"]
    doc = validate_event({"mode": "online"}, stored)
    assert doc["slug"] == "cloud-next-2027"


def test_booking_email_is_normalized():
    event_id = ObjectId()
    doc = validate_booking({"eventId": str(event_id), "email": "  Ada@Example.COM "})
    assert doc == {"eventId": event_id, "email": "ada@example.com"}


def test_booking_rejects_bad_email():
    with pytest.raises(InvalidEmail):
        validate_booking({"eventId": str(ObjectId()), "email": "ada@example"})


def test_booking_requires_email():
    with pytest.raises(EmptyRequiredField) as exc_info:
        validate_booking({"eventId": str(ObjectId()), "email": "  "})
    assert exc_info.value.field == "email"


@pytest.mark.parametrize("event_id", ["not-an-id", "123", 42])
def test_booking_rejects_malformed_event_id(event_id):
    with pytest.raises(ValidationFailure) as exc_info:
        validate_booking({"eventId": event_id, "email": "ada@example.com"})
    assert exc_info.value.field == "eventId"


def test_booking_requires_event_id():
    with pytest.raises(EmptyRequiredField) as exc_info:
        validate_booking({"email": "ada@example.com"})
    assert exc_info.value.field == "eventId"
