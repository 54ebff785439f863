"""
Field normalization rules shared by the event and booking validators.
"""

import re
from datetime import date, datetime, timezone
from typing import Any

from app.core.exceptions import InvalidDateFormat, InvalidSlug, InvalidTimeFormat

SLUG_PATTERN = re.compile(r"[a-z0-9]+(?:-[a-z0-9]+)*")
EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

_NON_SLUG_RUN = re.compile(r"[^a-z0-9]+")
_TIME_PATTERN = re.compile(r"([0-9]{1,2}):([0-9]{2})")


def slugify(value: str) -> str:
    """
    Lowercase, collapse every run of characters outside [a-z0-9] into one
    hyphen, then strip leading/trailing hyphens. May return "".
    """
    return _NON_SLUG_RUN.sub("-", value.lower()).strip("-")


def is_valid_slug(value: Any) -> bool:
    return isinstance(value, str) and SLUG_PATTERN.fullmatch(value) is not None


def validate_slug(value: Any) -> str:
    """Reject anything that is not a canonical slug before it reaches a query."""
    if not is_valid_slug(value):
        raise InvalidSlug(value)
    return value


def normalize_time(raw: Any) -> str:
    """Return zero-padded 24-hour HH:MM, or raise InvalidTimeFormat."""
    if not isinstance(raw, str):
        raise InvalidTimeFormat(raw)

    match = _TIME_PATTERN.fullmatch(raw.strip())
    if not match:
        raise InvalidTimeFormat(raw)

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise InvalidTimeFormat(raw)

    return f"{hours:02d}:{minutes:02d}"


def to_iso_instant(value: datetime) -> str:
    """Format as UTC with millisecond precision, e.g. 2025-04-10T00:00:00.000Z."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def normalize_date(raw: Any) -> str:
    """
    Parse a calendar date or date-time and return the canonical ISO-8601
    instant string. Values without an offset are taken as UTC.
    """
    if isinstance(raw, datetime):
        parsed = raw
    elif isinstance(raw, date):
        parsed = datetime(raw.year, raw.month, raw.day)
    elif isinstance(raw, str):
        try:
            parsed = datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
        except ValueError:
            raise InvalidDateFormat(raw) from None
    else:
        raise InvalidDateFormat(raw)

    # Offsets near year 1 or 9999 can push the UTC instant out of range
    try:
        return to_iso_instant(parsed)
    except (ValueError, OverflowError):
        raise InvalidDateFormat(raw) from None


def normalize_email(raw: Any) -> str:
    """Trim and lowercase. Format is checked separately."""
    return raw.strip().lower() if isinstance(raw, str) else raw


def is_valid_email(value: Any) -> bool:
    return isinstance(value, str) and EMAIL_PATTERN.fullmatch(value) is not None
