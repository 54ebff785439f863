"""
Error types raised by the data-access and integrity layer.

Route handlers translate these into HTTP responses (see app.main);
services never raise HTTPException directly.
"""

from typing import Any, Optional


class CoreError(Exception):
    """Base class for every error raised by the core."""


class MissingConfiguration(CoreError):
    """A required setting was not supplied. Fatal at startup."""

    def __init__(self, setting: str):
        self.setting = setting
        super().__init__(
            f"Please define the {setting} environment variable inside .env.local"
        )


class ConnectionFailure(CoreError):
    """Establishing the database connection failed. Callers may retry."""

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"Could not connect to the database: {cause}")


class ValidationFailure(CoreError):
    """
    A candidate document was rejected before the write.

    `field` names the first offending field; `errors` carries every
    failure found in the candidate as {"field", "message"} dicts.
    """

    def __init__(self, field: str, message: str, errors: Optional[list[dict]] = None):
        self.field = field
        self.message = message
        self.errors = errors or [{"field": field, "message": message}]
        super().__init__(message)


def _label(field: str) -> str:
    return field[:1].upper() + field[1:]


class EmptyRequiredField(ValidationFailure):
    def __init__(self, field: str):
        super().__init__(field, f"{_label(field)} is required and cannot be empty.")


class InvalidDateFormat(ValidationFailure):
    def __init__(self, value: Any):
        self.value = value
        super().__init__("date", "Invalid date format. Expected a parsable calendar date/time.")


class InvalidTimeFormat(ValidationFailure):
    def __init__(self, value: Any):
        self.value = value
        super().__init__("time", "Invalid time format. Expected HH:MM (24-hour format).")


class InvalidEmail(ValidationFailure):
    def __init__(self, value: Any):
        self.value = value
        super().__init__("email", "Email must be a valid email address.")


class InvalidCollection(ValidationFailure):
    def __init__(self, field: str):
        super().__init__(
            field, f"{_label(field)} must be a non-empty array of non-empty strings."
        )


class InvalidSlug(ValidationFailure):
    def __init__(self, value: Any, message: Optional[str] = None):
        self.value = value
        super().__init__(
            "slug",
            message
            or "Invalid slug format. Expected lowercase letters/numbers with optional hyphens (e.g. 'my-event-1').",
        )


class UniquenessViolation(CoreError):
    """The storage layer rejected a duplicate value on a unique index."""

    def __init__(self, field: str, value: Any):
        self.field = field
        self.value = value
        super().__init__(f"An event with {field} '{value}' already exists.")


class DanglingReference(CoreError):
    """A booking referenced an event that does not exist."""

    def __init__(self, event_id: Any):
        self.event_id = event_id
        super().__init__("Cannot create booking: referenced event does not exist.")


class NotFound(CoreError):
    """A lookup that the caller required to succeed came back empty."""

    def __init__(self, entity: str, key: Any):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} not found.")
