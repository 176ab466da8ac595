"""Domain errors raised by the activity store and identity layer.

Every error carries the HTTP status it maps to and a JSON payload with at
least an ``error`` message. None of them is raised after a commit.

    ValidationError        400  malformed or out-of-range fields
    CapacityExceededError  400  write would push a day past 1440 minutes
    NotFoundError          404  missing activity, or one owned by someone else
    UnauthenticatedError   401  no owner could be resolved for the request
"""

from typing import Any

from litestar.status_codes import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_404_NOT_FOUND,
)


class DaytrackError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        """Initialize with a human-readable message."""
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict[str, Any]:
        """Build the JSON error body."""
        return {"error": self.message}


class ValidationError(DaytrackError):
    """One or more input fields are malformed or out of range."""

    def __init__(
        self,
        details: list[dict[str, str]],
        message: str = "Invalid activity data",
    ) -> None:
        """Initialize with per-field details.

        Args:
            details: List of {"field": ..., "message": ...} entries
            message: Summary message
        """
        super().__init__(message)
        self.details = details

    @property
    def fields(self) -> list[str]:
        """Names of the violated fields, in first-seen order."""
        return list(dict.fromkeys(d["field"] for d in self.details))

    def to_payload(self) -> dict[str, Any]:
        """Build the JSON error body listing violated fields."""
        return {"error": self.message, "fields": self.fields, "details": self.details}


class CapacityExceededError(DaytrackError):
    """Write would push the owner's day total past the daily cap."""

    def __init__(self, current_total: int, remaining: int, action: str = "add") -> None:
        """Initialize with the day's persisted total.

        Args:
            current_total: Minutes already logged on the day (excluding the
                record being updated, for updates)
            remaining: Minutes still available on the day
            action: Verb used in the message ("add" or "update")
        """
        super().__init__(
            f"Cannot {action} activity. Total minutes for the day would exceed 1440 (24 hours)."
        )
        self.current_total = current_total
        self.remaining = remaining

    def to_payload(self) -> dict[str, Any]:
        """Build the JSON error body with totals the caller can adjust to."""
        return {
            "error": self.message,
            "current_total": self.current_total,
            "remaining": self.remaining,
        }


class NotFoundError(DaytrackError):
    """Activity does not exist or belongs to another owner.

    The two cases are deliberately indistinguishable.
    """

    status_code = HTTP_404_NOT_FOUND

    def __init__(self, message: str = "Activity not found") -> None:
        """Initialize with default message."""
        super().__init__(message)


class UnauthenticatedError(DaytrackError):
    """No owner could be resolved for the request."""

    status_code = HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Authentication required") -> None:
        """Initialize with default message."""
        super().__init__(message)
