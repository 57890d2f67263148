"""Error taxonomy shared by every component.

Services raise these exceptions; the HTTP layer maps them to a JSON body of
the form ``{"message": ..., "details": ...}`` using ``status_code``.
"""

from typing import Any, Optional


class StorefrontError(Exception):
    """Base class for errors that carry an HTTP status and a message."""

    status_code = 500

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class NotFound(StorefrontError):
    """Missing cart, cart item, product or order."""

    status_code = 404


class BadRequest(StorefrontError):
    """Negative or insufficient quantity, malformed id, empty cart."""

    status_code = 400


class ComputationError(StorefrontError):
    """A monetary value could not be computed from the stored data."""

    status_code = 500


class DependencyFailure(StorefrontError):
    """Storage write or downstream service failure."""

    status_code = 503


class NotificationError(DependencyFailure):
    """The email API rejected the message or could not be reached."""
