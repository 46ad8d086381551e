"""Domain error taxonomy. Services raise these; the API layer maps them to HTTP responses."""

from typing import Any


class HearthError(Exception):
    """Base for errors surfaced to the HTTP caller with a precise message."""

    status_code = 500

    def __init__(self, message: str, errors: dict[str, Any] | None = None) -> None:
        self.message = message
        self.errors = errors
        super().__init__(message)


class ValidationError(HearthError):
    """Bad input shape or value."""

    status_code = 400


class InvalidOperation(HearthError):
    """Operation not allowed for this kind of entity (e.g. renaming a direct conversation)."""

    status_code = 400


class Unauthenticated(HearthError):
    """No credentials supplied, or credentials did not match."""

    status_code = 401


class InvalidToken(Unauthenticated):
    """Token failed signature, expiry or payload checks."""


class UserNotFound(Unauthenticated):
    """Token is valid but its subject no longer exists."""


class NotApproved(HearthError):
    """Account exists but is pending approval or was rejected."""

    status_code = 403

    def __init__(self, reason: str, message: str) -> None:
        self.reason = reason
        super().__init__(message, errors={"status": reason})


class Forbidden(HearthError):
    """Role or ownership mismatch."""

    status_code = 403


class AccessDenied(Forbidden):
    """Caller is not a participant of the conversation."""


class NotFound(HearthError):
    status_code = 404


class Conflict(HearthError):
    """Duplicate of a unique key (email, RSVP)."""

    status_code = 409


class InternalError(HearthError):
    """Store or blob failure; message is generic by construction."""

    status_code = 500
