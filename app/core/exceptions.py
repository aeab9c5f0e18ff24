"""Domain errors raised by services and mapped to HTTP responses in app.main."""

from typing import Literal

InvalidTokenKind = Literal["expired", "malformed", "bad_signature", "revoked"]


class ServiceError(Exception):
    """Base class for errors the API turns into structured responses."""

    status_code: int = 400

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class BadRequest(ServiceError):
    """Request is well-formed but not acceptable (e.g. new password equals current)."""

    status_code = 400


class InvalidCredentials(ServiceError):
    """Wrong email or password. Never says which of the two was wrong."""

    status_code = 401

    def __init__(self, message: str = "Invalid email or password.") -> None:
        super().__init__(message)


class InvalidToken(ServiceError):
    """
    Access or refresh token failed signature, expiry, type or fingerprint checks.

    kind is kept for logging only; responses never reveal it.
    """

    status_code = 401

    def __init__(self, kind: InvalidTokenKind, message: str = "Invalid or expired token") -> None:
        self.kind = kind
        super().__init__(message)


class PermissionDenied(ServiceError):
    """Authenticated account whose role is not allowed for the operation."""

    status_code = 403

    def __init__(self, message: str = "You do not have permission to perform this action.") -> None:
        super().__init__(message)


class NotFound(ServiceError):
    status_code = 404


class Conflict(ServiceError):
    """Unique constraint violated (duplicate email, plate number, driver assignment)."""

    status_code = 409


class SigningError(Exception):
    """Token signing is misconfigured (missing secret). Fatal at startup, never per request."""
