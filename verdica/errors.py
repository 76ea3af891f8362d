"""
Error kinds raised by the Verdica core services.

Routers translate these into HTTP responses using ``status_code``.
"""

from fastapi import HTTPException


class VerdicaError(Exception):
    """Base class for all Verdica service errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(VerdicaError):
    """Missing or malformed input; the caller can correct it."""

    status_code = 400


class AuthorizationError(VerdicaError):
    """A role or identity rule forbids the action."""

    status_code = 403


class NotFoundError(VerdicaError):
    """A referenced record does not exist."""

    status_code = 404


class ConflictError(VerdicaError):
    """A uniqueness rule rejected the write."""

    status_code = 409


class PersistenceError(VerdicaError):
    """The record store failed; fatal for the current request."""

    status_code = 500


def to_http_exception(exc: VerdicaError) -> HTTPException:
    """Map a service error onto the HTTP error routers raise."""
    return HTTPException(status_code=exc.status_code, detail=exc.message)
