"""
Error kinds raised by the shortening, resolution and analytics services.

Every error carries a stable ``kind`` and a human readable message.
The HTTP layer renders them as ``{"error": {"kind": ..., "message": ...}}``
using ``status_code``; nothing else about the failure leaves the process.
"""

from typing import Optional


class ShortenerError(Exception):
    """Base exception for the URL shortener service."""

    kind = "Internal"
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class InvalidInputError(ShortenerError):
    """Raised when a long URL or custom alias is malformed."""

    kind = "InvalidInput"
    status_code = 400

    def __init__(self, value: str, reason: str = "Invalid URL format"):
        self.value = value
        self.reason = reason
        super().__init__(f"{reason}: {value}")


class NotFoundError(ShortenerError):
    """Raised when an alias exists neither in the cache nor in storage."""

    kind = "NotFound"
    status_code = 404

    def __init__(self, alias: str):
        self.alias = alias
        super().__init__(f"Short URL '{alias}' not found")


class NoUrlsFoundError(ShortenerError):
    """Raised when a grouped analytics query matches no records."""

    kind = "NoUrlsFound"
    status_code = 404


class DuplicateKeyError(ShortenerError):
    """
    Raised by a record store when the alias is already taken.

    Generated aliases recover from it by regenerating; it is never shown
    to callers as is.
    """

    kind = "DuplicateKey"
    status_code = 409

    def __init__(self, alias: str):
        self.alias = alias
        super().__init__(f"Alias '{alias}' already exists")


class AliasTakenError(DuplicateKeyError):
    """Raised when a caller-supplied custom alias collides with a stored one."""


class GenerationExhaustedError(ShortenerError):
    """Raised when no unused alias was found within the retry cap."""

    kind = "GenerationExhausted"
    status_code = 503

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Could not generate a unique alias after {attempts} attempts")


class DependencyUnavailableError(ShortenerError):
    """Raised when the record store cannot be reached or fails."""

    kind = "DependencyUnavailable"
    status_code = 503

    def __init__(self, service_name: str, original_error: Optional[Exception] = None):
        self.service_name = service_name
        self.original_error = original_error
        super().__init__(f"Service '{service_name}' is unavailable")
