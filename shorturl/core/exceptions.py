"""
Custom Exceptions

This module defines the failure taxonomy of the service. The core components
(validator, registry) raise these; only the API layer turns them into HTTP
responses.

- InvalidURLError: rejected at admission (soft error, reported to the caller)
- MalformedIdentifierError: path token is not integer-shaped (client error)
- ShortIdNotFoundError: well-formed identifier with no mapping (absence)
- DatabaseError: backing store unavailable or write failed (server fault)
"""

from typing import Optional


class URLShortenerException(Exception):
    """Base exception for URL shortener service."""
    pass


class InvalidURLError(URLShortenerException):
    """Raised when URL validation fails."""

    def __init__(self, url: Optional[str], reason: str = "Invalid URL format"):
        self.url = url
        self.reason = reason
        super().__init__(f"{reason}: {url!r}")


class MalformedIdentifierError(URLShortenerException):
    """Raised when a short identifier token is not integer-shaped."""

    def __init__(self, token: Optional[str]):
        self.token = token
        super().__init__(f"Malformed short identifier: {token!r}")


class ShortIdNotFoundError(URLShortenerException):
    """Raised when no mapping exists for a short identifier."""

    def __init__(self, short_id: int):
        self.short_id = short_id
        super().__init__(f"Short id {short_id} not found")


class DatabaseError(URLShortenerException):
    """Raised when database operations fail."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")
