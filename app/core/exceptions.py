"""
Custom Exceptions

This module defines the error taxonomy of the shortener core.

Expected outcomes (the caller decides what to do with them):
- InvalidUrlError: the target URL is malformed
- SlugAlreadyInUseError: an explicitly requested slug is taken
- SlugNotFoundError: redirect or stats query against an unknown slug

Operational failures:
- SlugAllocationExhaustedError: every generated candidate collided
- EventLogError: the durable event log could not be read or written

Fatal:
- ProjectionConsistencyError: the event log contradicts itself. Raised
  during replay, it aborts startup instead of serving a broken state.
"""

from typing import Optional


class ShortenerError(Exception):
    """Base exception for URL shortener service."""
    pass


class InvalidUrlError(ShortenerError):
    """Raised when URL validation fails."""

    def __init__(self, url: str, reason: str = "Invalid URL format"):
        self.url = url
        self.reason = reason
        super().__init__(f"{reason}: {url}")


class SlugAlreadyInUseError(ShortenerError):
    """Raised when a requested slug is already mapped to a link."""

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"Slug '{slug}' is already in use")


class SlugNotFoundError(ShortenerError):
    """Raised when a slug does not map to any short link."""

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(f"Slug '{slug}' not found")


class SlugAllocationExhaustedError(ShortenerError):
    """Raised when no free slug was found within the retry bound."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Could not allocate a free slug after {attempts} attempts")


class EventLogError(ShortenerError):
    """Raised when the event log backend fails."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(f"Event log error: {message}")


class ProjectionConsistencyError(ShortenerError):
    """Raised when an event cannot be folded into the projected state."""

    def __init__(self, message: str):
        super().__init__(f"Projection consistency violated: {message}")
