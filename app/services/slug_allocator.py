"""
Slug Allocator

Decides which slug a new short link gets. The decision is pure: it is given
an existence predicate and returns a slug, it never records anything. The
caller must hold the writer lock from the check until the LinkCreated event
is committed.

Design Decisions:
- Base62 encoding: Uses [0-9a-zA-Z] for maximum URL compatibility
- Fixed length: every generated slug has SLUG_LENGTH characters
- Random, not counter based: numbers come from `secrets`, so slugs are not
  guessable and need no shared counter
- Bounded retry: each attempt draws a fresh candidate; after max_attempts
  collisions the allocator gives up with SlugAllocationExhaustedError
"""

import logging
import secrets
from typing import Callable, Optional

from app.core.exceptions import SlugAlreadyInUseError, SlugAllocationExhaustedError

logger = logging.getLogger(__name__)

BASE62_CHARS = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
BASE62_LENGTH = len(BASE62_CHARS)

DEFAULT_SLUG_LENGTH = 7
DEFAULT_MAX_ATTEMPTS = 10


def encode_base62(number: int, min_length: int = DEFAULT_SLUG_LENGTH) -> str:
    """
    Encode a non-negative number to base62 string with fixed length.

    Args:
        number: The number to convert
        min_length: Minimum length of the code (default: 7)

    Returns:
        Base62 encoded string, padded to min_length

    Example:
        encode_base62(0) -> "0000000"
        encode_base62(62) -> "0000010"
    """
    if number < 0:
        raise ValueError(f"Cannot encode negative number: {number}")

    digits = []
    while number > 0:
        number, remainder = divmod(number, BASE62_LENGTH)
        digits.append(BASE62_CHARS[remainder])

    code = "".join(reversed(digits))
    return code.rjust(min_length, BASE62_CHARS[0])


def random_slug(length: int = DEFAULT_SLUG_LENGTH) -> str:
    """Draw a uniformly random base62 slug of exactly `length` characters."""
    return encode_base62(secrets.randbelow(BASE62_LENGTH ** length), min_length=length)


class SlugAllocator:
    """
    Chooses slugs for new short links.

    Args:
        slug_length: Length of generated slugs
        max_attempts: Generated candidates tried before giving up
        generator: Candidate source, called with slug_length. Defaults to
            random_slug; tests inject deterministic sequences.
    """

    def __init__(
        self,
        slug_length: int = DEFAULT_SLUG_LENGTH,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        generator: Optional[Callable[[int], str]] = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.slug_length = slug_length
        self.max_attempts = max_attempts
        self._generate = generator or random_slug

    def allocate(self, requested: Optional[str], exists: Callable[[str], bool]) -> str:
        """
        Return a slug that `exists` reports as free.

        Args:
            requested: Slug asked for by the caller, or None to generate one
            exists: Predicate telling whether a slug is already taken

        Returns:
            The allocated slug

        Raises:
            SlugAlreadyInUseError: If the requested slug is taken
            SlugAllocationExhaustedError: If every generated candidate was taken
        """
        if requested is not None:
            if exists(requested):
                raise SlugAlreadyInUseError(requested)
            return requested

        for attempt in range(1, self.max_attempts + 1):
            candidate = self._generate(self.slug_length)
            if not exists(candidate):
                return candidate
            logger.debug(f"Generated slug collided (attempt {attempt}): {candidate}")

        logger.error(f"Slug allocation exhausted after {self.max_attempts} attempts")
        raise SlugAllocationExhaustedError(self.max_attempts)
