"""
Input Validators and Sanitizers

This module provides validation and sanitization functions for user inputs.
Used by the command handler (target URLs) and the API layer (slugs).

Security Considerations:
- Only http/https targets are accepted (no javascript:, data:, file:)
- Slugs are restricted to a URL-safe alphabet
- Length limits prevent DoS attacks
"""

import re
from typing import Optional
from urllib.parse import urlparse

MAX_URL_LENGTH = 2048
MAX_SLUG_LENGTH = 32

SLUG_PATTERN = r"^[0-9A-Za-z_-]+$"
_SLUG_RE = re.compile(SLUG_PATTERN)

ALLOWED_SCHEMES = {"http", "https"}
MALICIOUS_PATTERNS = ("javascript:", "data:", "file:", "vbscript:")


def is_valid_url(url: str) -> bool:
    """
    Validate URL format and security.

    Checks that URL uses http/https, has valid domain, and doesn't contain
    malicious patterns.

    Args:
        url: The URL string to validate

    Returns:
        True if valid and safe, False otherwise
    """
    if not url or not isinstance(url, str):
        return False

    if len(url) > MAX_URL_LENGTH:
        return False

    if any(ch.isspace() for ch in url):
        return False

    try:
        result = urlparse(url)
        hostname = result.hostname
        # .port raises ValueError for "host:abc" or out-of-range ports
        if result.port == 0:
            return False
    except ValueError:
        return False

    if result.scheme.lower() not in ALLOWED_SCHEMES or not hostname:
        return False

    if hostname != "localhost" and "." not in hostname:
        return False

    url_lower = url.lower()
    if any(pattern in url_lower for pattern in MALICIOUS_PATTERNS):
        return False

    return True


def sanitize_slug(slug: str) -> Optional[str]:
    """
    Sanitize and validate slug format.

    Slugs may contain [0-9A-Za-z], '-' and '_'. Generated slugs are base62
    and always pass.

    Args:
        slug: The slug to sanitize

    Returns:
        Sanitized slug if valid, None otherwise
    """
    if not slug or not isinstance(slug, str):
        return None

    # no stripping: "abc " is a different slug, not an alias of "abc"
    if len(slug) > MAX_SLUG_LENGTH:
        return None

    if not _SLUG_RE.match(slug):
        return None

    return slug
