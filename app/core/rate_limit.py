"""
Rate Limiting Configuration

Per-IP rate limits for the API endpoints, using slowapi.

Every redirect appends an event to the log, so the redirect limit also caps
how fast a single client can grow the log.

The endpoints are decorated with this one limiter, so RATE_LIMIT_ENABLED is
read once from the environment and holds for every app in the process.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.setting import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

# Format: "count/period" (e.g., "10/minute" means 10 requests per minute)
RATE_LIMITS = {
    "shorten": "10/minute",
    "redirect": "100/minute",
    "stats": "30/minute",
    "events": "10/minute",
}
