"""
Services module: the event-sourced core of the shortener.

- slug_allocator: chooses slugs for new links
- event_log: append-only log interface and in-memory implementation
- projection: folds events into the link and stats tables
- command_handler / query_handler: write and read paths
- shortener: the aggregate owning one log and its projection
"""

from app.services.event_log import EventLog, InMemoryEventLog
from app.services.shortener import UrlShortenerService
from app.services.slug_allocator import SlugAllocator

__all__ = [
    "EventLog",
    "InMemoryEventLog",
    "SlugAllocator",
    "UrlShortenerService",
]
