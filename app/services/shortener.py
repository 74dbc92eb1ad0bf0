"""
URL Shortener Service

The aggregate that owns one event log and the projection derived from it.
Commands go to the CommandHandler, queries to the QueryHandler; both work on
the same in-memory projection.

The projection is only ever built by replaying the log
(UrlShortenerService.from_event_log), so restarting the service on the same
log reproduces the same state.
"""

import asyncio
import logging
from typing import AbstractSet, AsyncIterator, Optional

from app.core.models import Event, ShortLink, Stats
from app.services.command_handler import CommandHandler
from app.services.event_log import EventLog
from app.services.projection import ProjectionState, replay_log
from app.services.query_handler import QueryHandler
from app.services.slug_allocator import SlugAllocator

logger = logging.getLogger(__name__)


class UrlShortenerService:
    """
    CQRS and Event Sourcing based URL shortener.

    Use `await UrlShortenerService.from_event_log(log)` to construct one.
    """

    def __init__(
        self,
        event_log: EventLog,
        state: ProjectionState,
        allocator: Optional[SlugAllocator] = None,
        reserved_slugs: AbstractSet[str] = frozenset(),
    ):
        self.event_log = event_log
        self._state = state
        self._lock = asyncio.Lock()
        self.commands = CommandHandler(
            event_log, state, allocator or SlugAllocator(), self._lock,
            reserved_slugs=reserved_slugs,
        )
        self.queries = QueryHandler(state)

    @classmethod
    async def from_event_log(
        cls,
        event_log: EventLog,
        allocator: Optional[SlugAllocator] = None,
        reserved_slugs: AbstractSet[str] = frozenset(),
    ) -> "UrlShortenerService":
        """
        Build a service whose state is the replay of `event_log`.

        Raises:
            ProjectionConsistencyError: If the log is inconsistent
        """
        state = await replay_log(event_log)
        return cls(event_log, state, allocator, reserved_slugs)

    @property
    def state(self) -> ProjectionState:
        return self._state

    # Command surface

    async def handle_create_short_link(self, url: str, slug: Optional[str] = None) -> ShortLink:
        return await self.commands.create_short_link(url, slug)

    async def handle_redirect(self, slug: str) -> ShortLink:
        return await self.commands.redirect(slug)

    # Query surface

    def get_stats(self, slug: str) -> Stats:
        return self.queries.get_stats(slug)

    def get_link(self, slug: str) -> ShortLink:
        return self.queries.get_link(slug)

    # Replay interface for rebuild/debugging tools

    def read_all(self) -> AsyncIterator[Event]:
        return self.event_log.read_all()
