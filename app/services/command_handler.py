"""
Command Handler

This service handles the write side of the shortener:
- Creating short links (random or requested slug)
- Recording redirects

Every state change follows the same path: validate against the current
projection, append an event to the log, fold that event into the projection.
State is never changed any other way.

Design Decisions:
- One writer at a time: commands run under the aggregate's asyncio.Lock,
  so slug allocation and counter updates can't race
- Append before fold: the projection only sees events the log accepted
- A failed or cancelled append may still have reached the log (e.g. the
  commit went through and a later step failed), so the projection is
  rebuilt from the log instead of assuming nothing was written. Until that
  rebuild succeeds no further command runs.
- Errors are typed exceptions from app.core.exceptions; the API layer
  maps them to HTTP status codes
"""

import asyncio
import logging
from typing import AbstractSet, Optional

from app.core.exceptions import InvalidUrlError, ShortenerError, SlugNotFoundError
from app.core.models import Event, LinkCreated, LinkRedirected, ShortLink
from app.core.validators import is_valid_url
from app.services.event_log import EventLog
from app.services.projection import ProjectionState, apply_event, replay_log
from app.services.slug_allocator import SlugAllocator

logger = logging.getLogger(__name__)


class CommandHandler:
    """
    Validates commands and turns them into events.

    Shares the projection and writer lock with the owning
    UrlShortenerService; it is not meant to be built on its own.
    """

    def __init__(
        self,
        event_log: EventLog,
        state: ProjectionState,
        allocator: SlugAllocator,
        lock: asyncio.Lock,
        reserved_slugs: AbstractSet[str] = frozenset(),
    ):
        """
        Initialize the command handler.

        Args:
            event_log: Log new events are appended to
            state: Live projection, updated in place after each append
            allocator: Slug allocation policy
            lock: Writer lock serializing all commands
            reserved_slugs: Slugs that count as taken without a link
                (e.g. names of fixed HTTP routes)
        """
        self.event_log = event_log
        self.state = state
        self.allocator = allocator
        self.reserved_slugs = frozenset(reserved_slugs)
        self._lock = lock
        self._out_of_sync = False

    def _slug_taken(self, slug: str) -> bool:
        return slug in self.state.links or slug in self.reserved_slugs

    async def _resync(self) -> None:
        """
        Rebuild the projection from the log, in place.

        Raises:
            EventLogError: If the log can't be read
            ProjectionConsistencyError: If the log no longer replays
        """
        rebuilt = await replay_log(self.event_log)
        self.state.replace_with(rebuilt)
        self._out_of_sync = False
        logger.warning(f"Projection rebuilt from the event log ({rebuilt.event_count} events)")

    async def _append_and_apply(self, event: Event) -> int:
        """Append `event` and fold it. Caller must hold the writer lock."""
        try:
            sequence = await self.event_log.append(event)
        except asyncio.CancelledError:
            # rebuilt by the next command
            self._out_of_sync = True
            raise
        except Exception:
            self._out_of_sync = True
            try:
                await self._resync()
            except ShortenerError as e:
                logger.error(f"Projection rebuild after failed append did not succeed: {e}")
            raise

        apply_event(self.state, event)
        return sequence

    async def create_short_link(self, url: str, slug: Optional[str] = None) -> ShortLink:
        """
        Create a new short link.

        Args:
            url: The long URL to shorten
            slug: Requested slug, or None to generate one

        Returns:
            The newly created ShortLink

        Raises:
            InvalidUrlError: If URL format is invalid
            SlugAlreadyInUseError: If the requested slug is taken or reserved
            SlugAllocationExhaustedError: If no free slug could be generated
            EventLogError: If the event could not be persisted
        """
        if not is_valid_url(url):
            raise InvalidUrlError(
                url,
                reason="Invalid URL format. URL must use http:// or https:// and have a valid domain"
            )

        async with self._lock:
            if self._out_of_sync:
                await self._resync()

            allocated = self.allocator.allocate(slug, self._slug_taken)

            event = LinkCreated(slug=allocated, url=url)
            sequence = await self._append_and_apply(event)
            link = self.state.links[allocated]

        logger.info(f"Short link created: slug={allocated} seq={sequence}")
        return link

    async def redirect(self, slug: str) -> ShortLink:
        """
        Record a redirect through `slug`.

        Args:
            slug: The slug being followed

        Returns:
            The ShortLink to redirect to

        Raises:
            SlugNotFoundError: If the slug is unknown (nothing is appended)
            EventLogError: If the event could not be persisted
        """
        async with self._lock:
            if self._out_of_sync:
                await self._resync()

            link = self.state.links.get(slug)
            if link is None:
                logger.debug(f"Redirect for unknown slug: {slug}")
                raise SlugNotFoundError(slug)

            await self._append_and_apply(LinkRedirected(slug=slug))

        return link
