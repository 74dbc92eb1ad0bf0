"""
Service Lifecycle

Builds the shortener on startup and releases its resources on shutdown.

Startup:
1. Pick the event log backend from settings (memory or SQL)
2. For SQL, create the engine and make sure the table exists
3. Replay the whole log into a fresh UrlShortenerService

A log that fails to replay aborts startup: serving from a projection that
disagrees with the log would hand out wrong stats or duplicate slugs.
"""

import logging
from typing import AbstractSet, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncEngine

from app.core.exceptions import ShortenerError
from app.core.setting import EventLogBackend, Settings
from app.db.event_store import SQLEventLog
from app.db.session import create_engine, create_tables
from app.services.event_log import EventLog, InMemoryEventLog
from app.services.shortener import UrlShortenerService
from app.services.slug_allocator import SlugAllocator

logger = logging.getLogger(__name__)


async def build_event_log(settings: Settings) -> Tuple[EventLog, Optional[AsyncEngine]]:
    """
    Create the event log configured in `settings`.

    Returns:
        The event log, and the engine backing it (None for the memory backend)
    """
    if settings.EVENT_LOG_BACKEND is EventLogBackend.memory:
        logger.info("Using in-memory event log")
        return InMemoryEventLog(), None

    engine = create_engine(settings.DATABASE_URL)
    await create_tables(engine)
    logger.info(f"Using SQL event log ({engine.url.render_as_string(hide_password=True)})")
    return SQLEventLog.from_engine(engine, batch_size=settings.EVENT_REPLAY_BATCH_SIZE), engine


async def initialize_service(
    settings: Settings,
    reserved_slugs: AbstractSet[str] = frozenset(),
) -> Tuple[UrlShortenerService, Optional[AsyncEngine]]:
    """
    Build the shortener by replaying its event log.

    Args:
        settings: Backend and allocation settings
        reserved_slugs: Slugs never handed out, e.g. the app's fixed routes

    Raises:
        ShortenerError: If the log can't be read or fails to replay
    """
    event_log, engine = await build_event_log(settings)
    allocator = SlugAllocator(
        slug_length=settings.SLUG_LENGTH,
        max_attempts=settings.SLUG_MAX_ATTEMPTS,
    )

    try:
        service = await UrlShortenerService.from_event_log(
            event_log, allocator=allocator, reserved_slugs=reserved_slugs
        )
    except ShortenerError:
        logger.critical("Event log replay failed, refusing to start", exc_info=True)
        if engine is not None:
            await engine.dispose()
        raise

    logger.info(f"Shortener ready: {len(service.state.links)} links")
    return service, engine


async def shutdown_service(engine: Optional[AsyncEngine]) -> None:
    """Release the event log's database connections."""
    if engine is not None:
        await engine.dispose()
        logger.info("Event log engine disposed")
