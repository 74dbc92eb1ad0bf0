"""
SQL Event Log

Durable EventLog implementation backed by the link_events table.

Design:
- append() inserts one row per event and commits before returning, so an
  event is durable by the time the projection sees it
- The autoincrement primary key is the sequence number
- read_all() pages through the table in sequence order (keyset pagination),
  so a full replay never loads the whole log in one query
"""

import logging
from typing import AsyncIterator

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.exceptions import EventLogError
from app.core.models import Event
from app.db.models import EventRecord
from app.db.session import create_session_maker

logger = logging.getLogger(__name__)


class SQLEventLog:
    """
    Event log stored in a SQL database.

    Args:
        session_maker: Factory for sessions on the event log database
        batch_size: Rows fetched per query by read_all()
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession], batch_size: int = 500):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.session_maker = session_maker
        self.batch_size = batch_size

    @classmethod
    def from_engine(cls, engine: AsyncEngine, batch_size: int = 500) -> "SQLEventLog":
        return cls(create_session_maker(engine), batch_size=batch_size)

    async def append(self, event: Event) -> int:
        """
        Persist an event.

        Returns:
            The sequence number of the stored event

        Raises:
            EventLogError: If the row could not be written
        """
        async with self.session_maker() as session:
            try:
                record = EventRecord.from_event(event)
                session.add(record)
                await session.commit()
                # primary key is assigned at flush and survives the commit
                return record.sequence
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(f"Failed to append {event.type} for '{event.slug}': {e}", exc_info=True)
                raise EventLogError(f"Failed to append event: {e}", original_error=e)

    async def read_all(self) -> AsyncIterator[Event]:
        """
        Iterate over all events in sequence order.

        Raises:
            EventLogError: If a page could not be read or a row is malformed
        """
        last_sequence = 0
        while True:
            statement = (
                select(EventRecord)
                .where(EventRecord.sequence > last_sequence)
                .order_by(EventRecord.sequence)
                .limit(self.batch_size)
            )
            try:
                async with self.session_maker() as session:
                    result = await session.exec(statement)
                    rows = result.all()
            except SQLAlchemyError as e:
                logger.error(f"Failed to read events after #{last_sequence}: {e}", exc_info=True)
                raise EventLogError(f"Failed to read events: {e}", original_error=e)

            for row in rows:
                try:
                    event = row.to_event()
                except ValueError as e:
                    raise EventLogError(str(e), original_error=e)
                yield event
                last_sequence = row.sequence

            if len(rows) < self.batch_size:
                return

    async def count(self) -> int:
        """Number of stored events."""
        async with self.session_maker() as session:
            result = await session.exec(select(func.count(EventRecord.sequence)))
            return result.one()
