"""
Test doubles and helpers for the shortener tests.
"""

import asyncio
from typing import Iterable

from app.core.exceptions import EventLogError
from app.services.event_log import InMemoryEventLog


def sequence_generator(slugs: Iterable[str]):
    """Slug generator returning `slugs` in order, for deterministic collisions."""
    iterator = iter(slugs)

    def generate(length: int) -> str:
        return next(iterator)

    return generate


class YieldingEventLog(InMemoryEventLog):
    """In-memory log whose append suspends, so concurrent commands interleave."""

    async def append(self, event):
        await asyncio.sleep(0)
        return await super().append(event)


class FailingEventLog(InMemoryEventLog):
    """In-memory log that refuses writes once `fail` is set."""

    def __init__(self):
        super().__init__()
        self.fail = False

    async def append(self, event):
        if self.fail:
            raise EventLogError("disk full")
        return await super().append(event)


async def collect(event_log):
    return [event async for event in event_log.read_all()]


class WriteThenFailEventLog(InMemoryEventLog):
    """In-memory log whose append stores the event and then raises `error`."""

    def __init__(self):
        super().__init__()
        self.error = None

    async def append(self, event):
        sequence = await super().append(event)
        if self.error is not None:
            raise self.error
        return sequence
