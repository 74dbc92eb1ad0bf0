"""
Event Log

The append-only, totally ordered sequence of domain events. It is the only
source of truth: everything else is rebuilt from it.

EventLog is the interface; InMemoryEventLog keeps events for the lifetime
of the process. The durable implementation (SQLEventLog) lives in
app/db/event_store.py.
"""

from typing import AsyncIterator, List, Protocol

from app.core.models import Event


class EventLog(Protocol):
    """
    Append-only event log.

    Implementations must satisfy:
    - append() is the only mutation; stored events never change
    - sequence numbers start at 1 and strictly increase in append order
    - read_all() yields every event in append order, and may be called any
      number of times, each call starting from the first event
    """

    async def append(self, event: Event) -> int:
        """Persist an event and return its sequence number."""
        ...

    def read_all(self) -> AsyncIterator[Event]:
        """Iterate over all events in append order."""
        ...


class InMemoryEventLog:
    """List-backed event log. Nothing survives the process."""

    def __init__(self) -> None:
        self._events: List[Event] = []

    async def append(self, event: Event) -> int:
        self._events.append(event)
        return len(self._events)

    async def read_all(self) -> AsyncIterator[Event]:
        # Snapshot at iteration start: events appended meanwhile are not seen
        for event in list(self._events):
            yield event

    def __len__(self) -> int:
        return len(self._events)
