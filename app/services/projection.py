"""
State Projection

Folds the event log into read-optimized state: a link table and a stats
table, both keyed by slug.

- fold(state, event): pure, returns a new state
- replay(events): fold from the empty state
- replay_log(event_log): async replay straight from an EventLog
- apply_event(state, event): in-place fold used by the live service

Every precondition is checked before either table is touched, so an event
that is rejected leaves the state exactly as it was. A rejected event means
the log is inconsistent, which is fatal (ProjectionConsistencyError).
"""

import logging
from typing import Dict, Iterable

from pydantic import BaseModel, Field

from app.core.exceptions import ProjectionConsistencyError
from app.core.models import Event, LinkCreated, LinkRedirected, ShortLink, Stats
from app.services.event_log import EventLog

logger = logging.getLogger(__name__)


class ProjectionState(BaseModel):
    """Current link and stats tables, plus how many events built them."""

    links: Dict[str, ShortLink] = Field(default_factory=dict)
    stats: Dict[str, Stats] = Field(default_factory=dict)
    event_count: int = 0

    def copy_tables(self) -> "ProjectionState":
        return ProjectionState(
            links=dict(self.links),
            stats=dict(self.stats),
            event_count=self.event_count,
        )

    def replace_with(self, other: "ProjectionState") -> None:
        """Take over `other`'s tables, keeping this object's identity for its holders."""
        self.links = other.links
        self.stats = other.stats
        self.event_count = other.event_count


def apply_event(state: ProjectionState, event: Event) -> None:
    """
    Fold one event into `state` in place.

    Raises:
        ProjectionConsistencyError: If the event contradicts the state
    """
    if isinstance(event, LinkCreated):
        if event.slug in state.links or event.slug in state.stats:
            raise ProjectionConsistencyError(
                f"duplicate LinkCreated for slug '{event.slug}'"
            )
        link = ShortLink(slug=event.slug, url=event.url)
        state.links[event.slug] = link
        state.stats[event.slug] = Stats(link=link, redirects=0)

    elif isinstance(event, LinkRedirected):
        current = state.stats.get(event.slug)
        if current is None:
            raise ProjectionConsistencyError(
                f"LinkRedirected for unknown slug '{event.slug}'"
            )
        state.stats[event.slug] = current.incremented()

    else:
        raise ProjectionConsistencyError(f"unknown event type: {type(event).__name__}")

    state.event_count += 1


def fold(state: ProjectionState, event: Event) -> ProjectionState:
    """Return the state after `event`; `state` itself is left untouched."""
    new_state = state.copy_tables()
    apply_event(new_state, event)
    return new_state


def replay(events: Iterable[Event]) -> ProjectionState:
    """Rebuild state by folding `events` in order from the empty state."""
    state = ProjectionState()
    for event in events:
        apply_event(state, event)
    return state


async def replay_log(event_log: EventLog) -> ProjectionState:
    """
    Rebuild state from every event in `event_log`.

    Args:
        event_log: Log to replay from its first event

    Returns:
        The projected state

    Raises:
        ProjectionConsistencyError: If the log is inconsistent
    """
    state = ProjectionState()
    async for event in event_log.read_all():
        try:
            apply_event(state, event)
        except ProjectionConsistencyError:
            logger.error(f"Replay aborted at event #{state.event_count + 1}: {event!r}")
            raise

    logger.info(
        f"Replayed {state.event_count} events: "
        f"{len(state.links)} links restored"
    )
    return state
