"""
Query Handler

Read side of the shortener. Answers from the projected state only; it never
reads the event log and never appends events.

Queries take no lock. Folding an event never awaits, so on the event loop a
reader sees the state either before or after an event, never halfway.
"""

from app.core.exceptions import SlugNotFoundError
from app.core.models import ShortLink, Stats
from app.services.projection import ProjectionState


class QueryHandler:
    """Read-only lookups against the projection."""

    def __init__(self, state: ProjectionState):
        self.state = state

    def get_stats(self, slug: str) -> Stats:
        """
        Get the redirect statistics of a short link.

        Raises:
            SlugNotFoundError: If the slug is unknown
        """
        stats = self.state.stats.get(slug)
        if stats is None:
            raise SlugNotFoundError(slug)
        return stats

    def get_link(self, slug: str) -> ShortLink:
        """Look up a short link without counting a redirect."""
        link = self.state.links.get(slug)
        if link is None:
            raise SlugNotFoundError(slug)
        return link
