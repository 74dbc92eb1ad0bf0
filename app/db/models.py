"""
Database Models for the Event Log

This module defines the SQLModel schema of the durable event log:
- EventRecord: one row per appended domain event

Design Decisions:
- sequence is the autoincrement primary key: it is the append order and the
  replay order
- One flat table for both event types; url is NULL for redirects
- Index on slug for per-link inspection; slug is unbounded Text since
  the core accepts requested slugs of any length
- recorded_at is storage metadata only, the projection never reads it
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Integer, String, Text
from sqlmodel import Column, Field, SQLModel

from app.core.models import Event, LinkCreated, LinkRedirected


class EventRecord(SQLModel, table=True):
    """
    Append-only table of domain events.

    Fields:
    - sequence: Append position (1, 2, 3, ...)
    - event_type: Discriminator ('link_created' or 'link_redirected')
    - slug: Slug the event is about
    - url: Target URL (LinkCreated only)
    - recorded_at: When the row was written
    """
    __tablename__ = "link_events"

    sequence: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, primary_key=True, autoincrement=True)
    )
    event_type: str = Field(sa_column=Column(String(32), nullable=False))
    slug: str = Field(sa_column=Column(Text, nullable=False, index=True))
    url: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    recorded_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )

    @classmethod
    def from_event(cls, event: Event) -> "EventRecord":
        return cls(
            event_type=event.type,
            slug=event.slug,
            url=getattr(event, "url", None),
        )

    def to_event(self) -> Event:
        """
        Rebuild the domain event stored in this row.

        Raises:
            ValueError: If the row has an unknown event_type or lacks a url
        """
        if self.event_type == "link_created":
            if self.url is None:
                raise ValueError(f"link_created row #{self.sequence} has no url")
            return LinkCreated(slug=self.slug, url=self.url)
        if self.event_type == "link_redirected":
            return LinkRedirected(slug=self.slug)
        raise ValueError(f"Unknown event_type '{self.event_type}' in row #{self.sequence}")
