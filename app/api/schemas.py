"""
API Request and Response Schemas

This module defines all Pydantic models for API requests and responses.
Domain models (ShortLink, Stats, events) stay in app.core.models; these
schemas are the external representation of them.
"""

from typing import Optional

from pydantic import BaseModel, Field

from app.core.models import Event
from app.core.validators import MAX_SLUG_LENGTH, MAX_URL_LENGTH, SLUG_PATTERN


class ShortenRequest(BaseModel):
    """Request model for URL shortening endpoint."""
    url: str = Field(..., max_length=MAX_URL_LENGTH, description="The long URL to shorten")
    slug: Optional[str] = Field(
        default=None,
        min_length=1,
        max_length=MAX_SLUG_LENGTH,
        pattern=SLUG_PATTERN,
        description="Custom slug; generated when omitted"
    )


class ShortenResponse(BaseModel):
    """Response model for URL shortening endpoint."""
    slug: str = Field(..., description="The slug of the short link")
    short_url: str = Field(..., description="The complete short URL")
    url: str = Field(..., description="The original long URL")


class StatsResponse(BaseModel):
    """Response model for statistics endpoint."""
    slug: str
    url: str
    short_url: str
    redirects: int


class EventEntry(BaseModel):
    """One event of the log, with its 1-based position in replay order."""
    position: int
    event: Event


class EventsResponse(BaseModel):
    """Response model for the event log endpoint."""
    count: int
    events: list[EventEntry]
