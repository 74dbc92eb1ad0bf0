"""
Domain Models

Value objects and events of the shortener core.

- ShortLink: immutable (slug, url) pair, created once by LinkCreated
- Stats: redirect counter of one ShortLink, derived by folding events
- LinkCreated / LinkRedirected: the only facts the event log records

All models are frozen. Stats changes by being replaced, never mutated,
so a value handed to a reader can't change under it.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class ShortLink(BaseModel):
    """Shortened URL: a unique slug pointing at a target URL."""
    model_config = ConfigDict(frozen=True)

    slug: str
    url: str


class Stats(BaseModel):
    """Statistics of a ShortLink."""
    model_config = ConfigDict(frozen=True)

    link: ShortLink
    redirects: int = Field(default=0, ge=0)

    def incremented(self) -> "Stats":
        return self.model_copy(update={"redirects": self.redirects + 1})


class LinkCreated(BaseModel):
    """A short link was created."""
    model_config = ConfigDict(frozen=True)

    type: Literal["link_created"] = "link_created"
    slug: str
    url: str


class LinkRedirected(BaseModel):
    """A short link was followed."""
    model_config = ConfigDict(frozen=True)

    type: Literal["link_redirected"] = "link_redirected"
    slug: str


Event = Annotated[Union[LinkCreated, LinkRedirected], Field(discriminator="type")]
