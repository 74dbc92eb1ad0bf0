"""
Tests for the shortener aggregate: command and query handling, uniqueness
under sequential and concurrent creation, and rebuilding from the log.
"""

import asyncio

import pytest

from app.core.exceptions import (
    EventLogError,
    InvalidUrlError,
    SlugAllocationExhaustedError,
    SlugAlreadyInUseError,
    SlugNotFoundError,
)
from app.core.models import LinkCreated, LinkRedirected, ShortLink, Stats
from app.services.shortener import UrlShortenerService
from app.services.slug_allocator import SlugAllocator

from helpers import (
    FailingEventLog,
    WriteThenFailEventLog,
    YieldingEventLog,
    collect,
    sequence_generator,
)


@pytest.mark.asyncio
async def test_create_redirect_stats_scenario(event_log):
    service = await UrlShortenerService.from_event_log(event_log)

    link = await service.handle_create_short_link("https://example.com")
    assert link.url == "https://example.com"
    assert len(link.slug) == 7

    assert await service.handle_redirect(link.slug) == link
    assert await service.handle_redirect(link.slug) == link

    assert service.get_stats(link.slug) == Stats(
        link=ShortLink(slug=link.slug, url="https://example.com"),
        redirects=2,
    )
    assert await collect(event_log) == [
        LinkCreated(slug=link.slug, url="https://example.com"),
        LinkRedirected(slug=link.slug),
        LinkRedirected(slug=link.slug),
    ]


@pytest.mark.asyncio
async def test_counter_matches_redirects(event_log):
    service = await UrlShortenerService.from_event_log(event_log)
    await service.handle_create_short_link("https://example.com", "count")

    for _ in range(25):
        await service.handle_redirect("count")

    assert service.get_stats("count").redirects == 25


@pytest.mark.asyncio
async def test_new_link_starts_at_zero(event_log):
    service = await UrlShortenerService.from_event_log(event_log)
    link = await service.handle_create_short_link("https://example.com")
    assert service.get_stats(link.slug).redirects == 0


@pytest.mark.asyncio
async def test_unknown_slug_appends_nothing(event_log):
    service = await UrlShortenerService.from_event_log(event_log)

    with pytest.raises(SlugNotFoundError):
        await service.handle_redirect("nonexistent")
    with pytest.raises(SlugNotFoundError):
        service.get_stats("nonexistent")
    with pytest.raises(SlugNotFoundError):
        service.get_link("nonexistent")

    assert len(event_log) == 0


@pytest.mark.asyncio
async def test_explicit_slug_collision_keeps_first_link(event_log):
    service = await UrlShortenerService.from_event_log(event_log)
    first = await service.handle_create_short_link("https://first.example.com", "abc")
    await service.handle_redirect("abc")

    with pytest.raises(SlugAlreadyInUseError):
        await service.handle_create_short_link("https://second.example.com", "abc")

    assert service.get_link("abc") == first
    assert service.get_stats("abc") == Stats(link=first, redirects=1)
    assert len(event_log) == 2


@pytest.mark.asyncio
async def test_invalid_url_rejected(event_log):
    service = await UrlShortenerService.from_event_log(event_log)

    for url in ["", "not a url", "ftp://example.com", "javascript:alert(1)"]:
        with pytest.raises(InvalidUrlError):
            await service.handle_create_short_link(url)

    assert len(event_log) == 0
    assert service.state.links == {}


@pytest.mark.asyncio
async def test_same_url_gets_distinct_slugs(event_log):
    service = await UrlShortenerService.from_event_log(event_log)
    first = await service.handle_create_short_link("https://example.com")
    second = await service.handle_create_short_link("https://example.com")
    assert first.slug != second.slug


@pytest.mark.asyncio
async def test_sequential_creations_are_unique(event_log):
    service = await UrlShortenerService.from_event_log(event_log)
    links = [
        await service.handle_create_short_link(f"https://example.com/{i}")
        for i in range(200)
    ]
    assert len({link.slug for link in links}) == 200


@pytest.mark.asyncio
async def test_generated_slug_skips_taken_ones(event_log):
    allocator = SlugAllocator(generator=sequence_generator(["taken", "fresh"]))
    service = await UrlShortenerService.from_event_log(event_log, allocator=allocator)
    await service.handle_create_short_link("https://a.example.com", "taken")

    link = await service.handle_create_short_link("https://b.example.com")

    assert link.slug == "fresh"
    assert service.get_link("taken").url == "https://a.example.com"


@pytest.mark.asyncio
async def test_allocation_exhausted_appends_nothing(event_log):
    allocator = SlugAllocator(max_attempts=2, generator=lambda length: "taken")
    service = await UrlShortenerService.from_event_log(event_log, allocator=allocator)
    await service.handle_create_short_link("https://a.example.com", "taken")

    with pytest.raises(SlugAllocationExhaustedError):
        await service.handle_create_short_link("https://b.example.com")

    assert len(event_log) == 1


@pytest.mark.asyncio
async def test_concurrent_requests_for_same_slug():
    service = await UrlShortenerService.from_event_log(YieldingEventLog())

    results = await asyncio.gather(
        *[
            service.handle_create_short_link(f"https://example.com/{i}", "race")
            for i in range(20)
        ],
        return_exceptions=True,
    )

    created = [r for r in results if isinstance(r, ShortLink)]
    rejected = [r for r in results if isinstance(r, SlugAlreadyInUseError)]
    assert len(created) == 1
    assert len(rejected) == 19
    assert service.get_link("race") == created[0]


@pytest.mark.asyncio
async def test_concurrent_generated_slugs_never_collide():
    # The generator keeps offering "dup"; only one creation may get it
    candidates = []
    for i in range(10):
        candidates += ["dup", f"slug{i}"]
    allocator = SlugAllocator(generator=sequence_generator(candidates))
    service = await UrlShortenerService.from_event_log(YieldingEventLog(), allocator=allocator)

    links = await asyncio.gather(
        *[service.handle_create_short_link(f"https://example.com/{i}") for i in range(10)]
    )

    slugs = [link.slug for link in links]
    assert len(set(slugs)) == 10
    assert "dup" in slugs


@pytest.mark.asyncio
async def test_concurrent_redirects_lose_no_updates():
    service = await UrlShortenerService.from_event_log(YieldingEventLog())
    await service.handle_create_short_link("https://example.com", "hot")

    await asyncio.gather(*[service.handle_redirect("hot") for _ in range(50)])

    assert service.get_stats("hot").redirects == 50


@pytest.mark.asyncio
async def test_failed_append_leaves_state_untouched():
    event_log = FailingEventLog()
    service = await UrlShortenerService.from_event_log(event_log)
    await service.handle_create_short_link("https://example.com", "abc")
    before = service.state.model_copy(deep=True)

    event_log.fail = True
    with pytest.raises(EventLogError):
        await service.handle_redirect("abc")
    with pytest.raises(EventLogError):
        await service.handle_create_short_link("https://example.com", "def")

    assert service.state == before


@pytest.mark.asyncio
async def test_append_failing_after_write_resyncs_projection():
    event_log = WriteThenFailEventLog()
    service = await UrlShortenerService.from_event_log(event_log)

    event_log.error = EventLogError("connection lost after commit")
    with pytest.raises(EventLogError):
        await service.handle_create_short_link("https://example.com", "abc")

    # the event reached the log, so the projection must show it too
    assert service.get_link("abc") == ShortLink(slug="abc", url="https://example.com")

    event_log.error = None
    with pytest.raises(SlugAlreadyInUseError):
        await service.handle_create_short_link("https://other.example.com", "abc")

    restarted = await UrlShortenerService.from_event_log(event_log)
    assert restarted.state == service.state


@pytest.mark.asyncio
async def test_redirect_failing_after_write_is_counted():
    event_log = WriteThenFailEventLog()
    service = await UrlShortenerService.from_event_log(event_log)
    await service.handle_create_short_link("https://example.com", "abc")

    event_log.error = EventLogError("timeout")
    with pytest.raises(EventLogError):
        await service.handle_redirect("abc")

    assert service.get_stats("abc").redirects == 1
    assert service.state.event_count == len(event_log)


@pytest.mark.asyncio
async def test_cancelled_append_resyncs_before_next_command():
    event_log = WriteThenFailEventLog()
    service = await UrlShortenerService.from_event_log(event_log)

    event_log.error = asyncio.CancelledError()
    with pytest.raises(asyncio.CancelledError):
        await service.handle_create_short_link("https://example.com", "abc")

    event_log.error = None
    with pytest.raises(SlugAlreadyInUseError):
        await service.handle_create_short_link("https://other.example.com", "abc")
    assert service.get_link("abc").url == "https://example.com"
    assert len(event_log) == 1


@pytest.mark.asyncio
async def test_reserved_slugs_are_never_allocated(event_log):
    allocator = SlugAllocator(slug_length=6, generator=sequence_generator(["events", "abc123"]))
    service = await UrlShortenerService.from_event_log(
        event_log, allocator=allocator, reserved_slugs={"events", "health"}
    )

    with pytest.raises(SlugAlreadyInUseError):
        await service.handle_create_short_link("https://example.com", "health")

    link = await service.handle_create_short_link("https://example.com")
    assert link.slug == "abc123"
    assert await collect(event_log) == [LinkCreated(slug="abc123", url="https://example.com")]


@pytest.mark.asyncio
async def test_restart_rebuilds_identical_state(event_log):
    service = await UrlShortenerService.from_event_log(event_log)
    a = await service.handle_create_short_link("https://a.example.com")
    b = await service.handle_create_short_link("https://b.example.com", "bee")
    for _ in range(3):
        await service.handle_redirect(a.slug)
    await service.handle_redirect("bee")

    restarted = await UrlShortenerService.from_event_log(event_log)

    assert restarted.state == service.state
    assert restarted.get_stats(a.slug).redirects == 3
    assert restarted.get_stats("bee") == Stats(link=b, redirects=1)
    with pytest.raises(SlugAlreadyInUseError):
        await restarted.handle_create_short_link("https://c.example.com", "bee")


@pytest.mark.asyncio
async def test_read_all_exposes_log(event_log):
    service = await UrlShortenerService.from_event_log(event_log)
    await service.handle_create_short_link("https://example.com", "abc")
    await service.handle_redirect("abc")

    events = [event async for event in service.read_all()]
    assert events == [
        LinkCreated(slug="abc", url="https://example.com"),
        LinkRedirected(slug="abc"),
    ]
