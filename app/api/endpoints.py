"""
FastAPI Endpoints for URL Shortener Service

This module maps the shortener's command and query surface onto HTTP.
Endpoints only handle:
- Request validation (Pydantic models)
- Rate limiting
- Mapping ShortenerError subclasses to HTTP status codes
- Delegating to the UrlShortenerService held in app.state

Status codes:
- InvalidUrlError -> 400
- SlugNotFoundError -> 404
- SlugAlreadyInUseError -> 409
- SlugAllocationExhaustedError -> 503
- EventLogError -> 500
"""

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import RedirectResponse

from app.api.schemas import (
    EventEntry,
    EventsResponse,
    ShortenRequest,
    ShortenResponse,
    StatsResponse,
)
from app.core.exceptions import (
    EventLogError,
    InvalidUrlError,
    SlugAllocationExhaustedError,
    SlugAlreadyInUseError,
    SlugNotFoundError,
)
from app.core.rate_limit import RATE_LIMITS, limiter
from app.core.validators import sanitize_slug
from app.services.shortener import UrlShortenerService


router = APIRouter()


def get_shortener(request: Request) -> UrlShortenerService:
    """Dependency returning the service built at startup."""
    return request.app.state.shortener


def reserved_slugs(app: FastAPI) -> frozenset:
    """
    First path segments of the app's fixed routes.

    Those routes match before GET /{slug}, so a link under one of these
    names could never be followed.
    """
    segments = set()
    for route in app.routes:
        first = getattr(route, "path", "").strip("/").split("/")[0]
        if first and "{" not in first:
            segments.add(first)
    return frozenset(segments)


def build_short_url(request: Request, slug: str) -> str:
    base_url = request.app.state.settings.BASE_URL.rstrip("/")
    return f"{base_url}/{slug}"


def not_found(slug: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Slug '{slug}' not found"
    )


@router.post(
    "/shorten",
    response_model=ShortenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a short URL",
    description="Takes a long URL and an optional custom slug and returns the short link"
)
@limiter.limit(RATE_LIMITS["shorten"])
async def create_short_url(
    request: Request,  # Required for rate limiting (slowapi expects parameter named 'request')
    body: ShortenRequest,
    shortener: UrlShortenerService = Depends(get_shortener)
) -> ShortenResponse:
    """
    Create a new short link.

    Raises:
        HTTPException 400: If the URL is invalid
        HTTPException 409: If the requested slug is taken or names a fixed route
        HTTPException 503: If no free slug could be generated
        HTTPException 500: If the event log failed
    """
    try:
        link = await shortener.handle_create_short_link(body.url, body.slug)
    except InvalidUrlError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except SlugAlreadyInUseError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except SlugAllocationExhaustedError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except EventLogError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    return ShortenResponse(
        slug=link.slug,
        short_url=build_short_url(request, link.slug),
        url=link.url
    )


@router.get(
    "/stats/{slug}",
    response_model=StatsResponse,
    summary="Get URL statistics",
    description="Returns the redirect count of a short link"
)
@limiter.limit(RATE_LIMITS["stats"])
async def get_url_stats(
    slug: str,
    request: Request,
    shortener: UrlShortenerService = Depends(get_shortener)
) -> StatsResponse:
    """
    Get statistics for a short link.

    Raises:
        HTTPException 404: If the slug is unknown or malformed
    """
    sanitized = sanitize_slug(slug)
    if not sanitized:
        raise not_found(slug)

    try:
        stats = shortener.get_stats(sanitized)
    except SlugNotFoundError:
        raise not_found(sanitized)

    return StatsResponse(
        slug=stats.link.slug,
        url=stats.link.url,
        short_url=build_short_url(request, stats.link.slug),
        redirects=stats.redirects
    )


@router.get(
    "/events",
    response_model=EventsResponse,
    summary="Read the event log",
    description="Returns every event in append order, for rebuild and debugging tools"
)
@limiter.limit(RATE_LIMITS["events"])
async def list_events(
    request: Request,
    shortener: UrlShortenerService = Depends(get_shortener)
) -> EventsResponse:
    try:
        entries = []
        position = 0
        async for event in shortener.read_all():
            position += 1
            entries.append(EventEntry(position=position, event=event))
    except EventLogError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    return EventsResponse(count=len(entries), events=entries)


@router.get(
    "/{slug}",
    status_code=status.HTTP_302_FOUND,
    summary="Redirect to original URL",
    description="Records a redirect and sends the client to the original URL"
)
@limiter.limit(RATE_LIMITS["redirect"])
async def redirect_to_url(
    slug: str,
    request: Request,
    shortener: UrlShortenerService = Depends(get_shortener)
) -> RedirectResponse:
    """
    Redirect to the original URL for a given slug.

    Raises:
        HTTPException 404: If the slug is unknown or malformed
        HTTPException 500: If the event log failed
    """
    sanitized = sanitize_slug(slug)
    if not sanitized:
        raise not_found(slug)

    try:
        link = await shortener.handle_redirect(sanitized)
    except SlugNotFoundError:
        raise not_found(sanitized)
    except EventLogError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    return RedirectResponse(url=link.url, status_code=status.HTTP_302_FOUND)
