"""
FastAPI Application Entry Point

This module initializes the FastAPI application and configures:
- API routes
- Middleware (logging, CORS)
- Rate limiting
- Startup/shutdown: the shortener is rebuilt by replaying its event log

Run with:
    uvicorn app.main:app
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.api import endpoints
from app.core.lifecycle import initialize_service, shutdown_service
from app.core.rate_limit import limiter
from app.core.setting import Settings, settings as default_settings
from app.middleware.logging import add_logging_middleware

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Configuration to use; the environment-derived settings by default

    Returns:
        Configured FastAPI app. The shortener itself is created on startup.
    """
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        service, engine = await initialize_service(
            settings, reserved_slugs=endpoints.reserved_slugs(app)
        )
        app.state.shortener = service
        try:
            yield
        finally:
            await shutdown_service(engine)

    app = FastAPI(
        title="URL Shortener Service",
        description="Event-sourced URL shortening service with separate command and query paths",
        version="2.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # the limiter is shared by every app built in this process
    if settings.RATE_LIMIT_ENABLED != limiter.enabled:
        logger.warning(
            f"RATE_LIMIT_ENABLED={settings.RATE_LIMIT_ENABLED} ignored: "
            f"rate limiting is {'on' if limiter.enabled else 'off'} for this process"
        )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    add_logging_middleware(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health endpoints defined before router to match before catch-all route
    @app.get("/", tags=["Health"])
    async def root():
        """Root endpoint for health checks."""
        return {
            "message": "URL Shortener Service",
            "version": "2.0.0",
            "docs": "/docs"
        }

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint for monitoring."""
        return {
            "status": "healthy",
            "event_log": settings.EVENT_LOG_BACKEND.value,
            "events": app.state.shortener.state.event_count,
        }

    app.include_router(endpoints.router, tags=["URL Shortener"])

    return app


logging.basicConfig(
    level=default_settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

app = create_app()
