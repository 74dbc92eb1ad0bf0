"""
Shared fixtures for the shortener tests.
"""

import os

# read by app.core.rate_limit at import time
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.core.setting import Settings  # noqa: E402
from app.main import create_app  # noqa: E402
from app.services.event_log import InMemoryEventLog  # noqa: E402


@pytest.fixture
def event_log():
    return InMemoryEventLog()


@pytest.fixture
def api_settings():
    return Settings(
        EVENT_LOG_BACKEND="memory",
        RATE_LIMIT_ENABLED=False,
        BASE_URL="http://sho.rt",
    )


@pytest.fixture
def client(api_settings):
    """TestClient with the lifespan running, so the shortener is replayed."""
    with TestClient(create_app(api_settings)) as test_client:
        yield test_client
