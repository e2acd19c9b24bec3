"""
Shared fixtures: an app wired to in-memory stores and the seed catalog.
"""

import pytest
from fastapi.testclient import TestClient

from tripdesk.config import Settings
from tripdesk.interfaces import InMemoryListingRepository, MemoryStore
from tripdesk.main import create_app


class FakeClock:
    """Manually advanced clock for TTL and window tests"""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def test_settings():
    settings = Settings()
    settings.STORE_BACKEND = "memory"
    settings.LISTING_BACKEND = "memory"
    settings.RATE_LIMIT_MAX_REQUESTS = 1000
    settings.RATE_LIMIT_WINDOW_SECONDS = 60
    return settings


@pytest.fixture
def repository():
    return InMemoryListingRepository()


@pytest.fixture
def kv_store():
    return MemoryStore()


@pytest.fixture
def client(test_settings, repository, kv_store):
    app = create_app(settings=test_settings, listing_repository=repository, kv_store=kv_store)
    with TestClient(app) as c:
        yield c
