"""
Pytest fixtures for the noise report service. Reports live in an in-memory
mongomock collection; outbound HTTP clients are replaced with mocks.
"""

from unittest.mock import MagicMock

import mongomock
import pytest

from config import Settings
from store import ReportStore, now_ms

DAY_MS = 24 * 60 * 60 * 1000


class FakeClock:
    """Insert timestamps under test control (epoch ms)."""

    def __init__(self, start=None):
        self.now = now_ms() if start is None else start

    def __call__(self):
        return self.now

    def set_days_ago(self, days, reference=None):
        reference = now_ms() if reference is None else reference
        self.now = reference - int(days * DAY_MS)


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        EXEMPT_IDENTITIES="qa-tester",
        JWT_SECRET="test-secret",
        IDP_PUBLIC_KEY="idp-secret",
        IDP_ALGORITHM="HS256",
        ROAD_NAME_API_KEY="road-key",
        NAVER_MAP_CLIENT_ID="map-id",
        NAVER_MAP_CLIENT_SECRET="map-secret",
    )


@pytest.fixture
def collection():
    return mongomock.MongoClient().noise_report.reports


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(collection, clock):
    return ReportStore(collection, clock=clock)


@pytest.fixture
def geocoder():
    mock = MagicMock()
    mock.geocode_or_none.return_value = None
    return mock


@pytest.fixture
def resolver():
    return MagicMock()


@pytest.fixture
def client(store, settings, geocoder, resolver):
    """FastAPI TestClient wired to the in-memory store and mocked upstreams."""
    from fastapi.testclient import TestClient

    from config import get_settings
    from main import app, get_geocoder, get_resolver, get_store

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_geocoder] = lambda: geocoder
    app.dependency_overrides[get_resolver] = lambda: resolver
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(settings):
    from auth import create_session_token

    def _headers(identity):
        return {"Authorization": f"Bearer {create_session_token(identity, settings)}"}

    return _headers
