"""
Integration test configuration.

Each app instance talks to its own fakeredis client, but all clients built
from one ``redis_server`` share data. That lets a test close one app (which
drains background analytics tasks) and inspect the results through a fresh
one.
"""

import fakeredis
import pytest

from app import create_app
from config import AppSettings


@pytest.fixture(autouse=True)
def disable_dotenv_loading(monkeypatch):
    """Prevent pydantic-settings from loading .env files in all integration tests."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})


@pytest.fixture
def settings(monkeypatch):
    monkeypatch.setenv("APP_URL", "https://snap.link")
    monkeypatch.setenv("SAFE_BROWSING_API_KEY", "")
    monkeypatch.setenv("SENTRY_DSN", "")
    return AppSettings()


@pytest.fixture
def redis_server():
    return fakeredis.FakeServer()


@pytest.fixture
def make_app(settings, redis_server):
    def _make():
        client = fakeredis.FakeAsyncRedis(server=redis_server, decode_responses=True)
        return create_app(settings, redis_client=client)

    return _make
