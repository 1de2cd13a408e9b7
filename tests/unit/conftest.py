"""
Unit test configuration.

Patches dotenv so pydantic-settings never reads the project's real .env file
during unit tests. Tests control config exclusively through monkeypatch.setenv().

Storage is an in-memory fakeredis instance behind the real RedisKeyValueStore,
so repositories and services run their actual key layout and TTL calls.
"""

from unittest.mock import AsyncMock

import fakeredis
import pytest

from infrastructure.kv.redis_store import RedisKeyValueStore
from repositories.link_repository import LinkRepository
from repositories.reputation_repository import ReputationRepository
from repositories.state_repository import StateRepository
from repositories.stats_repository import StatsRepository
from repositories.workspace_repository import WorkspaceRepository
from schemas.models.safety import ReputationResult
from services.analytics_service import AnalyticsService
from services.link_service import LinkService
from services.safety_service import SafetyService


@pytest.fixture(autouse=True)
def disable_dotenv_loading(monkeypatch):
    """Prevent pydantic-settings from loading .env files in all unit tests."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})


@pytest.fixture
async def redis():
    client = fakeredis.FakeAsyncRedis(decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
def store(redis):
    return RedisKeyValueStore(redis)


@pytest.fixture
def link_repo(store):
    return LinkRepository(store)


@pytest.fixture
def stats_repo(store):
    return StatsRepository(store)


@pytest.fixture
def reputation_repo(store):
    return ReputationRepository(store)


@pytest.fixture
def state_repo(store):
    return StateRepository(store)


@pytest.fixture
def workspace_repo(store):
    return WorkspaceRepository(store)


@pytest.fixture
def link_service(link_repo):
    return LinkService(link_repo, blocked_domains=("snap.link",))


@pytest.fixture
def analytics_service(stats_repo, link_repo, workspace_repo):
    return AnalyticsService(stats_repo, link_repo, workspace_repo)


@pytest.fixture
def reputation_provider():
    """Reputation provider that reports every URL as clean."""
    provider = AsyncMock()
    provider.lookup.return_value = ReputationResult(safe=True)
    return provider


@pytest.fixture
def safety_service(reputation_repo, reputation_provider):
    return SafetyService(reputation_repo, reputation_provider)
