import asyncio
import os

# Must be set before config is imported anywhere.
os.environ.setdefault('CACHE_URL', 'memory://')

import pytest
from fastapi.testclient import TestClient

from models.schemas import CoverResult
from services.cache_service import MemoryCacheStore
from services.cover_service import CoverFetcher
from services.orchestrator_service import CoverOrchestrator
from services.placeholder_service import PlaceholderError

COVER_TEMPLATE = 'https://covers.example/b/isbn/{identifier}-L.jpg?default=false'
DAY = 24 * 60 * 60


class RecordingCacheStore(MemoryCacheStore):
    """Memory store that remembers every call made against it."""

    def __init__(self):
        super().__init__()
        self.gets = []
        self.puts = []
        self.deletes = []

    async def get(self, key):
        self.gets.append(key)
        return await super().get(key)

    async def put(self, key, entry, ttl_seconds):
        self.puts.append((key, entry, ttl_seconds))
        await super().put(key, entry, ttl_seconds)

    async def delete(self, key):
        self.deletes.append(key)
        await super().delete(key)


class FakeResolver:
    def __init__(self):
        self.identifiers = []
        self.calls = []

    def resolve(self, query):
        self.calls.append(query)
        return list(self.identifiers)


class FakeFetcher(CoverFetcher):
    """Real fetch_first iteration over an in-memory set of loadable URLs."""

    def __init__(self):
        super().__init__(COVER_TEMPLATE)
        self.images = {}
        self.content_type = 'image/jpeg'
        self.requested = []

    def fetch_url(self, url):
        self.requested.append(url)
        if url in self.images:
            return CoverResult(found=True, url=url, content=self.images[url], content_type=self.content_type)
        return CoverResult.not_found()


class FakePlaceholder:
    def __init__(self):
        self.content = b'<svg>placeholder</svg>'
        self.error = None
        self.calls = []

    def generate(self, title, author):
        self.calls.append((title, author))
        if self.error:
            raise PlaceholderError(self.error)
        return self.content


@pytest.fixture
def run():
    """Drive a coroutine to completion on a fresh event loop."""
    return asyncio.run


@pytest.fixture
def cache():
    return RecordingCacheStore()


@pytest.fixture
def resolver():
    return FakeResolver()


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def placeholder():
    return FakePlaceholder()


@pytest.fixture
def orchestrator(cache, resolver, fetcher, placeholder):
    return CoverOrchestrator(
        cache=cache,
        resolver=resolver,
        fetcher=fetcher,
        placeholder=placeholder,
        candidate_limit=10,
        resolved_ttl=30 * DAY,
        placeholder_ttl=7 * DAY,
    )


@pytest.fixture
def client(orchestrator, cache):
    """A test client whose routes use the fake collaborators."""
    from main import app
    from routers.covers import get_cache, get_orchestrator

    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_cache] = lambda: cache
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
