import asyncio
import random

import httpx
import pytest
from fastapi.testclient import TestClient

from randomtube.config import Settings
from randomtube.context import ServiceContext
from randomtube.main import app, get_context
from randomtube.services.store import MemoryKVStore

from helpers import DAY_MS, NOW


class FakeYouTube:
    """Stands in for the search API: answers per channel and records every request."""

    def __init__(self):
        self.responses = {}
        self.requests = []

    def reply(self, channel_id, items, status=200):
        self.responses[channel_id] = (status, {"items": items})

    def fail(self, channel_id, status=500):
        self.responses[channel_id] = (status, {"error": {"code": status}})

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        channel_id = request.url.params.get("channelId")
        if channel_id not in self.responses:
            return httpx.Response(404, json={"error": "unexpected channel"})
        status, body = self.responses[channel_id]
        return httpx.Response(status, json=body)

    def calls_for(self, channel_id):
        return [r for r in self.requests if r.url.params.get("channelId") == channel_id]


@pytest.fixture
def settings(tmp_path):
    s = Settings()
    # Pin everything the tests depend on so a local .env cannot leak in
    s.YOUTUBE_API_KEY = "TEST_API_KEY"
    s.YOUTUBE_SEARCH_URL = "https://www.googleapis.com/youtube/v3/search"
    s.STORE_BACKEND = "memory"
    s.STORE_PATH = str(tmp_path / "kv_store.json")
    s.MAX_RESULTS = 20
    s.CACHE_DURATION_MS = DAY_MS
    return s


@pytest.fixture
def store():
    return MemoryKVStore()


@pytest.fixture
def youtube():
    return FakeYouTube()


@pytest.fixture
def ctx(settings, store, youtube):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(youtube.handler))
    yield ServiceContext(
        settings=settings,
        store=store,
        client=http_client,
        clock=lambda: NOW,
        rng=random.Random(1234),
    )
    asyncio.run(http_client.aclose())


@pytest.fixture
def client(ctx):
    app.dependency_overrides[get_context] = lambda: ctx
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
