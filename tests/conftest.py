"""
Shared fixtures. Upstream HTTP is replaced with httpx.MockTransport; every
request the app makes is recorded on ``upstream.requests``.
"""
import httpx
import pytest
from fastapi.testclient import TestClient

from app import create_app
from config import Settings


NEWS_KEY = "news-secret-123"
OPENAI_KEY = "openai-secret-456"

NEWS_PAYLOAD = {
    "status": "ok",
    "totalResults": 1,
    "articles": [
        {
            "source": {"id": "bbc-news", "name": "BBC News"},
            "author": "Winston Smith",
            "title": "Chocolate ration raised",
            "description": "Rations go up to twenty grammes.",
            "url": "https://example.com/chocolate",
            "urlToImage": None,
            "publishedAt": "1984-04-04T12:00:00Z",
            "content": "The ration was raised...",
        }
    ],
}


class FakeUpstream:
    """Records requests and answers them with a configurable response."""

    def __init__(self):
        self.requests = []
        self.response = httpx.Response(200, json=NEWS_PAYLOAD)
        self.error = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def settings(tmp_path):
    return Settings(
        news_api_key=NEWS_KEY,
        openai_api_key=OPENAI_KEY,
        static_dir=str(tmp_path / "no-static"),
        log_dir=str(tmp_path / "logs"),
    )


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def client(settings, upstream):
    app = create_app(settings, transport=httpx.MockTransport(upstream))
    with TestClient(app) as c:
        yield c
