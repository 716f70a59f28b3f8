"""
Tests for ministry: completion payload and transform_content error mapping.
"""
import json

import httpx
import pytest

from config import Settings
from ministry import (
    MAX_TOKENS,
    SYSTEM_PROMPT,
    TEMPERATURE,
    TransformError,
    build_completion_request,
    transform_content,
)

from conftest import OPENAI_KEY, FakeUpstream


def completion(*texts):
    return {
        "id": "chatcmpl-1",
        "choices": [
            {"index": i, "message": {"role": "assistant", "content": t}}
            for i, t in enumerate(texts)
        ],
    }


@pytest.fixture
def settings():
    return Settings(news_api_key="unused", openai_api_key=OPENAI_KEY)


@pytest.fixture
def upstream():
    fake = FakeUpstream()
    fake.response = httpx.Response(200, json=completion("X"))
    return fake


@pytest.fixture
async def http(upstream):
    async with httpx.AsyncClient(transport=httpx.MockTransport(upstream)) as c:
        yield c


def test_build_completion_request_embeds_title_and_description():
    req = build_completion_request("T", "D", "gpt-3.5-turbo")

    assert req.model == "gpt-3.5-turbo"
    assert req.max_tokens == MAX_TOKENS == 200
    assert req.temperature == TEMPERATURE == 0.9
    system, user = req.messages
    assert system.role == "system"
    assert system.content == SYSTEM_PROMPT
    assert "Ministry of Truth" in SYSTEM_PROMPT
    assert user.role == "user"
    assert user.content == "Transform this news: Title: T, Description: D"


def test_build_completion_request_keeps_quotes_verbatim():
    req = build_completion_request('say "war"', "peace\nis", "m")
    user = req.messages[1].content

    assert 'say "war"' in user
    assert "peace\nis" in user


async def test_transform_content_returns_first_choice(http, upstream, settings):
    upstream.response = httpx.Response(200, json=completion("X", "Y"))

    assert await transform_content(http, settings, "T", "D") == "X"


async def test_transform_content_request_shape(http, upstream, settings):
    await transform_content(http, settings, "T", "D")

    (request,) = upstream.requests
    assert request.method == "POST"
    assert str(request.url) == "https://api.openai.com/v1/chat/completions"
    assert request.headers["Authorization"] == f"Bearer {OPENAI_KEY}"
    assert request.headers["Content-Type"] == "application/json"
    body = json.loads(request.content)
    assert body["model"] == "gpt-3.5-turbo"
    assert body["max_tokens"] == 200
    assert body["temperature"] == 0.9
    assert [m["role"] for m in body["messages"]] == ["system", "user"]
    assert "T" in body["messages"][1]["content"]
    assert "D" in body["messages"][1]["content"]


async def test_transform_content_non_200(http, upstream, settings):
    upstream.response = httpx.Response(429, json={"error": {"message": "slow down"}})

    with pytest.raises(TransformError, match="status 429"):
        await transform_content(http, settings, "T", "D")


async def test_transform_content_transport_error(http, upstream, settings):
    upstream.error = httpx.ReadTimeout("timed out")

    with pytest.raises(TransformError, match="ReadTimeout"):
        await transform_content(http, settings, "T", "D")


async def test_transform_content_bad_body(http, upstream, settings):
    upstream.response = httpx.Response(200, text="definitely not json")

    with pytest.raises(TransformError, match="parsing"):
        await transform_content(http, settings, "T", "D")


async def test_transform_content_no_choices(http, upstream, settings):
    upstream.response = httpx.Response(200, json={"choices": []})

    with pytest.raises(TransformError, match="no response"):
        await transform_content(http, settings, "T", "D")


async def test_transform_content_null_content_is_empty_text(http, upstream, settings):
    upstream.response = httpx.Response(
        200, json={"choices": [{"message": {"role": "assistant", "content": None}}]}
    )

    assert await transform_content(http, settings, "T", "D") == ""


async def test_transform_content_missing_role(http, upstream, settings):
    upstream.response = httpx.Response(
        200, json={"choices": [{"message": {"content": "X"}}]}
    )

    assert await transform_content(http, settings, "T", "D") == "X"
