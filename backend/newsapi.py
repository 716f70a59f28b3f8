"""Helpers for querying NewsAPI on behalf of the front end.

Two query modes exist: top headlines (country scoped, optionally filtered by
category) and a free-text search across every indexed article. Both go
through :func:`fetch_news`, which performs exactly one GET with the server's
API key attached and returns the upstream JSON object untouched once it has
been checked against the :class:`~models.NewsResult` shape.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from config import Settings
from models import NewsResult

# ---------------------------------------------------------------------------
# Constants & logging
# ---------------------------------------------------------------------------

COUNTRY = "us"
HEADLINES_ENDPOINT = "/top-headlines"
SEARCH_ENDPOINT = "/everything"

logger = logging.getLogger("backend.newsapi")


class NewsAPIError(Exception):
    """Raised when NewsAPI cannot be reached or returns an unusable reply."""


# ---------------------------------------------------------------------------
# Query construction
# ---------------------------------------------------------------------------


def headlines_query(category: Optional[str] = None) -> Dict[str, str]:
    """Return the query parameters for a top-headlines request."""

    params = {"country": COUNTRY}
    if category:
        params["category"] = category
    return params


def search_query(query: str) -> Dict[str, str]:
    """Return the query parameters for a search over all articles."""

    if not query:
        raise ValueError("search query must not be empty")
    return {"q": query}


def _redact(url: httpx.URL) -> str:
    # Drop the parameter itself; its encoded form varies with the key.
    masked = url.copy_remove_param("apiKey")
    separator = "&" if masked.query else "?"
    return f"{masked}{separator}apiKey=[REDACTED]"


# ---------------------------------------------------------------------------
# Upstream call
# ---------------------------------------------------------------------------


async def fetch_news(
    client: httpx.AsyncClient,
    settings: Settings,
    endpoint: str,
    params: Dict[str, str],
) -> Dict[str, Any]:
    """GET ``endpoint`` from NewsAPI and return the decoded JSON object.

    Raises :class:`NewsAPIError` on transport failures, non-200 replies and
    bodies that do not look like a NewsAPI result. No retry is attempted.
    """

    url = f"{settings.news_api_base_url}{endpoint}"
    request = client.build_request(
        "GET", url, params={**params, "apiKey": settings.news_api_key}
    )
    logger.info("Making request to: %s", _redact(request.url))

    try:
        resp = await client.send(request)
    except httpx.HTTPError as exc:
        raise NewsAPIError(f"failed to fetch news: {type(exc).__name__}") from exc

    logger.info("NewsAPI response status: %d", resp.status_code)
    if resp.status_code != 200:
        logger.warning("NewsAPI error - status: %d", resp.status_code)
        raise NewsAPIError(f"NewsAPI returned status {resp.status_code}")

    try:
        data = resp.json()
        result = NewsResult.model_validate(data)
    except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as exc:
        raise NewsAPIError("failed to parse JSON response") from exc

    logger.info("Successfully parsed %d articles", len(result.articles or []))
    return data


__all__ = [
    "HEADLINES_ENDPOINT",
    "SEARCH_ENDPOINT",
    "NewsAPIError",
    "fetch_news",
    "headlines_query",
    "search_query",
]
