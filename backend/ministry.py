"""Rewrites news items as Ministry of Truth propaganda via OpenAI chat completions."""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from config import Settings
from models import ChatMessage, CompletionRequest, CompletionResponse

logger = logging.getLogger("backend.ministry")

SYSTEM_PROMPT = (
    "You are the Ministry of Truth from George Orwell's 1984. Transform news "
    "headlines and descriptions into dystopian propaganda using doublespeak, "
    "references to Big Brother, the Party, thoughtcrime, etc. Keep responses "
    "under 200 characters."
)
MAX_TOKENS = 200
TEMPERATURE = 0.9


class TransformError(Exception):
    """Raised when the completion API fails to produce a transformation."""


def build_completion_request(
    title: str, description: str, model: str
) -> CompletionRequest:
    """Return the chat-completion payload for one news item.

    Title and description are embedded verbatim; the JSON encoder is the
    only escaping applied.
    """
    return CompletionRequest(
        model=model,
        messages=[
            ChatMessage(role="system", content=SYSTEM_PROMPT),
            ChatMessage(
                role="user",
                content=f"Transform this news: Title: {title}, Description: {description}",
            ),
        ],
        max_tokens=MAX_TOKENS,
        temperature=TEMPERATURE,
    )


async def transform_content(
    client: httpx.AsyncClient, settings: Settings, title: str, description: str
) -> str:
    """Calls the chat-completions endpoint once and returns the first choice's text.

    Raises :class:`TransformError` on transport failure, a non-200 reply, an
    unparseable body or an empty ``choices`` array.
    """
    payload = build_completion_request(title, description, settings.openai_model)
    headers = {
        "Authorization": f"Bearer {settings.openai_api_key}",
        "Content-Type": "application/json",
    }
    try:
        resp = await client.post(
            f"{settings.openai_base_url}/chat/completions",
            content=payload.model_dump_json(),
            headers=headers,
        )
    except httpx.HTTPError as exc:
        raise TransformError(
            f"error making request to OpenAI: {type(exc).__name__}"
        ) from exc

    if resp.status_code != 200:
        logger.warning("OpenAI API error - status: %d", resp.status_code)
        raise TransformError(f"OpenAI API returned status {resp.status_code}")

    try:
        completion = CompletionResponse.model_validate_json(resp.content)
    except ValidationError as exc:
        raise TransformError("error parsing OpenAI response") from exc

    if not completion.choices:
        raise TransformError("no response from OpenAI")

    return completion.choices[0].message.content or ""
