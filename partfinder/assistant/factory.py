"""Factory for the process-wide assistant client."""

from __future__ import annotations

from functools import lru_cache

from pydantic_ai.providers.openai import OpenAIProvider

from ..config import settings
from ..logging import instrument_openai_client
from .client import AssistantClient


@lru_cache(maxsize=1)
def get_assistant_client() -> AssistantClient:
    """Return an assistant client wired to the configured OpenAI assistant."""

    if not settings.assistant_id:
        raise RuntimeError("Environment variable 'OPENAI_ASSISTANT_ID' must be set.")

    provider = OpenAIProvider(
        base_url=settings.openai_base_url,
        api_key=settings.openai_api_key,
    )
    client = instrument_openai_client(provider.client)

    return AssistantClient(
        client,
        settings.assistant_id,
        poll_interval=settings.assistant_poll_interval,
        timeout_seconds=settings.assistant_timeout,
    )


__all__ = ["get_assistant_client"]
