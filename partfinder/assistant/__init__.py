"""Assistant collaborator invoked when a message names no catalog asset."""

from __future__ import annotations

from .client import AssistantClient, AssistantReply, LOCAL_THREAD_ID
from .factory import get_assistant_client

__all__ = [
    "AssistantClient",
    "AssistantReply",
    "LOCAL_THREAD_ID",
    "get_assistant_client",
]
