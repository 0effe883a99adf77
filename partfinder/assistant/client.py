"""Thread/run based client for the hosted conversational assistant."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from openai import OpenAIError
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_result,
    stop_after_delay,
    stop_when_event_set,
    wait_fixed,
)

from ..errors import AssistantCancelled, AssistantRunFailed, AssistantTimeout

logger = logging.getLogger(__name__)

LOCAL_THREAD_ID = "local"

RUN_COMPLETED = "completed"
RUN_FAILURE_STATUSES = frozenset(
    {"failed", "cancelled", "expired", "incomplete", "requires_action"}
)
RUN_TERMINAL_STATUSES = RUN_FAILURE_STATUSES | {RUN_COMPLETED}


@dataclass(frozen=True, slots=True)
class AssistantReply:
    """Text produced by the assistant together with its conversation thread."""

    message: str
    thread_id: str


def _is_pending(run: Any) -> bool:
    return getattr(run, "status", None) not in RUN_TERMINAL_STATUSES


def _message_text(message: Any) -> str:
    parts: List[str] = []
    for block in getattr(message, "content", None) or []:
        if getattr(block, "type", None) != "text":
            continue
        parts.append(block.text.value)
    return "\n".join(parts).strip()


class AssistantClient:
    """Forward unresolved chat messages to a hosted assistant.

    Each reply creates (or continues) a thread, posts the user message,
    starts a run and polls it at a fixed interval until it reaches a terminal
    state. Polling is bounded by ``timeout_seconds`` and can be cancelled
    through an ``asyncio.Event``.
    """

    def __init__(
        self,
        client: Any,
        assistant_id: str,
        *,
        poll_interval: float = 1.0,
        timeout_seconds: float = 60.0,
    ) -> None:
        self._client = client
        self._assistant_id = assistant_id
        self._poll_interval = poll_interval
        self._timeout = timeout_seconds

    async def reply(
        self,
        message: str,
        thread_id: Optional[str] = None,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AssistantReply:
        """Submit ``message`` and return the assistant's answer."""

        threads = self._client.beta.threads
        try:
            if not thread_id or thread_id == LOCAL_THREAD_ID:
                thread = await threads.create()
                thread_id = thread.id

            await threads.messages.create(thread_id=thread_id, role="user", content=message)
            run = await threads.runs.create(
                thread_id=thread_id, assistant_id=self._assistant_id
            )
            run = await self._wait_for_run(thread_id, run, cancel_event)

            if run.status != RUN_COMPLETED:
                raise AssistantRunFailed(
                    f"Assistant run {run.id} ended with status '{run.status}'"
                )

            text = await self._latest_reply_text(thread_id, run.id)
        except OpenAIError as exc:
            raise AssistantRunFailed(f"Assistant request failed: {exc}") from exc

        return AssistantReply(message=text, thread_id=thread_id)

    async def _retrieve_run(self, thread_id: str, run_id: str) -> Any:
        return await self._client.beta.threads.runs.retrieve(run_id, thread_id=thread_id)

    async def _wait_for_run(
        self, thread_id: str, run: Any, cancel_event: Optional[asyncio.Event]
    ) -> Any:
        """Poll until the run is terminal, the deadline passes or polling is cancelled."""

        if not _is_pending(run):
            return run

        stop = stop_after_delay(self._timeout)
        if cancel_event is not None:
            stop = stop | stop_when_event_set(cancel_event)

        retrying = AsyncRetrying(
            retry=retry_if_result(_is_pending),
            wait=wait_fixed(self._poll_interval),
            stop=stop,
        )
        try:
            return await retrying(self._retrieve_run, thread_id, run.id)
        except RetryError as exc:
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Polling for assistant run %s was cancelled", run.id)
                raise AssistantCancelled(f"Polling for run {run.id} was cancelled") from exc
            logger.warning(
                "Assistant run %s still pending after %.1fs", run.id, self._timeout
            )
            raise AssistantTimeout(
                f"Assistant run {run.id} did not finish within {self._timeout:.1f}s"
            ) from exc

    async def _latest_reply_text(self, thread_id: str, run_id: str) -> str:
        page = await self._client.beta.threads.messages.list(
            thread_id=thread_id, run_id=run_id, order="desc", limit=10
        )
        for item in page.data:
            if getattr(item, "role", None) != "assistant":
                continue
            text = _message_text(item)
            if text:
                return text
        raise AssistantRunFailed(f"Assistant run {run_id} produced no text reply")


__all__ = [
    "AssistantClient",
    "AssistantReply",
    "LOCAL_THREAD_ID",
    "RUN_COMPLETED",
    "RUN_FAILURE_STATUSES",
]
