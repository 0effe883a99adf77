"""Logfire instrumentation helpers for the assistant collaborator."""

from __future__ import annotations

import os
from typing import Any

import logfire


_LOGFIRE_READY = False


def _configure_logfire() -> None:
    """Configure Logfire instrumentation if it has not been configured yet."""

    token = os.getenv("LOGFIRE_API_KEY")
    if token:
        logfire.configure(token=token, service_name="sd60m-parts-assistant")
    else:
        logfire.configure(
            send_to_logfire="if-token-present", service_name="sd60m-parts-assistant"
        )


def _ensure_logfire() -> None:
    """Initialize Logfire once for the process."""

    global _LOGFIRE_READY
    if not _LOGFIRE_READY:
        _configure_logfire()
        _LOGFIRE_READY = True


def instrument_openai_client(client: Any) -> Any:
    """Trace every request issued through ``client`` and return it."""

    _ensure_logfire()
    logfire.instrument_openai(client)
    return client


__all__ = ["_ensure_logfire", "instrument_openai_client"]
