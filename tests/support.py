"""Test doubles shared across the test modules."""

from __future__ import annotations

from typing import Awaitable, Callable, List, Union

import httpx


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingTransport(httpx.MockTransport):
    """Mock transport that remembers every request it served."""

    def __init__(
        self,
        handler: Callable[
            [httpx.Request], Union[httpx.Response, Awaitable[httpx.Response]]
        ],
    ) -> None:
        self.requests: List[httpx.Request] = []

        def _record(
            request: httpx.Request,
        ) -> Union[httpx.Response, Awaitable[httpx.Response]]:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)

    @property
    def calls(self) -> int:
        return len(self.requests)
