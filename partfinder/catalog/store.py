"""Catalog snapshot ownership with TTL-bounded remote refresh."""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Callable, Optional

import httpx
from anyio import to_thread
from cachetools import TTLCache

from ..errors import CatalogLoadError, RemoteFetchError
from .loader import load_local, read_snapshot, write_snapshot
from .models import Catalog, CatalogKind

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60 * 60

_FRESHNESS_KEY = "remote"


class CatalogStore:
    """Owns one catalog snapshot, its on-disk copy and its refresh schedule.

    Snapshots are immutable and swapped whole, so readers holding an older
    snapshot are never affected by a concurrent refresh. ``refresh`` never
    raises: when the remote metadata source fails it falls back to the
    in-memory snapshot, then to the on-disk snapshot, then to an empty catalog.
    """

    def __init__(
        self,
        kind: CatalogKind,
        snapshot_path: Path,
        *,
        metadata_url: Optional[str] = None,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
        timeout_seconds: float = 10.0,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._kind = kind
        self._snapshot_path = snapshot_path
        self._metadata_url = metadata_url
        self._timeout = timeout_seconds
        self._timer = timer
        # A single marker key whose presence means the last remote fetch is
        # still inside the TTL window.
        self._fresh: TTLCache[str, float] = TTLCache(
            maxsize=1, ttl=ttl_seconds, timer=timer
        )
        self._lock = asyncio.Lock()
        self._attempts = 0
        self._client = client
        self._owns_client = client is None
        self._snapshot = load_local(snapshot_path, kind)

    @property
    def kind(self) -> CatalogKind:
        return self._kind

    @property
    def snapshot(self) -> Catalog:
        """Return the current snapshot without touching the network."""

        return self._snapshot

    @property
    def last_fetch_at(self) -> Optional[float]:
        """Timer value of the last successful remote fetch inside the TTL window."""

        return self._fresh.get(_FRESHNESS_KEY)

    def is_fresh(self) -> bool:
        return _FRESHNESS_KEY in self._fresh

    async def refresh(self) -> Catalog:
        """Return an up-to-date snapshot, fetching remotely once the TTL lapses."""

        if self._metadata_url is None or self.is_fresh():
            return self._snapshot

        attempt = self._attempts
        async with self._lock:
            # Another caller finished a fetch, successful or not, while we
            # waited for the lock; share its outcome instead of retrying.
            if self.is_fresh() or self._attempts != attempt:
                return self._snapshot

            try:
                catalog = await self._fetch_remote(self._metadata_url)
            except RemoteFetchError as exc:
                self._attempts += 1
                logger.warning("Remote %s catalog refresh failed: %s", self._kind, exc)
                return await self._fallback()

            self._attempts += 1
            self._snapshot = catalog
            self._fresh[_FRESHNESS_KEY] = self._timer()
            try:
                await to_thread.run_sync(write_snapshot, catalog, self._snapshot_path)
            except OSError:
                logger.exception(
                    "Failed to persist %s catalog snapshot to %s",
                    self._kind,
                    self._snapshot_path,
                )
            logger.info(
                "Refreshed %s catalog from %s (%d entries)",
                self._kind,
                self._metadata_url,
                len(catalog),
            )
            return catalog

    async def close(self) -> None:
        """Release the HTTP client when the store created it."""

        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
            self._owns_client = True
        return self._client

    async def _fetch_remote(self, url: str) -> Catalog:
        """Download and validate a catalog payload from ``url``."""

        try:
            response = await self._get_client().get(url)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise RemoteFetchError(f"GET {url} failed: {exc}") from exc

        try:
            return Catalog.from_mapping(data, self._kind)
        except CatalogLoadError as exc:
            raise RemoteFetchError(f"GET {url} returned an invalid catalog: {exc}") from exc

    async def _fallback(self) -> Catalog:
        """Pick the last good snapshot: in memory, then on disk, then empty."""

        if len(self._snapshot):
            return self._snapshot

        try:
            on_disk = await to_thread.run_sync(
                read_snapshot, self._snapshot_path, self._kind
            )
        except CatalogLoadError as exc:
            logger.warning("No usable %s catalog snapshot on disk: %s", self._kind, exc)
            self._snapshot = Catalog.empty(self._kind)
            return self._snapshot

        self._snapshot = on_disk
        return on_disk


__all__ = ["CatalogStore", "DEFAULT_TTL_SECONDS"]
