"""On-demand local cache of image assets fetched from a remote origin."""

from __future__ import annotations

import logging
import mimetypes
import os
import tempfile
from pathlib import Path
from typing import Optional, Sequence
from urllib.parse import quote

import httpx
from anyio import to_thread

from .catalog import CatalogEntry, CatalogStore
from .errors import AssetNotFound, RemoteFetchError

logger = logging.getLogger(__name__)

_FALLBACK_MEDIA_TYPE = "application/octet-stream"


def media_type_for(filename: str) -> str:
    """Guess the content type served for ``filename``."""

    media_type, _ = mimetypes.guess_type(filename)
    return media_type or _FALLBACK_MEDIA_TYPE


def _is_safe_filename(filename: str) -> bool:
    if not filename or filename in {".", ".."}:
        return False
    return "/" not in filename and "\\" not in filename and "\x00" not in filename


def _write_atomically(path: Path, content: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as fp:
            fp.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class AssetCache:
    """Serve asset bytes from disk, fetching and persisting them on first use.

    Cached files are never invalidated: published assets are treated as
    immutable. Two concurrent misses for the same file may both fetch, but
    each write lands through an atomic rename so readers never see a torn file.
    Only filenames published by a catalog entry are ever fetched remotely.
    """

    def __init__(
        self,
        directory: Path,
        *,
        base_url: Optional[str] = None,
        stores: Sequence[CatalogStore] = (),
        client: Optional[httpx.AsyncClient] = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._directory = directory
        self._base_url = base_url.rstrip("/") if base_url else None
        self._stores = tuple(stores)
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout_seconds

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, filename: str) -> Path:
        """Return the deterministic cache location of ``filename``."""

        if not _is_safe_filename(filename):
            raise AssetNotFound(filename, "invalid filename")
        return self._directory / filename

    def find_entry(self, entry_key: str) -> Optional[CatalogEntry]:
        """Look ``entry_key`` up in the current snapshot of every store."""

        for store in self._stores:
            entry = store.snapshot.get(entry_key)
            if entry is not None:
                return entry
        return None

    def filename_for(self, entry_key: str, variant: Optional[str]) -> str:
        """Map an ``(entry_key, variant)`` pair onto the filename it is cached under."""

        entry = self.find_entry(entry_key)
        if entry is None:
            raise AssetNotFound(entry_key, "unknown catalog entry")
        if variant is not None and variant not in entry.variants:
            raise AssetNotFound(entry_key, f"unknown variant '{variant}'")
        return entry.filename_for(variant)

    def is_declared(self, filename: str) -> bool:
        """Return whether some catalog entry (or one of its variants) publishes ``filename``."""

        for store in self._stores:
            for entry in store.snapshot:
                if entry.has_variants:
                    if any(entry.filename_for(v) == filename for v in entry.variants):
                        return True
                elif entry.filename == filename:
                    return True
        return False

    async def get_asset(self, entry_key: str, variant: Optional[str] = None) -> bytes:
        """Return the bytes for a catalog entry and optional variant."""

        return await self.get_file(self.filename_for(entry_key, variant))

    async def get_file(self, filename: str) -> bytes:
        """Return the bytes of ``filename``, fetching it remotely on a cache miss."""

        path = self.path_for(filename)
        if path.is_file():
            try:
                return await to_thread.run_sync(path.read_bytes)
            except OSError as exc:
                raise AssetNotFound(filename, f"unreadable cache file: {exc}") from exc

        if self._base_url is None:
            raise AssetNotFound(filename, "not cached and no remote origin configured")
        if not self.is_declared(filename):
            raise AssetNotFound(filename, "not declared by any catalog entry")

        try:
            content = await self._fetch_remote(filename)
        except RemoteFetchError as exc:
            logger.warning("Remote fetch for asset %s failed: %s", filename, exc)
            raise AssetNotFound(filename, str(exc)) from exc

        try:
            await to_thread.run_sync(_write_atomically, path, content)
        except OSError:
            logger.exception("Failed to cache asset %s at %s", filename, path)
        else:
            logger.info("Cached asset %s (%d bytes)", filename, len(content))
        return content

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, follow_redirects=True)
            self._owns_client = True
        return self._client

    async def _fetch_remote(self, filename: str) -> bytes:
        url = f"{self._base_url}/{quote(filename)}"
        try:
            response = await self._get_client().get(url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise RemoteFetchError(f"GET {url} failed: {exc}") from exc
        return response.content


__all__ = ["AssetCache", "media_type_for"]
