"""Process-wide catalog, resolver and asset cache instances."""

from __future__ import annotations

from functools import lru_cache
from typing import Tuple

from .assets import AssetCache
from .catalog import CatalogStore
from .config import settings
from .resolver import Resolver


@lru_cache(maxsize=1)
def get_catalog_stores() -> Tuple[CatalogStore, ...]:
    """Return the catalog stores in resolution order: parts, then schematics."""

    return (
        CatalogStore(
            "asset",
            settings.catalog_path,
            metadata_url=settings.metadata_url,
            ttl_seconds=settings.catalog_ttl_seconds,
            timeout_seconds=settings.http_timeout_seconds,
        ),
        CatalogStore(
            "schematic",
            settings.schematic_catalog_path,
            metadata_url=settings.schematic_metadata_url,
            ttl_seconds=settings.catalog_ttl_seconds,
            timeout_seconds=settings.http_timeout_seconds,
        ),
    )


@lru_cache(maxsize=1)
def get_resolver() -> Resolver:
    """Return the resolver configured with the trigger phrases from settings."""

    return Resolver(settings.trigger_phrases)


@lru_cache(maxsize=1)
def get_asset_cache() -> AssetCache:
    """Return the asset cache backed by the configured image directory."""

    return AssetCache(
        settings.image_directory,
        base_url=settings.asset_base_url,
        stores=get_catalog_stores(),
        timeout_seconds=settings.http_timeout_seconds,
    )


async def close_resources() -> None:
    """Close the HTTP clients of every instance created so far."""

    if get_asset_cache.cache_info().currsize:
        await get_asset_cache().close()
    if get_catalog_stores.cache_info().currsize:
        for store in get_catalog_stores():
            await store.close()


__all__ = [
    "close_resources",
    "get_asset_cache",
    "get_catalog_stores",
    "get_resolver",
]
