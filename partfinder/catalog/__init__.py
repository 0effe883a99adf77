"""Catalog models, snapshot I/O and the refreshing catalog store."""

from .loader import load_local, read_snapshot, write_snapshot
from .models import Catalog, CatalogEntry, CatalogKind, default_display_name
from .store import CatalogStore, DEFAULT_TTL_SECONDS

__all__ = [
    "Catalog",
    "CatalogEntry",
    "CatalogKind",
    "CatalogStore",
    "DEFAULT_TTL_SECONDS",
    "default_display_name",
    "load_local",
    "read_snapshot",
    "write_snapshot",
]
