"""Reading and writing catalog snapshots on local disk."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from ..errors import CatalogLoadError
from .models import Catalog, CatalogKind

logger = logging.getLogger(__name__)


def read_snapshot(path: Path, kind: CatalogKind) -> Catalog:
    """Parse the snapshot at ``path``, raising :class:`CatalogLoadError` on failure."""

    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise CatalogLoadError(f"Catalog snapshot {path} does not exist") from exc
    except OSError as exc:
        raise CatalogLoadError(f"Catalog snapshot {path} is unreadable: {exc}") from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise CatalogLoadError(f"Catalog snapshot {path} is not valid JSON: {exc}") from exc

    return Catalog.from_mapping(data, kind)


def load_local(path: Path, kind: CatalogKind) -> Catalog:
    """Load the startup snapshot, degrading to an empty catalog on any problem."""

    try:
        catalog = read_snapshot(path, kind)
    except CatalogLoadError as exc:
        logger.warning("Falling back to an empty %s catalog: %s", kind, exc)
        return Catalog.empty(kind)

    logger.info("Loaded %d %s catalog entries from %s", len(catalog), kind, path)
    return catalog


def write_snapshot(catalog: Catalog, path: Path) -> None:
    """Persist ``catalog`` to ``path`` atomically (temp file + rename)."""

    path.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(catalog.to_mapping(), ensure_ascii=False, indent=2)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fp:
            fp.write(payload)
            fp.write("\n")
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


__all__ = ["load_local", "read_snapshot", "write_snapshot"]
