"""Shared fixtures for the parts assistant test-suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from partfinder.catalog import Catalog, load_local
from support import FakeClock

DATA_DIR = Path(__file__).resolve().parent.parent / "data"


@pytest.fixture
def anyio_backend() -> str:
    """Limit anyio-powered tests to the asyncio backend for the suite."""

    return "asyncio"


@pytest.fixture
def parts_catalog() -> Catalog:
    """The sample SD60M parts catalog shipped with the repository."""

    return load_local(DATA_DIR / "catalog.json", "asset")


@pytest.fixture
def schematic_catalog() -> Catalog:
    """The sample SD60M schematic catalog shipped with the repository."""

    return load_local(DATA_DIR / "schematics.json", "schematic")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
