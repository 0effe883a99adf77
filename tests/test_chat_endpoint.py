"""Tests for the HTTP routes of the parts assistant."""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional, Tuple

import httpx
import pytest
from fastapi.testclient import TestClient

import partfinder.main as app_main
from partfinder.assets import AssetCache
from partfinder.assistant import AssistantReply
from partfinder.catalog import CatalogStore
from partfinder.errors import AssistantRunFailed, AssistantTimeout
from partfinder.main import app

from support import RecordingTransport

DATA_DIR = Path(__file__).resolve().parent.parent / "data"


class _StubAssistant:
    """Return a canned reply (or raise) and record every call."""

    def __init__(self, reply: Optional[AssistantReply] = None, error: Optional[Exception] = None) -> None:
        self._reply = reply
        self._error = error
        self.calls: List[Tuple[str, Optional[str]]] = []

    async def reply(self, message: str, thread_id: Optional[str] = None, **_: Any) -> AssistantReply:
        self.calls.append((message, thread_id))
        if self._error is not None:
            raise self._error
        assert self._reply is not None
        return self._reply


@pytest.fixture
def stores() -> Tuple[CatalogStore, ...]:
    """Stores over the sample catalogs, without any remote source."""

    return (
        CatalogStore("asset", DATA_DIR / "catalog.json"),
        CatalogStore("schematic", DATA_DIR / "schematics.json"),
    )


@pytest.fixture
def image_dir(tmp_path: Path) -> Path:
    return tmp_path / "images"


@pytest.fixture(autouse=True)
def _wire_dependencies(
    monkeypatch: pytest.MonkeyPatch, stores: Tuple[CatalogStore, ...], image_dir: Path
) -> None:
    """Point the application at the sample catalogs and a temporary image cache."""

    cache = AssetCache(image_dir, stores=stores)
    monkeypatch.setattr(app_main, "get_catalog_stores", lambda: stores)
    monkeypatch.setattr(app_main, "get_asset_cache", lambda: cache)


def _use_assistant(monkeypatch: pytest.MonkeyPatch, assistant: _StubAssistant) -> None:
    monkeypatch.setattr(app_main, "get_assistant_client", lambda: assistant)


def test_chat_returns_catalog_asset(monkeypatch: pytest.MonkeyPatch) -> None:
    """An image request for a known part is answered without the assistant."""

    assistant = _StubAssistant()
    _use_assistant(monkeypatch, assistant)

    response = TestClient(app).post("/api/chat", json={"message": "Can I see the alerter?"})

    assert response.status_code == 200
    assert response.json() == {
        "message": "Here's the Alerter you requested.",
        "threadId": "local",
        "isTrainPart": True,
        "trainPart": {
            "name": "alerter",
            "displayName": "Alerter",
            "filename": "SD60M ALERTER Q2518.jpg",
            "imageUrl": "/api/train/image/SD60M%20ALERTER%20Q2518.jpg",
            "description": "Q2518 alerter unit mounted in the SD60M cab.",
            "kind": "asset",
        },
    }
    assert assistant.calls == []


def test_chat_keeps_thread_id_for_catalog_answers(monkeypatch: pytest.MonkeyPatch) -> None:
    """A caller-supplied thread id is echoed back on catalog answers."""

    _use_assistant(monkeypatch, _StubAssistant())

    response = TestClient(app).post(
        "/api/chat", json={"message": "display the smartstart", "threadId": "thread-7"}
    )

    assert response.status_code == 200
    assert response.json()["threadId"] == "thread-7"
    assert response.json()["trainPart"]["filename"] == "SD60M HVC SMARTSTART 2E.jpg"


def test_chat_returns_schematic_page(monkeypatch: pytest.MonkeyPatch) -> None:
    """Schematic requests point at the page-specific image route."""

    _use_assistant(monkeypatch, _StubAssistant())

    response = TestClient(app).post(
        "/api/chat", json={"message": "Show me the schematic page 14"}
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["message"] == "Here's page 14 of the SD60M schematic you requested."
    assert payload["trainPart"]["variant"] == "14"
    assert payload["trainPart"]["kind"] == "schematic"
    assert payload["trainPart"]["filename"] == "SD60M SCHEMATIC PAGE 14.jpg"
    assert payload["trainPart"]["imageUrl"] == "/api/train/image/schematic/14"


def test_chat_defaults_unknown_schematic_page(monkeypatch: pytest.MonkeyPatch) -> None:
    """A page that does not exist falls back to the default page label."""

    _use_assistant(monkeypatch, _StubAssistant())

    response = TestClient(app).post(
        "/api/chat", json={"message": "show me the schematic page 999"}
    )

    assert response.status_code == 200
    assert response.json()["trainPart"]["variant"] == "1"
    assert response.json()["trainPart"]["imageUrl"] == "/api/train/image/schematic/1"


def test_chat_forwards_unmatched_messages_to_assistant(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Messages that are not asset requests get the assistant's reply."""

    assistant = _StubAssistant(
        AssistantReply(message="It warns the engineer.", thread_id="thread-9")
    )
    _use_assistant(monkeypatch, assistant)

    response = TestClient(app).post(
        "/api/chat", json={"message": "What does the alerter do?", "threadId": "thread-9"}
    )

    assert response.status_code == 200
    assert response.json() == {
        "message": "It warns the engineer.",
        "threadId": "thread-9",
        "isTrainPart": False,
    }
    assert assistant.calls == [("What does the alerter do?", "thread-9")]


@pytest.mark.parametrize(
    "error, status_code",
    [
        (AssistantRunFailed("run failed"), 500),
        (AssistantTimeout("too slow"), 504),
        (RuntimeError("OPENAI_ASSISTANT_ID missing"), 500),
    ],
)
def test_chat_assistant_errors(
    monkeypatch: pytest.MonkeyPatch, error: Exception, status_code: int
) -> None:
    """Assistant failures surface as server errors, timeouts as gateway timeouts."""

    _use_assistant(monkeypatch, _StubAssistant(error=error))

    response = TestClient(app).post("/api/chat", json={"message": "Hello there"})

    assert response.status_code == status_code


def test_chat_rejects_blank_message(monkeypatch: pytest.MonkeyPatch) -> None:
    """Blank messages are rejected before any routing happens."""

    assistant = _StubAssistant()
    _use_assistant(monkeypatch, assistant)

    response = TestClient(app).post("/api/chat", json={"message": "   "})

    assert response.status_code == 400
    assert assistant.calls == []


def test_image_route_serves_cached_file(image_dir: Path) -> None:
    """Cached images are served with a content type matching their extension."""

    image_dir.mkdir(parents=True)
    (image_dir / "SD60M ALERTER Q2518.jpg").write_bytes(b"jpeg-bytes")

    response = TestClient(app).get("/api/train/image/SD60M%20ALERTER%20Q2518.jpg")

    assert response.status_code == 200
    assert response.content == b"jpeg-bytes"
    assert response.headers["content-type"] == "image/jpeg"


def test_image_route_missing_file_is_404() -> None:
    """Images that are neither cached nor fetchable return 404."""

    response = TestClient(app).get("/api/train/image/missing.jpg")

    assert response.status_code == 404
    assert response.json() == {"detail": "Image not found"}


def test_image_route_does_not_fetch_undeclared_files(
    monkeypatch: pytest.MonkeyPatch, stores: Tuple[CatalogStore, ...], image_dir: Path
) -> None:
    """Arbitrary request paths never reach the image origin."""

    transport = RecordingTransport(lambda _: httpx.Response(200, content=b"payload"))
    cache = AssetCache(
        image_dir,
        base_url="https://assets.test/sd60m",
        stores=stores,
        client=httpx.AsyncClient(transport=transport),
    )
    monkeypatch.setattr(app_main, "get_asset_cache", lambda: cache)

    response = TestClient(app).get("/api/train/image/not-in-catalog.bin")

    assert response.status_code == 404
    assert transport.calls == 0
    assert not image_dir.exists()


def test_variant_image_route(image_dir: Path) -> None:
    """Schematic pages are addressable by entry key and page number."""

    image_dir.mkdir(parents=True)
    (image_dir / "SD60M SCHEMATIC PAGE 14.jpg").write_bytes(b"page-14")
    client = TestClient(app)

    found = client.get("/api/train/image/schematic/14")
    unknown = client.get("/api/train/image/schematic/999")

    assert found.status_code == 200
    assert found.content == b"page-14"
    assert unknown.status_code == 404


def test_metadata_route_lists_catalog(stores: Tuple[CatalogStore, ...]) -> None:
    """Metadata is exposed as a key-to-descriptor mapping per catalog kind."""

    client = TestClient(app)

    parts = client.get("/api/train/metadata")
    schematics = client.get("/api/train/metadata", params={"kind": "schematic"})

    assert parts.status_code == 200
    assert list(parts.json()) == stores[0].snapshot.keys()
    assert parts.json()["alerter"]["filename"] == "SD60M ALERTER Q2518.jpg"
    assert schematics.json()["schematic"]["variants"][13] == "14"


def test_health_reports_catalog_sizes(stores: Tuple[CatalogStore, ...]) -> None:
    """The health route reports how many entries each catalog holds."""

    response = TestClient(app).get("/api/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "catalogs": {"asset": len(stores[0].snapshot), "schematic": 1},
    }


def test_catalogs_load_at_startup(
    monkeypatch: pytest.MonkeyPatch, stores: Tuple[CatalogStore, ...]
) -> None:
    """Catalog stores are built when the application starts, before any request."""

    calls: List[int] = []

    def _stores() -> Tuple[CatalogStore, ...]:
        calls.append(1)
        return stores

    monkeypatch.setattr(app_main, "get_catalog_stores", _stores)

    with TestClient(app):
        assert calls == [1]
