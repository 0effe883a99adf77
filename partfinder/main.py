"""Main FastAPI application for the parts assistant."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List
from urllib.parse import quote

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from .assets import media_type_for
from .assistant import LOCAL_THREAD_ID, get_assistant_client
from .catalog import Catalog, CatalogKind
from .config import settings
from .dependencies import (
    close_resources,
    get_asset_cache,
    get_catalog_stores,
    get_resolver,
)
from .errors import AssetNotFound, AssistantRunFailed, AssistantTimeout
from .resolver import ResolutionResult
from .schemas import ChatRequest, ChatResponse, HealthResponse, TrainPart

logger = logging.getLogger(__name__)

IMAGE_ROUTE_PREFIX = "/api/train/image"


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    stores = get_catalog_stores()
    logger.info(
        "Loaded catalogs: %s",
        ", ".join(f"{store.kind}={len(store.snapshot)}" for store in stores),
    )
    yield
    await close_resources()


app = FastAPI(title="SD60M Parts Assistant API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_allow_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


async def _current_catalogs() -> List[Catalog]:
    """Refresh every store (a no-op inside the TTL) and return the snapshots."""

    return [await store.refresh() for store in get_catalog_stores()]


def _image_url(result: ResolutionResult, variant: str | None) -> str:
    if variant is not None:
        return (
            f"{IMAGE_ROUTE_PREFIX}/{quote(result.entry_key, safe='')}"
            f"/{quote(variant, safe='')}"
        )
    return f"{IMAGE_ROUTE_PREFIX}/{quote(result.filename, safe='')}"


def _asset_response(result: ResolutionResult, thread_id: str | None) -> ChatResponse:
    """Build the chat reply pointing the front end at the resolved image."""

    variant = result.variant or result.default_variant
    if result.kind == "schematic" and variant is not None:
        message = f"Here's page {variant} of the {result.display_name} you requested."
    else:
        message = f"Here's the {result.display_name} you requested."

    return ChatResponse(
        message=message,
        thread_id=thread_id or LOCAL_THREAD_ID,
        is_train_part=True,
        train_part=TrainPart(
            name=result.entry_key,
            display_name=result.display_name,
            filename=result.filename,
            image_url=_image_url(result, variant),
            description=result.description,
            variant=variant,
            kind=result.kind,
        ),
    )


@app.post("/api/chat", response_model=ChatResponse, response_model_exclude_none=True)
async def chat_endpoint(request: ChatRequest) -> ChatResponse:
    """Answer from the asset catalog when possible, otherwise ask the assistant."""

    if not request.message.strip():
        raise HTTPException(status_code=400, detail="No message provided.")

    try:
        catalogs = await _current_catalogs()
        result = get_resolver().resolve(request.message, catalogs)
    except Exception:  # pragma: no cover - resolution is best-effort
        logger.exception("Asset resolution failed; forwarding message to the assistant")
        result = None

    if result is not None:
        logger.info(
            "Resolved message to %s entry %s (variant=%s)",
            result.kind,
            result.entry_key,
            result.variant,
        )
        return _asset_response(result, request.thread_id)

    try:
        assistant = get_assistant_client()
        reply = await assistant.reply(request.message, request.thread_id)
    except AssistantTimeout as exc:
        logger.warning("Assistant timed out: %s", exc)
        raise HTTPException(
            status_code=504, detail="Assistant did not respond in time."
        ) from exc
    except AssistantRunFailed as exc:
        logger.warning("Assistant run failed: %s", exc)
        raise HTTPException(status_code=500, detail="Error processing request") from exc
    except Exception as exc:
        logger.exception("Unhandled error while contacting the assistant")
        raise HTTPException(status_code=500, detail="Error processing request") from exc

    return ChatResponse(
        message=reply.message,
        thread_id=reply.thread_id,
        is_train_part=False,
    )


@app.get(IMAGE_ROUTE_PREFIX + "/{filename}")
async def train_image(filename: str) -> Response:
    """Serve an image by its catalog filename."""

    try:
        content = await get_asset_cache().get_file(filename)
    except AssetNotFound as exc:
        raise HTTPException(status_code=404, detail="Image not found") from exc
    return Response(content=content, media_type=media_type_for(filename))


@app.get(IMAGE_ROUTE_PREFIX + "/{entry_key}/{variant}")
async def train_image_variant(entry_key: str, variant: str) -> Response:
    """Serve the image of one variant (for example a schematic page) of an entry."""

    cache = get_asset_cache()
    try:
        filename = cache.filename_for(entry_key, variant)
        content = await cache.get_file(filename)
    except AssetNotFound as exc:
        raise HTTPException(status_code=404, detail="Image not found") from exc
    return Response(content=content, media_type=media_type_for(filename))


@app.get("/api/train/metadata")
async def train_metadata(
    kind: CatalogKind = Query("asset"),
) -> Dict[str, Dict[str, Any]]:
    """Return the catalog of the requested kind as a key-to-descriptor mapping."""

    for store in get_catalog_stores():
        if store.kind == kind:
            catalog = await store.refresh()
            return catalog.to_mapping()
    raise HTTPException(status_code=404, detail=f"No {kind} catalog configured.")


@app.get("/api/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Report how many entries each loaded catalog holds."""

    return HealthResponse(
        catalogs={store.kind: len(store.snapshot) for store in get_catalog_stores()}
    )


__all__ = [
    "app",
    "chat_endpoint",
    "health",
    "train_image",
    "train_image_variant",
    "train_metadata",
]
