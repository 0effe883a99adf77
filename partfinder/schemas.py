"""Request and response payloads exchanged with the chat front end."""

from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .catalog import CatalogKind


class _CamelModel(BaseModel):
    """Serialize field names in camelCase while accepting either spelling."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatRequest(_CamelModel):
    """Payload sent to the `/api/chat` endpoint."""

    message: str = Field(..., description="Free-text user message.")
    thread_id: Optional[str] = Field(
        None, description="Assistant conversation to continue, if any."
    )


class TrainPart(_CamelModel):
    """Catalog asset returned when a message names a part or schematic page."""

    name: str = Field(..., description="Canonical catalog key.")
    display_name: str
    filename: str
    image_url: str = Field(..., description="Relative URL serving the image bytes.")
    description: Optional[str] = None
    variant: Optional[str] = Field(
        None, description="Selected variant, such as a schematic page number."
    )
    kind: CatalogKind = "asset"


class ChatResponse(_CamelModel):
    """Response schema returned by the `/api/chat` endpoint."""

    message: str
    thread_id: str
    is_train_part: bool
    train_part: Optional[TrainPart] = None


class HealthResponse(_CamelModel):
    """Entry counts of the catalogs currently loaded."""

    status: str = "ok"
    catalogs: Dict[str, int] = Field(default_factory=dict)


__all__ = ["ChatRequest", "ChatResponse", "HealthResponse", "TrainPart"]
