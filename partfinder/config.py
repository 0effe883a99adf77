"""Configuration helpers for the parts assistant backend."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from dotenv import load_dotenv

# Load .env if present to simplify local development.
load_dotenv()


DEFAULT_TRIGGER_PHRASES: Tuple[str, ...] = (
    "show me an image of",
    "show me a picture of",
    "show me the",
    "can i see the",
    "display the",
    "show a photo of",
    "let me see the",
)

_PACKAGE_DATA_DIR = Path(__file__).resolve().parent.parent / "data"


@dataclass(frozen=True)
class Settings:
    """Holds configuration derived from environment variables."""

    data_directory: Path
    catalog_path: Path
    schematic_catalog_path: Path
    image_directory: Path
    metadata_url: str | None
    schematic_metadata_url: str | None
    asset_base_url: str | None
    catalog_ttl_seconds: float
    http_timeout_seconds: float
    trigger_phrases: Tuple[str, ...]
    openai_api_key: str | None
    openai_base_url: str | None
    assistant_id: str | None
    assistant_poll_interval: float
    assistant_timeout: float
    cors_allow_origins: Tuple[str, ...]
    app_host: str
    app_port: int
    log_level: str


def _optional_env(key: str) -> str | None:
    """Return a stripped environment value, treating blanks as unset."""

    value = os.getenv(key)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _path_from_env(key: str, default: Path) -> Path:
    """Resolve a filesystem path from the environment."""

    raw_value = _optional_env(key)
    if raw_value is None:
        return default
    return Path(raw_value).expanduser().resolve()


def _positive_int_from_env(key: str, default: int) -> int:
    """Parse a positive integer from the environment."""

    raw_value = os.getenv(key)
    if raw_value is None:
        return default

    try:
        value = int(raw_value)
    except ValueError as exc:  # pragma: no cover - defensive programming
        raise RuntimeError(f"Environment variable '{key}' must be an integer") from exc

    if value <= 0:
        raise RuntimeError(f"Environment variable '{key}' must be greater than zero")

    return value


def _positive_float_from_env(key: str, default: float) -> float:
    """Parse a strictly positive floating-point value from the environment."""

    raw_value = os.getenv(key)
    if raw_value is None:
        return default

    try:
        value = float(raw_value)
    except ValueError as exc:  # pragma: no cover - defensive programming
        raise RuntimeError(
            f"Environment variable '{key}' must be a floating-point number"
        ) from exc

    if value <= 0:
        raise RuntimeError(f"Environment variable '{key}' must be greater than zero")

    return value


def _phrases_from_env(key: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    """Split a ``|``-separated list of phrases, lowercasing each one."""

    raw_value = _optional_env(key)
    if raw_value is None:
        return default

    phrases = tuple(
        phrase.strip().lower() for phrase in raw_value.split("|") if phrase.strip()
    )
    if not phrases:
        raise RuntimeError(f"Environment variable '{key}' must list at least one phrase")
    return phrases


def get_settings() -> Settings:
    """Create settings populated from the environment."""

    data_dir = _path_from_env("PARTS_DATA_DIR", _PACKAGE_DATA_DIR)

    return Settings(
        data_directory=data_dir,
        catalog_path=_path_from_env("PARTS_CATALOG_PATH", data_dir / "catalog.json"),
        schematic_catalog_path=_path_from_env(
            "PARTS_SCHEMATIC_CATALOG_PATH", data_dir / "schematics.json"
        ),
        image_directory=_path_from_env("PARTS_IMAGE_DIR", data_dir / "images" / "SD60M"),
        metadata_url=_optional_env("PARTS_METADATA_URL"),
        schematic_metadata_url=_optional_env("PARTS_SCHEMATIC_METADATA_URL"),
        asset_base_url=_optional_env("PARTS_ASSET_BASE_URL"),
        catalog_ttl_seconds=_positive_float_from_env("PARTS_CATALOG_TTL_SECONDS", 3600.0),
        http_timeout_seconds=_positive_float_from_env("PARTS_HTTP_TIMEOUT_SECONDS", 10.0),
        trigger_phrases=_phrases_from_env("PARTS_TRIGGER_PHRASES", DEFAULT_TRIGGER_PHRASES),
        openai_api_key=_optional_env("OPENAI_API_KEY"),
        openai_base_url=_optional_env("OPENAI_BASE_URL"),
        assistant_id=_optional_env("OPENAI_ASSISTANT_ID"),
        assistant_poll_interval=_positive_float_from_env("ASSISTANT_POLL_INTERVAL", 1.0),
        assistant_timeout=_positive_float_from_env("ASSISTANT_TIMEOUT", 60.0),
        cors_allow_origins=tuple(
            origin.strip()
            for origin in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",")
            if origin.strip()
        ),
        app_host=os.getenv("APP_HOST", "0.0.0.0"),
        app_port=_positive_int_from_env("APP_PORT", 8000),
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


settings = get_settings()


__all__ = ["DEFAULT_TRIGGER_PHRASES", "Settings", "get_settings", "settings"]
