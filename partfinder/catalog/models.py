"""Catalog entries and immutable catalog snapshots."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Literal, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ..errors import CatalogLoadError

CatalogKind = Literal["asset", "schematic"]

VARIANT_PLACEHOLDER = "{variant}"


def default_display_name(key: str) -> str:
    """Capitalize the first letter of ``key`` and keep the rest untouched."""

    return key[:1].upper() + key[1:]


class CatalogEntry(BaseModel):
    """One retrievable asset, optionally split into named variants."""

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    key: str
    filename: str
    display_name: str
    description: Optional[str] = None
    aliases: Tuple[str, ...] = ()
    variants: Tuple[str, ...] = ()
    default_variant: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _derive_defaults(cls, value: Any) -> Any:
        """Fill the display name and default variant when they are omitted."""

        if not isinstance(value, Mapping):
            return value

        data = dict(value)
        key = data.get("key")
        if isinstance(key, str) and not (data.get("display_name") or data.get("displayName")):
            data["display_name"] = default_display_name(key.strip().lower())

        variants = data.get("variants") or ()
        if variants and not (data.get("default_variant") or data.get("defaultVariant")):
            data["default_variant"] = str(list(variants)[0]).strip()
        return data

    @field_validator("key")
    @classmethod
    def _normalize_key(cls, value: str) -> str:
        normalized = value.strip().lower()
        if not normalized:
            raise ValueError("catalog keys must not be blank")
        return normalized

    @field_validator("filename")
    @classmethod
    def _require_filename(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("catalog entries need a filename")
        return value

    @field_validator("aliases", mode="before")
    @classmethod
    def _normalize_aliases(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, str):
            value = [value]
        return tuple(
            str(alias).strip().lower() for alias in value if str(alias).strip()
        )

    @field_validator("variants", mode="before")
    @classmethod
    def _normalize_variants(cls, value: Any) -> Any:
        if value is None:
            return ()
        return tuple(str(variant).strip() for variant in value if str(variant).strip())

    @model_validator(mode="after")
    def _check_default_variant(self) -> "CatalogEntry":
        if self.default_variant is not None and self.default_variant not in self.variants:
            raise ValueError(
                f"default variant '{self.default_variant}' is not one of the declared variants"
            )
        return self

    @property
    def terms(self) -> Tuple[str, ...]:
        """Return the key followed by every alias, in declaration order."""

        return (self.key, *self.aliases)

    @property
    def has_variants(self) -> bool:
        return bool(self.variants)

    def filename_for(self, variant: Optional[str]) -> str:
        """Return the asset filename, substituting ``variant`` when templated."""

        if VARIANT_PLACEHOLDER not in self.filename:
            return self.filename
        chosen = variant or self.default_variant
        if chosen is None:
            return self.filename
        return self.filename.replace(VARIANT_PLACEHOLDER, chosen)

    def descriptor(self) -> Dict[str, Any]:
        """Serialize the entry without its key, as stored in a snapshot."""

        return self.model_dump(
            mode="json", by_alias=True, exclude={"key"}, exclude_defaults=True
        )


@dataclass(frozen=True)
class Catalog:
    """Immutable snapshot of catalog entries in definition order."""

    kind: CatalogKind
    entries: Tuple[CatalogEntry, ...] = ()

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for entry in self.entries:
            if entry.key in seen:
                raise CatalogLoadError(f"Duplicate catalog key '{entry.key}'")
            seen.add(entry.key)

    def __iter__(self) -> Iterator[CatalogEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, key: str) -> Optional[CatalogEntry]:
        """Return the entry stored under ``key`` (case-insensitive)."""

        wanted = key.strip().lower()
        for entry in self.entries:
            if entry.key == wanted:
                return entry
        return None

    def keys(self) -> List[str]:
        return [entry.key for entry in self.entries]

    @classmethod
    def empty(cls, kind: CatalogKind) -> "Catalog":
        return cls(kind=kind)

    @classmethod
    def from_mapping(cls, data: Any, kind: CatalogKind) -> "Catalog":
        """Build a catalog from a ``key -> descriptor`` mapping.

        A descriptor is either a bare filename string or an object carrying
        ``filename`` plus the optional ``displayName``, ``description``,
        ``aliases``, ``variants`` and ``defaultVariant`` fields.
        """

        if not isinstance(data, Mapping):
            raise CatalogLoadError(
                f"Catalog payload must be a JSON object, got {type(data).__name__}"
            )

        entries: List[CatalogEntry] = []
        for key, descriptor in data.items():
            if isinstance(descriptor, str):
                payload: Dict[str, Any] = {"filename": descriptor}
            elif isinstance(descriptor, Mapping):
                payload = dict(descriptor)
            else:
                raise CatalogLoadError(
                    f"Descriptor for '{key}' must be a filename or an object"
                )
            payload["key"] = key
            try:
                entries.append(CatalogEntry.model_validate(payload))
            except ValidationError as exc:
                raise CatalogLoadError(f"Invalid descriptor for '{key}': {exc}") from exc

        return cls(kind=kind, entries=tuple(entries))

    def to_mapping(self) -> Dict[str, Dict[str, Any]]:
        """Return the snapshot as a JSON-serialisable ``key -> descriptor`` mapping."""

        return {entry.key: entry.descriptor() for entry in self.entries}


__all__ = [
    "Catalog",
    "CatalogEntry",
    "CatalogKind",
    "VARIANT_PLACEHOLDER",
    "default_display_name",
]
