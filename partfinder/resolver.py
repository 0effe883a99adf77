"""Decide whether a chat message asks for a catalog asset, and which one.

Resolution runs in three steps:

1. phrase detection: the message must contain one of the trigger phrases;
2. entry matching: first an exact key/alias containment pass, then a
   fallback pass that looks for distinctive message tokens inside filenames;
3. variant matching for entries that declare variants (page numbers, views).

Everything here is pure and I/O free; callers hand in the catalog snapshots.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from .catalog.models import VARIANT_PLACEHOLDER, Catalog, CatalogEntry, CatalogKind
from .config import DEFAULT_TRIGGER_PHRASES

MIN_FALLBACK_TOKEN_LENGTH = 4

_PAGE_PATTERN = re.compile(r"\bpage\s*#?\s*(\d+)")
_DIGIT_RUN_PATTERN = re.compile(r"\d+")


@dataclass(frozen=True, slots=True)
class ResolutionResult:
    """Outcome of a successful resolution for a single message."""

    entry_key: str
    filename: str
    display_name: str
    description: Optional[str]
    variant: Optional[str]
    kind: CatalogKind
    default_variant: Optional[str] = None


def is_asset_request(text: str, trigger_phrases: Sequence[str]) -> bool:
    """Return ``True`` when the lowercased text contains any trigger phrase."""

    if not text:
        return False
    lowered = text.lower()
    return any(phrase and phrase.lower() in lowered for phrase in trigger_phrases)


def match_exact(text: str, catalog: Iterable[CatalogEntry]) -> Optional[CatalogEntry]:
    """Return the first entry whose key or alias occurs in ``text``."""

    lowered = text.lower()
    for entry in catalog:
        if any(term in lowered for term in entry.terms):
            return entry
    return None


def match_fallback(text: str, catalog: Iterable[CatalogEntry]) -> Optional[CatalogEntry]:
    """Return the first entry whose filename contains a long enough message token."""

    tokens = [
        token for token in text.lower().split() if len(token) >= MIN_FALLBACK_TOKEN_LENGTH
    ]
    if not tokens:
        return None

    for entry in catalog:
        # Template placeholders are not part of any published filename.
        filename = entry.filename.replace(VARIANT_PLACEHOLDER, "").lower()
        for token in tokens:
            if token in filename:
                return entry
    return None


def match_entry(text: str, catalog: Iterable[CatalogEntry]) -> Optional[CatalogEntry]:
    """Exact key/alias containment first, token overlap with filenames second."""

    entries = list(catalog)
    return match_exact(text, entries) or match_fallback(text, entries)


def match_page_number(text: str, variants: Sequence[str]) -> Optional[str]:
    """Pick a numeric variant from ``page <n>`` or, failing that, any digit run."""

    numeric = {int(variant): variant for variant in variants if variant.isdecimal()}
    if not numeric:
        return None

    lowered = text.lower()
    page = _PAGE_PATTERN.search(lowered)
    if page is not None:
        found = numeric.get(int(page.group(1)))
        if found is not None:
            return found

    for digits in _DIGIT_RUN_PATTERN.findall(lowered):
        found = numeric.get(int(digits))
        if found is not None:
            return found
    return None


def match_variant(text: str, variants: Sequence[str]) -> Optional[str]:
    """Return the variant named in ``text``, or ``None`` for the caller's default.

    Numeric variants are only ever chosen through page-number extraction;
    the generic substring pass considers the named (non-numeric) variants.
    """

    if not text or not variants:
        return None

    page = match_page_number(text, variants)
    if page is not None:
        return page

    lowered = text.lower()
    for variant in variants:
        if variant.isdecimal():
            continue
        if variant.lower() in lowered:
            return variant
    return None


class Resolver:
    """Resolve chat messages against one or more catalog snapshots."""

    def __init__(self, trigger_phrases: Sequence[str] = DEFAULT_TRIGGER_PHRASES) -> None:
        self._trigger_phrases = tuple(phrase.lower() for phrase in trigger_phrases)

    @property
    def trigger_phrases(self) -> tuple[str, ...]:
        return self._trigger_phrases

    def resolve(self, text: str, catalogs: Sequence[Catalog]) -> Optional[ResolutionResult]:
        """Return the asset a message asks for, or ``None`` when it asks for none.

        The exact tier runs over every catalog before the fallback tier runs
        over any of them, so a precise match in a later catalog wins over a
        loose filename match in an earlier one.
        """

        if not is_asset_request(text, self._trigger_phrases):
            return None

        for matcher in (match_exact, match_fallback):
            for catalog in catalogs:
                entry = matcher(text, catalog)
                if entry is not None:
                    return self._build_result(text, entry, catalog.kind)
        return None

    @staticmethod
    def _build_result(
        text: str, entry: CatalogEntry, kind: CatalogKind
    ) -> ResolutionResult:
        variant = match_variant(text, entry.variants) if entry.has_variants else None
        return ResolutionResult(
            entry_key=entry.key,
            filename=entry.filename_for(variant),
            display_name=entry.display_name,
            description=entry.description,
            variant=variant,
            kind=kind,
            default_variant=entry.default_variant,
        )


__all__ = [
    "MIN_FALLBACK_TOKEN_LENGTH",
    "ResolutionResult",
    "Resolver",
    "is_asset_request",
    "match_entry",
    "match_exact",
    "match_fallback",
    "match_page_number",
    "match_variant",
]
