"""Chat backend that answers part and schematic requests from a static catalog."""

from .resolver import (
    ResolutionResult,
    Resolver,
    is_asset_request,
    match_entry,
    match_variant,
)

__all__ = [
    "ResolutionResult",
    "Resolver",
    "is_asset_request",
    "match_entry",
    "match_variant",
]
