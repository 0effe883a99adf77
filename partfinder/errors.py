"""Exception hierarchy shared by the catalog, asset and assistant layers."""

from __future__ import annotations


class PartsAssistantError(Exception):
    """Base class for all errors raised by the parts assistant."""


class CatalogLoadError(PartsAssistantError):
    """A catalog snapshot could not be read or parsed."""


class RemoteFetchError(PartsAssistantError):
    """A request to a remote origin failed or returned an unusable payload."""


class AssetNotFound(PartsAssistantError):
    """The requested asset is neither cached locally nor available remotely."""

    def __init__(self, filename: str, reason: str | None = None) -> None:
        self.filename = filename
        self.reason = reason
        message = f"Asset '{filename}' not found"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class AssistantRunFailed(PartsAssistantError):
    """The assistant run finished in a non-successful state."""


class AssistantTimeout(AssistantRunFailed):
    """The assistant run did not reach a terminal state before the deadline."""


class AssistantCancelled(AssistantRunFailed):
    """Polling for the assistant run was cancelled by the caller."""


__all__ = [
    "AssetNotFound",
    "AssistantCancelled",
    "AssistantRunFailed",
    "AssistantTimeout",
    "CatalogLoadError",
    "PartsAssistantError",
    "RemoteFetchError",
]
