from __future__ import annotations


class RegistryError(RuntimeError):
    """Base class for every error raised by the registry core."""


class StoreError(RegistryError):
    """Raised when a roster, course, attendance or daily log call fails."""


class LoadError(RegistryError):
    """A single session-load source failed and was replaced by an empty result."""

    def __init__(self, source: str, message: str | None = None) -> None:
        self.source = source
        super().__init__(message or f"Failed to load {source}.")


class SaveError(RegistryError):
    """Raised when any write of a save batch is rejected."""


class ValidationError(RegistryError, ValueError):
    """Raised for locally detectable mistakes, before any network call."""
