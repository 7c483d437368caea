"""Exception types shared by the crawler and the entry store."""

from __future__ import annotations

__all__ = ["ConfigurationError", "EntryAlreadyExistsError", "EntryNotFoundError"]


class ConfigurationError(RuntimeError):
    """Raised when crawler wiring cannot be resolved."""


class EntryAlreadyExistsError(ValueError):
    """Raised when an entry with the same source URL is already stored."""

    def __init__(self, source_url: str) -> None:
        super().__init__(f"Digest entry already exists for source URL: {source_url}")
        self.source_url = source_url


class EntryNotFoundError(LookupError):
    """Raised when no stored entry has the requested id."""

    def __init__(self, entry_id: int) -> None:
        super().__init__(f"Digest entry not found: {entry_id}")
        self.entry_id = entry_id
