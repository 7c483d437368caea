"""JSON file backed storage for digest entries."""

from __future__ import annotations

import json
import logging
import threading
from datetime import UTC, datetime
from pathlib import Path
from typing import Iterable, List, Tuple

from pydantic import ValidationError

from minddigest.blobstore import ensure_blob_root
from minddigest.errors import EntryAlreadyExistsError, EntryNotFoundError
from minddigest.models import DigestEntry, StoredEntry

__all__ = ["DigestEntryStore", "ENTRIES_FILENAME"]

logger = logging.getLogger(__name__)

ENTRIES_FILENAME = "digest_entries.json"


class DigestEntryStore:
    """Stores digest entries in a single JSON document under the blob root.

    Source URLs are unique: saving an entry whose ``source_url`` is already
    stored raises :class:`EntryAlreadyExistsError`.
    """

    def __init__(self, root: Path | str | None = None) -> None:
        self._root = ensure_blob_root(root)
        self._path = self._root / ENTRIES_FILENAME
        self._lock = threading.RLock()

    @property
    def path(self) -> Path:
        return self._path

    def list_all(self) -> List[StoredEntry]:
        with self._lock:
            return self._load()[1]

    def get(self, entry_id: int) -> StoredEntry:
        with self._lock:
            for entry in self._load()[1]:
                if entry.id == entry_id:
                    return entry
        raise EntryNotFoundError(entry_id)

    def find_by_source_url(self, source_url: str) -> StoredEntry | None:
        with self._lock:
            return next(
                (entry for entry in self._load()[1] if entry.source_url == source_url), None
            )

    def save(self, entry: DigestEntry) -> StoredEntry:
        with self._lock:
            next_id, entries = self._load()
            if any(existing.source_url == entry.source_url for existing in entries):
                logger.debug("Refusing duplicate entry for %s", entry.source_url)
                raise EntryAlreadyExistsError(entry.source_url)

            now = datetime.now(UTC)
            stored = StoredEntry(**entry.model_dump(), id=next_id, created=now, updated=now)
            entries.append(stored)
            self._write(next_id + 1, entries)
            return stored

    def save_all(self, entries: Iterable[DigestEntry]) -> Tuple[List[StoredEntry], List[DigestEntry]]:
        """Save every entry, returning ``(saved, duplicates)``."""

        saved: List[StoredEntry] = []
        duplicates: List[DigestEntry] = []
        for entry in entries:
            try:
                saved.append(self.save(entry))
            except EntryAlreadyExistsError:
                duplicates.append(entry)
        return saved, duplicates

    def update(self, entry_id: int, entry: DigestEntry) -> StoredEntry:
        with self._lock:
            next_id, entries = self._load()
            for index, existing in enumerate(entries):
                if existing.id != entry_id:
                    continue
                updated = StoredEntry(
                    **entry.model_dump(),
                    id=entry_id,
                    created=existing.created,
                    updated=datetime.now(UTC),
                )
                entries[index] = updated
                self._write(next_id, entries)
                return updated
        raise EntryNotFoundError(entry_id)

    def delete(self, entry_id: int) -> None:
        with self._lock:
            next_id, entries = self._load()
            remaining = [entry for entry in entries if entry.id != entry_id]
            if len(remaining) == len(entries):
                raise EntryNotFoundError(entry_id)
            self._write(next_id, remaining)

    def _load(self) -> Tuple[int, List[StoredEntry]]:
        if not self._path.exists():
            return 1, []

        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValueError(f"Entry store is corrupt: {self._path}") from exc

        try:
            entries = [StoredEntry.model_validate(item) for item in data.get("entries", [])]
        except ValidationError as exc:
            raise ValueError(f"Entry store is invalid: {self._path}\n{exc}") from exc

        next_id = int(data.get("next_id") or max((entry.id for entry in entries), default=0) + 1)
        return next_id, entries

    def _write(self, next_id: int, entries: List[StoredEntry]) -> None:
        payload = {
            "next_id": next_id,
            "entries": [entry.model_dump(mode="json") for entry in entries],
        }
        tmp_path = self._path.with_suffix(".tmp")
        tmp_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        tmp_path.replace(self._path)
