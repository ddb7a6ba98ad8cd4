"""Bounded, most-recent-first search history persisted to a JSON key-value file."""

from __future__ import annotations

import contextlib
import json
import logging
import os
from datetime import UTC, datetime
from json import JSONDecodeError
from pathlib import Path

from errors import StorageError
from models import HistoryEntry

SEARCH_HISTORY_PATH = os.getenv("SEARCH_HISTORY_PATH", "search_history.json")
HISTORY_KEY = "researchSearchHistory"
MAX_HISTORY_ENTRIES = 20

LOGGER = logging.getLogger(__name__)


class JsonFileStore:
    """String key-value store backed by a single JSON object on disk."""

    def __init__(self, path: str | Path = SEARCH_HISTORY_PATH) -> None:
        self.path = Path(path)

    def get(self, key: str) -> str | None:
        data = self._read_all()
        value = data.get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        try:
            data = self._read_all()
        except StorageError as exc:
            LOGGER.warning("Store %s unreadable, overwriting: %s", self.path, exc)
            data = {}
        data[key] = value
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as exc:
            with contextlib.suppress(OSError):
                tmp_path.unlink(missing_ok=True)
            raise StorageError(f"Could not write {self.path}: {exc}") from exc

    def _read_all(self) -> dict[str, object]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, JSONDecodeError, UnicodeDecodeError) as exc:
            raise StorageError(f"Could not read {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StorageError(f"Unexpected store shape in {self.path}: expected an object")
        return data


class SearchHistoryLog:
    """Past queries, newest first, capped at ``max_entries``.

    Storage failures never reach the caller: a bad read yields an empty log and
    a failed write is logged and otherwise ignored.
    """

    def __init__(
        self,
        store: JsonFileStore,
        key: str = HISTORY_KEY,
        max_entries: int = MAX_HISTORY_ENTRIES,
    ) -> None:
        self.store = store
        self.key = key
        self.max_entries = max_entries
        self._entries: list[HistoryEntry] = []

    @property
    def entries(self) -> tuple[HistoryEntry, ...]:
        return tuple(self._entries)

    def load(self) -> tuple[HistoryEntry, ...]:
        """Replace in-memory entries with the persisted log."""
        try:
            raw = self.store.get(self.key)
        except StorageError as exc:
            LOGGER.warning("History load: store unreadable, starting empty: %s", exc)
            raw = None

        self._entries = _decode_entries(raw)[: self.max_entries] if raw else []
        LOGGER.info("History load: entries=%s", len(self._entries))
        return self.entries

    def record(self, query: str) -> HistoryEntry:
        """Prepend ``query`` with the current UTC timestamp and persist."""
        entry = HistoryEntry(query=query, timestamp=datetime.now(UTC).isoformat())
        self._entries.insert(0, entry)
        del self._entries[self.max_entries :]
        self._save()
        return entry

    def _save(self) -> None:
        payload = json.dumps([{"query": e.query, "timestamp": e.timestamp} for e in self._entries])
        try:
            self.store.set(self.key, payload)
        except StorageError as exc:
            LOGGER.warning("History save failed (non-fatal): %s", exc)


def _decode_entries(raw: str) -> list[HistoryEntry]:
    try:
        data = json.loads(raw)
    except JSONDecodeError:
        LOGGER.warning("History load: persisted value is not JSON, starting empty")
        return []
    if not isinstance(data, list):
        LOGGER.warning("History load: persisted value is not a list, starting empty")
        return []

    entries: list[HistoryEntry] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        query = item.get("query")
        timestamp = item.get("timestamp")
        if isinstance(query, str) and isinstance(timestamp, str):
            entries.append(HistoryEntry(query=query, timestamp=timestamp))
    return entries
