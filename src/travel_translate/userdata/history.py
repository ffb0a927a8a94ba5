"""Bounded, newest-first translation history."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from ..infra.storage import KeyValueStore, StorageError
from .settings import SettingsStore

logger = logging.getLogger(__name__)

HISTORY_KEY = "history:entries"
MAX_HISTORY_ITEMS = 100


class HistoryEntry(BaseModel):
    source_text: str
    translated_text: str
    source_language: str
    target_language: str
    kind: str = "online"
    context: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


_ENTRIES = TypeAdapter(List[HistoryEntry])


class HistoryStore:
    def __init__(
        self,
        store: KeyValueStore,
        settings: SettingsStore,
        max_items: int = MAX_HISTORY_ITEMS,
    ) -> None:
        self._store = store
        self._settings = settings
        self._max_items = max_items
        self._lock = threading.RLock()

    def _read(self) -> List[HistoryEntry]:
        try:
            raw = self._store.get(HISTORY_KEY)
        except StorageError as exc:
            logger.error("Failed to load history: %s", exc)
            return []
        if raw is None:
            return []
        try:
            return _ENTRIES.validate_json(raw)
        except ValidationError as exc:
            logger.warning("Discarding corrupt history: %s", exc)
            return []

    def _write(self, entries: List[HistoryEntry]) -> None:
        self._store.set(HISTORY_KEY, _ENTRIES.dump_json(entries).decode("utf-8"))

    def get_history(self) -> List[HistoryEntry]:
        if not self._settings.get_settings().save_history:
            return []
        return self._read()

    def save_to_history(self, entry: HistoryEntry) -> None:
        if not self._settings.get_settings().save_history:
            return
        with self._lock:
            entries = [entry] + self._read()
            try:
                self._write(entries[: self._max_items])
            except StorageError as exc:
                logger.error("Failed to save to history: %s", exc)

    def clear_history(self) -> None:
        with self._lock:
            try:
                self._store.delete(HISTORY_KEY)
            except StorageError as exc:
                logger.error("Failed to clear history: %s", exc)

    def delete_history_item(self, timestamp: datetime) -> None:
        with self._lock:
            entries = [e for e in self._read() if e.timestamp != timestamp]
            try:
                self._write(entries)
            except StorageError as exc:
                logger.error("Failed to delete history item: %s", exc)
