"""Expiring key-value cache on top of the shared store."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import asdict, dataclass
from typing import Any, Callable, Optional

import requests

from ..infra.storage import KeyValueStore, StorageError

logger = logging.getLogger(__name__)

DEFAULT_TTL_MS = 60 * 60 * 1000
DEFAULT_PREFIX = "cache:"

_MISS = object()


def _now_ms() -> int:
    return int(time.time() * 1000)


def fetch_json(url: str, timeout: float = 10.0) -> Any:
    """Default fetcher: GET ``url`` and decode the JSON body."""
    response = requests.get(url, timeout=timeout)
    response.raise_for_status()
    return response.json()


@dataclass
class CacheEntry:
    data: Any
    stored_at: int
    ttl_ms: int

    def is_expired(self, now_ms: int) -> bool:
        return now_ms - self.stored_at > self.ttl_ms


class TTLCache:
    """Cache entries with a time-to-live, evicting lazily on read.

    Entries are stored as JSON under ``prefix + key``. Storage faults never
    reach the caller: reads degrade to a miss and writes report ``False``.
    There is no background sweep; an expired entry is removed the first
    time it is read.
    """

    def __init__(
        self,
        store: KeyValueStore,
        prefix: str = DEFAULT_PREFIX,
        default_ttl_ms: int = DEFAULT_TTL_MS,
    ) -> None:
        if not prefix:
            raise ValueError("Cache prefix must not be empty")
        self._store = store
        self._prefix = prefix
        self._default_ttl_ms = default_ttl_ms

    @property
    def prefix(self) -> str:
        return self._prefix

    def _storage_key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def _drop(self, storage_key: str) -> None:
        try:
            self._store.delete(storage_key)
        except StorageError as exc:
            logger.error("Cache eviction failed for %s: %s", storage_key, exc)

    def get(self, key: str, default: Any = None) -> Any:
        """Return cached data for ``key`` or ``default`` on a miss."""
        storage_key = self._storage_key(key)
        try:
            raw = self._store.get(storage_key)
        except StorageError as exc:
            logger.error("Cache retrieval error for %s: %s", key, exc)
            return default
        if raw is None:
            return default

        try:
            entry = CacheEntry(**json.loads(raw))
            expired = entry.is_expired(_now_ms())
        except (TypeError, ValueError) as exc:
            logger.warning("Evicting corrupt cache entry %s: %s", key, exc)
            self._drop(storage_key)
            return default

        if expired:
            logger.debug("Cache entry %s expired", key)
            self._drop(storage_key)
            return default
        return entry.data

    def put(self, key: str, data: Any, ttl_ms: Optional[int] = None) -> bool:
        """Store ``data`` under ``key``; returns False if the write failed."""
        ttl = self._default_ttl_ms if ttl_ms is None else ttl_ms
        if ttl < 0:
            raise ValueError(f"ttl_ms must be non-negative, got {ttl}")
        entry = CacheEntry(data=data, stored_at=_now_ms(), ttl_ms=ttl)
        try:
            payload = json.dumps(asdict(entry), ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            logger.error("Cannot serialize cache entry %s: %s", key, exc)
            return False
        try:
            self._store.set(self._storage_key(key), payload)
        except StorageError as exc:
            logger.error("Caching error for %s: %s", key, exc)
            return False
        return True

    def invalidate(self, key: str) -> bool:
        try:
            self._store.delete(self._storage_key(key))
        except StorageError as exc:
            logger.error("Cache clearing error for %s: %s", key, exc)
            return False
        return True

    def invalidate_all(self) -> bool:
        """Remove every entry under this cache's prefix, leaving other keys alone."""
        try:
            keys = [k for k in self._store.list_keys() if k.startswith(self._prefix)]
            if keys:
                self._store.delete_many(keys)
        except StorageError as exc:
            logger.error("Cache clearing error: %s", exc)
            return False
        return True

    def fetch_with_cache(
        self,
        resource: str,
        fetch_fn: Optional[Callable[[str], Any]] = None,
        cache_key: Optional[str] = None,
        ttl_ms: Optional[int] = None,
    ) -> Any:
        """Return cached data for ``resource``, fetching and caching on a miss.

        Exceptions raised by ``fetch_fn`` propagate and nothing is cached.
        """
        key = resource if cache_key is None else cache_key
        cached = self.get(key, _MISS)
        if cached is not _MISS:
            logger.debug("Cache hit for %s", key)
            return cached

        logger.debug("Cache miss for %s, fetching", key)
        data = (fetch_fn or fetch_json)(resource)
        self.put(key, data, ttl_ms)
        return data
