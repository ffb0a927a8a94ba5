"""Tests for the expiring cache."""

from __future__ import annotations

import json

import pytest

from travel_translate.core import cache as cache_module
from travel_translate.core.cache import TTLCache
from travel_translate.infra.storage import MemoryStore


def test_get_returns_value_until_ttl_then_evicts(store, clock) -> None:
    cache = TTLCache(store)
    assert cache.put("rates", {"eur": 1.1}, ttl_ms=1000) is True

    clock.advance_ms(1000)
    assert cache.get("rates") == {"eur": 1.1}

    clock.advance_ms(1)
    assert cache.get("rates") is None
    assert "cache:rates" not in store.list_keys()


def test_zero_ttl_is_valid_only_at_write_instant(store, clock) -> None:
    cache = TTLCache(store)
    cache.put("k", "v", ttl_ms=0)

    assert cache.get("k") == "v"
    clock.advance_ms(1)
    assert cache.get("k") is None


def test_put_overwrites_and_uses_default_ttl(store, clock) -> None:
    cache = TTLCache(store, default_ttl_ms=500)
    cache.put("k", "old")
    cache.put("k", "new")

    stored = json.loads(store.get("cache:k"))
    assert stored["data"] == "new"
    assert stored["ttl_ms"] == 500
    assert stored["stored_at"] == int(clock.now * 1000)


def test_negative_ttl_rejected(store) -> None:
    with pytest.raises(ValueError):
        TTLCache(store).put("k", "v", ttl_ms=-1)


def test_missing_key_returns_default(store) -> None:
    cache = TTLCache(store)
    assert cache.get("absent") is None
    assert cache.get("absent", "fallback") == "fallback"


def test_corrupt_entry_is_a_miss_and_removed(store) -> None:
    store.set("cache:bad", "{not json")
    store.set("cache:shape", json.dumps({"unexpected": 1}))
    cache = TTLCache(store)

    assert cache.get("bad") is None
    assert cache.get("shape") is None
    assert store.list_keys() == []


def test_unserializable_data_is_not_cached(store) -> None:
    cache = TTLCache(store)
    assert cache.put("k", object()) is False
    assert store.get("cache:k") is None


def test_invalidate_is_idempotent(store) -> None:
    cache = TTLCache(store)
    cache.put("k", 1)

    assert cache.invalidate("k") is True
    assert cache.invalidate("k") is True
    assert cache.invalidate("never-set") is True
    assert cache.get("k") is None


def test_invalidate_all_only_touches_cache_prefix() -> None:
    store = MemoryStore({"cache:x": "{}", "cache:y": "{}", "settings:z": "keep"})
    cache = TTLCache(store)

    assert cache.invalidate_all() is True
    assert store.list_keys() == ["settings:z"]


def test_storage_failures_never_raise(failing_store) -> None:
    cache = TTLCache(failing_store)

    assert cache.get("k") is None
    assert cache.put("k", "v") is False
    assert cache.invalidate("k") is False
    assert cache.invalidate_all() is False


def test_fetch_with_cache_memoizes_until_expiry(store, clock) -> None:
    cache = TTLCache(store)
    calls = []

    def fetch(resource: str):
        calls.append(resource)
        return {"resource": resource, "n": len(calls)}

    first = cache.fetch_with_cache("k", fetch, ttl_ms=1000)
    second = cache.fetch_with_cache("k", fetch, ttl_ms=1000)
    assert first == second == {"resource": "k", "n": 1}
    assert calls == ["k"]

    clock.advance_ms(1001)
    third = cache.fetch_with_cache("k", fetch, ttl_ms=1000)
    assert third["n"] == 2
    assert len(calls) == 2


def test_fetch_with_cache_uses_explicit_key(store) -> None:
    cache = TTLCache(store)
    cache.fetch_with_cache("https://example.com/a", lambda _: [1], cache_key="short")

    assert store.get("cache:short") is not None
    assert store.get("cache:https://example.com/a") is None


def test_fetch_with_cache_honours_empty_explicit_key(store) -> None:
    cache = TTLCache(store)
    cache.fetch_with_cache("https://example.com/a", lambda _: [1], cache_key="")

    assert store.get("cache:") is not None
    assert store.get("cache:https://example.com/a") is None


def test_falsy_cached_value_is_a_hit(store) -> None:
    cache = TTLCache(store)
    calls = []

    def fetch(_: str):
        calls.append(1)
        return []

    cache.fetch_with_cache("empty", fetch)
    cache.fetch_with_cache("empty", fetch)
    assert calls == [1]


def test_fetch_failure_propagates_and_caches_nothing(store) -> None:
    cache = TTLCache(store)

    def fetch(_: str):
        raise ConnectionError("offline")

    with pytest.raises(ConnectionError):
        cache.fetch_with_cache("k", fetch)
    assert store.list_keys() == []


def test_fetch_with_cache_defaults_to_http_json(store, monkeypatch) -> None:
    requested = []

    class Response:
        def raise_for_status(self) -> None:
            pass

        def json(self):
            return {"ok": True}

    def fake_get(url, timeout):
        requested.append(url)
        return Response()

    monkeypatch.setattr(cache_module.requests, "get", fake_get)
    cache = TTLCache(store)

    assert cache.fetch_with_cache("https://example.com/data.json") == {"ok": True}
    assert cache.fetch_with_cache("https://example.com/data.json") == {"ok": True}
    assert requested == ["https://example.com/data.json"]


def test_fetch_still_returns_data_when_cache_write_fails(failing_store) -> None:
    cache = TTLCache(failing_store)
    assert cache.fetch_with_cache("k", lambda _: "fresh") == "fresh"
