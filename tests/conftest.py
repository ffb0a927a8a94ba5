"""Shared pytest fixtures: in-memory stores, failing stores and a controllable clock."""

from __future__ import annotations

import time
from pathlib import Path
from typing import Iterable, List, Optional

import pytest

from travel_translate.infra.storage import MemoryStore, PackFileStore, StorageError


class FailingStore:
    """Store whose every operation raises StorageError."""

    def get(self, key: str) -> Optional[str]:
        raise StorageError("disk unavailable")

    def set(self, key: str, value: str) -> None:
        raise StorageError("disk unavailable")

    def delete(self, key: str) -> None:
        raise StorageError("disk unavailable")

    def list_keys(self) -> List[str]:
        raise StorageError("disk unavailable")

    def delete_many(self, keys: Iterable[str]) -> None:
        raise StorageError("disk unavailable")


class Clock:
    def __init__(self, start: float) -> None:
        self.now = start

    def advance_ms(self, ms: int) -> None:
        self.now += ms / 1000.0


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def failing_store() -> FailingStore:
    return FailingStore()


@pytest.fixture
def pack_files(tmp_path: Path) -> PackFileStore:
    return PackFileStore(tmp_path / "languages")


@pytest.fixture
def clock(monkeypatch) -> Clock:
    fake = Clock(1_700_000_000.0)
    monkeypatch.setattr(time, "time", lambda: fake.now)
    return fake
