"""Durable key-value and pack-file storage adapters."""

from __future__ import annotations

import json
import logging
import os
import re
import shutil
import threading
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol

logger = logging.getLogger(__name__)

_BYTES_PER_MB = 1024 * 1024

# ISO 639 language code with an optional region or script subtag ("pt-BR").
LANGUAGE_CODE_RE = re.compile(r"^[A-Za-z]{2,3}(-[A-Za-z0-9]+)?$")


class StorageError(Exception):
    """Raised when the backing store cannot be read or written."""


class CorruptDataError(StorageError):
    """Raised when stored bytes were read but cannot be decoded."""


class KeyValueStore(Protocol):
    """String-keyed store shared by the cache, pack manager and user data."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...

    def list_keys(self) -> List[str]:
        ...

    def delete_many(self, keys: Iterable[str]) -> None:
        ...


class MemoryStore:
    """In-process store, mainly for tests and ephemeral sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def list_keys(self) -> List[str]:
        with self._lock:
            return list(self._data)

    def delete_many(self, keys: Iterable[str]) -> None:
        with self._lock:
            for key in keys:
                self._data.pop(key, None)


class JsonFileStore:
    """Persist the whole key space as a single JSON object on disk.

    Writes go to a sibling temp file which then replaces the target, so a
    crash mid-write leaves the previous snapshot intact. An unreadable or
    corrupt file is logged and treated as empty; the next write overwrites it.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()
        self._data: Optional[Dict[str, str]] = None

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> Dict[str, str]:
        if self._data is not None:
            return self._data
        data: Dict[str, str] = {}
        if self._path.exists():
            try:
                raw = json.loads(self._path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                logger.warning("Ignoring unreadable store file %s: %s", self._path, exc)
            else:
                if isinstance(raw, dict):
                    data = {str(k): v for k, v in raw.items() if isinstance(v, str)}
                else:
                    logger.warning("Ignoring store file %s: top level is not an object", self._path)
        self._data = data
        return data

    def _flush(self, data: Dict[str, str]) -> None:
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as exc:
            raise StorageError(f"Cannot write store file {self._path}: {exc}") from exc

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = dict(self._load())
            data[key] = value
            self._flush(data)
            self._data = data

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._load()
            if key not in data:
                return
            data = {k: v for k, v in data.items() if k != key}
            self._flush(data)
            self._data = data

    def list_keys(self) -> List[str]:
        with self._lock:
            return list(self._load())

    def delete_many(self, keys: Iterable[str]) -> None:
        doomed = set(keys)
        with self._lock:
            data = self._load()
            if not doomed.intersection(data):
                return
            data = {k: v for k, v in data.items() if k not in doomed}
            self._flush(data)
            self._data = data


class PackFileStore:
    """Directory of ``<code>.json`` blobs holding downloaded pack data."""

    def __init__(self, directory: Path) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, code: str) -> Path:
        """Blob path for ``code``; raises ValueError unless it is a language code."""
        if not LANGUAGE_CODE_RE.match(code):
            raise ValueError(f"Invalid language code: {code!r}")
        return self._directory / f"{code}.json"

    def ensure_directory(self) -> None:
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"Cannot create pack directory {self._directory}: {exc}") from exc

    def exists(self, code: str) -> bool:
        return self.path_for(code).is_file()

    def write(self, code: str, text: str) -> None:
        try:
            self.path_for(code).write_text(text, encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Cannot write pack file for {code!r}: {exc}") from exc

    def read(self, code: str) -> str:
        try:
            return self.path_for(code).read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise CorruptDataError(f"Pack file for {code!r} is not valid UTF-8: {exc}") from exc
        except OSError as exc:
            raise StorageError(f"Cannot read pack file for {code!r}: {exc}") from exc

    def delete(self, code: str) -> bool:
        path = self.path_for(code)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise StorageError(f"Cannot delete pack file for {code!r}: {exc}") from exc
        return True


def free_space_mb(path: Path) -> float:
    """Return free space in MB on the filesystem holding ``path``.

    ``path`` need not exist yet; the nearest existing ancestor is measured.
    """
    probe = Path(path).expanduser().absolute()
    while not probe.exists() and probe != probe.parent:
        probe = probe.parent
    try:
        usage = shutil.disk_usage(probe)
    except OSError as exc:
        raise StorageError(f"Cannot query free space for {probe}: {exc}") from exc
    return usage.free / _BYTES_PER_MB
