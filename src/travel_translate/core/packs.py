"""Offline language pack management and local phrase translation."""

from __future__ import annotations

import logging
import math
import threading
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, NamedTuple, Optional, Protocol, Tuple

import requests
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from ..infra.storage import (
    CorruptDataError,
    KeyValueStore,
    PackFileStore,
    StorageError,
    free_space_mb,
)
from .languages import builtin_phrases
from .models import TranslationKind, TranslationResult

logger = logging.getLogger(__name__)

OFFLINE_MODE_KEY = "offline:mode"
INSTALLED_PACKS_KEY = "offline:packs"

UNAVAILABLE_MISSING_PACKS = "Translation unavailable. Language packs not completely downloaded."
UNAVAILABLE_BAD_DATA = "Error accessing offline translation data. Try reinstalling language packs."


class Quality(str, Enum):
    BASIC = "basic"
    STANDARD = "standard"
    PREMIUM = "premium"


class TierSpec(NamedTuple):
    size_mb: int
    features: Tuple[str, ...]


_BASIC_FEATURES = ("text", "common-phrases")
_STANDARD_FEATURES = _BASIC_FEATURES + ("speech-recognition", "basic-ocr")
_PREMIUM_FEATURES = _STANDARD_FEATURES + ("advanced-ocr", "context-aware")

QUALITY_TIERS: Dict[Quality, TierSpec] = {
    Quality.BASIC: TierSpec(5, _BASIC_FEATURES),
    Quality.STANDARD: TierSpec(15, _STANDARD_FEATURES),
    Quality.PREMIUM: TierSpec(30, _PREMIUM_FEATURES),
}


class PackError(Exception):
    """Base exception for language pack operations."""


class InsufficientStorageError(PackError):
    """Raised when the device lacks room for the requested pack tier."""

    def __init__(self, required_mb: int, available_mb: float) -> None:
        self.required_mb = required_mb
        self.available_mb = available_mb
        super().__init__(
            f"Not enough storage space. Requires {required_mb}MB "
            f"but only {math.floor(available_mb)}MB available."
        )


class DownloadCancelledError(PackError):
    """Raised when a download is cancelled before the pack is written."""


class PackDownloadError(PackError):
    """Raised when pack content cannot be acquired."""


class Phrase(BaseModel):
    id: str
    text: str


class LanguagePack(BaseModel):
    """Installed-pack index record."""

    code: str
    name: str
    quality: Quality
    features: List[str]
    size_mb: int = Field(ge=0)
    installed_at: datetime


class PackData(BaseModel):
    """Blob persisted per language: metadata plus the phrase table."""

    code: str
    name: str
    quality: Quality
    features: List[str]
    phrases: List[Phrase]
    installed_at: datetime

    def find_by_text(self, text: str) -> Optional[Phrase]:
        needle = normalize(text)
        for phrase in self.phrases:
            if normalize(phrase.text) == needle:
                return phrase
        return None

    def find_by_id(self, phrase_id: str) -> Optional[Phrase]:
        for phrase in self.phrases:
            if phrase.id == phrase_id:
                return phrase
        return None


_INDEX_ADAPTER = TypeAdapter(List[LanguagePack])


def normalize(text: str) -> str:
    return text.strip().casefold()


def placeholder_text(text: str, target: str) -> str:
    return f"[Offline {target.upper()} Translation] {text}"


class PackSource(Protocol):
    """Where pack phrase tables come from."""

    def fetch(self, code: str, cancel: threading.Event) -> List[Phrase]:
        ...


class BundledPackSource:
    """Serve the built-in phrase tables after a simulated download delay."""

    def __init__(self, delay_s: float = 2.0) -> None:
        self._delay_s = delay_s

    def fetch(self, code: str, cancel: threading.Event) -> List[Phrase]:
        if self._delay_s and cancel.wait(self._delay_s):
            raise DownloadCancelledError(f"Download of {code!r} cancelled")
        return [Phrase(**p) for p in builtin_phrases(code)]


class HttpPackSource:
    """Fetch ``<base_url>/<code>.json`` holding a list of ``{id, text}`` phrases."""

    def __init__(self, base_url: str, timeout_s: float = 30.0) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s

    def fetch(self, code: str, cancel: threading.Event) -> List[Phrase]:
        url = f"{self._base_url}/{code}.json"
        try:
            response = requests.get(url, timeout=self._timeout_s)
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise PackDownloadError(f"Failed to download pack {code!r} from {url}: {exc}") from exc
        if cancel.is_set():
            raise DownloadCancelledError(f"Download of {code!r} cancelled")
        phrases = payload.get("phrases", payload) if isinstance(payload, dict) else payload
        try:
            return TypeAdapter(List[Phrase]).validate_python(phrases)
        except ValidationError as exc:
            raise PackDownloadError(f"Malformed pack data for {code!r}: {exc}") from exc


class OfflinePackManager:
    """Own the installed-pack index, pack blobs and the offline-mode flag.

    The index and flag live in the shared key-value store under
    ``offline:*`` keys; phrase tables live in ``pack_files``. Mutations of
    the index are serialized with a lock because download and delete
    rewrite the whole list.
    """

    def __init__(
        self,
        store: KeyValueStore,
        pack_files: PackFileStore,
        source: Optional[PackSource] = None,
        free_space: Optional[Callable[[], float]] = None,
    ) -> None:
        self._store = store
        self._files = pack_files
        self._source = source or BundledPackSource()
        self._free_space = free_space or (lambda: free_space_mb(pack_files.directory))
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Offline mode flag
    # ------------------------------------------------------------------
    def is_offline_mode_enabled(self) -> bool:
        try:
            return self._store.get(OFFLINE_MODE_KEY) == "true"
        except StorageError as exc:
            logger.error("Failed to check offline mode: %s", exc)
            return False

    def set_offline_mode(self, enabled: bool) -> bool:
        with self._lock:
            try:
                self._store.set(OFFLINE_MODE_KEY, "true" if enabled else "false")
            except StorageError as exc:
                logger.error("Failed to set offline mode: %s", exc)
                return False
        logger.info("Offline mode %s", "enabled" if enabled else "disabled")
        return True

    # ------------------------------------------------------------------
    # Installed-pack index
    # ------------------------------------------------------------------
    def _read_index(self) -> List[LanguagePack]:
        """Load the index; raises StorageError, evicts a corrupt record."""
        raw = self._store.get(INSTALLED_PACKS_KEY)
        if raw is None:
            return []
        try:
            return _INDEX_ADAPTER.validate_json(raw)
        except ValidationError as exc:
            logger.warning("Discarding corrupt language pack index: %s", exc)
            self._store.delete(INSTALLED_PACKS_KEY)
            return []

    def _write_index(self, packs: List[LanguagePack]) -> None:
        self._store.set(INSTALLED_PACKS_KEY, _INDEX_ADAPTER.dump_json(packs).decode("utf-8"))

    def get_downloaded_languages(self) -> List[LanguagePack]:
        try:
            return self._read_index()
        except StorageError as exc:
            logger.error("Failed to get downloaded languages: %s", exc)
            return []

    def is_language_downloaded(self, code: str) -> bool:
        return any(pack.code == code for pack in self.get_downloaded_languages())

    def get_total_storage_used(self) -> int:
        return sum(pack.size_mb for pack in self.get_downloaded_languages())

    # ------------------------------------------------------------------
    # Install / remove
    # ------------------------------------------------------------------
    def download_language_pack(
        self,
        code: str,
        name: str,
        quality: str = Quality.STANDARD.value,
        cancel: Optional[threading.Event] = None,
    ) -> bool:
        """Install (or replace) the pack for ``code``.

        Raises:
            ValueError: ``code`` is not a language code or ``quality`` is not a known tier.
            InsufficientStorageError: free space is below the tier size.
            DownloadCancelledError: ``cancel`` was set before the pack was written.
            PackDownloadError: pack content could not be acquired.
            StorageError: the pack or index could not be persisted.
        """
        self._files.path_for(code)
        tier_quality = Quality(quality)
        tier = QUALITY_TIERS[tier_quality]
        cancel = cancel or threading.Event()

        available_mb = self._free_space()
        if available_mb < tier.size_mb:
            logger.warning(
                "Cannot download %s pack %r: requires %sMB, %.1fMB free",
                tier_quality.value, code, tier.size_mb, available_mb,
            )
            raise InsufficientStorageError(tier.size_mb, available_mb)

        self._files.ensure_directory()

        logger.info("Downloading %s language pack %r (%sMB)", tier_quality.value, code, tier.size_mb)
        phrases = self._source.fetch(code, cancel)
        if cancel.is_set():
            raise DownloadCancelledError(f"Download of {code!r} cancelled")

        installed_at = datetime.now(timezone.utc)
        data = PackData(
            code=code,
            name=name,
            quality=tier_quality,
            features=list(tier.features),
            phrases=phrases,
            installed_at=installed_at,
        )
        record = LanguagePack(
            code=code,
            name=name,
            quality=tier_quality,
            features=list(tier.features),
            size_mb=tier.size_mb,
            installed_at=installed_at,
        )

        with self._lock:
            packs = [pack for pack in self._read_index() if pack.code != code]
            packs.append(record)
            previous = self._previous_blob(code)
            self._files.write(code, data.model_dump_json())
            try:
                self._write_index(packs)
            except StorageError:
                self._restore_blob(code, previous)
                raise

        logger.info("Installed language pack %r (%s)", code, tier_quality.value)
        return True

    def _previous_blob(self, code: str) -> Optional[str]:
        if not self._files.exists(code):
            return None
        try:
            return self._files.read(code)
        except StorageError as exc:
            logger.warning("Cannot keep previous pack file for %r: %s", code, exc)
            return None

    def _restore_blob(self, code: str, previous: Optional[str]) -> None:
        """Put back the blob that matches the unchanged index record."""
        try:
            if previous is None:
                self._files.delete(code)
            else:
                self._files.write(code, previous)
        except StorageError as exc:
            logger.error("Failed to restore pack file for %r: %s", code, exc)

    def delete_language_pack(self, code: str) -> bool:
        """Remove the blob and index record for ``code``; missing parts are skipped.

        Raises ValueError when ``code`` is not a language code.
        """
        with self._lock:
            self._files.delete(code)
            packs = self._read_index()
            remaining = [pack for pack in packs if pack.code != code]
            if len(remaining) != len(packs):
                self._write_index(remaining)
        logger.info("Deleted language pack %r", code)
        return True

    # ------------------------------------------------------------------
    # Offline translation
    # ------------------------------------------------------------------
    def _load_pack(self, code: str) -> PackData:
        return PackData.model_validate_json(self._files.read(code))

    def _evict_pack(self, code: str) -> None:
        try:
            self.delete_language_pack(code)
        except StorageError as exc:
            logger.error("Failed to evict corrupt language pack %r: %s", code, exc)

    def translate_text_offline(self, text: str, source: str, target: str) -> TranslationResult:
        """Translate with installed packs; never raises.

        Returns an ``OFFLINE`` result on an exact phrase match, a
        ``PLACEHOLDER`` when nothing matches, and ``UNAVAILABLE`` when either
        pack is missing or unreadable. A pack whose blob cannot be decoded
        is uninstalled so it is not reported as downloaded again.
        """
        if not (self.is_language_downloaded(source) and self.is_language_downloaded(target)):
            return TranslationResult.unavailable(UNAVAILABLE_MISSING_PACKS, source, target)

        loaded: Dict[str, PackData] = {}
        for code in (source, target):
            try:
                loaded[code] = self._load_pack(code)
            except (CorruptDataError, ValidationError) as exc:
                logger.warning("Evicting corrupt language pack %r: %s", code, exc)
                self._evict_pack(code)
                return TranslationResult.unavailable(UNAVAILABLE_BAD_DATA, source, target)
            except (StorageError, ValueError) as exc:
                logger.error("Error reading language files for %s->%s: %s", source, target, exc)
                return TranslationResult.unavailable(UNAVAILABLE_BAD_DATA, source, target)
        source_pack, target_pack = loaded[source], loaded[target]

        match = source_pack.find_by_text(text)
        if match is not None:
            translated = target_pack.find_by_id(match.id)
            if translated is not None:
                return TranslationResult(
                    text=translated.text,
                    kind=TranslationKind.OFFLINE,
                    source_language=source,
                    target_language=target,
                )

        return TranslationResult(
            text=placeholder_text(text, target),
            kind=TranslationKind.PLACEHOLDER,
            source_language=source,
            target_language=target,
            reason="No offline phrase matched the input text.",
        )
