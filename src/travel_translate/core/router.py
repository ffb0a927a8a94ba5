"""Route translation requests between offline packs and the online translator."""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Union

import requests

from ..userdata.history import HistoryEntry, HistoryStore
from .cache import TTLCache
from .languages import SUPPORTED_LANGUAGES, detect_language, language_name
from .models import TranslationKind, TranslationResult
from .packs import OfflinePackManager
from .translator import TranslationError, Translator

logger = logging.getLogger(__name__)


def missing_packs_message(missing: List[str]) -> str:
    plural = "s" if len(missing) > 1 else ""
    return (
        f"Unable to translate - missing offline language pack{plural} for "
        f"{' and '.join(missing)}. Please download the required language packs "
        "or connect to the internet."
    )


class TranslationService:
    """Serve translations from packs when offline, otherwise from the online translator.

    Routing order:

    1. Offline mode on, or no connectivity, and both packs installed:
       translate with the packs (even if the network is up).
    2. Otherwise, if connected: use the online translator. Results are
       memoized in the TTL cache when one is attached.
    3. Otherwise: an ``UNAVAILABLE`` result naming the missing packs.
    """

    def __init__(
        self,
        packs: OfflinePackManager,
        translator: Translator,
        is_connected: Callable[[], bool],
        cache: Optional[TTLCache] = None,
        history: Optional[HistoryStore] = None,
    ) -> None:
        self._packs = packs
        self._translator = translator
        self._is_connected = is_connected
        self._cache = cache
        self._history = history

    def translate(
        self,
        text: str,
        source: str,
        target: str,
        context: Optional[str] = None,
    ) -> TranslationResult:
        connected = self._is_connected()
        offline_mode = self._packs.is_offline_mode_enabled()

        if offline_mode or not connected:
            source_ready = self._packs.is_language_downloaded(source)
            target_ready = self._packs.is_language_downloaded(target)
            if source_ready and target_ready:
                logger.info("Using offline translation (network connected: %s)", connected)
                result = self._packs.translate_text_offline(text, source, target)
                self._record(text, result, context)
                return result

            if not connected:
                missing = [
                    language_name(code)
                    for code, ready in ((source, source_ready), (target, target_ready))
                    if not ready
                ]
                logger.warning("Cannot translate offline - missing language pack(s): %s", ", ".join(missing))
                return TranslationResult.unavailable(missing_packs_message(missing), source, target)

            logger.info("Offline mode is on but packs for %s->%s are missing; using online service", source, target)

        result = self._translate_online(text, source, target, context)
        self._record(text, result, context)
        return result

    def _translate_online(
        self, text: str, source: str, target: str, context: Optional[str]
    ) -> TranslationResult:
        logger.info("Using online translation service for %s to %s", source, target)

        def fetch(_: str) -> str:
            return self._translator.translate(text, source, target, context)

        try:
            if self._cache is not None:
                key = f"translate:{source}:{target}:{context or ''}:{text}"
                translated = self._cache.fetch_with_cache(key, fetch)
            else:
                translated = fetch(text)
        except (TranslationError, requests.RequestException) as exc:
            logger.error("Translation error: %s", exc)
            return TranslationResult.unavailable(
                f"Translation failed: {exc}. Please try again later.", source, target
            )

        return TranslationResult(
            text=translated,
            kind=TranslationKind.ONLINE,
            source_language=source,
            target_language=target,
        )

    def _record(self, text: str, result: TranslationResult, context: Optional[str]) -> None:
        if self._history is None or not result.ok:
            return
        self._history.save_to_history(
            HistoryEntry(
                source_text=text,
                translated_text=result.text,
                source_language=result.source_language,
                target_language=result.target_language,
                kind=result.kind.value,
                context=context,
            )
        )

    def detect_language(self, text: str) -> str:
        return detect_language(text)

    def supported_languages(self) -> List[Dict[str, Union[str, bool]]]:
        """Supported languages; annotated with ``is_downloaded`` in offline mode."""
        languages: List[Dict[str, Union[str, bool]]] = [
            {"code": code, "name": name} for code, name in SUPPORTED_LANGUAGES.items()
        ]
        if self._packs.is_offline_mode_enabled():
            installed = {pack.code for pack in self._packs.get_downloaded_languages()}
            for language in languages:
                language["is_downloaded"] = language["code"] in installed
        return languages
