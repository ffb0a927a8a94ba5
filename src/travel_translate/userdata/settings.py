"""User preferences persisted in the shared store."""

from __future__ import annotations

import base64
import logging
import threading
from typing import Any

from pydantic import BaseModel, ValidationError

from ..infra.storage import KeyValueStore, StorageError

logger = logging.getLogger(__name__)

SETTINGS_KEY = "settings:user"
LANGUAGE_PREFERENCES_KEY = "settings:languages"
FIRST_LAUNCH_KEY = "settings:launched"
API_KEY_KEY = "settings:api_key"


class UserSettings(BaseModel):
    save_history: bool = True
    auto_translate: bool = False
    dark_mode: bool = False
    use_free_api: bool = True


class LanguagePreferences(BaseModel):
    source_language: str = "en"
    target_language: str = "es"
    source_language_name: str = "English"
    target_language_name: str = "Spanish"


class SettingsStore:
    """Read and update user settings and language preferences.

    Reads fall back to defaults on storage or parse errors; updates raise
    ``StorageError`` so the caller can report that nothing was saved.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        self._lock = threading.RLock()

    def _load(self, key: str, model: type[BaseModel]) -> Any:
        try:
            raw = self._store.get(key)
        except StorageError as exc:
            logger.error("Failed to load %s: %s", key, exc)
            return model()
        if raw is None:
            return model()
        try:
            return model.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Ignoring corrupt %s: %s", key, exc)
            return model()

    def get_settings(self) -> UserSettings:
        return self._load(SETTINGS_KEY, UserSettings)

    def update_settings(self, **changes: Any) -> UserSettings:
        """Merge ``changes`` into the stored settings.

        An ``api_key`` entry is split off and stored with ``set_api_key``
        rather than alongside the other settings.
        """
        api_key = changes.pop("api_key", None)
        with self._lock:
            merged = UserSettings.model_validate({**self.get_settings().model_dump(), **changes})
            self._store.set(SETTINGS_KEY, merged.model_dump_json())
            if api_key is not None:
                self.set_api_key(api_key)
        return merged

    def reset_settings(self) -> UserSettings:
        """Restore default settings and forget the stored API key."""
        defaults = UserSettings()
        with self._lock:
            self._store.set(SETTINGS_KEY, defaults.model_dump_json())
            self._store.delete(API_KEY_KEY)
        return defaults

    # The key is base64-obfuscated so it is not stored as plain text; this
    # is not encryption.
    def get_api_key(self) -> str:
        try:
            encoded = self._store.get(API_KEY_KEY)
        except StorageError as exc:
            logger.error("Failed to get API key: %s", exc)
            return ""
        if not encoded:
            return ""
        try:
            return base64.b64decode(encoded.encode("ascii"), validate=True).decode("utf-8")
        except ValueError as exc:
            logger.warning("Ignoring unreadable API key: %s", exc)
            return ""

    def set_api_key(self, api_key: str) -> None:
        """Store ``api_key``; an empty key removes it. Raises StorageError."""
        with self._lock:
            if not api_key:
                self._store.delete(API_KEY_KEY)
                return
            self._store.set(API_KEY_KEY, base64.b64encode(api_key.encode("utf-8")).decode("ascii"))

    def get_language_preferences(self) -> LanguagePreferences:
        return self._load(LANGUAGE_PREFERENCES_KEY, LanguagePreferences)

    def update_language_preferences(self, **changes: Any) -> LanguagePreferences:
        with self._lock:
            merged = LanguagePreferences.model_validate(
                {**self.get_language_preferences().model_dump(), **changes}
            )
            self._store.set(LANGUAGE_PREFERENCES_KEY, merged.model_dump_json())
        return merged

    def is_first_launch(self) -> bool:
        """True only on the first call ever; the launch marker is then stored."""
        with self._lock:
            try:
                if self._store.get(FIRST_LAUNCH_KEY) == "true":
                    return False
                self._store.set(FIRST_LAUNCH_KEY, "true")
            except StorageError as exc:
                logger.error("Error checking first launch: %s", exc)
                return False
        return True
