"""Saved phrases, keyed by source text and language pair, grouped into categories."""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from ..infra.storage import KeyValueStore, StorageError

logger = logging.getLogger(__name__)

PHRASEBOOK_KEY = "phrasebook:entries"
CATEGORIES_KEY = "phrasebook:categories"
LANGUAGE_PAIR_KEY = "phrasebook:language_pair"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


class SavedPhrase(BaseModel):
    id: str = Field(default_factory=_new_id)
    source_text: str
    translated_text: str
    source_language: str
    target_language: str
    category: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def same_phrase(self, other: "SavedPhrase") -> bool:
        return (
            self.source_text == other.source_text
            and self.source_language == other.source_language
            and self.target_language == other.target_language
        )


class Category(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    icon: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LanguagePair(BaseModel):
    source_language: str = "en"
    target_language: str = "es"


DEFAULT_CATEGORIES: List[Dict[str, str]] = [
    {"id": "favorites", "name": "Favorites", "icon": "star"},
    {"id": "restaurant", "name": "Restaurant", "icon": "restaurant"},
    {"id": "transportation", "name": "Transportation", "icon": "bus"},
    {"id": "hotel", "name": "Hotel", "icon": "bed"},
    {"id": "shopping", "name": "Shopping", "icon": "cart"},
    {"id": "emergency", "name": "Emergency", "icon": "medkit"},
    {"id": "sightseeing", "name": "Sightseeing", "icon": "camera"},
]

_PHRASES = TypeAdapter(List[SavedPhrase])
_CATEGORIES = TypeAdapter(List[Category])


def default_categories() -> List[Category]:
    return [Category(**c) for c in DEFAULT_CATEGORIES]


class Phrasebook:
    """Phrases, user categories and the phrasebook's active language pair.

    Reads fall back to empty lists or defaults; mutations return ``False``
    when the store rejects the write.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store
        self._lock = threading.RLock()

    def get_phrasebook(self) -> List[SavedPhrase]:
        try:
            raw = self._store.get(PHRASEBOOK_KEY)
        except StorageError as exc:
            logger.error("Failed to load phrasebook: %s", exc)
            return []
        if raw is None:
            return []
        try:
            return _PHRASES.validate_json(raw)
        except ValidationError as exc:
            logger.warning("Discarding corrupt phrasebook: %s", exc)
            return []

    def _write(self, phrases: List[SavedPhrase]) -> bool:
        try:
            self._store.set(PHRASEBOOK_KEY, _PHRASES.dump_json(phrases).decode("utf-8"))
        except StorageError as exc:
            logger.error("Failed to save phrasebook: %s", exc)
            return False
        return True

    def save_phrase(self, phrase: SavedPhrase) -> bool:
        """Add ``phrase``, or refresh the existing entry for the same text and language pair."""
        with self._lock:
            phrases = self.get_phrasebook()
            for index, existing in enumerate(phrases):
                if existing.same_phrase(phrase):
                    phrases[index] = existing.model_copy(
                        update={
                            "translated_text": phrase.translated_text,
                            "category": phrase.category or existing.category,
                            "notes": phrase.notes or existing.notes,
                            "updated_at": _utcnow(),
                        }
                    )
                    break
            else:
                phrases.append(phrase)
            return self._write(phrases)

    def delete_phrase(self, phrase_id: str) -> bool:
        with self._lock:
            phrases = [p for p in self.get_phrasebook() if p.id != phrase_id]
            return self._write(phrases)

    def update_phrase(self, phrase_id: str, **changes: Any) -> bool:
        with self._lock:
            phrases = self.get_phrasebook()
            for index, existing in enumerate(phrases):
                if existing.id == phrase_id:
                    changes.pop("id", None)
                    phrases[index] = SavedPhrase.model_validate(
                        {**existing.model_dump(), **changes, "updated_at": _utcnow()}
                    )
                    return self._write(phrases)
        logger.warning("Phrase %s not found in phrasebook", phrase_id)
        return False

    def get_phrases_by_category(self, category_id: str) -> List[SavedPhrase]:
        return [p for p in self.get_phrasebook() if p.category == category_id]

    def search_phrasebook(self, query: str) -> List[SavedPhrase]:
        """Case-insensitive substring match on source, translation and notes."""
        phrases = self.get_phrasebook()
        if not query:
            return phrases
        needle = query.casefold()
        return [
            p
            for p in phrases
            if needle in p.source_text.casefold()
            or needle in p.translated_text.casefold()
            or (p.notes and needle in p.notes.casefold())
        ]

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------
    def _user_categories(self) -> List[Category]:
        try:
            raw = self._store.get(CATEGORIES_KEY)
        except StorageError as exc:
            logger.error("Failed to load phrasebook categories: %s", exc)
            return []
        if raw is None:
            return []
        try:
            return _CATEGORIES.validate_json(raw)
        except ValidationError as exc:
            logger.warning("Discarding corrupt phrasebook categories: %s", exc)
            return []

    def get_categories(self) -> List[Category]:
        """Default categories followed by user ones; a user category replaces a default with its id."""
        user = {c.id: c for c in self._user_categories()}
        merged = [user.pop(c.id, c) for c in default_categories()]
        return merged + list(user.values())

    def create_or_update_category(self, category: Category) -> bool:
        now = _utcnow()
        with self._lock:
            categories = self._user_categories()
            for index, existing in enumerate(categories):
                if existing.id == category.id:
                    categories[index] = existing.model_copy(
                        update={"name": category.name, "icon": category.icon or existing.icon, "updated_at": now}
                    )
                    break
            else:
                categories.append(category.model_copy(update={"created_at": now, "updated_at": now}))
            try:
                self._store.set(CATEGORIES_KEY, _CATEGORIES.dump_json(categories).decode("utf-8"))
            except StorageError as exc:
                logger.error("Failed to create/update category: %s", exc)
                return False
        return True

    # ------------------------------------------------------------------
    # Language pair
    # ------------------------------------------------------------------
    def get_current_language_pair(self) -> LanguagePair:
        try:
            raw = self._store.get(LANGUAGE_PAIR_KEY)
        except StorageError as exc:
            logger.error("Failed to get current language pair: %s", exc)
            return LanguagePair()
        if raw is None:
            return LanguagePair()
        try:
            return LanguagePair.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Ignoring corrupt language pair: %s", exc)
            return LanguagePair()

    def switch_language_pair(self, source_language: str, target_language: str) -> bool:
        pair = LanguagePair(source_language=source_language, target_language=target_language)
        try:
            self._store.set(LANGUAGE_PAIR_KEY, pair.model_dump_json())
        except StorageError as exc:
            logger.error("Failed to switch language pair: %s", exc)
            return False
        return True
