"""Tests for translation history and the phrasebook."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from travel_translate.userdata.history import HistoryEntry, HistoryStore
from travel_translate.userdata.phrasebook import Category, LanguagePair, Phrasebook, SavedPhrase
from travel_translate.userdata.settings import SettingsStore


def entry(text: str, offset_s: int = 0) -> HistoryEntry:
    return HistoryEntry(
        source_text=text,
        translated_text=f"tr:{text}",
        source_language="en",
        target_language="es",
        timestamp=datetime(2024, 5, 1, tzinfo=timezone.utc) + timedelta(seconds=offset_s),
    )


def test_history_is_newest_first_and_bounded(store) -> None:
    history = HistoryStore(store, SettingsStore(store), max_items=3)
    for i in range(5):
        history.save_to_history(entry(f"t{i}", i))

    assert [e.source_text for e in history.get_history()] == ["t4", "t3", "t2"]


def test_history_respects_save_history_setting(store) -> None:
    settings = SettingsStore(store)
    history = HistoryStore(store, settings)
    history.save_to_history(entry("kept"))

    settings.update_settings(save_history=False)
    history.save_to_history(entry("dropped"))
    assert history.get_history() == []

    settings.update_settings(save_history=True)
    assert [e.source_text for e in history.get_history()] == ["kept"]


def test_history_delete_and_clear(store) -> None:
    history = HistoryStore(store, SettingsStore(store))
    first, second = entry("a", 0), entry("b", 1)
    history.save_to_history(first)
    history.save_to_history(second)

    history.delete_history_item(first.timestamp)
    assert [e.source_text for e in history.get_history()] == ["b"]

    history.clear_history()
    assert history.get_history() == []


def test_history_failures_are_swallowed(failing_store) -> None:
    history = HistoryStore(failing_store, SettingsStore(failing_store))
    history.save_to_history(entry("x"))
    history.clear_history()
    assert history.get_history() == []


def phrase(source_text: str, translated_text: str, target: str = "es") -> SavedPhrase:
    return SavedPhrase(
        source_text=source_text,
        translated_text=translated_text,
        source_language="en",
        target_language=target,
    )


def test_phrasebook_upserts_same_phrase(store) -> None:
    book = Phrasebook(store)
    assert book.save_phrase(phrase("Hello", "Hola")) is True
    assert book.save_phrase(phrase("Hello", "¡Hola!")) is True
    assert book.save_phrase(phrase("Hello", "Bonjour", target="fr")) is True

    saved = book.get_phrasebook()
    assert len(saved) == 2
    assert saved[0].translated_text == "¡Hola!"
    assert saved[0].updated_at >= saved[0].created_at


def test_phrasebook_update_and_delete(store) -> None:
    book = Phrasebook(store)
    book.save_phrase(phrase("Thanks", "Gracias"))
    [saved] = book.get_phrasebook()

    assert book.update_phrase(saved.id, category="basics", id="hijack") is True
    [updated] = book.get_phrasebook()
    assert updated.id == saved.id
    assert updated.category == "basics"

    assert book.update_phrase("unknown", category="x") is False
    assert book.delete_phrase(saved.id) is True
    assert book.get_phrasebook() == []


def test_phrasebook_storage_failure(failing_store) -> None:
    book = Phrasebook(failing_store)
    assert book.get_phrasebook() == []
    assert book.save_phrase(phrase("Hello", "Hola")) is False


def test_phrasebook_filters_by_category(store) -> None:
    book = Phrasebook(store)
    book.save_phrase(phrase("Check, please", "La cuenta", target="es").model_copy(update={"category": "restaurant"}))
    book.save_phrase(phrase("Where is the station?", "¿Dónde está la estación?"))

    assert [p.source_text for p in book.get_phrases_by_category("restaurant")] == ["Check, please"]
    assert book.get_phrases_by_category("hotel") == []


def test_phrasebook_search_matches_text_translation_and_notes(store) -> None:
    book = Phrasebook(store)
    book.save_phrase(phrase("Thank you", "Gracias"))
    book.save_phrase(phrase("Goodbye", "Adiós").model_copy(update={"notes": "Polite at checkout"}))

    assert [p.source_text for p in book.search_phrasebook("GRACIAS")] == ["Thank you"]
    assert [p.source_text for p in book.search_phrasebook("checkout")] == ["Goodbye"]
    assert len(book.search_phrasebook("")) == 2
    assert book.search_phrasebook("nothing") == []


def test_categories_start_with_defaults_and_accept_user_entries(store) -> None:
    book = Phrasebook(store)
    ids = [c.id for c in book.get_categories()]
    assert ids[0] == "favorites"
    assert "emergency" in ids

    assert book.create_or_update_category(Category(id="museums", name="Museums", icon="image")) is True
    assert book.create_or_update_category(Category(id="hotel", name="Lodging")) is True
    assert book.create_or_update_category(Category(id="museums", name="Art museums")) is True

    categories = {c.id: c for c in book.get_categories()}
    assert categories["museums"].name == "Art museums"
    assert categories["museums"].icon == "image"
    assert categories["hotel"].name == "Lodging"
    assert [c.id for c in book.get_categories()][-1] == "museums"


def test_language_pair_defaults_and_switches(store, failing_store) -> None:
    book = Phrasebook(store)
    assert book.get_current_language_pair() == LanguagePair(source_language="en", target_language="es")

    assert book.switch_language_pair("fr", "de") is True
    assert Phrasebook(store).get_current_language_pair() == LanguagePair(source_language="fr", target_language="de")

    broken = Phrasebook(failing_store)
    assert broken.get_current_language_pair() == LanguagePair()
    assert broken.switch_language_pair("fr", "de") is False
    assert broken.create_or_update_category(Category(name="x")) is False
    assert [c.id for c in broken.get_categories()][0] == "favorites"
