"""Tests for translated two-party conversations."""

from __future__ import annotations

import pytest

from travel_translate.core.packs import BundledPackSource, OfflinePackManager
from travel_translate.core.router import TranslationService
from travel_translate.infra.storage import StorageError
from travel_translate.userdata.conversations import ConversationError, ConversationStore
from travel_translate.userdata.history import HistoryStore
from travel_translate.userdata.settings import SettingsStore


class EchoTranslator:
    def __init__(self) -> None:
        self.calls = []

    def translate(self, text, source, target, context=None) -> str:
        self.calls.append((text, source, target, context))
        return f"{target}:{text}"


def make_store(store, pack_files, connected=True):
    packs = OfflinePackManager(
        store, pack_files, source=BundledPackSource(delay_s=0), free_space=lambda: 1024.0
    )
    history = HistoryStore(store, SettingsStore(store))
    translator = EchoTranslator()
    service = TranslationService(packs, translator, lambda: connected, history=history)
    return ConversationStore(store, service), translator, history


def test_create_conversation_defaults(store, pack_files) -> None:
    conversations, _, _ = make_store(store, pack_files)

    created = conversations.create_conversation("en", "fr")

    assert created.title.startswith("Conversation (")
    assert [(p.id, p.language, p.name) for p in created.participants] == [
        ("1", "en", "You"),
        ("2", "fr", "Partner"),
    ]
    assert conversations.get_conversation(created.id) == created
    assert conversations.get_conversation("missing") is None


def test_add_message_translates_for_partner_and_records_history(store, pack_files) -> None:
    conversations, translator, history = make_store(store, pack_files)
    chat = conversations.create_conversation("en", "fr", title="Taxi")

    first = conversations.add_message(chat.id, "Hello", "1")
    reply = conversations.add_message(chat.id, "Bonjour", "2")

    assert first.translated_text == "fr:Hello"
    assert first.kind == "online"
    assert (reply.from_language, reply.to_language) == ("fr", "en")
    assert translator.calls[0] == ("Hello", "en", "fr", "conversation")

    stored = conversations.get_conversation(chat.id)
    assert [m.text for m in stored.messages] == ["Hello", "Bonjour"]
    assert stored.updated_at >= stored.created_at
    assert [e.context for e in history.get_history()] == ["conversation", "conversation"]


def test_add_message_offline_without_packs_is_tagged(store, pack_files) -> None:
    conversations, translator, _ = make_store(store, pack_files, connected=False)
    chat = conversations.create_conversation("en", "de")

    message = conversations.add_message(chat.id, "Hello", "1")

    assert message.kind == "unavailable"
    assert translator.calls == []


def test_add_message_unknown_conversation_or_participant(store, pack_files) -> None:
    conversations, _, _ = make_store(store, pack_files)
    chat = conversations.create_conversation("en", "es")

    with pytest.raises(ConversationError):
        conversations.add_message("missing", "Hi", "1")
    with pytest.raises(ConversationError):
        conversations.add_message(chat.id, "Hi", "9")


def test_rename_and_delete(store, pack_files) -> None:
    conversations, _, _ = make_store(store, pack_files)
    chat = conversations.create_conversation("en", "es")

    assert conversations.update_conversation_title(chat.id, "Hotel desk") is True
    assert conversations.get_conversation(chat.id).title == "Hotel desk"
    assert conversations.update_conversation_title("missing", "x") is False

    assert conversations.delete_conversation(chat.id) is True
    assert conversations.get_conversations() == []


def test_storage_failures(failing_store, pack_files) -> None:
    conversations, _, _ = make_store(failing_store, pack_files)

    assert conversations.get_conversations() == []
    assert conversations.delete_conversation("x") is False
    with pytest.raises(StorageError):
        conversations.create_conversation("en", "es")


def test_corrupt_conversations_read_as_empty(store, pack_files) -> None:
    store.set("conversations:entries", "[{broken")
    conversations, _, _ = make_store(store, pack_files)
    assert conversations.get_conversations() == []
