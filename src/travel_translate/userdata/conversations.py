"""Two-party translated conversations."""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from ..infra.storage import KeyValueStore, StorageError

if TYPE_CHECKING:
    from ..core.router import TranslationService

logger = logging.getLogger(__name__)

CONVERSATIONS_KEY = "conversations:entries"
CONVERSATION_CONTEXT = "conversation"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


class ConversationError(LookupError):
    """Raised when a conversation or participant does not exist."""


class Participant(BaseModel):
    id: str
    language: str
    name: str


class Message(BaseModel):
    id: str = Field(default_factory=_new_id)
    text: str
    translated_text: str
    kind: str
    from_language: str
    to_language: str
    from_participant_id: str
    timestamp: datetime = Field(default_factory=_utcnow)


class Conversation(BaseModel):
    id: str = Field(default_factory=_new_id)
    title: str
    participants: List[Participant]
    messages: List[Message] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def participant(self, participant_id: str) -> Optional[Participant]:
        for p in self.participants:
            if p.id == participant_id:
                return p
        return None

    def partner_of(self, participant_id: str) -> Optional[Participant]:
        for p in self.participants:
            if p.id != participant_id:
                return p
        return None


_CONVERSATIONS = TypeAdapter(List[Conversation])


class ConversationStore:
    """Persist conversations and translate each message for the other participant.

    Messages are translated with ``TranslationService``, which also records
    them in history under the ``conversation`` context.
    """

    def __init__(self, store: KeyValueStore, translation: "TranslationService") -> None:
        self._store = store
        self._translation = translation
        self._lock = threading.RLock()

    def get_conversations(self) -> List[Conversation]:
        try:
            raw = self._store.get(CONVERSATIONS_KEY)
        except StorageError as exc:
            logger.error("Failed to load conversations: %s", exc)
            return []
        if raw is None:
            return []
        try:
            return _CONVERSATIONS.validate_json(raw)
        except ValidationError as exc:
            logger.warning("Discarding corrupt conversations: %s", exc)
            return []

    def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        for conversation in self.get_conversations():
            if conversation.id == conversation_id:
                return conversation
        return None

    def _write(self, conversations: List[Conversation]) -> None:
        self._store.set(CONVERSATIONS_KEY, _CONVERSATIONS.dump_json(conversations).decode("utf-8"))

    def create_conversation(
        self,
        source_language: str,
        target_language: str,
        title: Optional[str] = None,
        source_name: Optional[str] = None,
        target_name: Optional[str] = None,
    ) -> Conversation:
        """Start a conversation between "You" and a partner. Raises StorageError."""
        conversation = Conversation(
            title=title or f"Conversation ({date.today().isoformat()})",
            participants=[
                Participant(id="1", language=source_language, name=source_name or "You"),
                Participant(id="2", language=target_language, name=target_name or "Partner"),
            ],
        )
        with self._lock:
            conversations = self.get_conversations()
            conversations.append(conversation)
            self._write(conversations)
        logger.info("Created conversation %s (%s->%s)", conversation.id, source_language, target_language)
        return conversation

    def add_message(self, conversation_id: str, text: str, from_participant_id: str) -> Message:
        """Translate ``text`` into the partner's language and append it.

        Raises:
            ConversationError: unknown conversation or participant.
            StorageError: the conversation could not be saved.
        """
        with self._lock:
            conversations = self.get_conversations()
            for index, conversation in enumerate(conversations):
                if conversation.id == conversation_id:
                    break
            else:
                raise ConversationError(f"Conversation {conversation_id!r} not found")

            sender = conversation.participant(from_participant_id)
            recipient = conversation.partner_of(from_participant_id)
            if sender is None or recipient is None:
                raise ConversationError(f"Participant {from_participant_id!r} not found")

            result = self._translation.translate(
                text, sender.language, recipient.language, context=CONVERSATION_CONTEXT
            )
            message = Message(
                text=text,
                translated_text=result.text,
                kind=result.kind.value,
                from_language=sender.language,
                to_language=recipient.language,
                from_participant_id=sender.id,
            )
            conversations[index] = conversation.model_copy(
                update={"messages": conversation.messages + [message], "updated_at": _utcnow()}
            )
            self._write(conversations)
        return message

    def delete_conversation(self, conversation_id: str) -> bool:
        with self._lock:
            remaining = [c for c in self.get_conversations() if c.id != conversation_id]
            try:
                self._write(remaining)
            except StorageError as exc:
                logger.error("Failed to delete conversation: %s", exc)
                return False
        return True

    def update_conversation_title(self, conversation_id: str, title: str) -> bool:
        with self._lock:
            conversations = self.get_conversations()
            for index, conversation in enumerate(conversations):
                if conversation.id == conversation_id:
                    conversations[index] = conversation.model_copy(
                        update={"title": title, "updated_at": _utcnow()}
                    )
                    break
            else:
                logger.warning("Conversation %s not found", conversation_id)
                return False
            try:
                self._write(conversations)
            except StorageError as exc:
                logger.error("Failed to update conversation title: %s", exc)
                return False
        return True
