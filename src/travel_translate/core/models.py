"""Translation result types shared by the offline and online paths."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class TranslationKind(str, Enum):
    """How a result was produced.

    ``PLACEHOLDER`` and ``UNAVAILABLE`` are informational: they must never be
    shown as a real translation.
    """

    ONLINE = "online"
    OFFLINE = "offline"
    PLACEHOLDER = "placeholder"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class TranslationResult:
    """Container for translated text and its provenance."""

    text: str
    kind: TranslationKind
    source_language: str
    target_language: str
    reason: Optional[str] = None

    @property
    def is_offline_message(self) -> bool:
        return self.kind in (TranslationKind.PLACEHOLDER, TranslationKind.UNAVAILABLE)

    @property
    def ok(self) -> bool:
        return not self.is_offline_message

    @classmethod
    def unavailable(cls, reason: str, source_language: str, target_language: str) -> "TranslationResult":
        return cls(
            text=reason,
            kind=TranslationKind.UNAVAILABLE,
            source_language=source_language,
            target_language=target_language,
            reason=reason,
        )
