"""Online translation collaborators."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

import requests

from ..config.schemas import ApiConfig
from .languages import contextual_translation, language_name

logger = logging.getLogger(__name__)


class TranslationError(Exception):
    """Raised when the translation backend returns an unusable response."""


class Translator(Protocol):
    def translate(self, text: str, source: str, target: str, context: Optional[str] = None) -> str:
        ...


class MockTranslator:
    """Canned translator: contextual phrase tables, otherwise a tagged echo."""

    def __init__(self, use_free_api: bool = True) -> None:
        self._use_free_api = use_free_api

    def translate(self, text: str, source: str, target: str, context: Optional[str] = None) -> str:
        if context:
            preset = contextual_translation(text, source, target, context)
            if preset is not None:
                logger.debug("Using preset translation for context %s", context)
                return preset

        tag = target.upper()
        if self._use_free_api:
            return f"[{tag} Translation] {text}"
        if context:
            return f"[Premium {tag} Translation for {context}] {text}"
        return f"[Premium {tag} Translation] {text}"


class OpenAITranslator:
    """Call an external translation API using the OpenAI-compatible schema."""

    def __init__(self, api_config: ApiConfig) -> None:
        self._api_config = api_config

    def _build_prompt(self, text: str, source: str, target: str, context: Optional[str]) -> str:
        lines = [
            f"Translate the following text from {language_name(source)} to {language_name(target)}.",
            "Output only the translation, with no explanation or extra content.",
            "Keep the same number of paragraphs and the same formatting as the original.",
        ]
        if context:
            lines.append(f"The text is used in a {context} setting while travelling.")
        return "\n".join(lines) + "\n\n" + text

    def translate(self, text: str, source: str, target: str, context: Optional[str] = None) -> str:
        logger.debug("Translating %r from %s to %s", text[:50], source, target)

        messages = []
        if self._api_config.system_prompt:
            messages.append({"role": "system", "content": self._api_config.system_prompt})
        messages.append({"role": "user", "content": self._build_prompt(text, source, target, context)})

        payload = {
            "model": self._api_config.model,
            "messages": messages,
            "temperature": 0.2,
            "stream": False,
        }

        headers = {"Content-Type": "application/json"}
        if self._api_config.api_key:
            headers["Authorization"] = f"Bearer {self._api_config.api_key}"
        else:
            logger.warning("No API key configured for %s", self._api_config.endpoint)

        response = requests.post(
            self._api_config.endpoint,
            json=payload,
            headers=headers,
            timeout=self._api_config.timeout_s,
        )
        logger.debug("API response status: %s", response.status_code)
        response.raise_for_status()

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise TranslationError(f"Unexpected response from {self._api_config.endpoint}: {exc}") from exc
        if not isinstance(content, str):
            raise TranslationError("Translation response content is not text")
        return content.strip()


def create_translator(api_config: ApiConfig, use_free_api: bool = True) -> Translator:
    """Pick the translator backend named by ``api_config.provider``."""
    if api_config.provider == "openai":
        return OpenAITranslator(api_config)
    return MockTranslator(use_free_api=use_free_api)
