"""Handles text translation through a remote chat-completion model."""

import logging
from abc import ABC, abstractmethod
from typing import Any

import requests

from .exceptions import TranslationServiceError
from .http_client import RetryingPoster
from .models import ChatCompletionResponse

logger = logging.getLogger(__name__)

SYSTEM_PROMPT_TEMPLATE = (
    "You are a professional subtitle translator. Translate the user's text to {target_lang}. "
    "Preserve the meaning and tone of the original. Reply with the translation only."
)

class Translator(ABC):
    """Abstract base class for translation services."""

    @abstractmethod
    def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        """
        Translates text from source to target language.

        Args:
            text: The text to translate.
            source_lang: Source language code (e.g., 'en').
            target_lang: Target language code (e.g., 'es').

        Returns:
            The translated text.

        Raises:
            TranslationServiceError: If translation fails.
        """
        pass

class OpenAIChatTranslator(Translator):
    """Implements translation with one chat-completion request per call."""

    def __init__(
        self,
        session: Any,
        base_url: str = "https://api.openai.com/v1",
        model_name: str = "gpt-4o-mini",
        timeout: float = 120.0,
        max_retries: int = 3,
        backoff: float = 2.0,
    ):
        self.endpoint = f"{base_url.rstrip('/')}/chat/completions"
        self.model_name = model_name
        self.poster = RetryingPoster(session, timeout=timeout, max_retries=max_retries, backoff=backoff)
        logger.info(f"Initializing OpenAIChatTranslator with model '{self.model_name}'")

    def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        """
        Translates a single string of text.

        No batching and no caching: identical inputs are sent again.
        """
        logger.debug(f"Translating ({source_lang}->{target_lang}): '{text[:50]}...'")
        payload = {
            "model": self.model_name,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT_TEMPLATE.format(target_lang=target_lang)},
                {"role": "user", "content": text},
            ],
        }
        try:
            response = self.poster.post(self.endpoint, json=payload)
        except requests.RequestException as e:
            raise TranslationServiceError(f"Could not reach the translation service: {e}") from e

        if not 200 <= response.status_code < 300:
            logger.error(f"Translation failed with HTTP {response.status_code}: {response.text}")
            raise TranslationServiceError(
                f"Failed to translate text (HTTP {response.status_code}): {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise TranslationServiceError(
                f"Translation response is not valid JSON: {e}",
                status_code=response.status_code,
                body=response.text,
            ) from e

        completion = ChatCompletionResponse.from_payload(body)
        logger.debug(f"Translation by {completion.model or self.model_name}: '{completion.content[:50]}...'")
        return completion.content
