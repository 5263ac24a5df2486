"""Handles Speech-to-Text transcription through a remote Whisper-compatible API."""

import logging
import os
from abc import ABC, abstractmethod
from typing import Any, List, Optional

import requests

from .exceptions import EmptyTranscript, TranscriptionServiceError
from .http_client import RetryingPoster
from .models import AudioChunk, TimedWord, TranscriptionResponse

logger = logging.getLogger(__name__)

class Transcriber(ABC):
    """Abstract base class for transcription services."""

    @abstractmethod
    def transcribe_chunk(self, chunk: AudioChunk, language: str) -> List[TimedWord]:
        """
        Transcribes one audio chunk.

        Args:
            chunk: The chunk to upload.
            language: Source-language code (e.g. 'en').

        Returns:
            Recognised words in chunk-local time (the chunk starts at 0).

        Raises:
            TranscriptionServiceError: If the service rejects the request or
                                       answers with an unusable payload.
            EmptyTranscript: If no words were recognised.
        """
        pass

class OpenAITranscriber(Transcriber):
    """Implements transcription using the OpenAI ``/audio/transcriptions`` endpoint."""

    def __init__(
        self,
        session: Any,
        base_url: str = "https://api.openai.com/v1",
        model_name: str = "whisper-1",
        timeout: float = 120.0,
        max_retries: int = 3,
        backoff: float = 2.0,
    ):
        """
        Initializes the OpenAITranscriber.

        Args:
            session: A ``requests.Session`` carrying the credential (see http_client.create_session).
            base_url: API root, without the endpoint path.
            model_name: Speech model identifier.
            timeout: Hard timeout per HTTP attempt, in seconds.
            max_retries: Retries for transient failures (network, 429, 5xx).
            backoff: Base delay of the exponential backoff, in seconds.
        """
        self.endpoint = f"{base_url.rstrip('/')}/audio/transcriptions"
        self.model_name = model_name
        self.poster = RetryingPoster(session, timeout=timeout, max_retries=max_retries, backoff=backoff)
        logger.info(f"Initializing OpenAITranscriber with model '{self.model_name}' at {self.endpoint}")

    def _request_fields(self, language: str) -> List[tuple]:
        return [
            ("model", self.model_name),
            ("language", language),
            ("response_format", "verbose_json"),
            ("timestamp_granularities[]", "word"),
        ]

    def transcribe_chunk(self, chunk: AudioChunk, language: str) -> List[TimedWord]:
        logger.info(f"Transcribing chunk {chunk.index}: {os.path.basename(chunk.path)}")
        if not os.path.exists(chunk.path):
            raise FileNotFoundError(f"Audio chunk not found: {chunk.path}")

        with open(chunk.path, 'rb') as audio_file:
            try:
                response = self.poster.post(
                    self.endpoint,
                    before_attempt=lambda: audio_file.seek(0),
                    data=self._request_fields(language),
                    files={'file': (os.path.basename(chunk.path), audio_file)},
                )
            except requests.RequestException as e:
                raise TranscriptionServiceError(f"Could not reach the transcription service: {e}") from e

        if not 200 <= response.status_code < 300:
            logger.error(f"Transcription failed with HTTP {response.status_code}: {response.text}")
            raise TranscriptionServiceError(
                f"Failed to transcribe audio chunk (HTTP {response.status_code}): {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise TranscriptionServiceError(
                f"Transcription response is not valid JSON: {e}",
                status_code=response.status_code,
                body=response.text,
            ) from e

        parsed = TranscriptionResponse.from_payload(payload)
        words = [word for word in parsed.words if word.text]
        if not words:
            if parsed.text:
                raise TranscriptionServiceError(
                    f"Service returned text but no word timestamps for {os.path.basename(chunk.path)}",
                    status_code=response.status_code,
                    body=response.text,
                )
            raise EmptyTranscript(f"No transcript generated for {os.path.basename(chunk.path)}")

        detected = f", detected language '{parsed.language}'" if parsed.language else ""
        heard = f" in {parsed.duration:.2f}s of audio" if parsed.duration is not None else ""
        logger.info(f"Chunk {chunk.index}: {len(words)} words recognised{heard}{detected}")
        return words
