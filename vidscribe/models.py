"""Data models for VidScribe."""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from .exceptions import TranscriptionServiceError, TranslationServiceError


@dataclass(frozen=True)
class TimedWord:
    """A single recognised word with its start/end time in seconds."""
    text: str
    start: float
    end: float

    def __post_init__(self):
        if self.start < 0:
            raise ValueError(f"Word start must be non-negative, got {self.start}")
        if self.end < self.start:
            raise ValueError(f"Word end ({self.end}) precedes its start ({self.start})")

    def shifted(self, offset: float) -> "TimedWord":
        """Returns a copy of the word moved ``offset`` seconds along the timeline."""
        return TimedWord(text=self.text, start=self.start + offset, end=self.end + offset)


@dataclass(frozen=True)
class ChunkSpan:
    """Planned position of one chunk on the global timeline."""
    index: int
    start: float
    duration: float

    @property
    def end(self) -> float:
        return self.start + self.duration


@dataclass(frozen=True)
class AudioChunk:
    """One segment file produced by splitting the extracted audio."""
    path: str
    index: int
    nominal_duration: float


@dataclass(frozen=True)
class Cue:
    """Represents a single subtitle display unit."""
    text: str
    start: float
    end: float
    word_count: int = 0


@dataclass
class SubtitleTrack:
    """A rendered cue sequence tagged with its language."""
    language: str
    cues: List[Cue] = field(default_factory=list)
    path: Optional[str] = None # Set once the track has been written to disk


def _as_seconds(value: Any) -> float:
    # bool is an int subclass, but never a valid timestamp
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"expected a number, got {value!r}")
    return float(value)


@dataclass(frozen=True)
class TranscriptionResponse:
    """Parsed ``verbose_json`` body returned by the speech-to-text service."""
    text: str
    words: Tuple[TimedWord, ...]
    language: Optional[str] = None
    duration: Optional[float] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "TranscriptionResponse":
        """
        Validates a decoded JSON payload and builds the record.

        Raises:
            TranscriptionServiceError: If the payload does not have the expected shape.
        """
        if not isinstance(payload, dict):
            raise TranscriptionServiceError(f"Transcription response is not a JSON object: {type(payload).__name__}")
        raw_words = payload.get("words")
        if not isinstance(raw_words, list):
            raise TranscriptionServiceError("Transcription response has no 'words' array (word timestamps not returned)")

        words = []
        for position, item in enumerate(raw_words):
            if not isinstance(item, dict) or not isinstance(item.get("word"), str):
                raise TranscriptionServiceError(f"Malformed word entry at position {position}: {item!r}")
            try:
                start = _as_seconds(item.get("start"))
                end = _as_seconds(item.get("end"))
                words.append(TimedWord(text=item["word"].strip(), start=start, end=end))
            except (TypeError, ValueError) as e:
                raise TranscriptionServiceError(f"Invalid timing for word at position {position}: {e}") from e

        duration = payload.get("duration")
        return cls(
            text=str(payload.get("text") or "").strip(),
            words=tuple(words),
            language=payload.get("language"),
            duration=float(duration) if isinstance(duration, (int, float)) and not isinstance(duration, bool) else None,
        )


@dataclass(frozen=True)
class ChatCompletionResponse:
    """Parsed chat-completion body; only the first choice is kept."""
    content: str
    model: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "ChatCompletionResponse":
        """
        Raises:
            TranslationServiceError: If the payload does not have the expected shape.
        """
        if not isinstance(payload, dict):
            raise TranslationServiceError(f"Chat completion response is not a JSON object: {type(payload).__name__}")
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            raise TranslationServiceError("Chat completion response contains no choices")
        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise TranslationServiceError("Chat completion response has no message content in its first choice")
        if not content.strip():
            raise TranslationServiceError("Chat completion returned an empty translation")
        return cls(content=content.strip(), model=payload.get("model"))
