from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from vidscribe.exceptions import TranslationServiceError
from vidscribe.models import AudioChunk, TimedWord


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: Optional[str] = None) -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)

    def json(self) -> Any:
        if self._payload is None:
            return json.loads(self.text)
        return self._payload


class FakeSession:
    """Replays queued responses (or raises queued exceptions) and records every call."""

    def __init__(self, responses: List[Any]) -> None:
        self.responses = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        files = kwargs.get("files")
        if files:
            # Read the upload while it is still open, like requests would
            kwargs = {**kwargs, "uploaded": files["file"][1].read()}
        self.calls.append({"url": url, **kwargs})
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class FakeTranscriber:
    """Returns canned chunk-local words keyed by chunk index."""

    def __init__(self, words_by_chunk: Dict[int, List[TimedWord]], failures: Optional[Dict[int, Exception]] = None) -> None:
        self.words_by_chunk = words_by_chunk
        self.failures = failures or {}
        self.calls: List[int] = []

    def transcribe_chunk(self, chunk: AudioChunk, language: str) -> List[TimedWord]:
        self.calls.append(chunk.index)
        if chunk.index in self.failures:
            raise self.failures[chunk.index]
        return list(self.words_by_chunk[chunk.index])


class FakeTranslator:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: List[tuple] = []

    def translate(self, text: str, source_lang: str, target_lang: str) -> str:
        self.calls.append((text, source_lang, target_lang))
        if self.fail:
            raise TranslationServiceError("HTTP 500", status_code=500, body="boom")
        return f"[{target_lang}] {text.upper()}"


def make_words(count: int, start: float = 0.0, step: float = 0.5, prefix: str = "w") -> List[TimedWord]:
    return [
        TimedWord(text=f"{prefix}{i}", start=start + i * step, end=start + i * step + step * 0.8)
        for i in range(count)
    ]


def make_chunks(tmp_path: Path, count: int, duration: float = 300.0) -> List[AudioChunk]:
    chunks = []
    for index in range(count):
        path = tmp_path / f"chunk_{index:03d}.ogg"
        path.write_bytes(b"ogg")
        chunks.append(AudioChunk(path=str(path), index=index, nominal_duration=duration))
    return chunks


@pytest.fixture
def chunk_factory(tmp_path: Path):
    def factory(count: int, duration: float = 300.0) -> List[AudioChunk]:
        return make_chunks(tmp_path, count, duration)

    return factory
