"""Transcribes every chunk and stitches the words onto one global timeline."""

import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from tqdm import tqdm

from .exceptions import TranscriptionError
from .models import AudioChunk, TimedWord
from .transcriber import Transcriber

logger = logging.getLogger(__name__)

class TranscriptAssembler:
    """
    Drives a Transcriber over all chunks and rebases their timestamps.

    Chunk ``k``'s words are shifted by the summed duration of chunks
    ``0..k-1``. By default that sum uses each chunk's nominal duration, which
    assumes the segmenter cut at exact boundaries. Passing ``measure_duration``
    (offset mode "measured") uses the probed length of every prior chunk instead.

    With ``max_workers > 1`` chunks are uploaded concurrently; results are
    tagged with their chunk index and merged back strictly in index order,
    and the first failure cancels outstanding work.
    """

    def __init__(
        self,
        transcriber: Transcriber,
        max_workers: int = 1,
        measure_duration: Optional[Callable[[AudioChunk], float]] = None,
        show_progress: bool = True,
    ):
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.transcriber = transcriber
        self.max_workers = max_workers
        self.measure_duration = measure_duration
        self.show_progress = show_progress

    def _transcribe(self, chunk: AudioChunk, language: str) -> List[TimedWord]:
        try:
            return self.transcriber.transcribe_chunk(chunk, language)
        except TranscriptionError as e:
            e.chunk_index = chunk.index
            logger.error(f"Transcription of chunk {chunk.index} failed: {e}")
            raise

    def _offsets(self, chunks: Sequence[AudioChunk]) -> List[float]:
        offsets = []
        offset = 0.0
        for chunk in chunks:
            offsets.append(offset)
            if self.measure_duration is not None:
                offset += self.measure_duration(chunk)
            else:
                offset += chunk.nominal_duration
        return offsets

    def _run_sequential(self, chunks: Sequence[AudioChunk], language: str, progress: tqdm) -> Dict[int, List[TimedWord]]:
        results = {}
        for chunk in chunks:
            results[chunk.index] = self._transcribe(chunk, language)
            progress.update(1)
        return results

    def _run_concurrent(self, chunks: Sequence[AudioChunk], language: str, progress: tqdm) -> Dict[int, List[TimedWord]]:
        results = {}
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {executor.submit(self._transcribe, chunk, language): chunk.index for chunk in chunks}
            pending = set(futures)
            while pending:
                done, pending = wait(pending, return_when=FIRST_EXCEPTION)
                for future in done:
                    if future.exception() is not None:
                        for other in pending:
                            other.cancel()
                        raise future.exception()
                    results[futures[future]] = future.result()
                    progress.update(1)
        return results

    def assemble(self, chunks: Sequence[AudioChunk], language: str) -> Tuple[TimedWord, ...]:
        """
        Transcribes ``chunks`` and returns the whole transcript in global time.

        Args:
            chunks: Chunks in planner order (index 0 first).
            language: Source-language code passed to the transcriber.

        Returns:
            Every recognised word, ordered by chunk then by position within the chunk.

        Raises:
            TranscriptionError: The first chunk failure, with ``chunk_index`` set.
                                No partial transcript is returned.
        """
        ordered = sorted(chunks, key=lambda c: c.index)
        if [c.index for c in ordered] != list(range(len(ordered))):
            raise ValueError("Chunk indices must be contiguous and start at 0")

        offsets = self._offsets(ordered)
        logger.info(f"Transcribing {len(ordered)} chunk(s) with {self.max_workers} worker(s)")
        with tqdm(total=len(ordered), unit="chunk", desc="Transcribing", disable=not self.show_progress) as progress:
            if self.max_workers == 1 or len(ordered) < 2:
                results = self._run_sequential(ordered, language, progress)
            else:
                results = self._run_concurrent(ordered, language, progress)

        transcript: List[TimedWord] = []
        for chunk, offset in zip(ordered, offsets):
            transcript.extend(word.shifted(offset) for word in results[chunk.index])
        logger.info(f"Assembled transcript of {len(transcript)} words")
        return tuple(transcript)
