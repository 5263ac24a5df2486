"""Splits extracted audio into bounded-duration chunks for upload."""

import glob
import logging
import math
import os
import re
from typing import List, Optional

import ffmpeg

from .audio_extractor import probe_duration
from .exceptions import ChunkingFailed
from .models import AudioChunk, ChunkSpan
from .utils import ensure_dir_exists

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_DURATION = 300.0
CHUNK_PREFIX = "chunk_"
_CHUNK_INDEX_RE = re.compile(rf"^{CHUNK_PREFIX}(\d+)\.")


def plan_chunks(total_duration: float, chunk_duration: float = DEFAULT_CHUNK_DURATION) -> List[ChunkSpan]:
    """
    Decides chunk boundaries on the global timeline.

    Chunks are zero-indexed, each ``chunk_duration`` long except the last,
    which covers whatever remains. Consecutive spans touch exactly, so their
    concatenation reconstructs ``[0, total_duration)``.

    Raises:
        ValueError: If ``chunk_duration`` is not positive or ``total_duration`` is negative.
    """
    if chunk_duration <= 0:
        raise ValueError(f"chunk_duration must be positive, got {chunk_duration}")
    if total_duration < 0:
        raise ValueError(f"total_duration cannot be negative, got {total_duration}")

    count = math.ceil(total_duration / chunk_duration)
    spans = []
    for index in range(count):
        start = index * chunk_duration
        spans.append(ChunkSpan(index=index, start=start, duration=min(chunk_duration, total_duration - start)))
    return spans


def _chunk_index(path: str) -> int:
    match = _CHUNK_INDEX_RE.match(os.path.basename(path))
    if match is None:
        raise ValueError(f"Not a chunk file name: {path}")
    return int(match.group(1))


class ChunkPlanner:
    """Runs ffmpeg's segment muxer and turns its output into ordered AudioChunks."""

    def __init__(self, chunk_duration: float = DEFAULT_CHUNK_DURATION, ffmpeg_path: Optional[str] = None,
                 ffprobe_path: Optional[str] = None, extension: str = "ogg"):
        if chunk_duration <= 0:
            raise ValueError(f"chunk_duration must be positive, got {chunk_duration}")
        self.chunk_duration = float(chunk_duration)
        self.ffmpeg_cmd = ffmpeg_path or 'ffmpeg'
        self.ffprobe_cmd = ffprobe_path or 'ffprobe'
        self.extension = extension.lstrip('.')

    def _run_segmenter(self, audio_path: str, chunk_dir: str) -> None:
        pattern = os.path.join(chunk_dir, f"{CHUNK_PREFIX}%03d.{self.extension}")
        # Stream copy cuts at packet boundaries; no re-encode drift
        (
            ffmpeg
            .input(audio_path)
            .output(pattern, f='segment', segment_time=f"{self.chunk_duration:g}", c='copy')
            .overwrite_output()
            .run(cmd=self.ffmpeg_cmd, capture_stdout=True, capture_stderr=True)
        )

    def split(self, audio_path: str, chunk_dir: str, total_duration: Optional[float] = None) -> List[AudioChunk]:
        """
        Splits ``audio_path`` into chunk files inside ``chunk_dir``.

        Args:
            audio_path: Extracted audio file.
            chunk_dir: Directory that receives the chunk files. It should be
                       empty; stale chunks would be picked up as well.
            total_duration: Duration of ``audio_path`` if already known. Used to
                            give the final chunk its real (shorter) nominal duration.

        Returns:
            Chunks ordered by index, starting at 0.

        Raises:
            ChunkingFailed: If ffmpeg fails or produces no chunk files.
        """
        ensure_dir_exists(chunk_dir)
        logger.info(f"Splitting audio into {self.chunk_duration / 60:g} minute chunks...")
        try:
            self._run_segmenter(audio_path, chunk_dir)
        except ffmpeg.Error as e:
            stderr_output = e.stderr.decode('utf-8', errors='replace') if e.stderr else "No stderr output"
            logger.error(f"ffmpeg stderr: {stderr_output}")
            raise ChunkingFailed(f"ffmpeg failed to split {audio_path}", stderr=stderr_output) from e
        except FileNotFoundError as e:
            raise ChunkingFailed(f"ffmpeg executable not found: {self.ffmpeg_cmd}") from e

        paths = sorted(
            glob.glob(os.path.join(chunk_dir, f"{CHUNK_PREFIX}*.{self.extension}")),
            key=_chunk_index,
        )
        if not paths:
            raise ChunkingFailed(f"Splitting {audio_path} produced no chunks")

        spans = plan_chunks(total_duration, self.chunk_duration) if total_duration is not None else None
        if spans is not None and len(spans) != len(paths):
            logger.warning(f"Expected {len(spans)} chunks for {total_duration:.3f}s of audio but ffmpeg produced {len(paths)}")

        chunks = []
        for position, path in enumerate(paths):
            index = _chunk_index(path)
            if index != position:
                raise ChunkingFailed(f"Chunk sequence has a gap: expected index {position}, found {os.path.basename(path)}")
            nominal = spans[index].duration if spans is not None and index < len(spans) else self.chunk_duration
            chunks.append(AudioChunk(path=path, index=index, nominal_duration=nominal))

        logger.info(f"Audio split into {len(chunks)} chunk(s)")
        return chunks

    def measure_duration(self, chunk: AudioChunk) -> float:
        """
        Probes the real duration of a chunk file.

        Raises:
            MediaToolError: If ffprobe cannot read the chunk.
        """
        duration = probe_duration(chunk.path, ffprobe_cmd=self.ffprobe_cmd)
        if abs(duration - chunk.nominal_duration) > 0.05:
            logger.debug(f"Chunk {chunk.index} measured {duration:.3f}s vs nominal {chunk.nominal_duration:.3f}s")
        return duration
