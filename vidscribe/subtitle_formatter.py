"""Handles rendering cues into subtitle files (SRT)."""

import logging
from abc import ABC, abstractmethod
from typing import Sequence

from .exceptions import FormattingError
from .models import Cue, SubtitleTrack
from .utils import format_time_srt

logger = logging.getLogger(__name__)

class SubtitleFormatter(ABC):
    """Abstract base class for subtitle formatters."""

    extension = ""

    @abstractmethod
    def render(self, cues: Sequence[Cue]) -> str:
        """Serializes ``cues`` into the formatter's text format."""
        pass

    def write(self, track: SubtitleTrack, output_path: str) -> str:
        """
        Renders a track and writes it to ``output_path``.

        Returns:
            ``output_path``, also stored on ``track.path``.

        Raises:
            FormattingError: If the track has no cues or the file cannot be written.
        """
        if not track.cues:
            raise FormattingError(f"Refusing to write an empty '{track.language}' subtitle track")

        logger.info(f"Writing {len(track.cues)} '{track.language}' cues to {output_path}")
        try:
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(self.render(track.cues))
        except IOError as e:
            logger.error(f"Failed to write subtitle file to {output_path}: {e}", exc_info=True)
            raise FormattingError(f"Could not write subtitle file: {e}") from e

        track.path = output_path
        return output_path


class SRTFormatter(SubtitleFormatter):
    """Formats subtitles into the SRT (SubRip Text) format."""

    extension = "srt"

    def render(self, cues: Sequence[Cue]) -> str:
        blocks = []
        for subtitle_index, cue in enumerate(cues, start=1):
            # A blank text line would end the block early for SRT readers
            if not cue.text.strip():
                raise FormattingError(f"Cue {subtitle_index} has no text")
            start_time_str = format_time_srt(cue.start)
            end_time_str = format_time_srt(cue.end)
            blocks.append(f"{subtitle_index}\n{start_time_str} --> {end_time_str}\n{cue.text.strip()}\n\n")
        return "".join(blocks)
