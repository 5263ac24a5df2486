"""Embeds rendered subtitle tracks into the video by stream copy."""

import logging
import os
import shutil
from typing import Optional, Sequence

import ffmpeg

from .exceptions import FileSystemError, MuxingError
from .models import SubtitleTrack

logger = logging.getLogger(__name__)

# MP4 language atoms use ISO 639-2; map the common ISO 639-1 codes users type
ISO_639_2 = {
    "ar": "ara", "de": "ger", "en": "eng", "es": "spa", "fr": "fre", "hi": "hin",
    "it": "ita", "ja": "jpn", "ko": "kor", "ml": "mal", "nl": "dut", "pl": "pol",
    "pt": "por", "ru": "rus", "sv": "swe", "tr": "tur", "uk": "ukr", "zh": "chi",
}

def language_tag(code: str) -> str:
    """Converts a language code into the three-letter tag written to stream metadata."""
    normalized = code.strip().lower().replace("_", "-")
    primary = normalized.split("-", 1)[0]
    return ISO_639_2.get(primary, primary)

class Muxer:
    """Adds one or two subtitle streams to a video without re-encoding it."""

    def __init__(self, ffmpeg_path: Optional[str] = None, subtitle_codec: str = 'mov_text'):
        self.ffmpeg_cmd = ffmpeg_path or 'ffmpeg'
        self.subtitle_codec = subtitle_codec

    def build(self, video_path: str, tracks: Sequence[SubtitleTrack], output_path: str):
        """Builds the ffmpeg node graph; exposed so the command line can be inspected."""
        if not 1 <= len(tracks) <= 2:
            raise ValueError(f"Expected one or two subtitle tracks, got {len(tracks)}")
        for track in tracks:
            if not track.path:
                raise ValueError(f"Subtitle track '{track.language}' has not been written to disk")

        video_in = ffmpeg.input(video_path)
        streams = [video_in['v'], video_in['a?']]
        streams.extend(ffmpeg.input(track.path) for track in tracks)

        metadata = {
            f'metadata:s:s:{position}': f'language={language_tag(track.language)}'
            for position, track in enumerate(tracks)
        }
        return (
            ffmpeg
            .output(*streams, output_path, vcodec='copy', acodec='copy', scodec=self.subtitle_codec, **metadata)
            .overwrite_output()
        )

    def mux(self, video_path: str, tracks: Sequence[SubtitleTrack], output_path: str, staging_dir: str) -> str:
        """
        Writes ``output_path`` with every track attached as its own subtitle stream.

        ffmpeg writes into ``staging_dir`` first; the result is moved into place
        only after ffmpeg exits successfully, so a failed run leaves no output.

        Raises:
            MuxingError: If ffmpeg exits non-zero or cannot be started.
            FileSystemError: If the finished file cannot be moved into place.
        """
        staged_path = os.path.join(staging_dir, f"muxed_{os.path.basename(output_path)}")
        languages = ", ".join(track.language for track in tracks)
        logger.info(f"Adding {len(tracks)} subtitle stream(s) ({languages}) to the video...")
        try:
            self.build(video_path, tracks, staged_path).run(cmd=self.ffmpeg_cmd, capture_stdout=True, capture_stderr=True)
        except ffmpeg.Error as e:
            stderr_output = e.stderr.decode('utf-8', errors='replace') if e.stderr else "No stderr output"
            logger.error(f"ffmpeg stderr: {stderr_output}")
            raise MuxingError(f"Failed to add subtitles to the video {video_path}", stderr=stderr_output) from e
        except FileNotFoundError as e:
            raise MuxingError(f"ffmpeg executable not found: {self.ffmpeg_cmd}") from e

        try:
            shutil.move(staged_path, output_path)
        except OSError as e:
            raise FileSystemError(f"Could not move muxed video to {output_path}: {e}") from e
        logger.info(f"Video with subtitles saved as: {output_path}")
        return output_path
