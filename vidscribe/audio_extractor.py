"""Handles audio extraction from video files using ffmpeg."""

import ffmpeg
import os
import logging
from .exceptions import AudioExtractionError, MediaToolError
from typing import Optional
from .utils import ensure_dir_exists

logger = logging.getLogger(__name__)

def _stderr_text(error: ffmpeg.Error) -> str:
    return error.stderr.decode('utf-8', errors='replace') if error.stderr else "No stderr output"

def probe_duration(media_path: str, ffprobe_cmd: str = 'ffprobe') -> float:
    """
    Reads the container duration of a media file in seconds.

    Raises:
        MediaToolError: If ffprobe fails or reports no usable duration.
    """
    try:
        info = ffmpeg.probe(media_path, cmd=ffprobe_cmd)
    except ffmpeg.Error as e:
        raise MediaToolError(f"ffprobe failed for {media_path}", stderr=_stderr_text(e)) from e
    except FileNotFoundError as e:
        raise MediaToolError(f"ffprobe executable not found: {ffprobe_cmd}") from e

    raw = info.get('format', {}).get('duration')
    if raw is None:
        # Some containers only carry the duration on the stream
        raw = next((s.get('duration') for s in info.get('streams', []) if s.get('duration')), None)
    try:
        return float(raw)
    except (TypeError, ValueError) as e:
        raise MediaToolError(f"ffprobe reported no duration for {media_path}") from e

class AudioExtractor:
    """Pulls the audio track out of a video into a compact file for upload."""

    def __init__(self, ffmpeg_path: Optional[str] = None, ffprobe_path: Optional[str] = None,
                 audio_codec: str = 'libopus', audio_bitrate: str = '64k'):
        """
        Args:
            ffmpeg_path: ffmpeg executable; looked up on PATH when None.
            ffprobe_path: ffprobe executable; looked up on PATH when None.
            audio_codec: Codec of the extracted track. Opus keeps chunks small
                         enough for upload size limits.
            audio_bitrate: Target bitrate of the extracted track.
        """
        self.ffmpeg_cmd = ffmpeg_path or 'ffmpeg'
        self.ffprobe_cmd = ffprobe_path or 'ffprobe'
        self.audio_codec = audio_codec
        self.audio_bitrate = audio_bitrate

    def _discard(self, path: str) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove partial audio file {path}: {e}")

    def extract_audio(self, video_filepath: str, output_audio_dir: str, output_filename: str = 'audio.ogg') -> str:
        """
        Writes the audio stream of ``video_filepath`` to ``output_audio_dir/output_filename``.

        The file extension selects the container. A failed run leaves no file behind.

        Raises:
            FileNotFoundError: If the input video file does not exist.
            AudioExtractionError: If ffmpeg fails or cannot be started.
            FileSystemError: If the output directory cannot be created.
        """
        if not os.path.isfile(video_filepath):
            raise FileNotFoundError(f"Input video file not found: {video_filepath}")
        ensure_dir_exists(output_audio_dir)
        audio_path = os.path.join(output_audio_dir, output_filename)

        logger.info(f"Extracting {self.audio_codec} audio at {self.audio_bitrate} from {video_filepath}")
        stream = (
            ffmpeg
            .input(video_filepath)
            .output(audio_path, vn=None, acodec=self.audio_codec, **{'b:a': self.audio_bitrate})
            .overwrite_output()
        )
        try:
            stream.run(cmd=self.ffmpeg_cmd, capture_stdout=True, capture_stderr=True)
        except ffmpeg.Error as e:
            stderr_output = _stderr_text(e)
            logger.error(f"ffmpeg stderr: {stderr_output}")
            self._discard(audio_path)
            raise AudioExtractionError(f"ffmpeg failed to extract audio from {video_filepath}", stderr=stderr_output) from e
        except FileNotFoundError as e:
            raise AudioExtractionError(f"ffmpeg executable not found: {self.ffmpeg_cmd}") from e

        logger.info(f"Audio written to {audio_path}")
        return audio_path

    def probe_duration(self, media_path: str) -> float:
        """Duration of ``media_path`` in seconds, via ffprobe."""
        return probe_duration(media_path, ffprobe_cmd=self.ffprobe_cmd)
