"""Orchestrates the subtitle generation pipeline."""

import logging
import os
import shutil
import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .assembler import TranscriptAssembler
from .audio_extractor import AudioExtractor
from .chunk_planner import ChunkPlanner
from .config_loader import PipelineConfig
from .cue_grouper import group_cues
from .exceptions import EmptyTranscript, FileSystemError, InputError, VidScribeError
from .models import SubtitleTrack, TimedWord
from .muxer import Muxer
from .subtitle_formatter import SRTFormatter, SubtitleFormatter
from .transcriber import Transcriber
from .translator import Translator
from .utils import working_directory

logger = logging.getLogger(__name__)

@dataclass
class GenerationResult:
    """Paths delivered beside the input video by one successful run."""
    video_path: str
    transcript_path: str
    subtitle_paths: List[str] = field(default_factory=list)
    word_count: int = 0
    cue_count: int = 0


class SubtitleGenerator:
    """
    Manages the end-to-end process of generating subtitles for a video file.
    """

    def __init__(
        self,
        config: PipelineConfig,
        audio_extractor: AudioExtractor,
        chunk_planner: ChunkPlanner,
        transcriber: Transcriber,
        translator: Optional[Translator] = None,
        muxer: Optional[Muxer] = None,
        subtitle_formatter: Optional[SubtitleFormatter] = None,
    ):
        """
        Initializes the SubtitleGenerator.

        Args:
            config: Settings for the run.
            audio_extractor: Extracts the audio track.
            chunk_planner: Splits the audio into chunks.
            transcriber: Transcribes a single chunk.
            translator: Needed only when a target language is requested.
            muxer: Embeds subtitle tracks; a default Muxer when None.
            subtitle_formatter: Renders tracks; SRT when None.
        """
        self.config = config
        self.audio_extractor = audio_extractor
        self.chunk_planner = chunk_planner
        self.transcriber = transcriber
        self.translator = translator
        self.muxer = muxer or Muxer(ffmpeg_path=config.ffmpeg_path)
        self.subtitle_formatter = subtitle_formatter or SRTFormatter()
        measure = chunk_planner.measure_duration if config.offset_mode == "measured" else None
        self.assembler = TranscriptAssembler(
            transcriber,
            max_workers=config.max_workers,
            measure_duration=measure,
            show_progress=config.show_progress,
        )

    def _output_paths(self, video_path: str) -> tuple:
        output_dir = os.path.dirname(os.path.abspath(video_path))
        return (
            os.path.join(output_dir, self.config.output_video_name),
            os.path.join(output_dir, self.config.transcript_name),
        )

    def _subtitle_path(self, directory: str, video_path: str, language: str) -> str:
        base_name = os.path.splitext(os.path.basename(video_path))[0]
        return os.path.join(directory, f"{base_name}.{language}.{self.subtitle_formatter.extension}")

    def transcribe(self, audio_path: str, language: str, work_dir: str) -> Sequence[TimedWord]:
        """
        Splits ``audio_path`` and returns the assembled transcript.

        Raises:
            ChunkingFailed: If no chunks could be produced.
            TranscriptionError: If any chunk fails, with its index.
            EmptyTranscript: If the whole audio yields no words.
        """
        total_duration = self.audio_extractor.probe_duration(audio_path)
        logger.info(f"Extracted audio is {total_duration:.2f}s long")
        chunks = self.chunk_planner.split(audio_path, os.path.join(work_dir, "chunks"), total_duration=total_duration)
        words = self.assembler.assemble(chunks, language)
        if not words:
            raise EmptyTranscript("Transcription produced no words. Cannot proceed.")
        return words

    def _deliver(self, deliveries: Sequence[tuple]) -> None:
        """Moves each staged ``(source, destination)`` into place; all or nothing."""
        delivered = []
        try:
            for source, destination in deliveries:
                shutil.move(source, destination)
                delivered.append(destination)
        except OSError as e:
            for path in delivered:
                try:
                    os.remove(path)
                except OSError as cleanup_error:
                    logger.warning(f"Could not remove partially delivered output {path}: {cleanup_error}")
            raise FileSystemError(f"Could not write {destination}: {e}") from e

    def generate(self, video_path: str, language: str = "en", target_language: Optional[str] = None) -> GenerationResult:
        """
        Executes the full subtitle generation pipeline for a single video.

        Outputs are written beside the input video only after muxing succeeds;
        every temporary file lives in a scratch directory removed on exit.

        Args:
            video_path: Path to the input video file.
            language: Spoken language of the video.
            target_language: Adds a second, translated subtitle track when set.

        Raises:
            InputError: If the video does not exist, no translator is configured,
                        or the translation target equals the spoken language.
            VidScribeError: For any processing error in the pipeline.
        """
        if not os.path.isfile(video_path):
            raise InputError(f"Video file not found: {video_path}")
        if target_language and self.translator is None:
            raise InputError("A translation target was requested but no translator is configured")
        if target_language and target_language.strip().lower() == language.strip().lower():
            raise InputError(f"Translation target '{target_language}' is the spoken language of the video")

        start_time = time.time()
        logger.info(f"--- Starting VidScribe process for: {video_path} ---")
        output_video_path, transcript_path = self._output_paths(video_path)

        try:
            with working_directory(base_dir=self.config.temp_dir, keep=self.config.keep_temp) as work_dir:
                logger.info("Step 1: Extracting Audio...")
                audio_path = self.audio_extractor.extract_audio(
                    video_path, work_dir, f"audio.{self.chunk_planner.extension}"
                )

                logger.info("Step 2: Transcribing Audio...")
                words = self.transcribe(audio_path, language, work_dir)
                staged_transcript = os.path.join(work_dir, "transcription.txt")
                with open(staged_transcript, 'w', encoding='utf-8') as f:
                    f.write(" ".join(word.text for word in words))

                logger.info(f"Step 3: Building '{language}' subtitles...")
                tracks = [SubtitleTrack(language=language, cues=group_cues(words, self.config.words_per_cue))]

                if target_language:
                    logger.info(f"Step 4: Translating subtitles to '{target_language}'...")
                    translated_cues = group_cues(
                        words,
                        self.config.words_per_cue,
                        translator=self.translator,
                        source_language=language,
                        target_language=target_language,
                    )
                    tracks.append(SubtitleTrack(language=target_language, cues=translated_cues))

                for track in tracks:
                    self.subtitle_formatter.write(track, self._subtitle_path(work_dir, video_path, track.language))

                logger.info("Step 5: Muxing subtitles into the video...")
                staged_video = os.path.join(work_dir, f"final_{os.path.basename(output_video_path)}")
                self.muxer.mux(video_path, tracks, staged_video, staging_dir=work_dir)

                deliveries = [(staged_transcript, transcript_path)]
                subtitle_paths = []
                if self.config.keep_subtitles:
                    output_dir = os.path.dirname(output_video_path)
                    for track in tracks:
                        destination = self._subtitle_path(output_dir, video_path, track.language)
                        deliveries.append((track.path, destination))
                        subtitle_paths.append(destination)
                deliveries.append((staged_video, output_video_path))
                self._deliver(deliveries)
                for _, destination in deliveries:
                    logger.info(f"Saved: {destination}")

        except VidScribeError as e:
            logger.error(f"VidScribe process failed: {e}", exc_info=False)
            raise
        except Exception as e:
            logger.critical(f"An unexpected critical error occurred during subtitle generation: {e}", exc_info=True)
            raise VidScribeError(f"An unexpected critical error occurred: {e}") from e

        logger.info(f"--- VidScribe process completed successfully in {time.time() - start_time:.2f} seconds ---")
        return GenerationResult(
            video_path=output_video_path,
            transcript_path=transcript_path,
            subtitle_paths=subtitle_paths,
            word_count=len(words),
            cue_count=len(tracks[0].cues),
        )
