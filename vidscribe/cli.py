"""Command-Line Interface handler for VidScribe."""

import argparse
import logging
import os
import sys
from typing import List, Optional

from .audio_extractor import AudioExtractor
from .chunk_planner import ChunkPlanner
from .config_loader import ConfigLoader, PipelineConfig
from .exceptions import ConfigurationError, InputError, VidScribeError
from .http_client import ThreadLocalSession, create_session
from .log_setup import setup_logging
from .muxer import Muxer
from .subtitle_generator import SubtitleGenerator
from .transcriber import OpenAITranscriber
from .translator import OpenAIChatTranslator

logger = logging.getLogger(__name__) # Get logger for this module

class CLIHandler:
    """Parses arguments and orchestrates the VidScribe process."""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Creates the argument parser for the CLI."""
        parser = argparse.ArgumentParser(
            prog="vidscribe",
            description="VidScribe: transcribe a video with a remote speech API and embed the subtitles.",
            formatter_class=argparse.ArgumentDefaultsHelpFormatter # Show defaults in help
        )
        parser.add_argument(
            "-v", "--video",
            required=True,
            help="Path to the input video file."
        )
        parser.add_argument(
            "-l", "--language",
            default="en",
            help="Spoken language of the video (ISO 639-1 code)."
        )
        parser.add_argument(
            "-t", "--translate",
            metavar="LANG",
            default=None,
            help="Also add a subtitle track translated into this language."
        )
        parser.add_argument(
            "-c", "--config",
            default=None,
            help="Path to an optional YAML configuration file."
        )
        parser.add_argument(
            "--chunk-duration",
            type=float,
            default=None, # Default taken from config
            help="Override the audio chunk length in seconds."
        )
        parser.add_argument(
            "--words-per-cue",
            type=int,
            default=None,
            help="Override the maximum number of words per subtitle cue."
        )
        parser.add_argument(
            "--workers",
            type=int,
            default=None,
            help="Override the number of chunks transcribed concurrently."
        )
        parser.add_argument(
            "--log-level",
            default="INFO",
            choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            help="Set the logging level for console and file output."
        )
        return parser

    def _load_config(self, args: argparse.Namespace) -> PipelineConfig:
        return ConfigLoader().load_pipeline_config(
            args.config,
            chunk_duration=args.chunk_duration,
            words_per_cue=args.words_per_cue,
            max_workers=args.workers,
        )

    def build_generator(self, config: PipelineConfig, translate: bool) -> SubtitleGenerator:
        """Wires the concrete components for ``config``."""
        api_key = config.api_key()
        session = ThreadLocalSession(lambda: create_session(api_key))
        base_url = config.resolved_base_url()
        http_options = dict(timeout=config.request_timeout, max_retries=config.max_retries, backoff=config.retry_backoff)

        transcriber = OpenAITranscriber(session, base_url=base_url, model_name=config.transcription_model, **http_options)
        translator = None
        if translate:
            translator = OpenAIChatTranslator(session, base_url=base_url, model_name=config.translation_model, **http_options)

        return SubtitleGenerator(
            config=config,
            audio_extractor=AudioExtractor(
                ffmpeg_path=config.ffmpeg_path,
                ffprobe_path=config.ffprobe_path,
                audio_codec=config.audio_codec,
                audio_bitrate=config.audio_bitrate,
            ),
            chunk_planner=ChunkPlanner(
                chunk_duration=config.chunk_duration,
                ffmpeg_path=config.ffmpeg_path,
                ffprobe_path=config.ffprobe_path,
                extension=config.chunk_extension,
            ),
            transcriber=transcriber,
            translator=translator,
            muxer=Muxer(ffmpeg_path=config.ffmpeg_path),
        )

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Parses arguments, sets up logging, loads config, and runs the generator.

        Returns the process exit code: 0 on success, 1 for known errors,
        2 for unexpected crashes. argparse itself exits 2 on bad usage.
        """
        args = self.parser.parse_args(argv)

        log_level = getattr(logging, args.log_level.upper(), logging.INFO)
        # Temporary setup so config loading errors are logged somewhere
        setup_logging(log_level=log_level, log_file='vidscribe_init.log')

        try:
            config = self._load_config(args)
        except (ConfigurationError, FileNotFoundError) as e:
            logger.critical(f"Failed to load configuration: {e}")
            return 1
        setup_logging(log_level=log_level, log_dir=config.log_dir, log_file=config.log_file)

        try:
            # Validate before any component touches the network or ffmpeg
            if not os.path.isfile(args.video):
                raise InputError(f"Video file not found: {args.video}")
            generator = self.build_generator(config, translate=bool(args.translate))
            result = generator.generate(args.video, language=args.language, target_language=args.translate)
        except VidScribeError as e:
            logger.error(f"{type(e).__name__}: {e}")
            return 1
        except KeyboardInterrupt:
            logger.warning("Process interrupted by user (Ctrl+C). Exiting.")
            return 1
        except Exception as e:
            logger.critical(f"An unexpected critical error occurred at the top level: {e}", exc_info=True)
            return 2

        logger.info(f"Video with subtitles: {result.video_path}")
        logger.info(f"Transcript: {result.transcript_path}")
        return 0


def main(argv: Optional[List[str]] = None) -> None:
    sys.exit(CLIHandler().run(argv))
