"""Handles loading configuration from YAML files."""

import dataclasses
import logging
import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import yaml

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

OFFSET_MODES = ("nominal", "measured")


@dataclass
class PipelineConfig:
    """Settings shared by every stage of a run."""
    chunk_duration: float = 300.0
    words_per_cue: int = 10
    max_workers: int = 1
    offset_mode: str = "nominal"
    transcription_model: str = "whisper-1"
    translation_model: str = "gpt-4o-mini"
    api_base_url: str = "https://api.openai.com/v1"
    api_key_env: str = "OPENAI_API_KEY"
    request_timeout: float = 120.0
    max_retries: int = 3
    retry_backoff: float = 2.0
    ffmpeg_path: Optional[str] = None
    ffprobe_path: Optional[str] = None
    audio_codec: str = "libopus"
    audio_bitrate: str = "64k"
    chunk_extension: str = "ogg"
    output_video_name: str = "output_with_subtitles.mp4"
    transcript_name: str = "transcription.txt"
    keep_subtitles: bool = True
    keep_temp: bool = False
    temp_dir: Optional[str] = None
    show_progress: bool = True
    log_dir: str = "logs"
    log_file: str = "vidscribe.log"

    def __post_init__(self):
        if self.chunk_duration <= 0:
            raise ConfigurationError(f"chunk_duration must be positive, got {self.chunk_duration}")
        if self.words_per_cue < 1:
            raise ConfigurationError(f"words_per_cue must be at least 1, got {self.words_per_cue}")
        if self.max_workers < 1:
            raise ConfigurationError(f"max_workers must be at least 1, got {self.max_workers}")
        if self.offset_mode not in OFFSET_MODES:
            raise ConfigurationError(f"offset_mode must be one of {OFFSET_MODES}, got '{self.offset_mode}'")
        if self.request_timeout <= 0:
            raise ConfigurationError(f"request_timeout must be positive, got {self.request_timeout}")
        if self.max_retries < 0:
            raise ConfigurationError(f"max_retries cannot be negative, got {self.max_retries}")

    @classmethod
    def from_mapping(cls, values: Optional[Mapping[str, Any]] = None, **overrides: Any) -> "PipelineConfig":
        """
        Builds a config from a loaded YAML mapping, then applies non-None overrides.

        Raises:
            ConfigurationError: On unknown keys or invalid values.
        """
        merged = dict(values or {})
        merged.update({key: value for key, value in overrides.items() if value is not None})
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(merged) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")
        try:
            return cls(**merged)
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration value: {e}") from e

    def api_key(self, environ: Optional[Mapping[str, str]] = None) -> str:
        """
        Reads the API credential from the environment.

        Raises:
            ConfigurationError: If the variable is unset or empty.
        """
        environ = os.environ if environ is None else environ
        key = environ.get(self.api_key_env, "").strip()
        if not key:
            raise ConfigurationError(f"Environment variable {self.api_key_env} is not set; it is required to call the speech and translation APIs.")
        return key

    def resolved_base_url(self, environ: Optional[Mapping[str, str]] = None) -> str:
        environ = os.environ if environ is None else environ
        return (environ.get("OPENAI_BASE_URL") or self.api_base_url).rstrip("/")


class ConfigLoader:
    """Reads the optional YAML settings file and builds a PipelineConfig from it."""

    def load_config(self, config_path: str) -> dict:
        """
        Parses ``config_path`` into a plain mapping; an empty file gives ``{}``.

        Raises:
            FileNotFoundError: If nothing exists at ``config_path``.
            ConfigurationError: If the path is not a readable YAML mapping.
        """
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        if not os.path.isfile(config_path):
            raise ConfigurationError(f"Configuration path is not a file: {config_path}")

        logger.info(f"Reading configuration from {config_path}")
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                values = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"{config_path} is not valid YAML: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Could not read {config_path}: {e}") from e

        if values is None:
            logger.warning(f"{config_path} is empty; falling back to defaults")
            return {}
        if not isinstance(values, dict):
            raise ConfigurationError(
                f"{config_path} must contain a mapping of settings, not {type(values).__name__}"
            )
        return values

    def load_pipeline_config(self, config_path: Optional[str] = None, **overrides: Any) -> PipelineConfig:
        """Loads ``config_path`` (when given) and turns it into a PipelineConfig."""
        values = self.load_config(config_path) if config_path else {}
        return PipelineConfig.from_mapping(values, **overrides)
