"""Logging configuration for VidScribe."""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from .exceptions import FileSystemError
from .utils import ensure_dir_exists

DEFAULT_LOG_FORMAT = '%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] - %(message)s'
DEFAULT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# HTTP client libraries log every connection attempt at DEBUG
QUIET_LOGGERS = ("urllib3", "requests")


def _file_handler(log_dir: str, log_file: str, formatter: logging.Formatter,
                  max_bytes: int, backup_count: int) -> RotatingFileHandler:
    ensure_dir_exists(log_dir)
    handler = RotatingFileHandler(
        os.path.join(log_dir, log_file),
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding='utf-8'
    )
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    log_level: int = logging.INFO,
    log_dir: str = "logs",
    log_file: str = "vidscribe.log",
    log_format: str = DEFAULT_LOG_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    max_bytes: int = 10 * 1024 * 1024, # 10 MB
    backup_count: int = 5
) -> Optional[str]:
    """
    Routes all pipeline logging to stdout and to a size-rotated file.

    The CLI calls this twice: once with a bootstrap file before the
    configuration is read, then again with the configured location. Each call
    replaces the handlers installed by the previous one.

    Returns:
        Path of the log file, or None when only console logging could be set up.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(log_level)

    formatter = logging.Formatter(log_format, datefmt=date_format)
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(log_level)
    console.setFormatter(formatter)
    root.addHandler(console)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    try:
        file_handler = _file_handler(log_dir, log_file, formatter, max_bytes, backup_count)
    except (FileSystemError, OSError, ValueError) as e:
        root.error(f"File logging disabled, cannot write to {log_dir}/{log_file}: {e}")
        return None
    root.addHandler(file_handler)
    root.info(f"Logging to {file_handler.baseFilename}")
    return file_handler.baseFilename
