"""Filesystem and timecode helpers shared across the pipeline."""

import contextlib
import logging
import math
import os
import shutil
import tempfile
from typing import Iterator, Optional

from .exceptions import FileSystemError

logger = logging.getLogger(__name__)

def ensure_dir_exists(dir_path: str) -> None:
    """
    Creates ``dir_path`` (and its parents) unless it is already a directory.

    Raises:
        ValueError: If ``dir_path`` is empty.
        FileSystemError: If the path is taken by a file or cannot be created.
    """
    if not dir_path:
        raise ValueError("Directory path cannot be empty.")
    if os.path.isdir(dir_path):
        return
    if os.path.exists(dir_path):
        raise FileSystemError(f"Path exists but is not a directory: {dir_path}")
    try:
        os.makedirs(dir_path, exist_ok=True)
    except OSError as e:
        raise FileSystemError(f"Could not create directory {dir_path}: {e}") from e
    logger.debug(f"Created directory: {dir_path}")

def format_time_srt(seconds: float) -> str:
    """
    Renders ``seconds`` as an SRT timecode ``HH:MM:SS,mmm``.

    Milliseconds are truncated, never rounded up, so a cue can not appear to
    start later than the word it was built from. Negative input renders as zero.

    Binary float error is absorbed with a relative tolerance of 1e-12, so only
    values within that fraction below a millisecond boundary (36 ns at ten
    hours) are carried up to it.
    """
    # 310.24 * 1000 == 310239.99999999994 must still land on 240
    milliseconds = max(seconds, 0.0) * 1000
    total_ms = math.floor(milliseconds + milliseconds * 1e-12)
    total_secs, millis = divmod(total_ms, 1000)
    total_mins, secs = divmod(total_secs, 60)
    hours, mins = divmod(total_mins, 60)
    return f"{hours:02d}:{mins:02d}:{secs:02d},{millis:03d}"

@contextlib.contextmanager
def working_directory(prefix: str = "vidscribe_", base_dir: Optional[str] = None, keep: bool = False) -> Iterator[str]:
    """
    Provides a scratch directory for one run and removes it on every exit path.

    Args:
        prefix: Prefix of the generated directory name.
        base_dir: Parent directory; the system temp dir when None.
        keep: Leave the directory in place for debugging instead of deleting it.

    Yields:
        The absolute path of the scratch directory.
    """
    if base_dir:
        ensure_dir_exists(base_dir)
    try:
        work_dir = tempfile.mkdtemp(prefix=prefix, dir=base_dir)
    except OSError as e:
        raise FileSystemError(f"Could not create temporary working directory: {e}") from e
    logger.debug(f"Created working directory: {work_dir}")
    try:
        yield work_dir
    finally:
        if keep:
            logger.info(f"Keeping working directory for inspection: {work_dir}")
        else:
            shutil.rmtree(work_dir, ignore_errors=True)
            logger.debug(f"Removed working directory: {work_dir}")
