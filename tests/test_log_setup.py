from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest

from vidscribe.log_setup import setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    yield root
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in saved_handlers:
        root.addHandler(handler)
    root.setLevel(saved_level)


def test_writes_rotating_log_file(tmp_path: Path, restore_root_logger) -> None:
    log_path = setup_logging(log_level=logging.DEBUG, log_dir=str(tmp_path / "logs"), log_file="run.log")

    logging.getLogger("vidscribe.test").info("hello from the pipeline")
    for handler in restore_root_logger.handlers:
        handler.flush()

    assert log_path == str(tmp_path / "logs" / "run.log")
    assert "hello from the pipeline" in Path(log_path).read_text(encoding="utf-8")
    assert logging.getLogger("urllib3").level == logging.WARNING


def test_second_call_replaces_handlers(tmp_path: Path, restore_root_logger) -> None:
    setup_logging(log_dir=str(tmp_path), log_file="init.log")
    setup_logging(log_dir=str(tmp_path), log_file="final.log")

    files = [h.baseFilename for h in restore_root_logger.handlers if isinstance(h, RotatingFileHandler)]
    assert files == [str(tmp_path / "final.log")]
    assert len(restore_root_logger.handlers) == 2


def test_unusable_log_dir_falls_back_to_console(tmp_path: Path, restore_root_logger) -> None:
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x", encoding="utf-8")

    assert setup_logging(log_dir=str(blocker)) is None
    assert not any(isinstance(h, RotatingFileHandler) for h in restore_root_logger.handlers)
