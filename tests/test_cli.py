from __future__ import annotations

from pathlib import Path

import pytest

import vidscribe.cli as cli_module
from vidscribe.cli import CLIHandler
from vidscribe.exceptions import TranslationServiceError
from vidscribe.http_client import ThreadLocalSession
from vidscribe.subtitle_generator import GenerationResult, SubtitleGenerator


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli_module, "setup_logging", lambda **kwargs: None)


@pytest.fixture
def video(tmp_path: Path) -> Path:
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"vid")
    return path


def test_help_exits_zero(capsys: pytest.CaptureFixture) -> None:
    with pytest.raises(SystemExit) as excinfo:
        CLIHandler().run(["--help"])
    assert excinfo.value.code == 0
    assert "--video" in capsys.readouterr().out


def test_missing_video_argument_is_usage_error(capsys: pytest.CaptureFixture) -> None:
    with pytest.raises(SystemExit) as excinfo:
        CLIHandler().run([])
    assert excinfo.value.code != 0
    assert "usage" in capsys.readouterr().err


def test_nonexistent_video_fails_before_processing(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setattr(CLIHandler, "build_generator", lambda *a, **k: pytest.fail("must not build components"))
    assert CLIHandler().run(["-v", str(tmp_path / "nope.mp4")]) == 1


def test_missing_api_key(monkeypatch: pytest.MonkeyPatch, video: Path) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    assert CLIHandler().run(["-v", str(video)]) == 1


def test_bad_config_file(video: Path, tmp_path: Path) -> None:
    config = tmp_path / "bad.yaml"
    config.write_text("words_per_cue: 0\n", encoding="utf-8")
    assert CLIHandler().run(["-v", str(video), "-c", str(config)]) == 1


def test_builds_real_components(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    handler = CLIHandler()
    config = handler._load_config(handler.parser.parse_args(["-v", "x.mp4", "--chunk-duration", "120", "--workers", "2"]))

    generator = handler.build_generator(config, translate=True)

    assert isinstance(generator, SubtitleGenerator)
    assert generator.chunk_planner.chunk_duration == 120
    assert generator.assembler.max_workers == 2
    assert generator.translator is not None
    assert generator.transcriber.poster.session.headers["Authorization"] == "Bearer sk-test"
    assert isinstance(generator.transcriber.poster.session, ThreadLocalSession)


class RecordingGenerator:
    def __init__(self, error: Exception = None) -> None:
        self.error = error
        self.calls = []

    def generate(self, video_path, language="en", target_language=None):
        self.calls.append((video_path, language, target_language))
        if self.error is not None:
            raise self.error
        return GenerationResult(video_path="out.mp4", transcript_path="transcription.txt")


def test_run_passes_languages(monkeypatch: pytest.MonkeyPatch, video: Path) -> None:
    generator = RecordingGenerator()
    built = {}

    def fake_build(self, config, translate):
        built["translate"] = translate
        built["words_per_cue"] = config.words_per_cue
        return generator

    monkeypatch.setattr(CLIHandler, "build_generator", fake_build)

    code = CLIHandler().run(["-v", str(video), "-l", "fr", "-t", "de", "--words-per-cue", "6"])

    assert code == 0
    assert generator.calls == [(str(video), "fr", "de")]
    assert built == {"translate": True, "words_per_cue": 6}


def test_pipeline_error_exit_code(monkeypatch: pytest.MonkeyPatch, video: Path) -> None:
    generator = RecordingGenerator(TranslationServiceError("HTTP 500", status_code=500))
    monkeypatch.setattr(CLIHandler, "build_generator", lambda self, config, translate: generator)
    assert CLIHandler().run(["-v", str(video), "-t", "es"]) == 1


def test_unexpected_error_exit_code(monkeypatch: pytest.MonkeyPatch, video: Path) -> None:
    generator = RecordingGenerator(RuntimeError("bug"))
    monkeypatch.setattr(CLIHandler, "build_generator", lambda self, config, translate: generator)
    assert CLIHandler().run(["-v", str(video)]) == 2
