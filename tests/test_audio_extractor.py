from __future__ import annotations

import shutil
from pathlib import Path

import ffmpeg
import pytest

import vidscribe.audio_extractor as extractor_module
from vidscribe.audio_extractor import AudioExtractor, probe_duration
from vidscribe.exceptions import AudioExtractionError, MediaToolError


def test_extract_audio_command(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    captured = {}

    def fake_run(self, **kwargs):
        captured["args"] = self.compile(cmd=kwargs["cmd"])
        return b"", b""

    monkeypatch.setattr(ffmpeg.nodes.OutputStream, "run", fake_run)
    video = tmp_path / "clip.mp4"
    video.write_bytes(b"vid")

    audio_path = AudioExtractor(ffmpeg_path="ffmpeg7").extract_audio(str(video), str(tmp_path / "work"))

    args = captured["args"]
    assert audio_path == str(tmp_path / "work" / "audio.ogg")
    assert args[0] == "ffmpeg7"
    assert "-vn" in args
    assert args[args.index("-acodec") + 1] == "libopus"
    assert args[args.index("-b:a") + 1] == "64k"
    assert "-y" in args


def test_extract_audio_missing_video(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        AudioExtractor().extract_audio(str(tmp_path / "nope.mp4"), str(tmp_path))


def test_extract_audio_failure_cleans_partial_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run(self, **kwargs):
        Path(self.compile()[-2]).write_bytes(b"partial")
        raise ffmpeg.Error("ffmpeg", b"", b"Output file #0 does not contain any stream")

    monkeypatch.setattr(ffmpeg.nodes.OutputStream, "run", fake_run)
    video = tmp_path / "clip.mp4"
    video.write_bytes(b"vid")

    with pytest.raises(AudioExtractionError) as excinfo:
        AudioExtractor().extract_audio(str(video), str(tmp_path))

    assert "does not contain any stream" in excinfo.value.stderr
    assert not (tmp_path / "audio.ogg").exists()


def test_probe_duration_reads_format(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(extractor_module.ffmpeg, "probe", lambda path, cmd="ffprobe": {"format": {"duration": "420.04"}})
    assert probe_duration("a.ogg") == pytest.approx(420.04)


def test_probe_duration_falls_back_to_streams(monkeypatch: pytest.MonkeyPatch) -> None:
    info = {"format": {}, "streams": [{"codec_type": "audio", "duration": "12.5"}]}
    monkeypatch.setattr(extractor_module.ffmpeg, "probe", lambda path, cmd="ffprobe": info)
    assert probe_duration("a.ogg") == pytest.approx(12.5)


def test_probe_duration_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    def failing(path, cmd="ffprobe"):
        raise ffmpeg.Error("ffprobe", b"", b"No such file")

    monkeypatch.setattr(extractor_module.ffmpeg, "probe", failing)
    with pytest.raises(MediaToolError):
        probe_duration("a.ogg")

    monkeypatch.setattr(extractor_module.ffmpeg, "probe", lambda path, cmd="ffprobe": {"format": {}})
    with pytest.raises(MediaToolError, match="no duration"):
        probe_duration("a.ogg")


@pytest.mark.skipif(shutil.which("ffmpeg") is None, reason="ffmpeg is required for real extraction tests")
def test_extract_and_split_real_audio(tmp_path: Path) -> None:
    from vidscribe.chunk_planner import ChunkPlanner

    video = tmp_path / "tone.mkv"
    (
        ffmpeg
        .input("sine=frequency=440:duration=5", f="lavfi")
        .output(str(video), acodec="pcm_s16le")
        .overwrite_output()
        .run(capture_stdout=True, capture_stderr=True)
    )

    # PCM keeps the test independent of optional encoders in the local ffmpeg build
    extractor = AudioExtractor(audio_codec="pcm_s16le")
    audio_path = extractor.extract_audio(str(video), str(tmp_path / "work"), "audio.wav")
    chunks = ChunkPlanner(chunk_duration=2, extension="wav").split(audio_path, str(tmp_path / "work" / "chunks"))

    assert len(chunks) >= 2
    assert [c.index for c in chunks] == list(range(len(chunks)))
