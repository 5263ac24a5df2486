from __future__ import annotations

from pathlib import Path

import pytest

from vidscribe.exceptions import FormattingError
from vidscribe.models import Cue, SubtitleTrack
from vidscribe.subtitle_formatter import SRTFormatter


def test_render_single_cue() -> None:
    rendered = SRTFormatter().render([Cue(text="  Hello world ", start=0.0, end=1.5)])
    assert rendered == "1\n00:00:00,000 --> 00:00:01,500\nHello world\n\n"


def test_render_numbers_sequentially_despite_timing_gaps() -> None:
    cues = [
        Cue(text="one", start=0.0, end=1.0),
        Cue(text="two", start=50.0, end=51.0),
        Cue(text="three", start=3700.25, end=3701.0),
    ]
    blocks = SRTFormatter().render(cues).split("\n\n")

    assert blocks[-1] == ""
    assert [block.split("\n")[0] for block in blocks[:-1]] == ["1", "2", "3"]
    assert blocks[2].split("\n")[1] == "01:01:40,250 --> 01:01:41,000"


def test_every_block_ends_with_one_blank_line() -> None:
    cues = [Cue(text=f"cue {i}", start=float(i), end=i + 0.5) for i in range(4)]
    rendered = SRTFormatter().render(cues)

    assert rendered.endswith("\n\n")
    assert not rendered.endswith("\n\n\n")
    assert rendered.count("\n\n") == 4


def test_write_sets_track_path(tmp_path: Path) -> None:
    track = SubtitleTrack(language="en", cues=[Cue(text="hi", start=0, end=1)])
    output = tmp_path / "video.en.srt"

    SRTFormatter().write(track, str(output))

    assert track.path == str(output)
    assert output.read_text(encoding="utf-8").startswith("1\n00:00:00,000 --> 00:00:01,000\nhi")


def test_write_refuses_empty_track(tmp_path: Path) -> None:
    output = tmp_path / "empty.srt"
    with pytest.raises(FormattingError):
        SRTFormatter().write(SubtitleTrack(language="en"), str(output))
    assert not output.exists()


def test_write_io_error(tmp_path: Path) -> None:
    track = SubtitleTrack(language="en", cues=[Cue(text="hi", start=0, end=1)])
    with pytest.raises(FormattingError):
        SRTFormatter().write(track, str(tmp_path / "missing" / "dir" / "x.srt"))


def test_render_rejects_blank_cue_text() -> None:
    with pytest.raises(FormattingError, match="Cue 1"):
        SRTFormatter().render([Cue(text="  ", start=0.0, end=1.0), Cue(text="b", start=1.0, end=2.0)])
