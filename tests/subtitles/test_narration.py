from __future__ import annotations

import pytest

from compositor.subtitles import NarrationBlock, SubtitleTimingError, synthesize_narration


def test_blocks_are_laid_end_to_end():
    track = synthesize_narration(
        [
            NarrationBlock(text="第一段。", duration=2.0),
            NarrationBlock(text="第二段，继续。", duration=3.0),
        ],
        start_offset=1.0,
    )

    assert track.start_time == 1.0
    assert track.end_time == pytest.approx(6.0)
    assert [fragment.text for fragment in track] == ["第一段。", "第二段，", "继续。"]
    assert track.fragments[1].start_time == pytest.approx(3.0)


def test_silent_blocks_still_advance_the_offset():
    track = synthesize_narration(
        [
            NarrationBlock(text="", duration=2.5),
            NarrationBlock(text="有字。", duration=0.0),
            NarrationBlock(text="开始。", duration=1.0),
        ]
    )

    assert len(track) == 1
    assert track.fragments[0].start_time == pytest.approx(2.5)
    assert track.fragments[0].end_time == pytest.approx(3.5)


def test_negative_block_duration_is_rejected():
    with pytest.raises(SubtitleTimingError):
        NarrationBlock(text="x", duration=-1)
