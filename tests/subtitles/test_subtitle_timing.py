from __future__ import annotations

import pytest

from compositor.config.loader import SubtitleTimingConfig
from compositor.subtitles import SubtitleTimingError, calculate_timings, synthesize


def _spans(fragments):
    return [(fragment.start_time, fragment.end_time) for fragment in fragments]


def test_chinese_sentence_spans_whole_block():
    fragments = synthesize("你好。今天天气不错，适合出门。", 6, 5)

    assert [fragment.text for fragment in fragments] == ["你好。", "今天天气不错，", "适合出门。"]
    assert _spans(fragments) == pytest.approx([(5, 6), (6, 8), (8, 11)])
    assert fragments[0].start_time == 5
    assert fragments[-1].end_time == 11


def test_empty_text_yields_no_fragments():
    assert synthesize("", 4) == []
    assert synthesize("   ", 4, 2) == []


def test_punctuation_only_text_is_split_evenly():
    fragments = synthesize("。，！", 3)

    assert [fragment.text for fragment in fragments] == ["。", "，", "！"]
    assert _spans(fragments) == pytest.approx([(0, 1), (1, 2), (2, 3)])


def test_fragments_are_contiguous():
    text = "第一句话。第二句话比较长一些，第三句！最后"
    fragments = synthesize(text, 9.5, 1.25)

    assert fragments[0].start_time == 1.25
    assert fragments[-1].end_time == pytest.approx(10.75)
    for previous, current in zip(fragments, fragments[1:]):
        assert previous.end_time == current.start_time
    assert all(fragment.end_time > fragment.start_time for fragment in fragments)


def test_many_fragments_in_short_block_all_get_positive_spans():
    text = "一，二，三，四，五，六，七，八，九，十。"
    fragments = synthesize(text, 1.0)

    assert len(fragments) == 10
    assert fragments[-1].end_time == pytest.approx(1.0)
    assert all(fragment.duration > 0 for fragment in fragments)


def test_long_fragment_is_capped_at_a_third_of_the_block():
    fragments = calculate_timings(["甲" * 40 + "。", "乙。", "丙。"], 12)

    assert fragments[0].duration == pytest.approx(4)
    assert fragments[-1].end_time == pytest.approx(12)


def test_short_fragments_get_minimum_duration():
    config = SubtitleTimingConfig(min_fragment_duration=1.0)
    fragments = calculate_timings(["啊。", "这是一段比较长的字幕内容。", "好。"], 10, config=config)

    assert fragments[0].duration >= 1.0 - 1e-9


def test_weightless_segments_are_split_evenly():
    fragments = calculate_timings(["，，", "。"], 4, 2)

    assert _spans(fragments) == pytest.approx([(2, 4), (4, 6)])


@pytest.mark.parametrize("duration", [0, -1.5, float("nan")])
def test_invalid_block_duration_raises(duration):
    with pytest.raises(SubtitleTimingError):
        synthesize("你好。", duration)


def test_negative_offset_raises():
    with pytest.raises(SubtitleTimingError):
        synthesize("你好。", 2, -1)


def test_synthesis_is_deterministic():
    text = "今天下雨了。我们在家看书，喝茶。"

    assert synthesize(text, 7.3, 3.1) == synthesize(text, 7.3, 3.1)
