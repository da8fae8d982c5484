from __future__ import annotations

import pytest

from compositor.subtitles import split_text_by_punctuation
from compositor.subtitles.segmentation import fragment_weight


def test_splits_after_each_punctuation_mark():
    assert split_text_by_punctuation("你好。今天天气不错，适合出门。") == [
        "你好。",
        "今天天气不错，",
        "适合出门。",
    ]


def test_trailing_text_without_punctuation_is_kept():
    assert split_text_by_punctuation("第一句。然后") == ["第一句。", "然后"]


def test_newlines_close_fragments_and_are_stripped():
    assert split_text_by_punctuation("第一行\n第二行") == ["第一行", "第二行"]


def test_long_runs_are_chunked():
    text = "字" * 120

    fragments = split_text_by_punctuation(text, max_chars=50)

    assert [len(fragment) for fragment in fragments] == [50, 50, 20]
    assert "".join(fragments) == text


def test_punctuation_only_input_keeps_weightless_fragments():
    fragments = split_text_by_punctuation("，。")

    assert fragments == ["，", "。"]
    assert all(fragment_weight(fragment) == 0 for fragment in fragments)


def test_invalid_max_chars():
    with pytest.raises(ValueError):
        split_text_by_punctuation("abc", max_chars=0)


def test_weight_ignores_punctuation_and_whitespace():
    assert fragment_weight("今天 天气，") == 4
