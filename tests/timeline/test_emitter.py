from __future__ import annotations

import pytest

from compositor.timeline import SegmentKind, allocate, concat_list, emit_plan


def test_plan_mirrors_timeline_order_and_trim(make_pools):
    pools, prober = make_pools(clips=[4, 3], images=[(1000, 2000)], fillers=[9])

    plan = emit_plan(allocate(9, pools, prober).timeline)

    assert [entry.index for entry in plan] == [0, 1, 2]
    assert [entry.kind for entry in plan] == [
        SegmentKind.CLIP,
        SegmentKind.CLIP,
        SegmentKind.SCROLLING_IMAGE,
    ]
    image = plan.entries[2]
    assert image.trimmed is True
    assert image.duration == pytest.approx(2)
    assert image.scroll_distance == 240
    assert plan.total_duration == pytest.approx(9)


def test_plan_to_dict_is_json_ready(make_pools):
    pools, prober = make_pools(clips=[2])

    payload = emit_plan(allocate(2, pools, prober).timeline).to_dict()

    assert payload["total_duration"] == pytest.approx(2)
    assert payload["entries"][0]["kind"] == "clip-segment"
    assert payload["entries"][0]["location"] == "clip-0.mp4"


def test_concat_list_escapes_single_quotes():
    text = concat_list(["/tmp/a.mp4", "/tmp/it's.mp4"])

    assert text.splitlines() == ["file '/tmp/a.mp4'", "file '/tmp/it'\\''s.mp4'"]
