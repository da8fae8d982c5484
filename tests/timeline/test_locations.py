from __future__ import annotations

import pytest

from compositor.timeline.locations import normalize_location


@pytest.mark.parametrize(
    ("location", "base_url", "expected"),
    [
        ("clips/a.mp4", "https://cdn.example.com", "https://cdn.example.com/clips/a.mp4"),
        ("/clips/a.mp4", "https://cdn.example.com/", "https://cdn.example.com/clips/a.mp4"),
        ("http://other/a.mp4", "https://cdn.example.com", "http://other/a.mp4"),
        ("  local/a.mp4 ", "", "local/a.mp4"),
    ],
)
def test_normalize_location(location, base_url, expected):
    assert normalize_location(location, base_url) == expected


def test_base_url_defaults_to_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("COMPOSITOR_BASE_URL", "https://env.example.com")

    assert normalize_location("a.mp4") == "https://env.example.com/a.mp4"
