from __future__ import annotations

from pathlib import Path

import pytest

from compositor.config.loader import (
    CompositionConfig,
    CompositorSettings,
    get_composition_config,
    get_settings,
    load_settings,
)


def test_missing_file_yields_defaults(tmp_path: Path):
    settings = load_settings(tmp_path / "absent.yaml")

    assert settings.composition == CompositionConfig.from_mapping({})
    assert settings.composition.frame_size == (1080, 1920)
    assert settings.subtitles.max_fragment_chars == 50
    assert settings.composition.probe_concurrency == 1


def test_yaml_values_are_coerced_and_unknown_keys_ignored(tmp_path: Path):
    path = tmp_path / "compositor.yaml"
    path.write_text(
        "composition:\n"
        "  frame_rate: '25'\n"
        "  scroll_pixels_per_second: 150\n"
        "  pad_color: ' #ffffff '\n"
        "  something_else: true\n"
        "subtitles:\n"
        "  reserve_per_fragment: 0.2\n",
        encoding="utf-8",
    )

    settings = load_settings(path)

    assert settings.composition.frame_rate == 25
    assert settings.composition.frame_tolerance == pytest.approx(0.04)
    assert settings.composition.scroll_pixels_per_second == 150.0
    assert settings.composition.pad_color == "#ffffff"
    assert settings.subtitles.reserve_per_fragment == 0.2


@pytest.mark.parametrize(
    "payload",
    [
        {"composition": {"frame_rate": 0}},
        {"composition": {"frame_width": True}},
        {"composition": {"static_image_duration": "soon"}},
        {"composition": {"ffmpeg_executable": "  "}},
        {"composition": ["not", "a", "mapping"]},
        {"subtitles": {"max_fragment_share": 2}},
    ],
)
def test_invalid_values_are_rejected(payload):
    with pytest.raises(ValueError):
        CompositorSettings.from_mapping(payload)


def test_non_mapping_document_is_rejected(tmp_path: Path):
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")

    with pytest.raises(ValueError):
        load_settings(path)


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("COMPOSITOR_FFMPEG_PATH", "/opt/bin/ffmpeg")
    monkeypatch.setenv("COMPOSITOR_BASE_URL", "https://media.example.com")

    config = CompositionConfig.from_mapping({"ffmpeg_executable": "ffmpeg"})

    assert config.ffmpeg_executable == "/opt/bin/ffmpeg"
    assert config.base_url == "https://media.example.com"


def test_cached_settings_read_repository_defaults():
    assert get_settings() is get_settings()
    assert get_composition_config().probe_concurrency == 4
