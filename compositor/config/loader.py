"""Composition configuration loader and validation utilities."""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Optional

import yaml

_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent.parent / "conf" / "compositor.yaml"

_DEFAULT_COMPOSITION = {
    "frame_width": 1080,
    "frame_height": 1920,
    "frame_rate": 30,
    "scroll_pixels_per_second": 100.0,
    "min_scroll_duration": 3.0,
    "static_image_duration": 5.0,
    "min_image_dimension": 500,
    "probe_concurrency": 1,
    "probe_timeout": 30.0,
    "ffmpeg_executable": "ffmpeg",
    "ffprobe_executable": "ffprobe",
    "ffmpeg_loglevel": "error",
    "pad_color": "#000000",
    "base_url": "",
}

_DEFAULT_SUBTITLES = {
    "max_fragment_chars": 50,
    "min_fragment_duration": 0.5,
    "max_fragment_share": 1.0 / 3.0,
    "reserve_per_fragment": 0.3,
}


def _coerce_positive_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a positive integer, not a boolean")
    if isinstance(value, int):
        candidate = value
    elif isinstance(value, str) and value.strip():
        if not value.strip().isdigit():
            raise ValueError(f"{name} must be a positive integer")
        candidate = int(value.strip())
    else:
        raise ValueError(f"{name} must be a positive integer")
    if candidate <= 0:
        raise ValueError(f"{name} must be greater than zero")
    return candidate


def _coerce_positive_float(name: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a positive number, not a boolean")
    if isinstance(value, (int, float)):
        candidate = float(value)
    elif isinstance(value, str) and value.strip():
        try:
            candidate = float(value.strip())
        except ValueError as exc:
            raise ValueError(f"{name} must be a positive number") from exc
    else:
        raise ValueError(f"{name} must be a positive number")
    if not candidate > 0 or candidate == float("inf"):
        raise ValueError(f"{name} must be a finite number greater than zero")
    return candidate


def _coerce_non_empty_string(name: str, value: Any) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    raise ValueError(f"{name} must be a non-empty string")


def _coerce_optional_string(name: str, value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    raise ValueError(f"{name} must be a string")


def _normalise_payload(
    defaults: Mapping[str, Any], data: Mapping[str, Any] | None
) -> MutableMapping[str, Any]:
    payload: MutableMapping[str, Any] = dict(defaults)
    if not data:
        return payload
    for key, value in data.items():
        if key not in payload:
            continue
        payload[key] = value
    return payload


@dataclass(frozen=True, slots=True)
class CompositionConfig:
    """Validated timeline composition settings."""

    frame_width: int = 1080
    frame_height: int = 1920
    frame_rate: int = 30
    scroll_pixels_per_second: float = 100.0
    min_scroll_duration: float = 3.0
    static_image_duration: float = 5.0
    min_image_dimension: int = 500
    probe_concurrency: int = 1
    probe_timeout: float = 30.0
    ffmpeg_executable: str = "ffmpeg"
    ffprobe_executable: str = "ffprobe"
    ffmpeg_loglevel: str = "error"
    pad_color: str = "#000000"
    base_url: str = ""

    @property
    def frame_size(self) -> tuple[int, int]:
        return (self.frame_width, self.frame_height)

    @property
    def frame_tolerance(self) -> float:
        """Duration of one output frame, the allowed timeline rounding error."""

        return 1.0 / self.frame_rate

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any] | None) -> "CompositionConfig":
        normalised = _normalise_payload(_DEFAULT_COMPOSITION, payload)
        env_ffmpeg = os.environ.get("COMPOSITOR_FFMPEG_PATH")
        ffmpeg_executable = env_ffmpeg if env_ffmpeg else normalised["ffmpeg_executable"]
        env_base_url = os.environ.get("COMPOSITOR_BASE_URL")
        base_url = env_base_url if env_base_url is not None else normalised["base_url"]
        return cls(
            frame_width=_coerce_positive_int("frame_width", normalised["frame_width"]),
            frame_height=_coerce_positive_int("frame_height", normalised["frame_height"]),
            frame_rate=_coerce_positive_int("frame_rate", normalised["frame_rate"]),
            scroll_pixels_per_second=_coerce_positive_float(
                "scroll_pixels_per_second", normalised["scroll_pixels_per_second"]
            ),
            min_scroll_duration=_coerce_positive_float(
                "min_scroll_duration", normalised["min_scroll_duration"]
            ),
            static_image_duration=_coerce_positive_float(
                "static_image_duration", normalised["static_image_duration"]
            ),
            min_image_dimension=_coerce_positive_int(
                "min_image_dimension", normalised["min_image_dimension"]
            ),
            probe_concurrency=_coerce_positive_int(
                "probe_concurrency", normalised["probe_concurrency"]
            ),
            probe_timeout=_coerce_positive_float("probe_timeout", normalised["probe_timeout"]),
            ffmpeg_executable=_coerce_non_empty_string("ffmpeg_executable", ffmpeg_executable),
            ffprobe_executable=_coerce_non_empty_string(
                "ffprobe_executable", normalised["ffprobe_executable"]
            ),
            ffmpeg_loglevel=_coerce_non_empty_string(
                "ffmpeg_loglevel", normalised["ffmpeg_loglevel"]
            ),
            pad_color=_coerce_non_empty_string("pad_color", normalised["pad_color"]),
            base_url=_coerce_optional_string("base_url", base_url),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "frame_width": self.frame_width,
            "frame_height": self.frame_height,
            "frame_rate": self.frame_rate,
            "scroll_pixels_per_second": self.scroll_pixels_per_second,
            "min_scroll_duration": self.min_scroll_duration,
            "static_image_duration": self.static_image_duration,
            "min_image_dimension": self.min_image_dimension,
            "probe_concurrency": self.probe_concurrency,
            "probe_timeout": self.probe_timeout,
            "ffmpeg_executable": self.ffmpeg_executable,
            "ffprobe_executable": self.ffprobe_executable,
            "ffmpeg_loglevel": self.ffmpeg_loglevel,
            "pad_color": self.pad_color,
            "base_url": self.base_url,
        }


@dataclass(frozen=True, slots=True)
class SubtitleTimingConfig:
    """Tuning constants for subtitle segmentation and timing."""

    max_fragment_chars: int = 50
    min_fragment_duration: float = 0.5
    max_fragment_share: float = 1.0 / 3.0
    reserve_per_fragment: float = 0.3

    def __post_init__(self) -> None:
        if self.max_fragment_share > 1.0:
            raise ValueError("max_fragment_share must not exceed 1.0")

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any] | None) -> "SubtitleTimingConfig":
        normalised = _normalise_payload(_DEFAULT_SUBTITLES, payload)
        return cls(
            max_fragment_chars=_coerce_positive_int(
                "max_fragment_chars", normalised["max_fragment_chars"]
            ),
            min_fragment_duration=_coerce_positive_float(
                "min_fragment_duration", normalised["min_fragment_duration"]
            ),
            max_fragment_share=_coerce_positive_float(
                "max_fragment_share", normalised["max_fragment_share"]
            ),
            reserve_per_fragment=_coerce_positive_float(
                "reserve_per_fragment", normalised["reserve_per_fragment"]
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "max_fragment_chars": self.max_fragment_chars,
            "min_fragment_duration": self.min_fragment_duration,
            "max_fragment_share": self.max_fragment_share,
            "reserve_per_fragment": self.reserve_per_fragment,
        }


@dataclass(frozen=True, slots=True)
class CompositorSettings:
    """Top-level settings document: composition plus subtitle sections."""

    composition: CompositionConfig
    subtitles: SubtitleTimingConfig

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any] | None) -> "CompositorSettings":
        data = dict(payload or {})
        composition = data.get("composition")
        subtitles = data.get("subtitles")
        if composition is not None and not isinstance(composition, Mapping):
            raise ValueError("composition must be a mapping of settings")
        if subtitles is not None and not isinstance(subtitles, Mapping):
            raise ValueError("subtitles must be a mapping of settings")
        return cls(
            composition=CompositionConfig.from_mapping(composition),
            subtitles=SubtitleTimingConfig.from_mapping(subtitles),
        )


def load_settings(path: Optional[Path | str] = None) -> CompositorSettings:
    """Load and validate the compositor settings from disk."""

    config_path = Path(path) if path else _DEFAULT_CONFIG_PATH
    try:
        with config_path.open("r", encoding="utf-8") as handle:
            raw_data = yaml.safe_load(handle) or {}
    except FileNotFoundError:
        raw_data = {}
    if not isinstance(raw_data, Mapping):
        raise ValueError(f"Configuration file {config_path} must contain a mapping")
    return CompositorSettings.from_mapping(raw_data)


@lru_cache(maxsize=1)
def get_settings() -> CompositorSettings:
    """Return the cached compositor settings."""

    return load_settings()


def get_composition_config() -> CompositionConfig:
    return get_settings().composition


def get_subtitle_timing_config() -> SubtitleTimingConfig:
    return get_settings().subtitles


__all__ = [
    "CompositionConfig",
    "CompositorSettings",
    "SubtitleTimingConfig",
    "get_composition_config",
    "get_settings",
    "get_subtitle_timing_config",
    "load_settings",
]
