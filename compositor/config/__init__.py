"""Configuration helpers for timeline composition and subtitle timing."""

from .loader import (
    CompositionConfig,
    CompositorSettings,
    SubtitleTimingConfig,
    get_composition_config,
    get_settings,
    get_subtitle_timing_config,
    load_settings,
)

__all__ = [
    "CompositionConfig",
    "CompositorSettings",
    "SubtitleTimingConfig",
    "get_composition_config",
    "get_settings",
    "get_subtitle_timing_config",
    "load_settings",
]
