"""Media processor implementations and factory helpers."""

from __future__ import annotations

from compositor.config.loader import CompositionConfig

from .base import MediaProcessor
from .ffmpeg_processor import FFmpegMediaProcessor, parse_color_for_ffmpeg


def create_media_processor(
    config: CompositionConfig | None = None,
    **overrides: object,
) -> MediaProcessor:
    """Instantiate the ffmpeg media processor from ``config``."""

    settings = config or CompositionConfig()
    options: dict[str, object] = {
        "executable": settings.ffmpeg_executable,
        "loglevel": settings.ffmpeg_loglevel,
        "pad_color": settings.pad_color,
    }
    options.update(overrides)
    return FFmpegMediaProcessor(**options)


__all__ = [
    "FFmpegMediaProcessor",
    "MediaProcessor",
    "create_media_processor",
    "parse_color_for_ffmpeg",
]
