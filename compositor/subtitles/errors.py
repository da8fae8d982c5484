"""Common subtitle exceptions."""

from __future__ import annotations


class SubtitleProcessingError(RuntimeError):
    """Raised when subtitle parsing or serialization fails."""


class SubtitleTimingError(ValueError):
    """Raised when a narration block cannot be timed (bad duration or offset)."""


__all__ = ["SubtitleProcessingError", "SubtitleTimingError"]
