"""Request orchestration services."""

from .composition_service import (
    CompositionService,
    synthesize_narration_subtitles,
    synthesize_subtitles,
)

__all__ = [
    "CompositionService",
    "synthesize_narration_subtitles",
    "synthesize_subtitles",
]
