"""Subtitle tracks for narration made of consecutive audio blocks."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List

from compositor.config.loader import SubtitleTimingConfig

from .common import logger
from .errors import SubtitleTimingError
from .models import SubtitleFragment, SubtitleTrack
from .timing import synthesize


@dataclass(frozen=True, slots=True)
class NarrationBlock:
    """Text spoken over one audio block of known duration."""

    text: str
    duration: float

    def __post_init__(self) -> None:
        duration = float(self.duration)
        if not math.isfinite(duration) or duration < 0:
            raise SubtitleTimingError(f"Narration block duration must be >= 0, got {self.duration!r}")
        object.__setattr__(self, "duration", duration)
        object.__setattr__(self, "text", (self.text or "").strip())


def synthesize_narration(
    blocks: Iterable[NarrationBlock],
    *,
    start_offset: float = 0.0,
    config: SubtitleTimingConfig | None = None,
) -> SubtitleTrack:
    """Lay ``blocks`` end to end and time each block's text within its span.

    Blocks without text, or with zero duration, produce no captions but still
    advance the running offset by their duration.
    """

    offset = float(start_offset)
    fragments: List[SubtitleFragment] = []
    count = 0
    for block in blocks:
        count += 1
        if block.text and block.duration > 0:
            fragments.extend(synthesize(block.text, block.duration, offset, config=config))
        offset += block.duration

    logger.info(
        "Synthesized %s subtitle fragment(s) for %s narration block(s)",
        len(fragments),
        count,
        extra={"event": "subtitles.narration.complete", "attributes": {"end": offset}},
    )
    return SubtitleTrack(fragments=tuple(fragments))


__all__ = ["NarrationBlock", "synthesize_narration"]
