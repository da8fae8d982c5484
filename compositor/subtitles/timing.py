"""Apportion a narration block's duration across its text fragments."""

from __future__ import annotations

import math
from typing import List, Sequence

from compositor.config.loader import SubtitleTimingConfig

from .common import logger
from .errors import SubtitleTimingError
from .models import SubtitleFragment
from .segmentation import fragment_weight, split_text_by_punctuation


def _validate_block(block_duration: float, block_start_offset: float) -> tuple[float, float]:
    try:
        duration = float(block_duration)
        offset = float(block_start_offset)
    except (TypeError, ValueError) as exc:
        raise SubtitleTimingError("Block duration and offset must be numbers") from exc
    if not math.isfinite(duration) or duration <= 0:
        raise SubtitleTimingError(f"Block duration must be greater than zero, got {block_duration!r}")
    if not math.isfinite(offset) or offset < 0:
        raise SubtitleTimingError(f"Block start offset must be >= 0, got {block_start_offset!r}")
    return duration, offset


def _even_split(
    segments: Sequence[str], duration: float, offset: float
) -> List[SubtitleFragment]:
    step = duration / len(segments)
    block_end = offset + duration
    fragments = []
    for index, text in enumerate(segments):
        start = offset + index * step
        end = block_end if index == len(segments) - 1 else offset + (index + 1) * step
        fragments.append(SubtitleFragment(text=text, start_time=start, end_time=end))
    return fragments


def calculate_timings(
    segments: Sequence[str],
    block_duration: float,
    block_start_offset: float = 0.0,
    *,
    config: SubtitleTimingConfig | None = None,
) -> List[SubtitleFragment]:
    """Assign contiguous time spans to already-split ``segments``.

    Each fragment's ideal span is proportional to its weight, floored at
    ``min_fragment_duration`` and capped at ``max_fragment_share`` of the
    block. Ideals are scaled down when they overflow the block. Non-last
    fragments leave ``reserve_per_fragment`` seconds (less for very short
    blocks) for every fragment still to come, and the last fragment always
    ends exactly at ``block_start_offset + block_duration``.
    """

    duration, offset = _validate_block(block_duration, block_start_offset)
    segments = [segment for segment in segments if segment and segment.strip()]
    if not segments:
        return []

    count = len(segments)
    weights = [fragment_weight(segment) for segment in segments]
    total_weight = sum(weights)
    if total_weight == 0:
        return _even_split(segments, duration, offset)

    settings = config or SubtitleTimingConfig()
    per_weight = duration / total_weight
    ceiling = duration * settings.max_fragment_share
    ideal = [
        max(settings.min_fragment_duration, min(ceiling, weight * per_weight))
        for weight in weights
    ]
    ideal_total = math.fsum(ideal)
    scale = duration / ideal_total if ideal_total > duration else 1.0
    reserve = min(settings.reserve_per_fragment, duration / count)

    fragments: List[SubtitleFragment] = []
    block_end = offset + duration
    cursor = offset
    remaining = duration
    for index, text in enumerate(segments):
        fragments_left = count - index
        if fragments_left == 1:
            end = block_end
        else:
            span = min(ideal[index] * scale, remaining - reserve * (fragments_left - 1))
            end = cursor + span
        fragments.append(SubtitleFragment(text=text, start_time=cursor, end_time=end))
        remaining -= end - cursor
        cursor = end

    logger.debug(
        "Timed %s fragment(s) over %.3fs starting at %.3fs",
        count,
        duration,
        offset,
        extra={"event": "subtitles.timing.block"},
    )
    return fragments


def synthesize(
    text: str,
    block_duration: float,
    block_start_offset: float = 0.0,
    *,
    config: SubtitleTimingConfig | None = None,
) -> List[SubtitleFragment]:
    """Split ``text`` and time its fragments across one narration block."""

    settings = config or SubtitleTimingConfig()
    _validate_block(block_duration, block_start_offset)
    segments = split_text_by_punctuation(text or "", max_chars=settings.max_fragment_chars)
    return calculate_timings(segments, block_duration, block_start_offset, config=settings)


__all__ = ["calculate_timings", "synthesize"]
