"""Serialize a timeline into a concatenation plan for the media processor."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Sequence, Tuple

from .models import SegmentKind, Timeline


@dataclass(frozen=True, slots=True)
class PlanEntry:
    """One rendering step of the plan; entries are concatenated in index order."""

    index: int
    location: str
    kind: SegmentKind
    duration: float
    natural_duration: float
    trimmed: bool
    frame_width: int
    frame_height: int
    frame_rate: int
    scaled_height: int | None = None
    scroll_distance: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "location": self.location,
            "kind": self.kind.value,
            "duration": self.duration,
            "natural_duration": self.natural_duration,
            "trimmed": self.trimmed,
            "frame_width": self.frame_width,
            "frame_height": self.frame_height,
            "frame_rate": self.frame_rate,
            "scaled_height": self.scaled_height,
            "scroll_distance": self.scroll_distance,
        }


@dataclass(frozen=True, slots=True)
class ConcatenationPlan:
    """Ordered list of entries the media processor renders and joins."""

    entries: Tuple[PlanEntry, ...]

    @property
    def total_duration(self) -> float:
        return math.fsum(entry.duration for entry in self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[PlanEntry]:
        return iter(self.entries)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_duration": self.total_duration,
            "entries": [entry.to_dict() for entry in self.entries],
        }


def _escape_concat_path(path: str) -> str:
    return path.replace("'", "'\\''")


def concat_list(paths: Sequence[str]) -> str:
    """Render ``paths`` as an ffmpeg concat demuxer list."""

    return "\n".join(f"file '{_escape_concat_path(str(path))}'" for path in paths)


def emit_plan(timeline: Timeline) -> ConcatenationPlan:
    """Translate ``timeline`` into a :class:`ConcatenationPlan`."""

    entries = []
    for index, segment in enumerate(timeline):
        params = segment.render_params
        entries.append(
            PlanEntry(
                index=index,
                location=segment.source_ref.location,
                kind=segment.kind,
                duration=segment.duration,
                natural_duration=segment.natural_duration or segment.duration,
                trimmed=segment.trimmed,
                frame_width=params.frame_width,
                frame_height=params.frame_height,
                frame_rate=params.frame_rate,
                scaled_height=params.scaled_height,
                scroll_distance=params.scroll_distance,
            )
        )
    return ConcatenationPlan(entries=tuple(entries))


__all__ = ["ConcatenationPlan", "PlanEntry", "concat_list", "emit_plan"]
