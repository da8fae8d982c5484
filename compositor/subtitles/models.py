"""Typed containers for timed subtitle fragments."""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, Sequence, Tuple


@dataclass(frozen=True, slots=True)
class SubtitleFragment:
    """One caption unit with an absolute time span in seconds."""

    text: str
    start_time: float
    end_time: float

    def __post_init__(self) -> None:
        if not isinstance(self.text, str) or not self.text.strip():
            raise ValueError("Subtitle fragment text must be non-empty")
        start = float(self.start_time)
        end = float(self.end_time)
        if not (math.isfinite(start) and math.isfinite(end)):
            raise ValueError("Subtitle fragment times must be finite")
        if start < 0 or end <= start:
            raise ValueError(
                f"Subtitle fragment must satisfy 0 <= start < end, got [{start}, {end}]"
            )
        object.__setattr__(self, "start_time", start)
        object.__setattr__(self, "end_time", end)

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "start_time": self.start_time, "end_time": self.end_time}


@dataclass(frozen=True, slots=True)
class SubtitleTrack:
    """An ordered subtitle track ready to be written as SRT."""

    fragments: Tuple[SubtitleFragment, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "fragments", tuple(self.fragments))

    def __len__(self) -> int:
        return len(self.fragments)

    def __iter__(self) -> Iterator[SubtitleFragment]:
        return iter(self.fragments)

    @property
    def start_time(self) -> float:
        return self.fragments[0].start_time if self.fragments else 0.0

    @property
    def end_time(self) -> float:
        return self.fragments[-1].end_time if self.fragments else 0.0

    def to_srt(self) -> str:
        from .io import render_srt

        return render_srt(self.fragments)

    def write(self, path: Path | str) -> Path:
        from .io import write_srt

        return write_srt(Path(path), self.fragments)

    def to_dict(self) -> Dict[str, Any]:
        return {"fragments": [fragment.to_dict() for fragment in self.fragments]}


def emit_track(fragments: Sequence[SubtitleFragment]) -> SubtitleTrack:
    """Wrap ``fragments`` into a :class:`SubtitleTrack`."""

    return SubtitleTrack(fragments=tuple(fragments))


__all__ = ["SubtitleFragment", "SubtitleTrack", "emit_track"]
