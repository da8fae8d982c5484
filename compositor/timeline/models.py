"""Typed containers for sources, segments and timelines."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, Optional, Sequence, Tuple

# Float residue below this is treated as zero when comparing durations.
DURATION_EPSILON = 1e-9


def _require_positive_duration(name: str, value: float) -> float:
    try:
        candidate = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be a number of seconds") from exc
    if not math.isfinite(candidate) or candidate <= 0:
        raise ValueError(f"{name} must be a finite number of seconds greater than zero")
    return candidate


class SourceKind(str, Enum):
    CLIP = "clip"
    IMAGE = "image"
    FILLER_CLIP = "filler-clip"

    @property
    def is_time_based(self) -> bool:
        return self is not SourceKind.IMAGE


class SegmentKind(str, Enum):
    CLIP = "clip-segment"
    STATIC_IMAGE = "static-image-segment"
    SCROLLING_IMAGE = "scrolling-image-segment"


class PoolKind(str, Enum):
    """Pool policy tags, declared in consumption priority order."""

    CLIP = "clip-pool"
    IMAGE = "image-pool"
    FILLER = "filler-pool"

    @property
    def priority(self) -> int:
        return _POOL_PRIORITY[self]

    @property
    def source_kind(self) -> SourceKind:
        return _POOL_SOURCE_KIND[self]


_POOL_PRIORITY = {PoolKind.CLIP: 0, PoolKind.IMAGE: 1, PoolKind.FILLER: 2}
_POOL_SOURCE_KIND = {
    PoolKind.CLIP: SourceKind.CLIP,
    PoolKind.IMAGE: SourceKind.IMAGE,
    PoolKind.FILLER: SourceKind.FILLER_CLIP,
}


@dataclass(frozen=True, slots=True)
class Dimensions:
    """Pixel dimensions of an image source."""

    width: int
    height: int

    def __post_init__(self) -> None:
        if int(self.width) <= 0 or int(self.height) <= 0:
            raise ValueError("Image dimensions must be positive")
        object.__setattr__(self, "width", int(self.width))
        object.__setattr__(self, "height", int(self.height))

    def scaled_to_width(self, target_width: int) -> "Dimensions":
        """Scale proportionally so that the width equals ``target_width``."""

        ratio = target_width / self.width
        return Dimensions(width=target_width, height=max(1, round(self.height * ratio)))

    def to_dict(self) -> Dict[str, int]:
        return {"width": self.width, "height": self.height}


@dataclass(frozen=True, slots=True)
class Source:
    """A unit of input media. Probed fields are filled in by a prober."""

    kind: SourceKind
    location: str
    raw_duration: Optional[float] = None
    raw_dimensions: Optional[Dimensions] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", SourceKind(self.kind))
        if not isinstance(self.location, str) or not self.location.strip():
            raise ValueError("Source location must be a non-empty string")
        if self.raw_duration is not None:
            object.__setattr__(
                self, "raw_duration", _require_positive_duration("raw_duration", self.raw_duration)
            )

    @classmethod
    def clip(cls, location: str) -> "Source":
        return cls(SourceKind.CLIP, location)

    @classmethod
    def image(cls, location: str) -> "Source":
        return cls(SourceKind.IMAGE, location)

    @classmethod
    def filler(cls, location: str) -> "Source":
        return cls(SourceKind.FILLER_CLIP, location)

    def with_duration(self, duration: float) -> "Source":
        return replace(self, raw_duration=duration)

    def with_dimensions(self, dimensions: Dimensions) -> "Source":
        return replace(self, raw_dimensions=dimensions)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"kind": self.kind.value, "location": self.location}
        if self.raw_duration is not None:
            payload["raw_duration"] = self.raw_duration
        if self.raw_dimensions is not None:
            payload["raw_dimensions"] = self.raw_dimensions.to_dict()
        return payload


@dataclass(frozen=True, slots=True)
class RenderParams:
    """How the media processor should shape a segment."""

    frame_width: int
    frame_height: int
    frame_rate: int
    scaled_height: Optional[int] = None
    scroll_distance: int = 0

    @property
    def frame_size(self) -> Tuple[int, int]:
        return (self.frame_width, self.frame_height)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "frame_width": self.frame_width,
            "frame_height": self.frame_height,
            "frame_rate": self.frame_rate,
        }
        if self.scaled_height is not None:
            payload["scaled_height"] = self.scaled_height
        if self.scroll_distance:
            payload["scroll_distance"] = self.scroll_distance
        return payload


@dataclass(frozen=True, slots=True)
class Segment:
    """A normalized, time-bounded unit ready for concatenation.

    ``natural_duration`` is the length before any clamp or trim; ``duration``
    is what the timeline actually plays. Constructing a segment with a
    non-positive or non-finite duration raises :class:`ValueError`.
    """

    source_ref: Source
    duration: float
    kind: SegmentKind
    render_params: RenderParams
    natural_duration: Optional[float] = None

    def __post_init__(self) -> None:
        duration = _require_positive_duration("Segment duration", self.duration)
        natural = self.natural_duration if self.natural_duration is not None else duration
        natural = _require_positive_duration("Segment natural duration", natural)
        if duration > natural + DURATION_EPSILON:
            raise ValueError("Segment duration cannot exceed its natural duration")
        object.__setattr__(self, "duration", duration)
        object.__setattr__(self, "natural_duration", natural)
        object.__setattr__(self, "kind", SegmentKind(self.kind))

    @property
    def trimmed(self) -> bool:
        return self.duration < (self.natural_duration or self.duration) - DURATION_EPSILON

    def clamped(self, limit: float) -> Optional["Segment"]:
        """Return this segment truncated to ``limit`` seconds.

        ``None`` means nothing positive would be left and the segment must be
        dropped.
        """

        if limit >= self.duration:
            return self
        if limit <= DURATION_EPSILON:
            return None
        return replace(self, duration=limit)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "duration": self.duration,
            "natural_duration": self.natural_duration,
            "trimmed": self.trimmed,
            "source": self.source_ref.to_dict(),
            "render_params": self.render_params.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class Pool:
    """An ordered, typed collection of candidate sources."""

    kind: PoolKind
    sources: Tuple[Source, ...] = ()
    name: str = ""

    def __post_init__(self) -> None:
        kind = PoolKind(self.kind)
        sources = tuple(self.sources)
        expected = kind.source_kind
        for source in sources:
            if source.kind is not expected:
                raise ValueError(
                    f"{kind.value} only accepts {expected.value} sources, got {source.kind.value}"
                )
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "sources", sources)
        object.__setattr__(self, "name", self.name or kind.value)

    @classmethod
    def from_locations(cls, kind: PoolKind, locations: Iterable[str], name: str = "") -> "Pool":
        kind = PoolKind(kind)
        return cls(
            kind=kind,
            sources=tuple(Source(kind.source_kind, location) for location in locations),
            name=name,
        )

    def __len__(self) -> int:
        return len(self.sources)

    def __iter__(self) -> Iterator[Source]:
        return iter(self.sources)


@dataclass(frozen=True, slots=True)
class Timeline:
    """An ordered sequence of segments."""

    segments: Tuple[Segment, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "segments", tuple(self.segments))

    @property
    def total_duration(self) -> float:
        return math.fsum(segment.duration for segment in self.segments)

    @property
    def is_empty(self) -> bool:
        return not self.segments

    def __len__(self) -> int:
        return len(self.segments)

    def __iter__(self) -> Iterator[Segment]:
        return iter(self.segments)

    def __getitem__(self, index: int) -> Segment:
        return self.segments[index]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_duration": self.total_duration,
            "segments": [segment.to_dict() for segment in self.segments],
        }


class DiagnosticCode(str, Enum):
    SOURCE_PROBE_FAILED = "source_probe_failed"
    IMAGE_TOO_SMALL = "image_too_small"
    SEGMENT_DROPPED = "segment_dropped"
    SHORTFALL = "shortfall"


@dataclass(frozen=True, slots=True)
class AllocationDiagnostic:
    """A soft failure or warning collected during allocation."""

    code: DiagnosticCode
    message: str
    location: Optional[str] = None
    pool: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"code": self.code.value, "message": self.message}
        if self.location is not None:
            payload["location"] = self.location
        if self.pool is not None:
            payload["pool"] = self.pool
        return payload


@dataclass(frozen=True, slots=True)
class AllocationResult:
    """Timeline plus the metadata a caller needs to judge it."""

    timeline: Timeline
    target_duration: float
    diagnostics: Tuple[AllocationDiagnostic, ...] = field(default_factory=tuple)

    @property
    def actual_duration(self) -> float:
        return self.timeline.total_duration

    @property
    def shortfall(self) -> float:
        gap = self.target_duration - self.actual_duration
        return gap if gap > DURATION_EPSILON else 0.0

    @property
    def is_short(self) -> bool:
        return self.shortfall > 0

    def diagnostics_with_code(self, code: DiagnosticCode) -> Sequence[AllocationDiagnostic]:
        return [item for item in self.diagnostics if item.code is code]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target_duration": self.target_duration,
            "actual_duration": self.actual_duration,
            "shortfall": self.shortfall,
            "timeline": self.timeline.to_dict(),
            "diagnostics": [item.to_dict() for item in self.diagnostics],
        }


__all__ = [
    "DURATION_EPSILON",
    "AllocationDiagnostic",
    "AllocationResult",
    "DiagnosticCode",
    "Dimensions",
    "Pool",
    "PoolKind",
    "RenderParams",
    "Segment",
    "SegmentKind",
    "Source",
    "SourceKind",
    "Timeline",
]
