"""Request and response payloads for composition and subtitle jobs."""

from __future__ import annotations

from typing import Any, Dict, List, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class SourcePayload(BaseModel):
    """A source location, optionally with metadata the caller already knows."""

    model_config = ConfigDict(extra="forbid")

    location: str
    duration: float | None = Field(default=None, gt=0)
    width: int | None = Field(default=None, gt=0)
    height: int | None = Field(default=None, gt=0)

    @field_validator("location")
    @classmethod
    def _strip_location(cls, value: str) -> str:
        result = value.strip()
        if not result:
            raise ValueError("Source location cannot be empty")
        return result

    @model_validator(mode="after")
    def _check_dimensions(self) -> "SourcePayload":
        if (self.width is None) != (self.height is None):
            raise ValueError("width and height must be given together")
        return self


SourceEntry = Union[str, SourcePayload]


class CompositionRequest(BaseModel):
    """Target duration plus the three categorized source lists."""

    model_config = ConfigDict(extra="forbid")

    target_duration: float = Field(gt=0)
    clip_sources: List[SourceEntry] = Field(default_factory=list)
    image_sources: List[SourceEntry] = Field(default_factory=list)
    filler_sources: List[SourceEntry] = Field(default_factory=list)

    @field_validator("clip_sources", "image_sources", "filler_sources")
    @classmethod
    def _coerce_sources(cls, values: List[SourceEntry]) -> List[SourcePayload]:
        payloads: List[SourcePayload] = []
        for value in values:
            if isinstance(value, str):
                stripped = value.strip()
                if not stripped:
                    continue
                payloads.append(SourcePayload(location=stripped))
            else:
                payloads.append(value)
        return payloads


class CompositionResponse(BaseModel):
    """Allocated timeline along with its shortfall and diagnostics."""

    timeline: List[Dict[str, Any]] = Field(default_factory=list)
    plan: List[Dict[str, Any]] = Field(default_factory=list)
    target_duration: float
    actual_duration: float
    shortfall: float = 0.0
    diagnostics: List[Dict[str, Any]] = Field(default_factory=list)
    output_path: str | None = None


class SubtitleRequest(BaseModel):
    """One narration block to split into timed fragments."""

    model_config = ConfigDict(extra="forbid")

    text: str
    block_duration: float = Field(gt=0)
    block_start_offset: float = Field(default=0.0, ge=0)


class SubtitleFragmentPayload(BaseModel):
    text: str
    start_time: float
    end_time: float


class SubtitleResponse(BaseModel):
    """Timed fragments and their SRT rendering."""

    fragments: List[SubtitleFragmentPayload] = Field(default_factory=list)
    srt: str = ""
    output_path: str | None = None


class NarrationBlockPayload(BaseModel):
    """Text for one audio block; the duration is probed from ``audio_path`` when absent."""

    model_config = ConfigDict(extra="forbid")

    text: str = ""
    duration: float | None = Field(default=None, ge=0)
    audio_path: str | None = None

    @model_validator(mode="after")
    def _require_duration_source(self) -> "NarrationBlockPayload":
        if self.duration is None and not (self.audio_path and self.audio_path.strip()):
            raise ValueError("Narration blocks need either a duration or an audio_path")
        return self


class NarrationSubtitleRequest(BaseModel):
    """Consecutive narration blocks laid end to end from ``start_offset``."""

    model_config = ConfigDict(extra="forbid")

    blocks: List[NarrationBlockPayload] = Field(min_length=1)
    start_offset: float = Field(default=0.0, ge=0)


__all__ = [
    "CompositionRequest",
    "CompositionResponse",
    "NarrationBlockPayload",
    "NarrationSubtitleRequest",
    "SourceEntry",
    "SourcePayload",
    "SubtitleFragmentPayload",
    "SubtitleRequest",
    "SubtitleResponse",
]
