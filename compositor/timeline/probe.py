"""Probers: read durations and pixel dimensions of sources."""

from __future__ import annotations

import math
from pathlib import Path
from typing import Callable, Mapping, Optional, Protocol, Union, runtime_checkable

from PIL import Image, UnidentifiedImageError
from pydub import AudioSegment
from pydub.exceptions import CouldntDecodeError

from compositor import logging_manager as log_mgr
from compositor.media.command_runner import run_command
from compositor.media.exceptions import MediaBackendError

from .errors import SourceProbeFailed
from .models import Dimensions, Source

logger = log_mgr.get_logger().getChild("timeline.probe")


@runtime_checkable
class Prober(Protocol):
    """Collaborator that inspects a source.

    Implementations raise :class:`SourceProbeFailed` when the source cannot be
    read. Any per-source I/O timeout is the implementation's responsibility.
    """

    def probe_duration(self, source: Source) -> float:
        """Return the duration of a time-based source in seconds."""

    def probe_dimensions(self, source: Source) -> Dimensions:
        """Return the pixel dimensions of an image source."""


def probe_source(prober: Prober, source: Source) -> Source:
    """Return ``source`` with the field matching its kind populated.

    Any error raised by ``prober`` is converted into
    :class:`SourceProbeFailed` so callers only deal with one soft failure type.
    """

    try:
        if source.kind.is_time_based:
            if source.raw_duration is not None:
                return source
            duration = float(prober.probe_duration(source))
            if not math.isfinite(duration) or duration <= 0:
                raise SourceProbeFailed(source, f"non-positive duration {duration!r}")
            return source.with_duration(duration)
        if source.raw_dimensions is not None:
            return source
        return source.with_dimensions(prober.probe_dimensions(source))
    except SourceProbeFailed:
        raise
    except Exception as exc:
        raise SourceProbeFailed(source, str(exc) or exc.__class__.__name__, cause=exc) from exc


def _is_remote(location: str) -> bool:
    return "://" in location


class FFprobeProber:
    """Probe sources with ffprobe; local images are read with Pillow first."""

    def __init__(
        self,
        *,
        executable: str = "ffprobe",
        timeout: float | None = 30.0,
        command_runner: Callable[..., object] = run_command,
    ) -> None:
        self._executable = executable
        self._timeout = timeout
        self._run = command_runner

    def probe_duration(self, source: Source) -> float:
        output = self._ffprobe(
            source,
            "-show_entries",
            "format=duration",
            "-of",
            "default=noprint_wrappers=1:nokey=1",
        )
        try:
            return float(output)
        except ValueError as exc:
            raise SourceProbeFailed(source, f"unparsable duration {output!r}", cause=exc) from exc

    def probe_dimensions(self, source: Source) -> Dimensions:
        if not _is_remote(source.location):
            try:
                with Image.open(Path(source.location)) as image:
                    width, height = image.size
                return Dimensions(width=width, height=height)
            except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
                logger.debug(
                    "Pillow could not read %s, falling back to ffprobe: %s",
                    source.location,
                    exc,
                    extra={"event": "timeline.probe.pillow_fallback"},
                )
        output = self._ffprobe(
            source,
            "-select_streams",
            "v:0",
            "-show_entries",
            "stream=width,height",
            "-of",
            "csv=s=x:p=0",
        )
        try:
            width_text, height_text = output.split("x", 1)
            return Dimensions(width=int(width_text), height=int(height_text))
        except ValueError as exc:
            raise SourceProbeFailed(source, f"unparsable dimensions {output!r}", cause=exc) from exc

    def _ffprobe(self, source: Source, *arguments: str) -> str:
        command = [self._executable, "-v", "error", *arguments, source.location]
        try:
            result = self._run(command, timeout=self._timeout)
        except MediaBackendError as exc:
            raise SourceProbeFailed(source, str(exc), cause=exc) from exc
        stdout = getattr(result, "stdout", "") or ""
        if isinstance(stdout, bytes):
            stdout = stdout.decode("utf-8", errors="replace")
        lines = [line.strip() for line in stdout.splitlines() if line.strip()]
        if not lines or lines[0] == "N/A":
            raise SourceProbeFailed(source, "ffprobe returned no value")
        return lines[0]


class PydubAudioProber:
    """Duration-only prober for narration audio files."""

    def probe_duration(self, source: Source) -> float:
        try:
            segment = AudioSegment.from_file(source.location)
        except (CouldntDecodeError, OSError) as exc:
            raise SourceProbeFailed(source, str(exc), cause=exc) from exc
        return float(segment.duration_seconds)

    def probe_dimensions(self, source: Source) -> Dimensions:
        raise SourceProbeFailed(source, "audio prober cannot read image dimensions")


KnownMetadata = Union[float, int, Dimensions, BaseException]


class StaticProber:
    """Serve probe results from a mapping keyed by location.

    Locations missing from the table are delegated to ``fallback`` when one is
    given. Exceptions stored in the table are raised as probe failures.
    """

    def __init__(
        self,
        known: Mapping[str, KnownMetadata] | None = None,
        *,
        fallback: Optional[Prober] = None,
    ) -> None:
        self._known = dict(known or {})
        self._fallback = fallback

    def probe_duration(self, source: Source) -> float:
        value = self._lookup(source)
        if value is None:
            return self._require_fallback(source).probe_duration(source)
        if isinstance(value, Dimensions):
            raise SourceProbeFailed(source, "expected a duration, found dimensions")
        return float(value)

    def probe_dimensions(self, source: Source) -> Dimensions:
        value = self._lookup(source)
        if value is None:
            return self._require_fallback(source).probe_dimensions(source)
        if not isinstance(value, Dimensions):
            raise SourceProbeFailed(source, "expected dimensions, found a duration")
        return value

    def _lookup(self, source: Source) -> Optional[Union[float, int, Dimensions]]:
        value = self._known.get(source.location)
        if isinstance(value, BaseException):
            raise SourceProbeFailed(source, str(value) or value.__class__.__name__, cause=value)
        return value

    def _require_fallback(self, source: Source) -> Prober:
        if self._fallback is None:
            raise SourceProbeFailed(source, "no metadata known for source")
        return self._fallback


__all__ = [
    "FFprobeProber",
    "KnownMetadata",
    "Prober",
    "PydubAudioProber",
    "StaticProber",
    "probe_source",
]
