"""SRT serialization and parsing for subtitle fragments."""

from __future__ import annotations

import math
import re
from pathlib import Path
from typing import List, Sequence

from .common import SRT_TIMESTAMP_PATTERN
from .errors import SubtitleProcessingError
from .models import SubtitleFragment

# Absorbs binary representation error (5.3 * 1000 == 5299.999...) before truncating.
_MS_EPSILON = 1e-6


def format_srt_timestamp(seconds: float) -> str:
    """Format ``seconds`` as ``HH:MM:SS,mmm``, truncating sub-millisecond parts."""

    if not math.isfinite(seconds) or seconds < 0:
        raise SubtitleProcessingError(f"Cannot format timestamp {seconds!r}")
    total_ms = int(math.floor(seconds * 1000 + _MS_EPSILON))
    hours, remainder = divmod(total_ms, 3600_000)
    minutes, remainder = divmod(remainder, 60_000)
    secs, milliseconds = divmod(remainder, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{milliseconds:03d}"


def parse_srt_timestamp(value: str) -> float:
    sanitized = value.strip().replace(",", ".")
    parts = sanitized.split(":")
    if len(parts) != 3:
        raise SubtitleProcessingError(f"Invalid timestamp: {value!r}")
    hours, minutes, seconds = parts
    try:
        return int(hours) * 3600 + int(minutes) * 60 + float(seconds)
    except ValueError as exc:
        raise SubtitleProcessingError(f"Invalid timestamp: {value!r}") from exc


def render_srt(fragments: Sequence[SubtitleFragment]) -> str:
    """Render ``fragments`` as SRT text, one blank-line-terminated block each."""

    blocks = []
    for index, fragment in enumerate(fragments, start=1):
        start_ts = format_srt_timestamp(fragment.start_time)
        end_ts = format_srt_timestamp(fragment.end_time)
        blocks.append(f"{index}\n{start_ts} --> {end_ts}\n{fragment.text}\n\n")
    return "".join(blocks)


def write_srt(path: Path, fragments: Sequence[SubtitleFragment]) -> Path:
    """Serialize ``fragments`` to ``path`` and return the path."""

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_srt(fragments), encoding="utf-8")
    return path


def _split_blocks(payload: str) -> List[str]:
    sanitized = payload.replace("\r\n", "\n").strip()
    if not sanitized:
        return []
    return re.split(r"\n{2,}", sanitized)


def parse_srt(payload: str) -> List[SubtitleFragment]:
    """Parse SRT ``payload`` back into fragments; blocks without text are skipped."""

    fragments: List[SubtitleFragment] = []
    for raw_block in _split_blocks(payload.lstrip("\ufeff")):
        lines = [line.strip() for line in raw_block.splitlines() if line.strip()]
        if len(lines) < 2:
            continue
        time_line_index = 1 if lines[0].isdigit() else 0
        match = SRT_TIMESTAMP_PATTERN.match(lines[time_line_index])
        if not match:
            continue
        text = "\n".join(lines[time_line_index + 1 :])
        if not text:
            continue
        try:
            fragments.append(
                SubtitleFragment(
                    text=text,
                    start_time=parse_srt_timestamp(match.group("start")),
                    end_time=parse_srt_timestamp(match.group("end")),
                )
            )
        except ValueError as exc:
            raise SubtitleProcessingError(f"Invalid subtitle block: {raw_block!r}") from exc
    return fragments


def load_srt(path: Path) -> List[SubtitleFragment]:
    """Read ``path`` and parse it as SRT."""

    raw = path.read_bytes()
    for encoding in ("utf-8-sig", "utf-8", "latin-1"):
        try:
            return parse_srt(raw.decode(encoding))
        except UnicodeDecodeError:
            continue
    raise SubtitleProcessingError(f"Unable to decode subtitle file '{path}'")  # pragma: no cover


__all__ = [
    "format_srt_timestamp",
    "load_srt",
    "parse_srt",
    "parse_srt_timestamp",
    "render_srt",
    "write_srt",
]
