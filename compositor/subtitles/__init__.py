"""Subtitle segmentation, timing and SRT serialization."""

from .errors import SubtitleProcessingError, SubtitleTimingError
from .io import format_srt_timestamp, load_srt, parse_srt, render_srt, write_srt
from .models import SubtitleFragment, SubtitleTrack, emit_track
from .narration import NarrationBlock, synthesize_narration
from .segmentation import split_text_by_punctuation
from .timing import calculate_timings, synthesize

__all__ = [
    "NarrationBlock",
    "SubtitleFragment",
    "SubtitleProcessingError",
    "SubtitleTimingError",
    "SubtitleTrack",
    "calculate_timings",
    "emit_track",
    "format_srt_timestamp",
    "load_srt",
    "parse_srt",
    "render_srt",
    "split_text_by_punctuation",
    "synthesize",
    "synthesize_narration",
    "write_srt",
]
