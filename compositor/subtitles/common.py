"""Shared constants and logger used across subtitle modules."""

from __future__ import annotations

import re

from compositor import logging_manager as log_mgr

logger = log_mgr.get_logger().getChild("subtitles")

# Full-width and Latin terminal punctuation that closes a fragment.
FRAGMENT_PUNCTUATION = "。！？；：，、\n"
FRAGMENT_SPLIT_PATTERN = re.compile(f"([{re.escape(FRAGMENT_PUNCTUATION)}])")
# Characters that carry no reading time when weighting fragments.
WEIGHTLESS_PATTERN = re.compile(f"[{re.escape(FRAGMENT_PUNCTUATION)}\\s]")

SRT_TIMESTAMP_PATTERN = re.compile(
    r"^\s*(?P<start>\d{2}:\d{2}:\d{2}[,.]\d{3})\s*-->\s*(?P<end>\d{2}:\d{2}:\d{2}[,.]\d{3})"
)

__all__ = [
    "FRAGMENT_PUNCTUATION",
    "FRAGMENT_SPLIT_PATTERN",
    "SRT_TIMESTAMP_PATTERN",
    "WEIGHTLESS_PATTERN",
    "logger",
]
