"""Split narration text into caption-sized fragments."""

from __future__ import annotations

from typing import List

from .common import FRAGMENT_PUNCTUATION, FRAGMENT_SPLIT_PATTERN, WEIGHTLESS_PATTERN

DEFAULT_MAX_FRAGMENT_CHARS = 50


def split_text_by_punctuation(
    text: str, *, max_chars: int = DEFAULT_MAX_FRAGMENT_CHARS
) -> List[str]:
    """Split ``text`` after each terminal punctuation mark.

    The punctuation stays attached to the fragment it closes. A run without
    punctuation that grows past ``max_chars`` is cut into ``max_chars``-long
    chunks; whatever is left over keeps accumulating. Fragments are stripped
    and blank ones dropped.
    """

    if max_chars <= 0:
        raise ValueError("max_chars must be greater than zero")
    if not text or not text.strip():
        return []

    fragments: List[str] = []
    current = ""

    def _flush(candidate: str) -> None:
        stripped = candidate.strip()
        if stripped:
            fragments.append(stripped)

    for part in FRAGMENT_SPLIT_PATTERN.split(text):
        if not part:
            continue
        if part in FRAGMENT_PUNCTUATION:
            current += part
            if current.strip():
                _flush(current)
                current = ""
            continue

        current += part
        if len(current) > max_chars:
            chunk = ""
            for char in current:
                chunk += char
                if len(chunk) >= max_chars:
                    _flush(chunk)
                    chunk = ""
            current = chunk

    _flush(current)
    return fragments


def fragment_weight(fragment: str) -> int:
    """Count the characters of ``fragment`` that take time to read."""

    return len(WEIGHTLESS_PATTERN.sub("", fragment))


__all__ = ["DEFAULT_MAX_FRAGMENT_CHARS", "fragment_weight", "split_text_by_punctuation"]
