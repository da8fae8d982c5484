"""Errors raised while building a timeline."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .models import Source


class CompositionError(RuntimeError):
    """Base class for timeline composition failures."""


class NoSourcesAvailable(CompositionError):
    """Raised when no pool yields a single usable segment."""

    def __init__(self, message: str = "No usable sources were available", *, diagnostics=()) -> None:
        super().__init__(message)
        self.diagnostics = tuple(diagnostics)


class SourceProbeFailed(CompositionError):
    """Raised by probers when a source's duration or dimensions cannot be read.

    The allocator treats this as a soft failure and skips the source.
    """

    def __init__(self, source: "Source", reason: str, *, cause: BaseException | None = None) -> None:
        super().__init__(f"Failed to probe {source.location!r}: {reason}")
        self.source = source
        self.reason = reason
        self.cause = cause


__all__ = ["CompositionError", "NoSourcesAvailable", "SourceProbeFailed"]
