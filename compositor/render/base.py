"""Interface implemented by media processors that execute concatenation plans."""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

from compositor.timeline.emitter import ConcatenationPlan


@runtime_checkable
class MediaProcessor(Protocol):
    """Protocol implemented by media processing backends.

    Implementations should raise :class:`compositor.media.exceptions.MediaBackendError`
    (or a subclass) for all operational errors. Every method returns the path
    of the file it produced.
    """

    def normalize(
        self,
        location: str,
        output_path: str,
        *,
        frame_size: Sequence[int],
        frame_rate: int,
        duration: float | None = None,
    ) -> str:
        """Scale and pad a clip to ``frame_size`` at ``frame_rate``."""

    def render_scroll(
        self,
        image_location: str,
        output_path: str,
        *,
        duration: float,
        scroll_distance: int,
        scaled_height: int,
        frame_size: Sequence[int],
        frame_rate: int,
    ) -> str:
        """Render a tall image as a top-to-bottom scroll lasting ``duration``."""

    def render_still(
        self,
        image_location: str,
        output_path: str,
        *,
        duration: float,
        scaled_height: int | None,
        frame_size: Sequence[int],
        frame_rate: int,
    ) -> str:
        """Render an image held on screen for ``duration`` seconds."""

    def trim(self, path: str, output_path: str, duration: float) -> str:
        """Cut ``path`` down to its first ``duration`` seconds."""

    def concatenate(self, paths: Sequence[str], output_path: str) -> str:
        """Join ``paths`` in order into ``output_path``."""

    def render_plan(
        self,
        plan: ConcatenationPlan,
        output_path: str,
        *,
        workdir: str | None = None,
    ) -> str:
        """Render every plan entry and concatenate them once into ``output_path``."""


__all__ = ["MediaProcessor"]
