"""Turn probed sources into fixed-frame candidate segments."""

from __future__ import annotations

from compositor.config.loader import CompositionConfig

from .models import Dimensions, RenderParams, Segment, SegmentKind, Source


class SegmentNormalizer:
    """Compute the candidate segment a probed source would contribute.

    Clips keep their probed duration: scaling and padding to the output frame
    does not change it. Images are scaled to the frame width; anything taller
    than the frame scrolls at ``scroll_pixels_per_second`` for at least
    ``min_scroll_duration``, everything else is held for
    ``static_image_duration``.
    """

    def __init__(self, config: CompositionConfig | None = None) -> None:
        self._config = config or CompositionConfig()

    @property
    def config(self) -> CompositionConfig:
        return self._config

    def is_usable_image(self, dimensions: Dimensions) -> bool:
        minimum = self._config.min_image_dimension
        return dimensions.width >= minimum and dimensions.height >= minimum

    def normalize(self, source: Source) -> Segment:
        """Return the unclamped candidate segment for ``source``.

        ``source`` must already be probed; a missing probe field raises
        :class:`ValueError`.
        """

        if source.kind.is_time_based:
            return self._normalize_clip(source)
        return self._normalize_image(source)

    def _base_params(self, **overrides) -> RenderParams:
        return RenderParams(
            frame_width=self._config.frame_width,
            frame_height=self._config.frame_height,
            frame_rate=self._config.frame_rate,
            **overrides,
        )

    def _normalize_clip(self, source: Source) -> Segment:
        if source.raw_duration is None:
            raise ValueError(f"Clip {source.location!r} has not been probed")
        return Segment(
            source_ref=source,
            duration=source.raw_duration,
            kind=SegmentKind.CLIP,
            render_params=self._base_params(),
        )

    def _normalize_image(self, source: Source) -> Segment:
        if source.raw_dimensions is None:
            raise ValueError(f"Image {source.location!r} has not been probed")
        config = self._config
        scaled = source.raw_dimensions.scaled_to_width(config.frame_width)
        if scaled.height > config.frame_height:
            scroll_distance = scaled.height - config.frame_height
            duration = max(
                config.min_scroll_duration,
                scroll_distance / config.scroll_pixels_per_second,
            )
            return Segment(
                source_ref=source,
                duration=duration,
                kind=SegmentKind.SCROLLING_IMAGE,
                render_params=self._base_params(
                    scaled_height=scaled.height, scroll_distance=scroll_distance
                ),
            )
        return Segment(
            source_ref=source,
            duration=config.static_image_duration,
            kind=SegmentKind.STATIC_IMAGE,
            render_params=self._base_params(scaled_height=scaled.height),
        )


__all__ = ["SegmentNormalizer"]
