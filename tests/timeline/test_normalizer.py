from __future__ import annotations

import pytest

from compositor.config.loader import CompositionConfig
from compositor.timeline import Dimensions, SegmentKind, SegmentNormalizer, Source


def _image(width: int, height: int) -> Source:
    return Source.image("photo.jpg").with_dimensions(Dimensions(width=width, height=height))


def test_clip_keeps_probed_duration():
    segment = SegmentNormalizer().normalize(Source.clip("a.mp4").with_duration(7.5))

    assert segment.kind is SegmentKind.CLIP
    assert segment.duration == pytest.approx(7.5)
    assert segment.render_params.frame_size == (1080, 1920)
    assert segment.render_params.frame_rate == 30


def test_tall_image_scrolls_with_minimum_duration():
    segment = SegmentNormalizer().normalize(_image(1000, 2000))

    assert segment.kind is SegmentKind.SCROLLING_IMAGE
    assert segment.duration == pytest.approx(3.0)
    assert segment.render_params.scroll_distance == 240


def test_very_tall_image_scrolls_at_configured_rate():
    config = CompositionConfig(scroll_pixels_per_second=200.0)
    segment = SegmentNormalizer(config).normalize(_image(1080, 3920))

    assert segment.render_params.scroll_distance == 2000
    assert segment.duration == pytest.approx(10.0)


def test_image_that_fits_is_static():
    segment = SegmentNormalizer().normalize(_image(1920, 1080))

    assert segment.kind is SegmentKind.STATIC_IMAGE
    assert segment.duration == pytest.approx(5.0)
    assert segment.render_params.scaled_height == 608


def test_minimum_dimension_applies_to_raw_size():
    normalizer = SegmentNormalizer(CompositionConfig(min_image_dimension=500))

    assert normalizer.is_usable_image(Dimensions(width=500, height=500))
    assert not normalizer.is_usable_image(Dimensions(width=2000, height=499))


def test_unprobed_sources_are_rejected():
    normalizer = SegmentNormalizer()

    with pytest.raises(ValueError):
        normalizer.normalize(Source.clip("a.mp4"))
    with pytest.raises(ValueError):
        normalizer.normalize(Source.image("b.png"))
