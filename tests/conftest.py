from __future__ import annotations

from typing import Iterable, Mapping

import pytest

from compositor.config.loader import CompositionConfig, SubtitleTimingConfig, get_settings
from compositor.timeline import Dimensions, Pool, PoolKind, StaticProber


class DummyRunner:
    """Command runner double that records commands instead of executing them."""

    def __init__(self, stdout: str = "") -> None:
        self.commands: list[list[str]] = []
        self.kwargs: list[dict] = []
        self.stdout = stdout

    def __call__(self, command, **kwargs):
        self.commands.append(list(command))
        self.kwargs.append(kwargs)
        return _Completed(self.stdout)


class _Completed:
    def __init__(self, stdout: str) -> None:
        self.stdout = stdout
        self.returncode = 0


@pytest.fixture(autouse=True)
def _reset_cached_settings(monkeypatch: pytest.MonkeyPatch):
    for name in ("COMPOSITOR_FFMPEG_PATH", "COMPOSITOR_BASE_URL"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def composition_config() -> CompositionConfig:
    return CompositionConfig()


@pytest.fixture()
def timing_config() -> SubtitleTimingConfig:
    return SubtitleTimingConfig()


@pytest.fixture()
def dummy_runner() -> DummyRunner:
    return DummyRunner()


@pytest.fixture()
def make_pools():
    """Build clip, image and filler pools plus a prober that knows their metadata."""

    def _factory(
        clips: Iterable[float] = (),
        images: Iterable[tuple[int, int]] = (),
        fillers: Iterable[float] = (),
        extra: Mapping[str, object] | None = None,
    ):
        known: dict[str, object] = {}
        clip_locations = []
        for index, duration in enumerate(clips):
            location = f"clip-{index}.mp4"
            clip_locations.append(location)
            known[location] = duration
        image_locations = []
        for index, (width, height) in enumerate(images):
            location = f"image-{index}.jpg"
            image_locations.append(location)
            known[location] = Dimensions(width=width, height=height)
        filler_locations = []
        for index, duration in enumerate(fillers):
            location = f"filler-{index}.mp4"
            filler_locations.append(location)
            known[location] = duration
        known.update(extra or {})
        pools = [
            Pool.from_locations(PoolKind.CLIP, clip_locations),
            Pool.from_locations(PoolKind.IMAGE, image_locations),
            Pool.from_locations(PoolKind.FILLER, filler_locations),
        ]
        return pools, StaticProber(known)

    return _factory
