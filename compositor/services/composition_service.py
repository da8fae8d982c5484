"""Service layer tying request payloads to the allocator, subtitles and renderer."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple
from uuid import uuid4

from compositor import logging_manager as log_mgr
from compositor.config.loader import (
    CompositionConfig,
    SubtitleTimingConfig,
    get_composition_config,
    get_subtitle_timing_config,
)
from compositor.render import MediaProcessor, create_media_processor
from compositor.schemas import (
    CompositionRequest,
    CompositionResponse,
    NarrationSubtitleRequest,
    SourcePayload,
    SubtitleFragmentPayload,
    SubtitleRequest,
    SubtitleResponse,
)
from compositor.subtitles import (
    NarrationBlock,
    SubtitleTrack,
    emit_track,
    synthesize,
    synthesize_narration,
)
from compositor.timeline import (
    AllocationResult,
    Dimensions,
    FFprobeProber,
    Pool,
    PoolKind,
    Prober,
    PydubAudioProber,
    Source,
    StaticProber,
    allocate,
    emit_plan,
    probe_source,
)
from compositor.timeline.locations import normalize_location
from compositor.timeline.probe import KnownMetadata

logger = log_mgr.get_logger().getChild("services.composition")

_POOL_FIELDS: Tuple[Tuple[PoolKind, str], ...] = (
    (PoolKind.CLIP, "clip_sources"),
    (PoolKind.IMAGE, "image_sources"),
    (PoolKind.FILLER, "filler_sources"),
)


def _known_metadata(payload: SourcePayload) -> Optional[KnownMetadata]:
    if payload.duration is not None:
        return payload.duration
    if payload.width is not None and payload.height is not None:
        return Dimensions(width=payload.width, height=payload.height)
    return None


class CompositionService:
    """Run composition requests end to end."""

    def __init__(
        self,
        *,
        config: CompositionConfig | None = None,
        prober: Prober | None = None,
        processor_factory: Callable[[CompositionConfig], MediaProcessor] | None = None,
    ) -> None:
        self._config = config or get_composition_config()
        self._prober = prober or FFprobeProber(
            executable=self._config.ffprobe_executable,
            timeout=self._config.probe_timeout,
        )
        self._processor_factory = processor_factory or create_media_processor

    @property
    def config(self) -> CompositionConfig:
        return self._config

    def build_pools(self, request: CompositionRequest) -> Tuple[List[Pool], Prober]:
        """Convert request source lists into pools plus a prober seeded with known metadata."""

        known: Dict[str, KnownMetadata] = {}
        pools: List[Pool] = []
        for kind, field_name in _POOL_FIELDS:
            sources = []
            for payload in getattr(request, field_name):
                location = normalize_location(payload.location, self._config.base_url or None)
                metadata = _known_metadata(payload)
                if metadata is not None:
                    known[location] = metadata
                sources.append(Source(kind=kind.source_kind, location=location))
            pools.append(Pool(kind=kind, sources=tuple(sources)))
        prober: Prober = StaticProber(known, fallback=self._prober) if known else self._prober
        return pools, prober

    def allocate(self, request: CompositionRequest) -> AllocationResult:
        pools, prober = self.build_pools(request)
        return allocate(
            request.target_duration,
            pools,
            prober,
            config=self._config,
            probe_workers=self._config.probe_concurrency,
        )

    def compose(
        self,
        request: CompositionRequest,
        *,
        output_path: Path | str | None = None,
        workdir: Path | str | None = None,
    ) -> CompositionResponse:
        """Allocate a timeline and, when ``output_path`` is given, render it."""

        with log_mgr.log_context(request_id=uuid4().hex):
            with log_mgr.log_stage("composition.allocate", target=request.target_duration):
                result = self.allocate(request)
                plan = emit_plan(result.timeline)
            rendered: str | None = None
            if output_path is not None:
                processor = self._processor_factory(self._config)
                with log_mgr.log_stage("composition.render", segments=len(plan)):
                    rendered = processor.render_plan(
                        plan,
                        str(output_path),
                        workdir=str(workdir) if workdir is not None else None,
                    )
            logger.info(
                "Composition finished with %s segment(s)",
                len(plan),
                extra={
                    "event": "services.composition.complete",
                    "attributes": {
                        "target": result.target_duration,
                        "actual": result.actual_duration,
                        "rendered": rendered is not None,
                    },
                },
            )

        payload = result.to_dict()
        return CompositionResponse(
            timeline=payload["timeline"]["segments"],
            plan=plan.to_dict()["entries"],
            target_duration=result.target_duration,
            actual_duration=result.actual_duration,
            shortfall=result.shortfall,
            diagnostics=payload["diagnostics"],
            output_path=rendered,
        )


def _subtitle_response(track: SubtitleTrack, output_path: Path | str | None) -> SubtitleResponse:
    written: str | None = None
    if output_path is not None:
        written = str(track.write(output_path))
    return SubtitleResponse(
        fragments=[
            SubtitleFragmentPayload(
                text=fragment.text,
                start_time=fragment.start_time,
                end_time=fragment.end_time,
            )
            for fragment in track
        ],
        srt=track.to_srt(),
        output_path=written,
    )


def synthesize_subtitles(
    request: SubtitleRequest,
    *,
    config: SubtitleTimingConfig | None = None,
    output_path: Path | str | None = None,
) -> SubtitleResponse:
    """Time the fragments of a single narration block."""

    settings = config or get_subtitle_timing_config()
    with log_mgr.log_context(request_id=uuid4().hex):
        fragments = synthesize(
            request.text,
            request.block_duration,
            request.block_start_offset,
            config=settings,
        )
        return _subtitle_response(emit_track(fragments), output_path)


def _resolve_blocks(
    request: NarrationSubtitleRequest,
    audio_prober: Prober,
) -> Sequence[NarrationBlock]:
    blocks: List[NarrationBlock] = []
    for payload in request.blocks:
        duration = payload.duration
        if duration is None:
            probed = probe_source(audio_prober, Source.clip(payload.audio_path.strip()))
            duration = probed.raw_duration
        blocks.append(NarrationBlock(text=payload.text, duration=duration))
    return blocks


def synthesize_narration_subtitles(
    request: NarrationSubtitleRequest,
    *,
    config: SubtitleTimingConfig | None = None,
    audio_prober: Prober | None = None,
    output_path: Path | str | None = None,
) -> SubtitleResponse:
    """Time every block of a narration, probing audio durations where needed."""

    settings = config or get_subtitle_timing_config()
    prober = audio_prober or PydubAudioProber()
    with log_mgr.log_context(request_id=uuid4().hex):
        blocks = _resolve_blocks(request, prober)
        track = synthesize_narration(blocks, start_offset=request.start_offset, config=settings)
        return _subtitle_response(track, output_path)


__all__ = [
    "CompositionService",
    "synthesize_narration_subtitles",
    "synthesize_subtitles",
]
