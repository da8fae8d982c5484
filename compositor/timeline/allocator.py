"""Duration budget allocation: fill a fixed-length timeline from source pools."""

from __future__ import annotations

import contextlib
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from compositor import logging_manager as log_mgr
from compositor.config.loader import CompositionConfig

from .errors import NoSourcesAvailable, SourceProbeFailed
from .models import (
    DURATION_EPSILON,
    AllocationDiagnostic,
    AllocationResult,
    DiagnosticCode,
    Pool,
    Segment,
    Source,
    Timeline,
)
from .normalizer import SegmentNormalizer
from .probe import Prober, probe_source

logger = log_mgr.get_logger().getChild("timeline.allocator")

ProbeOutcome = Union[Source, SourceProbeFailed]

# Upper bound on correction rounds when settling the final segment.
_MAX_SETTLE_STEPS = 64


@dataclass(slots=True)
class AllocationState:
    """Running totals for a single allocation call."""

    target_duration: float
    segments: List[Segment] = field(default_factory=list)
    diagnostics: List[AllocationDiagnostic] = field(default_factory=list)

    @property
    def elapsed(self) -> float:
        return math.fsum(segment.duration for segment in self.segments)

    @property
    def remaining(self) -> float:
        return self.target_duration - self.elapsed

    @property
    def is_filled(self) -> bool:
        return self.remaining <= DURATION_EPSILON

    def append(self, segment: Segment) -> None:
        self.segments.append(segment)

    def record(
        self,
        code: DiagnosticCode,
        message: str,
        *,
        source: Optional[Source] = None,
        pool: Optional[Pool] = None,
    ) -> None:
        self.diagnostics.append(
            AllocationDiagnostic(
                code=code,
                message=message,
                location=source.location if source is not None else None,
                pool=pool.name if pool is not None else None,
            )
        )


def order_pools(pools: Iterable[Pool]) -> List[Pool]:
    """Sort pools into clip, image, filler priority; equal kinds keep their order."""

    return sorted(pools, key=lambda pool: pool.kind.priority)


def _validate_target(target_duration: float) -> float:
    try:
        target = float(target_duration)
    except (TypeError, ValueError) as exc:
        raise ValueError("target_duration must be a number of seconds") from exc
    if not math.isfinite(target) or target <= 0:
        raise ValueError("target_duration must be a finite number greater than zero")
    return target


class DurationBudgetAllocator:
    """Select, normalize and trim sources until a duration budget is spent."""

    def __init__(
        self,
        prober: Prober,
        *,
        config: CompositionConfig | None = None,
        normalizer: SegmentNormalizer | None = None,
        probe_workers: int | None = None,
    ) -> None:
        self._config = config or (normalizer.config if normalizer else CompositionConfig())
        self._prober = prober
        self._normalizer = normalizer or SegmentNormalizer(self._config)
        workers = probe_workers if probe_workers is not None else self._config.probe_concurrency
        self._probe_workers = max(1, int(workers))

    def allocate(self, target_duration: float, pools: Sequence[Pool]) -> AllocationResult:
        target = _validate_target(target_duration)
        ordered = order_pools(pools)
        if not any(len(pool) for pool in ordered):
            raise NoSourcesAvailable("No sources were supplied in any pool")

        logger.info(
            "Allocating %.3fs across %s pool(s)",
            target,
            len(ordered),
            extra={
                "event": "timeline.allocate.start",
                "attributes": {pool.name: len(pool) for pool in ordered},
            },
        )

        state = AllocationState(target_duration=target)
        for pool in ordered:
            if state.is_filled:
                break
            self._drain_pool(pool, state)
        self._trim_last_segment(state)
        self._settle_final_segment(state)

        if not state.segments:
            logger.warning(
                "No pool produced a usable segment",
                extra={"event": "timeline.allocate.empty"},
            )
            raise NoSourcesAvailable(
                "No pool produced a usable segment", diagnostics=state.diagnostics
            )

        result_timeline = Timeline(segments=tuple(state.segments))
        actual = result_timeline.total_duration
        if target - actual > DURATION_EPSILON:
            state.record(
                DiagnosticCode.SHORTFALL,
                f"Sources cover {actual:.3f}s of the requested {target:.3f}s",
            )
            logger.warning(
                "Timeline is %.3fs short of the target",
                target - actual,
                extra={"event": "timeline.allocate.shortfall"},
            )

        logger.info(
            "Allocated %s segment(s) totalling %.3fs",
            len(result_timeline),
            actual,
            extra={"event": "timeline.allocate.complete"},
        )
        return AllocationResult(
            timeline=result_timeline,
            target_duration=target,
            diagnostics=tuple(state.diagnostics),
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _drain_pool(self, pool: Pool, state: AllocationState) -> None:
        if not len(pool):
            return
        with contextlib.closing(self._probe_in_order(pool)) as outcomes:
            for source, outcome in outcomes:
                if isinstance(outcome, SourceProbeFailed):
                    state.record(
                        DiagnosticCode.SOURCE_PROBE_FAILED,
                        outcome.reason,
                        source=source,
                        pool=pool,
                    )
                    logger.warning(
                        "Skipping source %s: %s",
                        source.location,
                        outcome.reason,
                        extra={"event": "timeline.probe.failed", "pool": pool.name},
                    )
                    continue

                if not outcome.kind.is_time_based and not self._normalizer.is_usable_image(
                    outcome.raw_dimensions
                ):
                    dims = outcome.raw_dimensions
                    state.record(
                        DiagnosticCode.IMAGE_TOO_SMALL,
                        f"Image is {dims.width}x{dims.height}",
                        source=outcome,
                        pool=pool,
                    )
                    logger.info(
                        "Discarding image %s (%sx%s is too small)",
                        outcome.location,
                        dims.width,
                        dims.height,
                        extra={"event": "timeline.image.too_small"},
                    )
                    continue

                candidate = self._normalizer.normalize(outcome)
                segment = candidate.clamped(state.remaining)
                if segment is None:
                    state.record(
                        DiagnosticCode.SEGMENT_DROPPED,
                        "No duration left for segment",
                        source=outcome,
                        pool=pool,
                    )
                    continue

                state.append(segment)
                logger.debug(
                    "Added %s of %.3fs from %s",
                    segment.kind.value,
                    segment.duration,
                    outcome.location,
                    extra={"event": "timeline.segment.added", "pool": pool.name},
                )
                if state.is_filled:
                    break

    def _probe_in_order(self, pool: Pool) -> Iterator[Tuple[Source, ProbeOutcome]]:
        """Yield probe outcomes in input order, probing ahead when configured."""

        if self._probe_workers <= 1 or len(pool) <= 1:
            for source in pool:
                try:
                    yield source, probe_source(self._prober, source)
                except SourceProbeFailed as exc:
                    yield source, exc
            return

        workers = min(self._probe_workers, len(pool))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="probe") as executor:
            futures = [executor.submit(probe_source, self._prober, source) for source in pool]
            try:
                for source, future in zip(pool, futures):
                    try:
                        yield source, future.result()
                    except SourceProbeFailed as exc:
                        yield source, exc
            finally:
                for future in futures:
                    future.cancel()

    def _trim_last_segment(self, state: AllocationState) -> None:
        """Trim only the final segment so the total never exceeds the target."""

        if not state.segments or state.remaining >= -DURATION_EPSILON:
            return
        last = state.segments.pop()
        keep = state.target_duration - state.elapsed
        trimmed = last.clamped(keep)
        if trimmed is None:
            state.record(
                DiagnosticCode.SEGMENT_DROPPED,
                "Trimming left no duration for the final segment",
                source=last.source_ref,
            )
            return
        state.append(trimmed)

    def _settle_final_segment(self, state: AllocationState) -> None:
        """Adjust the last duration until the fsum total equals the target.

        The exact residual is applied first; single float steps settle any
        rounding left over. The duration stays positive and never exceeds the
        segment's natural duration.
        """

        if not state.segments or abs(state.remaining) > DURATION_EPSILON:
            return
        target = state.target_duration
        last = state.segments[-1]
        others = [segment.duration for segment in state.segments[:-1]]
        duration = last.duration
        for _ in range(_MAX_SETTLE_STEPS):
            total = math.fsum([*others, duration])
            if total == target:
                break
            residual = math.fsum([target, -duration, *(-value for value in others)])
            candidate = duration + residual
            if candidate == duration:
                candidate = math.nextafter(duration, 0.0 if total > target else math.inf)
            if candidate <= 0 or candidate > last.natural_duration:
                break
            duration = candidate
        if duration != last.duration:
            state.segments[-1] = replace(last, duration=duration)


def allocate(
    target_duration: float,
    pools: Sequence[Pool],
    prober: Prober,
    *,
    config: CompositionConfig | None = None,
    probe_workers: int | None = None,
) -> AllocationResult:
    """Build a timeline of ``target_duration`` seconds from ``pools``."""

    allocator = DurationBudgetAllocator(prober, config=config, probe_workers=probe_workers)
    return allocator.allocate(target_duration, pools)


__all__ = [
    "AllocationState",
    "DurationBudgetAllocator",
    "allocate",
    "order_pools",
]
