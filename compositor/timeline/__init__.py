"""Duration-budgeted timeline composition."""

from .allocator import AllocationState, DurationBudgetAllocator, allocate, order_pools
from .emitter import ConcatenationPlan, PlanEntry, concat_list, emit_plan
from .errors import CompositionError, NoSourcesAvailable, SourceProbeFailed
from .models import (
    AllocationDiagnostic,
    AllocationResult,
    DiagnosticCode,
    Dimensions,
    Pool,
    PoolKind,
    RenderParams,
    Segment,
    SegmentKind,
    Source,
    SourceKind,
    Timeline,
)
from .normalizer import SegmentNormalizer
from .probe import FFprobeProber, Prober, PydubAudioProber, StaticProber, probe_source

__all__ = [
    "AllocationDiagnostic",
    "AllocationResult",
    "AllocationState",
    "CompositionError",
    "ConcatenationPlan",
    "DiagnosticCode",
    "Dimensions",
    "DurationBudgetAllocator",
    "FFprobeProber",
    "NoSourcesAvailable",
    "PlanEntry",
    "Pool",
    "PoolKind",
    "Prober",
    "PydubAudioProber",
    "RenderParams",
    "Segment",
    "SegmentKind",
    "SegmentNormalizer",
    "Source",
    "SourceKind",
    "SourceProbeFailed",
    "StaticProber",
    "Timeline",
    "allocate",
    "concat_list",
    "emit_plan",
    "order_pools",
    "probe_source",
]
