"""Address-indexed metric rows from the runtime's profiling logs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

from flowprof.address import Address


@dataclass(frozen=True)
class TimeRow:
    """One operator row of the time log.

    Attributes:
        activations: Number of times the operator was scheduled.
        total_active_ms: Wall time spent active, in milliseconds.
        op_name: Operator name as printed by the runtime.
    """

    activations: int
    total_active_ms: float
    op_name: str


@dataclass(frozen=True)
class MemoryRow:
    """One operator row of the memory (arrangement) log."""

    batched_in: int
    merges: int
    merge_in: int
    merge_out: int
    dropped: int
    op_name: str


TimeIndex = Dict[Address, TimeRow]
MemoryIndex = Dict[Address, MemoryRow]


@dataclass(frozen=True)
class MetricSources:
    """The metric sources of one report.

    Attributes:
        time: Required time source.
        memory: Optional memory source; None when no memory log was given.
    """

    time: TimeIndex = field(default_factory=dict)
    memory: Optional[MemoryIndex] = None

    @property
    def has_memory(self) -> bool:
        return self.memory is not None
