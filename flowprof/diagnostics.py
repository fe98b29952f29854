"""Non-fatal diagnostics: a collector used during a run and its frozen result.

Mapping problems that do not invalidate the report (an address declared by
the topology but missing from a metric source) are collected here and
returned with the aggregation result instead of being printed as they occur.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple

from flowprof.address import Address
from flowprof.logging import get_logger

logger = get_logger(__name__)

MISSING_TIME_ROW = "missing_time_row"
MISSING_MEMORY_ROW = "missing_memory_row"


@dataclass(frozen=True)
class Diagnostic:
    """One non-fatal finding.

    Attributes:
        kind: Machine-readable category (e.g. ``missing_time_row``).
        message: Human-readable description.
        node_id: Node the finding relates to, when any.
        address: Operator address the finding relates to, when any.
        source: Metric source name (``time`` or ``memory``), when any.
    """

    kind: str
    message: str
    node_id: Optional[int] = None
    address: Optional[Address] = None
    source: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "message": self.message,
            "node_id": self.node_id,
            "address": self.address.to_list() if self.address is not None else None,
            "source": self.source,
        }


@dataclass(frozen=True)
class Diagnostics:
    """Ordered, read-only diagnostics of one pipeline run."""

    items: Tuple[Diagnostic, ...] = ()

    def of_kind(self, kind: str) -> List[Diagnostic]:
        return [d for d in self.items if d.kind == kind]

    def counts(self) -> Dict[str, int]:
        out: Dict[str, int] = {}
        for d in self.items:
            out[d.kind] = out.get(d.kind, 0) + 1
        return out

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def to_list(self) -> List[Dict[str, Any]]:
        return [d.to_dict() for d in self.items]


class DiagnosticCollector:
    """Accumulates diagnostics while a run is in progress."""

    def __init__(self) -> None:
        self._items: List[Diagnostic] = []

    def add(self, diagnostic: Diagnostic, level: int = logging.WARNING) -> None:
        """Record a diagnostic and mirror it to the package log."""
        self._items.append(diagnostic)
        logger.log(level, diagnostic.message)

    def __len__(self) -> int:
        return len(self._items)

    def freeze(self) -> Diagnostics:
        return Diagnostics(items=tuple(self._items))
