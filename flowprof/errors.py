"""Error taxonomy for the validation and aggregation pipeline.

Every fatal condition raises exactly one of these. They subclass
``ValueError`` so callers treating bad input generically keep working.
"""

from __future__ import annotations

from typing import List, Sequence


class FlowprofError(ValueError):
    """Base class for all fatal flowprof errors."""


class InputError(FlowprofError):
    """A document or log line could not be read into the expected shape."""


class StructuralError(FlowprofError):
    """The topology violates a structural invariant (ids, edges, rules)."""


class CycleError(StructuralError):
    """The topology contains a directed cycle.

    Attributes:
        path: Node ids along the traversal path, ending with the node that
            closed the cycle (it also appears earlier in the path).
    """

    def __init__(self, path: Sequence[int], message: str | None = None) -> None:
        self.path: List[int] = list(path)
        if message is None:
            message = "cycle detected in topology: " + " -> ".join(
                str(n) for n in self.path
            )
        super().__init__(message)


class ConsistencyError(FlowprofError):
    """Topology and metric sources disagree (ownership or operator names)."""
