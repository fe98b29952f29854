"""Aggregated per-node views, rule views and totals.

All classes are immutable and expose ``to_dict()`` producing JSON-ready
primitives (addresses as integer lists).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from flowprof.address import Address
from flowprof.diagnostics import Diagnostics


@dataclass(frozen=True)
class OperatorView:
    """Metrics of one operator address owned by a node.

    Memory fields are None when the memory source has no row for the
    address (or no memory source was supplied).
    """

    address: Address
    op_name: str
    activations: int = 0
    total_active_ms: float = 0.0
    in_time: bool = False
    batched_in: Optional[int] = None
    merges: Optional[int] = None
    merge_in: Optional[int] = None
    merge_out: Optional[int] = None
    dropped: Optional[int] = None

    @property
    def has_memory_data(self) -> bool:
        return self.batched_in is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "addr": self.address.to_list(),
            "op_name": self.op_name,
            "activations": self.activations,
            "total_active_ms": self.total_active_ms,
            "in_time": self.in_time,
            "batched_in": self.batched_in,
            "merges": self.merges,
            "merge_in": self.merge_in,
            "merge_out": self.merge_out,
            "dropped": self.dropped,
        }


@dataclass(frozen=True)
class AggregatedNodeView:
    """A validated node joined with the metrics of its operators.

    Attributes:
        id: Node id.
        label: Display label.
        block: Grouping tag.
        fingerprint: Plan-position key, when any.
        tags: Free-form tags.
        rule: Rule the node declares membership in.
        primary_parent: Spanning-tree parent, None for roots.
        children: Spanning-tree children.
        extra_parents: DAG parents other than the primary one.
        dag_parents: All DAG parents.
        dag_children: All DAG children.
        operators: Per-address metrics, ordered for display.
        self_*: Sums over ``operators``.
        has_memory_data: True if any operator has a memory row.
    """

    id: int
    label: str
    block: str
    fingerprint: Optional[str]
    tags: Tuple[str, ...]
    rule: Optional[str]
    primary_parent: Optional[int]
    children: Tuple[int, ...]
    extra_parents: Tuple[int, ...]
    dag_parents: Tuple[int, ...]
    dag_children: Tuple[int, ...]
    operators: Tuple[OperatorView, ...] = ()
    self_activations: int = 0
    self_total_active_ms: float = 0.0
    self_batched_in: int = 0
    self_merges: int = 0
    self_merge_in: int = 0
    self_merge_out: int = 0
    self_dropped: int = 0
    has_memory_data: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "block": self.block,
            "fingerprint": self.fingerprint,
            "tags": list(self.tags),
            "rule": self.rule,
            "primary_parent": self.primary_parent,
            "children": list(self.children),
            "extra_parents": list(self.extra_parents),
            "dag_parents": list(self.dag_parents),
            "dag_children": list(self.dag_children),
            "self_activations": self.self_activations,
            "self_total_active_ms": self.self_total_active_ms,
            "self_batched_in": self.self_batched_in,
            "self_merges": self.self_merges,
            "self_merge_in": self.self_merge_in,
            "self_merge_out": self.self_merge_out,
            "self_dropped": self.self_dropped,
            "has_memory_data": self.has_memory_data,
            "operators": [op.to_dict() for op in self.operators],
        }


@dataclass(frozen=True)
class RulePlanNodeView:
    """One fingerprint of a rule plan tree, resolved against the graph."""

    fingerprint: str
    node: Optional[int]
    label: Optional[str]
    children: Tuple[str, ...]
    parents: Tuple[str, ...]
    shared: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fingerprint": self.fingerprint,
            "node": self.node,
            "label": self.label,
            "children": list(self.children),
            "parents": list(self.parents),
            "shared": self.shared,
        }


@dataclass(frozen=True)
class RuleView:
    """Display form of a rule plan tree.

    Attributes:
        text: Rule text.
        root: Sink fingerprint.
        nodes: Fingerprint -> resolved plan node.
        extras: Ids of nodes declaring the rule but absent from its tree.
    """

    text: str
    root: str
    nodes: Dict[str, RulePlanNodeView]
    extras: Tuple[int, ...] = ()

    @property
    def shared(self) -> List[str]:
        return [fp for fp, n in self.nodes.items() if n.shared]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "root": self.root,
            "nodes": {fp: n.to_dict() for fp, n in self.nodes.items()},
            "extras": list(self.extras),
        }


@dataclass(frozen=True)
class TotalsView:
    """Report-wide sums and topology/log drift counters.

    Attributes:
        names: Number of topology nodes.
        operators_declared: Addresses declared by the topology.
        operators_in_time: Rows in the time source.
        operators_mapped: Declared addresses found in the time source.
        operators_missing_time: Declared addresses absent from the time source.
        operators_unowned: Time-source addresses no node declares.
        operators_in_memory: Rows in the memory source (None without one).
        operators_mapped_memory: Declared addresses found in the memory source.
    """

    names: int
    operators_declared: int
    operators_in_time: int
    operators_mapped: int
    operators_missing_time: int
    operators_unowned: int
    total_mapped_ms: float
    total_mapped_activations: int
    operators_in_memory: Optional[int] = None
    operators_mapped_memory: int = 0
    total_batched_in: int = 0
    total_merges: int = 0
    total_merge_in: int = 0
    total_merge_out: int = 0
    total_dropped: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class AggregatedReport:
    """Output of ``aggregate()``.

    Attributes:
        nodes: Id -> aggregated node, ascending ids.
        roots: Spanning-forest roots.
        rules: One view per validated rule, in declaration order.
        totals: Report-wide totals.
        operator_order: ``"time"`` (active time descending) or ``"address"``.
        diagnostics: Non-fatal findings of this run.
    """

    nodes: Dict[int, AggregatedNodeView]
    roots: Tuple[int, ...]
    rules: Tuple[RuleView, ...]
    totals: TotalsView
    operator_order: str = "time"
    diagnostics: Diagnostics = field(default_factory=Diagnostics)

    @property
    def max_total_active_ms(self) -> float:
        return max((n.self_total_active_ms for n in self.nodes.values()), default=0.0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "roots": list(self.roots),
            "nodes": {str(nid): n.to_dict() for nid, n in self.nodes.items()},
            "rules": [r.to_dict() for r in self.rules],
            "totals": self.totals.to_dict(),
            "operator_order": self.operator_order,
            "diagnostics": self.diagnostics.to_list(),
        }
