"""Join a validated topology with address-indexed metric sources.

``aggregate()`` enforces two consistency invariants before computing
anything:

* an address present in both the time and the memory source must carry the
  same operator name in both;
* an address is owned by at most one node.

Addresses a node declares but a source lacks are not errors: they yield a
``Diagnostic``, contribute zero, and are counted in the totals so that drift
between the topology and the logs stays visible.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple, Union

from flowprof.address import Address
from flowprof.aggregate.model import (
    AggregatedNodeView,
    AggregatedReport,
    OperatorView,
    RulePlanNodeView,
    RuleView,
    TotalsView,
)
from flowprof.diagnostics import (
    MISSING_MEMORY_ROW,
    MISSING_TIME_ROW,
    Diagnostic,
    DiagnosticCollector,
)
from flowprof.errors import ConsistencyError
from flowprof.logging import get_logger
from flowprof.metrics.rows import MemoryIndex, MetricSources, TimeIndex
from flowprof.topology.models import Graph, ValidatedNode
from flowprof.topology.spanning import SpanningTree

logger = get_logger(__name__)


def _describe(node: ValidatedNode) -> str:
    return f"{node.id} ('{node.label}')" if node.label else str(node.id)


def check_cross_source(time: TimeIndex, memory: Optional[MemoryIndex]) -> None:
    """Fail if an address carries different operator names in the two sources.

    Raises:
        ConsistencyError: Naming the address and both names.
    """
    if not memory:
        return
    for addr in sorted(memory):
        time_row = time.get(addr)
        if time_row is None:
            continue
        if time_row.op_name != memory[addr].op_name:
            raise ConsistencyError(
                f"op_name mismatch at addr {addr}: time log has "
                f"{time_row.op_name!r} but memory log has {memory[addr].op_name!r}"
            )


def claim_addresses(graph: Graph) -> Dict[Address, int]:
    """Map each declared address to its single owning node id.

    Raises:
        ConsistencyError: If two nodes declare the same address.
    """
    owners: Dict[Address, int] = {}
    for node in graph:
        for addr in node.operators:
            previous = owners.get(addr)
            if previous is not None:
                raise ConsistencyError(
                    f"operator addr {addr} is assigned to multiple nodes: "
                    f"{_describe(graph.node(previous))} and {_describe(node)}"
                )
            owners[addr] = node.id
    return owners


def _operator_sort_key(by_time: bool):
    if by_time:
        return lambda op: (-op.total_active_ms, op.address)
    return lambda op: op.address


class _Totals:
    """Running totals while nodes are resolved."""

    def __init__(self) -> None:
        self.mapped = 0
        self.missing = 0
        self.mapped_memory = 0
        self.ms = 0.0
        self.activations = 0
        self.batched_in = 0
        self.merges = 0
        self.merge_in = 0
        self.merge_out = 0
        self.dropped = 0


def _resolve_node(
    node: ValidatedNode,
    tree: SpanningTree,
    sources: MetricSources,
    diagnostics: DiagnosticCollector,
    totals: _Totals,
) -> AggregatedNodeView:
    operators: List[OperatorView] = []
    ms = 0.0
    activations = 0
    mem = [0, 0, 0, 0, 0]
    has_memory = False

    for addr in node.operators:
        time_row = sources.time.get(addr)
        mem_row = sources.memory.get(addr) if sources.memory is not None else None

        if time_row is not None:
            ms += time_row.total_active_ms
            activations += time_row.activations
            totals.mapped += 1
        else:
            totals.missing += 1
            diagnostics.add(
                Diagnostic(
                    kind=MISSING_TIME_ROW,
                    message=(
                        f"topology maps node {_describe(node)} to addr {addr}, "
                        "but addr not found in time log"
                    ),
                    node_id=node.id,
                    address=addr,
                    source="time",
                )
            )

        if mem_row is not None:
            has_memory = True
            totals.mapped_memory += 1
            for i, value in enumerate(
                (
                    mem_row.batched_in,
                    mem_row.merges,
                    mem_row.merge_in,
                    mem_row.merge_out,
                    mem_row.dropped,
                )
            ):
                mem[i] += value
        elif sources.memory is not None:
            diagnostics.add(
                Diagnostic(
                    kind=MISSING_MEMORY_ROW,
                    message=(
                        f"node {_describe(node)} addr {addr} has no memory log row"
                    ),
                    node_id=node.id,
                    address=addr,
                    source="memory",
                ),
                level=logging.DEBUG,
            )

        # Memory-only operators stay listed with zeroed time fields
        if time_row is not None:
            op_name = time_row.op_name
        elif mem_row is not None:
            op_name = mem_row.op_name
        else:
            op_name = ""
        operators.append(
            OperatorView(
                address=addr,
                op_name=op_name,
                activations=time_row.activations if time_row else 0,
                total_active_ms=time_row.total_active_ms if time_row else 0.0,
                in_time=time_row is not None,
                batched_in=mem_row.batched_in if mem_row else None,
                merges=mem_row.merges if mem_row else None,
                merge_in=mem_row.merge_in if mem_row else None,
                merge_out=mem_row.merge_out if mem_row else None,
                dropped=mem_row.dropped if mem_row else None,
            )
        )

    operators.sort(key=_operator_sort_key(by_time=not sources.has_memory))

    totals.ms += ms
    totals.activations += activations
    totals.batched_in += mem[0]
    totals.merges += mem[1]
    totals.merge_in += mem[2]
    totals.merge_out += mem[3]
    totals.dropped += mem[4]

    return AggregatedNodeView(
        id=node.id,
        label=node.label,
        block=node.block,
        fingerprint=node.fingerprint,
        tags=node.tags,
        rule=node.rule,
        primary_parent=tree.primary_parent[node.id],
        children=tree.tree_children(node.id),
        extra_parents=tree.extra_parents[node.id],
        dag_parents=node.parents,
        dag_children=node.children,
        operators=tuple(operators),
        self_activations=activations,
        self_total_active_ms=ms,
        self_batched_in=mem[0],
        self_merges=mem[1],
        self_merge_in=mem[2],
        self_merge_out=mem[3],
        self_dropped=mem[4],
        has_memory_data=has_memory,
    )


def build_rule_views(graph: Graph) -> Tuple[RuleView, ...]:
    """Resolve each rule plan tree's fingerprints to nodes and flag sharing."""
    views: List[RuleView] = []
    for rule in graph.rules:
        parents = rule.parents()
        nodes: Dict[str, RulePlanNodeView] = {}
        for fp, children in rule.children.items():
            node_id = graph.fingerprint_to_node.get(fp)
            label = graph.node(node_id).label if node_id is not None else None
            nodes[fp] = RulePlanNodeView(
                fingerprint=fp,
                node=node_id,
                label=label,
                children=children,
                parents=parents[fp],
                shared=len(parents[fp]) > 1,
            )
        views.append(
            RuleView(text=rule.text, root=rule.root, nodes=nodes, extras=rule.extras)
        )
    return tuple(views)


def aggregate(
    graph: Graph,
    sources: Union[MetricSources, TimeIndex],
    memory: Optional[MemoryIndex] = None,
) -> AggregatedReport:
    """Aggregate metric rows per topology node.

    Args:
        graph: Validated topology.
        sources: Metric sources, or a bare time index.
        memory: Memory index, used only when ``sources`` is a bare time index.

    Returns:
        The aggregated report with its diagnostics.

    Raises:
        ConsistencyError: On an operator name mismatch between sources or an
            address claimed by two nodes.
    """
    if not isinstance(sources, MetricSources):
        sources = MetricSources(time=sources, memory=memory)

    check_cross_source(sources.time, sources.memory)
    owners = claim_addresses(graph)

    tree = graph.spanning_tree()
    diagnostics = DiagnosticCollector()
    running = _Totals()
    nodes = {
        node.id: _resolve_node(node, tree, sources, diagnostics, running)
        for node in graph
    }

    unowned = sum(1 for addr in sources.time if addr not in owners)
    totals = TotalsView(
        names=len(graph),
        operators_declared=len(owners),
        operators_in_time=len(sources.time),
        operators_mapped=running.mapped,
        operators_missing_time=running.missing,
        operators_unowned=unowned,
        total_mapped_ms=running.ms,
        total_mapped_activations=running.activations,
        operators_in_memory=len(sources.memory) if sources.memory is not None else None,
        operators_mapped_memory=running.mapped_memory,
        total_batched_in=running.batched_in,
        total_merges=running.merges,
        total_merge_in=running.merge_in,
        total_merge_out=running.merge_out,
        total_dropped=running.dropped,
    )

    logger.info(
        f"Aggregated {totals.operators_mapped}/{totals.operators_declared} declared "
        f"operators across {totals.names} nodes "
        f"({totals.operators_missing_time} missing from time log, "
        f"{totals.operators_unowned} unowned)"
    )
    return AggregatedReport(
        nodes=nodes,
        roots=tree.roots,
        rules=build_rule_views(graph),
        totals=totals,
        operator_order="address" if sources.has_memory else "time",
        diagnostics=diagnostics.freeze(),
    )
