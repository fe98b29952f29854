"""Topology validation: raw input -> validated, acyclic ``Graph``.

Checks run in a fixed order and the first violation aborts validation with a
single ``StructuralError`` (or ``CycleError``) naming the offending ids or
fingerprints. No partial graph is ever returned.
"""

from __future__ import annotations

from itertools import chain
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from flowprof.errors import CycleError, StructuralError
from flowprof.logging import get_logger
from flowprof.topology.models import Graph, RulePlanTree, ValidatedNode
from flowprof.topology.schema import RawNode, RawRule, RawTopology

logger = get_logger(__name__)

# DFS colors
_UNVISITED, _IN_PROGRESS, _DONE = 0, 1, 2


def normalize_ids(values: Iterable[int]) -> Tuple[int, ...]:
    """Sort and deduplicate an edge list."""
    return tuple(sorted(set(values)))


def normalize_fingerprint(value: Optional[str]) -> Optional[str]:
    """Trim a fingerprint; empty or whitespace-only becomes None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def invert(adjacency: Dict[int, Tuple[int, ...]]) -> Dict[int, Tuple[int, ...]]:
    """Return the inverse relation of ``adjacency`` over the same key set."""
    out: Dict[int, List[int]] = {k: [] for k in adjacency}
    for src, dsts in adjacency.items():
        for dst in dsts:
            out[dst].append(src)
    return {k: normalize_ids(v) for k, v in out.items()}


def find_cycle(
    children: Dict[int, Tuple[int, ...]], starts: Sequence[int]
) -> Optional[List[int]]:
    """Return the first cycle path found by depth-first search, or None.

    Traversal starts from each id in ``starts`` in order, then from any node
    still unvisited (in ascending id order) so that cycles unreachable from
    the starts are found too. The search is iterative; node ids are mapped
    onto list indices for the color table.

    Returns:
        The traversal path from the start node to the node that closed the
        cycle, with that node repeated at the end (``[a, b, c, b]``).
    """
    ids = sorted(children)
    index = {nid: i for i, nid in enumerate(ids)}
    color = [_UNVISITED] * len(ids)

    for start in chain(starts, ids):
        if color[index[start]] != _UNVISITED:
            continue
        path = [start]
        color[index[start]] = _IN_PROGRESS
        stack = [iter(children[start])]
        while stack:
            child = next(stack[-1], None)
            if child is None:
                stack.pop()
                color[index[path.pop()]] = _DONE
                continue
            state = color[index[child]]
            if state == _IN_PROGRESS:
                return path + [child]
            if state == _UNVISITED:
                color[index[child]] = _IN_PROGRESS
                path.append(child)
                stack.append(iter(children[child]))
    return None


def _index_nodes(raw_nodes: Sequence[RawNode]) -> Dict[int, RawNode]:
    nodes: Dict[int, RawNode] = {}
    for raw in raw_nodes:
        if raw.id in nodes:
            raise StructuralError(f"duplicate node id in topology: {raw.id}")
        nodes[raw.id] = raw
    if not nodes:
        raise StructuralError("topology contains no nodes")
    return dict(sorted(nodes.items()))


def _check_references(
    edges: Dict[int, Tuple[int, ...]], direction: str, declared_roots: Sequence[int]
) -> None:
    noun = "parent" if direction == "parents" else "child"
    for node_id, refs in edges.items():
        for ref in refs:
            if ref not in edges:
                raise StructuralError(
                    f"node {node_id} references missing {noun} id {ref}"
                )
    for root in declared_roots:
        if root not in edges:
            raise StructuralError(f"roots references missing node id {root}")


def _resolve_roots(
    parents: Dict[int, Tuple[int, ...]],
    children: Dict[int, Tuple[int, ...]],
    declared: Sequence[int],
) -> Tuple[int, ...]:
    roots = set(declared)
    roots.update(nid for nid, ps in parents.items() if not ps)
    if roots:
        return tuple(sorted(roots))

    message = "no roots found (graph may contain a cycle or all nodes have parents)"
    cycle = find_cycle(children, [])
    if cycle is not None:
        raise CycleError(
            cycle, f"{message}: cycle {' -> '.join(str(n) for n in cycle)}"
        )
    raise StructuralError(message)


def _check_acyclic(
    children: Dict[int, Tuple[int, ...]], roots: Sequence[int]
) -> None:
    cycle = find_cycle(children, roots)
    if cycle is None:
        return
    if cycle[0] in roots:
        where = f" (starting at root {cycle[0]})"
    else:
        where = " (unreachable from roots)"
    raise CycleError(
        cycle,
        "cycle detected in topology: "
        + " -> ".join(str(n) for n in cycle)
        + where,
    )


def _check_fingerprints(
    nodes: Dict[int, RawNode], fingerprints: Dict[int, Optional[str]]
) -> Dict[str, int]:
    """Enforce per-block uniqueness; return fingerprint -> lowest owning id."""
    by_block: Dict[Tuple[str, str], int] = {}
    global_map: Dict[str, int] = {}
    for node_id, raw in nodes.items():
        fp = fingerprints[node_id]
        if fp is None:
            continue
        key = (raw.block, fp)
        if key in by_block:
            raise StructuralError(
                f"fingerprint '{fp}' is used by multiple nodes in block "
                f"'{raw.block}' ({by_block[key]} and {node_id})"
            )
        by_block[key] = node_id
        global_map.setdefault(fp, node_id)
    return global_map


def _validate_rule(
    rule: RawRule,
    fingerprint_to_node: Dict[str, int],
    members: List[Tuple[int, Optional[str]]],
) -> RulePlanTree:
    """Validate one plan tree.

    Args:
        rule: Raw rule.
        fingerprint_to_node: Every fingerprint known in the graph.
        members: ``(node_id, fingerprint)`` of nodes declaring this rule.
    """
    declared: Dict[str, Tuple[str, ...]] = {}
    for entry in rule.plan_tree:
        fp = entry.fingerprint.strip()
        if not fp:
            raise StructuralError(
                f"rule '{rule.text}' has an empty fingerprint entry"
            )
        if fp in declared:
            raise StructuralError(
                f"rule '{rule.text}' has duplicate fingerprint '{fp}' in plan tree"
            )
        if fp not in fingerprint_to_node:
            raise StructuralError(
                f"rule '{rule.text}' references fingerprint '{fp}' not found in any node"
            )
        declared[fp] = tuple(sorted({e.strip() for e in entry.edges}))

    noun = "parent" if rule.direction == "parents" else "child"
    for refs in declared.values():
        for ref in refs:
            if ref not in declared:
                raise StructuralError(
                    f"rule '{rule.text}' references {noun} fingerprint '{ref}' "
                    "not present in its plan tree"
                )

    if rule.direction == "children":
        children = dict(declared)
    else:
        collected: Dict[str, List[str]] = {fp: [] for fp in declared}
        for child, parents in declared.items():
            for parent in parents:
                collected[parent].append(child)
        children = {fp: tuple(sorted(set(kids))) for fp, kids in collected.items()}
    children = dict(sorted(children.items()))

    sinks = [fp for fp, kids in children.items() if not kids]
    if len(sinks) != 1:
        raise StructuralError(
            f"rule '{rule.text}' plan tree: expected exactly one sink, "
            f"found {len(sinks)}"
        )

    extras = tuple(
        sorted(nid for nid, fp in members if fp is None or fp not in children)
    )
    return RulePlanTree(text=rule.text, root=sinks[0], children=children, extras=extras)


def _validate_rules(
    rules: Sequence[RawRule],
    nodes: Dict[int, RawNode],
    fingerprints: Dict[int, Optional[str]],
    fingerprint_to_node: Dict[str, int],
) -> Tuple[RulePlanTree, ...]:
    texts: Set[str] = set()
    out: List[RulePlanTree] = []
    for rule in rules:
        if rule.text in texts:
            raise StructuralError(f"duplicate rule text: '{rule.text}'")
        texts.add(rule.text)
        members = [
            (nid, fingerprints[nid]) for nid, raw in nodes.items() if raw.rule == rule.text
        ]
        out.append(_validate_rule(rule, fingerprint_to_node, members))

    covered: Set[str] = set()
    for tree in out:
        covered.update(tree.children)
    for node_id, fp in fingerprints.items():
        if fp is not None and fp not in covered:
            raise StructuralError(
                f"node {node_id} has fingerprint '{fp}' but it is not recorded in any rule"
            )

    for node_id, raw in nodes.items():
        if raw.rule is not None and raw.rule not in texts:
            logger.debug(f"node {node_id} declares unknown rule '{raw.rule}'")
    return tuple(out)


def validate(raw: RawTopology) -> Graph:
    """Validate a raw topology and build the immutable ``Graph``.

    Args:
        raw: Normalized input from ``flowprof.topology.loader``.

    Returns:
        The validated graph.

    Raises:
        StructuralError: On any structural violation.
        CycleError: When the node graph is not acyclic.
    """
    nodes = _index_nodes(raw.nodes)
    fingerprints = {nid: normalize_fingerprint(n.fingerprint) for nid, n in nodes.items()}

    edges = {nid: normalize_ids(n.edges) for nid, n in nodes.items()}
    _check_references(edges, raw.direction, raw.roots)
    if raw.direction == "parents":
        parents, children = edges, invert(edges)
    else:
        parents, children = invert(edges), edges

    roots = _resolve_roots(parents, children, raw.roots)
    _check_acyclic(children, roots)

    fingerprint_to_node = _check_fingerprints(nodes, fingerprints)
    rules = _validate_rules(raw.rules, nodes, fingerprints, fingerprint_to_node)

    validated = {
        nid: ValidatedNode(
            id=nid,
            label=n.label,
            block=n.block,
            fingerprint=fingerprints[nid],
            tags=tuple(n.tags),
            rule=n.rule,
            operators=tuple(sorted(set(n.operators))),
            parents=parents[nid],
            children=children[nid],
        )
        for nid, n in nodes.items()
    }

    graph = Graph(
        nodes=validated,
        roots=roots,
        rules=rules,
        fingerprint_to_node=fingerprint_to_node,
    )
    logger.info(
        f"Validated topology: {len(validated)} nodes, "
        f"{sum(len(n.children) for n in validated.values())} edges, "
        f"{len(roots)} roots, {len(rules)} rules"
    )
    return graph
