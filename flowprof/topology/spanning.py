"""Primary-parent spanning forest of a validated graph.

Each node with at least one parent keeps its smallest parent id as the
*primary* parent; the remaining parents are *extra* parents. Primary edges
form a forest rooted at the graph's roots, which gives the report a stable
tree view of a DAG without losing the multi-parent information.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

if TYPE_CHECKING:
    from flowprof.topology.models import Graph


@dataclass(frozen=True)
class SpanningTree:
    """Primary-parent forest.

    Attributes:
        primary_parent: Node id -> primary parent id, or None for roots.
        extra_parents: Node id -> sorted non-primary parent ids.
        children: Node id -> sorted ids whose primary parent it is.
        roots: Forest roots (the graph's roots).
    """

    primary_parent: Dict[int, Optional[int]]
    extra_parents: Dict[int, Tuple[int, ...]]
    children: Dict[int, Tuple[int, ...]]
    roots: Tuple[int, ...]

    @classmethod
    def from_graph(cls, graph: Graph) -> SpanningTree:
        primary: Dict[int, Optional[int]] = {}
        extras: Dict[int, Tuple[int, ...]] = {}
        kids: Dict[int, List[int]] = {nid: [] for nid in graph.nodes}

        root_set = set(graph.roots)
        for node in graph.nodes.values():
            # A declared root keeps all of its parents as extras
            if node.parents and node.id not in root_set:
                primary[node.id] = node.parents[0]
                extras[node.id] = node.parents[1:]
                kids[node.parents[0]].append(node.id)
            else:
                primary[node.id] = None
                extras[node.id] = node.parents

        return cls(
            primary_parent=primary,
            extra_parents=extras,
            children={nid: tuple(sorted(c)) for nid, c in kids.items()},
            roots=graph.roots,
        )

    def tree_children(self, node_id: int) -> Tuple[int, ...]:
        return self.children.get(node_id, ())

    def ancestors(self, node_id: int) -> List[int]:
        """Primary-parent chain from ``node_id`` up to its root, exclusive."""
        out: List[int] = []
        current = self.primary_parent.get(node_id)
        while current is not None:
            out.append(current)
            current = self.primary_parent.get(current)
        return out

    def depth_first(self) -> List[Tuple[int, int]]:
        """Return ``(node_id, depth)`` in pre-order over the forest."""
        out: List[Tuple[int, int]] = []
        stack = [(root, 0) for root in reversed(self.roots)]
        while stack:
            node_id, depth = stack.pop()
            out.append((node_id, depth))
            for child in reversed(self.tree_children(node_id)):
                stack.append((child, depth + 1))
        return out
