"""Validated topology structures.

Produced once by ``flowprof.topology.validate.validate`` and never mutated
afterwards. Nodes reference one another only by id.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional, Tuple

from flowprof.address import Address

if TYPE_CHECKING:
    from flowprof.topology.spanning import SpanningTree


@dataclass(frozen=True)
class ValidatedNode:
    """A structurally valid topology node.

    Attributes:
        id: Unique node id.
        label: Display string (may be empty).
        block: Grouping tag.
        fingerprint: Trimmed, non-empty fingerprint or None.
        tags: Free-form tags.
        rule: Text of the rule the node declares membership in.
        operators: Owned operator addresses, sorted and deduplicated.
        parents: Parent ids, sorted and deduplicated.
        children: Child ids, sorted and deduplicated.
    """

    id: int
    label: str
    block: str
    fingerprint: Optional[str]
    tags: Tuple[str, ...]
    rule: Optional[str]
    operators: Tuple[Address, ...]
    parents: Tuple[int, ...]
    children: Tuple[int, ...]

    @property
    def display_label(self) -> str:
        """Label, falling back to the id for unlabeled nodes."""
        return self.label or str(self.id)


@dataclass(frozen=True)
class RulePlanTree:
    """Validated plan tree of one rule.

    Attributes:
        text: Rule text.
        root: The single sink fingerprint.
        children: Fingerprint -> sorted child fingerprints, for every
            fingerprint of the tree.
        extras: Ids of nodes declaring membership in this rule whose
            fingerprint is absent from the tree.
    """

    text: str
    root: str
    children: Dict[str, Tuple[str, ...]]
    extras: Tuple[int, ...] = ()

    def parents(self) -> Dict[str, Tuple[str, ...]]:
        """Inverse of ``children``: fingerprint -> sorted parent fingerprints."""
        out: Dict[str, List[str]] = {fp: [] for fp in self.children}
        for fp, kids in self.children.items():
            for kid in kids:
                out[kid].append(fp)
        return {fp: tuple(sorted(ps)) for fp, ps in out.items()}

    def __contains__(self, fingerprint: object) -> bool:
        return fingerprint in self.children


@dataclass(frozen=True)
class Graph:
    """Validated, acyclic topology.

    Attributes:
        nodes: Id -> node, in ascending id order.
        roots: Sorted ids of declared roots plus every parentless node.
        rules: Validated rule plan trees in declaration order.
        fingerprint_to_node: Fingerprint -> owning node id (lowest id when a
            fingerprint is reused across blocks).
    """

    nodes: Dict[int, ValidatedNode]
    roots: Tuple[int, ...]
    rules: Tuple[RulePlanTree, ...] = ()
    fingerprint_to_node: Dict[str, int] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def __iter__(self) -> Iterator[ValidatedNode]:
        return iter(self.nodes.values())

    def node(self, node_id: int) -> ValidatedNode:
        return self.nodes[node_id]

    def edges(self) -> Iterator[Tuple[int, int]]:
        """Yield ``(parent, child)`` pairs in ascending order."""
        for node in self.nodes.values():
            for child in node.children:
                yield node.id, child

    def blocks(self) -> List[str]:
        """Distinct block tags, sorted."""
        return sorted({n.block for n in self.nodes.values()})

    def spanning_tree(self) -> SpanningTree:
        """Derive the primary-parent spanning forest."""
        from flowprof.topology.spanning import SpanningTree

        return SpanningTree.from_graph(self)
