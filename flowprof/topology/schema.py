"""Raw topology input types.

These mirror the input documents after shape normalization but before any
structural validation. Both accepted document shapes (flat node list and
name DAG plus operator mapping) are reduced to a single ``RawTopology``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional

from flowprof.address import Address

EdgeDirection = Literal["parents", "children"]

DEFAULT_BLOCK = "other"


@dataclass(frozen=True)
class RawNode:
    """One node as declared by the input.

    Exactly one of ``parents`` / ``children`` carries the node's edges; which
    one is set for the whole document by ``RawTopology.direction``.

    Attributes:
        id: Unique non-negative node id.
        label: Display string.
        block: Grouping tag used for layout and visual clustering.
        fingerprint: Plan-position key, untrimmed as supplied.
        tags: Free-form tags.
        rule: Text of the rule this node declares membership in.
        operators: Operator addresses owned by the node (may repeat).
        edges: Neighbor ids in the document's edge direction (may repeat).
    """

    id: int
    label: str = ""
    block: str = DEFAULT_BLOCK
    fingerprint: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    rule: Optional[str] = None
    operators: List[Address] = field(default_factory=list)
    edges: List[int] = field(default_factory=list)


@dataclass(frozen=True)
class RawPlanNode:
    """One fingerprint entry of a rule plan tree."""

    fingerprint: str
    edges: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class RawRule:
    """A rule and its plan tree entries.

    Attributes:
        text: Rule text, the rule's key.
        plan_tree: Fingerprint entries.
        direction: Whether entries list ``parents`` or ``children``.
    """

    text: str
    plan_tree: List[RawPlanNode] = field(default_factory=list)
    direction: EdgeDirection = "parents"


@dataclass(frozen=True)
class RawTopology:
    """Normalized input for the validator.

    Attributes:
        nodes: Nodes in declaration order.
        rules: Rules in declaration order.
        roots: Explicitly declared root ids.
        direction: Edge direction used by every ``RawNode.edges``.
    """

    nodes: List[RawNode] = field(default_factory=list)
    rules: List[RawRule] = field(default_factory=list)
    roots: List[int] = field(default_factory=list)
    direction: EdgeDirection = "parents"
