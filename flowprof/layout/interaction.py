"""Interactive view state and its event handlers.

The controller is single-threaded: each handler replaces ``state`` with a new
immutable ``ViewState``. Selecting a node re-runs the full layout; pan and
zoom only touch the viewport.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet, Optional, Set, Tuple

from flowprof.aggregate.model import AggregatedReport
from flowprof.config import LAYOUT_CONFIG, VIEWPORT_CONFIG, LayoutConfig, ViewportConfig
from flowprof.errors import InputError
from flowprof.layout.engine import LayoutResult, layout
from flowprof.layout.viewport import Viewport
from flowprof.logging import get_logger
from flowprof.topology.models import Graph, ValidatedNode

logger = get_logger(__name__)

IDLE = "idle"
DRAGGING = "dragging"


@dataclass(frozen=True)
class ViewState:
    """Selection, search filter, expanded tree nodes and viewport."""

    selected: Optional[int] = None
    search: str = ""
    expanded: FrozenSet[int] = frozenset()
    viewport: Viewport = field(default_factory=Viewport)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "selected": self.selected,
            "search": self.search,
            "expanded": sorted(self.expanded),
            "viewport": self.viewport.to_dict(),
        }


def _matches(node: ValidatedNode, needle: str) -> bool:
    haystack = [node.label, str(node.id), node.block, node.fingerprint or ""]
    haystack.extend(node.tags)
    return any(needle in value.lower() for value in haystack)


class InteractionController:
    """State machine ``Idle -> Dragging -> Idle`` plus wheel, select and tree ops."""

    def __init__(
        self,
        graph: Graph,
        aggregated: Optional[AggregatedReport] = None,
        state: Optional[ViewState] = None,
        layout_config: LayoutConfig = LAYOUT_CONFIG,
        viewport_config: ViewportConfig = VIEWPORT_CONFIG,
    ) -> None:
        self.graph = graph
        self.aggregated = aggregated
        self.layout_config = layout_config
        self.viewport_config = viewport_config
        self.state = state or ViewState()
        self.mode = IDLE
        self._last: Optional[Tuple[float, float]] = None
        self._tree = graph.spanning_tree()
        self.result = self.relayout()

    # Pointer and wheel

    def pointer_down(self, x: float, y: float) -> None:
        self.mode = DRAGGING
        self._last = (x, y)

    def pointer_move(self, x: float, y: float) -> None:
        if self.mode != DRAGGING or self._last is None:
            return
        dx, dy = x - self._last[0], y - self._last[1]
        self._last = (x, y)
        self.state = replace(self.state, viewport=self.state.viewport.pan(dx, dy))

    def pointer_up(self, x: float, y: float) -> None:
        if self.mode == DRAGGING:
            self.pointer_move(x, y)
        self.mode = IDLE
        self._last = None

    def wheel(self, x: float, y: float, delta_y: float) -> None:
        if self.mode != IDLE:
            return
        viewport = self.state.viewport.wheel(x, y, delta_y, self.viewport_config)
        self.state = replace(self.state, viewport=viewport)

    # Selection

    def highlight_set(self, node_id: Optional[int]) -> Tuple[int, ...]:
        """Selected node plus its DAG parents and children."""
        if node_id is None:
            return ()
        node = self.graph.node(node_id)
        return tuple(sorted({node_id, *node.parents, *node.children}))

    def relayout(self) -> LayoutResult:
        result = layout(self.graph, self.aggregated, self.layout_config)
        return replace(result, highlight=self.highlight_set(self.state.selected))

    def select(self, node_id: Optional[int]) -> LayoutResult:
        """Select a node (None clears) and recompute the layout.

        Raises:
            InputError: If ``node_id`` is not in the graph.
        """
        if node_id is not None and node_id not in self.graph:
            raise InputError(f"cannot select unknown node id {node_id}")
        self.state = replace(self.state, selected=node_id)
        self.result = self.relayout()
        logger.debug(f"Selected node {node_id}; highlight {list(self.result.highlight)}")
        return self.result

    # Search and tree expansion

    def set_search(self, text: str) -> None:
        self.state = replace(self.state, search=text)

    def visible_nodes(self) -> Set[int]:
        """Nodes shown in the tree: search matches plus their tree ancestors.

        An empty search shows every node.
        """
        needle = self.state.search.strip().lower()
        if not needle:
            return set(self.graph.nodes)
        visible: Set[int] = set()
        for node in self.graph:
            if _matches(node, needle):
                visible.add(node.id)
                visible.update(self._tree.ancestors(node.id))
        return visible

    def toggle(self, node_id: int) -> None:
        expanded = set(self.state.expanded)
        if node_id in expanded:
            expanded.discard(node_id)
        else:
            expanded.add(node_id)
        self.state = replace(self.state, expanded=frozenset(expanded))

    def expand_all(self) -> None:
        self.state = replace(
            self.state,
            expanded=frozenset(n for n in self.graph.nodes if self._tree.tree_children(n)),
        )

    def collapse_all(self) -> None:
        self.state = replace(self.state, expanded=frozenset())
