"""Layered layout of a validated graph.

``layout()`` is a pure function of its inputs: it ranks nodes into layers,
orders each layer with barycenter sweeps, sizes label boxes, spaces layers
evenly, separates blocks vertically, routes elbow edges and derives a
per-node time intensity. Nothing is cached between calls.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from flowprof.aggregate.model import AggregatedReport
from flowprof.config import LAYOUT_CONFIG, LayoutConfig
from flowprof.layout.boxes import Box, size_box
from flowprof.layout.ordering import build_layers, reduce_crossings
from flowprof.layout.ranks import assign_ranks, block_order, compact_ranks
from flowprof.logging import get_logger
from flowprof.topology.models import Graph

logger = get_logger(__name__)

Point = Tuple[float, float]


@dataclass(frozen=True)
class LayoutNode:
    """Placed node box.

    Attributes:
        id: Node id.
        rank: Layer index after compaction.
        order_in_rank: Position within the layer.
        center: Box center in graph space.
        box: Box dimensions.
        wrapped_lines: Wrapped label.
        block: Grouping tag.
        intensity: Active time relative to the busiest node, in [0, 1].
    """

    id: int
    rank: int
    order_in_rank: int
    center: Point
    box: Box
    wrapped_lines: Tuple[str, ...]
    block: str
    intensity: float = 0.0

    @property
    def top(self) -> float:
        return self.center[1] - self.box.h / 2

    @property
    def bottom(self) -> float:
        return self.center[1] + self.box.h / 2

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "rank": self.rank,
            "order": self.order_in_rank,
            "x": self.center[0],
            "y": self.center[1],
            "w": self.box.w,
            "h": self.box.h,
            "lines": list(self.wrapped_lines),
            "block": self.block,
            "intensity": self.intensity,
        }


@dataclass(frozen=True)
class LayoutBlock:
    """Padded bounding box of all nodes sharing a block tag."""

    name: str
    x: float
    y: float
    w: float
    h: float

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "x": self.x, "y": self.y, "w": self.w, "h": self.h}


@dataclass(frozen=True)
class LayoutEdge:
    """Elbow path from a parent's bottom-center to a child's top-center."""

    source: int
    target: int
    points: Tuple[Point, ...]
    primary: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "target": self.target,
            "points": [list(p) for p in self.points],
            "primary": self.primary,
        }


@dataclass(frozen=True)
class LayoutResult:
    nodes: Dict[int, LayoutNode]
    layers: Tuple[Tuple[int, ...], ...]
    blocks: Tuple[LayoutBlock, ...] = ()
    edges: Tuple[LayoutEdge, ...] = ()
    width: float = 0.0
    height: float = 0.0
    highlight: Tuple[int, ...] = field(default=())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "width": self.width,
            "height": self.height,
            "layers": [list(layer) for layer in self.layers],
            "nodes": {str(nid): n.to_dict() for nid, n in self.nodes.items()},
            "blocks": [b.to_dict() for b in self.blocks],
            "edges": [e.to_dict() for e in self.edges],
            "highlight": list(self.highlight),
        }


def _intensities(
    graph: Graph, aggregated: Optional[AggregatedReport]
) -> Dict[int, float]:
    if aggregated is None:
        return {nid: 0.0 for nid in graph.nodes}
    peak = aggregated.max_total_active_ms
    out: Dict[int, float] = {}
    for nid in graph.nodes:
        view = aggregated.nodes.get(nid)
        value = view.self_total_active_ms if view is not None else 0.0
        out[nid] = value / peak if peak > 0 else 0.0
    return out


def _block_bounds(
    members: List[int],
    centers: Dict[int, Point],
    boxes: Dict[int, Box],
    pad: float,
) -> Tuple[float, float, float, float]:
    left = min(centers[n][0] - boxes[n].w / 2 for n in members) - pad
    right = max(centers[n][0] + boxes[n].w / 2 for n in members) + pad
    top = min(centers[n][1] - boxes[n].h / 2 for n in members) - pad
    bottom = max(centers[n][1] + boxes[n].h / 2 for n in members) + pad
    return left, top, right, bottom


def _separate_blocks(
    graph: Graph,
    centers: Dict[int, Point],
    boxes: Dict[int, Box],
    config: LayoutConfig,
) -> Tuple[LayoutBlock, ...]:
    """Shift whole blocks down so none overlaps the blocks before it."""
    members: Dict[str, List[int]] = {}
    for node in graph:
        members.setdefault(node.block, []).append(node.id)

    out: List[LayoutBlock] = []
    floor: Optional[float] = None
    for name in block_order(members, config):
        ids = members[name]
        left, top, right, bottom = _block_bounds(
            ids, centers, boxes, config.block_padding
        )
        if floor is not None and top < floor + config.block_gap:
            shift = floor + config.block_gap - top
            for nid in ids:
                x, y = centers[nid]
                centers[nid] = (x, y + shift)
            top += shift
            bottom += shift
        floor = bottom if floor is None else max(floor, bottom)
        out.append(LayoutBlock(name=name, x=left, y=top, w=right - left, h=bottom - top))
    return tuple(out)


def elbow(parent: LayoutNode, child: LayoutNode) -> Tuple[Point, ...]:
    """Vertical-horizontal-vertical path through the midpoint height."""
    x0, y0 = parent.center[0], parent.bottom
    x1, y1 = child.center[0], child.top
    mid = (y0 + y1) / 2
    return ((x0, y0), (x0, mid), (x1, mid), (x1, y1))


def layout(
    graph: Graph,
    aggregated: Optional[AggregatedReport] = None,
    config: LayoutConfig = LAYOUT_CONFIG,
) -> LayoutResult:
    """Compute the full layered layout.

    Args:
        graph: Validated topology.
        aggregated: Aggregation used for node intensities; all zero if None.
        config: Geometry parameters.

    Returns:
        A fresh ``LayoutResult``; identical inputs give identical output.
    """
    ranks = compact_ranks(assign_ranks(graph, config))
    parents = {n.id: n.parents for n in graph}
    children = {n.id: n.children for n in graph}
    layers = reduce_crossings(build_layers(ranks), parents, children)

    lines: Dict[int, Tuple[str, ...]] = {}
    boxes: Dict[int, Box] = {}
    for node in graph:
        lines[node.id], boxes[node.id] = size_box(node.display_label, config)

    max_w = max(b.w for b in boxes.values())
    max_h = max(b.h for b in boxes.values())
    spacing = max_w + config.node_spacing
    gap = max(config.layer_gap, max_h + config.node_spacing)
    widest = max(len(layer) for layer in layers)
    total_w = widest * spacing
    margin = config.block_padding

    centers: Dict[int, Point] = {}
    for rank, layer in enumerate(layers):
        slot = total_w / len(layer)
        y = margin + max_h / 2 + rank * gap
        for i, nid in enumerate(layer):
            centers[nid] = (margin + slot * (i + 0.5), y)

    blocks = _separate_blocks(graph, centers, boxes, config)

    intensity = _intensities(graph, aggregated)
    order = {nid: i for layer in layers for i, nid in enumerate(layer)}
    nodes = {
        node.id: LayoutNode(
            id=node.id,
            rank=ranks[node.id],
            order_in_rank=order[node.id],
            center=centers[node.id],
            box=boxes[node.id],
            wrapped_lines=lines[node.id],
            block=node.block,
            intensity=intensity[node.id],
        )
        for node in graph
    }

    tree = graph.spanning_tree()
    edges = tuple(
        LayoutEdge(
            source=p,
            target=c,
            points=elbow(nodes[p], nodes[c]),
            primary=tree.primary_parent[c] == p,
        )
        for p, c in graph.edges()
    )

    width = max(
        [n.center[0] + n.box.w / 2 for n in nodes.values()]
        + [b.x + b.w for b in blocks]
    ) + margin
    height = max(
        [n.bottom for n in nodes.values()] + [b.y + b.h for b in blocks]
    ) + margin

    logger.debug(
        f"Laid out {len(nodes)} nodes in {len(layers)} layers, "
        f"{len(blocks)} blocks, {len(edges)} edges"
    )
    return LayoutResult(
        nodes=nodes,
        layers=tuple(tuple(layer) for layer in layers),
        blocks=blocks,
        edges=edges,
        width=width,
        height=height,
    )
