"""Layered layout, viewport transform and interaction state."""

from flowprof.layout.boxes import Box, size_box, wrap_label
from flowprof.layout.engine import (
    LayoutBlock,
    LayoutEdge,
    LayoutNode,
    LayoutResult,
    elbow,
    layout,
)
from flowprof.layout.interaction import InteractionController, ViewState
from flowprof.layout.ordering import build_layers, count_crossings, reduce_crossings
from flowprof.layout.ranks import (
    assign_ranks,
    base_ranks,
    block_order,
    block_sort_key,
    compact_ranks,
)
from flowprof.layout.viewport import Viewport

__all__ = [
    "Box",
    "size_box",
    "wrap_label",
    "LayoutBlock",
    "LayoutEdge",
    "LayoutNode",
    "LayoutResult",
    "elbow",
    "layout",
    "InteractionController",
    "ViewState",
    "build_layers",
    "count_crossings",
    "reduce_crossings",
    "assign_ranks",
    "base_ranks",
    "block_order",
    "block_sort_key",
    "compact_ranks",
    "Viewport",
]
