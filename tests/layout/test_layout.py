"""Layered layout: ranks, ordering, boxes, positions, blocks, edges, color."""

from __future__ import annotations

import json

import pytest

from flowprof.aggregate import aggregate
from flowprof.config import LAYOUT_CONFIG, LayoutConfig
from flowprof.layout import (
    assign_ranks,
    base_ranks,
    block_order,
    build_layers,
    compact_ranks,
    count_crossings,
    layout,
    reduce_crossings,
    size_box,
    wrap_label,
)
from flowprof.metrics import parse_time_text
from flowprof.topology.models import Graph, ValidatedNode

# Ranks


def test_block_order_is_canonical() -> None:
    blocks = ["output", "zeta", "stratum 10", "alpha", "input", "stratum 2"]

    assert block_order(blocks) == [
        "input",
        "stratum 2",
        "stratum 10",
        "alpha",
        "zeta",
        "output",
    ]


def test_other_blocks_share_one_band() -> None:
    ranks = base_ranks(["input", "stratum 2", "stratum 10", "alpha", "zeta", "output"])

    assert ranks == {
        "input": 0,
        "stratum 2": 1,
        "stratum 10": 2,
        "alpha": 3,
        "zeta": 3,
        "output": 4,
    }


def test_flat_fixture_ranks_follow_blocks(flat_graph) -> None:
    assert assign_ranks(flat_graph) == {0: 0, 1: 1, 2: 2, 3: 3}


def test_child_ranks_below_all_parents(build_graph) -> None:
    graph = build_graph({0: [], 1: [0]}, blocks={0: "output", 1: "input"})
    ranks = assign_ranks(graph)

    assert ranks == {0: 1, 1: 2}
    assert compact_ranks(ranks) == {0: 0, 1: 1}
    for parent, child in graph.edges():
        assert ranks[child] > ranks[parent]


def test_compact_ranks_drops_empty_layers() -> None:
    assert compact_ranks({0: 0, 1: 3, 2: 5, 3: 3}) == {0: 0, 1: 1, 2: 2, 3: 1}


def test_cycle_falls_back_to_id_order() -> None:
    def node(nid, parents, children):
        return ValidatedNode(
            id=nid,
            label="",
            block="other",
            fingerprint=None,
            tags=(),
            rule=None,
            operators=(),
            parents=parents,
            children=children,
        )

    graph = Graph(
        nodes={0: node(0, (), (1,)), 1: node(1, (0, 2), (2,)), 2: node(2, (1,), (1,))},
        roots=(0,),
    )

    assert assign_ranks(graph) == {0: 0, 1: 1, 2: 2}


# Ordering


def test_barycenter_removes_crossing(build_graph) -> None:
    graph = build_graph({0: [], 1: [], 2: [1], 3: [0]})
    children = {n.id: n.children for n in graph}
    parents = {n.id: n.parents for n in graph}
    layers = build_layers(compact_ranks(assign_ranks(graph)))

    assert layers == [[0, 1], [2, 3]]
    assert count_crossings(layers, children) == 1

    ordered = reduce_crossings(layers, parents, children)
    assert ordered == [[0, 1], [3, 2]]
    assert count_crossings(ordered, children) == 0
    assert layers == [[0, 1], [2, 3]]


def test_nodes_without_parents_sort_last(build_graph) -> None:
    graph = build_graph(
        {0: [], 1: [], 2: [0]},
        blocks={0: "input", 1: "stratum 0", 2: "stratum 0"},
    )

    assert layout(graph).layers == ((0,), (2, 1))


# Boxes


def test_short_label_box() -> None:
    lines, box = size_box("short")

    assert lines == ("short",)
    assert box.w == pytest.approx(5 * 7.0 + 20.0)
    assert box.h == pytest.approx(32.0)


def test_long_label_wraps_and_grows() -> None:
    lines, box = size_box("a" * 100)

    assert [len(line) for line in lines] == [28, 28, 28, 16]
    assert box.w == pytest.approx(28 * 7.0 + 20.0)
    assert box.h == pytest.approx(4 * 16.0 + 16.0)


def test_box_width_is_capped() -> None:
    config = LayoutConfig(max_box_width=100.0)
    _, box = size_box("a fairly long label for a node", config)

    assert box.w == pytest.approx(100.0)


def test_wrap_label_keeps_words_together() -> None:
    assert wrap_label("join orders with customers", 12) == ("join orders", "with", "customers")
    assert wrap_label("", 10) == ("",)


# Positions, blocks and edges


def test_layers_spaced_evenly(build_graph) -> None:
    result = layout(build_graph({0: [], 1: [], 2: [0, 1]}))
    n0, n1, n2 = (result.nodes[i] for i in (0, 1, 2))

    assert n0.center[1] == n1.center[1]
    assert n2.center[1] - n0.center[1] == pytest.approx(LAYOUT_CONFIG.layer_gap)
    assert n2.center[0] == pytest.approx((n0.center[0] + n1.center[0]) / 2)
    assert n1.center[0] - n0.center[0] >= n0.box.w / 2 + n1.box.w / 2


def test_blocks_do_not_overlap(build_graph) -> None:
    result = layout(build_graph({0: [], 1: []}, blocks={0: "alpha", 1: "beta"}))
    alpha, beta = result.blocks

    assert (alpha.name, beta.name) == ("alpha", "beta")
    assert beta.y == pytest.approx(alpha.y + alpha.h + LAYOUT_CONFIG.block_gap)
    assert result.nodes[1].top > result.nodes[0].bottom
    assert result.nodes[1].order_in_rank == 1
    assert result.nodes[1].center[0] > result.nodes[0].center[0]


def test_block_boxes_contain_their_nodes(flat_graph) -> None:
    result = layout(flat_graph)
    by_name = {b.name: b for b in result.blocks}

    assert [b.name for b in result.blocks] == ["input", "stratum 0", "stratum 1", "inspect"]
    for node in result.nodes.values():
        block = by_name[node.block]
        assert block.y <= node.top and node.bottom <= block.y + block.h
        assert block.x <= node.center[0] - node.box.w / 2
        assert node.center[0] + node.box.w / 2 <= block.x + block.w


def test_edges_are_elbows_through_midpoint(flat_graph) -> None:
    result = layout(flat_graph)
    edges = {(e.source, e.target): e for e in result.edges}

    assert set(edges) == {(0, 1), (1, 2), (1, 3), (2, 3)}
    assert edges[(1, 3)].primary is True
    assert edges[(2, 3)].primary is False

    parent, child = result.nodes[2], result.nodes[3]
    start, bend1, bend2, end = edges[(2, 3)].points
    assert start == (parent.center[0], parent.bottom)
    assert end == (child.center[0], child.top)
    assert bend1[1] == bend2[1] == pytest.approx((parent.bottom + child.top) / 2)
    assert bend1[0] == start[0] and bend2[0] == end[0]


# Color


def test_intensity_is_relative_to_busiest_node(flat_graph, time_log) -> None:
    report = aggregate(flat_graph, parse_time_text(time_log))
    result = layout(flat_graph, report)

    assert result.nodes[1].intensity == pytest.approx(1.0)
    assert result.nodes[0].intensity == pytest.approx(2.5 / 15.0)
    assert result.nodes[3].intensity == 0.0
    assert all(0.0 <= n.intensity <= 1.0 for n in result.nodes.values())


def test_intensity_zero_without_time(flat_graph) -> None:
    report = aggregate(flat_graph, {})

    assert all(n.intensity == 0.0 for n in layout(flat_graph, report).nodes.values())
    assert all(n.intensity == 0.0 for n in layout(flat_graph).nodes.values())


# Determinism


def test_layout_is_deterministic(flat_graph, time_log) -> None:
    report = aggregate(flat_graph, parse_time_text(time_log))
    first = layout(flat_graph, report)
    second = layout(flat_graph, report)

    assert first == second
    assert json.dumps(first.to_dict()) == json.dumps(second.to_dict())


def test_extents_cover_all_nodes(flat_graph) -> None:
    result = layout(flat_graph)

    for node in result.nodes.values():
        assert node.center[0] + node.box.w / 2 <= result.width
        assert node.bottom <= result.height
