"""Loading both topology document shapes into ``RawTopology``."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

from flowprof.address import Address
from flowprof.errors import InputError, StructuralError
from flowprof.topology import (
    DagTopologySpec,
    FlatTopologySpec,
    load_topology,
    load_topology_file,
    topology_spec,
    validate,
)
from flowprof.topology.loader import load_schema, parse_document


@pytest.fixture
def dag_doc() -> dict:
    return {
        "nodes": [
            {"name": "src", "block": "input"},
            {"name": "join", "label": "Join step", "block": "stratum 0"},
            {"name": "out", "block": "output", "tags": ["sink"]},
        ],
        "edges": [["src", "join"], ["join", "out"], ["src", "out"]],
    }


@pytest.fixture
def ops_doc() -> dict:
    return {
        "groups": [
            {"name": "src", "operators": [[0, 1]]},
            {"name": "join", "operators": [[0, 2], {"addr": [0, 3]}]},
        ]
    }


def test_flat_document_normalizes(flat_doc) -> None:
    raw = load_topology(flat_doc)

    assert raw.direction == "parents"
    assert [n.id for n in raw.nodes] == [0, 1, 2, 3]
    assert raw.nodes[1].label == "join orders with customers"
    assert raw.nodes[1].operators == [Address((0, 2)), Address((0, 3))]
    assert raw.rules[0].direction == "children"
    assert raw.rules[0].plan_tree[0].edges == ["fpB"]


def test_flat_document_defaults_block_and_label() -> None:
    raw = load_topology({"nodes": [{"id": 4}]})

    assert raw.nodes[0].block == "other"
    assert raw.nodes[0].label == ""


def test_label_takes_precedence_over_name() -> None:
    raw = load_topology({"nodes": [{"id": 0, "name": "n", "label": "L"}]})
    assert raw.nodes[0].label == "L"


def test_flat_schema_violation_is_input_error() -> None:
    with pytest.raises(InputError, match="does not match schema at nodes/0"):
        load_topology({"nodes": [{"id": -1}]})
    with pytest.raises(InputError, match="does not match schema"):
        load_topology({"nodes": [{"id": 0, "unknown": True}]})


def test_mixed_edge_directions_rejected() -> None:
    doc = {"nodes": [{"id": 0, "children": [1]}, {"id": 1, "parents": [0]}]}
    with pytest.raises(InputError, match="mix 'parents' and 'children'"):
        load_topology(doc)


def test_node_with_both_edge_keys_rejected() -> None:
    doc = {"nodes": [{"id": 0, "children": [], "parents": []}]}
    with pytest.raises(InputError, match="both 'parents' and 'children'"):
        load_topology(doc)


def test_dag_document_maps_names_to_ids(dag_doc, ops_doc) -> None:
    raw = load_topology(dag_doc, ops_doc)
    graph = validate(raw)

    assert raw.direction == "children"
    assert [n.label for n in raw.nodes] == ["src", "Join step", "out"]
    # ids follow name order: join, out, src
    assert [n.id for n in raw.nodes] == [2, 0, 1]
    assert graph.node(1).parents == (0, 2)
    assert graph.node(0).operators == (Address((0, 2)), Address((0, 3)))
    assert graph.node(1).operators == ()
    assert graph.node(1).tags == ("sink",)
    assert graph.roots == (2,)


def test_dag_primary_parent_is_smallest_name() -> None:
    dag = {
        "nodes": [{"name": "zeta"}, {"name": "alpha"}, {"name": "sink"}],
        "edges": [["zeta", "sink"], ["alpha", "sink"]],
    }
    graph = validate(load_topology(dag, {"groups": []}))
    tree = graph.spanning_tree()
    label = {n.id: n.label for n in graph}
    sink = next(n.id for n in graph if n.label == "sink")

    assert label[tree.primary_parent[sink]] == "alpha"
    assert [label[r] for r in tree.roots] == ["alpha", "zeta"]
    assert [label[e] for e in tree.extra_parents[sink]] == ["zeta"]


def test_topology_spec_tags_the_shape(flat_doc, dag_doc, ops_doc) -> None:
    assert isinstance(topology_spec(flat_doc), FlatTopologySpec)
    assert isinstance(topology_spec(dag_doc, ops_doc), DagTopologySpec)


def test_dag_without_ops_rejected(dag_doc) -> None:
    with pytest.raises(InputError, match="requires an ops document"):
        topology_spec(dag_doc)


def test_ops_with_flat_document_rejected(flat_doc, ops_doc) -> None:
    with pytest.raises(InputError, match="not a name DAG"):
        topology_spec(flat_doc, ops_doc)


def test_dag_unknown_names_rejected(dag_doc, ops_doc) -> None:
    bad_edges = dict(dag_doc, edges=[["src", "nowhere"]])
    with pytest.raises(StructuralError, match="unknown dst node: nowhere"):
        load_topology(bad_edges, ops_doc)

    bad_ops = {"groups": [{"name": "ghost", "operators": [[1]]}]}
    with pytest.raises(StructuralError, match="ops references unknown name: ghost"):
        load_topology(dag_doc, bad_ops)

    bad_roots = dict(dag_doc, roots=["ghost"])
    with pytest.raises(StructuralError, match="roots references unknown node"):
        load_topology(bad_roots, ops_doc)


def test_dag_duplicate_name_rejected(dag_doc, ops_doc) -> None:
    dag_doc["nodes"].append({"name": "src"})
    with pytest.raises(StructuralError, match="duplicate node name in dag: src"):
        load_topology(dag_doc, ops_doc)


def test_load_topology_file_reads_json_and_yaml(tmp_path: Path, flat_doc, dag_doc, ops_doc) -> None:
    flat_path = tmp_path / "ops.json"
    flat_path.write_text(json.dumps(flat_doc))
    assert len(load_topology_file(flat_path).nodes) == 4

    dag_path = tmp_path / "dag.yaml"
    dag_path.write_text(yaml.safe_dump(dag_doc))
    ops_path = tmp_path / "ops.yaml"
    ops_path.write_text(yaml.safe_dump(ops_doc))
    assert len(load_topology_file(ops_path, dag_path).nodes) == 3


def test_load_topology_file_missing_path(tmp_path: Path) -> None:
    with pytest.raises(InputError, match="cannot read"):
        load_topology_file(tmp_path / "absent.json")


def test_parse_document_requires_mapping() -> None:
    with pytest.raises(InputError, match="must map to a dictionary"):
        parse_document("- 1\n- 2\n")
    with pytest.raises(InputError, match="cannot parse"):
        parse_document("nodes: [unclosed")


def test_packaged_schemas_load() -> None:
    for name in ("topology_flat.json", "topology_dag.json", "ops.json"):
        assert load_schema(name)["type"] == "object"
