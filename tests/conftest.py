"""Shared fixtures: a small flat topology with matching time and memory logs."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional

import pytest

from flowprof.address import Address
from flowprof.topology import Graph, RawNode, RawTopology, load_topology, validate

TIME_LOG = """\
addr        activations  total_active_ms  name
[0, 1]      4            2.5              Input
[0, 2]      10           10.0             Join
[0, 3]      3            5.0              Map
[0, 4]      7            1.25             Reduce
[0, 9]      1            0.5              Orphan
"""

MEMORY_LOG = """\
addr        batched_in  merges  merge_in  merge_out  dropped  name
[0, 2]      100         2       50        40         10       Join
[0, 5]      8           1       4         4          0        View
"""


@pytest.fixture
def flat_doc() -> Dict[str, Any]:
    """Four nodes across input / stratum / inspect blocks with one rule."""
    return {
        "nodes": [
            {"id": 0, "name": "source", "block": "input", "operators": [[0, 1]]},
            {
                "id": 1,
                "name": "join orders with customers",
                "block": "stratum 0",
                "fingerprint": "fpA",
                "rule": "r1",
                "operators": [[0, 2], {"addr": [0, 3]}],
                "parents": [0],
            },
            {
                "id": 2,
                "name": "reduce",
                "block": "stratum 1",
                "fingerprint": "fpB",
                "rule": "r1",
                "operators": [[0, 4]],
                "parents": [1],
            },
            {
                "id": 3,
                "name": "view",
                "block": "inspect",
                "operators": [[0, 5]],
                "parents": [1, 2],
            },
        ],
        "rules": [
            {
                "text": "r1",
                "plan_tree": [
                    {"fingerprint": "fpA", "children": ["fpB"]},
                    {"fingerprint": "fpB", "children": []},
                ],
            }
        ],
    }


@pytest.fixture
def flat_graph(flat_doc: Dict[str, Any]) -> Graph:
    return validate(load_topology(flat_doc))


@pytest.fixture
def time_log() -> str:
    return TIME_LOG


@pytest.fixture
def memory_log() -> str:
    return MEMORY_LOG


@pytest.fixture
def input_files(
    tmp_path: Path, flat_doc: Dict[str, Any]
) -> Dict[str, Path]:
    """Write the flat topology and both logs under ``tmp_path``."""
    ops = tmp_path / "ops.json"
    ops.write_text(json.dumps(flat_doc))
    time = tmp_path / "time.txt"
    time.write_text(TIME_LOG)
    memory = tmp_path / "memory.txt"
    memory.write_text(MEMORY_LOG)
    return {"ops": ops, "time": time, "memory": memory}


@pytest.fixture
def build_graph() -> Callable[..., Graph]:
    """Return a factory building a validated graph from ``{id: [parents]}``."""

    def _build(
        parents: Dict[int, Iterable[int]],
        blocks: Optional[Dict[int, str]] = None,
        labels: Optional[Dict[int, str]] = None,
        operators: Optional[Dict[int, Iterable[Iterable[int]]]] = None,
    ) -> Graph:
        blocks = blocks or {}
        labels = labels or {}
        operators = operators or {}
        nodes = [
            RawNode(
                id=nid,
                label=labels.get(nid, f"n{nid}"),
                block=blocks.get(nid, "other"),
                operators=[Address.of(a) for a in operators.get(nid, [])],
                edges=list(ps),
            )
            for nid, ps in parents.items()
        ]
        return validate(RawTopology(nodes=nodes, direction="parents"))

    return _build
