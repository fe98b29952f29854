"""YAML/JSON loading, schema validation and shape normalization for topologies.

Two document shapes describe the same thing:

* the flat shape: one document with integer-id nodes carrying ``parents`` (or
  ``children``), block/fingerprint/rule metadata, operator addresses and
  inline rule plan trees;
* the DAG shape: a name DAG document (nodes + ``[src, dst]`` edges) plus a
  separate ops document mapping each name to its operator addresses.

``topology_spec()`` resolves which shape was supplied exactly once and
``load_topology()`` reduces either to a ``RawTopology``; the validator and
everything after it only ever see that single representation.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Union

import jsonschema
import yaml

from flowprof.address import Address
from flowprof.errors import InputError, StructuralError
from flowprof.logging import get_logger
from flowprof.topology.schema import (
    DEFAULT_BLOCK,
    EdgeDirection,
    RawNode,
    RawPlanNode,
    RawRule,
    RawTopology,
)

logger = get_logger(__name__)


@lru_cache(maxsize=None)
def load_schema(name: str) -> Dict[str, Any]:
    """Return a packaged JSON schema by file name (e.g. ``topology_flat.json``)."""
    with (
        resources.files("flowprof.schemas").joinpath(name).open("r", encoding="utf-8")
    ) as f:
        return json.load(f)


def _check_schema(data: Dict[str, Any], schema_name: str, what: str) -> None:
    try:
        jsonschema.validate(data, load_schema(schema_name))
    except jsonschema.ValidationError as exc:
        location = "/".join(str(p) for p in exc.absolute_path) or "<root>"
        raise InputError(
            f"{what} does not match schema at {location}: {exc.message}"
        ) from exc


def parse_document(text: str, what: str = "document") -> Dict[str, Any]:
    """Parse a JSON or YAML string into a top-level mapping."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise InputError(f"cannot parse {what}: {exc}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise InputError(f"{what} must map to a dictionary at top-level")
    return data


def load_document(path: Union[str, Path]) -> Dict[str, Any]:
    """Read and parse a JSON or YAML document from disk."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise InputError(f"cannot read {path}: {exc}") from exc
    return parse_document(text, what=str(path))


def _edge_direction(entries: List[Dict[str, Any]], where: str) -> EdgeDirection:
    """Return the single edge direction used by ``entries``.

    Raises:
        InputError: If an entry carries both keys or entries disagree.
    """
    seen = set()
    for entry in entries:
        keys = {k for k in ("parents", "children") if k in entry}
        if len(keys) > 1:
            raise InputError(
                f"{where}: entry declares both 'parents' and 'children'"
            )
        seen |= keys
    if len(seen) > 1:
        raise InputError(
            f"{where}: entries mix 'parents' and 'children' edge lists"
        )
    if seen:
        return seen.pop()  # type: ignore[return-value]
    return "parents"


@dataclass(frozen=True)
class FlatTopologySpec:
    """Flat node/edge document with inline rule plan trees."""

    data: Dict[str, Any]

    def to_raw(self) -> RawTopology:
        _check_schema(self.data, "topology_flat.json", "topology")

        node_entries: List[Dict[str, Any]] = self.data.get("nodes", [])
        direction = _edge_direction(node_entries, "topology nodes")

        nodes: List[RawNode] = []
        for entry in node_entries:
            label = entry.get("label") or entry.get("name") or ""
            nodes.append(
                RawNode(
                    id=entry["id"],
                    label=label,
                    block=entry.get("block") or DEFAULT_BLOCK,
                    fingerprint=entry.get("fingerprint"),
                    tags=list(entry.get("tags", [])),
                    rule=entry.get("rule"),
                    operators=[Address.coerce(op) for op in entry.get("operators", [])],
                    edges=list(entry.get(direction, [])),
                )
            )

        rules: List[RawRule] = []
        for rule in self.data.get("rules", []):
            plan_entries = rule.get("plan_tree", [])
            rule_direction = _edge_direction(plan_entries, f"rule '{rule['text']}'")
            rules.append(
                RawRule(
                    text=rule["text"],
                    plan_tree=[
                        RawPlanNode(
                            fingerprint=p["fingerprint"],
                            edges=list(p.get(rule_direction, [])),
                        )
                        for p in plan_entries
                    ],
                    direction=rule_direction,
                )
            )

        return RawTopology(
            nodes=nodes,
            rules=rules,
            roots=list(self.data.get("roots", [])),
            direction=direction,
        )


@dataclass(frozen=True)
class DagTopologySpec:
    """Name DAG document plus a name -> operator-set mapping."""

    dag: Dict[str, Any]
    ops: Dict[str, Any]

    def to_raw(self) -> RawTopology:
        _check_schema(self.dag, "topology_dag.json", "dag")
        _check_schema(self.ops, "ops.json", "ops")

        seen: Set[str] = set()
        for entry in self.dag["nodes"]:
            name = entry["name"]
            if name in seen:
                raise StructuralError(f"duplicate node name in dag: {name}")
            seen.add(name)
        # Ids follow name order so numeric orderings match lexicographic ones
        ids: Dict[str, int] = {name: i for i, name in enumerate(sorted(seen))}

        children: Dict[str, List[int]] = {name: [] for name in ids}
        for src, dst in self.dag["edges"]:
            if src not in ids:
                raise StructuralError(f"edge references unknown src node: {src}")
            if dst not in ids:
                raise StructuralError(f"edge references unknown dst node: {dst}")
            children[src].append(ids[dst])

        roots: List[int] = []
        for name in self.dag.get("roots", []):
            if name not in ids:
                raise StructuralError(f"roots references unknown node: {name}")
            roots.append(ids[name])

        operators: Dict[str, List[Address]] = {name: [] for name in ids}
        for group in self.ops["groups"]:
            name = group["name"]
            if name not in ids:
                raise StructuralError(f"ops references unknown name: {name}")
            operators[name].extend(
                Address.coerce(op) for op in group.get("operators", [])
            )

        nodes = [
            RawNode(
                id=ids[entry["name"]],
                label=entry.get("label") or entry["name"],
                block=entry.get("block") or DEFAULT_BLOCK,
                tags=list(entry.get("tags", [])),
                operators=operators[entry["name"]],
                edges=children[entry["name"]],
            )
            for entry in self.dag["nodes"]
        ]
        return RawTopology(nodes=nodes, roots=roots, direction="children")


TopologySpec = Union[FlatTopologySpec, DagTopologySpec]


def topology_spec(
    data: Dict[str, Any], ops: Optional[Dict[str, Any]] = None
) -> TopologySpec:
    """Resolve which document shape ``data`` uses.

    A document with an ``edges`` key is a name DAG and requires ``ops``;
    anything else is the flat shape, for which ``ops`` must be omitted.
    """
    if "edges" in data:
        if ops is None:
            raise InputError("a name DAG topology requires an ops document")
        return DagTopologySpec(dag=data, ops=ops)
    if ops is not None:
        raise InputError(
            "an ops document was supplied but the topology is not a name DAG "
            "(missing 'edges')"
        )
    return FlatTopologySpec(data=data)


def load_topology(
    data: Dict[str, Any], ops: Optional[Dict[str, Any]] = None
) -> RawTopology:
    """Normalize a parsed topology document (or DAG + ops pair)."""
    spec = topology_spec(data, ops)
    raw = spec.to_raw()
    logger.debug(
        f"Loaded {type(spec).__name__} with {len(raw.nodes)} nodes, "
        f"{len(raw.rules)} rules"
    )
    return raw


def load_topology_file(
    ops_path: Union[str, Path], dag_path: Union[str, Path, None] = None
) -> RawTopology:
    """Load a topology from disk.

    Args:
        ops_path: Flat topology document, or the ops mapping when ``dag_path``
            is given.
        dag_path: Optional name DAG document.
    """
    ops_doc = load_document(ops_path)
    if dag_path is None:
        return load_topology(ops_doc)
    return load_topology(load_document(dag_path), ops_doc)
