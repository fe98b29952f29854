"""Topology input, validation and the derived spanning tree."""

from flowprof.topology.loader import (
    DagTopologySpec,
    FlatTopologySpec,
    load_topology,
    load_topology_file,
    topology_spec,
)
from flowprof.topology.models import Graph, RulePlanTree, ValidatedNode
from flowprof.topology.schema import RawNode, RawPlanNode, RawRule, RawTopology
from flowprof.topology.spanning import SpanningTree
from flowprof.topology.validate import find_cycle, validate

__all__ = [
    "DagTopologySpec",
    "FlatTopologySpec",
    "Graph",
    "RawNode",
    "RawPlanNode",
    "RawRule",
    "RawTopology",
    "RulePlanTree",
    "SpanningTree",
    "ValidatedNode",
    "find_cycle",
    "load_topology",
    "load_topology_file",
    "topology_spec",
    "validate",
]
