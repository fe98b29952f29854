"""flowprof: dataflow operator profiling reports.

Validates a rule/operator topology, aggregates per-operator time and memory
log rows onto it, lays the graph out in layers and renders one
self-contained HTML report.

Primary API:
    load_topology_file() - Read either topology shape into a raw topology
    validate() - Check a raw topology and build the acyclic Graph
    parse_time_file(), parse_memory_file() - Read metric logs
    aggregate() - Join metrics with the graph
    layout() - Layered layout of the graph
    build_report(), render_html() - Report view model and HTML

Example:
    from flowprof import (
        aggregate, build_report, load_topology_file, parse_time_file, render_html, validate
    )

    graph = validate(load_topology_file("ops.json"))
    report = aggregate(graph, parse_time_file("time.tsv"))
    html = render_html(build_report(graph, report))
"""

from __future__ import annotations

from flowprof import cli, logging
from flowprof._version import __version__
from flowprof.address import Address
from flowprof.aggregate import AggregatedNodeView, AggregatedReport, aggregate
from flowprof.diagnostics import Diagnostic, DiagnosticCollector, Diagnostics
from flowprof.errors import (
    ConsistencyError,
    CycleError,
    FlowprofError,
    InputError,
    StructuralError,
)
from flowprof.graph.convert import to_networkx, tree_to_networkx
from flowprof.layout import InteractionController, LayoutResult, ViewState, Viewport, layout
from flowprof.metrics import (
    MetricSources,
    parse_memory_file,
    parse_memory_text,
    parse_time_file,
    parse_time_text,
)
from flowprof.report import ReportViewModel, build_report, render_html, write_report
from flowprof.topology import Graph, load_topology, load_topology_file, validate

__all__ = [
    # Version
    "__version__",
    # Topology
    "Address",
    "Graph",
    "load_topology",
    "load_topology_file",
    "validate",
    # Metrics
    "MetricSources",
    "parse_time_file",
    "parse_time_text",
    "parse_memory_file",
    "parse_memory_text",
    # Aggregation
    "aggregate",
    "AggregatedReport",
    "AggregatedNodeView",
    "Diagnostic",
    "DiagnosticCollector",
    "Diagnostics",
    # Layout and interaction
    "layout",
    "LayoutResult",
    "InteractionController",
    "ViewState",
    "Viewport",
    # Report
    "ReportViewModel",
    "build_report",
    "render_html",
    "write_report",
    # Interop
    "to_networkx",
    "tree_to_networkx",
    # Errors
    "FlowprofError",
    "StructuralError",
    "CycleError",
    "ConsistencyError",
    "InputError",
    # Modules
    "cli",
    "logging",
]
