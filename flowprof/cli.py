"""Command-line interface for flowprof."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from time import perf_counter
from typing import Any, List, NoReturn, Optional, Tuple

from flowprof.aggregate import AggregatedReport, aggregate
from flowprof.diagnostics import MISSING_TIME_ROW
from flowprof.errors import FlowprofError
from flowprof.layout.ranks import block_order
from flowprof.logging import get_logger, level_for_flags, set_global_log_level
from flowprof.metrics import MetricSources, parse_time_file
from flowprof.metrics.parse import parse_memory_file_optional
from flowprof.report import build_report, summary_lines, write_json, write_report
from flowprof.topology import Graph, load_topology_file, validate

logger = get_logger(__name__)


def _format_table(
    headers: List[str],
    rows: List[List[Any]],
    min_width: int = 6,
    max_col_width: Optional[int] = None,
) -> str:
    """Format rows as a simple ASCII table.

    Args:
        headers: Column headers.
        rows: Data rows.
        min_width: Minimum column width.
        max_col_width: Clip longer cells with an ASCII ellipsis.

    Returns:
        Formatted table string, empty when there are no rows.
    """
    if not rows:
        return ""

    def clip(val: Any) -> str:
        s = str(val)
        if max_col_width is not None and len(s) > max_col_width:
            return s[: max_col_width - 3] + "..."
        return s

    table = [[clip(h) for h in headers]] + [[clip(v) for v in row] for row in rows]
    widths = [
        max(min_width, max(len(row[i]) for row in table)) for i in range(len(headers))
    ]

    def format_row(row: List[str]) -> str:
        return "   " + " | ".join(f"{cell:<{widths[i]}}" for i, cell in enumerate(row))

    lines = [format_row(table[0]), "   " + "-+-".join("-" * w for w in widths)]
    lines.extend(format_row(row) for row in table[1:])
    return "\n".join(lines)


def _format_ms(value: float) -> str:
    return f"{value:,.3f}"


def _load_graph(ops: Path, dag: Optional[Path]) -> Graph:
    logger.info(f"Loading topology from: {dag if dag else ops}")
    return validate(load_topology_file(ops, dag))


def _load_and_aggregate(
    ops: Path, dag: Optional[Path], time: Path, memory: Optional[Path]
) -> Tuple[Graph, AggregatedReport]:
    graph = _load_graph(ops, dag)
    sources = MetricSources(
        time=parse_time_file(time), memory=parse_memory_file_optional(memory)
    )
    return graph, aggregate(graph, sources)


def _default_out(ops: Path) -> Path:
    return ops.with_name(f"{ops.stem}.report.html")


def _fail(action: str, exc: Exception) -> NoReturn:
    logger.error(f"Failed to {action}: {exc}")
    print(f"❌ ERROR: {exc}")
    sys.exit(1)


def _run_report(
    ops: Path,
    dag: Optional[Path],
    time: Path,
    memory: Optional[Path],
    out: Optional[Path],
    json_out: Optional[Path],
) -> None:
    """Build and write the HTML report (and optionally its JSON view model)."""
    start = perf_counter()
    try:
        graph, aggregated = _load_and_aggregate(ops, dag, time, memory)
        view_model = build_report(graph, aggregated, title=f"{ops.stem} report")
        html_path = write_report(view_model, out or _default_out(ops))
        if json_out is not None:
            write_json(view_model, json_out)
    except FlowprofError as e:
        _fail("build report", e)

    for line in summary_lines(view_model):
        print(line)
    for diag in aggregated.diagnostics.of_kind(MISSING_TIME_ROW):
        print(f"WARNING: {diag.message}")
    print(f"✅ Report written to: {html_path}")
    logger.info(f"Report completed in {perf_counter() - start:.2f} s")


def _print_topology(graph: Graph, detail: bool) -> None:
    print("\n" + "=" * 60)
    print("FLOWPROF TOPOLOGY INSPECTION")
    print("=" * 60)
    edges = sum(len(n.children) for n in graph)
    multi = sum(1 for n in graph if len(n.parents) > 1)
    print(
        f"\nNodes: {len(graph)}  Edges: {edges}  Roots: {len(graph.roots)}  "
        f"Rules: {len(graph.rules)}  Multi-parent nodes: {multi}"
    )

    blocks = block_order(graph.blocks())
    counts = {b: sum(1 for n in graph if n.block == b) for b in blocks}
    print("\nBlocks:")
    print(_format_table(["Block", "Nodes"], [[b, counts[b]] for b in blocks]))

    if graph.rules:
        print("\nRules:")
        rows = []
        for rule in graph.rules:
            shared = sum(1 for ps in rule.parents().values() if len(ps) > 1)
            rows.append([rule.text, rule.root, len(rule.children), shared, len(rule.extras)])
        print(
            _format_table(
                ["Rule", "Sink", "Plan nodes", "Shared", "Extras"],
                rows,
                max_col_width=40,
            )
        )

    if detail:
        print("\nNodes:")
        rows = [
            [
                n.id,
                n.display_label,
                n.block,
                n.fingerprint or "-",
                ",".join(str(p) for p in n.parents) or "-",
                len(n.operators),
            ]
            for n in graph
        ]
        print(
            _format_table(
                ["Id", "Label", "Block", "Fingerprint", "Parents", "Ops"],
                rows,
                max_col_width=32,
            )
        )


def _print_aggregates(aggregated: AggregatedReport, detail: bool) -> None:
    totals = aggregated.totals
    print("\nMetrics:")
    print(
        f"   operators mapped: {totals.operators_mapped}/{totals.operators_declared}"
        f"  missing from time log: {totals.operators_missing_time}"
        f"  unowned: {totals.operators_unowned}"
    )
    print(
        f"   total active: {_format_ms(totals.total_mapped_ms)} ms"
        f"  activations: {totals.total_mapped_activations}"
    )

    ranked = sorted(
        aggregated.nodes.values(), key=lambda n: (-n.self_total_active_ms, n.id)
    )
    limit = None if detail else 10
    rows = [
        [n.id, n.label or n.id, n.block, _format_ms(n.self_total_active_ms), n.self_activations]
        for n in ranked[:limit]
    ]
    print("\nBusiest nodes:")
    print(
        _format_table(
            ["Id", "Label", "Block", "Active ms", "Activations"], rows, max_col_width=32
        )
    )
    if aggregated.diagnostics:
        print(f"\nWarnings ({len(aggregated.diagnostics)}):")
        shown = list(aggregated.diagnostics) if detail else list(aggregated.diagnostics)[:10]
        for diag in shown:
            print(f"   {diag.message}")


def _run_inspect(
    ops: Path,
    dag: Optional[Path],
    time: Optional[Path],
    memory: Optional[Path],
    detail: bool = False,
) -> None:
    """Validate a topology and print a summary; aggregate when logs are given."""
    start = perf_counter()
    try:
        if time is not None:
            graph, aggregated = _load_and_aggregate(ops, dag, time, memory)
        else:
            graph, aggregated = _load_graph(ops, dag), None
    except FlowprofError as e:
        _fail("inspect topology", e)

    logger.info("✓ Topology validated successfully")
    _print_topology(graph, detail)
    if aggregated is not None:
        _print_aggregates(aggregated, detail)
    logger.info(f"Inspection completed in {perf_counter() - start:.2f} s")


def _add_topology_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--ops",
        type=Path,
        required=True,
        help="Topology document (flat shape), or the ops mapping when --dag is given",
    )
    parser.add_argument(
        "--dag", type=Path, default=None, help="Name DAG document (DAG + ops shape)"
    )


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the ``flowprof`` command.

    Args:
        argv: Optional list of command-line arguments. If ``None``, ``sys.argv``
            is used.
    """
    parser = argparse.ArgumentParser(
        prog="flowprof",
        description="Profile dataflow operators against a rule topology.",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--quiet", action="store_true", help="Suppress console output (logs only)"
    )

    subparsers = parser.add_subparsers(
        dest="command",
        required=True,
        title="Available commands",
        metavar="{report,inspect}",
        help="Available commands",
    )

    report_parser = subparsers.add_parser("report", help="Build the HTML report")
    _add_topology_args(report_parser)
    report_parser.add_argument("--time", type=Path, required=True, help="Time log")
    report_parser.add_argument("--memory", type=Path, default=None, help="Memory log")
    report_parser.add_argument(
        "--out",
        "-o",
        type=Path,
        default=None,
        help="HTML output path (default: <ops stem>.report.html next to --ops)",
    )
    report_parser.add_argument(
        "--json", type=Path, default=None, help="Also write the view model as JSON"
    )

    inspect_parser = subparsers.add_parser(
        "inspect", help="Validate a topology and show its characteristics"
    )
    _add_topology_args(inspect_parser)
    inspect_parser.add_argument("--time", type=Path, default=None, help="Time log")
    inspect_parser.add_argument("--memory", type=Path, default=None, help="Memory log")
    inspect_parser.add_argument(
        "--detail",
        "-d",
        action="store_true",
        help="Show complete node tables and every warning",
    )

    effective_args = sys.argv[1:] if argv is None else argv
    if not effective_args:
        parser.print_help()
        raise SystemExit(0)

    args = parser.parse_args(effective_args)

    set_global_log_level(level_for_flags(args.verbose, args.quiet))
    logger.debug("Debug logging enabled")

    if args.command == "report":
        _run_report(
            ops=args.ops,
            dag=args.dag,
            time=args.time,
            memory=args.memory,
            out=args.out,
            json_out=args.json,
        )
    elif args.command == "inspect":
        _run_inspect(args.ops, args.dag, args.time, args.memory, args.detail)


if __name__ == "__main__":
    main()
