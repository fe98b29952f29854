"""Report View Model assembly and self-contained HTML rendering.

The view model is the single value handed to the rendering shell: the
aggregated nodes, rule views, totals, diagnostics, layout and view state,
all as JSON-ready primitives. ``render_html`` embeds it into the packaged
jinja2 template; the resulting file has no external references.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from jinja2 import Environment, PackageLoader, StrictUndefined, select_autoescape

from flowprof._version import __version__
from flowprof.aggregate.model import AggregatedReport
from flowprof.config import LAYOUT_CONFIG, VIEWPORT_CONFIG, LayoutConfig
from flowprof.layout.engine import LayoutResult
from flowprof.layout.interaction import InteractionController, ViewState
from flowprof.layout.ranks import block_order
from flowprof.logging import get_logger
from flowprof.topology.models import Graph

logger = get_logger(__name__)

TEMPLATE_NAME = "report.html.j2"


@dataclass(frozen=True)
class ReportViewModel:
    """Everything the HTML shell needs, in one immutable value."""

    title: str
    aggregated: AggregatedReport
    layout: LayoutResult
    view_state: ViewState
    tree: Tuple[Tuple[int, int], ...]
    blocks: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        data = self.aggregated.to_dict()
        data.update(
            {
                "title": self.title,
                "version": __version__,
                "tree": [list(entry) for entry in self.tree],
                "blocks": list(self.blocks),
                "layout": self.layout.to_dict(),
                "view": self.view_state.to_dict(),
                "viewport_limits": {
                    "min": VIEWPORT_CONFIG.min_scale,
                    "max": VIEWPORT_CONFIG.max_scale,
                    "step": VIEWPORT_CONFIG.wheel_step,
                },
            }
        )
        return data

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_dict(), indent=indent)


def build_report(
    graph: Graph,
    aggregated: AggregatedReport,
    view_state: Optional[ViewState] = None,
    config: Optional[LayoutConfig] = None,
    title: str = "flowprof report",
) -> ReportViewModel:
    """Lay out ``graph`` and bundle it with the aggregation into a view model."""
    config = config or LAYOUT_CONFIG
    controller = InteractionController(
        graph, aggregated, state=view_state, layout_config=config
    )
    model = ReportViewModel(
        title=title,
        aggregated=aggregated,
        layout=controller.result,
        view_state=controller.state,
        tree=tuple(graph.spanning_tree().depth_first()),
        blocks=tuple(block_order(graph.blocks(), config)),
    )
    logger.info(
        f"Built report view model: {len(aggregated.nodes)} nodes, "
        f"{len(aggregated.rules)} rules, {len(aggregated.diagnostics)} diagnostics"
    )
    return model


@lru_cache(maxsize=1)
def _environment() -> Environment:
    return Environment(
        loader=PackageLoader("flowprof", "templates"),
        autoescape=select_autoescape(["html", "j2"]),
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def render_html(view_model: ReportViewModel) -> str:
    """Render the self-contained HTML document for ``view_model``."""
    template = _environment().get_template(TEMPLATE_NAME)
    return template.render(
        title=view_model.title,
        version=__version__,
        model=view_model.to_dict(),
    )


def write_report(view_model: ReportViewModel, path: Path) -> Path:
    """Render ``view_model`` and write it to ``path``."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_html(view_model), encoding="utf-8")
    logger.info(f"Report written to: {path}")
    return path


def write_json(view_model: ReportViewModel, path: Path) -> Path:
    """Write the view model as indented JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(view_model.to_json(indent=2) + "\n", encoding="utf-8")
    logger.info(f"View model JSON written to: {path}")
    return path


def summary_lines(view_model: ReportViewModel) -> List[str]:
    """Short plain-text summary of totals and warnings."""
    totals = view_model.aggregated.totals
    lines = [
        f"nodes: {totals.names}",
        f"operators: {totals.operators_mapped}/{totals.operators_declared} mapped, "
        f"{totals.operators_missing_time} missing from time log, "
        f"{totals.operators_unowned} unowned",
        f"total active time: {totals.total_mapped_ms:.3f} ms "
        f"over {totals.total_mapped_activations} activations",
    ]
    counts = view_model.aggregated.diagnostics.counts()
    if counts:
        lines.append(
            "warnings: " + ", ".join(f"{kind}={n}" for kind, n in sorted(counts.items()))
        )
    return lines
