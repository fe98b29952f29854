"""Aggregation of metric rows onto the validated topology."""

from flowprof.aggregate.aggregator import (
    aggregate,
    build_rule_views,
    check_cross_source,
    claim_addresses,
)
from flowprof.aggregate.model import (
    AggregatedNodeView,
    AggregatedReport,
    OperatorView,
    RulePlanNodeView,
    RuleView,
    TotalsView,
)

__all__ = [
    "AggregatedNodeView",
    "AggregatedReport",
    "OperatorView",
    "RulePlanNodeView",
    "RuleView",
    "TotalsView",
    "aggregate",
    "build_rule_views",
    "check_cross_source",
    "claim_addresses",
]
