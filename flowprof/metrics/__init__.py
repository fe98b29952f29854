"""Metric rows and log parsing."""

from flowprof.metrics.parse import (
    parse_address,
    parse_memory_file,
    parse_memory_text,
    parse_time_file,
    parse_time_text,
)
from flowprof.metrics.rows import (
    MemoryIndex,
    MemoryRow,
    MetricSources,
    TimeIndex,
    TimeRow,
)

__all__ = [
    "MemoryIndex",
    "MemoryRow",
    "MetricSources",
    "TimeIndex",
    "TimeRow",
    "parse_address",
    "parse_memory_file",
    "parse_memory_text",
    "parse_time_file",
    "parse_time_text",
]
