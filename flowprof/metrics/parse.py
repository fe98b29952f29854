"""Line-oriented parsing of the time and memory profile tables.

Time log columns (whitespace-separated, name may contain spaces)::

    addr        activations  total_active_ms  name...
    [0, 8, 10]  33           853.886          ThresholdTotal

Memory log columns::

    addr        batched_in  merges  merge_in  merge_out  dropped  name...
    [0, 11, 9]  8082820     7       11644270  7853107    4291657  Arrange: ThresholdTotal
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Callable, Dict, Optional, TypeVar, Union

from flowprof.address import Address
from flowprof.errors import InputError
from flowprof.logging import get_logger
from flowprof.metrics.rows import MemoryIndex, MemoryRow, TimeIndex, TimeRow

logger = get_logger(__name__)

TIME_LINE_RE = re.compile(
    r"^\s*(\[[^\]]*\])\s+(\d+)\s+([0-9]+(?:\.[0-9]+)?)\s+(.*?)\s*$"
)
MEMORY_LINE_RE = re.compile(
    r"^\s*(\[[^\]]*\])\s+(\d+)\s+(\d+)\s+(\d+)\s+(\d+)\s+(\d+)\s+(.*?)\s*$"
)

Row = TypeVar("Row")


def parse_address(text: str) -> Address:
    """Parse ``"[0, 8, 10]"`` into an ``Address``."""
    return Address.parse(text)


def _parse_table(
    text: str,
    source: str,
    pattern: re.Pattern[str],
    is_header: Callable[[str], bool],
    build: Callable[[re.Match[str]], Row],
) -> Dict[Address, Row]:
    out: Dict[Address, Row] = {}
    for lineno, line in enumerate(text.splitlines(), start=1):
        line = line.rstrip()
        if not line.strip() or is_header(line):
            continue
        match = pattern.match(line)
        if match is None:
            raise InputError(
                f"{source} parse error at line {lineno}: cannot parse line: {line!r}"
            )
        try:
            addr = Address.parse(match.group(1))
        except InputError as exc:
            raise InputError(f"bad addr in {source} at line {lineno}: {exc}") from exc
        if addr in out:
            raise InputError(
                f"duplicate addr entry in {source} at line {lineno}: {addr}"
            )
        out[addr] = build(match)
    logger.debug(f"Parsed {len(out)} rows from {source}")
    return out


def parse_time_text(text: str, source: str = "time log") -> TimeIndex:
    """Parse time log text into an address -> ``TimeRow`` index."""
    return _parse_table(
        text,
        source,
        TIME_LINE_RE,
        lambda line: "addr" in line
        and "activations" in line
        and "total_active_ms" in line,
        lambda m: TimeRow(
            activations=int(m.group(2)),
            total_active_ms=float(m.group(3)),
            op_name=m.group(4),
        ),
    )


def parse_memory_text(text: str, source: str = "memory log") -> MemoryIndex:
    """Parse memory log text into an address -> ``MemoryRow`` index."""
    return _parse_table(
        text,
        source,
        MEMORY_LINE_RE,
        lambda line: "addr" in line and "batched_in" in line,
        lambda m: MemoryRow(
            batched_in=int(m.group(2)),
            merges=int(m.group(3)),
            merge_in=int(m.group(4)),
            merge_out=int(m.group(5)),
            dropped=int(m.group(6)),
            op_name=m.group(7),
        ),
    )


def _read(path: Union[str, Path]) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise InputError(f"cannot read {path}: {exc}") from exc


def parse_time_file(path: Union[str, Path]) -> TimeIndex:
    return parse_time_text(_read(path), source=f"time log {path}")


def parse_memory_file(path: Union[str, Path]) -> MemoryIndex:
    return parse_memory_text(_read(path), source=f"memory log {path}")


def parse_memory_file_optional(path: Optional[Union[str, Path]]) -> Optional[MemoryIndex]:
    """Parse a memory log when a path is given, else return None."""
    if path is None:
        return None
    return parse_memory_file(path)
