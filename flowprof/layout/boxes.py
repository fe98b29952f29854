"""Label wrapping and node box sizing."""

from __future__ import annotations

import textwrap
from dataclasses import dataclass
from typing import Tuple

from flowprof.config import LAYOUT_CONFIG, LayoutConfig


@dataclass(frozen=True)
class Box:
    """Node box dimensions in px."""

    w: float
    h: float


def wrap_label(label: str, max_chars: int) -> Tuple[str, ...]:
    """Greedy word wrap; words longer than a line are split."""
    lines = textwrap.wrap(label, width=max_chars, break_long_words=True)
    return tuple(lines) if lines else ("",)


def size_box(label: str, config: LayoutConfig = LAYOUT_CONFIG) -> Tuple[Tuple[str, ...], Box]:
    """Wrap ``label`` and compute its box.

    Width is the widest wrapped line plus horizontal padding, capped at
    ``max_box_width``; height is the line stack plus vertical padding, at
    least ``min_box_height``.
    """
    lines = wrap_label(label, config.max_label_chars)
    text_w = max(len(line) for line in lines) * config.char_width
    w = min(text_w + 2 * config.pad_x, config.max_box_width)
    h = max(config.min_box_height, len(lines) * config.line_height + 2 * config.pad_y)
    return lines, Box(w=w, h=h)
