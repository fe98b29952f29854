"""Configuration classes for layout and viewport behavior."""

import re
from dataclasses import dataclass
from typing import FrozenSet, Optional


@dataclass(frozen=True)
class LayoutConfig:
    """Geometry and block-ordering parameters for the layered layout."""

    # Label wrapping: greedy wrap at this many characters per line
    max_label_chars: int = 28

    # Approximate glyph advance for the report font, in px
    char_width: float = 7.0
    line_height: float = 16.0

    # Box padding and limits
    pad_x: float = 10.0
    pad_y: float = 8.0
    min_box_height: float = 32.0
    max_box_width: float = 240.0

    # Minimum horizontal gap between boxes in one layer
    node_spacing: float = 40.0

    # Minimum vertical distance between consecutive layer centers
    layer_gap: float = 90.0

    # Block bounding boxes
    block_padding: float = 14.0
    block_gap: float = 24.0

    # Block name classes used for base ranks
    input_blocks: FrozenSet[str] = frozenset({"input"})
    inspect_blocks: FrozenSet[str] = frozenset({"inspect", "output"})
    stratum_pattern: str = r"^stratum[\s_-]*(\d+)$"

    def stratum_index(self, block: str) -> Optional[int]:
        """Return N for a ``stratum N`` block name, or None."""
        match = re.match(self.stratum_pattern, block.strip(), re.IGNORECASE)
        if match is None:
            return None
        return int(match.group(1))


@dataclass(frozen=True)
class ViewportConfig:
    """Pan/zoom limits for the interactive view."""

    min_scale: float = 0.2
    max_scale: float = 4.0

    # Multiplicative zoom per wheel notch
    wheel_step: float = 1.1

    def clamp_scale(self, scale: float) -> float:
        return max(self.min_scale, min(scale, self.max_scale))


# Global configuration instances
LAYOUT_CONFIG = LayoutConfig()
VIEWPORT_CONFIG = ViewportConfig()

