"""Pan/zoom transform between graph space and screen space."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple

from flowprof.config import VIEWPORT_CONFIG, ViewportConfig


@dataclass(frozen=True)
class Viewport:
    """``screen = graph * scale + offset``."""

    offset_x: float = 0.0
    offset_y: float = 0.0
    scale: float = 1.0

    def to_screen(self, x: float, y: float) -> Tuple[float, float]:
        return (x * self.scale + self.offset_x, y * self.scale + self.offset_y)

    def to_graph(self, sx: float, sy: float) -> Tuple[float, float]:
        return ((sx - self.offset_x) / self.scale, (sy - self.offset_y) / self.scale)

    def pan(self, dx: float, dy: float) -> Viewport:
        return Viewport(self.offset_x + dx, self.offset_y + dy, self.scale)

    def zoom_at(
        self,
        sx: float,
        sy: float,
        factor: float,
        config: ViewportConfig = VIEWPORT_CONFIG,
    ) -> Viewport:
        """Scale by ``factor`` keeping the graph point under ``(sx, sy)`` fixed.

        The resulting scale is clamped to the configured range.
        """
        gx, gy = self.to_graph(sx, sy)
        scale = config.clamp_scale(self.scale * factor)
        return Viewport(sx - gx * scale, sy - gy * scale, scale)

    def wheel(
        self,
        sx: float,
        sy: float,
        delta_y: float,
        config: ViewportConfig = VIEWPORT_CONFIG,
    ) -> Viewport:
        """Zoom in for negative ``delta_y`` (wheel up), out for positive."""
        if delta_y == 0:
            return self
        factor = config.wheel_step if delta_y < 0 else 1 / config.wheel_step
        return self.zoom_at(sx, sy, factor, config)

    def to_dict(self) -> Dict[str, Any]:
        return {"x": self.offset_x, "y": self.offset_y, "k": self.scale}
