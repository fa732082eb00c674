"""
Viewport transform (pan + uniform zoom) and the rules that constrain it.

The transform maps planar base-map coordinates to screen coordinates:
    screen = planar * scale + translate

ZoomBehavior applies the same constraint as d3-zoom with
scaleExtent([1, 8]) and translateExtent([[0, 0], [width, height]]): the zoom
level stays inside the scale extent and the map always covers the viewport.
"""

from dataclasses import dataclass, replace
from typing import Tuple

SCALE_EXTENT = (1.0, 8.0)


@dataclass(frozen=True)
class ViewportTransform:
    translate_x: float = 0.0
    translate_y: float = 0.0
    scale: float = 1.0

    def apply(self, x: float, y: float) -> Tuple[float, float]:
        return (x * self.scale + self.translate_x, y * self.scale + self.translate_y)

    def invert(self, sx: float, sy: float) -> Tuple[float, float]:
        return ((sx - self.translate_x) / self.scale, (sy - self.translate_y) / self.scale)

    def invert_x(self, sx: float) -> float:
        return (sx - self.translate_x) / self.scale

    def invert_y(self, sy: float) -> float:
        return (sy - self.translate_y) / self.scale

    def translate_by(self, dx: float, dy: float) -> 'ViewportTransform':
        """Translate by (dx, dy) in planar units, like d3's transform.translate"""
        return replace(
            self,
            translate_x=self.translate_x + self.scale * dx,
            translate_y=self.translate_y + self.scale * dy,
        )

    def scale_to(self, scale: float, point: Tuple[float, float]) -> 'ViewportTransform':
        """Zoom to an absolute scale keeping the screen point fixed"""
        px, py = point
        x0, y0 = self.invert(px, py)
        return ViewportTransform(
            translate_x=px - x0 * scale,
            translate_y=py - y0 * scale,
            scale=scale,
        )


IDENTITY = ViewportTransform()


class ZoomBehavior:
    """Pan/zoom gesture rules for a viewport of the given size"""

    def __init__(self, width: float, height: float, scale_extent: Tuple[float, float] = SCALE_EXTENT):
        self.width = float(width)
        self.height = float(height)
        self.scale_extent = scale_extent

    @property
    def translate_extent(self) -> Tuple[Tuple[float, float], Tuple[float, float]]:
        return ((0.0, 0.0), (self.width, self.height))

    def clamp_scale(self, scale: float) -> float:
        low, high = self.scale_extent
        return max(low, min(high, scale))

    def constrain(self, transform: ViewportTransform) -> ViewportTransform:
        scale = self.clamp_scale(transform.scale)
        if scale != transform.scale:
            transform = transform.scale_to(scale, (self.width / 2, self.height / 2))

        (ex0, ey0), (ex1, ey1) = self.translate_extent
        dx0 = transform.invert_x(0.0) - ex0
        dx1 = transform.invert_x(self.width) - ex1
        dy0 = transform.invert_y(0.0) - ey0
        dy1 = transform.invert_y(self.height) - ey1
        # Center when the viewport is wider than the extent, otherwise push back inside
        dx = (dx0 + dx1) / 2 if dx1 > dx0 else (min(0.0, dx0) or max(0.0, dx1))
        dy = (dy0 + dy1) / 2 if dy1 > dy0 else (min(0.0, dy0) or max(0.0, dy1))
        return transform.translate_by(dx, dy)

    def zoom(self, transform: ViewportTransform, factor: float, point: Tuple[float, float]) -> ViewportTransform:
        """Scale by factor around a screen point (wheel / pinch)"""
        return self.constrain(transform.scale_to(self.clamp_scale(transform.scale * factor), point))

    def pan(self, transform: ViewportTransform, dx: float, dy: float) -> ViewportTransform:
        """Drag by (dx, dy) screen pixels"""
        return self.constrain(replace(
            transform,
            translate_x=transform.translate_x + dx,
            translate_y=transform.translate_y + dy,
        ))

    def from_visible_extent(self, x0: float, x1: float, y0: float, y1: float) -> ViewportTransform:
        """Transform that shows the planar window [x0, x1] x [y0, y1].

        The window's aspect rarely matches the viewport exactly; the tighter
        axis decides the scale and the window's center is kept.
        """
        span_x = abs(x1 - x0)
        span_y = abs(y1 - y0)
        if span_x <= 0 or span_y <= 0:
            raise ValueError(f"Degenerate visible extent: x=({x0}, {x1}) y=({y0}, {y1})")
        scale = self.clamp_scale(min(self.width / span_x, self.height / span_y))
        cx = (x0 + x1) / 2
        cy = (y0 + y1) / 2
        return self.constrain(ViewportTransform(
            translate_x=self.width / 2 - cx * scale,
            translate_y=self.height / 2 - cy * scale,
            scale=scale,
        ))

    def visible_extent(self, transform: ViewportTransform) -> Tuple[float, float, float, float]:
        """Planar window (x0, x1, y0, y1) currently on screen"""
        return (
            transform.invert_x(0.0),
            transform.invert_x(self.width),
            transform.invert_y(0.0),
            transform.invert_y(self.height),
        )
