# viewport.py

from __future__ import annotations
import logging
from typing import Iterable, Tuple

from .utils_geom import EPS, Point, bbox_of_points, clamp, rect_center, rect_size

logger = logging.getLogger(__name__)

# Zoom behavior constants
ZOOM_FACTOR = 1.15
MIN_SCALE = 0.1
MAX_SCALE = 10.0
FIT_PADDING = 0.1


class Viewport:
    """Translate + uniform scale: screen = world * k + (x, y)."""

    def __init__(self, width: float = 800.0, height: float = 600.0):
        self.x = 0.0
        self.y = 0.0
        self.k = 1.0
        self.width = float(width)
        self.height = float(height)

    def transform(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.k)

    def reset(self) -> None:
        self.x = 0.0
        self.y = 0.0
        self.k = 1.0

    def resize(self, width: float, height: float) -> None:
        self.width = max(1.0, float(width))
        self.height = max(1.0, float(height))

    def to_world(self, p: Point) -> Point:
        return ((p[0] - self.x) / self.k, (p[1] - self.y) / self.k)

    def to_screen(self, p: Point) -> Point:
        return (p[0] * self.k + self.x, p[1] * self.k + self.y)

    @staticmethod
    def gesture_allowed(select_modifier: bool, over_node: bool) -> bool:
        # Pointer-down on a node always means drag/select, and the select
        # modifier is reserved for box selection.
        return not select_modifier and not over_node

    def zoom_at(self, screen_point: Point, factor: float) -> bool:
        target = clamp(self.k * factor, MIN_SCALE, MAX_SCALE)
        if abs(target - self.k) < 1e-12:
            return False
        wx, wy = self.to_world(screen_point)
        self.k = target
        self.x = screen_point[0] - wx * self.k
        self.y = screen_point[1] - wy * self.k
        return True

    def zoom_in(self) -> bool:
        return self.zoom_at((self.width / 2, self.height / 2), ZOOM_FACTOR)

    def zoom_out(self) -> bool:
        return self.zoom_at((self.width / 2, self.height / 2), 1.0 / ZOOM_FACTOR)

    def pan_by(self, dx: float, dy: float) -> None:
        self.x += dx
        self.y += dy

    def fit_to_content(self, points: Iterable[Point], padding: float = FIT_PADDING) -> bool:
        bbox = bbox_of_points(points)
        if bbox is None:
            return False
        cx, cy = rect_center(bbox)
        w, h = rect_size(bbox)
        if w < EPS and h < EPS:
            # Single point (or everything stacked at one spot): identity scale, centered.
            k = 1.0
        else:
            pad = 1.0 + padding
            kx = self.width / (w * pad) if w >= EPS else float("inf")
            ky = self.height / (h * pad) if h >= EPS else float("inf")
            k = clamp(min(kx, ky), MIN_SCALE, MAX_SCALE)
        self.k = k
        self.x = self.width / 2 - cx * k
        self.y = self.height / 2 - cy * k
        logger.debug("Fit viewport to %s -> (x=%.1f, y=%.1f, k=%.3f)", bbox, self.x, self.y, self.k)
        return True
