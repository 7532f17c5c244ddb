# utils_geom.py

import math
from typing import Iterable, Optional, Tuple

Point = Tuple[float, float]
Rect = Tuple[float, float, float, float]  # (min_x, min_y, max_x, max_y)

EPS = 1e-9


def v_sub(a: Point, b: Point) -> Point:
    return (a[0] - b[0], a[1] - b[1])


def v_scale(a: Point, s: float) -> Point:
    return (a[0] * s, a[1] * s)


def v_dist(a: Point, b: Point) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def v_mid(a: Point, b: Point) -> Point:
    return ((a[0] + b[0]) * 0.5, (a[1] + b[1]) * 0.5)


def v_polar(origin: Point, dist: float, angle: float) -> Point:
    return (origin[0] + dist * math.cos(angle), origin[1] + dist * math.sin(angle))


def rect_from_corners(a: Point, b: Point) -> Rect:
    return (min(a[0], b[0]), min(a[1], b[1]), max(a[0], b[0]), max(a[1], b[1]))


def rect_contains(rect: Rect, p: Point) -> bool:
    return rect[0] <= p[0] <= rect[2] and rect[1] <= p[1] <= rect[3]


def bbox_of_points(points: Iterable[Point]) -> Optional[Rect]:
    xs = []; ys = []
    for x, y in points:
        xs.append(x); ys.append(y)
    if not xs:
        return None
    return (min(xs), min(ys), max(xs), max(ys))


def rect_center(rect: Rect) -> Point:
    return ((rect[0] + rect[2]) * 0.5, (rect[1] + rect[3]) * 0.5)


def rect_size(rect: Rect) -> Tuple[float, float]:
    return (rect[2] - rect[0], rect[3] - rect[1])


def clamp(v: float, lo: float, hi: float) -> float:
    return lo if v < lo else (hi if v > hi else v)
