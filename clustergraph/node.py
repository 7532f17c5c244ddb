# node.py

from __future__ import annotations
from enum import Enum
import math
from typing import Any, Optional, Tuple

from .utils_geom import v_polar

CLUSTER_RADIUS_BASE = 20.0
CLUSTER_RADIUS_STEP = 4.0
CLUSTER_RADIUS_MAX = 40.0
CENTER_RADIUS = 6.0
MEMBER_RADIUS = 7.0
CENTER_OFFSET_FRAC = 0.7


class NodeKind(str, Enum):
    CLUSTER = "cluster"
    CENTER = "center"
    MEMBER = "member"


def item_label(item: Any) -> str:
    name = getattr(item, "name", "") or ""
    if name:
        return name
    path = getattr(item, "path", "") or ""
    if path:
        return path.split("/")[-1]
    return str(getattr(item, "key", "?"))


def center_key(cluster_key: str, item_key: str) -> str:
    return f"{cluster_key}::{item_key}"


class GraphNode:
    __slots__ = ("key", "kind", "label", "radius",
                 "x", "y", "vx", "vy", "fx", "fy",
                 "current_alpha", "desired_alpha")

    def __init__(self, key: str, kind: NodeKind, label: str, radius: float):
        self.key = key
        self.kind = kind
        self.label = label
        self.radius = float(radius)
        self.x: Optional[float] = None
        self.y: Optional[float] = None
        self.vx = 0.0
        self.vy = 0.0
        self.fx: Optional[float] = None
        self.fy: Optional[float] = None
        self.current_alpha = 1.0
        self.desired_alpha = 1.0

    def position(self) -> Tuple[float, float]:
        return (self.x or 0.0, self.y or 0.0)

    def set_position(self, x: float, y: float) -> None:
        self.x = float(x)
        self.y = float(y)

    def is_placed(self) -> bool:
        return self.x is not None and self.y is not None

    def is_pinned(self) -> bool:
        return self.fx is not None and self.fy is not None

    def pin(self) -> None:
        x, y = self.position()
        self.fx, self.fy = x, y
        self.vx = 0.0
        self.vy = 0.0

    def unpin(self) -> None:
        self.fx = None
        self.fy = None

    def contains(self, point: Tuple[float, float]) -> bool:
        x, y = self.position()
        return math.hypot(point[0] - x, point[1] - y) <= self.radius

    def __repr__(self) -> str:
        return f"{self.kind.value}({self.key})"


class ClusterNode(GraphNode):
    __slots__ = ("cluster", "center_count")

    def __init__(self, cluster: Any):
        centers = list(getattr(cluster, "centers", None) or [])
        radius = min(CLUSTER_RADIUS_MAX, CLUSTER_RADIUS_BASE + CLUSTER_RADIUS_STEP * len(centers))
        super().__init__(cluster.key, NodeKind.CLUSTER, getattr(cluster, "name", "") or cluster.key, radius)
        self.cluster = cluster
        self.center_count = len(centers)


class CenterNode(GraphNode):
    __slots__ = ("parent", "item", "offset_angle", "offset_dist")

    def __init__(self, parent: ClusterNode, item: Any, offset_angle: float):
        super().__init__(center_key(parent.key, item.key), NodeKind.CENTER, item_label(item), CENTER_RADIUS)
        self.parent = parent
        self.item = item
        self.offset_angle = float(offset_angle)
        self.offset_dist = CENTER_OFFSET_FRAC * parent.radius

    def ring_position(self) -> Tuple[float, float]:
        return v_polar(self.parent.position(), self.offset_dist, self.offset_angle)

    def attach(self) -> None:
        # Orbit the parent; never a free body.
        x, y = self.ring_position()
        self.x, self.y = x, y
        self.fx, self.fy = x, y
        self.vx = 0.0
        self.vy = 0.0


class MemberNode(GraphNode):
    __slots__ = ("item",)

    def __init__(self, item: Any):
        super().__init__(item.key, NodeKind.MEMBER, item_label(item), MEMBER_RADIUS)
        self.item = item
