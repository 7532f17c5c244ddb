# picker.py

from typing import List, Optional

from .node import GraphNode, NodeKind
from .utils_geom import Point, Rect, rect_contains

EXPAND_ZOOM = 3.0


def is_pickable(node: GraphNode, zoom: float, expand_zoom: float = EXPAND_ZOOM) -> bool:
    kind = node.kind
    if kind == NodeKind.CENTER:
        # Below the expansion zoom the cluster absorbs its centers.
        return zoom > expand_zoom
    if kind in (NodeKind.CLUSTER, NodeKind.MEMBER):
        return True
    raise ValueError(f"Unknown node kind: {kind!r}")


def pick(world_point: Point, nodes: List[GraphNode], zoom: float,
         expand_zoom: float = EXPAND_ZOOM) -> Optional[GraphNode]:
    for node in reversed(nodes):
        if not node.is_placed() or not is_pickable(node, zoom, expand_zoom):
            continue
        if node.contains(world_point):
            return node
    return None


def nodes_in_rect(rect: Rect, nodes: List[GraphNode], zoom: float,
                  expand_zoom: float = EXPAND_ZOOM) -> List[GraphNode]:
    return [n for n in nodes
            if n.is_placed() and is_pickable(n, zoom, expand_zoom) and rect_contains(rect, n.position())]
