# state.py
"""
GraphState: the one mutable object shared by the builder output, the
layout, the picker, the selection controller and the renderer.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from .builder import GraphData
from .link import GraphLink
from .model import Snapshot
from .node import GraphNode
from .utils_geom import Rect
from .viewport import Viewport


@dataclass
class GraphState:
    snapshot: Optional[Snapshot] = None
    threshold: float = 0.5

    nodes: List[GraphNode] = field(default_factory=list)
    links: List[GraphLink] = field(default_factory=list)
    by_key: Dict[str, GraphNode] = field(default_factory=dict)

    selection: Set[str] = field(default_factory=set)
    hovered: Optional[str] = None
    # Live box-select rectangle in world coordinates
    selection_rect: Optional[Rect] = None

    viewport: Viewport = field(default_factory=Viewport)
    empty: bool = True

    # ------------------------------------------------------------------ #
    def set_graph(self, data: GraphData) -> None:
        self.nodes = list(data.nodes)
        self.links = list(data.links)
        self.by_key = dict(data.by_key)
        self.empty = data.is_empty()
        self.hovered = None
        self.selection_rect = None
        self.prune_selection()

    def set_links(self, links: List[GraphLink]) -> None:
        self.links = list(links)

    def prune_selection(self) -> None:
        self.selection = {k for k in self.selection if k in self.by_key}

    def node(self, key: Optional[str]) -> Optional[GraphNode]:
        if key is None:
            return None
        return self.by_key.get(key)

    def hovered_node(self) -> Optional[GraphNode]:
        return self.node(self.hovered)

    def selected_nodes(self) -> List[GraphNode]:
        # Draw order, so commands see a stable ordering.
        return [n for n in self.nodes if n.key in self.selection]

    def neighbors(self, key: str) -> Set[str]:
        out = set()
        for l in self.links:
            if l.touches(key):
                out.add(l.other(key).key)
        return out

    def positions(self):
        return [n.position() for n in self.nodes if n.is_placed()]
