# builder.py
"""
Snapshot -> node-link graph.

Nodes are emitted in draw order (each cluster followed by its centers, then
the members); the picker walks this order backwards so later nodes win.
"""

from __future__ import annotations
import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .link import GraphLink
from .model import Snapshot
from .node import CenterNode, ClusterNode, GraphNode, MemberNode, NodeKind, center_key

logger = logging.getLogger(__name__)


@dataclass
class GraphData:
    nodes: List[GraphNode] = field(default_factory=list)
    links: List[GraphLink] = field(default_factory=list)
    by_key: Dict[str, GraphNode] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not any(n.kind == NodeKind.CLUSTER for n in self.nodes)

    def get_stats(self):
        counts = {kind.value: 0 for kind in NodeKind}
        for n in self.nodes:
            counts[n.kind.value] += 1
        return {
            "nodes": len(self.nodes),
            "clusters": counts["cluster"],
            "centers": counts["center"],
            "members": counts["member"],
            "links": len(self.links),
        }


class CenterRing:
    """
    Remembers the angular slot of every center node across rebuilds.
    A cluster's ring is only re-laid when its center count changes.
    """

    def __init__(self):
        # cluster key -> {center node key: angle}
        self._slots: Dict[str, Dict[str, float]] = {}

    def __contains__(self, cluster_key: str) -> bool:
        return cluster_key in self._slots

    def __len__(self) -> int:
        return len(self._slots)

    def angles_for(self, cluster_key: str, item_keys: List[str]) -> List[float]:
        n = len(item_keys)
        keys = [center_key(cluster_key, k) for k in item_keys]
        slots = self._slots.get(cluster_key)
        if slots is None or len(slots) != n or any(k not in slots for k in keys):
            slots = {k: 2.0 * math.pi * i / n for i, k in enumerate(keys)}
            self._slots[cluster_key] = slots
        return [slots[k] for k in keys]

    def retain(self, cluster_keys: Iterable[str]) -> None:
        """Forget the rings of clusters not in ``cluster_keys``."""
        keep = set(cluster_keys)
        for key in [k for k in self._slots if k not in keep]:
            del self._slots[key]

    def clear(self):
        self._slots.clear()


def _centered_pairs(snapshot: Snapshot) -> set:
    pairs = set()
    for cluster in snapshot.clusters:
        for item in getattr(cluster, "centers", None) or []:
            pairs.add((cluster.key, item.key))
    return pairs


def build_links(by_key: Dict[str, GraphNode], snapshot: Snapshot, threshold: float) -> List[GraphLink]:
    """Cluster->member links with score >= threshold; no hysteresis."""
    centered = _centered_pairs(snapshot)
    links: List[GraphLink] = []
    skipped = 0
    for member in snapshot.members:
        target = by_key.get(member.key)
        if target is None or target.kind != NodeKind.MEMBER:
            continue
        for cluster_key in member.clusters:
            if (cluster_key, member.key) in centered:
                continue
            score = member.score_for(cluster_key)
            if score is None or score < threshold:
                continue
            source = by_key.get(cluster_key)
            if source is None or source.kind != NodeKind.CLUSTER:
                # Stale snapshot: member references a cluster we do not draw.
                skipped += 1
                continue
            links.append(GraphLink(source, target, score))
    if skipped:
        logger.debug("Skipped %d links with missing cluster references", skipped)
    return links


def build_graph(snapshot: Snapshot, threshold: float, ring: Optional[CenterRing] = None) -> GraphData:
    data = GraphData()
    if ring is not None:
        ring.retain(c.key for c in (snapshot.clusters if snapshot is not None else []))
    if snapshot is None or snapshot.is_empty():
        return data
    ring = ring if ring is not None else CenterRing()

    def add(node: GraphNode):
        if node.key in data.by_key:
            logger.debug("Duplicate node key %s ignored", node.key)
            return False
        data.by_key[node.key] = node
        data.nodes.append(node)
        return True

    for cluster in snapshot.clusters:
        c_node = ClusterNode(cluster)
        if not add(c_node):
            continue
        centers = list(getattr(cluster, "centers", None) or [])
        angles = ring.angles_for(cluster.key, [item.key for item in centers])
        for item, angle in zip(centers, angles):
            add(CenterNode(c_node, item, angle))

    centered = _centered_pairs(snapshot)
    for member in snapshot.members:
        key = member.key
        if key in data.by_key:
            continue
        # Centers supersede the plain member for the clusters they center.
        if member.clusters and all((cluster_key, key) in centered for cluster_key in member.clusters):
            continue
        add(MemberNode(member.item))

    data.links = build_links(data.by_key, snapshot, threshold)
    logger.debug("Built graph: %s", data.get_stats())
    return data


def link_keys(links: List[GraphLink]) -> set:
    return {l.key() for l in links}


def score_range(links: List[GraphLink]) -> Tuple[float, float]:
    scores = [l.score for l in links]
    if not scores:
        return (0.0, 1.0)
    return (min(scores), max(scores))
