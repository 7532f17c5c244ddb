# memory_source.py
"""
In-memory cluster group used by the desktop demo, the web preview and the
tests. Scores are the cosine similarity between an item's vector and the
mean vector of the cluster's centers, clipped at 0.
"""

from __future__ import annotations
import logging
import math
import random
from typing import Dict, Iterable, List, Optional, Sequence

from .model import Item, Member, Snapshot

logger = logging.getLogger(__name__)

TOPICS = ["physics", "cooking", "finance", "travel", "music"]


def _cosine(a: Sequence[float], b: Sequence[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    na = math.sqrt(sum(x * x for x in a))
    nb = math.sqrt(sum(y * y for y in b))
    if na == 0.0 or nb == 0.0:
        return 0.0
    return dot / (na * nb)


def _mean(vectors: List[Sequence[float]]) -> Optional[List[float]]:
    if not vectors:
        return None
    dim = len(vectors[0])
    return [sum(v[i] for v in vectors) / len(vectors) for i in range(dim)]


class InMemoryCluster:
    def __init__(self, key: str, name: str = "", centers: Iterable[Item] = ()):
        self.key = key
        self.name = name or key
        self.centers: List[Item] = list(centers)
        # Items explicitly ungrouped from this cluster
        self.excluded: set = set()

    def add_centers(self, items: Iterable[Item]) -> None:
        for item in items:
            if all(c.key != item.key for c in self.centers):
                self.centers.append(item)
            self.excluded.discard(item.key)

    def remove_centers(self, items: Iterable[Item]) -> None:
        keys = {i.key for i in items}
        self.centers = [c for c in self.centers if c.key not in keys]

    def remove_members(self, items: Iterable[Item]) -> None:
        self.excluded.update(i.key for i in items)

    def centroid(self) -> Optional[List[float]]:
        return _mean([c.vec for c in self.centers if c.vec])

    def __repr__(self):
        return f"InMemoryCluster({self.key!r}, centers={[c.key for c in self.centers]})"


class InMemoryClusterGroup:
    def __init__(self, items: Iterable[Item] = (), clusters: Iterable[InMemoryCluster] = ()):
        self.items: List[Item] = list(items)
        self.clusters: Dict[str, InMemoryCluster] = {c.key: c for c in clusters}
        self.settings: Dict[str, dict] = {}
        self.save_count = 0
        self._next_id = len(self.clusters) + 1

    def item(self, key: str) -> Optional[Item]:
        return next((i for i in self.items if i.key == key), None)

    def score(self, item: Item, cluster: InMemoryCluster) -> Optional[float]:
        centroid = cluster.centroid()
        if centroid is None or not item.vec or item.key in cluster.excluded:
            return None
        return max(0.0, _cosine(item.vec, centroid))

    async def get_snapshot(self, all_items: Optional[Iterable[Item]] = None) -> Snapshot:
        items = list(all_items) if all_items is not None else self.items
        clusters = list(self.clusters.values())
        members = []
        for item in items:
            scores = {}
            for cluster in clusters:
                s = self.score(item, cluster)
                if s is not None and s > 0.0:
                    scores[cluster.key] = {"score": s}
            if scores:
                members.append(Member(item=item, clusters=scores))
        return Snapshot(clusters=clusters, members=members)

    async def create_or_update(self, data: dict) -> InMemoryCluster:
        centers = []
        for key in (data.get("center") or {}):
            item = self.item(key)
            if item is None:
                raise KeyError(f"Unknown item {key!r}")
            centers.append(item)
        key = f"cluster-{self._next_id}"
        self._next_id += 1
        name = centers[0].name if centers else key
        return InMemoryCluster(key, name, centers)

    def add_cluster(self, cluster: InMemoryCluster) -> None:
        self.clusters[cluster.key] = cluster
        self.queue_save()

    def remove_clusters(self, clusters: Iterable[InMemoryCluster]) -> None:
        for c in clusters:
            self.clusters.pop(c.key, None)
        self.queue_save()

    def build_groups(self, k: Optional[int] = None) -> None:
        """Re-seed clusters by farthest-point sampling over item vectors."""
        pool = [i for i in self.items if i.vec]
        k = min(len(pool), k or max(1, len(self.clusters)))
        if not pool:
            self.clusters = {}
            return
        seeds = [pool[0]]
        while len(seeds) < k:
            best = max(pool, key=lambda i: min(1.0 - _cosine(i.vec, s.vec) for s in seeds))
            if best in seeds:
                break
            seeds.append(best)
        self.clusters = {}
        for n, item in enumerate(seeds, 1):
            cluster = InMemoryCluster(f"cluster-{n}", item.name, [item])
            self.clusters[cluster.key] = cluster
        self._next_id = len(self.clusters) + 1
        logger.info("Rebuilt %d clusters", len(self.clusters))
        self.queue_save()

    def queue_save(self) -> None:
        self.save_count += 1
        logger.debug("Save queued (%d)", self.save_count)


def demo_cluster_group(seed: int = 7, n_topics: int = 4, items_per_topic: int = 8,
                       n_clusters: int = 3, dim: int = 8) -> InMemoryClusterGroup:
    rng = random.Random(seed)
    items = []
    for t in range(n_topics):
        topic = TOPICS[t % len(TOPICS)]
        base = [rng.gauss(0.0, 1.0) for _ in range(dim)]
        for i in range(items_per_topic):
            vec = tuple(b + rng.gauss(0.0, 0.45) for b in base)
            path = f"{topic}/note-{i + 1}.md"
            items.append(Item(key=path, path=path, name=f"{topic} {i + 1}", vec=vec))
    clusters = []
    for c in range(min(n_clusters, n_topics)):
        first = items[c * items_per_topic]
        clusters.append(InMemoryCluster(f"cluster-{c + 1}", TOPICS[c % len(TOPICS)], [first]))
    return InMemoryClusterGroup(items, clusters)
