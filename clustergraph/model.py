# model.py
"""
Snapshot input types.

A snapshot is a read-only, point-in-time view of a cluster group supplied by
the external collaborator. Clusters are duck-typed: anything with ``key``,
``name`` and ``centers`` (a list of items) can be drawn, and the command
dispatcher additionally calls ``add_centers``, ``remove_centers`` and
``remove_members`` on them.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Item:
    key: str
    path: str = ""
    name: str = ""
    vec: Optional[tuple] = None


@dataclass
class Member:
    item: Any
    # cluster_key -> {"score": float}
    clusters: Dict[str, Dict[str, float]] = field(default_factory=dict)

    @property
    def key(self) -> str:
        return self.item.key

    def score_for(self, cluster_key: str) -> Optional[float]:
        entry = self.clusters.get(cluster_key)
        if entry is None:
            return None
        score = entry.get("score") if isinstance(entry, dict) else getattr(entry, "score", None)
        return None if score is None else float(score)


@dataclass
class Snapshot:
    clusters: List[Any] = field(default_factory=list)
    members: List[Member] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.clusters
