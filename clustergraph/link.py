# link.py
from __future__ import annotations
from typing import Tuple


class GraphLink:
    __slots__ = ("source", "target", "score", "current_alpha", "desired_alpha")

    def __init__(self, source, target, score: float):
        # Source is always the cluster node, target the member node.
        if source.key == target.key:
            raise ValueError("Link endpoints must be distinct.")
        self.source = source
        self.target = target
        self.score = float(score)
        self.current_alpha = 1.0
        self.desired_alpha = 1.0

    def key(self) -> Tuple[str, str]:
        return (self.source.key, self.target.key)

    def touches(self, node_key: str) -> bool:
        return self.source.key == node_key or self.target.key == node_key

    def other(self, node_key: str):
        return self.target if self.source.key == node_key else self.source

    def __eq__(self, other) -> bool:
        return isinstance(other, GraphLink) and self.key() == other.key()

    def __hash__(self) -> int:
        return hash(self.key())

    def __repr__(self):
        return f"L({self.source.key} - {self.target.key}: {self.score:.2f})"
