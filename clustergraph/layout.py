# layout.py

from __future__ import annotations
import logging
import math
import random
from dataclasses import dataclass
from typing import Dict, List, Optional

from .builder import score_range
from .link import GraphLink
from .node import CenterNode, GraphNode, NodeKind

logger = logging.getLogger(__name__)

EPS = 1e-9
INITIAL_ANGLE = math.pi * (3.0 - math.sqrt(5.0))


@dataclass
class LayoutConfig:
    # Many-body repulsion (negative = repel)
    charge_strength: float = -100.0
    large_graph_nodes: int = 200
    large_graph_charge_factor: float = 0.5
    distance_min: float = 1.0

    # Link springs: rest length is a convex curve of the normalised score
    link_distance_near: float = 40.0
    link_distance_far: float = 400.0
    link_distance_exponent: float = 2.5
    link_strength: Optional[float] = None  # None -> 1 / min(degree)

    # Weak pull of the free bodies toward the world origin
    center_strength: float = 0.1

    velocity_decay: float = 0.4
    alpha_min: float = 0.001
    alpha_decay: float = 1.0 - 0.001 ** (1.0 / 300.0)

    # Synchronous warm-up before the first paint
    stabilize_max_iterations: int = 300
    stabilize_alpha: float = 0.01

    reheat_alpha: float = 0.3
    drag_alpha_target: float = 0.3

    initial_radius: float = 10.0


def link_rest_length(score: float, lo: float, hi: float, config: LayoutConfig) -> float:
    span = hi - lo
    if span < EPS:
        t = 1.0
    else:
        t = min(1.0, max(0.0, (score - lo) / span))
    near, far = config.link_distance_near, config.link_distance_far
    return near + (far - near) * (1.0 - t) ** config.link_distance_exponent


class ForceLayout:
    """
    Cooperative force simulation: one ``step()`` per frame.

    Nodes carry their own (x, y, vx, vy, fx, fy). A node with fx/fy set is
    held at that position and receives no forces. Center nodes are never
    integrated; they are re-attached to their cluster after every step.
    """

    def __init__(self, config: Optional[LayoutConfig] = None, seed: int = 0x5EED):
        self.config = config or LayoutConfig()
        self.nodes: List[GraphNode] = []
        self.links: List[GraphLink] = []
        self.alpha = 1.0
        self.alpha_target = 0.0
        self.pinned_all = False
        self._rng = random.Random(seed)
        self._distances: List[float] = []
        self._strengths: List[float] = []
        self._bias: List[float] = []

    # --------------------------
    # Graph wiring
    # --------------------------
    def set_graph(self, nodes: List[GraphNode], links: List[GraphLink]) -> None:
        self.nodes = list(nodes)
        self.pinned_all = False
        self._seed_positions()
        self.sync_centers()
        self.set_links(links, reheat=False)
        self.alpha = 1.0
        self.alpha_target = 0.0

    def set_links(self, links: List[GraphLink], reheat: bool = True) -> None:
        self.links = list(links)
        self._init_link_force()
        if reheat:
            self.reheat()

    def _seed_positions(self) -> None:
        # Phyllotaxis spiral, deterministic for a given node order.
        r0 = self.config.initial_radius
        for i, n in enumerate(self.nodes):
            if n.kind == NodeKind.CENTER or n.is_placed():
                continue
            radius = r0 * math.sqrt(0.5 + i)
            angle = i * INITIAL_ANGLE
            n.set_position(radius * math.cos(angle), radius * math.sin(angle))
            n.vx = n.vy = 0.0

    def _init_link_force(self) -> None:
        cfg = self.config
        count: Dict[str, int] = {}
        for l in self.links:
            count[l.source.key] = count.get(l.source.key, 0) + 1
            count[l.target.key] = count.get(l.target.key, 0) + 1
        lo, hi = score_range(self.links)
        self._distances = []
        self._strengths = []
        self._bias = []
        for l in self.links:
            cs = count[l.source.key]; ct = count[l.target.key]
            self._distances.append(link_rest_length(l.score, lo, hi, cfg))
            self._strengths.append(cfg.link_strength if cfg.link_strength is not None else 1.0 / min(cs, ct))
            self._bias.append(cs / (cs + ct))

    # --------------------------
    # Energy
    # --------------------------
    @property
    def running(self) -> bool:
        return self.alpha >= self.config.alpha_min

    def reheat(self, alpha: Optional[float] = None) -> None:
        a = self.config.reheat_alpha if alpha is None else alpha
        self.alpha = max(self.alpha, a)

    def set_alpha_target(self, target: float) -> None:
        self.alpha_target = max(0.0, float(target))
        if self.alpha_target > 0.0:
            self.reheat(self.alpha_target)

    # --------------------------
    # Forces
    # --------------------------
    def _jiggle(self) -> float:
        return (self._rng.random() - 0.5) * 1e-6

    def _bodies(self) -> List[GraphNode]:
        return [n for n in self.nodes if n.kind != NodeKind.CENTER]

    def charge_strength(self, body_count: int) -> float:
        cfg = self.config
        if body_count > cfg.large_graph_nodes:
            return cfg.charge_strength * cfg.large_graph_charge_factor
        return cfg.charge_strength

    def _apply_links(self) -> None:
        alpha = self.alpha
        for l, dist, strength, b in zip(self.links, self._distances, self._strengths, self._bias):
            s, t = l.source, l.target
            x = t.x + t.vx - s.x - s.vx
            y = t.y + t.vy - s.y - s.vy
            if x == 0.0:
                x = self._jiggle()
            if y == 0.0:
                y = self._jiggle()
            length = math.hypot(x, y)
            k = (length - dist) / length * alpha * strength
            x *= k; y *= k
            t.vx -= x * b; t.vy -= y * b
            s.vx += x * (1.0 - b); s.vy += y * (1.0 - b)

    def _apply_charge(self, bodies: List[GraphNode]) -> None:
        # O(n^2): fine for the low hundreds of nodes a vault produces.
        strength = self.charge_strength(len(bodies))
        if strength == 0.0:
            return
        alpha = self.alpha
        dmin2 = self.config.distance_min ** 2
        for i, ni in enumerate(bodies):
            if ni.is_pinned():
                continue
            accx = accy = 0.0
            for j, nj in enumerate(bodies):
                if i == j:
                    continue
                x = nj.x - ni.x
                y = nj.y - ni.y
                l2 = x * x + y * y
                if x == 0.0:
                    x = self._jiggle(); l2 += x * x
                if y == 0.0:
                    y = self._jiggle(); l2 += y * y
                if l2 < dmin2:
                    l2 = math.sqrt(dmin2 * l2)
                w = strength * alpha / l2
                accx += x * w
                accy += y * w
            ni.vx += accx
            ni.vy += accy

    def _apply_centering(self, bodies: List[GraphNode]) -> None:
        k = self.config.center_strength
        free = [n for n in bodies if not n.is_pinned()]
        if k <= 0.0 or not free:
            return
        sx = sum(n.x for n in free) / len(free)
        sy = sum(n.y for n in free) / len(free)
        for n in free:
            n.x -= sx * k
            n.y -= sy * k

    # --------------------------
    # Integration
    # --------------------------
    def step(self) -> float:
        cfg = self.config
        self.alpha += (self.alpha_target - self.alpha) * cfg.alpha_decay
        bodies = self._bodies()
        self._apply_links()
        self._apply_charge(bodies)
        keep = 1.0 - cfg.velocity_decay
        for n in bodies:
            if n.is_pinned():
                n.x, n.y = n.fx, n.fy
                n.vx = n.vy = 0.0
            else:
                n.vx *= keep; n.vy *= keep
                n.x += n.vx; n.y += n.vy
        self._apply_centering(bodies)
        self.sync_centers()
        return self.alpha

    def stabilize(self, max_iterations: Optional[int] = None, alpha_threshold: Optional[float] = None) -> int:
        max_it = self.config.stabilize_max_iterations if max_iterations is None else max_iterations
        thr = self.config.stabilize_alpha if alpha_threshold is None else alpha_threshold
        i = 0
        while self.alpha > thr and i < max_it:
            self.step()
            i += 1
        logger.debug("Layout stabilised after %d iterations (alpha=%.4f)", i, self.alpha)
        return i

    def sync_centers(self) -> None:
        for n in self.nodes:
            if isinstance(n, CenterNode):
                n.attach()

    # --------------------------
    # Pinning
    # --------------------------
    def pin(self, node: GraphNode) -> None:
        node.pin()

    def unpin(self, node: GraphNode) -> None:
        if node.kind == NodeKind.CENTER:
            return
        node.unpin()
        self.reheat()

    def pin_all(self) -> None:
        for n in self.nodes:
            n.pin()
        self.pinned_all = True
        self.alpha_target = 0.0

    def unpin_all(self) -> None:
        for n in self.nodes:
            if n.kind != NodeKind.CENTER:
                n.unpin()
        self.pinned_all = False
        self.reheat()

    def toggle_pin_all(self) -> bool:
        if self.pinned_all:
            self.unpin_all()
        else:
            self.pin_all()
        return self.pinned_all
