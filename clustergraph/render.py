# render.py
"""
Per-frame rendering.

``FrameRenderer.advance`` is the Qt-free half: it re-attaches centers,
computes the hover highlight set and steps every node/link opacity toward
its desired value. ``FrameRenderer.paint`` draws the current state with a
QPainter (widget, QImage or QPixmap alike).
"""

from __future__ import annotations
from typing import Optional, Set

from PyQt5.QtCore import QPointF, QRectF, Qt
from PyQt5.QtGui import QBrush, QColor, QFont, QFontMetricsF, QPainter, QPen

from .builder import score_range
from .config import VisualizerSettings
from .node import CenterNode, GraphNode, NodeKind
from .state import GraphState
from .utils_geom import v_mid

EMPTY_TEXT = "No clusters to display"
# Below this opacity an element is skipped entirely
MIN_VISIBLE_ALPHA = 0.01
SETTLED_EPS = 1e-3


def _color(hex_color: str, alpha: float = 1.0) -> QColor:
    c = QColor(hex_color)
    c.setAlphaF(max(0.0, min(1.0, alpha)))
    return c


class FrameRenderer:
    def __init__(self, settings: Optional[VisualizerSettings] = None):
        self.settings = settings or VisualizerSettings()

    # --------------------------
    # Animation step
    # --------------------------
    def highlight_set(self, state: GraphState) -> Set[str]:
        if state.hovered is None or state.hovered not in state.by_key:
            return set()
        return {state.hovered} | state.neighbors(state.hovered)

    def node_visible(self, node: GraphNode, zoom: float) -> bool:
        kind = node.kind
        if kind == NodeKind.CENTER:
            return zoom > self.settings.expand_zoom
        if kind in (NodeKind.CLUSTER, NodeKind.MEMBER):
            return True
        raise ValueError(f"Unknown node kind: {kind!r}")

    def advance(self, state: GraphState) -> bool:
        """Step all opacities once. Returns True while anything is still fading."""
        s = self.settings
        zoom = state.viewport.k
        highlight = self.highlight_set(state)
        hovering = bool(highlight)
        animating = False

        for n in state.nodes:
            if isinstance(n, CenterNode):
                n.attach()
            if not self.node_visible(n, zoom):
                n.desired_alpha = 0.0
            elif not hovering or n.key in highlight:
                n.desired_alpha = 1.0
            else:
                n.desired_alpha = s.fade_alpha
            animating |= self._step_alpha(n)

        for l in state.links:
            if not hovering or l.touches(state.hovered):
                l.desired_alpha = 1.0
            else:
                l.desired_alpha = s.fade_alpha
            animating |= self._step_alpha(l)
        return animating

    def _step_alpha(self, obj) -> bool:
        diff = obj.desired_alpha - obj.current_alpha
        if abs(diff) < SETTLED_EPS:
            obj.current_alpha = obj.desired_alpha
            return False
        obj.current_alpha += diff * self.settings.alpha_decay
        return True

    def link_width(self, score: float, lo: float, hi: float) -> float:
        s = self.settings
        span = hi - lo
        t = 1.0 if span <= 0.0 else (score - lo) / span
        t = min(1.0, max(0.0, t))
        return s.min_link_thickness + (s.max_link_thickness - s.min_link_thickness) * t

    def fill_color(self, node: GraphNode) -> str:
        kind = node.kind
        if kind == NodeKind.CLUSTER:
            return self.settings.cluster_color
        if kind == NodeKind.CENTER:
            return self.settings.center_color
        if kind == NodeKind.MEMBER:
            return self.settings.member_color
        raise ValueError(f"Unknown node kind: {kind!r}")

    # --------------------------
    # Painting
    # --------------------------
    def paint(self, painter: QPainter, state: GraphState) -> None:
        s = self.settings
        vp = state.viewport
        painter.setRenderHint(QPainter.Antialiasing, True)
        painter.fillRect(QRectF(0, 0, vp.width, vp.height), _color(s.background_color))

        if state.empty:
            self._paint_placeholder(painter, state)
            return

        painter.save()
        painter.translate(vp.x, vp.y)
        painter.scale(vp.k, vp.k)
        self._paint_links(painter, state)
        self._paint_nodes(painter, state)
        self._paint_selection_rect(painter, state)
        painter.restore()

        # Labels are drawn untransformed so they keep a constant screen size.
        self._paint_hover_labels(painter, state)

    def _paint_placeholder(self, painter: QPainter, state: GraphState) -> None:
        vp = state.viewport
        font = QFont()
        font.setPixelSize(14)
        painter.setFont(font)
        painter.setPen(_color(self.settings.text_color, 0.7))
        painter.drawText(QRectF(0, 0, vp.width, vp.height), Qt.AlignCenter, EMPTY_TEXT)

    def _paint_links(self, painter: QPainter, state: GraphState) -> None:
        lo, hi = score_range(state.links)
        for l in state.links:
            if l.current_alpha < MIN_VISIBLE_ALPHA:
                continue
            pen = QPen(_color(self.settings.link_color, l.current_alpha))
            pen.setWidthF(self.link_width(l.score, lo, hi))
            pen.setCapStyle(Qt.RoundCap)
            painter.setPen(pen)
            sx, sy = l.source.position()
            tx, ty = l.target.position()
            painter.drawLine(QPointF(sx, sy), QPointF(tx, ty))

    def _paint_nodes(self, painter: QPainter, state: GraphState) -> None:
        outline = QPen(_color(self.settings.selection_color))
        outline.setWidthF(2.0)
        outline.setCosmetic(True)
        for n in state.nodes:
            if not n.is_placed() or n.current_alpha < MIN_VISIBLE_ALPHA:
                continue
            painter.setBrush(QBrush(_color(self.fill_color(n), n.current_alpha)))
            painter.setPen(outline if n.key in state.selection else Qt.NoPen)
            x, y = n.position()
            painter.drawEllipse(QPointF(x, y), n.radius, n.radius)

    def _paint_selection_rect(self, painter: QPainter, state: GraphState) -> None:
        rect = state.selection_rect
        if rect is None:
            return
        pen = QPen(_color(self.settings.selection_color))
        pen.setStyle(Qt.DashLine)
        pen.setCosmetic(True)
        painter.setPen(pen)
        painter.setBrush(QBrush(_color(self.settings.selection_color, 0.12)))
        min_x, min_y, max_x, max_y = rect
        painter.drawRect(QRectF(min_x, min_y, max_x - min_x, max_y - min_y))

    def _paint_hover_labels(self, painter: QPainter, state: GraphState) -> None:
        node = state.hovered_node()
        if node is None or not node.is_placed():
            return
        s = self.settings
        vp = state.viewport

        font = QFont()
        font.setPixelSize(s.link_label_size)
        painter.setFont(font)
        painter.setPen(_color(s.text_color, 0.9))
        for l in state.links:
            if not l.touches(node.key):
                continue
            sx, sy = vp.to_screen(v_mid(l.source.position(), l.target.position()))
            painter.drawText(QPointF(sx, sy), f"{l.score * 100:.0f}%")

        font.setPixelSize(s.node_label_size)
        painter.setFont(font)
        metrics = QFontMetricsF(font)
        x, y = vp.to_screen(node.position())
        text_w = metrics.horizontalAdvance(node.label)
        # Centered above the circle
        top = y - node.radius * vp.k - 3
        painter.setPen(_color(s.text_color))
        painter.drawText(QPointF(x - text_w / 2, top), node.label)
