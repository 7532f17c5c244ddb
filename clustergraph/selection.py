# selection.py

from __future__ import annotations
import logging
from enum import Enum
from typing import List, Optional, Tuple

from .layout import ForceLayout
from .node import GraphNode, NodeKind
from .picker import EXPAND_ZOOM, nodes_in_rect, pick
from .state import GraphState
from .utils_geom import Point, rect_from_corners, v_dist, v_scale, v_sub

logger = logging.getLogger(__name__)

DRAG_THRESHOLD_PX = 5.0


class InteractionMode(str, Enum):
    IDLE = "idle"
    BOX_SELECTING = "box-selecting"
    DRAGGING = "dragging"


class SelectionController:
    """
    Pointer state machine for click, modifier-click, box-select, and
    single or group drag. Screen points come in; the selection set and node
    positions in ``state`` are updated in place. Methods return True when
    the scene needs a repaint (or, for ``pointer_down``, when the press was
    consumed and must not start a pan).
    """

    def __init__(self, state: GraphState, layout: ForceLayout,
                 drag_threshold: float = DRAG_THRESHOLD_PX, expand_zoom: float = EXPAND_ZOOM):
        self.state = state
        self.layout = layout
        self.drag_threshold = float(drag_threshold)
        self.expand_zoom = float(expand_zoom)
        self.mode = InteractionMode.IDLE
        self._reset_press()

    def _reset_press(self) -> None:
        self._press_screen: Optional[Point] = None
        self._press_node: Optional[str] = None
        self._press_modifier = False
        self._press_background = False
        self._background_moved = False
        self._box_anchor: Optional[Point] = None
        self._drag_nodes: List[Tuple[GraphNode, float, float]] = []

    @property
    def pressed(self) -> bool:
        return self._press_screen is not None

    def node_at(self, screen: Point) -> Optional[GraphNode]:
        vp = self.state.viewport
        return pick(vp.to_world(screen), self.state.nodes, vp.k, self.expand_zoom)

    # --------------------------
    # Pointer events
    # --------------------------
    def pointer_down(self, screen: Point, modifier: bool = False) -> bool:
        self._reset_press()
        self._press_screen = screen
        self._press_modifier = modifier
        node = self.node_at(screen)
        if node is None:
            if modifier:
                anchor = self.state.viewport.to_world(screen)
                self._box_anchor = anchor
                self.state.selection_rect = rect_from_corners(anchor, anchor)
                self.mode = InteractionMode.BOX_SELECTING
                return True
            # Plain background press: the host is free to pan.
            self._press_background = True
            return False
        self._press_node = node.key
        return True

    def pointer_move(self, screen: Point, modifier: bool = False, pressed: bool = True) -> bool:
        if not pressed and self.pressed:
            # The release happened where we could not see it
            stale = self.mode != InteractionMode.IDLE
            self.cancel()
            return self.hover(screen) or stale
        if self.mode == InteractionMode.BOX_SELECTING:
            anchor = self._box_anchor
            self.state.selection_rect = rect_from_corners(anchor, self.state.viewport.to_world(screen))
            return True
        if self.mode == InteractionMode.DRAGGING:
            self._drag_to(screen)
            return True
        if not pressed or not self.pressed:
            return self.hover(screen)
        moved = v_dist(screen, self._press_screen) > self.drag_threshold
        if self._press_node is not None and not self._press_modifier and moved:
            if self._begin_drag():
                self._drag_to(screen)
                return True
            return False
        if self._press_background and moved:
            self._background_moved = True
        return False

    def pointer_up(self, screen: Point, modifier: bool = False) -> bool:
        state = self.state
        try:
            if self.mode == InteractionMode.BOX_SELECTING:
                rect = rect_from_corners(self._box_anchor, state.viewport.to_world(screen))
                hits = {n.key for n in nodes_in_rect(rect, state.nodes, state.viewport.k, self.expand_zoom)}
                if modifier:
                    state.selection |= hits
                else:
                    state.selection = hits
                state.selection_rect = None
                logger.debug("Box-select %s -> %d nodes (union=%s)", rect, len(hits), modifier)
                return True
            if self.mode == InteractionMode.DRAGGING:
                self._end_drag()
                return True
            if self._press_node is not None:
                return self._click(state.node(self._press_node), self._press_modifier)
            if self._press_background and not self._background_moved:
                return self._click(None, self._press_modifier)
            return False
        finally:
            self.mode = InteractionMode.IDLE
            self._reset_press()

    def hover(self, screen: Point) -> bool:
        if self.mode != InteractionMode.IDLE or self.pressed:
            return False
        node = self.node_at(screen)
        key = node.key if node is not None else None
        if key == self.state.hovered:
            return False
        self.state.hovered = key
        return True

    def leave(self) -> bool:
        if self.state.hovered is None:
            return False
        self.state.hovered = None
        return True

    def cancel(self) -> None:
        if self.mode == InteractionMode.DRAGGING:
            self._end_drag()
        self.state.selection_rect = None
        self.mode = InteractionMode.IDLE
        self._reset_press()

    # --------------------------
    # Click / drag
    # --------------------------
    def _click(self, node: Optional[GraphNode], modifier: bool) -> bool:
        sel = self.state.selection
        if modifier:
            if node is None:
                return False
            if node.key in sel:
                sel.discard(node.key)
            else:
                sel.add(node.key)
            return True
        before = set(sel)
        self.state.selection = {node.key} if node is not None else set()
        return self.state.selection != before

    def _begin_drag(self) -> bool:
        state = self.state
        node = state.node(self._press_node)
        if node is None or node.kind == NodeKind.CENTER:
            # Centers follow their cluster every frame; nothing to drag.
            return False
        if node.key in state.selection:
            group = [n for n in state.selected_nodes() if n.kind != NodeKind.CENTER]
        else:
            group = [node]
        self._drag_nodes = [(n, n.x, n.y) for n in group]
        for n in group:
            n.pin()
        self.layout.set_alpha_target(self.layout.config.drag_alpha_target)
        self.mode = InteractionMode.DRAGGING
        state.hovered = node.key
        logger.debug("Drag start on %s (%d nodes)", node.key, len(group))
        return True

    def _drag_to(self, screen: Point) -> None:
        k = self.state.viewport.k
        dx, dy = v_scale(v_sub(screen, self._press_screen), 1.0 / k)
        for n, sx, sy in self._drag_nodes:
            n.set_position(sx + dx, sy + dy)
            n.fx, n.fy = n.x, n.y
            n.vx = n.vy = 0.0
        self.layout.sync_centers()

    def _end_drag(self) -> None:
        if not self.layout.pinned_all:
            for n, _, _ in self._drag_nodes:
                n.unpin()
        self.layout.set_alpha_target(0.0)
        self._drag_nodes = []

    def toggle_pin(self, node: GraphNode) -> bool:
        if node.kind == NodeKind.CENTER:
            return False
        if node.is_pinned():
            self.layout.unpin(node)
        else:
            self.layout.pin(node)
        return node.is_pinned()
