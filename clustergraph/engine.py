# engine.py

from __future__ import annotations
import logging
from typing import Any, Callable, FrozenSet, Optional

from .builder import CenterRing, build_graph, build_links
from .config import VisualizerSettings, load_settings, save_settings
from .dispatcher import ClusterAction, CommandDispatcher, available_actions, maybe_await
from .errors import RebuildError
from .layout import ForceLayout
from .node import GraphNode, NodeKind
from .render import FrameRenderer
from .selection import SelectionController
from .state import GraphState
from .utils_geom import Point
from .viewport import ZOOM_FACTOR, Viewport

logger = logging.getLogger(__name__)


class ClusterGraphEngine:
    """
    Owns the GraphState and wires builder, layout, selection, renderer and
    dispatcher together. The host calls ``tick(dt)`` once per frame and
    forwards pointer events; it never touches nodes directly.
    """

    def __init__(self, group: Any, items_provider: Optional[Callable[[], Any]] = None,
                 settings: Optional[VisualizerSettings] = None,
                 on_change: Optional[Callable[[], None]] = None,
                 open_item: Optional[Callable[[Any], None]] = None):
        self.group = group
        self.items_provider = items_provider
        self.settings = settings if settings is not None else load_settings(group)
        self.on_change = on_change
        self.open_item = open_item

        self.state = GraphState(threshold=self.settings.threshold)
        self.layout = ForceLayout(self.settings.layout)
        self.ring = CenterRing()
        self.selection = SelectionController(self.state, self.layout,
                                             drag_threshold=self.settings.drag_threshold,
                                             expand_zoom=self.settings.expand_zoom)
        self.renderer = FrameRenderer(self.settings)
        self.dispatcher = CommandDispatcher(group, self.render_view)

        # Engine clock, advanced only by tick(dt)
        self.clock = 0.0
        self._pending_threshold: Optional[float] = None
        self._threshold_due: Optional[float] = None

        self._rendering = False
        self._render_again = False
        self._panning = False
        self._last_pan: Optional[Point] = None

    @property
    def viewport(self) -> Viewport:
        return self.state.viewport

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change()

    # --------------------------
    # Rebuild
    # --------------------------
    async def render_view(self) -> bool:
        """Fetch a fresh snapshot and rebuild everything. Calls made while a
        render is in flight collapse into a single follow-up render."""
        if self._rendering:
            self._render_again = True
            return False
        self._rendering = True
        try:
            while True:
                self._render_again = False
                await self._render_once()
                if not self._render_again:
                    break
        finally:
            self._rendering = False
        self._notify()
        return True

    async def _render_once(self) -> None:
        snapshot = None
        if self.group is not None:
            items = self.items_provider() if self.items_provider is not None else None
            try:
                snapshot = await maybe_await(self.group.get_snapshot, items)
            except Exception as e:
                logger.exception("Snapshot read failed")
                raise RebuildError(e) from e

        self.selection.cancel()
        state = self.state
        state.snapshot = snapshot
        data = build_graph(snapshot, state.threshold, self.ring)
        state.set_graph(data)

        if state.empty:
            self.layout.set_graph([], [])
            state.viewport.reset()
            logger.info("No clusters to display")
            return

        self.layout.set_graph(data.nodes, data.links)
        self.layout.stabilize()
        self.fit()
        logger.info("Rendered %s", data.get_stats())

    # --------------------------
    # Threshold
    # --------------------------
    def set_threshold(self, value: float) -> None:
        self._pending_threshold = min(1.0, max(0.0, float(value)))
        self._threshold_due = self.clock + self.settings.threshold_debounce

    def flush_threshold(self) -> bool:
        if self._pending_threshold is None:
            return False
        value = self._pending_threshold
        self._pending_threshold = None
        self._threshold_due = None
        self.apply_threshold(value)
        return True

    def apply_threshold(self, value: float) -> None:
        # Links only: nodes, positions and pins are kept.
        state = self.state
        state.threshold = value
        self.settings.threshold = value
        if state.snapshot is not None and not state.empty:
            links = build_links(state.by_key, state.snapshot, value)
            state.set_links(links)
            self.layout.set_links(links, reheat=True)
            logger.debug("Threshold %.2f -> %d links", value, len(links))
        self.save_settings()
        self._notify()

    def save_settings(self) -> bool:
        return save_settings(self.group, self.settings)

    # --------------------------
    # Frame
    # --------------------------
    def tick(self, dt: float) -> bool:
        """Advance one frame. Returns True when a repaint is needed."""
        self.clock += max(0.0, float(dt))
        changed = False
        if self._threshold_due is not None and self.clock >= self._threshold_due:
            changed = self.flush_threshold()
        if self.state.empty:
            return changed
        if self.layout.running:
            self.layout.step()
            changed = True
        if self.renderer.advance(self.state):
            changed = True
        return changed

    def paint(self, painter) -> None:
        self.renderer.paint(painter, self.state)

    def resize(self, width: float, height: float) -> None:
        self.viewport.resize(width, height)
        self.fit()

    def fit(self) -> bool:
        return self.viewport.fit_to_content(self.state.positions())

    def zoom_in(self) -> bool:
        return self.viewport.zoom_in()

    def zoom_out(self) -> bool:
        return self.viewport.zoom_out()

    def toggle_pin_all(self) -> bool:
        pinned = self.layout.toggle_pin_all()
        logger.debug("Pin all -> %s", pinned)
        self._notify()
        return pinned

    def get_stats(self):
        counts = {kind.value: 0 for kind in NodeKind}
        for n in self.state.nodes:
            counts[n.kind.value] += 1
        counts["links"] = len(self.state.links)
        counts["selected"] = len(self.state.selection)
        return counts

    # --------------------------
    # Input
    # --------------------------
    def node_at(self, screen: Point) -> Optional[GraphNode]:
        return self.selection.node_at(screen)

    def pointer_down(self, screen: Point, modifier: bool = False) -> bool:
        consumed = self.selection.pointer_down(screen, modifier)
        self._panning = not consumed and Viewport.gesture_allowed(modifier, over_node=False)
        self._last_pan = screen if self._panning else None
        return consumed

    def pointer_move(self, screen: Point, modifier: bool = False, pressed: bool = True) -> bool:
        changed = self.selection.pointer_move(screen, modifier, pressed)
        if not pressed:
            self._panning = False
            self._last_pan = None
        if self._panning and pressed:
            dx = screen[0] - self._last_pan[0]
            dy = screen[1] - self._last_pan[1]
            self._last_pan = screen
            self.viewport.pan_by(dx, dy)
            return True
        return changed

    def pointer_up(self, screen: Point, modifier: bool = False) -> bool:
        self._panning = False
        self._last_pan = None
        return self.selection.pointer_up(screen, modifier)

    def leave(self) -> bool:
        return self.selection.leave()

    def wheel(self, screen: Point, steps: float, modifier: bool = False) -> bool:
        over_node = self.node_at(screen) is not None
        if not Viewport.gesture_allowed(modifier, over_node):
            return False
        return self.viewport.zoom_at(screen, ZOOM_FACTOR ** steps)

    def double_click(self, screen: Point) -> bool:
        node = self.node_at(screen)
        if node is None or node.kind == NodeKind.CLUSTER or self.open_item is None:
            return False
        self.open_item(node.item)
        return True

    def toggle_pin(self, node: GraphNode) -> bool:
        return self.selection.toggle_pin(node)

    # --------------------------
    # Commands
    # --------------------------
    def available_actions(self) -> FrozenSet[ClusterAction]:
        return available_actions(self.state.selected_nodes())

    async def run_command(self, action: ClusterAction) -> bool:
        """Run a toolbar command on the current selection. On failure the
        error propagates and the selection is left as it was."""
        await self.dispatcher.run(action, self.state.selected_nodes())
        self.state.selection.clear()
        self._notify()
        return True

    async def rebuild_clusters(self) -> bool:
        await self.dispatcher.rebuild_clusters()
        self.state.selection.clear()
        self._notify()
        return True
