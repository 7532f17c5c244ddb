# graphwidget.py

from __future__ import annotations
import asyncio
import logging
from typing import Optional

from PyQt5.QtCore import QElapsedTimer, Qt, QTimer, pyqtSignal
from PyQt5.QtGui import QImage, QPainter
from PyQt5.QtWidgets import QFileDialog, QMenu, QMessageBox, QWidget

from .config import VisualizerSettings
from .dispatcher import ACTION_LABELS, ClusterAction
from .engine import ClusterGraphEngine
from .errors import ClusterGraphError
from .node import NodeKind

logger = logging.getLogger(__name__)

# Frame interval (~60 FPS)
ANIM_DT_MS = 16
SELECT_MODIFIER = Qt.ShiftModifier


class GraphWidget(QWidget):
    """Canvas that hosts a ClusterGraphEngine: paints it, ticks it, and
    forwards mouse/wheel input to it."""

    changed = pyqtSignal()

    def __init__(self, group, items_provider=None, settings: Optional[VisualizerSettings] = None,
                 open_item=None, parent=None):
        super().__init__(parent)
        self.engine = ClusterGraphEngine(group, items_provider=items_provider, settings=settings,
                                         on_change=self._onEngineChanged, open_item=open_item)
        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.StrongFocus)
        self.setMinimumSize(320, 240)

        self._clock = QElapsedTimer()
        self._clock.start()
        self._timer = QTimer(self)
        self._timer.setInterval(ANIM_DT_MS)
        self._timer.timeout.connect(self._onTick)
        self._timer.start()

    # --------------------------
    # Engine plumbing
    # --------------------------
    def _onEngineChanged(self):
        self.update()
        self.changed.emit()

    def _onTick(self):
        dt = self._clock.restart() / 1000.0
        if self.engine.tick(dt):
            self.update()

    def _status(self, message: str, ms: int = 3000):
        window = self.window()
        if window is not self and hasattr(window, "statusBar"):
            window.statusBar().showMessage(message, ms)
        logger.info(message)

    def _run(self, coro, action_name: str) -> bool:
        try:
            asyncio.run(coro)
        except ClusterGraphError as e:
            self._status(str(e), 5000)
            QMessageBox.warning(self, action_name, str(e))
            return False
        return True

    # --------------------------
    # Commands
    # --------------------------
    def refresh(self):
        if self._run(self.engine.render_view(), "Refresh"):
            stats = self.engine.get_stats()
            self._status(
                f"Clusters: {stats['cluster']}, centers: {stats['center']}, "
                f"members: {stats['member']}, links: {stats['links']}", 4000)

    def runCommand(self, action: ClusterAction):
        label = ACTION_LABELS[action]
        if self._run(self.engine.run_command(action), label):
            self._status(f"{label} complete.", 3000)

    def rebuildClusters(self):
        label = ACTION_LABELS[ClusterAction.REBUILD_CLUSTERS]
        if self._run(self.engine.rebuild_clusters(), label):
            self._status("Clusters rebuilt.", 3000)

    def setThreshold(self, value: float):
        self.engine.set_threshold(value)

    def togglePinAll(self) -> bool:
        pinned = self.engine.toggle_pin_all()
        self._status("All nodes pinned." if pinned else "Nodes released.", 2000)
        return pinned

    def zoomIn(self):
        if self.engine.zoom_in():
            self.update()

    def zoomOut(self):
        if self.engine.zoom_out():
            self.update()

    def centerGraph(self):
        if self.engine.fit():
            self.update()

    def exportAsImage(self):
        path, _ = QFileDialog.getSaveFileName(self, "Export as Image", "", "PNG Files (*.png)")
        if not path:
            return
        if not path.lower().endswith(".png"):
            path += ".png"
        image = QImage(max(1, self.width()), max(1, self.height()), QImage.Format_ARGB32_Premultiplied)
        image.fill(Qt.transparent)
        painter = QPainter(image)
        if not painter.isActive():
            QMessageBox.warning(self, "Export", "Failed to start painter for image export.")
            return
        self.engine.paint(painter)
        painter.end()
        if not image.save(path):
            QMessageBox.warning(self, "Export", "Failed to save the PNG image.")
            return
        self._status(f"Image saved to {path}", 4000)

    # --------------------------
    # Qt events
    # --------------------------
    def paintEvent(self, event):
        painter = QPainter(self)
        self.engine.paint(painter)
        painter.end()

    def resizeEvent(self, event):
        self.engine.resize(self.width(), self.height())
        super().resizeEvent(event)

    def _point(self, event):
        p = event.pos()
        return (float(p.x()), float(p.y()))

    def _modifier(self, event) -> bool:
        return bool(event.modifiers() & SELECT_MODIFIER)

    def wheelEvent(self, event):
        steps = event.angleDelta().y() / 120.0
        pos = event.pos()
        if steps and self.engine.wheel((float(pos.x()), float(pos.y())), steps, self._modifier(event)):
            self.update()
        event.accept()

    def mousePressEvent(self, event):
        if event.button() != Qt.LeftButton:
            super().mousePressEvent(event)
            return
        consumed = self.engine.pointer_down(self._point(event), self._modifier(event))
        if not consumed and not self._modifier(event):
            self.setCursor(Qt.ClosedHandCursor)
        self.update()

    def mouseMoveEvent(self, event):
        pressed = bool(event.buttons() & Qt.LeftButton)
        if self.engine.pointer_move(self._point(event), self._modifier(event), pressed):
            self.update()

    def mouseReleaseEvent(self, event):
        if event.button() != Qt.LeftButton:
            super().mouseReleaseEvent(event)
            return
        self.setCursor(Qt.ArrowCursor)
        if self.engine.pointer_up(self._point(event), self._modifier(event)):
            self.changed.emit()
        self.update()

    def mouseDoubleClickEvent(self, event):
        if event.button() == Qt.LeftButton and self.engine.double_click(self._point(event)):
            return
        super().mouseDoubleClickEvent(event)

    def leaveEvent(self, event):
        if self.engine.leave():
            self.update()
        super().leaveEvent(event)

    def contextMenuEvent(self, event):
        pos = event.pos()
        node = self.engine.node_at((float(pos.x()), float(pos.y())))
        menu = QMenu(self)
        if node is not None and node.kind != NodeKind.CENTER:
            label = "Unpin Node" if node.is_pinned() else "Pin Node"
            menu.addAction(label, lambda: self._togglePin(node))
        if node is not None and node.kind != NodeKind.CLUSTER and self.engine.open_item is not None:
            menu.addAction("Open Item", lambda: self.engine.open_item(node.item))
        if node is not None:
            menu.addSeparator()
        menu.addAction("Pin All / Release All (P)", self.togglePinAll)
        menu.addAction("Fit Graph (C)", self.centerGraph)
        menu.addAction("Refresh (F5)", self.refresh)
        menu.exec_(event.globalPos())

    def _togglePin(self, node):
        pinned = self.engine.toggle_pin(node)
        self._status(f"{node.label} {'pinned' if pinned else 'released'}.", 2000)
        self.update()
