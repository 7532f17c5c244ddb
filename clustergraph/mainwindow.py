# mainwindow.py
import logging
import os

from PyQt5.QtCore import Qt, QUrl
from PyQt5.QtGui import QDesktopServices, QKeySequence
from PyQt5.QtWidgets import (
    QAction, QDockWidget, QDoubleSpinBox, QGroupBox, QLabel, QMainWindow,
    QMessageBox, QPushButton, QShortcut, QSlider, QSpinBox, QStatusBar,
    QToolBar, QVBoxLayout, QWidget
)

from .dispatcher import ACTION_LABELS, ClusterAction
from .graphwidget import GraphWidget

logger = logging.getLogger(__name__)

HELP_URL = "https://docs.smartconnections.app/clusters#visualizer"
ABOUT_HTML = (
    "<h3>Cluster Graph Visualizer</h3>"
    "<p>Node-link view of clusters, their centers and member items.</p>"
    "<p><b>Shift</b>+drag box-selects, <b>Shift</b>+click toggles a node, "
    "right-click pins a node. Zoom in past 300% to reach cluster centers.</p>"
    f"<p><a href='{HELP_URL}'>Documentation</a></p>"
)

COMMAND_ACTIONS = [
    ClusterAction.CREATE_CLUSTER,
    ClusterAction.UNGROUP,
    ClusterAction.ADD_TO_CENTER,
    ClusterAction.REMOVE_FROM_CENTER,
    ClusterAction.REMOVE_CLUSTERS,
]


class MainWindow(QMainWindow):
    def __init__(self, group, items_provider=None, settings=None):
        super().__init__()
        self.setWindowTitle("Cluster Graph Visualizer")

        self.graphWidget = GraphWidget(group, items_provider=items_provider, settings=settings,
                                       open_item=self.openItem, parent=self)
        self.setCentralWidget(self.graphWidget)
        self.engine = self.graphWidget.engine

        self.setStatusBar(QStatusBar(self))

        self.createActions()
        self.createMenuBar()
        self.createToolBar()
        self.createControlsDock()
        self.createShortcuts()

        self.graphWidget.changed.connect(self.updateActions)
        self.updateActions()

    def createActions(self):
        self.refreshAction = QAction("&Refresh", self, triggered=self.graphWidget.refresh)
        self.rebuildAction = QAction("Re&build Clusters", self, triggered=self.graphWidget.rebuildClusters)
        self.exportAction = QAction("E&xport as Image...", self, triggered=self.graphWidget.exportAsImage)

        self.commandActions = {}
        for action in COMMAND_ACTIONS:
            qa = QAction(ACTION_LABELS[action], self)
            qa.triggered.connect(lambda checked=False, a=action: self.graphWidget.runCommand(a))
            self.commandActions[action] = qa

        self.pinAllAction = QAction("&Pin All", self, checkable=True)
        self.pinAllAction.triggered.connect(self.togglePinAll)

        self.zoomInAction = QAction("Zoom &In", self, triggered=self.graphWidget.zoomIn)
        self.zoomOutAction = QAction("Zoom &Out", self, triggered=self.graphWidget.zoomOut)
        self.centerAction = QAction("&Fit Graph", self, triggered=self.graphWidget.centerGraph)
        self.graphInfoAction = QAction("&Graph Info", self, triggered=self.showGraphInfo)

        self.helpAction = QAction("&Help", self, triggered=self.showHelp)
        self.aboutAction = QAction("&About", self, triggered=self.showAbout)

    def createMenuBar(self):
        menuBar = self.menuBar()

        fileMenu = menuBar.addMenu("&File")
        fileMenu.addAction(self.refreshAction)
        fileMenu.addAction(self.rebuildAction)
        fileMenu.addAction(self.exportAction)

        editMenu = menuBar.addMenu("&Clusters")
        for action in COMMAND_ACTIONS:
            editMenu.addAction(self.commandActions[action])
        editMenu.addSeparator()
        editMenu.addAction(self.pinAllAction)
        editMenu.addAction(self.graphInfoAction)

        viewMenu = menuBar.addMenu("&View")
        viewMenu.addAction(self.zoomInAction)
        viewMenu.addAction(self.zoomOutAction)
        viewMenu.addAction(self.centerAction)

        helpMenu = menuBar.addMenu("&Help")
        helpMenu.addAction(self.helpAction)
        helpMenu.addAction(self.aboutAction)

    def createToolBar(self):
        toolbar = QToolBar("Clusters", self)
        toolbar.setMovable(False)
        toolbar.addAction(self.refreshAction)
        toolbar.addAction(self.rebuildAction)
        toolbar.addSeparator()
        for action in COMMAND_ACTIONS:
            toolbar.addAction(self.commandActions[action])
        toolbar.addSeparator()
        toolbar.addAction(self.pinAllAction)
        toolbar.addAction(self.helpAction)
        self.addToolBar(Qt.TopToolBarArea, toolbar)

    def createControlsDock(self):
        dock = QDockWidget("Controls", self)
        dock.setAllowedAreas(Qt.RightDockWidgetArea | Qt.LeftDockWidgetArea)
        settings = self.engine.settings

        panel = QWidget()
        panelLayout = QVBoxLayout(panel)
        panelLayout.setAlignment(Qt.AlignTop)

        filterGroup = QGroupBox("Filter")
        filterLayout = QVBoxLayout()
        self.thresholdLabel = QLabel()
        self.thresholdSlider = QSlider(Qt.Horizontal)
        self.thresholdSlider.setRange(0, 100)
        self.thresholdSlider.setValue(int(round(settings.threshold * 100)))
        self.thresholdSlider.valueChanged.connect(self.onThresholdChanged)
        self._updateThresholdLabel(self.thresholdSlider.value())
        filterLayout.addWidget(self.thresholdLabel)
        filterLayout.addWidget(self.thresholdSlider)
        filterGroup.setLayout(filterLayout)

        displayGroup = QGroupBox("Display")
        displayLayout = QVBoxLayout()
        self.spinMinLink = self._doubleSpin(0.1, 10.0, 0.1, settings.min_link_thickness)
        self.spinMaxLink = self._doubleSpin(0.1, 10.0, 0.1, settings.max_link_thickness)
        self.spinLabelSize = QSpinBox()
        self.spinLabelSize.setRange(6, 32)
        self.spinLabelSize.setValue(settings.node_label_size)
        displayLayout.addWidget(QLabel("Min Link Thickness:"))
        displayLayout.addWidget(self.spinMinLink)
        displayLayout.addWidget(QLabel("Max Link Thickness:"))
        displayLayout.addWidget(self.spinMaxLink)
        displayLayout.addWidget(QLabel("Node Label Size:"))
        displayLayout.addWidget(self.spinLabelSize)
        displayGroup.setLayout(displayLayout)

        forceGroup = QGroupBox("Forces")
        forceLayout = QVBoxLayout()
        layout_cfg = settings.layout
        self.spinRepel = self._doubleSpin(0.0, 2000.0, 10.0, -layout_cfg.charge_strength)
        self.spinNear = self._doubleSpin(5.0, 1000.0, 5.0, layout_cfg.link_distance_near)
        self.spinFar = self._doubleSpin(5.0, 2000.0, 10.0, layout_cfg.link_distance_far)
        self.spinCenter = self._doubleSpin(0.0, 1.0, 0.01, layout_cfg.center_strength)
        forceLayout.addWidget(QLabel("Repel Force:"))
        forceLayout.addWidget(self.spinRepel)
        forceLayout.addWidget(QLabel("Link Distance (near):"))
        forceLayout.addWidget(self.spinNear)
        forceLayout.addWidget(QLabel("Link Distance (far):"))
        forceLayout.addWidget(self.spinFar)
        forceLayout.addWidget(QLabel("Center Force:"))
        forceLayout.addWidget(self.spinCenter)
        forceGroup.setLayout(forceLayout)

        navGroup = QGroupBox("Navigate")
        navLayout = QVBoxLayout()
        for qa, hint in ((self.centerAction, "C"), (self.zoomInAction, "+"),
                         (self.zoomOutAction, "-"), (self.exportAction, "Ctrl+E")):
            label = qa.text().replace("&", "").rstrip(".")
            button = QPushButton(f"{label} ({hint})")
            button.clicked.connect(qa.trigger)
            navLayout.addWidget(button)
        navGroup.setLayout(navLayout)

        for box in (filterGroup, displayGroup, forceGroup, navGroup):
            panelLayout.addWidget(box)

        dock.setWidget(panel)
        self.addDockWidget(Qt.RightDockWidgetArea, dock)

        for spin in (self.spinMinLink, self.spinMaxLink, self.spinLabelSize,
                     self.spinRepel, self.spinNear, self.spinFar, self.spinCenter):
            spin.valueChanged.connect(self.onSettingsChanged)

    def _doubleSpin(self, lo, hi, step, value):
        spin = QDoubleSpinBox()
        spin.setRange(lo, hi)
        spin.setSingleStep(step)
        spin.setDecimals(2)
        spin.setValue(value)
        return spin

    def createShortcuts(self):
        QShortcut(QKeySequence("F5"), self, self.refreshAction.trigger)
        QShortcut(QKeySequence("Ctrl+E"), self, self.exportAction.trigger)
        QShortcut(QKeySequence("P"), self, self.pinAllAction.trigger)
        QShortcut(QKeySequence("C"), self, self.centerAction.trigger)
        QShortcut(QKeySequence(Qt.Key_Plus), self, self.zoomInAction.trigger)
        QShortcut(QKeySequence(Qt.Key_Equal), self, self.zoomInAction.trigger)
        QShortcut(QKeySequence(Qt.Key_Minus), self, self.zoomOutAction.trigger)
        QShortcut(QKeySequence("I"), self, self.graphInfoAction.trigger)
        QShortcut(QKeySequence("F1"), self, self.helpAction.trigger)

    # --------------------------
    # Slots
    # --------------------------
    def updateActions(self):
        available = self.engine.available_actions()
        busy = self.engine.dispatcher.busy
        for action, qa in self.commandActions.items():
            qa.setVisible(action in available)
            qa.setEnabled(action in available and not busy)
        self.pinAllAction.setChecked(self.engine.layout.pinned_all)

    def _updateThresholdLabel(self, value: int):
        self.thresholdLabel.setText(f"Min Relevance: {value}%")

    def onThresholdChanged(self, value: int):
        self._updateThresholdLabel(value)
        self.graphWidget.setThreshold(value / 100.0)

    def onSettingsChanged(self, *_):
        settings = self.engine.settings
        settings.min_link_thickness = self.spinMinLink.value()
        settings.max_link_thickness = max(self.spinMinLink.value(), self.spinMaxLink.value())
        settings.node_label_size = self.spinLabelSize.value()
        layout_cfg = settings.layout
        layout_cfg.charge_strength = -self.spinRepel.value()
        layout_cfg.link_distance_near = self.spinNear.value()
        layout_cfg.link_distance_far = max(self.spinNear.value(), self.spinFar.value())
        layout_cfg.center_strength = self.spinCenter.value()
        # Rest lengths are cached per link set
        self.engine.layout.set_links(self.engine.state.links, reheat=True)
        self.engine.save_settings()
        self.graphWidget.update()

    def togglePinAll(self):
        self.pinAllAction.setChecked(self.graphWidget.togglePinAll())

    def openItem(self, item):
        path = getattr(item, "path", "") or ""
        if path and os.path.exists(path):
            logger.info("Opening %s", path)
            QDesktopServices.openUrl(QUrl.fromLocalFile(os.path.abspath(path)))
            self.statusBar().showMessage(f"Opened {path}", 3000)
        else:
            self.statusBar().showMessage(f"Item: {path or getattr(item, 'key', '?')}", 4000)

    def showGraphInfo(self):
        stats = self.engine.get_stats()
        self.statusBar().showMessage(
            f"Clusters: {stats['cluster']}, Centers: {stats['center']}, Members: {stats['member']}, "
            f"Links: {stats['links']}, Selected: {stats['selected']}, "
            f"Threshold: {self.engine.state.threshold:.2f}",
            6000
        )

    def showHelp(self):
        QDesktopServices.openUrl(QUrl(HELP_URL))

    def showAbout(self):
        QMessageBox.about(self, "About Cluster Graph", ABOUT_HTML)
