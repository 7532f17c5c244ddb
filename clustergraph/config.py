# config.py

from __future__ import annotations
import logging
import os
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, Optional

from .layout import LayoutConfig

logger = logging.getLogger(__name__)

# Key under which the visualizer stores its settings in the group's settings dict
SETTINGS_KEY = "cluster_graph"
DEBUG_ENV = "CLUSTERGRAPH_DEBUG"
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


@dataclass
class VisualizerSettings:
    # Links below this score are not drawn
    threshold: float = 0.5

    # Colors
    background_color: str = "#1e1f22"
    cluster_color: str = "#926ec9"
    center_color: str = "#d4a5ff"
    member_color: str = "#7c8594"
    link_color: str = "#4c7787"
    selection_color: str = "#f0c674"
    text_color: str = "#dcddde"

    # Link stroke width in world units, interpolated by score
    min_link_thickness: float = 1.0
    max_link_thickness: float = 3.0

    # Screen-space font sizes (px)
    node_label_size: int = 11
    link_label_size: int = 9

    # Hover fade
    fade_alpha: float = 0.08
    alpha_decay: float = 0.15

    # LOD: centers become visible/pickable above this zoom
    expand_zoom: float = 3.0

    drag_threshold: float = 5.0
    threshold_debounce: float = 0.1

    layout: LayoutConfig = field(default_factory=LayoutConfig)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "VisualizerSettings":
        settings = cls()
        if not data:
            return settings
        known = {f.name for f in fields(cls)}
        for key, value in data.items():
            if key not in known:
                logger.debug("Ignoring unknown setting %r", key)
                continue
            if key == "layout":
                settings.layout = _layout_from_dict(value)
            else:
                setattr(settings, key, value)
        settings.threshold = min(1.0, max(0.0, float(settings.threshold)))
        return settings


def _layout_from_dict(data: Optional[Dict[str, Any]]) -> LayoutConfig:
    cfg = LayoutConfig()
    if not data:
        return cfg
    known = {f.name for f in fields(LayoutConfig)}
    for key, value in data.items():
        if key in known:
            setattr(cfg, key, value)
    return cfg


def load_settings(group: Any) -> VisualizerSettings:
    store = getattr(group, "settings", None)
    if not isinstance(store, dict):
        return VisualizerSettings()
    return VisualizerSettings.from_dict(store.get(SETTINGS_KEY))


def save_settings(group: Any, settings: VisualizerSettings) -> bool:
    """Write ``settings`` into the group's settings dict and queue a save."""
    store = getattr(group, "settings", None)
    if not isinstance(store, dict):
        return False
    store[SETTINGS_KEY] = settings.to_dict()
    queue_save = getattr(group, "queue_save", None)
    if callable(queue_save):
        queue_save()
    return True


def configure_logging(debug: Optional[bool] = None) -> None:
    if debug is None:
        debug = os.environ.get(DEBUG_ENV, "").lower() in ("1", "true", "yes")
    logging.basicConfig(level=logging.DEBUG if debug else logging.INFO, format=LOG_FORMAT)
