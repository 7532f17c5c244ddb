"""Tests for the Streamlit preview page."""

from pathlib import Path

from streamlit.testing.v1 import AppTest

from clustergraph.config import SETTINGS_KEY, VisualizerSettings, save_settings
from clustergraph.memory_source import demo_cluster_group

APP = str(Path(__file__).resolve().parent.parent / "app.py")


def page(group=None) -> AppTest:
    at = AppTest.from_file(APP, default_timeout=60)
    if group is not None:
        at.session_state["group"] = group
    return at.run()


def test_slider_starts_from_stored_threshold() -> None:
    group = demo_cluster_group()
    save_settings(group, VisualizerSettings(threshold=0.7))
    at = page(group)
    assert not at.exception
    assert at.slider[0].value == 70


def test_slider_change_is_saved_on_group() -> None:
    at = page(demo_cluster_group())
    group = at.session_state["group"]
    saves = group.save_count
    at.slider[0].set_value(35).run()
    group = at.session_state["group"]
    assert not at.exception
    assert group.settings[SETTINGS_KEY]["threshold"] == 0.35
    assert group.save_count == saves + 1
