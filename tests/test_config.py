"""Tests for settings persistence."""

import logging
from unittest.mock import MagicMock

from clustergraph.config import (
    SETTINGS_KEY,
    VisualizerSettings,
    configure_logging,
    load_settings,
    save_settings,
)
from clustergraph.layout import LayoutConfig


class TestVisualizerSettings:
    """Tests for dict conversion."""

    def test_round_trip(self) -> None:
        settings = VisualizerSettings(threshold=0.3, link_color="#ffffff")
        settings.layout.charge_strength = -250.0
        restored = VisualizerSettings.from_dict(settings.to_dict())
        assert restored == settings
        assert isinstance(restored.layout, LayoutConfig)

    def test_empty_gives_defaults(self) -> None:
        assert VisualizerSettings.from_dict(None) == VisualizerSettings()
        assert VisualizerSettings.from_dict({}) == VisualizerSettings()

    def test_unknown_keys_ignored(self) -> None:
        settings = VisualizerSettings.from_dict({"threshold": 0.4, "legacy_option": True})
        assert settings.threshold == 0.4
        assert not hasattr(settings, "legacy_option")

    def test_threshold_clamped(self) -> None:
        assert VisualizerSettings.from_dict({"threshold": 1.7}).threshold == 1.0
        assert VisualizerSettings.from_dict({"threshold": -2}).threshold == 0.0

    def test_partial_layout(self) -> None:
        settings = VisualizerSettings.from_dict({"layout": {"center_strength": 0.5, "bogus": 1}})
        assert settings.layout.center_strength == 0.5
        assert settings.layout.charge_strength == LayoutConfig().charge_strength


class TestGroupStorage:
    """Tests for reading and writing the group's settings dict."""

    def test_save_then_load(self, memory_group) -> None:
        settings = VisualizerSettings(threshold=0.65)
        assert save_settings(memory_group, settings)
        assert memory_group.settings[SETTINGS_KEY]["threshold"] == 0.65
        assert memory_group.save_count == 1
        assert load_settings(memory_group) == settings

    def test_save_without_store(self) -> None:
        group = MagicMock(spec=["queue_save"])
        assert save_settings(group, VisualizerSettings()) is False
        group.queue_save.assert_not_called()

    def test_load_without_store(self) -> None:
        assert load_settings(object()) == VisualizerSettings()

    def test_keeps_other_settings(self, memory_group) -> None:
        memory_group.settings["other"] = {"x": 1}
        save_settings(memory_group, VisualizerSettings())
        assert memory_group.settings["other"] == {"x": 1}


def test_configure_logging_from_env(monkeypatch) -> None:
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.append(kw))
    monkeypatch.setenv("CLUSTERGRAPH_DEBUG", "1")
    configure_logging()
    monkeypatch.delenv("CLUSTERGRAPH_DEBUG")
    configure_logging()
    configure_logging(debug=True)
    assert [c["level"] for c in calls] == [logging.DEBUG, logging.INFO, logging.DEBUG]
