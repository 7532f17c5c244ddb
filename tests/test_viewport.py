"""Unit tests for the viewport and the spatial picker."""

import pytest

from clustergraph.builder import build_graph
from clustergraph.memory_source import InMemoryCluster
from clustergraph.model import Snapshot
from clustergraph.node import MemberNode, NodeKind
from clustergraph.picker import is_pickable, nodes_in_rect, pick
from clustergraph.viewport import MAX_SCALE, MIN_SCALE, Viewport

from .conftest import make_item


class TestViewport:
    """Tests for screen <-> world conversion, zoom and fit."""

    def test_identity_default(self) -> None:
        vp = Viewport()
        assert vp.transform() == (0.0, 0.0, 1.0)
        assert vp.to_world((12.0, 34.0)) == (12.0, 34.0)

    def test_round_trip(self) -> None:
        vp = Viewport()
        vp.x, vp.y, vp.k = 37.0, -12.5, 2.5
        p = (101.0, -7.0)
        assert vp.to_world(vp.to_screen(p)) == pytest.approx(p)

    def test_zoom_keeps_anchor_fixed(self) -> None:
        vp = Viewport()
        anchor = (200.0, 150.0)
        world = vp.to_world(anchor)
        assert vp.zoom_at(anchor, 2.0)
        assert vp.to_screen(world) == pytest.approx(anchor)

    def test_zoom_clamped(self) -> None:
        vp = Viewport()
        vp.zoom_at((0, 0), 1000.0)
        assert vp.k == MAX_SCALE
        assert not vp.zoom_at((0, 0), 2.0)
        vp.zoom_at((0, 0), 1e-6)
        assert vp.k == MIN_SCALE

    def test_gesture_suppression(self) -> None:
        assert Viewport.gesture_allowed(False, False)
        assert not Viewport.gesture_allowed(True, False)
        assert not Viewport.gesture_allowed(False, True)

    def test_fit_to_content_fills_canvas(self) -> None:
        vp = Viewport(800, 600)
        assert vp.fit_to_content([(-100.0, -50.0), (100.0, 50.0)])
        # Width-bound: 200 * 1.1 world units across 800 px
        assert vp.k == pytest.approx(800 / 220)
        assert vp.to_screen((0.0, 0.0)) == pytest.approx((400.0, 300.0))

    def test_fit_degenerate_single_point(self) -> None:
        vp = Viewport(800, 600)
        vp.fit_to_content([(5.0, 5.0), (5.0, 5.0)])
        assert vp.k == 1.0
        assert vp.to_screen((5.0, 5.0)) == pytest.approx((400.0, 300.0))

    def test_fit_nothing(self) -> None:
        vp = Viewport()
        assert not vp.fit_to_content([])
        assert vp.transform() == (0.0, 0.0, 1.0)


class TestPicker:
    """Tests for hit-testing with level of detail."""

    @pytest.fixture
    def graph(self):
        cluster = InMemoryCluster("c", centers=[make_item("a"), make_item("b")])
        data = build_graph(Snapshot([cluster], []), 0.5)
        data.by_key["c"].set_position(0.0, 0.0)
        for n in data.nodes:
            if n.kind == NodeKind.CENTER:
                n.attach()
        return data

    def test_center_not_pickable_below_expand_zoom(self, graph) -> None:
        center = graph.by_key["c::a"]
        assert pick(center.position(), graph.nodes, 1.0) is graph.by_key["c"]
        assert not is_pickable(center, 3.0)

    def test_center_pickable_above_expand_zoom(self, graph) -> None:
        center = graph.by_key["c::a"]
        assert pick(center.position(), graph.nodes, 3.5) is center

    def test_miss(self, graph) -> None:
        assert pick((500.0, 500.0), graph.nodes, 1.0) is None

    def test_topmost_wins(self, graph) -> None:
        member_items = [make_item("m1"), make_item("m2")]
        m1, m2 = MemberNode(member_items[0]), MemberNode(member_items[1])
        m1.set_position(100.0, 100.0)
        m2.set_position(102.0, 100.0)
        assert pick((101.0, 100.0), graph.nodes + [m1, m2], 1.0) is m2

    def test_nodes_in_rect_uses_lod(self, graph) -> None:
        rect = (-50.0, -50.0, 50.0, 50.0)
        assert [n.key for n in nodes_in_rect(rect, graph.nodes, 1.0)] == ["c"]
        assert len(nodes_in_rect(rect, graph.nodes, 4.0)) == 3
