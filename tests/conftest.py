"""Pytest configuration and fixtures."""

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest

from clustergraph.builder import build_graph
from clustergraph.layout import ForceLayout
from clustergraph.memory_source import InMemoryCluster, InMemoryClusterGroup
from clustergraph.model import Item, Member, Snapshot
from clustergraph.state import GraphState


def make_item(key: str) -> Item:
    return Item(key=key, path=f"{key}.md", name=key)


@pytest.fixture(scope="session")
def qapp():
    """Offscreen QApplication shared by painting tests."""
    from PyQt5.QtWidgets import QApplication

    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture
def scenario_snapshot() -> Snapshot:
    """One cluster without centers, three members scored 0.3 / 0.6 / 0.9."""
    cluster = InMemoryCluster("c1", "Cluster 1")
    members = [
        Member(make_item("m1"), {"c1": {"score": 0.3}}),
        Member(make_item("m2"), {"c1": {"score": 0.6}}),
        Member(make_item("m3"), {"c1": {"score": 0.9}}),
    ]
    return Snapshot(clusters=[cluster], members=members)


@pytest.fixture
def centered_snapshot() -> Snapshot:
    """Two clusters; item ``a`` centers c1 and is a plain member of c2."""
    a, b, c = make_item("a"), make_item("b"), make_item("c")
    c1 = InMemoryCluster("c1", "One", [a])
    c2 = InMemoryCluster("c2", "Two", [c])
    members = [
        Member(a, {"c1": {"score": 1.0}, "c2": {"score": 0.7}}),
        Member(b, {"c1": {"score": 0.8}, "c2": {"score": 0.2}}),
        Member(c, {"c2": {"score": 1.0}}),
    ]
    return Snapshot(clusters=[c1, c2], members=members)


@pytest.fixture
def built_state(centered_snapshot):
    """GraphState + stabilised layout for the centered snapshot."""
    data = build_graph(centered_snapshot, 0.5)
    state = GraphState(snapshot=centered_snapshot, threshold=0.5)
    state.set_graph(data)
    layout = ForceLayout()
    layout.set_graph(data.nodes, data.links)
    layout.stabilize()
    return state, layout


@pytest.fixture
def memory_group() -> InMemoryClusterGroup:
    items = [
        Item("x1", "x1.md", "x1", (1.0, 0.0, 0.0)),
        Item("x2", "x2.md", "x2", (0.9, 0.1, 0.0)),
        Item("y1", "y1.md", "y1", (0.0, 1.0, 0.0)),
        Item("y2", "y2.md", "y2", (0.1, 0.9, 0.0)),
        Item("z1", "z1.md", "z1", (0.0, 0.0, 1.0)),
    ]
    clusters = [
        InMemoryCluster("cx", "X", [items[0]]),
        InMemoryCluster("cy", "Y", [items[2]]),
    ]
    return InMemoryClusterGroup(items, clusters)
