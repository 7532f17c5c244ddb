"""Tests for the in-memory cluster group."""

import pytest

from clustergraph.memory_source import InMemoryCluster, demo_cluster_group
from clustergraph.model import Item


class TestScoring:
    """Tests for cosine scores against cluster centroids."""

    def test_score_against_centroid(self, memory_group) -> None:
        cx = memory_group.clusters["cx"]
        assert memory_group.score(memory_group.item("x1"), cx) == pytest.approx(1.0)
        assert memory_group.score(memory_group.item("y1"), cx) == 0.0

    def test_no_centers_no_score(self, memory_group) -> None:
        empty = InMemoryCluster("empty")
        assert memory_group.score(memory_group.item("x1"), empty) is None

    def test_excluded_item_not_scored(self, memory_group) -> None:
        cx = memory_group.clusters["cx"]
        cx.remove_members([memory_group.item("x2")])
        assert memory_group.score(memory_group.item("x2"), cx) is None

    @pytest.mark.asyncio
    async def test_snapshot_keeps_positive_scores(self, memory_group) -> None:
        snapshot = await memory_group.get_snapshot()
        by_key = {m.item.key: m for m in snapshot.members}
        # z1 is orthogonal to both centroids
        assert "z1" not in by_key
        assert set(by_key["x1"].clusters) == {"cx"}
        assert set(by_key["x2"].clusters) == {"cx", "cy"}
        assert [c.key for c in snapshot.clusters] == ["cx", "cy"]

    @pytest.mark.asyncio
    async def test_snapshot_of_given_items(self, memory_group) -> None:
        snapshot = await memory_group.get_snapshot([memory_group.item("y2")])
        assert [m.item.key for m in snapshot.members] == ["y2"]


class TestMutations:
    """Tests for cluster creation and membership edits."""

    @pytest.mark.asyncio
    async def test_create_and_add(self, memory_group) -> None:
        cluster = await memory_group.create_or_update({"center": {"z1": {"weight": 1}}})
        assert cluster.key == "cluster-3"
        assert [c.key for c in cluster.centers] == ["z1"]
        assert "cluster-3" not in memory_group.clusters
        memory_group.add_cluster(cluster)
        assert memory_group.clusters["cluster-3"] is cluster
        assert memory_group.save_count == 1

    @pytest.mark.asyncio
    async def test_create_unknown_item(self, memory_group) -> None:
        with pytest.raises(KeyError):
            await memory_group.create_or_update({"center": {"nope": {"weight": 1}}})

    def test_add_centers_dedupes_and_readmits(self) -> None:
        a = Item("a", "a.md", "a")
        cluster = InMemoryCluster("c", centers=[a])
        cluster.remove_members([a])
        cluster.add_centers([a, Item("b", "b.md", "b")])
        assert [c.key for c in cluster.centers] == ["a", "b"]
        assert cluster.excluded == set()

    def test_remove_clusters(self, memory_group) -> None:
        memory_group.remove_clusters([memory_group.clusters["cx"]])
        assert list(memory_group.clusters) == ["cy"]
        assert memory_group.save_count == 1

    def test_build_groups(self, memory_group) -> None:
        memory_group.build_groups()
        assert list(memory_group.clusters) == ["cluster-1", "cluster-2"]
        seeds = [c.centers[0].key for c in memory_group.clusters.values()]
        assert seeds == ["x1", "y1"]
        assert memory_group.save_count == 1

    def test_build_groups_without_vectors(self) -> None:
        group = demo_cluster_group(n_topics=1, items_per_topic=1)
        group.items = [Item("a", "a.md", "a")]
        group.build_groups()
        assert group.clusters == {}


def test_demo_group_is_deterministic() -> None:
    first, second = demo_cluster_group(seed=3), demo_cluster_group(seed=3)
    assert [i.vec for i in first.items] == [i.vec for i in second.items]
    assert len(first.items) == 32
    assert list(first.clusters) == ["cluster-1", "cluster-2", "cluster-3"]
