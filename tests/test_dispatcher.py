"""Unit tests for the command dispatcher."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from clustergraph.builder import build_graph
from clustergraph.dispatcher import ClusterAction, CommandDispatcher, available_actions
from clustergraph.errors import ActionUnavailableError, CommandBusyError, MutationError


@pytest.fixture
def nodes(centered_snapshot):
    return build_graph(centered_snapshot, 0.5).by_key


@pytest.fixture
def group():
    g = MagicMock()
    g.create_or_update = AsyncMock(return_value=MagicMock(key="new"))
    g.add_cluster = MagicMock()
    g.remove_clusters = MagicMock()
    return g


class TestAvailableActions:
    """Tests for the selection -> action mapping."""

    def test_pure_members(self, nodes) -> None:
        assert available_actions([nodes["a"], nodes["b"]]) == {ClusterAction.CREATE_CLUSTER}

    def test_members_plus_one_cluster(self, nodes) -> None:
        actions = available_actions([nodes["c1"], nodes["b"]])
        assert actions == {ClusterAction.UNGROUP, ClusterAction.ADD_TO_CENTER}
        assert ClusterAction.CREATE_CLUSTER not in actions
        assert ClusterAction.REMOVE_CLUSTERS not in actions

    def test_pure_centers(self, nodes) -> None:
        actions = available_actions([nodes["c1::a"], nodes["c2::c"]])
        assert actions == {ClusterAction.REMOVE_FROM_CENTER, ClusterAction.UNGROUP}

    def test_pure_clusters(self, nodes) -> None:
        assert available_actions([nodes["c1"], nodes["c2"]]) == {ClusterAction.REMOVE_CLUSTERS}

    @pytest.mark.parametrize("keys", [[], ["c1", "c2", "b"], ["c1::a", "b"], ["c1", "c1::a"]])
    def test_mixed_or_empty(self, nodes, keys) -> None:
        assert available_actions([nodes[k] for k in keys]) == frozenset()


class TestCommands:
    """Tests for mutation commands."""

    @pytest.mark.asyncio
    async def test_create_cluster(self, group, nodes) -> None:
        rebuild = AsyncMock()
        dispatcher = CommandDispatcher(group, rebuild)
        assert await dispatcher.create_cluster([nodes["a"], nodes["b"]])
        group.create_or_update.assert_awaited_once_with({"center": {"a": {"weight": 1}, "b": {"weight": 1}}})
        group.add_cluster.assert_called_once_with(group.create_or_update.return_value)
        rebuild.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_add_to_center(self, group, nodes) -> None:
        dispatcher = CommandDispatcher(group, AsyncMock())
        await dispatcher.add_to_center([nodes["c1"], nodes["b"]])
        assert [c.key for c in nodes["c1"].cluster.centers] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_ungroup_members(self, group, nodes) -> None:
        dispatcher = CommandDispatcher(group, AsyncMock())
        await dispatcher.ungroup_from_cluster([nodes["c1"], nodes["b"]])
        assert "b" in nodes["c1"].cluster.excluded

    @pytest.mark.asyncio
    async def test_ungroup_centers_removes_center_and_member(self, group, nodes) -> None:
        dispatcher = CommandDispatcher(group, AsyncMock())
        await dispatcher.ungroup_from_cluster([nodes["c1::a"]])
        cluster = nodes["c1"].cluster
        assert cluster.centers == []
        assert "a" in cluster.excluded

    @pytest.mark.asyncio
    async def test_remove_from_center(self, group, nodes) -> None:
        dispatcher = CommandDispatcher(group, AsyncMock())
        await dispatcher.remove_from_center([nodes["c1::a"], nodes["c2::c"]])
        assert nodes["c1"].cluster.centers == []
        assert nodes["c2"].cluster.centers == []
        assert "a" not in nodes["c1"].cluster.excluded

    @pytest.mark.asyncio
    async def test_remove_clusters(self, group, nodes) -> None:
        dispatcher = CommandDispatcher(group, AsyncMock())
        await dispatcher.remove_clusters([nodes["c1"], nodes["c2"]])
        group.remove_clusters.assert_called_once_with([nodes["c1"].cluster, nodes["c2"].cluster])

    @pytest.mark.asyncio
    async def test_unavailable_action(self, group, nodes) -> None:
        rebuild = AsyncMock()
        dispatcher = CommandDispatcher(group, rebuild)
        with pytest.raises(ActionUnavailableError):
            await dispatcher.create_cluster([nodes["c1"]])
        rebuild.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failure_is_wrapped_and_skips_rebuild(self, group, nodes) -> None:
        group.create_or_update = AsyncMock(side_effect=RuntimeError("disk full"))
        rebuild = AsyncMock()
        dispatcher = CommandDispatcher(group, rebuild)
        with pytest.raises(MutationError) as exc_info:
            await dispatcher.create_cluster([nodes["a"]])
        assert isinstance(exc_info.value.cause, RuntimeError)
        assert exc_info.value.action == ClusterAction.CREATE_CLUSTER.value
        rebuild.assert_not_awaited()
        assert dispatcher.busy is False

    @pytest.mark.asyncio
    async def test_busy_guard(self, group, nodes) -> None:
        gate = asyncio.Event()

        async def slow_create(data):
            await gate.wait()
            return MagicMock(key="slow")

        group.create_or_update = slow_create
        dispatcher = CommandDispatcher(group, AsyncMock())
        first = asyncio.ensure_future(dispatcher.create_cluster([nodes["a"]]))
        await asyncio.sleep(0)
        assert dispatcher.busy
        with pytest.raises(CommandBusyError):
            await dispatcher.remove_clusters([nodes["c1"]])
        gate.set()
        assert await first
        assert dispatcher.busy is False

    @pytest.mark.asyncio
    async def test_rebuild_clusters(self, group) -> None:
        rebuild = AsyncMock()
        dispatcher = CommandDispatcher(group, rebuild)
        assert await dispatcher.rebuild_clusters()
        group.build_groups.assert_called_once_with()
        rebuild.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_rebuild_clusters_unsupported(self) -> None:
        dispatcher = CommandDispatcher(object(), AsyncMock())
        with pytest.raises(ActionUnavailableError):
            await dispatcher.rebuild_clusters()
