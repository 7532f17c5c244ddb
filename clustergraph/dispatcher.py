# dispatcher.py
"""
Toolbar commands: selection -> cluster mutation -> full rebuild.

Nothing here patches the drawn graph; every successful command is followed
by ``request_rebuild()`` which re-fetches the snapshot.
"""

from __future__ import annotations
import inspect
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, FrozenSet, Iterable, List

from .errors import ActionUnavailableError, ClusterGraphError, CommandBusyError, MutationError
from .node import CenterNode, GraphNode, NodeKind

logger = logging.getLogger(__name__)


class ClusterAction(str, Enum):
    CREATE_CLUSTER = "create-cluster"
    UNGROUP = "ungroup-from-cluster"
    ADD_TO_CENTER = "add-to-center"
    REMOVE_FROM_CENTER = "remove-from-center"
    REMOVE_CLUSTERS = "remove-clusters"
    REBUILD_CLUSTERS = "rebuild-clusters"


ACTION_LABELS = {
    ClusterAction.CREATE_CLUSTER: "Create Cluster",
    ClusterAction.UNGROUP: "Ungroup from Cluster",
    ClusterAction.ADD_TO_CENTER: "Add to Center",
    ClusterAction.REMOVE_FROM_CENTER: "Remove from Center",
    ClusterAction.REMOVE_CLUSTERS: "Remove Cluster(s)",
    ClusterAction.REBUILD_CLUSTERS: "Rebuild Clusters",
}


def _count_kinds(nodes: Iterable[GraphNode]) -> Dict[NodeKind, int]:
    counts = {kind: 0 for kind in NodeKind}
    for n in nodes:
        if n.kind not in counts:
            raise ValueError(f"Unknown node kind: {n.kind!r}")
        counts[n.kind] += 1
    return counts


def available_actions(nodes: Iterable[GraphNode]) -> FrozenSet[ClusterAction]:
    counts = _count_kinds(nodes)
    clusters = counts[NodeKind.CLUSTER]
    centers = counts[NodeKind.CENTER]
    members = counts[NodeKind.MEMBER]

    if members and not clusters and not centers:
        return frozenset({ClusterAction.CREATE_CLUSTER})
    if members and clusters == 1 and not centers:
        return frozenset({ClusterAction.UNGROUP, ClusterAction.ADD_TO_CENTER})
    if centers and not clusters and not members:
        return frozenset({ClusterAction.REMOVE_FROM_CENTER, ClusterAction.UNGROUP})
    if clusters and not centers and not members:
        return frozenset({ClusterAction.REMOVE_CLUSTERS})
    return frozenset()


async def maybe_await(fn: Callable, *args) -> Any:
    result = fn(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


def _by_parent(centers: List[CenterNode]) -> Dict[str, List[CenterNode]]:
    groups: Dict[str, List[CenterNode]] = {}
    for c in centers:
        groups.setdefault(c.parent.key, []).append(c)
    return groups


class CommandDispatcher:
    def __init__(self, group: Any, request_rebuild: Callable[[], Awaitable[Any]]):
        self.group = group
        self.request_rebuild = request_rebuild
        self.busy = False
        self._handlers = {
            ClusterAction.CREATE_CLUSTER: self._create_cluster,
            ClusterAction.UNGROUP: self._ungroup,
            ClusterAction.ADD_TO_CENTER: self._add_to_center,
            ClusterAction.REMOVE_FROM_CENTER: self._remove_from_center,
            ClusterAction.REMOVE_CLUSTERS: self._remove_clusters,
        }

    async def run(self, action: ClusterAction, nodes: List[GraphNode]) -> bool:
        action = ClusterAction(action)
        nodes = list(nodes)
        if action not in available_actions(nodes):
            raise ActionUnavailableError(action.value, len(nodes))
        return await self._guarded(action, self._handlers[action], nodes)

    async def _guarded(self, action: ClusterAction, handler: Callable, *args) -> bool:
        if self.busy:
            raise CommandBusyError(f"'{action.value}' rejected: another command is still running.")
        self.busy = True
        try:
            try:
                await handler(*args)
            except ClusterGraphError:
                raise
            except Exception as e:
                logger.exception("Cluster command %s failed", action.value)
                raise MutationError(action.value, e) from e
            logger.info("Cluster command %s done; rebuilding view", action.value)
            await self.request_rebuild()
            return True
        finally:
            self.busy = False

    # --------------------------
    # Named commands
    # --------------------------
    async def create_cluster(self, nodes: List[GraphNode]) -> bool:
        return await self.run(ClusterAction.CREATE_CLUSTER, nodes)

    async def ungroup_from_cluster(self, nodes: List[GraphNode]) -> bool:
        return await self.run(ClusterAction.UNGROUP, nodes)

    async def add_to_center(self, nodes: List[GraphNode]) -> bool:
        return await self.run(ClusterAction.ADD_TO_CENTER, nodes)

    async def remove_from_center(self, nodes: List[GraphNode]) -> bool:
        return await self.run(ClusterAction.REMOVE_FROM_CENTER, nodes)

    async def remove_clusters(self, nodes: List[GraphNode]) -> bool:
        return await self.run(ClusterAction.REMOVE_CLUSTERS, nodes)

    async def rebuild_clusters(self) -> bool:
        build_groups = getattr(self.group, "build_groups", None)
        if not callable(build_groups):
            raise ActionUnavailableError(ClusterAction.REBUILD_CLUSTERS.value, 0)
        return await self._guarded(ClusterAction.REBUILD_CLUSTERS, lambda: maybe_await(build_groups))

    # --------------------------
    # Mutations
    # --------------------------
    async def _create_cluster(self, nodes: List[GraphNode]) -> None:
        center = {n.item.key: {"weight": 1} for n in nodes}
        cluster = await maybe_await(self.group.create_or_update, {"center": center})
        await maybe_await(self.group.add_cluster, cluster)
        logger.debug("Created cluster %s with %d centers", getattr(cluster, "key", "?"), len(center))

    def _split(self, nodes: List[GraphNode]):
        cluster = next(n for n in nodes if n.kind == NodeKind.CLUSTER)
        items = [n.item for n in nodes if n.kind == NodeKind.MEMBER]
        return cluster.cluster, items

    async def _ungroup(self, nodes: List[GraphNode]) -> None:
        if all(n.kind == NodeKind.CENTER for n in nodes):
            # Demote and drop: the item leaves the parent cluster entirely.
            for centers in _by_parent(nodes).values():
                cluster = centers[0].parent.cluster
                items = [c.item for c in centers]
                await maybe_await(cluster.remove_centers, items)
                await maybe_await(cluster.remove_members, items)
            return
        cluster, items = self._split(nodes)
        await maybe_await(cluster.remove_members, items)

    async def _add_to_center(self, nodes: List[GraphNode]) -> None:
        cluster, items = self._split(nodes)
        await maybe_await(cluster.add_centers, items)

    async def _remove_from_center(self, nodes: List[GraphNode]) -> None:
        for centers in _by_parent(nodes).values():
            cluster = centers[0].parent.cluster
            await maybe_await(cluster.remove_centers, [c.item for c in centers])

    async def _remove_clusters(self, nodes: List[GraphNode]) -> None:
        await maybe_await(self.group.remove_clusters, [n.cluster for n in nodes])
