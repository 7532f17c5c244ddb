# clustergraph
"""Interactive cluster graph: snapshot -> force layout -> pan/zoom canvas."""

from .builder import GraphData, build_graph, build_links
from .errors import (
    ActionUnavailableError, ClusterGraphError, CommandBusyError, MutationError, RebuildError
)
from .layout import ForceLayout, LayoutConfig
from .model import Item, Member, Snapshot
from .node import NodeKind

__version__ = "0.1.0"
