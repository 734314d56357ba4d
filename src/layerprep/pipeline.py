"""Full preparation pipeline: filter, trim, rebuild cluster order, add scaffolding, rank."""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from layerprep.clusters import (
    DEFAULT_EDGE_COUNT,
    add_invisible_cluster_edges,
    cluster_ranks,
    fix_ranks,
    rebuild_cluster_edge_graph,
)
from layerprep.errors import LayerPrepError
from layerprep.filtering import filter_graph, remove_levels
from layerprep.graph import ClusteredGraph, GraphLike
from layerprep.layout import RankAssignment


@dataclass
class LayoutPreparation:
    """Everything a layered renderer needs from this stage."""

    graph: GraphLike
    ranks: RankAssignment
    cluster_levels: list[list[Hashable]] = field(default_factory=list)


def prepare_layout(
    g: GraphLike,
    *,
    keep: Any = None,
    filter_edges: bool = True,
    levels: int = 0,
    stacks: Iterable[Sequence[str]] = (),
    edge_count: int = DEFAULT_EDGE_COUNT,
    fix: bool = False,
) -> LayoutPreparation:
    """Run the preparation stages on a copy of ``g``.

    The cluster-edge graph is only rebuilt when something was filtered or
    trimmed, using the cluster ranks captured beforehand. Clusters pruned
    along the way are dropped from ``stacks``.

    ``stacks``, ``edge_count`` and ``fix`` are cluster options: a plain
    ``DiGraph`` only goes through filtering, trimming and ranking, and
    passing ``stacks`` or ``fix=True`` with one raises ``LayerPrepError``.
    """
    stacks = [list(stack) for stack in stacks]
    clustered = isinstance(g, ClusteredGraph)
    if not clustered and (stacks or fix):
        raise LayerPrepError("stacks and fix need a ClusteredGraph")

    graph = g.copy()
    prior = cluster_ranks(graph) if clustered else {}

    if keep is not None:
        filter_graph(graph, keep, filter_edges=filter_edges)
    if levels > 0:
        remove_levels(graph, levels)

    cluster_levels: list[list[Hashable]] = []
    if clustered:
        if keep is not None or levels > 0:
            cluster_levels = rebuild_cluster_edge_graph(graph, prior, graph.top_level_clusters())
        surviving = [[c for c in stack if c in graph.clusters] for stack in stacks]
        add_invisible_cluster_edges(graph, surviving, edge_count)
        if fix:
            fix_ranks(graph)

    return LayoutPreparation(graph=graph, ranks=RankAssignment.assign(graph), cluster_levels=cluster_levels)
