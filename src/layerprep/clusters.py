"""Cluster-level layering: scaffolding edges between stacked clusters, the
cluster-edge graph rebuild after filtering, and rank-conflict annotation.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable, Iterable, Mapping, Sequence
from types import MappingProxyType

from layerprep.graph import INVISIBLE_STYLE, ClusteredGraph
from layerprep.layout import assign_ranks, rank_index, same_rank_groups, top_k_at_extremal_rank

logger = logging.getLogger(__name__)

# Requested total edge count → (anchors from the upper cluster, anchors from the lower cluster).
FAN_TABLE: Mapping[int, tuple[int, int]] = MappingProxyType(
    {
        16: (4, 4),
        12: (4, 3),
        9: (3, 3),
        6: (3, 2),
        4: (2, 2),
        2: (2, 1),
        1: (1, 1),
    }
)
DEFAULT_FAN: tuple[int, int] = (2, 2)
DEFAULT_EDGE_COUNT = 4
FIX_RANKS_ATTR = "fix-ranks"


def fan_for(edge_count: int) -> tuple[int, int]:
    """(upper_fan, lower_fan) for a requested edge count; unlisted counts get ``DEFAULT_FAN``."""
    return FAN_TABLE.get(edge_count, DEFAULT_FAN)


# ─── Cluster-Edge Synthesis ───────────────────────────────────────────────────


def add_invisible_cluster_edges(
    cg: ClusteredGraph,
    stacks: Iterable[Sequence[str]],
    edge_count: int = DEFAULT_EDGE_COUNT,
) -> ClusteredGraph:
    """Tie each pair of vertically adjacent clusters together with edges.

    For every consecutive (upper, lower) pair of every stack, the ``upper_fan``
    highest-ranked nodes of each cluster under ``upper`` are paired with the
    ``lower_fan`` lowest-ranked nodes of each cluster under ``lower``. A pair
    that is already an edge is flagged ``constraint=True`` and otherwise left
    alone; a missing pair becomes a new ``style="invis"`` edge. A node that is
    both a tail and a head (a stack naming a cluster and its own sub-cluster)
    is never paired with itself.

    Ranks are taken once, before any edge is added. Mutates and returns ``cg``.
    """
    upper_fan, lower_fan = fan_for(edge_count)
    index = rank_index(assign_ranks(cg), cg.cluster_of)
    dg = cg.digraph
    constrained = synthesized = 0

    for stack in stacks:
        for upper, lower in zip(stack, stack[1:]):
            tails = [
                node
                for cluster in cg.cluster_descendants(upper)
                for node in top_k_at_extremal_rank(index, cluster, upper_fan, "max")
            ]
            heads = [
                node
                for cluster in cg.cluster_descendants(lower)
                for node in top_k_at_extremal_rank(index, cluster, lower_fan, "min")
            ]
            for src in tails:
                for tgt in heads:
                    if src == tgt:
                        continue
                    if dg.has_edge(src, tgt):
                        dg.edges[src, tgt]["constraint"] = True
                        constrained += 1
                    else:
                        dg.add_edge(src, tgt, style=INVISIBLE_STYLE)
                        synthesized += 1

    logger.debug(
        "Cluster edges (fan %d/%d): %d constrained, %d synthesized",
        upper_fan,
        lower_fan,
        constrained,
        synthesized,
    )
    return cg


# ─── Cluster-Edge Graph Rebuild ───────────────────────────────────────────────


def cluster_ranks(cg: ClusteredGraph) -> dict[Hashable, int]:
    """Rank map of the cluster-edge graph (cluster name → rank)."""
    return assign_ranks(cg.edge_graph)


def rank_levels(prior_ranks: Mapping[Hashable, int], clusters: Iterable[Hashable]) -> list[list[Hashable]]:
    """Order ``clusters`` into levels following the groups of ``prior_ranks``.

    Groups of clusters that shared a rank are visited in ascending rank; each
    non-empty intersection with the clusters still pending becomes the next
    level. Clusters that never appear in ``prior_ranks`` are dropped.
    """
    groups: dict[int, list[Hashable]] = {}
    for cluster, rank in prior_ranks.items():
        groups.setdefault(rank, []).append(cluster)

    remaining = dict.fromkeys(clusters)
    levels: list[list[Hashable]] = []
    for rank in sorted(groups):
        if not remaining:
            break
        level = [c for c in groups[rank] if c in remaining]
        if not level:
            continue
        levels.append(level)
        for c in level:
            del remaining[c]

    if remaining:
        logger.debug("Dropped cluster(s) without a prior rank: %s", list(remaining))
    return levels


def rebuild_cluster_edge_graph(
    cg: ClusteredGraph,
    prior_ranks: Mapping[Hashable, int],
    clusters: Iterable[Hashable],
) -> list[list[Hashable]]:
    """Replace the cluster-edge graph with a chain consistent with ``prior_ranks``.

    Every cluster of one level is connected to every cluster of the next.
    Returns the levels used.
    """
    levels = rank_levels(prior_ranks, clusters)
    cg.delete_edge_graph()
    for above, below in zip(levels, levels[1:]):
        for upper in above:
            for lower in below:
                cg.add_cluster_edge(upper, lower)
    return levels


# ─── Rank Conflicts ───────────────────────────────────────────────────────────


def fix_ranks(
    cg: ClusteredGraph,
    classify_fn: Callable[[Hashable], Hashable | None] | None = None,
) -> ClusteredGraph:
    """Attach same-rank ties to their cluster as the ``fix-ranks`` attribute.

    Advisory only: nodes and edges are not touched.
    """
    classify = classify_fn if classify_fn is not None else cg.cluster_of
    ties = same_rank_groups(rank_index(assign_ranks(cg), classify))
    for key, groups in ties.items():
        if key not in cg.clusters:
            logger.debug("Skipping rank ties for undeclared cluster %r", key)
            continue
        cg.add_attr_to_cluster(key, FIX_RANKS_ATTR, groups)
    return cg
