"""Layout module: rank assignment and rank-indexed lookup.

Phases:
  1. Rank assignment  (longest-path propagation from every root)
  2. Rank index       (classification key → rank → nodes)
  3. Rank conflicts   (same-rank groups inside one key)

Ranks are derived snapshots: recompute them after any structural change
instead of patching an existing map.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable, Mapping
from typing import Literal

from layerprep.graph import GraphLike
from layerprep.traversal import eager_stateful_walk, roots, successors_excl_self

logger = logging.getLogger(__name__)

RankMap = dict[Hashable, int]
RankIndex = dict[Hashable, dict[int, list[Hashable]]]

# ─── Rank Assignment ──────────────────────────────────────────────────────────


def _longest_path_update(ranks: dict[Hashable, int], current: Hashable, nxt: Hashable) -> int:
    """rank[next] = max(rank[next], rank[current] + 1); a missing rank is no constraint."""
    proposed = ranks[current] + 1
    prior = ranks.get(nxt)
    return proposed if prior is None else max(prior, proposed)


def _ranks_from(g: GraphLike, root_nodes: list[Hashable]) -> RankMap:
    ranks: RankMap = {root: 0 for root in root_nodes}

    def successors(node: Hashable) -> list[Hashable]:
        return successors_excl_self(g, node)

    for root in root_nodes:
        ranks = eager_stateful_walk(successors, root, _longest_path_update, ranks)

    return ranks


def assign_ranks(g: GraphLike) -> RankMap:
    """Assign every node reachable from a root a 0-indexed rank.

    Each root starts at 0 and gets one ``eager_stateful_walk``; the rank map
    is threaded through all walks in root order, so later walks refine ranks
    set by earlier ones. A walk expands each node once, so a longer path found
    after a node was expanded is not propagated further: the result
    approximates longest-path layering rather than guaranteeing it.

    Nodes unreachable from any root (e.g. inside a rootless cycle) are absent.
    """
    return _ranks_from(g, roots(g))


class RankAssignment:
    """Result of rank assignment: each reachable node is assigned a rank.

    Rank 0 is the top layer.

    Attributes:
        ranks: Maps node → rank. Unreachable nodes are absent.
        layer_count: Number of layers (0 for an empty map).
        roots: Roots in the order their walks ran.
    """

    def __init__(self, ranks: RankMap, layer_count: int, roots: list[Hashable]) -> None:
        self.ranks = ranks
        self.layer_count = layer_count
        self.roots = roots

    @classmethod
    def assign(cls, g: GraphLike) -> RankAssignment:
        root_nodes = roots(g)
        ranks = _ranks_from(g, root_nodes)
        layer_count = (max(ranks.values()) + 1) if ranks else 0
        logger.debug("Assigned %d rank(s) from %d root(s) over %d layer(s)", len(ranks), len(root_nodes), layer_count)
        return cls(ranks=ranks, layer_count=layer_count, roots=root_nodes)

    def rank_of(self, node: Hashable) -> int | None:
        """Rank of ``node``, or ``None`` when it is undefined (never defaults to 0)."""
        return self.ranks.get(node)

    def layers(self) -> list[list[Hashable]]:
        """Nodes grouped per layer, ascending, in rank-map order."""
        grouped: list[list[Hashable]] = [[] for _ in range(self.layer_count)]
        for node, rank in self.ranks.items():
            grouped[rank].append(node)
        return grouped


# ─── Rank Index ───────────────────────────────────────────────────────────────


def rank_index(rank_map: Mapping[Hashable, int], classify_fn: Callable[[Hashable], Hashable | None]) -> RankIndex:
    """Group ranked nodes by ``classify_fn(node)``, then by rank.

    Nodes classified as ``None`` are left out. Within a (key, rank) group the
    rank map's order is kept. Errors raised by ``classify_fn`` propagate.
    """
    index: RankIndex = {}
    for node, rank in rank_map.items():
        key = classify_fn(node)
        if key is None:
            continue
        index.setdefault(key, {}).setdefault(rank, []).append(node)
    return index


def top_k_at_extremal_rank(
    index: RankIndex,
    key: Hashable,
    k: int,
    direction: Literal["max", "min"] = "max",
) -> list[Hashable]:
    """Up to ``k`` nodes from the single highest (or lowest) rank of ``key``.

    Never pads from a neighbouring rank: if the extremal rank holds fewer than
    ``k`` nodes, all of them are returned.
    """
    if direction not in ("max", "min"):
        raise ValueError(f"direction must be 'max' or 'min', got {direction!r}")
    by_rank = index.get(key)
    if not by_rank:
        return []
    extremal = max(by_rank) if direction == "max" else min(by_rank)
    return list(by_rank[extremal][: max(k, 0)])


# ─── Rank Conflicts ───────────────────────────────────────────────────────────


def same_rank_groups(index: RankIndex) -> dict[Hashable, list[list[Hashable]]]:
    """Per key, every rank group holding more than one node (rank ascending).

    Keys without any tie are omitted.
    """
    ties: dict[Hashable, list[list[Hashable]]] = {}
    for key, by_rank in index.items():
        groups = [list(by_rank[rank]) for rank in sorted(by_rank) if len(by_rank[rank]) > 1]
        if groups:
            ties[key] = groups
    return ties
