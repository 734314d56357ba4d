"""Predicate filtering, path isolation and level trimming.

Every function here mutates the graph value it is given (cluster-aware for
``ClusteredGraph``) and returns it. Copy first when the input must survive.
"""

from __future__ import annotations

import logging
from collections.abc import Hashable
from typing import Any

from layerprep.graph import GraphLike, digraph_of, is_edge_invisible, remove_edges, remove_nodes
from layerprep.predicates import compile_predicate
from layerprep.traversal import leaves, path_between, visible_parents

logger = logging.getLogger(__name__)


def kept_nodes(g: GraphLike, predicate: Any) -> list[Hashable]:
    """Nodes whose attribute mapping satisfies ``predicate``, in node order."""
    test = compile_predicate(predicate)
    return [node for node, attrs in digraph_of(g).nodes(data=True) if test(attrs)]


def filter_graph(g: GraphLike, predicate: Any, filter_edges: bool = True) -> GraphLike:
    """Remove nodes failing ``predicate``; optionally edges whose ``meta`` fails it.

    Invisible scaffolding edges are never filtered. An edge without ``meta``
    is tested against an empty mapping.
    """
    test = compile_predicate(predicate)
    dg = digraph_of(g)

    dropped = [node for node, attrs in dg.nodes(data=True) if not test(attrs)]
    remove_nodes(g, dropped)

    dropped_edges: list[tuple[Hashable, Hashable]] = []
    if filter_edges:
        dropped_edges = [
            (src, tgt)
            for src, tgt, attrs in dg.edges(data=True)
            if not is_edge_invisible(dg, src, tgt) and not test(attrs.get("meta") or {})
        ]
        remove_edges(g, dropped_edges)

    logger.debug("Filter removed %d node(s) and %d edge(s)", len(dropped), len(dropped_edges))
    return g


def paths_only(g: GraphLike, start: Any, end: Any) -> GraphLike:
    """Keep only nodes lying on a shortest path from a ``start`` node to an ``end`` node.

    Start and end sets come from the node keep-filter. Pairs with no path
    contribute nothing; if no pair connects, the graph ends up empty.
    """
    starts = kept_nodes(g, start)
    ends = kept_nodes(g, end)

    on_path: dict[Hashable, None] = {}
    for a in starts:
        for b in ends:
            path = path_between(g, a, b)
            if path is not None:
                on_path.update(dict.fromkeys(path))

    remove_nodes(g, [node for node in digraph_of(g).nodes if node not in on_path])
    return g


def remove_levels(g: GraphLike, n: int) -> GraphLike:
    """Peel ``n`` levels of leaves off the bottom of the graph.

    After each peel the visible parents of the removed leaves become the next
    frontier. Stops early once there is nothing left to remove.
    """
    frontier = leaves(g) if n > 0 else []
    for level in range(n):
        if not frontier:
            logger.debug("No nodes left to peel after %d level(s)", level)
            break
        parents = visible_parents(g, frontier)
        remove_nodes(g, frontier)
        dg = digraph_of(g)
        frontier = [p for p in parents if p in dg]
    return g
