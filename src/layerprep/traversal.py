"""Traversal primitives shared by rank assignment and graph filtering.

All adjacency here ignores self-loops: an edge (n, n) never makes ``n`` its
own parent or child, so it cannot inflate a rank or stop a node from being
a root or a leaf.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable, Mapping
from typing import Any, TypeVar

import networkx as nx

from layerprep.graph import GraphLike, digraph_from_edges, digraph_of, is_edge_invisible, is_leaf

S = TypeVar("S")

# ─── Adjacency ────────────────────────────────────────────────────────────────


def predecessors_excl_self(g: GraphLike, node: Hashable) -> list[Hashable]:
    return [p for p in digraph_of(g).predecessors(node) if p != node]


def successors_excl_self(g: GraphLike, node: Hashable) -> list[Hashable]:
    return [s for s in digraph_of(g).successors(node) if s != node]


def is_root(g: GraphLike, node: Hashable) -> bool:
    return not predecessors_excl_self(g, node)


def roots(g: GraphLike) -> list[Hashable]:
    """All nodes without a (non-self) predecessor, in node order."""
    return [n for n in digraph_of(g).nodes if is_root(g, n)]


def leaves(g: GraphLike) -> list[Hashable]:
    """All nodes without a visible (non-self) outgoing edge, in node order."""
    return [n for n in digraph_of(g).nodes if is_leaf(g, n)]


def visible_parents(g: GraphLike, nodes: Iterable[Hashable]) -> list[Hashable]:
    """Predecessors of any of ``nodes`` reached over visible edges.

    Deduplicated; order is first-seen across ``nodes``.
    """
    seen: dict[Hashable, None] = {}
    for node in nodes:
        for parent in predecessors_excl_self(g, node):
            if parent not in seen and not is_edge_invisible(g, parent, node):
                seen[parent] = None
    return list(seen)


# ─── Stateful Walk ────────────────────────────────────────────────────────────


def eager_stateful_walk(
    successors_fn: Callable[[Hashable], Iterable[Hashable]],
    start: Hashable,
    update_fn: Callable[[dict[Hashable, S], Hashable, Hashable], S],
    initial_state: Mapping[Hashable, S],
) -> dict[Hashable, S]:
    """Depth-first walk from ``start`` folding ``update_fn`` over discovered edges.

    Uses an explicit stack. Each node is expanded at most once; when a node is
    expanded, every neighbour not yet expanded gets
    ``state[neighbour] = update_fn(state, current, neighbour)``, even if an
    earlier branch already gave it a provisional value. Combining values
    (e.g. taking a max) is the update function's job, not the walk's.

    Returns a new state dict; ``initial_state`` is left untouched.
    """
    state: dict[Hashable, S] = dict(initial_state)
    explored: set[Hashable] = set()
    stack: list[Hashable] = [start]

    while stack:
        current = stack.pop()
        if current in explored:
            continue
        explored.add(current)
        for neighbor in successors_fn(current):
            if neighbor in explored:
                continue
            state[neighbor] = update_fn(state, current, neighbor)
            stack.append(neighbor)

    return state


# ─── Lookup & Extraction ──────────────────────────────────────────────────────


def find_by_subset_match(g: GraphLike, candidate: Any) -> Hashable | None:
    """Resolve a node identity or a partial attribute descriptor to a node.

    A hashable ``candidate`` that is itself a node wins. Otherwise a mapping
    is matched against node attribute mappings in insertion order and the
    first node whose attributes contain every (key, value) pair is returned.
    ``None`` when nothing matches.
    """
    dg = digraph_of(g)
    if not isinstance(candidate, Mapping):
        return candidate if candidate in dg else None
    for node, attrs in dg.nodes(data=True):
        if all(key in attrs and attrs[key] == value for key, value in candidate.items()):
            return node
    return None


def subgraph(g: GraphLike, node_or_descriptor: Any) -> nx.DiGraph:
    """Everything reachable from a node, rebuilt from every edge the DFS visits.

    Self-loops are not followed. An unresolvable descriptor yields an empty
    graph.
    """
    start = find_by_subset_match(g, node_or_descriptor)
    if start is None:
        return nx.DiGraph()

    dg = digraph_of(g)
    no_self_loops = nx.subgraph_view(dg, filter_edge=lambda u, v: u != v)
    result = digraph_from_edges(dg, nx.edge_dfs(no_self_loops, start))
    if start not in result:
        result.add_node(start, **dg.nodes[start])
    return result


def path_between(g: GraphLike, a: Any, b: Any) -> list[Hashable] | None:
    """Shortest path (by edge count) from ``a`` to ``b`` over visible edges.

    ``a`` and ``b`` may be nodes or partial descriptors. Returns ``None`` if
    either end is missing or ``b`` is unreachable.
    """
    src = find_by_subset_match(g, a)
    tgt = find_by_subset_match(g, b)
    if src is None or tgt is None:
        return None

    dg = digraph_of(g)
    visible = nx.subgraph_view(dg, filter_edge=lambda u, v: u != v and not is_edge_invisible(dg, u, v))
    try:
        return nx.shortest_path(visible, src, tgt)
    except nx.NetworkXNoPath:
        return None
