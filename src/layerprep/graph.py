"""Graph values consumed by the layering pipeline.

A plain graph is a ``networkx.DiGraph``: node keys are identities, node and
edge data dicts are the attribute mappings, and insertion order is the
iteration order every algorithm relies on for reproducible output.

``ClusteredGraph`` pairs such a digraph with a cluster hierarchy (named,
possibly nested groups of nodes) and a small cluster-edge graph whose nodes
are cluster names. The helpers at the bottom of this module accept either
kind of graph value.
"""

from __future__ import annotations

import logging
from collections.abc import Hashable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Union

import networkx as nx

from layerprep.errors import UnknownClusterError

logger = logging.getLogger(__name__)

INVISIBLE_STYLE = "invis"


# ─── Cluster Hierarchy ────────────────────────────────────────────────────────


@dataclass
class ClusterData:
    """A named cluster: its parent (``None`` at top level), direct members and
    free-form attributes handed to the renderer."""

    name: str
    parent: str | None = None
    members: list[Hashable] = field(default_factory=list)
    attrs: dict[str, Any] = field(default_factory=dict)


@dataclass
class ClusteredGraph:
    """A directed graph whose nodes are partially grouped into nested clusters.

    Attributes:
        digraph: The node/edge store.
        clusters: Cluster name → ``ClusterData``, in declaration order.
        edge_graph: Declared adjacency between clusters (nodes are names).
    """

    digraph: nx.DiGraph = field(default_factory=nx.DiGraph)
    clusters: dict[str, ClusterData] = field(default_factory=dict)
    edge_graph: nx.DiGraph = field(default_factory=nx.DiGraph)
    _membership: dict[Hashable, str] = field(default_factory=dict, repr=False)

    # ── construction ──

    def add_cluster(self, name: str, parent: str | None = None, **attrs: Any) -> ClusterData:
        """Declare a cluster, optionally nested under ``parent``."""
        if parent is not None and parent not in self.clusters:
            raise UnknownClusterError(parent)
        data = self.clusters.get(name)
        if data is None:
            data = ClusterData(name=name, parent=parent)
            self.clusters[name] = data
        data.attrs.update(attrs)
        return data

    def add_node(self, node: Hashable, cluster: str | None = None, **attrs: Any) -> None:
        """Add (or update) a node and place it in its innermost ``cluster``."""
        if cluster is not None and cluster not in self.clusters:
            raise UnknownClusterError(cluster)
        self.digraph.add_node(node, **attrs)
        if cluster is None:
            return
        previous = self._membership.get(node)
        if previous == cluster:
            return
        if previous is not None:
            self.clusters[previous].members.remove(node)
        self.clusters[cluster].members.append(node)
        self._membership[node] = cluster

    def add_edge(self, src: Hashable, tgt: Hashable, **attrs: Any) -> None:
        self.digraph.add_edge(src, tgt, **attrs)

    # ── queries ──

    def cluster_of(self, node: Hashable) -> str | None:
        """Innermost cluster holding ``node``, or ``None`` for unclustered nodes."""
        return self._membership.get(node)

    def members(self, name: str) -> list[Hashable]:
        if name not in self.clusters:
            raise UnknownClusterError(name)
        return list(self.clusters[name].members)

    def children(self, name: str) -> list[str]:
        return [c.name for c in self.clusters.values() if c.parent == name]

    def top_level_clusters(self) -> list[str]:
        return [c.name for c in self.clusters.values() if c.parent is None]

    def cluster_descendants(self, name: str) -> list[str]:
        """The cluster itself followed by every nested cluster, depth-first pre-order."""
        if name not in self.clusters:
            raise UnknownClusterError(name)
        result: list[str] = []
        stack = [name]
        while stack:
            current = stack.pop()
            result.append(current)
            stack.extend(reversed(self.children(current)))
        return result

    # ── mutation ──

    def remove_nodes_cluster_aware(self, nodes: Iterable[Hashable]) -> None:
        """Remove ``nodes`` from the digraph and from their clusters.

        Clusters left with no members anywhere in their subtree are dropped,
        together with their node in the cluster-edge graph.
        """
        for node in list(nodes):
            if node in self.digraph:
                self.digraph.remove_node(node)
            cluster = self._membership.pop(node, None)
            if cluster is not None:
                self.clusters[cluster].members.remove(node)
        self._prune_empty_clusters()

    def _prune_empty_clusters(self) -> None:
        empty = [
            name
            for name in self.clusters
            if not any(self.clusters[d].members for d in self.cluster_descendants(name))
        ]
        for name in empty:
            del self.clusters[name]
            if name in self.edge_graph:
                self.edge_graph.remove_node(name)
        if empty:
            logger.debug("Pruned %d empty cluster(s): %s", len(empty), empty)

    def delete_edge_graph(self) -> None:
        self.edge_graph = nx.DiGraph()

    def add_cluster_edge(self, upper: str, lower: str) -> None:
        self.edge_graph.add_edge(upper, lower)

    def add_attr_to_cluster(self, name: str, attr: str, value: Any) -> None:
        if name not in self.clusters:
            raise UnknownClusterError(name)
        self.clusters[name].attrs[attr] = value

    def copy(self) -> ClusteredGraph:
        """Independent copy: digraph, cluster table and cluster-edge graph."""
        clusters = {
            name: ClusterData(name=c.name, parent=c.parent, members=list(c.members), attrs=dict(c.attrs))
            for name, c in self.clusters.items()
        }
        return ClusteredGraph(
            digraph=self.digraph.copy(),
            clusters=clusters,
            edge_graph=self.edge_graph.copy(),
            _membership=dict(self._membership),
        )


GraphLike = Union[nx.DiGraph, ClusteredGraph]


# ─── Engine Helpers ───────────────────────────────────────────────────────────


def is_clustered(g: GraphLike) -> bool:
    return isinstance(g, ClusteredGraph)


def digraph_of(g: GraphLike) -> nx.DiGraph:
    """The underlying node/edge store of a graph value."""
    return g.digraph if isinstance(g, ClusteredGraph) else g


def is_edge_invisible(g: GraphLike, src: Hashable, tgt: Hashable) -> bool:
    return digraph_of(g).edges[src, tgt].get("style") == INVISIBLE_STYLE


def is_leaf(g: GraphLike, node: Hashable) -> bool:
    """True if ``node`` has no visible outgoing edge other than a self-loop."""
    dg = digraph_of(g)
    return not any(succ != node and not is_edge_invisible(dg, node, succ) for succ in dg.successors(node))


def add_edges(g: GraphLike, edges: Iterable[tuple[Hashable, Hashable, Mapping[str, Any]]]) -> GraphLike:
    dg = digraph_of(g)
    for src, tgt, attrs in edges:
        dg.add_edge(src, tgt, **attrs)
    return g


def remove_nodes(g: GraphLike, nodes: Iterable[Hashable]) -> GraphLike:
    """Remove nodes, keeping cluster membership consistent for clustered graphs."""
    if isinstance(g, ClusteredGraph):
        g.remove_nodes_cluster_aware(nodes)
    else:
        g.remove_nodes_from(list(nodes))
    return g


def remove_edges(g: GraphLike, edges: Iterable[tuple[Hashable, Hashable]]) -> GraphLike:
    digraph_of(g).remove_edges_from(list(edges))
    return g


def digraph_from_edges(source: GraphLike, edges: Iterable[tuple[Hashable, Hashable]]) -> nx.DiGraph:
    """Build a new DiGraph from an edge sequence, copying node and edge data from ``source``."""
    src_dg = digraph_of(source)
    result: nx.DiGraph = nx.DiGraph()
    for src, tgt in edges:
        for node in (src, tgt):
            if node not in result:
                result.add_node(node, **src_dg.nodes[node])
        result.add_edge(src, tgt, **src_dg.edges[src, tgt])
    return result
