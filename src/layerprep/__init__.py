"""Layout preparation for layered graph rendering: ranks, cluster scaffolding and filtering."""

from __future__ import annotations

from layerprep.clusters import (
    DEFAULT_EDGE_COUNT,
    DEFAULT_FAN,
    FAN_TABLE,
    FIX_RANKS_ATTR,
    add_invisible_cluster_edges,
    cluster_ranks,
    fan_for,
    fix_ranks,
    rank_levels,
    rebuild_cluster_edge_graph,
)
from layerprep.errors import LayerPrepError, PredicateError, UnknownClusterError
from layerprep.filtering import filter_graph, kept_nodes, paths_only, remove_levels
from layerprep.graph import (
    INVISIBLE_STYLE,
    ClusterData,
    ClusteredGraph,
    GraphLike,
    add_edges,
    digraph_from_edges,
    digraph_of,
    is_clustered,
    is_edge_invisible,
    is_leaf,
    remove_edges,
    remove_nodes,
)
from layerprep.layout import (
    RankAssignment,
    assign_ranks,
    rank_index,
    same_rank_groups,
    top_k_at_extremal_rank,
)
from layerprep.pipeline import LayoutPreparation, prepare_layout
from layerprep.predicates import accept_all, compile_predicate, reject_all
from layerprep.traversal import (
    eager_stateful_walk,
    find_by_subset_match,
    is_root,
    leaves,
    path_between,
    predecessors_excl_self,
    roots,
    subgraph,
    successors_excl_self,
    visible_parents,
)

__all__ = [
    "DEFAULT_EDGE_COUNT",
    "DEFAULT_FAN",
    "FAN_TABLE",
    "FIX_RANKS_ATTR",
    "INVISIBLE_STYLE",
    "ClusterData",
    "ClusteredGraph",
    "GraphLike",
    "LayerPrepError",
    "LayoutPreparation",
    "PredicateError",
    "RankAssignment",
    "UnknownClusterError",
    "accept_all",
    "add_edges",
    "add_invisible_cluster_edges",
    "assign_ranks",
    "cluster_ranks",
    "compile_predicate",
    "digraph_from_edges",
    "digraph_of",
    "eager_stateful_walk",
    "fan_for",
    "filter_graph",
    "find_by_subset_match",
    "fix_ranks",
    "is_clustered",
    "is_edge_invisible",
    "is_leaf",
    "is_root",
    "kept_nodes",
    "leaves",
    "path_between",
    "paths_only",
    "predecessors_excl_self",
    "prepare_layout",
    "rank_index",
    "rank_levels",
    "rebuild_cluster_edge_graph",
    "reject_all",
    "remove_edges",
    "remove_levels",
    "remove_nodes",
    "roots",
    "same_rank_groups",
    "subgraph",
    "successors_excl_self",
    "top_k_at_extremal_rank",
    "visible_parents",
]
