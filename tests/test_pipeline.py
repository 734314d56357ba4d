"""End-to-end tests for pipeline.py: prepare_layout on plain and clustered graphs."""

from __future__ import annotations

import networkx as nx
import pytest

import layerprep
from layerprep.clusters import FIX_RANKS_ATTR
from layerprep.errors import LayerPrepError
from layerprep.graph import ClusteredGraph
from layerprep.pipeline import prepare_layout

# ─── Helpers ──────────────────────────────────────────────────────────────────


def make_tiers() -> ClusteredGraph:
    """api → svc → db clusters, declared in the cluster-edge graph.

    api1 → svc1, api1 → svc2, svc1 → db1; db1 is the only legacy node.
    """
    cg = ClusteredGraph()
    for name in ("api", "svc", "db"):
        cg.add_cluster(name)
    cg.add_node("api1", cluster="api", tier="core")
    cg.add_node("svc1", cluster="svc", tier="core")
    cg.add_node("svc2", cluster="svc", tier="core")
    cg.add_node("db1", cluster="db", tier="legacy")
    cg.add_edge("api1", "svc1")
    cg.add_edge("api1", "svc2")
    cg.add_edge("svc1", "db1")
    cg.add_cluster_edge("api", "svc")
    cg.add_cluster_edge("svc", "db")
    return cg


# ─── Pipeline Tests ───────────────────────────────────────────────────────────


class TestPrepareLayout:
    def test_clustered_filter_rebuild_and_scaffold(self):
        """Filtering out db prunes it, rebuilds api → svc and constrains api1 → svc1."""
        original = make_tiers()
        result = prepare_layout(
            original,
            keep={"tier": "core"},
            filter_edges=False,
            stacks=[["api", "svc", "db"]],
            edge_count=2,
        )
        cg = result.graph

        assert "db1" not in cg.digraph
        assert "db" not in cg.clusters
        assert result.cluster_levels == [["api"], ["svc"]]
        assert list(cg.edge_graph.edges) == [("api", "svc")]

        assert cg.digraph.edges["api1", "svc1"]["constraint"] is True
        assert "constraint" not in cg.digraph.edges["api1", "svc2"]
        assert cg.digraph.number_of_edges() == 2

        assert result.ranks.ranks == {"api1": 0, "svc1": 1, "svc2": 1}
        assert result.ranks.layer_count == 2

    def test_input_left_untouched(self):
        """prepare_layout works on a copy."""
        original = make_tiers()
        prepare_layout(original, keep={"tier": "core"}, filter_edges=False, stacks=[["api", "svc"]])
        assert "db1" in original.digraph
        assert list(original.edge_graph.edges) == [("api", "svc"), ("svc", "db")]
        assert original.digraph.number_of_edges() == 3

    def test_fix_ranks_annotation(self):
        """svc1 and svc2 tie at rank 1 inside svc."""
        result = prepare_layout(make_tiers(), fix=True)
        assert result.graph.clusters["svc"].attrs[FIX_RANKS_ATTR] == [["svc1", "svc2"]]
        assert FIX_RANKS_ATTR not in result.graph.clusters["api"].attrs

    def test_no_filter_keeps_cluster_edge_graph(self):
        """Without filtering or trimming the declared cluster edges stay as they are."""
        result = prepare_layout(make_tiers())
        assert result.cluster_levels == []
        assert list(result.graph.edge_graph.edges) == [("api", "svc"), ("svc", "db")]

    def test_plain_graph_levels(self):
        """Plain graphs go through trimming and ranking only."""
        g: nx.DiGraph = nx.DiGraph([("a", "b"), ("b", "c"), ("c", "d")])
        result = prepare_layout(g, levels=1)
        assert result.ranks.ranks == {"a": 0, "b": 1, "c": 2}
        assert result.cluster_levels == []
        assert g.number_of_nodes() == 4

    def test_plain_graph_rejects_cluster_options(self):
        """stacks and fix only make sense on a ClusteredGraph."""
        g: nx.DiGraph = nx.DiGraph([("a", "b")])
        with pytest.raises(LayerPrepError):
            prepare_layout(g, stacks=[["x", "y"]])
        with pytest.raises(LayerPrepError):
            prepare_layout(g, fix=True)
        assert prepare_layout(g, edge_count=9).ranks.ranks == {"a": 0, "b": 1}

    def test_package_exports(self):
        """The main entry points are importable from the package root."""
        for name in ("assign_ranks", "add_invisible_cluster_edges", "filter_graph", "prepare_layout"):
            assert name in layerprep.__all__
            assert hasattr(layerprep, name)
