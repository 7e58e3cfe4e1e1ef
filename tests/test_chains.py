"""Tests for prerequisite chain analysis."""

from atlas.analysis import ChainStats, analyze_chains, chain_lengths
from atlas.graph import Relationship


class TestChainLengths:
    """Tests for per-concept chain lengths."""

    def test_linear_chain(self, chain_graph):
        stats = analyze_chains(chain_graph)
        assert stats.per_concept_chain_length == {"a": 0, "b": 1, "c": 2}
        assert stats.max_chain_length == 2
        assert stats.avg_chain_length == 1.0
        assert stats.isolated_concepts == 0

    def test_single_isolated_concept(self, graph_factory, node_factory):
        stats = analyze_chains(graph_factory([node_factory("d")]))
        assert stats.per_concept_chain_length == {"d": 0}
        assert stats.isolated_concepts == 1

    def test_empty_graph(self, graph_factory):
        assert analyze_chains(graph_factory([])) == ChainStats()

    def test_diamond_takes_longest_branch(self, graph_factory, node_factory, prereq_factory):
        # top needs left and right; left needs base; right needs mid, mid needs base
        graph = graph_factory(
            [node_factory(n) for n in ("base", "mid", "left", "right", "top")],
            [
                prereq_factory("left", "base"),
                prereq_factory("mid", "base"),
                prereq_factory("right", "mid"),
                prereq_factory("top", "left"),
                prereq_factory("top", "right"),
            ],
        )
        lengths = chain_lengths(graph)
        assert lengths["top"] == 3
        assert lengths["left"] == 1
        assert lengths["right"] == 2

    def test_wide_layered_graph(self, graph_factory, node_factory, prereq_factory):
        # Each layer depends on every node of the layer below
        layers = [[f"n{layer}_{i}" for i in range(4)] for layer in range(30)]
        nodes = [node_factory(n) for layer in layers for n in layer]
        relationships = [
            prereq_factory(upper, lower)
            for below, above in zip(layers, layers[1:])
            for upper in above
            for lower in below
        ]
        stats = analyze_chains(graph_factory(nodes, relationships))
        assert stats.max_chain_length == 29

    def test_deep_chain_does_not_recurse(self, graph_factory, node_factory, prereq_factory):
        ids = [f"n{i}" for i in range(3000)]
        graph = graph_factory(
            [node_factory(n) for n in ids],
            [prereq_factory(ids[i + 1], ids[i]) for i in range(len(ids) - 1)],
        )
        assert analyze_chains(graph).max_chain_length == 2999

    def test_only_prerequisite_edges_count(self, graph_factory, node_factory):
        graph = graph_factory(
            [node_factory("a"), node_factory("b")],
            [Relationship(from_concept_id="b", to_concept_id="a", type="builds_on")],
        )
        assert chain_lengths(graph) == {"a": 0, "b": 0}


class TestCycles:
    """Tests for cyclic prerequisite sets."""

    def test_two_node_cycle_terminates(self, graph_factory, node_factory, prereq_factory):
        graph = graph_factory(
            [node_factory("a"), node_factory("b")],
            [prereq_factory("a", "b"), prereq_factory("b", "a")],
        )
        stats = analyze_chains(graph)
        assert set(stats.per_concept_chain_length) == {"a", "b"}
        assert all(v >= 1 for v in stats.per_concept_chain_length.values())
        assert stats.isolated_concepts == 0

    def test_three_node_cycle_terminates(self, graph_factory, node_factory, prereq_factory):
        graph = graph_factory(
            [node_factory("a"), node_factory("b"), node_factory("c")],
            [prereq_factory("b", "a"), prereq_factory("c", "b"), prereq_factory("a", "c")],
        )
        lengths = chain_lengths(graph)
        assert lengths == {"a": 3, "b": 1, "c": 2}

    def test_self_loop(self, graph_factory, node_factory, prereq_factory):
        graph = graph_factory([node_factory("a")], [prereq_factory("a", "a")])
        assert chain_lengths(graph) == {"a": 1}


class TestIsolatedConcepts:
    """Tests for isolation counting."""

    def test_any_incoming_edge_prevents_isolation(self, graph_factory, node_factory):
        graph = graph_factory(
            [node_factory("a"), node_factory("b"), node_factory("c")],
            [Relationship(from_concept_id="b", to_concept_id="a", type="related")],
        )
        # a has an incoming edge, b and c have none and no prerequisites
        assert analyze_chains(graph).isolated_concepts == 2
