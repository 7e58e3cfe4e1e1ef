"""Tests for gap analysis and improvement suggestions."""

import pytest

from atlas.analysis import (
    GapSuggester,
    analyze_balance,
    analyze_chains,
    analyze_gaps,
    concept_density,
)
from atlas.graph import ConceptCategory


@pytest.fixture
def well_formed_graph(graph_factory, node_factory, prereq_factory):
    """20 hours, every category equally represented, four chains of five concepts."""
    categories = list(ConceptCategory)
    nodes = [
        node_factory(f"c{i}", category=categories[i % len(categories)], difficulty=5)
        for i in range(20)
    ]
    relationships = [prereq_factory(f"c{i}", f"c{i - 1}") for i in range(20) if i % 5]
    return graph_factory(nodes, relationships)


def _suggestions(graph):
    return analyze_gaps(graph).suggestions


class TestSuggestionRules:
    """Tests for individual suggestion rules."""

    def test_well_formed_graph_has_none(self, well_formed_graph):
        assert _suggestions(well_formed_graph) == []

    def test_short_and_easy_course(self, graph_factory, node_factory):
        graph = graph_factory(
            [node_factory(f"c{i}") for i in range(5)],
            average_difficulty=2,
            course_length=5,
        )
        suggestions = _suggestions(graph)
        assert "Consider adding more advanced concepts to challenge learners" in suggestions
        assert (
            "Course might be too short - consider expanding with practical applications"
            in suggestions
        )

    def test_hard_course(self, well_formed_graph):
        graph = well_formed_graph.model_copy(
            update={
                "metadata": well_formed_graph.metadata.model_copy(
                    update={"average_difficulty": 8.5}
                )
            }
        )
        assert _suggestions(graph) == [
            "Consider adding more foundational concepts for better accessibility"
        ]

    def test_long_course(self, well_formed_graph):
        graph = well_formed_graph.model_copy(
            update={
                "metadata": well_formed_graph.metadata.model_copy(
                    update={"estimated_course_length": 120}
                )
            }
        )
        suggestions = _suggestions(graph)
        assert any(s.startswith("Course might be too long") for s in suggestions)
        # 20 concepts over 120 hours
        assert any(s.startswith("Low concept density") for s in suggestions)

    def test_high_density(self, well_formed_graph):
        graph = well_formed_graph.model_copy(
            update={
                "metadata": well_formed_graph.metadata.model_copy(
                    update={"estimated_course_length": 8}
                )
            }
        )
        suggestions = _suggestions(graph)
        assert any(s.startswith("High concept density") for s in suggestions)

    def test_gaps_listed_up_to_three(self, well_formed_graph):
        graph = well_formed_graph.model_copy(
            update={
                "metadata": well_formed_graph.metadata.model_copy(
                    update={"gaps": ("Proofs", "History", "Notation", "Software")}
                )
            }
        )
        assert _suggestions(graph) == [
            "Address identified knowledge gaps: Proofs, History, Notation"
        ]

    def test_uneven_topics(self, graph_factory, node_factory, prereq_factory):
        nodes = [node_factory(f"c{i}", difficulty=5) for i in range(15)]
        nodes.append(node_factory("ex", category=ConceptCategory.EXAMPLE, difficulty=5))
        relationships = [prereq_factory(f"c{i}", f"c{i - 1}") for i in range(15) if i % 5]
        relationships.append(prereq_factory("ex", "c0"))
        graph = graph_factory(nodes, relationships)

        assert _suggestions(graph) == [
            "Topics are unevenly distributed - consider adding more example concepts"
        ]

    def test_isolated_concepts(self, graph_factory, node_factory, prereq_factory):
        graph = graph_factory(
            [node_factory("a"), node_factory("b"), node_factory("lonely")],
            [prereq_factory("b", "a")],
        )
        suggestions = _suggestions(graph)
        assert any(s.startswith("1 concept(s) are not connected") for s in suggestions)

    def test_long_chain(self, graph_factory, node_factory, prereq_factory):
        graph = graph_factory(
            [node_factory(f"c{i}", difficulty=5) for i in range(12)],
            [prereq_factory(f"c{i}", f"c{i - 1}") for i in range(1, 12)],
        )
        assert _suggestions(graph) == [
            "Prerequisite chains reach 11 steps - consider adding intermediate checkpoints"
        ]

    def test_rules_are_independent(self, graph_factory, node_factory):
        graph = graph_factory(
            [node_factory("a")],
            gaps=["Everything"],
            average_difficulty=1,
            course_length=0.25,
        )
        suggestions = GapSuggester().suggest(graph, analyze_chains(graph), analyze_balance(graph))
        assert len(suggestions) == 5


class TestAnalyzeGaps:
    """Tests for the combined report."""

    def test_report_fields(self, chain_graph):
        report = analyze_gaps(chain_graph)
        assert report.gaps == []
        assert report.coverage == chain_graph.metadata.coverage
        assert report.metrics.avg_difficulty == 4.0
        assert report.metrics.prerequisite_chains.max_chain_length == 2
        assert report.metrics.concept_density == pytest.approx(1.0)

    def test_zero_length_course(self, graph_factory, node_factory):
        graph = graph_factory([node_factory("a")], course_length=0)
        assert concept_density(graph) is None

        report = analyze_gaps(graph)
        assert report.metrics.concept_density == 0.0
        assert not any("density" in s for s in report.suggestions)
