"""Improvement suggestions for a knowledge graph.

Each rule looks at aggregate metrics and adds at most one suggestion. Rules
are independent: none removes or overrides another, and every applicable
suggestion is returned.
"""

from dataclasses import dataclass
from typing import Optional

from atlas.graph.models import KnowledgeGraph

from .balance import BalanceStats, analyze_balance
from .chains import ChainStats, analyze_chains


LOW_DIFFICULTY = 3
HIGH_DIFFICULTY = 7
SHORT_COURSE_HOURS = 10
LONG_COURSE_HOURS = 100
LOW_DENSITY = 0.5
HIGH_DENSITY = 2
LOW_BALANCE = 0.5
LONG_CHAIN = 6
MAX_LISTED_GAPS = 3


def concept_density(graph: KnowledgeGraph) -> Optional[float]:
    """Concepts per course hour, or None for a zero-length course."""
    hours = graph.metadata.estimated_course_length
    if hours <= 0:
        return None
    return len(graph.nodes) / hours


@dataclass
class GapMetrics:
    """Structural metrics reported alongside gap suggestions."""

    concept_density: float
    avg_difficulty: float
    prerequisite_chains: ChainStats
    topical_balance: BalanceStats


@dataclass
class GapAnalysis:
    """Recorded gaps, coverage and suggestions for one graph."""

    gaps: list[str]
    coverage: float
    suggestions: list[str]
    metrics: GapMetrics


class GapSuggester:
    """Evaluates threshold rules over graph metrics."""

    def suggest(
        self,
        graph: KnowledgeGraph,
        chain_stats: ChainStats,
        balance_stats: BalanceStats,
    ) -> list[str]:
        """Return every applicable suggestion, in rule order."""
        suggestions: list[str] = []
        metadata = graph.metadata

        # Difficulty
        if metadata.average_difficulty < LOW_DIFFICULTY:
            suggestions.append("Consider adding more advanced concepts to challenge learners")
        elif metadata.average_difficulty > HIGH_DIFFICULTY:
            suggestions.append(
                "Consider adding more foundational concepts for better accessibility"
            )

        # Course length
        if metadata.estimated_course_length < SHORT_COURSE_HOURS:
            suggestions.append(
                "Course might be too short - consider expanding with practical applications"
            )
        elif metadata.estimated_course_length > LONG_COURSE_HOURS:
            suggestions.append(
                "Course might be too long - consider breaking into modules "
                "or removing less critical concepts"
            )

        # Concept density
        density = concept_density(graph)
        if density is not None and density < LOW_DENSITY:
            suggestions.append(
                "Low concept density - consider adding more concepts or reducing course length"
            )
        elif density is not None and density > HIGH_DENSITY:
            suggestions.append(
                "High concept density - learners might feel overwhelmed, "
                "consider spacing out concepts"
            )

        # Recorded gaps
        if metadata.gaps:
            listed = ", ".join(metadata.gaps[:MAX_LISTED_GAPS])
            suggestions.append(f"Address identified knowledge gaps: {listed}")

        # Topical balance
        if (
            len(balance_stats.category_distribution) > 1
            and balance_stats.balance_score < LOW_BALANCE
            and balance_stats.least_common is not None
        ):
            suggestions.append(
                "Topics are unevenly distributed - consider adding more "
                f"{balance_stats.least_common.value} concepts"
            )

        # Structure
        if chain_stats.isolated_concepts > 0:
            suggestions.append(
                f"{chain_stats.isolated_concepts} concept(s) are not connected to the rest "
                "of the graph - consider linking them to related concepts"
            )
        if chain_stats.max_chain_length > LONG_CHAIN:
            suggestions.append(
                f"Prerequisite chains reach {chain_stats.max_chain_length} steps - "
                "consider adding intermediate checkpoints"
            )

        return suggestions


def analyze_gaps(graph: KnowledgeGraph, suggester: Optional[GapSuggester] = None) -> GapAnalysis:
    """Run chain and balance analysis and collect suggestions for a graph."""
    suggester = suggester or GapSuggester()
    chain_stats = analyze_chains(graph)
    balance_stats = analyze_balance(graph)

    return GapAnalysis(
        gaps=list(graph.metadata.gaps),
        coverage=graph.metadata.coverage,
        suggestions=suggester.suggest(graph, chain_stats, balance_stats),
        metrics=GapMetrics(
            concept_density=concept_density(graph) or 0.0,
            avg_difficulty=graph.metadata.average_difficulty,
            prerequisite_chains=chain_stats,
            topical_balance=balance_stats,
        ),
    )
