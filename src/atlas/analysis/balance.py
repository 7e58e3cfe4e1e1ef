"""Topical balance analysis over concept categories."""

from dataclasses import dataclass, field
from statistics import fmean, pstdev
from typing import Optional

from atlas.graph.models import ConceptCategory, KnowledgeGraph


@dataclass
class BalanceStats:
    """How evenly concepts are spread across categories."""

    category_distribution: dict[ConceptCategory, int] = field(default_factory=dict)
    most_common: Optional[ConceptCategory] = None
    least_common: Optional[ConceptCategory] = None
    balance_score: float = 0.0  # 0-1, 1 is perfectly balanced


def analyze_balance(graph: KnowledgeGraph) -> BalanceStats:
    """Count concepts per category and score the spread.

    balance_score = max(0, 1 - pstdev(counts) / mean(counts)) over the
    categories present. With only a few categories this swings strongly,
    since the deviation is not normalized for the number of categories.
    """
    distribution: dict[ConceptCategory, int] = {}
    for node in graph.nodes:
        distribution[node.category] = distribution.get(node.category, 0) + 1

    if not distribution:
        return BalanceStats()

    counts = list(distribution.values())
    mean = fmean(counts)
    score = max(0.0, 1 - pstdev(counts) / mean) if mean > 0 else 0.0

    # max/min keep the first category seen on ties
    return BalanceStats(
        category_distribution=distribution,
        most_common=max(distribution, key=distribution.get),
        least_common=min(distribution, key=distribution.get),
        balance_score=score,
    )
