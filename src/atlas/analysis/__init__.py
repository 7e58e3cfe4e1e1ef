"""Structure analysis for knowledge graphs.

Usage:
    from atlas.analysis import analyze_chains, analyze_balance, analyze_gaps

    chains = analyze_chains(graph)       # prerequisite depth, isolated concepts
    balance = analyze_balance(graph)     # category spread
    report = analyze_gaps(graph)         # gaps, coverage, suggestions, metrics
"""

from atlas.analysis.balance import BalanceStats, analyze_balance
from atlas.analysis.chains import ChainStats, analyze_chains, chain_lengths
from atlas.analysis.suggestions import (
    GapAnalysis,
    GapMetrics,
    GapSuggester,
    analyze_gaps,
    concept_density,
)


__all__ = [
    # Chains
    "ChainStats",
    "analyze_chains",
    "chain_lengths",
    # Balance
    "BalanceStats",
    "analyze_balance",
    # Suggestions
    "GapAnalysis",
    "GapMetrics",
    "GapSuggester",
    "analyze_gaps",
    "concept_density",
]
