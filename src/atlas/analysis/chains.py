"""Prerequisite chain analysis.

The chain length of a concept is 0 when it has no prerequisites, otherwise
1 + the longest chain among its direct prerequisites. Relationship sets may
be cyclic or reference unknown concepts, so the walk is iterative, marks
nodes in progress, and computes each node exactly once.
"""

from dataclasses import dataclass, field
from statistics import fmean

from atlas.graph.models import KnowledgeGraph, RelationshipType


_UNVISITED, _IN_PROGRESS, _DONE = 0, 1, 2


@dataclass
class ChainStats:
    """Graph-wide prerequisite chain statistics."""

    max_chain_length: int = 0
    avg_chain_length: float = 0.0
    isolated_concepts: int = 0
    per_concept_chain_length: dict[str, int] = field(default_factory=dict)


def _prerequisite_lists(graph: KnowledgeGraph) -> list[list[int]]:
    """Adjacency list by node index: node -> indices of its prerequisites."""
    index = {node.id: position for position, node in enumerate(graph.nodes)}
    prerequisites: list[list[int]] = [[] for _ in graph.nodes]
    for rel in graph.relationships:
        if rel.type != RelationshipType.PREREQUISITE:
            continue
        dependent = index.get(rel.from_concept_id)
        prerequisite = index.get(rel.to_concept_id)
        if dependent is None or prerequisite is None:
            continue
        prerequisites[dependent].append(prerequisite)
    return prerequisites


def chain_lengths(graph: KnowledgeGraph) -> dict[str, int]:
    """Longest prerequisite chain per concept id.

    A prerequisite that is already on the current walk (a cycle) contributes
    0 for that branch.
    """
    prerequisites = _prerequisite_lists(graph)
    state = [_UNVISITED] * len(graph.nodes)
    length = [0] * len(graph.nodes)

    for root in range(len(graph.nodes)):
        if state[root] != _UNVISITED:
            continue
        state[root] = _IN_PROGRESS
        stack = [(root, 0)]

        while stack:
            node, position = stack[-1]
            children = prerequisites[node]

            if position < len(children):
                stack[-1] = (node, position + 1)
                child = children[position]
                if state[child] == _UNVISITED:
                    state[child] = _IN_PROGRESS
                    stack.append((child, 0))
                continue

            if children:
                length[node] = 1 + max(
                    length[child] if state[child] == _DONE else 0 for child in children
                )
            state[node] = _DONE
            stack.pop()

    return {node.id: length[position] for position, node in enumerate(graph.nodes)}


def analyze_chains(graph: KnowledgeGraph) -> ChainStats:
    """Compute chain lengths, isolated concepts and aggregate statistics."""
    if not graph.nodes:
        return ChainStats()

    lengths = chain_lengths(graph)
    incoming: dict[str, int] = {node.id: 0 for node in graph.nodes}
    for rel in graph.relationships:
        if rel.to_concept_id in incoming:
            incoming[rel.to_concept_id] += 1

    isolated = sum(
        1 for concept_id, value in lengths.items()
        if value == 0 and incoming[concept_id] == 0
    )

    return ChainStats(
        max_chain_length=max(lengths.values()),
        avg_chain_length=fmean(lengths.values()),
        isolated_concepts=isolated,
        per_concept_chain_length=lengths,
    )
