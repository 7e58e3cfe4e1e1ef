"""Learning path synthesis.

Builds the prerequisite ordering of a graph, then derives one path per
selection policy:

- foundation_first: the plain topological order, easiest concepts first
- application_driven: applied concepts as soon as their prerequisites allow
- balanced_approach: alternates foundational and applied concepts

Every path only contains concepts within the difficulty ceiling, fits the
duration budget, and includes a concept only after all of its prerequisites.
"""

import logging
from typing import Callable

import networkx as nx

from atlas.core.errors import GraphIntegrityError, ValidationError
from atlas.graph.models import (
    APPLIED_CATEGORIES,
    Checkpoint,
    ConceptNode,
    KnowledgeGraph,
    LearningPath,
    PathType,
    RelationshipType,
    subject_slug,
)


logger = logging.getLogger(__name__)


DIFFICULTY_LEVELS: dict[str, int] = {
    "beginner": 3,
    "intermediate": 6,
    "advanced": 9,
}

PATH_DESCRIPTIONS: dict[PathType, tuple[str, str]] = {
    PathType.FOUNDATION_FIRST: (
        "Foundation-First Learning Path",
        "Master fundamental concepts before moving to advanced topics",
    ),
    PathType.APPLICATION_DRIVEN: (
        "Application-Driven Learning Path",
        "Learn through practical applications and real-world examples",
    ),
    PathType.BALANCED_APPROACH: (
        "Balanced Learning Path",
        "Alternate theory and practice with a steady difficulty progression",
    ),
}

CHECKPOINT_INTERVAL = 3
REQUIRED_MASTERY = 0.7


def resolve_target_difficulty(target: int | str) -> int:
    """Accept a 1-10 difficulty or a level name (beginner/intermediate/advanced)."""
    if isinstance(target, str):
        key = target.strip().lower()
        if key in DIFFICULTY_LEVELS:
            return DIFFICULTY_LEVELS[key]
        if not key.isdigit():
            raise ValidationError(
                f"Unknown target difficulty {target!r}; "
                f"use 1-10 or one of {', '.join(DIFFICULTY_LEVELS)}"
            )
        target = int(key)

    if isinstance(target, bool) or not isinstance(target, int):
        raise ValidationError(f"Target difficulty must be an integer, got {target!r}")
    if not 1 <= target <= 10:
        raise ValidationError(f"Target difficulty must be between 1 and 10, got {target}")
    return target


def difficulty_level(difficulties: list[int]) -> str:
    """Label a path by its average difficulty."""
    if not difficulties:
        return "beginner"
    average = sum(difficulties) / len(difficulties)
    if average <= 3:
        return "beginner"
    if average <= 7:
        return "intermediate"
    return "advanced"


class PathSynthesizer:
    """Derives bounded learning paths from a validated graph."""

    def synthesize(
        self,
        graph: KnowledgeGraph,
        target_difficulty: int | str,
        max_duration_hours: float,
    ) -> list[LearningPath]:
        """Produce one path per selection policy.

        Args:
            graph: A validated knowledge graph
            target_difficulty: 1-10, or a level name; concepts up to one
                level above it are eligible
            max_duration_hours: Time budget per path

        Returns:
            Non-empty paths, in policy order. Empty when nothing fits.

        Raises:
            ValidationError: If the constraints are malformed
            GraphIntegrityError: If prerequisites form a cycle
        """
        target = resolve_target_difficulty(target_difficulty)
        if max_duration_hours is None or max_duration_hours <= 0:
            raise ValidationError(
                f"Maximum duration must be positive, got {max_duration_hours!r}"
            )

        order_graph = self._prerequisite_digraph(graph)
        base_order = self._topological_order(graph, order_graph)
        rank = {concept_id: position for position, concept_id in enumerate(base_order)}

        eligible = [c for c in base_order if order_graph.nodes[c]["difficulty"] <= target + 1]
        if not eligible:
            return []

        applied = self._applied_concepts(graph)
        subgraph = order_graph.subgraph(eligible)
        budget = int(max_duration_hours * 60)

        policies: list[tuple[PathType, Callable[[], list[str]]]] = [
            (PathType.FOUNDATION_FIRST, lambda: eligible),
            (
                PathType.APPLICATION_DRIVEN,
                lambda: list(
                    nx.lexicographical_topological_sort(
                        subgraph, key=lambda c: (c not in applied, rank[c])
                    )
                ),
            ),
            (
                PathType.BALANCED_APPROACH,
                lambda: self._interleaved_order(subgraph, applied, rank),
            ),
        ]

        paths: list[LearningPath] = []
        for path_type, ordering in policies:
            selected = self._select_within_budget(graph, ordering(), budget)
            if selected:
                paths.append(self._to_path(graph, path_type, selected, order_graph))

        logger.debug(
            f"Synthesized {len(paths)} paths for {graph.subject!r} "
            f"(difficulty <= {target + 1}, {max_duration_hours}h)"
        )
        return paths

    # =========================================================================
    # Ordering
    # =========================================================================

    def _prerequisite_digraph(self, graph: KnowledgeGraph) -> nx.DiGraph:
        """DiGraph with an edge prerequisite -> dependent for each prerequisite."""
        order_graph = nx.DiGraph()
        for position, node in enumerate(graph.nodes):
            order_graph.add_node(node.id, difficulty=node.difficulty, position=position)
        for rel in graph.relationships:
            if rel.type == RelationshipType.PREREQUISITE:
                order_graph.add_edge(rel.to_concept_id, rel.from_concept_id)
        return order_graph

    def _topological_order(self, graph: KnowledgeGraph, order_graph: nx.DiGraph) -> list[str]:
        """Kahn ordering, ties broken by lower difficulty then node order."""
        try:
            return list(
                nx.lexicographical_topological_sort(
                    order_graph,
                    key=lambda c: (
                        order_graph.nodes[c]["difficulty"],
                        order_graph.nodes[c]["position"],
                    ),
                )
            )
        except nx.NetworkXUnfeasible as e:
            cycle = " -> ".join(edge[0] for edge in nx.find_cycle(order_graph))
            raise GraphIntegrityError(
                f"Prerequisite cycle in {graph.subject!r} blocks ordering: {cycle}"
            ) from e

    def _applied_concepts(self, graph: KnowledgeGraph) -> set[str]:
        """Application/example concepts, plus any concept that is an example of another."""
        applied = {node.id for node in graph.nodes if node.category in APPLIED_CATEGORIES}
        applied.update(
            rel.from_concept_id
            for rel in graph.relationships
            if rel.type == RelationshipType.EXAMPLE_OF
        )
        return applied

    def _interleaved_order(
        self,
        subgraph: nx.DiGraph,
        applied: set[str],
        rank: dict[str, int],
    ) -> list[str]:
        """Kahn ordering that alternates foundational and applied concepts.

        From the ready set, take the easiest concept of the wanted kind (or of
        any kind if none is ready), then flip the wanted kind.
        """
        remaining = dict(subgraph.in_degree())
        ready = [c for c, degree in remaining.items() if degree == 0]
        order: list[str] = []
        want_applied = False

        def ease(c: str) -> tuple[int, int]:
            return (subgraph.nodes[c]["difficulty"], rank[c])

        while ready:
            of_kind = [c for c in ready if (c in applied) == want_applied]
            pick = min(of_kind or ready, key=ease)
            ready.remove(pick)
            order.append(pick)
            want_applied = pick not in applied

            for dependent in subgraph.successors(pick):
                remaining[dependent] -= 1
                if remaining[dependent] == 0:
                    ready.append(dependent)

        return order

    # =========================================================================
    # Selection
    # =========================================================================

    def _select_within_budget(
        self,
        graph: KnowledgeGraph,
        order: list[str],
        budget_minutes: int,
    ) -> list[ConceptNode]:
        """Walk an ordering, keeping concepts that fit and whose prerequisites were kept."""
        nodes = {node.id: node for node in graph.nodes}
        admitted: set[str] = set()
        selected: list[ConceptNode] = []
        used = 0

        for concept_id in order:
            node = nodes[concept_id]
            if used + node.estimated_time > budget_minutes:
                continue
            if any(p not in admitted for p in graph.prerequisites_of(concept_id)):
                continue
            admitted.add(concept_id)
            selected.append(node)
            used += node.estimated_time

        return selected

    def _to_path(
        self,
        graph: KnowledgeGraph,
        path_type: PathType,
        selected: list[ConceptNode],
        order_graph: nx.DiGraph,
    ) -> LearningPath:
        name, description = PATH_DESCRIPTIONS[path_type]
        sequence = [node.id for node in selected]
        difficulties = [node.difficulty for node in selected]
        in_path = set(sequence)

        checkpoints = [
            Checkpoint(concept_id=concept_id, required_mastery=REQUIRED_MASTERY)
            for index, concept_id in enumerate(sequence)
            if index % CHECKPOINT_INTERVAL == CHECKPOINT_INTERVAL - 1
        ]
        # Concepts that unlock more than one later concept in this path
        adaptation_points = [
            concept_id
            for concept_id in sequence
            if sum(1 for d in order_graph.successors(concept_id) if d in in_path) > 1
        ]

        return LearningPath(
            id=f"{subject_slug(graph.subject)}_{path_type.value}",
            subject=graph.subject,
            path_type=path_type,
            name=name,
            description=description,
            concept_sequence=tuple(sequence),
            total_estimated_time=sum(node.estimated_time for node in selected),
            difficulty_progression=tuple(difficulties),
            difficulty_level=difficulty_level(difficulties),
            checkpoints=tuple(checkpoints),
            adaptation_points=tuple(adaptation_points),
        )

