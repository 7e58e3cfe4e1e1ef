"""Pydantic models for the Atlas knowledge graph.

Node and edge types:
- ConceptNode: a single learnable unit within a subject
- Relationship: a typed, directed connection between two concepts
- KnowledgeGraph: the validated graph for one subject
- LearningPath: an ordered, prerequisite-respecting walk through a graph

Edge direction for dependencies:
- prerequisite: from → to means "to" must be learned before "from"
- builds_on: from → to means "from" extends "to"
"""

import re
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


def subject_slug(subject: str) -> str:
    """Lowercase, underscore-joined form of a subject used in generated ids."""
    return re.sub(r"\s+", "_", subject.strip().lower())


# =============================================================================
# Enums
# =============================================================================


class ConceptCategory(str, Enum):
    """Where a concept sits in the subject."""

    FOUNDATIONAL = "foundational"  # Terminology, first principles
    CORE = "core"  # The central body of the subject
    APPLICATION = "application"  # Putting concepts to practical use
    EXAMPLE = "example"  # Worked cases of other concepts
    ADVANCED = "advanced"  # Beyond the core material


APPLIED_CATEGORIES = frozenset({ConceptCategory.APPLICATION, ConceptCategory.EXAMPLE})


class RelationshipType(str, Enum):
    """Types of relationships between concepts."""

    PREREQUISITE = "prerequisite"  # A requires B first
    BUILDS_ON = "builds_on"  # A extends/enhances B
    RELATED = "related"  # A and B are topically related
    ALTERNATIVE = "alternative"  # Different approaches to the same goal
    COMPLEMENTARY = "complementary"  # Work well together
    CONTRADICTORY = "contradictory"  # Present opposing views
    EXAMPLE_OF = "example_of"  # A is a specific case of B
    GENERALIZES = "generalizes"  # A is a broader concept than B


DEPENDENCY_TYPES = frozenset({RelationshipType.PREREQUISITE, RelationshipType.BUILDS_ON})


class Scope(str, Enum):
    """How deep a generated graph should go."""

    BASIC = "basic"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    COMPREHENSIVE = "comprehensive"


class PathType(str, Enum):
    """Selection policy used to derive a learning path."""

    FOUNDATION_FIRST = "foundation_first"
    APPLICATION_DRIVEN = "application_driven"
    BALANCED_APPROACH = "balanced_approach"


# =============================================================================
# Graph Models
# =============================================================================


class ConceptNode(BaseModel):
    """A single learnable unit. Identity is the id."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    category: ConceptCategory
    difficulty: int = Field(ge=1, le=10)
    estimated_time: int = Field(gt=0)  # minutes
    description: Optional[str] = None
    keywords: tuple[str, ...] = ()


class Relationship(BaseModel):
    """A typed edge between two concepts of the same graph."""

    model_config = ConfigDict(frozen=True)

    from_concept_id: str
    to_concept_id: str
    type: RelationshipType
    strength: float = Field(default=0.5, ge=0.0, le=1.0)
    description: Optional[str] = None

    @property
    def key(self) -> tuple[str, str, RelationshipType]:
        """Deduplication key: (from, to, type)."""
        return (self.from_concept_id, self.to_concept_id, self.type)


class GraphMetadata(BaseModel):
    """Aggregate values derived when a graph is built."""

    model_config = ConfigDict(frozen=True)

    average_difficulty: float
    estimated_course_length: float  # hours
    gaps: tuple[str, ...] = ()
    coverage: float = Field(default=0.0, ge=0.0, le=1.0)
    total_concepts: int = 0
    domain: str = "General"
    scope: Scope = Scope.COMPREHENSIVE
    audience: str = "general"
    generated_at: datetime = Field(default_factory=datetime.utcnow)


class KnowledgeGraph(BaseModel):
    """The validated concept graph for one subject.

    Every relationship endpoint references a node of this graph and node ids
    are unique. Graphs are replaced wholesale, never edited in place.
    """

    model_config = ConfigDict(frozen=True)

    subject: str
    nodes: tuple[ConceptNode, ...]
    relationships: tuple[Relationship, ...] = ()
    metadata: GraphMetadata

    @model_validator(mode="after")
    def _check_integrity(self) -> "KnowledgeGraph":
        ids = [node.id for node in self.nodes]
        if len(ids) != len(set(ids)):
            raise ValueError("duplicate concept ids in graph")
        known = set(ids)
        for rel in self.relationships:
            if rel.from_concept_id not in known or rel.to_concept_id not in known:
                raise ValueError(
                    f"relationship {rel.from_concept_id} -> {rel.to_concept_id} "
                    "references an unknown concept"
                )
        return self

    def node(self, concept_id: str) -> Optional[ConceptNode]:
        """Get a node by id."""
        for node in self.nodes:
            if node.id == concept_id:
                return node
        return None

    def has_node(self, concept_id: str) -> bool:
        return self.node(concept_id) is not None

    def prerequisites_of(self, concept_id: str) -> list[str]:
        """Ids of the direct prerequisites of a concept."""
        return [
            rel.to_concept_id
            for rel in self.relationships
            if rel.from_concept_id == concept_id
            and rel.type == RelationshipType.PREREQUISITE
        ]

    def dependencies_of(self, concept_id: str) -> list[ConceptNode]:
        """Direct prerequisite/builds_on targets of a concept, in edge order."""
        nodes = {node.id: node for node in self.nodes}
        result: list[ConceptNode] = []
        seen: set[str] = set()
        for rel in self.relationships:
            if rel.from_concept_id != concept_id or rel.type not in DEPENDENCY_TYPES:
                continue
            if rel.to_concept_id not in seen:
                seen.add(rel.to_concept_id)
                result.append(nodes[rel.to_concept_id])
        return result


# =============================================================================
# Learning Path Models
# =============================================================================


class Checkpoint(BaseModel):
    """An assessment point along a learning path."""

    model_config = ConfigDict(frozen=True)

    concept_id: str
    assessment_type: str = "quiz"
    required_mastery: float = Field(default=0.7, ge=0.0, le=1.0)


class LearningPath(BaseModel):
    """An ordered, prerequisite-respecting subsequence of a graph's concepts."""

    model_config = ConfigDict(frozen=True)

    id: str
    subject: str
    path_type: PathType
    name: str
    description: str
    concept_sequence: tuple[str, ...]
    total_estimated_time: int  # minutes
    difficulty_progression: tuple[int, ...]
    difficulty_level: str = "beginner"
    checkpoints: tuple[Checkpoint, ...] = ()
    adaptation_points: tuple[str, ...] = ()

    @property
    def estimated_hours(self) -> float:
        """Total time in hours, rounded to one decimal."""
        return round(self.total_estimated_time / 60, 1)
