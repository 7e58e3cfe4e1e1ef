"""Knowledge graph - models, store, and archive.

The GraphBuilder lives in atlas.graph.builder; it depends on the extraction
package and is imported from there directly.
"""

from .models import (
    # Enums
    ConceptCategory,
    PathType,
    RelationshipType,
    Scope,
    # Graph models
    Checkpoint,
    ConceptNode,
    GraphMetadata,
    KnowledgeGraph,
    LearningPath,
    Relationship,
    # Groupings
    APPLIED_CATEGORIES,
    DEPENDENCY_TYPES,
    # Utilities
    subject_slug,
)
from .store import GraphStore
from .archive import GraphArchive

__all__ = [
    # Store and archive
    "GraphStore",
    "GraphArchive",
    # Enums
    "ConceptCategory",
    "PathType",
    "RelationshipType",
    "Scope",
    # Graph models
    "Checkpoint",
    "ConceptNode",
    "GraphMetadata",
    "KnowledgeGraph",
    "LearningPath",
    "Relationship",
    # Groupings
    "APPLIED_CATEGORIES",
    "DEPENDENCY_TYPES",
    # Utilities
    "subject_slug",
]
