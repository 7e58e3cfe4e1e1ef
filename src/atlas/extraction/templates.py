"""Offline concept extraction from a fixed course outline.

Used when no LLM is configured. Produces the same outline for every subject:
eight concepts chained by prerequisites, with time estimates left to the
builder's scope defaults.
"""

from atlas.graph.models import ConceptCategory, RelationshipType, Scope, subject_slug

from .extractor import ExtractionResult


OUTLINE: list[tuple[str, ConceptCategory]] = [
    ("Introduction and Overview", ConceptCategory.FOUNDATIONAL),
    ("Basic Terminology", ConceptCategory.FOUNDATIONAL),
    ("Fundamental Principles", ConceptCategory.FOUNDATIONAL),
    ("Core Concepts", ConceptCategory.CORE),
    ("Practical Applications", ConceptCategory.APPLICATION),
    ("Advanced Topics", ConceptCategory.ADVANCED),
    ("Integration and Synthesis", ConceptCategory.ADVANCED),
    ("Assessment and Review", ConceptCategory.CORE),
]


class TemplateExtractor:
    """Proposes the fixed outline for any subject."""

    def extract(self, subject: str, scope: Scope, audience: str) -> ExtractionResult:
        slug = subject_slug(subject)
        ids = [f"{slug}_concept_{index + 1}" for index in range(len(OUTLINE))]

        nodes = [
            {
                "id": concept_id,
                "title": title,
                "description": f"{title} for {subject}",
                "category": category.value,
                "difficulty": min(index + 1, 8),
                "keywords": [title.lower()],
            }
            for index, (concept_id, (title, category)) in enumerate(zip(ids, OUTLINE))
        ]
        relationships = [
            {
                "from_concept_id": ids[index + 1],
                "to_concept_id": ids[index],
                "type": RelationshipType.PREREQUISITE.value,
                "strength": 0.8,
                "description": f"{OUTLINE[index + 1][0]} builds upon {OUTLINE[index][0]}",
            }
            for index in range(len(ids) - 1)
        ]
        return ExtractionResult(candidate_nodes=nodes, candidate_relationships=relationships)
