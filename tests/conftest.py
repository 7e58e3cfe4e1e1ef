"""Common test fixtures for Atlas tests."""

from statistics import fmean

import pytest

from atlas.core.config import get_settings
from atlas.engine import KnowledgeGraphEngine
from atlas.extraction import ExtractionResult, TemplateExtractor
from atlas.graph import (
    ConceptCategory,
    ConceptNode,
    GraphArchive,
    GraphMetadata,
    GraphStore,
    KnowledgeGraph,
    Relationship,
    RelationshipType,
)


def make_node(
    concept_id: str,
    category: ConceptCategory = ConceptCategory.CORE,
    difficulty: int = 1,
    minutes: int = 60,
    title: str = None,
) -> ConceptNode:
    """Build a concept node with sensible defaults."""
    return ConceptNode(
        id=concept_id,
        title=title or concept_id.replace("_", " ").title(),
        category=category,
        difficulty=difficulty,
        estimated_time=minutes,
    )


def prereq(dependent: str, prerequisite: str) -> Relationship:
    """prerequisite must be learned before dependent."""
    return Relationship(
        from_concept_id=dependent,
        to_concept_id=prerequisite,
        type=RelationshipType.PREREQUISITE,
    )


def make_graph(
    nodes,
    relationships=(),
    subject: str = "Test Subject",
    gaps=(),
    average_difficulty: float = None,
    course_length: float = None,
) -> KnowledgeGraph:
    """Build a graph directly, deriving metadata the way the builder does."""
    nodes = tuple(nodes)
    if average_difficulty is None:
        average_difficulty = round(fmean(n.difficulty for n in nodes), 1) if nodes else 0.0
    if course_length is None:
        course_length = round(sum(n.estimated_time for n in nodes) / 60, 2)

    return KnowledgeGraph(
        subject=subject,
        nodes=nodes,
        relationships=tuple(relationships),
        metadata=GraphMetadata(
            average_difficulty=average_difficulty,
            estimated_course_length=course_length,
            gaps=tuple(gaps),
            coverage=round(len({n.category for n in nodes}) / len(ConceptCategory), 2),
            total_concepts=len(nodes),
        ),
    )


class StubExtractor:
    """Extractor returning a fixed result and recording its calls."""

    def __init__(self, result=None):
        self.result = result if result is not None else ExtractionResult()
        self.calls = []

    def extract(self, subject, scope, audience):
        self.calls.append((subject, scope, audience))
        return self.result


@pytest.fixture
def node_factory():
    """Factory for concept nodes."""
    return make_node


@pytest.fixture
def prereq_factory():
    """Factory for prerequisite relationships."""
    return prereq


@pytest.fixture
def graph_factory():
    """Factory for graphs built without the builder."""
    return make_graph


@pytest.fixture
def chain_graph():
    """A(2) <- B(4) <- C(6): C needs B, B needs A."""
    return make_graph(
        [make_node("a", difficulty=2), make_node("b", difficulty=4), make_node("c", difficulty=6)],
        [prereq("b", "a"), prereq("c", "b")],
    )


@pytest.fixture
def store():
    """Create an empty graph store."""
    return GraphStore()


@pytest.fixture
def archive():
    """Create an in-memory graph archive."""
    return GraphArchive(":memory:")


@pytest.fixture
def engine(store):
    """Create an engine using the offline template extractor."""
    return KnowledgeGraphEngine(extractor=TemplateExtractor(), store=store)


@pytest.fixture
def mock_settings(monkeypatch, tmp_path):
    """Point settings at a temporary archive and run offline."""
    monkeypatch.setenv("ATLAS_ARCHIVE_PATH", str(tmp_path / "atlas.db"))
    monkeypatch.setenv("LLM_API_KEY", "")
    # Clear cached settings to pick up new env vars
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()
