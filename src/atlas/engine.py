"""KnowledgeGraphEngine - High-level interface for Atlas.

Provides the public operations (generate, get, search, paths, dependencies,
gap analysis), wiring the store, builder and analyzers together.
"""

import logging
from typing import Optional

from atlas.analysis.suggestions import GapAnalysis, GapSuggester, analyze_gaps
from atlas.core.errors import NotFoundError, ValidationError
from atlas.extraction.extractor import ConceptExtractor
from atlas.graph.archive import GraphArchive
from atlas.graph.builder import GraphBuilder
from atlas.graph.models import ConceptNode, KnowledgeGraph, LearningPath, Scope
from atlas.graph.store import GraphStore
from atlas.paths.synthesizer import PathSynthesizer


logger = logging.getLogger(__name__)


def _require(value: Optional[str], name: str) -> str:
    """Reject missing or blank string input."""
    if value is None or not str(value).strip():
        raise ValidationError(f"Missing required field: {name}")
    return str(value).strip()


def _parse_scope(scope: Scope | str) -> Scope:
    try:
        return Scope(scope)
    except ValueError as e:
        choices = ", ".join(s.value for s in Scope)
        raise ValidationError(f"Invalid scope {scope!r}; expected one of {choices}") from e


class KnowledgeGraphEngine:
    """High-level interface for building and analyzing knowledge graphs.

    Example:
        engine = KnowledgeGraphEngine(extractor=TemplateExtractor())
        graph = engine.generate("Music Theory", scope="basic")
        paths = engine.get_learning_paths("Music Theory", "beginner", 20)
        report = engine.analyze_gaps("Music Theory")
    """

    def __init__(
        self,
        extractor: Optional[ConceptExtractor] = None,
        store: Optional[GraphStore] = None,
        archive: Optional[GraphArchive] = None,
        extraction_timeout: float = 60.0,
        default_max_duration: float = 40.0,
    ):
        """Initialize the engine.

        Args:
            extractor: Concept extraction collaborator used by generate()
            store: Graph store (a new one is created if omitted)
            archive: Optional archive that receives every generated graph
            extraction_timeout: Seconds to wait for the extractor
            default_max_duration: Path budget in hours when none is given
        """
        self._store = store or GraphStore()
        self._archive = archive
        self._builder = GraphBuilder(
            self._store, extractor, timeout=extraction_timeout, archive=archive
        )
        self._synthesizer = PathSynthesizer()
        self._suggester = GapSuggester()
        self.default_max_duration = default_max_duration

    @property
    def store(self) -> GraphStore:
        """Access the underlying graph store."""
        return self._store

    @property
    def builder(self) -> GraphBuilder:
        """Access the graph builder."""
        return self._builder

    # =========================================================================
    # Graph Operations
    # =========================================================================

    def generate(
        self,
        subject: str,
        scope: Scope | str = Scope.COMPREHENSIVE,
        audience: str = "general",
    ) -> KnowledgeGraph:
        """Generate, validate and store the graph for a subject.

        Replaces any existing graph for the subject. On failure the existing
        graph is left untouched.

        Raises:
            ValidationError: If subject or scope is invalid
            ExternalServiceError: If extraction fails or times out
            GraphIntegrityError: If no concept survives validation
        """
        subject = _require(subject, "subject")
        scope = _parse_scope(scope)
        audience = (audience or "general").strip() or "general"

        return self._builder.generate(subject, scope, audience)

    def get(self, subject: str) -> KnowledgeGraph:
        """Get the stored graph for a subject.

        Raises:
            NotFoundError: If no graph is stored for the subject
        """
        subject = _require(subject, "subject")
        graph = self._store.get(subject)
        if graph is None:
            raise NotFoundError(f"Knowledge graph not found for subject: {subject}")
        return graph

    def get_all(self) -> list[KnowledgeGraph]:
        """Get every stored graph."""
        return self._store.all()

    def restore(self) -> int:
        """Load every archived graph into the store. Returns the count loaded."""
        if self._archive is None:
            return 0
        graphs = self._archive.load_all()
        for graph in graphs:
            self._store.put(graph.subject, graph)
        logger.debug(f"Restored {len(graphs)} graphs from archive")
        return len(graphs)

    # =========================================================================
    # Concept Operations
    # =========================================================================

    def search_concepts(self, query: str) -> list[ConceptNode]:
        """Find concepts whose title contains the query, across all graphs."""
        return self._store.search_concepts(_require(query, "query"))

    def get_dependencies(self, concept_id: str) -> list[ConceptNode]:
        """Get the direct prerequisite/builds_on targets of a concept.

        Raises:
            NotFoundError: If no stored graph contains the concept
        """
        concept_id = _require(concept_id, "concept_id")
        dependencies = self._store.dependencies(concept_id)
        if dependencies is None:
            raise NotFoundError(f"Concept not found: {concept_id}")
        return dependencies

    # =========================================================================
    # Analysis Operations
    # =========================================================================

    def get_learning_paths(
        self,
        subject: str,
        target_difficulty: int | str = "intermediate",
        max_duration_hours: Optional[float] = None,
    ) -> list[LearningPath]:
        """Synthesize learning paths through a stored graph.

        Raises:
            NotFoundError: If no graph is stored for the subject
            ValidationError: If the constraints are malformed
            GraphIntegrityError: If the graph's prerequisites form a cycle
        """
        graph = self.get(subject)
        if max_duration_hours is None:
            max_duration_hours = self.default_max_duration
        return self._synthesizer.synthesize(graph, target_difficulty, max_duration_hours)

    def analyze_gaps(self, subject: str) -> GapAnalysis:
        """Report gaps, coverage, suggestions and structural metrics.

        Raises:
            NotFoundError: If no graph is stored for the subject
        """
        return analyze_gaps(self.get(subject), self._suggester)


def create_engine(offline: bool = False, extraction: bool = True) -> KnowledgeGraphEngine:
    """Factory function to create an engine from settings.

    Args:
        offline: Use the template extractor instead of the LLM
        extraction: If False, build a read-only engine with no extractor

    Returns:
        Engine with the archive at ATLAS_ARCHIVE_PATH restored into its store
    """
    from atlas.core.config import get_llm_client, get_settings
    from atlas.extraction import LLMConceptExtractor, TemplateExtractor

    settings = get_settings()
    extractor = None
    if extraction and offline:
        extractor = TemplateExtractor()
    elif extraction:
        extractor = LLMConceptExtractor(
            get_llm_client(),
            model=settings.llm_model,
            timeout=settings.extraction_timeout,
        )

    settings.archive_path.parent.mkdir(parents=True, exist_ok=True)
    engine = KnowledgeGraphEngine(
        extractor=extractor,
        archive=GraphArchive(settings.archive_path),
        extraction_timeout=settings.extraction_timeout,
        default_max_duration=settings.default_max_duration,
    )
    engine.restore()
    return engine
