"""GraphBuilder - turns raw extraction candidates into a stored KnowledgeGraph.

Candidates come from an untrusted collaborator. The builder parses each one
on its own, drops what cannot be used (with a warning), deduplicates, removes
prerequisite edges that would close a cycle, lowers prerequisites that are not
easier than their dependents, derives metadata and stores the result
atomically.
"""

import logging
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass, field
from statistics import fmean
from typing import Any, Optional

import networkx as nx
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as SchemaError

from atlas.core.errors import ExternalServiceError, GraphIntegrityError
from atlas.extraction.extractor import ConceptExtractor, ExtractionResult

from .archive import GraphArchive
from .models import (
    ConceptCategory,
    ConceptNode,
    GraphMetadata,
    KnowledgeGraph,
    Relationship,
    RelationshipType,
    Scope,
    subject_slug,
)
from .store import GraphStore


logger = logging.getLogger(__name__)


# Minutes per concept when a candidate gives no estimate
SCOPE_DEFAULT_MINUTES: dict[Scope, int] = {
    Scope.BASIC: 30,
    Scope.INTERMEDIATE: 60,
    Scope.ADVANCED: 90,
    Scope.COMPREHENSIVE: 60,
}
MIN_CONCEPT_MINUTES = 15

DOMAINS: dict[str, str] = {
    "mathematics": "STEM",
    "physics": "STEM",
    "chemistry": "STEM",
    "biology": "STEM",
    "computer science": "STEM",
    "programming": "STEM",
    "history": "Social Studies",
    "geography": "Social Studies",
    "literature": "Humanities",
    "language": "Humanities",
    "art": "Arts",
    "music": "Arts",
    "business": "Business",
    "economics": "Business",
}


def infer_domain(subject: str) -> str:
    """Map a subject onto a broad domain by keyword."""
    lowered = subject.lower()
    for keyword, domain in DOMAINS.items():
        if keyword in lowered:
            return domain
    return "General"


# =============================================================================
# Candidate Parsing
# =============================================================================


def _normalize_token(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower().replace("-", "_").replace(" ", "_")
    return value


class CandidateNode(BaseModel):
    """A concept as proposed by the extractor, before validation."""

    model_config = ConfigDict(extra="ignore", allow_inf_nan=False)

    id: Optional[str] = None
    title: str = Field(min_length=1, validation_alias=AliasChoices("title", "name"))
    category: ConceptCategory = ConceptCategory.CORE
    difficulty: float = 5
    estimated_time: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices(
            "estimated_time", "estimatedTime", "estimatedLearningTime"
        ),
    )
    description: Optional[str] = None
    keywords: list[str] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    @field_validator("title", mode="before")
    @classmethod
    def _strip_title(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("category", mode="before")
    @classmethod
    def _normalize_category(cls, value: Any) -> Any:
        return ConceptCategory.CORE if value is None else _normalize_token(value)


class CandidateRelationship(BaseModel):
    """A relationship as proposed by the extractor, before validation."""

    model_config = ConfigDict(extra="ignore", allow_inf_nan=False)

    from_concept_id: str = Field(
        validation_alias=AliasChoices("from_concept_id", "fromConceptId", "from")
    )
    to_concept_id: str = Field(
        validation_alias=AliasChoices("to_concept_id", "toConceptId", "to")
    )
    type: RelationshipType
    strength: float = 0.5
    description: Optional[str] = None

    @field_validator("from_concept_id", "to_concept_id", mode="before")
    @classmethod
    def _coerce_endpoint(cls, value: Any) -> Any:
        return str(value).strip() if value is not None else value

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: Any) -> Any:
        return _normalize_token(value)


def _coerce_candidates(raw_candidates: ExtractionResult | Mapping) -> ExtractionResult:
    """Accept an ExtractionResult or a plain mapping of the same shape."""
    if isinstance(raw_candidates, ExtractionResult):
        return raw_candidates
    if isinstance(raw_candidates, Mapping):
        return ExtractionResult(
            candidate_nodes=list(
                raw_candidates.get("candidate_nodes")
                or raw_candidates.get("candidateNodes")
                or []
            ),
            candidate_relationships=list(
                raw_candidates.get("candidate_relationships")
                or raw_candidates.get("candidateRelationships")
                or []
            ),
            gaps=list(raw_candidates.get("gaps") or []),
        )
    raise ExternalServiceError(
        f"Concept extractor returned {type(raw_candidates).__name__}, "
        "expected candidate nodes and relationships"
    )


@dataclass
class ValidatedCandidates:
    """Candidates that survived validation, plus what was dropped and why."""

    nodes: list[ConceptNode] = field(default_factory=list)
    relationships: list[Relationship] = field(default_factory=list)
    gaps: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


# =============================================================================
# GraphBuilder
# =============================================================================


class GraphBuilder:
    """Builds validated knowledge graphs and stores them.

    Example:
        builder = GraphBuilder(store, LLMConceptExtractor(client))
        graph = builder.generate("Linear Algebra", Scope.INTERMEDIATE, "engineers")
    """

    def __init__(
        self,
        store: GraphStore,
        extractor: Optional[ConceptExtractor] = None,
        timeout: float = 60.0,
        archive: Optional[GraphArchive] = None,
    ):
        """Initialize the builder.

        Args:
            store: Store that receives built graphs
            extractor: Concept extraction collaborator used by generate()
            timeout: Seconds to wait for the extractor
            archive: Optional archive written in the same critical section as
                the store, so both always hold the same graph for a subject
        """
        self.store = store
        self.extractor = extractor
        self.timeout = timeout
        self.archive = archive

    # =========================================================================
    # Public API
    # =========================================================================

    def generate(self, subject: str, scope: Scope | str, audience: str) -> KnowledgeGraph:
        """Extract candidates for a subject, then build and store its graph.

        Raises:
            ExternalServiceError: If extraction fails or times out
            GraphIntegrityError: If no concept survives validation
        """
        scope = Scope(scope)
        if self.extractor is None:
            raise ExternalServiceError("No concept extractor is configured")

        with self.store.subject_lock(subject):
            logger.info(f"Generating knowledge graph for {subject!r} ({scope.value} level)")
            raw_candidates = self._extract(subject, scope, audience)
            return self._build(subject, scope, audience, raw_candidates)

    def build(
        self,
        subject: str,
        scope: Scope | str,
        audience: str,
        raw_candidates: ExtractionResult | Mapping,
    ) -> KnowledgeGraph:
        """Validate raw candidates, build the graph and store it.

        Raises:
            GraphIntegrityError: If no concept survives validation
        """
        scope = Scope(scope)
        with self.store.subject_lock(subject):
            return self._build(subject, scope, audience, raw_candidates)

    def validate(
        self,
        subject: str,
        scope: Scope | str,
        raw_candidates: ExtractionResult | Mapping,
    ) -> ValidatedCandidates:
        """Validate and deduplicate candidates without building a graph."""
        scope = Scope(scope)
        candidates = _coerce_candidates(raw_candidates)
        result = ValidatedCandidates(gaps=[str(g) for g in candidates.gaps if g])

        self._validate_nodes(subject, scope, candidates.candidate_nodes, result)
        self._validate_relationships(candidates.candidate_relationships, result)
        self._drop_cycle_edges(result)
        self._balance_difficulty(result)
        return result

    # =========================================================================
    # Internals
    # =========================================================================

    def _extract(self, subject: str, scope: Scope, audience: str) -> ExtractionResult:
        """Call the extractor in a worker thread bounded by the timeout."""
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="atlas-extract")
        future = executor.submit(self.extractor.extract, subject, scope, audience)
        try:
            return _coerce_candidates(future.result(timeout=self.timeout))
        except FuturesTimeoutError as e:
            logger.error(f"Concept extraction for {subject!r} timed out after {self.timeout}s")
            raise ExternalServiceError(
                f"Concept extraction timed out after {self.timeout}s"
            ) from e
        except ExternalServiceError:
            raise
        except Exception as e:
            logger.error(f"Concept extraction for {subject!r} failed: {e}")
            raise ExternalServiceError(f"Concept extraction failed: {e}") from e
        finally:
            executor.shutdown(wait=False)

    def _build(
        self,
        subject: str,
        scope: Scope,
        audience: str,
        raw_candidates: ExtractionResult | Mapping,
    ) -> KnowledgeGraph:
        validated = self.validate(subject, scope, raw_candidates)
        for warning in validated.warnings:
            logger.warning(f"[{subject}] {warning}")

        if not validated.nodes:
            raise GraphIntegrityError(
                f"No valid concepts for {subject!r}; refusing to store an empty graph"
            )

        graph = KnowledgeGraph(
            subject=subject,
            nodes=tuple(validated.nodes),
            relationships=tuple(validated.relationships),
            metadata=self._build_metadata(subject, scope, audience, validated),
        )
        if self.archive is not None:
            self.archive.save(graph)
        self.store.put(subject, graph)
        logger.info(
            f"Built graph for {subject!r}: {len(graph.nodes)} concepts, "
            f"{len(graph.relationships)} relationships, "
            f"{len(validated.warnings)} warnings"
        )
        return graph

    def _validate_nodes(
        self,
        subject: str,
        scope: Scope,
        raw_nodes: list[Any],
        result: ValidatedCandidates,
    ) -> None:
        slug = subject_slug(subject)
        seen: set[str] = set()

        for index, raw in enumerate(raw_nodes, start=1):
            try:
                candidate = CandidateNode.model_validate(raw)
            except SchemaError as e:
                fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err["loc"])
                result.warnings.append(
                    f"Dropped concept candidate #{index}: invalid {fields or 'data'}"
                )
                continue

            concept_id = candidate.id or f"{slug}_concept_{index}"
            if concept_id in seen:
                result.warnings.append(f"Dropped duplicate concept id {concept_id!r}")
                continue
            seen.add(concept_id)

            if candidate.estimated_time is None:
                minutes = SCOPE_DEFAULT_MINUTES[scope]
            else:
                minutes = max(MIN_CONCEPT_MINUTES, round(candidate.estimated_time))

            result.nodes.append(
                ConceptNode(
                    id=concept_id,
                    title=candidate.title,
                    category=candidate.category,
                    difficulty=max(1, min(10, round(candidate.difficulty))),
                    estimated_time=minutes,
                    description=candidate.description,
                    keywords=tuple(candidate.keywords),
                )
            )

    def _validate_relationships(
        self, raw_relationships: list[Any], result: ValidatedCandidates
    ) -> None:
        known = {node.id for node in result.nodes}
        seen: set[tuple[str, str, RelationshipType]] = set()

        for index, raw in enumerate(raw_relationships, start=1):
            try:
                candidate = CandidateRelationship.model_validate(raw)
            except SchemaError:
                result.warnings.append(f"Dropped relationship candidate #{index}: invalid data")
                continue

            missing = [
                endpoint
                for endpoint in (candidate.from_concept_id, candidate.to_concept_id)
                if endpoint not in known
            ]
            if missing:
                result.warnings.append(
                    f"Dropped relationship {candidate.from_concept_id} -> "
                    f"{candidate.to_concept_id}: unknown concept {missing[0]!r}"
                )
                continue

            relationship = Relationship(
                from_concept_id=candidate.from_concept_id,
                to_concept_id=candidate.to_concept_id,
                type=candidate.type,
                strength=max(0.0, min(1.0, candidate.strength)),
                description=candidate.description,
            )
            if relationship.key in seen:
                continue
            seen.add(relationship.key)
            result.relationships.append(relationship)

    def _drop_cycle_edges(self, result: ValidatedCandidates) -> None:
        """Drop prerequisite edges that would close a cycle, first come first kept."""
        order = nx.DiGraph()
        order.add_nodes_from(node.id for node in result.nodes)
        kept: list[Relationship] = []

        for rel in result.relationships:
            if rel.type != RelationshipType.PREREQUISITE:
                kept.append(rel)
                continue
            prerequisite, dependent = rel.to_concept_id, rel.from_concept_id
            if prerequisite == dependent or nx.has_path(order, dependent, prerequisite):
                result.warnings.append(
                    f"Dropped prerequisite {dependent} -> {prerequisite}: creates a cycle"
                )
                continue
            order.add_edge(prerequisite, dependent)
            kept.append(rel)

        result.relationships = kept

    def _balance_difficulty(self, result: ValidatedCandidates) -> None:
        """Lower prerequisites that are not easier than their dependents.

        Runs after cycle removal, so the prerequisite edges form a DAG. Walking
        it from the last dependents back to the roots means each concept sees
        its dependents' final difficulty. Floors at 1, so a dependent at 1 can
        still tie with its prerequisite.
        """
        order = nx.DiGraph()
        order.add_nodes_from(node.id for node in result.nodes)
        order.add_edges_from(
            (rel.to_concept_id, rel.from_concept_id)
            for rel in result.relationships
            if rel.type == RelationshipType.PREREQUISITE
        )
        difficulty = {node.id: node.difficulty for node in result.nodes}

        for concept_id in reversed(list(nx.topological_sort(order))):
            dependents = [difficulty[d] for d in order.successors(concept_id)]
            if dependents and difficulty[concept_id] >= min(dependents):
                difficulty[concept_id] = max(1, min(dependents) - 1)

        adjusted = 0
        for index, node in enumerate(result.nodes):
            if node.difficulty != difficulty[node.id]:
                result.nodes[index] = node.model_copy(update={"difficulty": difficulty[node.id]})
                adjusted += 1
        if adjusted:
            logger.debug(f"Lowered difficulty of {adjusted} prerequisite concepts")

    def _build_metadata(
        self,
        subject: str,
        scope: Scope,
        audience: str,
        validated: ValidatedCandidates,
    ) -> GraphMetadata:
        nodes = validated.nodes
        total_minutes = sum(node.estimated_time for node in nodes)
        categories = {node.category for node in nodes}

        return GraphMetadata(
            average_difficulty=round(fmean(node.difficulty for node in nodes), 1),
            estimated_course_length=round(total_minutes / 60, 2),
            gaps=tuple(validated.gaps),
            coverage=round(len(categories) / len(ConceptCategory), 2),
            total_concepts=len(nodes),
            domain=infer_domain(subject),
            scope=scope,
            audience=audience,
        )
