"""LLM-backed concept extraction.

Asks an OpenAI-compatible model to propose candidate concepts, relationships
and coverage gaps for a subject. Everything returned here is untrusted and
is validated by the GraphBuilder.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

import openai
from openai import OpenAI

from atlas.core.errors import ExternalServiceError
from atlas.graph.models import ConceptCategory, RelationshipType, Scope


logger = logging.getLogger(__name__)


@dataclass
class ExtractionResult:
    """Raw candidates proposed for a subject."""

    candidate_nodes: list[dict[str, Any]] = field(default_factory=list)
    candidate_relationships: list[dict[str, Any]] = field(default_factory=list)
    gaps: list[str] = field(default_factory=list)


class ConceptExtractor(Protocol):
    """Anything that can propose candidates for a subject."""

    def extract(self, subject: str, scope: Scope, audience: str) -> ExtractionResult:
        ...


# =============================================================================
# Prompt Construction
# =============================================================================

SCOPE_CONCEPT_COUNTS: dict[Scope, str] = {
    Scope.BASIC: "8-12",
    Scope.INTERMEDIATE: "12-18",
    Scope.ADVANCED: "15-25",
    Scope.COMPREHENSIVE: "20-30",
}

_SYSTEM_MESSAGE = (
    "You are an expert curriculum designer and knowledge architect. "
    "You describe subjects as graphs of concepts and return only valid JSON."
)


def _build_extraction_prompt(subject: str, scope: Scope, audience: str) -> str:
    """Build the extraction prompt for the LLM."""
    categories = ", ".join(c.value for c in ConceptCategory)
    relationship_types = ", ".join(t.value for t in RelationshipType)

    return f"""Generate the core concepts for learning "{subject}" at {scope.value} level \
for a {audience} audience.

## Concepts

Propose {SCOPE_CONCEPT_COUNTS[scope]} concepts. For each concept provide:
  - id: short unique identifier (lowercase, underscores)
  - title: clear, precise name
  - description: 1-2 sentences
  - category: one of {categories}
  - difficulty: integer 1-10
  - estimated_time: learning time in minutes
  - keywords: list of search keywords

## Relationships

Connect the concepts. For each relationship provide:
  - from_concept_id, to_concept_id: concept ids from the list above
  - type: one of {relationship_types}
    ("prerequisite" means to_concept_id must be learned before from_concept_id)
  - strength: 0.0-1.0
  - description: why the concepts are related

## Gaps

List important areas of "{subject}" that these concepts do not cover.

Return a JSON object with keys "concepts", "relationships" and "gaps".
Respond with ONLY valid JSON, no other text."""


def _parse_llm_response(response_text: str) -> dict[str, Any]:
    """Parse LLM response text into a JSON object.

    Raises:
        ExternalServiceError: If no JSON object can be recovered
    """
    try:
        parsed = json.loads(response_text)
    except json.JSONDecodeError:
        # Try to extract JSON from the response
        start = response_text.find("{")
        end = response_text.rfind("}") + 1
        parsed = None
        if start >= 0 and end > start:
            try:
                parsed = json.loads(response_text[start:end])
            except json.JSONDecodeError:
                pass

    if not isinstance(parsed, dict):
        raise ExternalServiceError("Concept extraction returned no JSON object")
    return parsed


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _build_extraction_result(data: dict[str, Any]) -> ExtractionResult:
    """Build ExtractionResult from the parsed LLM payload."""
    return ExtractionResult(
        candidate_nodes=[c for c in _as_list(data.get("concepts")) if isinstance(c, dict)],
        candidate_relationships=[
            r for r in _as_list(data.get("relationships")) if isinstance(r, dict)
        ],
        gaps=[str(g) for g in _as_list(data.get("gaps")) if g],
    )


# =============================================================================
# Extractor
# =============================================================================


class LLMConceptExtractor:
    """Proposes candidates for a subject using an OpenAI-compatible model."""

    def __init__(
        self,
        llm_client: OpenAI,
        model: str = "gpt-4o-mini",
        temperature: float = 0.3,
        max_tokens: int = 4000,
        timeout: float = 60.0,
    ):
        """Initialize the extractor.

        Args:
            llm_client: OpenAI-compatible client for LLM calls
            model: Model to use for extraction
            temperature: Lower temperature for more structured output
            max_tokens: Completion token limit
            timeout: Per-request timeout in seconds
        """
        self.client = llm_client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

    def _call_llm(self, prompt: str) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": _SYSTEM_MESSAGE},
                {"role": "user", "content": prompt},
            ],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            response_format={"type": "json_object"},
            timeout=self.timeout,
        )
        return response.choices[0].message.content or ""

    def extract(self, subject: str, scope: Scope, audience: str) -> ExtractionResult:
        """Extract candidate concepts and relationships for a subject.

        Raises:
            ExternalServiceError: On API failure, timeout or unparseable output
        """
        prompt = _build_extraction_prompt(subject, scope, audience)

        try:
            content = self._call_llm(prompt)
        except openai.APITimeoutError as e:
            logger.error(f"Concept extraction timed out for {subject!r}: {e}")
            raise ExternalServiceError(
                f"Concept extraction timed out after {self.timeout}s"
            ) from e
        except openai.APIError as e:
            logger.error(f"Concept extraction failed for {subject!r}: {e}")
            raise ExternalServiceError(f"Concept extraction failed: {e}") from e

        result = _build_extraction_result(_parse_llm_response(content))
        logger.info(
            f"Extracted {len(result.candidate_nodes)} concept candidates and "
            f"{len(result.candidate_relationships)} relationship candidates for {subject!r}"
        )
        return result
