"""Concept extraction collaborators.

Usage:
    from atlas.extraction import LLMConceptExtractor, TemplateExtractor

    extractor = LLMConceptExtractor(get_llm_client(), model="gpt-4o-mini")
    result = extractor.extract("Physics", Scope.BASIC, "high school")
"""

from atlas.extraction.extractor import (
    ConceptExtractor,
    ExtractionResult,
    LLMConceptExtractor,
)
from atlas.extraction.templates import TemplateExtractor


__all__ = [
    "ConceptExtractor",
    "ExtractionResult",
    "LLMConceptExtractor",
    "TemplateExtractor",
]
