"""Error taxonomy for the Atlas engine.

- ValidationError: caller input is missing or malformed
- NotFoundError: no stored graph for a subject or concept
- ExternalServiceError: the concept extractor failed or timed out
- GraphIntegrityError: a graph is empty or has a prerequisite cycle
"""


class AtlasError(Exception):
    """Base class for all engine errors."""


class ValidationError(AtlasError, ValueError):
    """Missing or malformed caller input. Raised before any work begins."""


class NotFoundError(AtlasError, LookupError):
    """Requested subject or concept has no stored graph."""


class ExternalServiceError(AtlasError):
    """The extraction collaborator failed or timed out."""


class GraphIntegrityError(AtlasError):
    """A graph would be empty, or a prerequisite cycle blocks ordering."""
