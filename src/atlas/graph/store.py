"""In-memory store for Atlas knowledge graphs.

Holds one validated graph per subject. Graphs are immutable, so readers get
a stable snapshot by holding the reference; writers replace the reference.
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, Optional

from .models import ConceptNode, KnowledgeGraph


logger = logging.getLogger(__name__)


@dataclass
class _SubjectLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class GraphStore:
    """Thread-safe keyed container of knowledge graphs.

    Construct one per process and pass it to the components that need it.

    Example:
        store = GraphStore()
        with store.subject_lock("Physics"):
            store.put("Physics", graph)
        store.get("Physics")
    """

    def __init__(self):
        self._graphs: dict[str, KnowledgeGraph] = {}
        self._lock = threading.Lock()
        self._subject_locks: dict[str, _SubjectLock] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._graphs)

    def __contains__(self, subject: str) -> bool:
        with self._lock:
            return subject in self._graphs

    # =========================================================================
    # Write Serialization
    # =========================================================================

    @contextmanager
    def subject_lock(self, subject: str) -> Iterator[None]:
        """Serialize writers of one subject. Other subjects do not contend.

        A subject's lock lives only while a writer holds or waits for it.
        """
        with self._lock:
            entry = self._subject_locks.setdefault(subject, _SubjectLock())
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._lock:
                entry.users -= 1
                if entry.users == 0:
                    del self._subject_locks[subject]

    # =========================================================================
    # Graph Operations
    # =========================================================================

    def put(self, subject: str, graph: KnowledgeGraph) -> None:
        """Store a graph, replacing any prior graph for the subject."""
        with self._lock:
            replaced = subject in self._graphs
            self._graphs[subject] = graph
        logger.debug(
            f"{'Replaced' if replaced else 'Stored'} graph for {subject!r} "
            f"({len(graph.nodes)} concepts)"
        )

    def get(self, subject: str) -> Optional[KnowledgeGraph]:
        """Get the graph for a subject, or None if none is stored."""
        with self._lock:
            return self._graphs.get(subject)

    def all(self) -> list[KnowledgeGraph]:
        """Get every stored graph, in insertion order."""
        with self._lock:
            return list(self._graphs.values())

    def remove(self, subject: str) -> Optional[KnowledgeGraph]:
        """Remove and return the graph for a subject."""
        with self._lock:
            return self._graphs.pop(subject, None)

    # =========================================================================
    # Concept Queries
    # =========================================================================

    def search_concepts(self, query: str) -> list[ConceptNode]:
        """Case-insensitive substring match over titles across all graphs."""
        needle = query.lower()
        return [
            node
            for graph in self.all()
            for node in graph.nodes
            if needle in node.title.lower()
        ]

    def find_owner(self, concept_id: str) -> Optional[KnowledgeGraph]:
        """Get the first stored graph containing a concept id.

        Ids are only unique within a graph. When several subjects share one,
        the earliest stored graph wins.
        """
        owners = [graph for graph in self.all() if graph.has_node(concept_id)]
        if not owners:
            return None
        if len(owners) > 1:
            logger.debug(
                f"Concept id {concept_id!r} exists in {len(owners)} graphs; "
                f"resolving to {owners[0].subject!r}"
            )
        return owners[0]

    def dependencies(self, concept_id: str) -> Optional[list[ConceptNode]]:
        """Direct prerequisite/builds_on targets of a concept.

        Returns:
            The dependency nodes, or None if no stored graph owns the concept.
        """
        graph = self.find_owner(concept_id)
        if graph is None:
            return None
        return graph.dependencies_of(concept_id)
