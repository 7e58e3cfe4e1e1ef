"""SQLite archive for Atlas knowledge graphs.

Serializes KnowledgeGraph objects verbatim as JSON so generated graphs
survive process restarts. The in-memory GraphStore stays the source of truth
for a running engine; the archive only saves and restores.
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Optional

from .models import KnowledgeGraph


logger = logging.getLogger(__name__)


SCHEMA = """
CREATE TABLE IF NOT EXISTS knowledge_graphs (
    subject TEXT PRIMARY KEY,
    graph JSON NOT NULL,
    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
);
"""


class GraphArchive:
    """SQLite-based archive of knowledge graphs keyed by subject."""

    def __init__(self, db_path: str | Path = ":memory:"):
        """Initialize the archive.

        Args:
            db_path: Path to SQLite database file, or ":memory:" for in-memory.
        """
        self.db_path = str(db_path)
        self._is_memory = self.db_path == ":memory:"
        self._persistent_conn: Optional[sqlite3.Connection] = None

        # In-memory DBs vanish with their connection, so keep one open
        if self._is_memory:
            self._persistent_conn = sqlite3.connect(":memory:", check_same_thread=False)
            self._persistent_conn.row_factory = sqlite3.Row

        with self.connection() as conn:
            conn.executescript(SCHEMA)

    @contextmanager
    def connection(self):
        """Get a database connection with proper cleanup."""
        if self._is_memory:
            yield self._persistent_conn
            self._persistent_conn.commit()
        else:
            conn = sqlite3.connect(self.db_path)
            conn.row_factory = sqlite3.Row
            try:
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            finally:
                conn.close()

    def save(self, graph: KnowledgeGraph) -> None:
        """Save a graph, replacing any archived graph for its subject."""
        with self.connection() as conn:
            conn.execute(
                """
                INSERT INTO knowledge_graphs (subject, graph, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(subject) DO UPDATE SET
                    graph = excluded.graph,
                    updated_at = excluded.updated_at
                """,
                (graph.subject, graph.model_dump_json(), datetime.utcnow().isoformat()),
            )

    def load(self, subject: str) -> Optional[KnowledgeGraph]:
        """Load the archived graph for a subject."""
        with self.connection() as conn:
            row = conn.execute(
                "SELECT graph FROM knowledge_graphs WHERE subject = ?", (subject,)
            ).fetchone()
        if row is None:
            return None
        return KnowledgeGraph.model_validate_json(row["graph"])

    def load_all(self) -> list[KnowledgeGraph]:
        """Load every archived graph, oldest first."""
        with self.connection() as conn:
            rows = conn.execute(
                "SELECT graph FROM knowledge_graphs ORDER BY updated_at, subject"
            ).fetchall()
        return [KnowledgeGraph.model_validate_json(row["graph"]) for row in rows]

    def delete(self, subject: str) -> bool:
        """Delete the archived graph for a subject. Returns True if one existed."""
        with self.connection() as conn:
            cursor = conn.execute(
                "DELETE FROM knowledge_graphs WHERE subject = ?", (subject,)
            )
            return cursor.rowcount > 0
