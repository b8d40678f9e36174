"""SQLite client utilities.

Updates:
    v0.1.0 - 2025-11-09 - Added testimonials and contact outbox schemas.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Optional

TESTIMONIALS_TABLE_SCHEMA = """
CREATE TABLE IF NOT EXISTS testimonials (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    position TEXT,
    review TEXT NOT NULL,
    rating INTEGER,
    approved INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL
);
"""

TESTIMONIALS_INDEX_SCHEMA = """
CREATE INDEX IF NOT EXISTS idx_testimonials_approved_created
ON testimonials (approved, created_at DESC);
"""

CONTACT_OUTBOX_TABLE_SCHEMA = """
CREATE TABLE IF NOT EXISTS contact_outbox (
    id INTEGER PRIMARY KEY,
    from_name TEXT NOT NULL,
    from_email TEXT NOT NULL,
    to_name TEXT NOT NULL,
    to_email TEXT NOT NULL,
    message TEXT NOT NULL,
    queued_at TEXT NOT NULL
);
"""


class SQLiteClient:
    """Lightweight wrapper around sqlite3 shared by the local repositories."""

    def __init__(self, db_path: str | Path) -> None:
        """Initialize the SQLite client.

        Args:
            db_path (str | Path): Path to the database file, or ``:memory:``.
        """

        self._memory = str(db_path) == ":memory:"
        self._db_path = Path(db_path)
        if not self._memory:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection: Optional[sqlite3.Connection] = None

    @property
    def connection(self) -> sqlite3.Connection:
        """Return or lazily open the SQLite connection."""
        if self._connection is None:
            target = ":memory:" if self._memory else str(self._db_path)
            self._connection = sqlite3.connect(target)
            self._connection.row_factory = sqlite3.Row
        return self._connection

    def initialize_schema(self) -> None:
        """Create the testimonial and outbox tables when missing."""
        with self.connection as conn:
            conn.execute(TESTIMONIALS_TABLE_SCHEMA)
            conn.execute(TESTIMONIALS_INDEX_SCHEMA)
            conn.execute(CONTACT_OUTBOX_TABLE_SCHEMA)

    def close(self) -> None:
        """Close and discard the active connection."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None
