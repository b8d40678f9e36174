"""Persistence helpers for queued contact messages.

Updates:
    v0.1.0 - 2025-11-13 - Added outbox table used as the contact message transport.
    v0.2.0 - 2025-11-18 - Report database errors from listing and clearing as StoreError.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from typing import Any, Mapping

from .sqlite_client import SQLiteClient
from .store import StoreError


class OutboxRepository:
    """Queues outbound contact envelopes for delivery by an external sender."""

    def __init__(self, sqlite_client: SQLiteClient) -> None:
        self._sqlite = sqlite_client

    def send(self, envelope: Mapping[str, Any]) -> int:
        queued_at = (
            datetime.now(timezone.utc)
            .replace(microsecond=0)
            .isoformat()
            .replace("+00:00", "Z")
        )
        try:
            with self._sqlite.connection as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO contact_outbox (from_name, from_email, to_name, to_email, message, queued_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        envelope["from_name"],
                        envelope["from_email"],
                        envelope["to_name"],
                        envelope["to_email"],
                        envelope["message"],
                        queued_at,
                    ),
                )
                return cursor.lastrowid
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to queue contact message: {exc}") from exc

    def pending(self, limit: int = 20) -> list[dict[str, Any]]:
        """Return the most recently queued envelopes, newest first."""

        try:
            with self._sqlite.connection as conn:
                cursor = conn.execute(
                    """
                    SELECT id, from_name, from_email, to_name, to_email, message, queued_at
                    FROM contact_outbox
                    ORDER BY id DESC
                    LIMIT ?
                    """,
                    (limit,),
                )
                return [dict(row) for row in cursor.fetchall()]
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to read contact outbox: {exc}") from exc

    def delete_all(self) -> int:
        """Drop every queued envelope and return how many were removed."""

        try:
            with self._sqlite.connection as conn:
                cursor = conn.execute("DELETE FROM contact_outbox")
                return cursor.rowcount
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to clear contact outbox: {exc}") from exc
