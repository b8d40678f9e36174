"""SQLite-backed review store.

Updates:
    v0.1.0 - 2025-11-10 - Added local store with polling insertion channel.
    v0.2.0 - 2025-11-18 - Start subscriptions from the id seen before the last approved query.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional

from .sqlite_client import SQLiteClient
from .store import ClosedCallback, InsertCallback, PollingChannel, Record, StoreError, Subscription

_COLUMNS = "id, name, position, review, rating, approved, created_at"


def _utc_now() -> str:
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="microseconds")
        .replace("+00:00", "Z")
    )


def _row_to_record(row: sqlite3.Row) -> Record:
    record = dict(row)
    record["approved"] = bool(record.get("approved"))
    return record


class SQLiteReviewStore:
    """Review collection stored in the local ``testimonials`` table.

    Insertions made by any process sharing the database file are picked up by
    the polling channel, which tracks the highest row id it has delivered.
    """

    def __init__(
        self,
        sqlite_client: SQLiteClient,
        *,
        poll_interval: float = 1.0,
        clock: Callable[[], str] = _utc_now,
    ) -> None:
        self._sqlite = sqlite_client
        self._poll_interval = poll_interval
        self._clock = clock
        self._query_mark: Optional[int] = None

    async def query_approved(self) -> list[Record]:
        mark = await self.latest_id()
        rows = self._execute(
            f"""
            SELECT {_COLUMNS}
            FROM testimonials
            WHERE approved = 1
            ORDER BY created_at DESC, id DESC
            """
        )
        self._query_mark = mark
        return [_row_to_record(row) for row in rows]

    async def insert(self, record: Mapping[str, Any]) -> Record:
        """Insert a record and echo the stored row.

        Args:
            record (Mapping[str, Any]): Review fields; ``id`` and ``created_at`` are
                assigned by the store.

        Returns:
            Record: The persisted row.

        Raises:
            StoreError: If the database rejects the insert.
        """

        created_at = self._clock()
        try:
            with self._sqlite.connection as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO testimonials (name, position, review, rating, approved, created_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        record.get("name"),
                        record.get("position"),
                        record.get("review"),
                        record.get("rating"),
                        1 if record.get("approved") else 0,
                        created_at,
                    ),
                )
                row_id = cursor.lastrowid
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to insert testimonial: {exc}") from exc

        rows = self._execute(
            f"SELECT {_COLUMNS} FROM testimonials WHERE id = ?", (row_id,)
        )
        if not rows:
            raise StoreError(f"Inserted testimonial {row_id} could not be read back.")
        return _row_to_record(rows[0])

    async def fetch_since(self, last_id: Optional[int]) -> list[Record]:
        rows = self._execute(
            f"SELECT {_COLUMNS} FROM testimonials WHERE id > ? ORDER BY id ASC",
            (last_id or 0,),
        )
        return [_row_to_record(row) for row in rows]

    async def latest_id(self) -> int:
        rows = self._execute("SELECT COALESCE(MAX(id), 0) AS latest FROM testimonials")
        return int(rows[0]["latest"]) if rows else 0

    def subscribe_insertions(
        self,
        callback: InsertCallback,
        *,
        on_closed: Optional[ClosedCallback] = None,
    ) -> Subscription:
        """Open a polling channel for rows inserted after the last approved query.

        Without a prior query the channel starts from the newest row.
        """

        channel = PollingChannel(
            self.fetch_since,
            lambda row: row["id"],
            callback,
            baseline=self._baseline,
            on_closed=on_closed,
            poll_interval=self._poll_interval,
            name="sqlite-testimonials",
        )
        return channel.start()

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.close()

    async def _baseline(self) -> int:
        if self._query_mark is not None:
            return self._query_mark
        return await self.latest_id()

    def _execute(self, query: str, params: tuple[Any, ...] = ()) -> list[sqlite3.Row]:
        try:
            with self._sqlite.connection as conn:
                return conn.execute(query, params).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"SQLite query failed: {exc}") from exc
