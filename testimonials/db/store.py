"""Remote review store contract and the polling insertion channel.

Updates:
    v0.1.0 - 2025-11-09 - Added RemoteReviewStore protocol and StoreError.
    v0.2.0 - 2025-11-12 - Added PollingChannel shared by the SQLite and REST stores.
    v0.3.0 - 2025-11-18 - Skip rows re-read at the watermark; any fetch failure closes the channel.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Mapping, Optional, Protocol

logger = logging.getLogger(__name__)

Record = dict[str, Any]
InsertCallback = Callable[[Record], None]
ClosedCallback = Callable[[Exception], None]


class StoreError(RuntimeError):
    """Raised by store adapters for any network, database or payload failure."""


class Subscription(Protocol):
    """Handle returned by ``subscribe_insertions``."""

    @property
    def closed(self) -> bool:
        ...

    def close(self) -> None:
        ...


class RemoteReviewStore(Protocol):
    """Queryable, appendable review collection with insertion notifications."""

    async def query_approved(self) -> list[Record]:
        """Return approved records ordered by ``created_at`` descending.

        Implementations record the insertion watermark as of this query, so a
        subscription opened afterwards also delivers rows committed while the
        query ran. Overlapping rows are expected; subscribers dedupe by id.
        """

        ...

    async def insert(self, record: Mapping[str, Any]) -> Record:
        """Insert ``record`` and return the stored row with id and timestamp."""

        ...

    def subscribe_insertions(
        self,
        callback: InsertCallback,
        *,
        on_closed: Optional[ClosedCallback] = None,
    ) -> Subscription:
        """Deliver every newly inserted record to ``callback`` until unsubscribed."""

        ...

    def unsubscribe(self, subscription: Subscription) -> None:
        ...


class PollingChannel:
    """Insertion channel that polls a store for rows past a watermark.

    The channel runs as a task on the current event loop. Rows are delivered in
    the order the fetch returns them, one callback per row. Fetches may re-read
    rows at the current watermark (inclusive filters); rows already delivered at
    that watermark are skipped by id. Any exception from the baseline or the
    fetch ends the channel and is reported once through ``on_closed``.
    """

    def __init__(
        self,
        fetch_since: Callable[[Any], Awaitable[list[Record]]],
        watermark_of: Callable[[Record], Any],
        callback: InsertCallback,
        *,
        baseline: Optional[Callable[[], Awaitable[Any]]] = None,
        on_closed: Optional[ClosedCallback] = None,
        poll_interval: float = 2.0,
        name: str = "insertions",
    ) -> None:
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        self._fetch_since = fetch_since
        self._watermark_of = watermark_of
        self._callback = callback
        self._baseline = baseline
        self._on_closed = on_closed
        self._poll_interval = poll_interval
        self._name = name
        self._watermark: Any = None
        self._edge_ids: set[Any] = set()
        self._closed = False
        self._task: asyncio.Task[None] | None = None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def watermark(self) -> Any:
        return self._watermark

    def start(self) -> "PollingChannel":
        """Schedule the polling task on the running event loop.

        Returns:
            PollingChannel: ``self`` for call chaining.

        Raises:
            RuntimeError: If called without a running event loop.
        """

        if self._task is None and not self._closed:
            loop = asyncio.get_running_loop()
            self._task = loop.create_task(self._run(), name=f"polling-{self._name}")
            logger.debug("channel_opened", extra={"channel": self._name})
        return self

    def close(self) -> None:
        """Stop delivery. Safe to call more than once."""

        if self._closed:
            return
        self._closed = True
        task = self._task
        if task is not None and not task.done():
            try:
                current = asyncio.current_task()
            except RuntimeError:
                current = None
            if task is not current:
                task.cancel()
        logger.debug("channel_closed", extra={"channel": self._name})

    async def _run(self) -> None:
        try:
            if self._baseline is not None:
                self._watermark = await self._baseline()
            while not self._closed:
                await asyncio.sleep(self._poll_interval)
                if self._closed:
                    return
                rows = await self._fetch_since(self._watermark)
                for row in rows:
                    if self._closed:
                        return
                    if not self._advance_watermark(row):
                        continue
                    self._deliver(row)
        except StoreError as exc:
            self._fail(exc)
        except Exception as exc:
            logger.exception("channel_fetch_crashed", extra={"channel": self._name})
            self._fail(exc)

    def _advance_watermark(self, row: Record) -> bool:
        """Move the watermark to ``row``; ``False`` when it was already delivered."""

        mark = self._watermark_of(row)
        row_id = row.get("id")
        if mark == self._watermark:
            if row_id in self._edge_ids:
                return False
        else:
            self._watermark = mark
            self._edge_ids = set()
        self._edge_ids.add(row_id)
        return True

    def _deliver(self, row: Record) -> None:
        try:
            self._callback(row)
        except Exception:
            logger.exception(
                "channel_callback_failed",
                extra={"channel": self._name, "record_id": row.get("id")},
            )

    def _fail(self, exc: Exception) -> None:
        if self._closed:
            return
        self._closed = True
        logger.warning(
            "channel_failed", extra={"channel": self._name, "error": str(exc)}
        )
        if self._on_closed is not None:
            self._on_closed(exc)


__all__ = [
    "ClosedCallback",
    "InsertCallback",
    "PollingChannel",
    "Record",
    "RemoteReviewStore",
    "StoreError",
    "Subscription",
]
