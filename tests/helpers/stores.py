"""In-memory review store double for controller tests."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Mapping, Optional

from testimonials.db.store import StoreError

BASE_TIME = datetime(2025, 1, 1, tzinfo=timezone.utc)


def make_record(
    record_id: int,
    *,
    name: str | None = None,
    review: str | None = None,
    position: str | None = "Engineer",
    rating: Any = 5,
    approved: bool = True,
    minutes: int | None = None,
) -> dict[str, Any]:
    """Build a store row; larger ``minutes`` means newer."""

    offset = record_id if minutes is None else minutes
    return {
        "id": record_id,
        "name": name if name is not None else f"Reviewer {record_id}",
        "position": position,
        "review": review if review is not None else f"Review body {record_id}",
        "rating": rating,
        "approved": approved,
        "created_at": (BASE_TIME + timedelta(minutes=offset)).isoformat().replace("+00:00", "Z"),
    }


@dataclass
class RecordingSubscription:
    callback: Callable[[dict[str, Any]], None]
    on_closed: Optional[Callable[[Exception], None]]
    closed: bool = False
    close_calls: int = 0

    def close(self) -> None:
        self.close_calls += 1
        self.closed = True


@dataclass
class InMemoryReviewStore:
    """Store double with manual delivery of insertion notifications."""

    records: list[dict[str, Any]] = field(default_factory=list)
    query_error: Optional[Exception] = None
    query_result: Any = None
    insert_error: Optional[Exception] = None
    echo_result: Any = None
    auto_echo: bool = True
    subscriptions: list[RecordingSubscription] = field(default_factory=list)
    inserted: list[dict[str, Any]] = field(default_factory=list)
    query_calls: int = 0
    unsubscribe_calls: int = 0

    async def query_approved(self) -> list[dict[str, Any]]:
        self.query_calls += 1
        if self.query_error is not None:
            raise self.query_error
        if self.query_result is not None:
            return self.query_result
        approved = [dict(record) for record in self.records if record.get("approved")]
        return sorted(approved, key=lambda record: record["created_at"], reverse=True)

    async def insert(self, record: Mapping[str, Any]) -> dict[str, Any]:
        if self.insert_error is not None:
            raise self.insert_error
        next_id = max((int(r["id"]) for r in self.records), default=0) + 1
        row = make_record(next_id, **{k: record[k] for k in ("name", "review", "position", "rating", "approved")})
        self.records.append(row)
        self.inserted.append(dict(record))
        if self.auto_echo:
            asyncio.get_running_loop().call_soon(self.deliver, dict(row))
        if self.echo_result is not None:
            return self.echo_result
        return dict(row)

    def subscribe_insertions(
        self,
        callback: Callable[[dict[str, Any]], None],
        *,
        on_closed: Optional[Callable[[Exception], None]] = None,
    ) -> RecordingSubscription:
        subscription = RecordingSubscription(callback=callback, on_closed=on_closed)
        self.subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription: RecordingSubscription) -> None:
        self.unsubscribe_calls += 1
        subscription.close()

    def deliver(self, record: dict[str, Any]) -> int:
        """Push ``record`` to every open subscription; return how many received it."""

        delivered = 0
        for subscription in self.subscriptions:
            if not subscription.closed:
                subscription.callback(dict(record))
                delivered += 1
        return delivered

    def drop_channel(self, error: Exception | None = None) -> None:
        error = error or StoreError("connection reset")
        for subscription in self.subscriptions:
            if subscription.closed:
                continue
            subscription.closed = True
            if subscription.on_closed is not None:
                subscription.on_closed(error)


__all__ = ["BASE_TIME", "InMemoryReviewStore", "RecordingSubscription", "make_record"]
