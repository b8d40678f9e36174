"""Review synchronization controller.

Updates:
    v0.1.0 - 2025-11-10 - Initial load with fallback, insertion subscription and teardown.
    v0.2.0 - 2025-11-12 - Deduplicate notifications by id and place late arrivals by time.
    v0.3.0 - 2025-11-18 - Treat any store exception during load as a load failure; start in loading state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Literal, Optional

from ..core.errors import LoadFailure, MalformedRecordError, ReviewError, SubscriptionFailure
from ..core.models import Review
from ..db.store import RemoteReviewStore, StoreError, Subscription
from .fallback import FallbackSource

logger = logging.getLogger(__name__)

ListListener = Callable[[], None]
LoadSource = Literal["none", "remote", "fallback"]


@dataclass
class SyncStatus:
    """Diagnostic flags exposed to the rendering layer.

    ``loading`` starts ``True`` so a view rendered before the first load shows a
    loading state rather than an empty board.
    """

    loading: bool = True
    stale: bool = False
    source: LoadSource = "none"
    load_error: Optional[LoadFailure] = None
    last_error: Optional[ReviewError] = None


@dataclass(slots=True, frozen=True)
class LoadResult:
    """Outcome of ``ReviewSyncController.load_initial``."""

    source: LoadSource
    count: int
    error: Optional[LoadFailure] = None

    @property
    def used_fallback(self) -> bool:
        return self.source == "fallback"


class ReviewSyncController:
    """Owns the ordered review list and keeps it consistent with the store.

    The list is replaced wholesale by ``load_initial`` and afterwards only grows
    through insertion notifications. Every mutation notifies the registered
    listeners so that dependent state such as the paging cursor can re-clamp.
    """

    def __init__(self, store: RemoteReviewStore, fallback_source: FallbackSource) -> None:
        self._store = store
        self._fallback = fallback_source
        self._reviews: list[Review] = []
        self._ids: set[str] = set()
        self._listeners: list[ListListener] = []
        self._subscription: Subscription | None = None
        self._torn_down = False
        self.status = SyncStatus()

    @property
    def reviews(self) -> tuple[Review, ...]:
        return tuple(self._reviews)

    @property
    def subscribed(self) -> bool:
        return self._subscription is not None and not self._subscription.closed

    def __len__(self) -> int:
        return len(self._reviews)

    def add_listener(self, listener: ListListener) -> None:
        """Register a callable invoked after every list mutation."""

        self._listeners.append(listener)

    async def load_initial(self) -> LoadResult:
        """Replace the list with approved store records, or the fallback dataset.

        Returns:
            LoadResult: Which source populated the list and any load failure. The
                failure is informational; this method never raises it.
        """

        self.status.loading = True
        try:
            try:
                reviews = await self._query_remote()
            except LoadFailure as failure:
                logger.warning(
                    "reviews_load_failed",
                    extra={"error": str(failure), "cause": repr(failure.__cause__)},
                )
                reviews = self._fallback.reviews()
                self._replace(reviews)
                self.status.source = "fallback"
                self.status.load_error = failure
                self.status.last_error = failure
                logger.info(
                    "reviews_loaded", extra={"source": "fallback", "count": len(self._reviews)}
                )
                return LoadResult(source="fallback", count=len(self._reviews), error=failure)

            self._replace(reviews)
            self.status.source = "remote"
            self.status.load_error = None
            self.status.last_error = None
            logger.info(
                "reviews_loaded", extra={"source": "remote", "count": len(self._reviews)}
            )
            return LoadResult(source="remote", count=len(self._reviews))
        finally:
            self.status.loading = False

    def subscribe(self) -> None:
        """Open the insertion channel. Must run inside the event loop.

        Calling this while a live subscription exists, or after teardown, does
        nothing.
        """

        if self._torn_down or self.subscribed:
            return
        self._subscription = self._store.subscribe_insertions(
            self._on_insert, on_closed=self._on_channel_closed
        )
        self.status.stale = False
        logger.info("subscription_opened")

    def teardown(self) -> None:
        """Release the insertion channel. Repeated calls are no-ops."""

        if self._torn_down:
            return
        self._torn_down = True
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            self._store.unsubscribe(subscription)
        logger.info("subscription_released")

    async def _query_remote(self) -> list[Review]:
        try:
            records = await self._store.query_approved()
        except StoreError as exc:
            raise LoadFailure(f"Review query failed: {exc}") from exc
        except Exception as exc:
            logger.exception("reviews_query_crashed")
            raise LoadFailure(f"Review query failed unexpectedly: {exc!r}") from exc

        if not isinstance(records, list):
            raise LoadFailure(
                f"Review query returned {type(records).__name__}, expected a list"
            )
        try:
            mapped = [Review.from_record(record) for record in records]
        except MalformedRecordError as exc:
            raise LoadFailure(f"Review query returned a malformed record: {exc}") from exc
        return [review for review in mapped if review.approved]

    def _on_insert(self, record: dict[str, Any]) -> None:
        if self._torn_down:
            return
        if not isinstance(record, dict) or record.get("approved") is not True:
            logger.debug(
                "review_ignored",
                extra={"reason": "not_approved", "record_id": _record_id(record)},
            )
            return
        try:
            review = Review.from_record(record)
        except MalformedRecordError as exc:
            logger.warning(
                "review_ignored",
                extra={"reason": "malformed", "record_id": _record_id(record), "error": str(exc)},
            )
            return
        if review.id in self._ids:
            logger.debug(
                "review_ignored", extra={"reason": "duplicate", "record_id": review.id}
            )
            return

        position = self._insert_position(review)
        self._reviews.insert(position, review)
        self._ids.add(review.id)
        logger.info("review_received", extra={"record_id": review.id, "position": position})
        self._notify()

    def _on_channel_closed(self, exc: Exception) -> None:
        if self._torn_down:
            return
        failure = SubscriptionFailure(f"Insertion channel closed: {exc}")
        failure.__cause__ = exc
        self.status.stale = True
        self.status.last_error = failure
        self._subscription = None
        logger.warning("subscription_closed", extra={"error": str(exc)})

    def _insert_position(self, review: Review) -> int:
        # Newest-first; undated reviews (fallback entries) sort after dated ones.
        if review.created_at is None:
            return len(self._reviews)
        for index, existing in enumerate(self._reviews):
            if existing.created_at is None or existing.created_at <= review.created_at:
                return index
        return len(self._reviews)

    def _replace(self, reviews: list[Review]) -> None:
        unique: list[Review] = []
        seen: set[str] = set()
        for review in reviews:
            if review.id in seen:
                continue
            seen.add(review.id)
            unique.append(review)
        self._reviews = unique
        self._ids = seen
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()


def _record_id(record: Any) -> Any:
    return record.get("id") if isinstance(record, dict) else None
