"""Testimonial board facade for rendering layers.

Updates:
    v0.1.0 - 2025-11-11 - Compose sync, pagination, gesture and submission controllers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..core.errors import LoadFailure, SubmissionFailure, SubscriptionFailure, ValidationFailure
from ..core.models import DraftReview, Review
from ..db.store import RemoteReviewStore
from .fallback import FallbackSource
from .gesture import DEFAULT_SWIPE_THRESHOLD, GestureInputAdapter
from .pagination import DEFAULT_WINDOW_SIZE, PaginationController
from .review_sync import LoadResult, ReviewSyncController
from .submission import SubmissionController

logger = logging.getLogger(__name__)


@dataclass
class BoardStatus:
    """Flags the rendering layer reads to show spinners, banners and alerts."""

    loading: bool = False
    submitting: bool = False
    stale: bool = False
    load_error: Optional[LoadFailure] = None
    submission_error: Optional[SubmissionFailure] = None
    validation_errors: dict[str, str] = field(default_factory=dict)


class ReviewBoard:
    """Single entry point for the testimonials section.

    Can be used as an async context manager: entering loads and subscribes,
    leaving tears the subscription down.
    """

    def __init__(
        self,
        store: RemoteReviewStore,
        fallback_source: FallbackSource,
        *,
        window_size: int = DEFAULT_WINDOW_SIZE,
        swipe_threshold: float = DEFAULT_SWIPE_THRESHOLD,
    ) -> None:
        self.sync = ReviewSyncController(store, fallback_source)
        self.pagination: PaginationController[Review] = PaginationController(
            lambda: self.sync.reviews, window_size=window_size
        )
        self.gestures = GestureInputAdapter(self.pagination, swipe_threshold=swipe_threshold)
        self.submission = SubmissionController(store)
        self.sync.add_listener(self.pagination.on_list_changed)
        self._submission_error: Optional[SubmissionFailure] = None
        self._validation_errors: dict[str, str] = {}

    async def __aenter__(self) -> "ReviewBoard":
        await self.start()
        return self

    async def __aexit__(self, *_exc_info: object) -> None:
        self.close()

    async def start(self) -> LoadResult:
        """Load the initial list, then open the insertion subscription."""

        result = await self.sync.load_initial()
        self.sync.subscribe()
        return result

    def close(self) -> None:
        self.sync.teardown()

    @property
    def status(self) -> BoardStatus:
        sync_status = self.sync.status
        return BoardStatus(
            loading=sync_status.loading,
            submitting=self.submission.submitting,
            stale=sync_status.stale,
            load_error=sync_status.load_error,
            submission_error=self._submission_error,
            validation_errors=dict(self._validation_errors),
        )

    @property
    def subscription_error(self) -> Optional[SubscriptionFailure]:
        error = self.sync.status.last_error
        return error if isinstance(error, SubscriptionFailure) else None

    def visible_slice(self) -> list[Review]:
        return self.pagination.visible_slice()

    def total_groups(self) -> int:
        return self.pagination.total_groups()

    def current_group(self) -> int:
        return self.pagination.current_group()

    def display_group(self) -> int:
        return self.pagination.display_group()

    def controls_hidden(self) -> bool:
        return self.pagination.controls_hidden()

    def on_wheel(self, delta_y: float) -> bool:
        return self.gestures.on_wheel(delta_y)

    def on_touch_start(self, x: float, y: float) -> None:
        self.gestures.on_touch_start(x, y)

    def on_touch_move(self, x: float, y: float) -> bool:
        return self.gestures.on_touch_move(x, y)

    def on_touch_end(self) -> None:
        self.gestures.on_touch_end()

    def on_prev_click(self) -> bool:
        return self.gestures.on_prev_click()

    def on_next_click(self) -> bool:
        return self.gestures.on_next_click()

    async def on_submit(self, draft: Optional[DraftReview] = None) -> bool:
        """Submit a review and record any failure in ``status``.

        Returns:
            bool: ``True`` when the store accepted the review.
        """

        self._validation_errors = {}
        self._submission_error = None
        try:
            await self.submission.submit(draft)
        except ValidationFailure as exc:
            self._validation_errors = dict(exc.messages)
            return False
        except SubmissionFailure as exc:
            self._submission_error = exc
            return False
        return True

    def dismiss_alert(self) -> None:
        self._submission_error = None
