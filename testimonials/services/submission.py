"""Review submission controller.

Updates:
    v0.1.0 - 2025-11-10 - Validate drafts locally and forward them to the store.
    v0.2.0 - 2025-11-18 - Count a committed insert as success even if its echo is unreadable.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..core.errors import MalformedRecordError, SubmissionFailure, ValidationFailure
from ..core.models import DraftReview, Review
from ..db.store import RemoteReviewStore, StoreError

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "review")


def validate_draft(draft: DraftReview) -> None:
    """Reject drafts whose required fields are blank.

    Args:
        draft (DraftReview): Form state to check.

    Raises:
        ValidationFailure: Naming every empty required field.
    """

    missing = [
        field_name
        for field_name in REQUIRED_FIELDS
        if not getattr(draft, field_name, "").strip()
    ]
    if missing:
        raise ValidationFailure(
            missing, {field_name: f"{field_name.capitalize()} is required" for field_name in missing}
        )


class SubmissionController:
    """Sends new reviews to the store and owns the draft form state.

    Accepted reviews are not added to any local list here; they appear once
    the store echoes the insert through the sync controller's subscription.
    """

    def __init__(self, store: RemoteReviewStore, draft: Optional[DraftReview] = None) -> None:
        self._store = store
        self.draft = draft or DraftReview()
        self.submitting = False

    async def submit(self, draft: Optional[DraftReview] = None) -> Optional[Review]:
        """Validate and insert the draft.

        Once the store accepts the insert the draft is reset, even if the echoed
        record cannot be mapped, so that a retry does not duplicate the review.

        Args:
            draft (DraftReview | None): Replacement form state; the owned draft is
                used when omitted.

        Returns:
            Review | None: The record as stored, or ``None`` when the store
                accepted the insert but echoed an unreadable record.

        Raises:
            ValidationFailure: If name or review text is blank. No store call is made.
            SubmissionFailure: If the store insert fails. The draft is kept for retry.
        """

        if draft is not None:
            self.draft = draft
        validate_draft(self.draft)

        payload = self.draft.to_insert_payload()
        self.submitting = True
        try:
            record = await self._store.insert(payload)
        except StoreError as exc:
            logger.warning("submission_failed", extra={"error": str(exc)})
            raise SubmissionFailure(f"Failed to submit review: {exc}") from exc
        except Exception as exc:
            logger.exception("submission_crashed")
            raise SubmissionFailure(f"Failed to submit review: {exc!r}") from exc
        finally:
            self.submitting = False

        self.draft.reset()
        try:
            stored = Review.from_record(record)
        except MalformedRecordError as exc:
            logger.warning("submission_echo_unreadable", extra={"error": str(exc)})
            return None
        logger.info("review_submitted", extra={"record_id": stored.id})
        return stored
