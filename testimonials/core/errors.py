"""Error taxonomy for review synchronization and submission.

Updates:
    v0.1.0 - 2025-11-09 - Added load, subscription, validation and submission failures.
"""

from __future__ import annotations

from typing import Iterable, Mapping


class ReviewError(Exception):
    """Base class for recoverable testimonial errors."""


class MalformedRecordError(ValueError):
    """Raised when a store row or fallback entry cannot be mapped to a review."""


class LoadFailure(ReviewError):
    """Raised when the initial review query fails or returns malformed data."""


class SubscriptionFailure(ReviewError):
    """Raised when the change-notification channel closes unexpectedly."""


class SubmissionFailure(ReviewError):
    """Raised when the store rejects or cannot receive a new record."""


class ValidationFailure(ReviewError):
    """Raised when user input fails local validation.

    Attributes:
        fields (tuple[str, ...]): Names of the offending fields, in form order.
        messages (dict[str, str]): Human readable message per field.
    """

    def __init__(
        self,
        fields: Iterable[str],
        messages: Mapping[str, str] | None = None,
    ) -> None:
        self.fields = tuple(fields)
        self.messages = dict(messages or {})
        for field_name in self.fields:
            self.messages.setdefault(field_name, f"{field_name} is required")
        super().__init__(
            "Invalid input: " + ", ".join(self.fields) if self.fields else "Invalid input"
        )


__all__ = [
    "LoadFailure",
    "MalformedRecordError",
    "SubmissionFailure",
    "SubscriptionFailure",
    "ReviewError",
    "ValidationFailure",
]
