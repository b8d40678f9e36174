"""Review domain structures.

Updates:
    v0.1.0 - 2025-11-09 - Added Review and DraftReview dataclasses with record defaulting.
    v0.2.0 - 2025-11-12 - Accept ISO timestamps with a trailing ``Z`` from the store.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping

from .errors import MalformedRecordError

DEFAULT_POSITION = "Client"
DEFAULT_RATING = 5
MIN_RATING = 1
MAX_RATING = 5


def normalize_rating(value: Any) -> int:
    """Return ``value`` when it is a valid 1-5 rating, otherwise the default.

    Args:
        value (Any): Raw rating value from a record or draft.

    Returns:
        int: Rating in the inclusive range 1-5.
    """

    if isinstance(value, bool):
        return DEFAULT_RATING
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if isinstance(value, int) and MIN_RATING <= value <= MAX_RATING:
        return value
    return DEFAULT_RATING


def normalize_position(value: Any) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return DEFAULT_POSITION


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a store timestamp into an aware ``datetime``.

    Args:
        value (Any): ISO-8601 text, a ``datetime`` or ``None``.

    Returns:
        datetime | None: Parsed timestamp, UTC when no offset was supplied.

    Raises:
        MalformedRecordError: If the value cannot be interpreted as a timestamp.
    """

    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise MalformedRecordError(f"Invalid created_at value: {value!r}") from exc
    else:
        raise MalformedRecordError(f"Invalid created_at value: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(slots=True, frozen=True)
class Review:
    """An approved testimonial as shown to visitors."""

    id: str
    name: str
    position: str
    review: str
    rating: int = DEFAULT_RATING
    approved: bool = True
    created_at: datetime | None = None

    @classmethod
    def from_record(
        cls, record: Mapping[str, Any], *, fallback_id: str | None = None
    ) -> "Review":
        """Map a raw store row or fallback entry onto a ``Review``.

        Args:
            record (Mapping[str, Any]): Row as returned by the store or bundled dataset.
            fallback_id (str | None): Identifier used when the record carries none.

        Returns:
            Review: Defaulted review instance.

        Raises:
            MalformedRecordError: If required fields are missing or invalid.
        """

        if not isinstance(record, Mapping):
            raise MalformedRecordError(
                f"Review record must be a mapping, got {type(record).__name__}"
            )

        raw_id = record.get("id")
        if raw_id is None or raw_id == "":
            if fallback_id is None:
                raise MalformedRecordError("Review record is missing an id.")
            raw_id = fallback_id

        name = record.get("name")
        body = record.get("review")
        missing = [
            field_name
            for field_name, value in (("name", name), ("review", body))
            if not isinstance(value, str) or not value.strip()
        ]
        if missing:
            raise MalformedRecordError(
                f"Review record {raw_id!r} is missing required fields: {', '.join(missing)}"
            )

        approved = record.get("approved", True)
        return cls(
            id=str(raw_id),
            name=name.strip(),
            position=normalize_position(record.get("position")),
            review=body.strip(),
            rating=normalize_rating(record.get("rating")),
            approved=approved is True,
            created_at=parse_timestamp(record.get("created_at")),
        )

    def as_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly representation of the review."""

        return {
            "id": self.id,
            "name": self.name,
            "position": self.position,
            "review": self.review,
            "rating": self.rating,
            "approved": self.approved,
            "created_at": (
                self.created_at.isoformat().replace("+00:00", "Z")
                if self.created_at
                else None
            ),
        }


@dataclass
class DraftReview:
    """Transient form state for a review that has not been accepted yet."""

    name: str = ""
    position: str = ""
    review: str = ""
    rating: int | None = DEFAULT_RATING

    def is_empty(self) -> bool:
        return not (self.name.strip() or self.position.strip() or self.review.strip())

    def reset(self) -> None:
        """Clear the draft back to an empty form."""

        self.name = ""
        self.position = ""
        self.review = ""
        self.rating = DEFAULT_RATING

    def to_insert_payload(self) -> dict[str, Any]:
        """Build the record sent to the store for this draft.

        Returns:
            dict[str, Any]: Trimmed, defaulted payload with ``approved`` forced on.
        """

        return {
            "name": self.name.strip(),
            "position": normalize_position(self.position),
            "review": self.review.strip(),
            "rating": normalize_rating(self.rating),
            "approved": True,
        }


__all__ = [
    "DEFAULT_POSITION",
    "DEFAULT_RATING",
    "DraftReview",
    "MAX_RATING",
    "MIN_RATING",
    "Review",
    "normalize_position",
    "normalize_rating",
    "parse_timestamp",
]
