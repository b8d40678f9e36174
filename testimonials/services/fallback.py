"""Bundled fallback testimonials.

Updates:
    v0.1.0 - 2025-11-09 - Load static reviews shipped with the package.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable

from ..core.errors import MalformedRecordError
from ..core.models import Review
from .config_service import DEFAULT_FALLBACK_PATH

logger = logging.getLogger(__name__)


class FallbackSource:
    """Immutable ordered sequence of reviews used when the store is unreachable."""

    def __init__(
        self,
        dataset_path: Path | str = DEFAULT_FALLBACK_PATH,
        *,
        records: Iterable[dict[str, Any]] | None = None,
    ) -> None:
        """Configure the source.

        Args:
            dataset_path (Path | str): JSON file holding a list of review entries.
            records (Iterable[dict[str, Any]] | None): In-memory entries that take
                precedence over the file.
        """

        self._dataset_path = Path(dataset_path)
        self._records: tuple[dict[str, Any], ...] | None = (
            tuple(dict(record) for record in records) if records is not None else None
        )

    def records(self) -> tuple[dict[str, Any], ...]:
        if self._records is None:
            self._records = tuple(self._load_dataset())
        return self._records

    def reviews(self) -> list[Review]:
        """Return the fallback entries mapped and defaulted as reviews.

        Returns:
            list[Review]: Reviews in bundled order. Entries without an id are
                assigned ``fallback-<n>``. Unusable entries are skipped.
        """

        reviews: list[Review] = []
        for index, record in enumerate(self.records(), start=1):
            try:
                reviews.append(Review.from_record(record, fallback_id=f"fallback-{index}"))
            except MalformedRecordError as exc:
                logger.warning("Skipping fallback entry %s: %s", index, exc)
        return reviews

    def _load_dataset(self) -> list[dict[str, Any]]:
        if not self._dataset_path.exists():
            logger.warning("Fallback dataset not found at %s", self._dataset_path)
            return []
        with self._dataset_path.open("r", encoding="utf-8") as fh:
            try:
                data = json.load(fh)
            except json.JSONDecodeError as exc:
                logger.warning("Fallback dataset %s is not valid JSON: %s", self._dataset_path, exc)
                return []
        if not isinstance(data, list):
            logger.warning("Fallback dataset %s must contain a list", self._dataset_path)
            return []
        return [item for item in data if isinstance(item, dict)]
