"""Fixed-size paging window over the review list.

Updates:
    v0.1.0 - 2025-11-10 - Added cursor clamping, group counts and list-change re-clamp.
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Generic, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_WINDOW_SIZE = 3


class PaginationController(Generic[T]):
    """Derives the visible window from a list and a cursor.

    The cursor is the index of the first visible item. It always satisfies
    ``0 <= cursor <= max(0, len(items) - window_size)``; it is not required to be
    a multiple of the window size.
    """

    def __init__(
        self,
        items_provider: Callable[[], Sequence[T]],
        window_size: int = DEFAULT_WINDOW_SIZE,
    ) -> None:
        if window_size < 1:
            raise ValueError("window_size must be at least 1")
        self._items = items_provider
        self._window_size = window_size
        self._cursor = 0

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def window_size(self) -> int:
        return self._window_size

    @property
    def length(self) -> int:
        return len(self._items())

    def visible_slice(self) -> list[T]:
        items = self._items()
        return list(items[self._cursor : self._cursor + self._window_size])

    def total_groups(self) -> int:
        return math.ceil(self.length / self._window_size)

    def current_group(self) -> int:
        """Zero-based index of the group containing the cursor."""
        return self._cursor // self._window_size

    def display_group(self) -> int:
        """One-based group number for display; 0 when there is nothing to show."""
        return self.current_group() + 1 if self.length else 0

    def max_cursor(self) -> int:
        return max(0, self.length - self._window_size)

    def controls_hidden(self) -> bool:
        return self.length <= self._window_size

    def at_start(self) -> bool:
        return self._cursor <= 0

    def at_end(self) -> bool:
        return self._cursor >= self.max_cursor()

    def can_advance(self, direction: int) -> bool:
        _check_direction(direction)
        return self._clamp(self._cursor + direction * self._window_size) != self._cursor

    def advance(self, direction: int) -> bool:
        """Move the cursor one group forward (``+1``) or back (``-1``).

        Args:
            direction (int): ``+1`` or ``-1``.

        Returns:
            bool: ``True`` when the cursor moved, ``False`` when already at that edge.

        Raises:
            ValueError: If ``direction`` is not ``+1`` or ``-1``.
        """

        _check_direction(direction)
        target = self._clamp(self._cursor + direction * self._window_size)
        if target == self._cursor:
            logger.debug(
                "pagination_at_boundary",
                extra={"cursor": self._cursor, "direction": direction},
            )
            return False
        self._cursor = target
        return True

    def seek(self, cursor: int) -> int:
        """Jump to ``cursor`` clamped to the valid range and return the result."""

        self._cursor = self._clamp(int(cursor))
        return self._cursor

    def reset(self) -> None:
        self._cursor = 0

    def on_list_changed(self) -> None:
        """Re-clamp the cursor after the underlying list changed size."""

        clamped = self._clamp(self._cursor)
        if clamped != self._cursor:
            logger.debug(
                "pagination_reclamped", extra={"cursor": self._cursor, "clamped": clamped}
            )
            self._cursor = clamped

    def _clamp(self, value: int) -> int:
        return min(max(value, 0), self.max_cursor())


def _check_direction(direction: int) -> None:
    if direction not in (1, -1) or isinstance(direction, bool):
        raise ValueError(f"direction must be +1 or -1, got {direction!r}")
