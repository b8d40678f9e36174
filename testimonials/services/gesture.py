"""Wheel, touch and button input normalisation.

Updates:
    v0.1.0 - 2025-11-10 - Translate input events into single-group pagination steps.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .pagination import PaginationController

logger = logging.getLogger(__name__)

DEFAULT_SWIPE_THRESHOLD = 50.0


@dataclass
class _DragState:
    x: float
    y: float
    origin_cursor: int


class GestureInputAdapter:
    """Thin translator from raw input events to ``PaginationController.advance``.

    Every handler returns ``True`` when the cursor moved.
    """

    def __init__(
        self,
        pagination: PaginationController[Any],
        swipe_threshold: float = DEFAULT_SWIPE_THRESHOLD,
    ) -> None:
        self._pagination = pagination
        self._threshold = swipe_threshold
        self._drag: _DragState | None = None

    @property
    def dragging(self) -> bool:
        return self._drag is not None

    def on_wheel(self, delta_y: float) -> bool:
        if delta_y == 0:
            return False
        return self._pagination.advance(1 if delta_y > 0 else -1)

    def on_touch_start(self, x: float, y: float) -> None:
        self._drag = _DragState(x=x, y=y, origin_cursor=self._pagination.cursor)

    def on_touch_move(self, x: float, y: float) -> bool:
        """Page when the drag is horizontal and past the threshold.

        The origin moves to the current point after each step, so one sustained
        drag can page repeatedly.
        """

        drag = self._drag
        if drag is None:
            return False
        dx = drag.x - x
        dy = drag.y - y
        if abs(dx) <= self._threshold or abs(dx) <= abs(dy):
            return False

        direction = 1 if dx > 0 else -1
        moved = self._pagination.advance(direction)
        self._drag = _DragState(x=x, y=y, origin_cursor=self._pagination.cursor)
        logger.debug(
            "swipe_recognised",
            extra={"direction": direction, "moved": moved, "from_cursor": drag.origin_cursor},
        )
        return moved

    def on_touch_end(self) -> None:
        self._drag = None

    # Buttons are disabled at the edges, so a click there never reaches advance.
    def on_prev_click(self) -> bool:
        if not self._pagination.can_advance(-1):
            return False
        return self._pagination.advance(-1)

    def on_next_click(self) -> bool:
        if not self._pagination.can_advance(1):
            return False
        return self._pagination.advance(1)
