"""CLI state persisted between invocations."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

PROJECT_ROOT = Path(__file__).resolve().parents[2]
STATE_PATH = Path(
    os.environ.get("TESTIMONIALS_STATE_PATH", PROJECT_ROOT / "data" / "state.json")
)


@dataclass
class AppState:
    """Paging position and last load details for the terminal board."""

    cursor: int = 0
    last_source: Optional[str] = None
    last_count: int = 0

    @classmethod
    def load(cls, path: Path = STATE_PATH) -> "AppState":
        """Load state from disk, starting fresh when the file is missing or unreadable."""

        data: dict = {}
        if path.exists():
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError):
                data = {}
        cursor = data.get("cursor", 0)
        last_count = data.get("last_count", 0)
        return cls(
            cursor=cursor if isinstance(cursor, int) and cursor >= 0 else 0,
            last_source=data.get("last_source"),
            last_count=last_count if isinstance(last_count, int) else 0,
        )

    def save(self, path: Path = STATE_PATH) -> None:
        payload = {
            "cursor": self.cursor,
            "last_source": self.last_source,
            "last_count": self.last_count,
        }
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


__all__ = ["AppState", "PROJECT_ROOT", "STATE_PATH"]
