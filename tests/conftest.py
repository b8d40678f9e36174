from pathlib import Path
import sys

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture()
def fallback_records() -> list[dict]:
    return [
        {"name": "Static One", "position": "Founder", "review": "First bundled review.", "rating": 4},
        {"name": "Static Two", "position": "", "review": "Second bundled review."},
        {"name": "Static Three", "review": "Third bundled review.", "rating": 9},
    ]
