import json
from pathlib import Path

from testimonials.services.config_service import DEFAULT_FALLBACK_PATH
from testimonials.services.fallback import FallbackSource


def test_bundled_dataset_loads() -> None:
    reviews = FallbackSource(DEFAULT_FALLBACK_PATH).reviews()

    assert reviews
    assert all(1 <= review.rating <= 5 for review in reviews)
    assert all(review.position for review in reviews)
    assert len({review.id for review in reviews}) == len(reviews)


def test_malformed_entries_are_skipped(tmp_path: Path) -> None:
    dataset = tmp_path / "reviews.json"
    dataset.write_text(
        json.dumps(
            [
                {"name": "Ada", "review": "Great"},
                {"name": "", "review": "No name"},
                "not a mapping",
                {"id": "keep-me", "name": "Bo", "review": "Fine", "rating": "3"},
            ]
        ),
        encoding="utf-8",
    )

    reviews = FallbackSource(dataset).reviews()

    assert [review.id for review in reviews] == ["fallback-1", "keep-me"]
    assert reviews[1].rating == 3


def test_missing_or_invalid_file_yields_nothing(tmp_path: Path) -> None:
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    wrong_shape = tmp_path / "object.json"
    wrong_shape.write_text('{"reviews": []}', encoding="utf-8")

    assert FallbackSource(tmp_path / "absent.json").reviews() == []
    assert FallbackSource(broken).reviews() == []
    assert FallbackSource(wrong_shape).reviews() == []


def test_in_memory_records_take_precedence(fallback_records) -> None:
    source = FallbackSource(Path("/does/not/exist.json"), records=fallback_records)

    assert len(source.records()) == 3
    assert source.reviews()[2].rating == 5
