"""Tests for prompt, rating, category and application state models.

Updates:
  v0.2.0 - 2026-10-13 - Cover state repair on load.
  v0.1.0 - 2026-10-07 - Cover tolerant record decoding.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from models.app_state import HISTORY_LIMIT, AppState, CacheMetadata
from models.category_model import Category, count_prompts, slugify_category
from models.prompt_model import (
    ExportData,
    Prompt,
    UserRating,
    compute_average_rating,
    parse_datetime,
)


def test_prompt_from_record_accepts_mixed_key_casing() -> None:
    prompt = Prompt.from_record(
        {
            "Id": " 42 ",
            "Title": "Launch email",
            "content": "Write to [Audience]",
            "usage_notes": "Keep it short",
            "EstimatedTime": "5 min",
            "averageRating": "4.5",
            "UsageCount": 3,
            "tags": "marketing",
            "createdAt": "2025-03-01T10:00:00Z",
        }
    )

    assert prompt.id == "42"
    assert prompt.title == "Launch email"
    assert prompt.usage_notes == "Keep it short"
    assert prompt.estimated_time == "5 min"
    assert prompt.average_rating == pytest.approx(4.5)
    assert prompt.usage_count == 3
    assert prompt.tags == ["marketing"]
    assert prompt.created_at == datetime(2025, 3, 1, 10, 0, tzinfo=UTC)
    assert prompt.updated_at is None


def test_prompt_from_record_rejects_wrong_shapes() -> None:
    with pytest.raises(TypeError):
        Prompt.from_record({"id": "1", "title": {"nested": True}})
    with pytest.raises(TypeError):
        Prompt.from_record({"id": "1", "usageCount": True})
    with pytest.raises(TypeError):
        Prompt.from_record(["not", "a", "mapping"])  # type: ignore[arg-type]


def test_prompt_record_uses_camel_case_keys() -> None:
    created = datetime(2025, 1, 2, tzinfo=UTC)
    record = Prompt(
        id="p1",
        title="Title",
        content="Body",
        usage_notes="notes",
        created_at=created,
    ).to_record()

    assert record["usageNotes"] == "notes"
    assert record["createdAt"] == created.isoformat()
    assert record["updatedAt"] is None
    assert Prompt.from_record(record).created_at == created


def test_parse_datetime_assumes_utc_for_naive_values() -> None:
    parsed = parse_datetime("2025-05-05T08:30:00")

    assert parsed is not None
    assert parsed.tzinfo is UTC
    assert parse_datetime("") is None
    with pytest.raises(ValueError):
        parse_datetime("yesterday")


def test_compute_average_rating_ignores_zero_ratings() -> None:
    assert compute_average_rating([3, 0, 5]) == pytest.approx(4.0)
    assert compute_average_rating([0, 0]) == 0.0
    assert compute_average_rating([]) == 0.0


def test_user_rating_is_clamped_and_inherits_key() -> None:
    rating = UserRating.from_record({"rating": 9, "liked": True}, prompt_id="p7")

    assert rating.prompt_id == "p7"
    assert rating.rating == 5
    assert rating.liked is True
    assert rating.comment is None
    assert UserRating(prompt_id="p7", rating=-3).rating == 0


def test_category_slugifies_identifier_and_fills_name() -> None:
    category = Category(id="Creative Writing", name="")

    assert category.id == "creative-writing"
    assert category.name == "Creative Writing"
    assert slugify_category("  Data / Analysis ") == "data-analysis"
    with pytest.raises(ValueError):
        Category(id="", name="   ")


def test_category_record_omits_derived_count() -> None:
    category = Category(id="fun", name="Fun", sort_order=3, prompt_count=12)
    record = category.to_record()

    assert record["sortOrder"] == 3
    assert "promptCount" not in record
    assert Category.from_record(record).prompt_count == 0


def test_count_prompts_counts_everything_for_all(prompt_factory) -> None:
    prompts = [
        prompt_factory("a", category="fun"),
        prompt_factory("b", category="fun"),
        prompt_factory("c", category="business"),
    ]

    assert count_prompts(Category(id="all", name="All"), prompts) == 3
    assert count_prompts(Category(id="fun", name="Fun"), prompts) == 2
    assert count_prompts(Category(id="testing", name="Testing"), prompts) == 0


def test_app_state_from_record_repairs_collections() -> None:
    history = [f"p{index}" for index in range(HISTORY_LIMIT + 10)]
    state = AppState.from_record(
        {
            "prompts": None,
            "favorites": ["a", "b", "a"],
            "history": ["x", *history, "x"],
            "theme": "sepia",
            "userRatings": {"p1": {"rating": 4}},
        }
    )

    assert state.prompts == []
    assert state.categories == []
    assert state.favorites == ["a", "b"]
    assert len(state.history) == HISTORY_LIMIT
    assert state.history[0] == "x"
    assert state.theme == "light"
    assert state.user_ratings["p1"].prompt_id == "p1"


def test_app_state_from_record_skips_bad_entries(caplog: pytest.LogCaptureFixture) -> None:
    state = AppState.from_record(
        {
            "prompts": [
                {"id": "p1", "title": "Kept"},
                {"id": "p2", "createdAt": "yesterday"},
                "not an object",
                {"title": "No id"},
            ],
            "categories": [{}, {"id": "general", "name": "General"}],
            "favorites": ["p1"],
            "userRatings": {"p1": {"rating": 4}, "p2": {"ratedAt": 12}},
            "cacheMetadata": {"lastUpdated": "soon", "refreshIntervalMinutes": 5},
        }
    )

    assert [prompt.id for prompt in state.prompts] == ["p1"]
    assert [category.id for category in state.categories] == ["general"]
    assert state.favorites == ["p1"]
    assert list(state.user_ratings) == ["p1"]
    assert state.cache_metadata.refresh_interval_minutes == 60
    assert "Skipping stored category 0" in caplog.text


def test_app_state_from_record_rejects_wrong_collection_types() -> None:
    with pytest.raises(TypeError):
        AppState.from_record({"prompts": {"id": "1"}})
    with pytest.raises(TypeError):
        AppState.from_record({"favorites": "p1"})


def test_app_state_round_trips_through_records(prompt_factory) -> None:
    state = AppState(
        prompts=[prompt_factory("p1")],
        categories=[Category(id="general", name="General")],
        favorites=["p1"],
        user_ratings={"p1": UserRating(prompt_id="p1", rating=4)},
        history=["p1"],
        theme="dark",
        sort_by="rating",
    )

    restored = AppState.from_record(state.to_record())

    assert restored.prompts == state.prompts
    assert restored.favorites == ["p1"]
    assert restored.user_ratings["p1"].rating == 4
    assert restored.theme == "dark"
    assert restored.sort_by == "rating"
    assert restored.cache_metadata.data_version == state.cache_metadata.data_version


def test_cache_metadata_due_after_interval() -> None:
    refreshed = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
    metadata = CacheMetadata(last_background_refresh=refreshed, refresh_interval_minutes=30)

    assert not metadata.is_due(refreshed + timedelta(minutes=29))
    assert metadata.is_due(refreshed + timedelta(minutes=30))
    assert CacheMetadata().is_due(refreshed)
    assert CacheMetadata(refresh_interval_minutes=0).refresh_interval_minutes == 1


def test_export_data_tolerates_missing_collections() -> None:
    export = ExportData.from_record({"exportDate": "2026-01-01T00:00:00Z"})

    assert export.prompts == []
    assert export.favorites == []
    assert export.user_ratings == {}
    assert export.export_date == "2026-01-01T00:00:00Z"
