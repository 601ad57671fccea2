"""Tests for the derived prompt views."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from core.query import (
    SortMode,
    favorite_prompts,
    filtered_view,
    history_prompts,
    matches_search,
    resolve_sort_mode,
)
from models.app_state import AppState


@pytest.fixture()
def state(prompt_factory) -> AppState:
    return AppState(
        prompts=[
            prompt_factory(
                "a",
                title="Cold outreach email",
                category="marketing",
                created_at=datetime(2025, 1, 1, tzinfo=UTC),
                average_rating=4.0,
                usage_count=1,
            ),
            prompt_factory(
                "b",
                title="Bug report template",
                category="development",
                tags=["Debugging"],
                created_at=datetime(2025, 3, 1, tzinfo=UTC),
                average_rating=2.5,
                usage_count=9,
            ),
            prompt_factory(
                "c",
                title="Ad copy",
                category="marketing",
                description="Short social media ads",
                created_at=datetime(2025, 2, 1, tzinfo=UTC),
            ),
        ]
    )


def test_filtered_view_defaults_to_newest_first(state: AppState) -> None:
    assert [prompt.id for prompt in filtered_view(state)] == ["b", "c", "a"]


def test_filtered_view_applies_category_and_search(state: AppState) -> None:
    state.selected_category = "marketing"
    state.search_query = "SOCIAL"

    assert [prompt.id for prompt in filtered_view(state)] == ["c"]


def test_filtered_view_searches_tags(state: AppState) -> None:
    state.search_query = "debug"

    assert [prompt.id for prompt in filtered_view(state)] == ["b"]


def test_filtered_view_favorites_only(state: AppState) -> None:
    state.favorites = ["a", "ghost"]
    state.show_favorites_only = True

    assert [prompt.id for prompt in filtered_view(state)] == ["a"]


@pytest.mark.parametrize(
    ("mode", "expected"),
    [
        ("oldest", ["a", "c", "b"]),
        ("title", ["c", "b", "a"]),
        ("rating", ["a", "b", "c"]),
        ("usage", ["b", "a", "c"]),
    ],
)
def test_filtered_view_sort_modes(state: AppState, mode: str, expected: list[str]) -> None:
    state.sort_by = mode

    assert [prompt.id for prompt in filtered_view(state)] == expected


def test_resolve_sort_mode_accepts_aliases() -> None:
    assert resolve_sort_mode("date") is SortMode.NEWEST
    assert resolve_sort_mode("Name") is SortMode.TITLE
    assert resolve_sort_mode("bogus") is SortMode.NEWEST
    assert resolve_sort_mode(None) is SortMode.NEWEST


def test_favorites_and_history_skip_dangling_ids(state: AppState) -> None:
    state.favorites = ["c", "missing", "a"]
    state.history = ["gone", "b"]

    assert [prompt.id for prompt in favorite_prompts(state)] == ["c", "a"]
    assert [prompt.id for prompt in history_prompts(state)] == ["b"]


def test_blank_search_matches_everything(prompt_factory) -> None:
    assert matches_search(prompt_factory("x"), "   ")
