"""Derived, read-only views over the application state.

Updates:
  v0.2.0 - 2026-10-12 - Accept the legacy ``date``/``name`` sort aliases.
  v0.1.0 - 2026-10-08 - Introduce filtered view with category, search and favorites filters.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from models.category_model import ALL_CATEGORY_ID

if TYPE_CHECKING:
    from models.app_state import AppState
    from models.prompt_model import Prompt

_OLDEST_POSSIBLE = datetime.min.replace(tzinfo=UTC)


class SortMode(str, Enum):
    """Supported orderings for the filtered prompt view."""

    NEWEST = "newest"
    OLDEST = "oldest"
    TITLE = "title"
    RATING = "rating"
    USAGE = "usage"


_SORT_ALIASES = {"date": SortMode.NEWEST, "name": SortMode.TITLE}


def resolve_sort_mode(value: str | SortMode | None) -> SortMode:
    """Map *value* onto a :class:`SortMode`, falling back to newest-first."""
    if isinstance(value, SortMode):
        return value
    text = (value or "").strip().lower()
    if text in _SORT_ALIASES:
        return _SORT_ALIASES[text]
    try:
        return SortMode(text)
    except ValueError:
        return SortMode.NEWEST


def _created(prompt: Prompt) -> datetime:
    return prompt.created_at or _OLDEST_POSSIBLE


# (key, descending)
_SORT_KEYS: dict[SortMode, tuple[Callable[[Prompt], Any], bool]] = {
    SortMode.NEWEST: (_created, True),
    SortMode.OLDEST: (_created, False),
    SortMode.TITLE: (lambda prompt: prompt.title or "", False),
    SortMode.RATING: (lambda prompt: prompt.average_rating, True),
    SortMode.USAGE: (lambda prompt: prompt.usage_count, True),
}


def matches_search(prompt: Prompt, query: str) -> bool:
    """Return ``True`` when *query* occurs in the prompt's searchable text."""
    needle = query.strip().casefold()
    if not needle:
        return True
    haystacks = [prompt.title, prompt.content, prompt.description, *prompt.tags]
    return any(text and needle in text.casefold() for text in haystacks)


def sort_prompts(prompts: Iterable[Prompt], mode: str | SortMode | None) -> list[Prompt]:
    """Return *prompts* ordered by *mode*; ties keep their catalog order."""
    key, descending = _SORT_KEYS[resolve_sort_mode(mode)]
    return sorted(prompts, key=key, reverse=descending)


def filtered_view(state: AppState) -> list[Prompt]:
    """Return the prompts the user should currently see, in display order."""
    favorites = set(state.favorites)
    category = state.selected_category or ALL_CATEGORY_ID
    visible = [
        prompt
        for prompt in state.prompts
        if (category == ALL_CATEGORY_ID or prompt.category == category)
        and matches_search(prompt, state.search_query)
        and (not state.show_favorites_only or prompt.id in favorites)
    ]
    return sort_prompts(visible, state.sort_by)


def find_prompt(state: AppState, prompt_id: str) -> Prompt | None:
    for prompt in state.prompts:
        if prompt.id == prompt_id:
            return prompt
    return None


def _resolve(state: AppState, identifiers: Iterable[str]) -> list[Prompt]:
    index = {prompt.id: prompt for prompt in state.prompts}
    return [index[identifier] for identifier in identifiers if identifier in index]


def favorite_prompts(state: AppState) -> list[Prompt]:
    """Return favorited prompts in the order they were favorited."""
    return _resolve(state, state.favorites)


def history_prompts(state: AppState) -> list[Prompt]:
    """Return recently viewed prompts, most recent first."""
    return _resolve(state, state.history)


__all__ = [
    "SortMode",
    "favorite_prompts",
    "filtered_view",
    "find_prompt",
    "history_prompts",
    "matches_search",
    "resolve_sort_mode",
    "sort_prompts",
]
