"""Application state and cache bookkeeping models.

Updates: v0.2.1 - 2026-10-17 - Skip undecodable entries one at a time.
Updates: v0.2.0 - 2026-10-13 - Repair missing collections when loading persisted state.
Updates: v0.1.0 - 2026-10-08 - Introduce AppState and CacheMetadata dataclasses.
"""
from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, TypeVar

from .category_model import ALL_CATEGORY_ID, Category
from .prompt_model import (
    Prompt,
    UserRating,
    format_datetime,
    normalise_record,
    parse_datetime,
    string_list,
)

HISTORY_LIMIT = 50
DEFAULT_REFRESH_INTERVAL_MINUTES = 60
DEFAULT_THEME = "light"
DEFAULT_SORT_MODE = "newest"
THEMES = ("light", "dark")

logger = logging.getLogger("prompt_vault.models")

_ENTRY_ERRORS = (TypeError, ValueError, KeyError, AttributeError)


def _utc_now() -> datetime:
    return datetime.now(UTC)


def new_data_version() -> str:
    """Return a short opaque token identifying a catalog revision."""
    return uuid.uuid4().hex[:8]


@dataclass(slots=True)
class CacheMetadata:
    """Bookkeeping for the background catalog refresh."""
    last_updated: datetime = field(default_factory=_utc_now)
    last_background_refresh: datetime | None = None
    data_version: str = field(default_factory=new_data_version)
    is_stale: bool = False
    refresh_interval_minutes: int = DEFAULT_REFRESH_INTERVAL_MINUTES
    background_refresh_enabled: bool = True

    def __post_init__(self) -> None:
        self.refresh_interval_minutes = max(1, int(self.refresh_interval_minutes))

    def is_due(self, now: datetime) -> bool:
        """Return ``True`` when a background refresh should run at *now*."""
        if self.last_background_refresh is None:
            return True
        elapsed = (now - self.last_background_refresh).total_seconds()
        return elapsed >= self.refresh_interval_minutes * 60

    def to_record(self) -> dict[str, Any]:
        return {
            "lastUpdated": format_datetime(self.last_updated),
            "lastBackgroundRefresh": format_datetime(self.last_background_refresh),
            "dataVersion": self.data_version,
            "isStale": self.is_stale,
            "refreshIntervalMinutes": self.refresh_interval_minutes,
            "backgroundRefreshEnabled": self.background_refresh_enabled,
        }

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> CacheMetadata:
        record = normalise_record(data)
        interval = record.get("refreshintervalminutes")
        return cls(
            last_updated=parse_datetime(record.get("lastupdated")) or _utc_now(),
            last_background_refresh=parse_datetime(record.get("lastbackgroundrefresh")),
            data_version=str(record.get("dataversion") or new_data_version()),
            is_stale=bool(record.get("isstale", False)),
            refresh_interval_minutes=(
                DEFAULT_REFRESH_INTERVAL_MINUTES if interval is None else int(interval)
            ),
            background_refresh_enabled=bool(record.get("backgroundrefreshenabled", True)),
        )


@dataclass(slots=True)
class AppState:
    """Everything the prompt library persists between sessions."""
    prompts: list[Prompt] = field(default_factory=list)
    categories: list[Category] = field(default_factory=list)
    favorites: list[str] = field(default_factory=list)
    user_ratings: dict[str, UserRating] = field(default_factory=dict)
    history: list[str] = field(default_factory=list)
    selected_category: str = ALL_CATEGORY_ID
    search_query: str = ""
    theme: str = DEFAULT_THEME
    sort_by: str = DEFAULT_SORT_MODE
    show_favorites_only: bool = False
    cache_metadata: CacheMetadata = field(default_factory=CacheMetadata)

    def to_record(self) -> dict[str, Any]:
        """Return the JSON document stored under the state key."""
        return {
            "prompts": [prompt.to_record() for prompt in self.prompts],
            "categories": [category.to_record() for category in self.categories],
            "favorites": list(self.favorites),
            "userRatings": {key: rating.to_record() for key, rating in self.user_ratings.items()},
            "history": list(self.history),
            "selectedCategory": self.selected_category,
            "searchQuery": self.search_query,
            "theme": self.theme,
            "sortBy": self.sort_by,
            "showFavoritesOnly": self.show_favorites_only,
            "cacheMetadata": self.cache_metadata.to_record(),
        }

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> AppState:
        """Decode persisted state.

        Null or missing collections come back empty and collections of the wrong
        shape raise so the stored entry is treated as corrupt. Individual
        prompts, categories or ratings that cannot be decoded are skipped with a
        warning; the rest of the state, user annotations included, survives.
        """
        record = normalise_record(data)
        prompts = record.get("prompts") or []
        categories = record.get("categories") or []
        ratings = record.get("userratings") or {}
        if not isinstance(prompts, list) or not isinstance(categories, list):
            raise TypeError("prompts and categories must be lists")
        if not isinstance(ratings, Mapping):
            raise TypeError("userRatings must be an object")
        metadata = record.get("cachemetadata")
        theme = str(record.get("theme") or DEFAULT_THEME)
        return cls(
            prompts=[
                prompt
                for prompt in _decode_entries(
                    "prompt", enumerate(prompts), lambda _index, item: Prompt.from_record(item)
                )
                if prompt.id
            ],
            categories=_decode_entries(
                "category", enumerate(categories), lambda _index, item: Category.from_record(item)
            ),
            favorites=_unique(string_list(record.get("favorites"))),
            user_ratings=dict(
                _decode_entries(
                    "rating",
                    ratings.items(),
                    lambda key, value: (
                        str(key),
                        UserRating.from_record(value, prompt_id=str(key)),
                    ),
                )
            ),
            history=_unique(string_list(record.get("history")))[:HISTORY_LIMIT],
            selected_category=str(record.get("selectedcategory") or ALL_CATEGORY_ID),
            search_query=str(record.get("searchquery") or ""),
            theme=theme if theme in THEMES else DEFAULT_THEME,
            sort_by=str(record.get("sortby") or DEFAULT_SORT_MODE),
            show_favorites_only=bool(record.get("showfavoritesonly", False)),
            cache_metadata=_decode_metadata(metadata),
        )


T = TypeVar("T")


def _decode_entries(
    kind: str,
    entries: Iterable[tuple[Any, Any]],
    decode: Callable[[Any, Any], T],
) -> list[T]:
    """Decode each entry on its own, dropping the ones that do not parse."""
    decoded: list[T] = []
    for label, value in entries:
        try:
            decoded.append(decode(label, value))
        except _ENTRY_ERRORS as exc:
            logger.warning("Skipping stored %s %s: %s", kind, label, exc)
    return decoded


def _decode_metadata(metadata: Any) -> CacheMetadata:
    if metadata is None:
        return CacheMetadata()
    try:
        return CacheMetadata.from_record(metadata)
    except _ENTRY_ERRORS as exc:
        logger.warning("Resetting stored cache metadata: %s", exc)
        return CacheMetadata()


def _unique(items: list[str]) -> list[str]:
    seen: set[str] = set()
    ordered: list[str] = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        ordered.append(item)
    return ordered


__all__ = [
    "AppState",
    "CacheMetadata",
    "DEFAULT_REFRESH_INTERVAL_MINUTES",
    "DEFAULT_SORT_MODE",
    "DEFAULT_THEME",
    "HISTORY_LIMIT",
    "THEMES",
    "new_data_version",
]
