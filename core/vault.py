"""Canonical prompt library state and its mutation API.

Updates:
  v0.4.1 - 2026-10-17 - Drop imported favorites, ratings and history for missing prompts.
  v0.4.0 - 2026-10-15 - Validate imports against the export JSON Schema before touching state.
  v0.3.0 - 2026-10-14 - Add scheduler-facing catalogue replacement and cache bookkeeping.
  v0.2.0 - 2026-10-12 - Seed empty libraries through an injectable seeder.
  v0.1.0 - 2026-10-08 - Introduce PromptVault with serialized, persisted mutations.
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable, Mapping
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from jsonschema import Draft202012Validator

from models.app_state import (
    DEFAULT_REFRESH_INTERVAL_MINUTES,
    DEFAULT_THEME,
    HISTORY_LIMIT,
    THEMES,
    AppState,
    CacheMetadata,
    new_data_version,
)
from models.category_model import ALL_CATEGORY_ID, Category
from models.prompt_model import ExportData, Prompt, PromptDraft, UserRating, compute_average_rating

from .category_registry import default_categories, refresh_prompt_counts
from .effects import EffectDispatcher, NotificationLevel
from .exceptions import ImportPayloadError, StateSerializationError, VaultClosedError
from .notifications import StateChange, StateChangeKind, StateNotifier, StateSubscription
from .query import favorite_prompts, filtered_view, find_prompt, history_prompts, resolve_sort_mode

if TYPE_CHECKING:
    from .effects import PlatformEffects
    from .storage import PersistentStore

logger = logging.getLogger("prompt_vault.vault")

STATE_KEY = "promptvault-state"
EXPORT_FILENAME = "promptvault-export.json"
EXPORT_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

Seeder = Callable[[], Awaitable[list[Prompt]]]

_NULLABLE_STRING = {"type": ["string", "null"]}

_PROMPT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "title": _NULLABLE_STRING,
        "content": _NULLABLE_STRING,
        "description": _NULLABLE_STRING,
        "category": _NULLABLE_STRING,
        "tags": {"type": ["array", "null"], "items": {"type": "string"}},
        "author": _NULLABLE_STRING,
        "difficulty": _NULLABLE_STRING,
        "usageNotes": _NULLABLE_STRING,
        "estimatedTime": _NULLABLE_STRING,
        "createdAt": _NULLABLE_STRING,
        "updatedAt": _NULLABLE_STRING,
        "usageCount": {"type": ["integer", "null"]},
        "averageRating": {"type": ["number", "null"]},
    },
    "required": ["id"],
}

_RATING_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "promptId": _NULLABLE_STRING,
        "liked": {"type": ["boolean", "null"]},
        "rating": {"type": ["integer", "null"], "minimum": 0, "maximum": 5},
        "comment": _NULLABLE_STRING,
        "ratedAt": _NULLABLE_STRING,
    },
}

EXPORT_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "Prompt Vault export",
    "type": "object",
    "properties": {
        "prompts": {"type": ["array", "null"], "items": _PROMPT_SCHEMA},
        "favorites": {"type": ["array", "null"], "items": {"type": "string"}},
        "userRatings": {"type": ["object", "null"], "additionalProperties": _RATING_SCHEMA},
        "history": {"type": ["array", "null"], "items": {"type": "string"}},
        "exportDate": _NULLABLE_STRING,
    },
}

_EXPORT_VALIDATOR = Draft202012Validator(EXPORT_SCHEMA)


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _new_prompt_id() -> str:
    return str(uuid.uuid4())


def _unique_prompts(prompts: list[Prompt]) -> list[Prompt]:
    """Drop prompts whose id was already seen, keeping the first occurrence."""
    seen: set[str] = set()
    unique: list[Prompt] = []
    for prompt in prompts:
        if prompt.id in seen:
            logger.debug("Dropping duplicate prompt id %s", prompt.id)
            continue
        seen.add(prompt.id)
        unique.append(prompt)
    return unique


def decode_export_payload(payload: ExportData | Mapping[str, Any] | str | bytes) -> ExportData:
    """Validate and decode an import payload without touching any state.

    Raises:
      ImportPayloadError: When the payload is not valid JSON, does not match the
        export schema, or contains duplicate prompt identifiers.
    """
    if isinstance(payload, ExportData):
        document: Any = payload.to_record()
    elif isinstance(payload, (str, bytes, bytearray)):
        try:
            text = payload.decode("utf-8") if isinstance(payload, (bytes, bytearray)) else payload
            document = json.loads(text)
        except (UnicodeDecodeError, ValueError) as exc:
            raise ImportPayloadError(f"Import payload is not valid JSON: {exc}") from exc
    elif isinstance(payload, Mapping):
        document = dict(payload)
    else:
        raise ImportPayloadError(f"Unsupported import payload type: {type(payload).__name__}")

    errors = sorted(_EXPORT_VALIDATOR.iter_errors(document), key=lambda error: list(error.path))
    if errors:
        first = errors[0]
        location = "/".join(str(part) for part in first.path) or "<root>"
        raise ImportPayloadError(f"Import payload rejected at {location}: {first.message}")

    try:
        export = ExportData.from_record(document)
    except (TypeError, ValueError, KeyError) as exc:
        raise ImportPayloadError(f"Import payload could not be decoded: {exc}") from exc

    identifiers = [prompt.id for prompt in export.prompts]
    if not all(identifiers):
        raise ImportPayloadError("Import payload contains a prompt without an id")
    if len(identifiers) != len(set(identifiers)):
        raise ImportPayloadError("Import payload contains duplicate prompt ids")
    return export


def _drop_dangling_references(export: ExportData) -> ExportData:
    known = {prompt.id for prompt in export.prompts}
    favorites = [prompt_id for prompt_id in export.favorites if prompt_id in known]
    history = [prompt_id for prompt_id in export.history if prompt_id in known]
    ratings = {key: value for key, value in export.user_ratings.items() if key in known}
    dropped = (
        len(export.favorites) - len(favorites)
        + len(export.history) - len(history)
        + len(export.user_ratings) - len(ratings)
    )
    if dropped:
        logger.debug("Dropped %d imported references to unknown prompts", dropped)
    return replace(export, favorites=favorites, history=history, user_ratings=ratings)


class PromptVault:
    """Own the application state and serialise every change to it.

    Mutations run under a single ``asyncio.Lock``: memory is updated first,
    derived counts are recomputed, the state is persisted and the resulting
    :class:`StateChange` is published once the lock is released. A failed save
    is logged and surfaced as a warning toast; memory keeps the change.
    """

    def __init__(
        self,
        store: PersistentStore,
        *,
        notifier: StateNotifier | None = None,
        seeder: Seeder | None = None,
        effects: PlatformEffects | None = None,
        state_key: str = STATE_KEY,
        default_theme: str = DEFAULT_THEME,
        refresh_interval_minutes: int = DEFAULT_REFRESH_INTERVAL_MINUTES,
        background_refresh_enabled: bool = True,
        clock: Callable[[], datetime] | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        if default_theme not in THEMES:
            raise ValueError(f"Unknown theme: {default_theme}")
        self._store = store
        self._notifier = notifier or StateNotifier()
        self._seeder = seeder
        self._effects = EffectDispatcher(effects)
        self._state_key = state_key
        self._default_theme = default_theme
        self._refresh_interval_minutes = max(1, int(refresh_interval_minutes))
        self._background_refresh_enabled = background_refresh_enabled
        self._clock = clock or _utc_now
        self._id_factory = id_factory or _new_prompt_id
        self._lock = asyncio.Lock()
        self._state = self._fresh_state()
        self._initialized = False
        self._closed = False

    # ------------------------------------------------------------------ #
    # Accessors

    @property
    def state(self) -> AppState:
        """Live state; treat as read-only outside the vault."""
        return self._state

    @property
    def notifier(self) -> StateNotifier:
        return self._notifier

    @property
    def store(self) -> PersistentStore:
        return self._store

    @property
    def cache_metadata(self) -> CacheMetadata:
        return self._state.cache_metadata

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def closed(self) -> bool:
        return self._closed

    def now(self) -> datetime:
        """Return the vault clock's current time."""
        return self._clock()

    def subscribe(self, handler: Callable[[StateChange], None]) -> StateSubscription:
        return self._notifier.subscribe(handler)

    def get_prompt(self, prompt_id: str) -> Prompt | None:
        return find_prompt(self._state, prompt_id)

    def categories(self) -> list[Category]:
        return list(self._state.categories)

    def is_favorite(self, prompt_id: str) -> bool:
        return prompt_id in self._state.favorites

    def rating_for(self, prompt_id: str) -> UserRating | None:
        return self._state.user_ratings.get(prompt_id)

    def favorite_prompts(self) -> list[Prompt]:
        return favorite_prompts(self._state)

    def history_prompts(self) -> list[Prompt]:
        return history_prompts(self._state)

    def filtered_prompts(self) -> list[Prompt]:
        return filtered_view(self._state)

    # ------------------------------------------------------------------ #
    # Lifecycle

    async def initialize(self) -> AppState:
        """Load, repair and seed the state, then announce it."""
        async with self._locked():
            loaded = await self._store.load(self._state_key, AppState.from_record)
            if loaded is None:
                logger.info("No stored state found under %s; starting fresh", self._state_key)
                state = self._fresh_state()
                changed = True
            else:
                state = loaded
                changed = False
            changed = self._repair(state) or changed
            if not state.prompts:
                seeded = await self._seed()
                if seeded:
                    state.prompts = seeded
                    changed = True
            if not state.categories:
                state.categories = default_categories()
                changed = True
            refresh_prompt_counts(state.categories, state.prompts)
            self._state = state
            self._initialized = True
            change = await self._commit(
                StateChangeKind.INITIALIZED,
                persist=changed,
                metadata={"prompts": len(state.prompts)},
            )
        logger.info(
            "Prompt vault ready: %d prompts, %d favorites",
            len(self._state.prompts),
            len(self._state.favorites),
        )
        self._effects.apply_theme(self._state.theme)
        self._notifier.publish(change)
        return self._state

    async def close(self) -> None:
        """Persist the final state; later mutations raise :class:`VaultClosedError`."""
        async with self._lock:
            if self._closed:
                return
            if self._initialized:
                await self._persist_locked()
            self._closed = True
        logger.debug("Prompt vault closed")

    # ------------------------------------------------------------------ #
    # Prompt CRUD

    async def add_prompt(self, draft: PromptDraft | Prompt) -> Prompt:
        """Append a new prompt with a fresh identifier and timestamps."""
        async with self._locked():
            now = self._clock()
            if isinstance(draft, Prompt):
                prompt = replace(draft, id=self._id_factory(), created_at=now, updated_at=now)
            else:
                prompt = Prompt.from_draft(draft, prompt_id=self._id_factory(), now=now)
            self._state.prompts.append(prompt)
            refresh_prompt_counts(self._state.categories, self._state.prompts)
            change = await self._commit(StateChangeKind.PROMPT_ADDED, prompt_id=prompt.id)
        self._notifier.publish(change)
        return prompt

    async def update_prompt(self, prompt: Prompt) -> Prompt | None:
        """Replace the stored prompt with the same id; unknown ids return ``None``."""
        async with self._locked():
            index = self._index_of(prompt.id)
            if index is None:
                logger.warning("Cannot update unknown prompt %s", prompt.id)
                return None
            existing = self._state.prompts[index]
            updated = replace(
                prompt,
                created_at=prompt.created_at or existing.created_at,
                updated_at=self._clock(),
            )
            self._state.prompts[index] = updated
            refresh_prompt_counts(self._state.categories, self._state.prompts)
            change = await self._commit(StateChangeKind.PROMPT_UPDATED, prompt_id=updated.id)
        self._notifier.publish(change)
        return updated

    async def delete_prompt(self, prompt_id: str) -> bool:
        """Remove a prompt together with its favorite, rating and history entries."""
        async with self._locked():
            index = self._index_of(prompt_id)
            if index is None:
                return False
            del self._state.prompts[index]
            self._state.favorites = [item for item in self._state.favorites if item != prompt_id]
            self._state.history = [item for item in self._state.history if item != prompt_id]
            self._state.user_ratings.pop(prompt_id, None)
            refresh_prompt_counts(self._state.categories, self._state.prompts)
            change = await self._commit(StateChangeKind.PROMPT_DELETED, prompt_id=prompt_id)
        self._notifier.publish(change)
        return True

    # ------------------------------------------------------------------ #
    # User annotations

    async def toggle_favorite(self, prompt_id: str) -> bool:
        """Flip favorite membership and return whether the prompt is now a favorite."""
        async with self._locked():
            if prompt_id in self._state.favorites:
                self._state.favorites.remove(prompt_id)
                is_favorite = False
            elif find_prompt(self._state, prompt_id) is not None:
                self._state.favorites.append(prompt_id)
                is_favorite = True
            else:
                logger.warning("Ignoring favorite toggle for unknown prompt %s", prompt_id)
                return False
            change = await self._commit(
                StateChangeKind.FAVORITES,
                prompt_id=prompt_id,
                metadata={"favorite": is_favorite},
            )
        self._notifier.publish(change)
        return is_favorite

    async def set_rating(
        self,
        prompt_id: str,
        rating: int,
        *,
        liked: bool | None = None,
        comment: str | None = None,
    ) -> UserRating | None:
        """Record the user's rating and refresh the prompt's average."""
        if isinstance(rating, bool) or not isinstance(rating, int) or not 0 <= rating <= 5:
            raise ValueError(f"Rating must be an integer between 0 and 5, got {rating!r}")
        async with self._locked():
            prompt = find_prompt(self._state, prompt_id)
            if prompt is None:
                logger.warning("Ignoring rating for unknown prompt %s", prompt_id)
                return None
            previous = self._state.user_ratings.get(prompt_id)
            record = UserRating(
                prompt_id=prompt_id,
                rating=rating,
                liked=liked if liked is not None else bool(previous and previous.liked),
                comment=(
                    comment if comment is not None else (previous.comment if previous else None)
                ),
                rated_at=self._clock(),
            )
            self._state.user_ratings[prompt_id] = record
            prompt.average_rating = self._average_for(prompt_id)
            change = await self._commit(
                StateChangeKind.RATING,
                prompt_id=prompt_id,
                metadata={"rating": rating},
            )
        self._notifier.publish(change)
        return record

    async def add_to_history(self, prompt_id: str) -> None:
        """Move *prompt_id* to the front of the recently viewed list."""
        async with self._locked():
            if find_prompt(self._state, prompt_id) is None:
                logger.warning("Ignoring history entry for unknown prompt %s", prompt_id)
                return
            history = [item for item in self._state.history if item != prompt_id]
            history.insert(0, prompt_id)
            self._state.history = history[:HISTORY_LIMIT]
            change = await self._commit(StateChangeKind.HISTORY, prompt_id=prompt_id)
        self._notifier.publish(change)

    # ------------------------------------------------------------------ #
    # View preferences

    async def set_filters(self, *, category: str | None = None, search: str | None = None) -> None:
        """Update the category and/or search filter without persisting."""
        async with self._locked():
            if category is not None:
                self._state.selected_category = category.strip() or ALL_CATEGORY_ID
            if search is not None:
                self._state.search_query = search
            change = await self._commit(
                StateChangeKind.FILTERS,
                persist=False,
                metadata={
                    "category": self._state.selected_category,
                    "search": self._state.search_query,
                },
            )
        self._notifier.publish(change)

    async def set_selected_category(self, category: str) -> None:
        await self.set_filters(category=category)

    async def set_search_query(self, query: str) -> None:
        await self.set_filters(search=query)

    async def set_theme(self, theme: str) -> str:
        """Switch to *theme* (``light`` or ``dark``)."""
        normalised = (theme or "").strip().lower()
        if normalised not in THEMES:
            raise ValueError(f"Unknown theme: {theme!r}")
        async with self._locked():
            self._state.theme = normalised
            change = await self._commit(StateChangeKind.PREFERENCES, metadata={"theme": normalised})
        self._effects.apply_theme(normalised)
        self._notifier.publish(change)
        return normalised

    async def toggle_theme(self) -> str:
        return await self.set_theme("dark" if self._state.theme == "light" else "light")

    async def set_sort_mode(self, mode: str) -> str:
        resolved = resolve_sort_mode(mode).value
        async with self._locked():
            self._state.sort_by = resolved
            change = await self._commit(StateChangeKind.PREFERENCES, metadata={"sort_by": resolved})
        self._notifier.publish(change)
        return resolved

    async def set_show_favorites_only(self, flag: bool) -> None:
        async with self._locked():
            self._state.show_favorites_only = bool(flag)
            change = await self._commit(
                StateChangeKind.PREFERENCES,
                metadata={"show_favorites_only": self._state.show_favorites_only},
            )
        self._notifier.publish(change)

    # ------------------------------------------------------------------ #
    # Import / export

    def export_snapshot(self) -> ExportData:
        """Return a detached copy of the exportable user data."""
        state = self._state
        return ExportData(
            prompts=copy.deepcopy(state.prompts),
            favorites=list(state.favorites),
            user_ratings=copy.deepcopy(state.user_ratings),
            history=list(state.history),
            export_date=self._clock().astimezone(UTC).strftime(EXPORT_DATE_FORMAT),
        )

    def export_json(self) -> str:
        return json.dumps(self.export_snapshot().to_record(), indent=2, ensure_ascii=False)

    def download_export(self, filename: str = EXPORT_FILENAME) -> str:
        """Hand the export document to the host's download effect and return it."""
        content = self.export_json()
        self._effects.download_file(filename, content)
        return content

    async def import_snapshot(
        self, payload: ExportData | Mapping[str, Any] | str | bytes
    ) -> ExportData:
        """Replace prompts and user data with the contents of an export.

        The payload is validated and decoded before the lock is taken, so a
        rejected import leaves the state exactly as it was. Favorites, ratings
        and history entries naming prompts absent from the import are dropped;
        the returned export reflects what was applied.
        """
        export = _drop_dangling_references(decode_export_payload(payload))
        async with self._locked():
            self._state.prompts = copy.deepcopy(export.prompts)
            self._state.favorites = list(dict.fromkeys(export.favorites))
            self._state.user_ratings = copy.deepcopy(export.user_ratings)
            self._state.history = list(dict.fromkeys(export.history))[:HISTORY_LIMIT]
            refresh_prompt_counts(self._state.categories, self._state.prompts)
            change = await self._commit(
                StateChangeKind.IMPORTED,
                metadata={"prompts": len(export.prompts)},
            )
        logger.info("Imported %d prompts", len(export.prompts))
        self._notifier.publish(change)
        return export

    async def clear_all(self) -> None:
        """Remove every prompt and user annotation; categories stay."""
        async with self._locked():
            self._state.prompts = []
            self._state.favorites = []
            self._state.user_ratings = {}
            self._state.history = []
            refresh_prompt_counts(self._state.categories, self._state.prompts)
            change = await self._commit(StateChangeKind.CLEARED)
        self._notifier.publish(change)

    async def reset_to_default(self) -> AppState:
        """Discard everything and rebuild a freshly seeded state."""
        async with self._locked():
            state = self._fresh_state()
            state.categories = default_categories()
            state.prompts = await self._seed()
            refresh_prompt_counts(state.categories, state.prompts)
            self._state = state
            change = await self._commit(
                StateChangeKind.RESET,
                metadata={"prompts": len(state.prompts)},
            )
        self._effects.apply_theme(self._state.theme)
        self._notifier.publish(change)
        return self._state

    async def validate_and_repair(self) -> bool:
        """Repair the in-memory state; return ``True`` when nothing needed fixing."""
        async with self._locked():
            repaired = self._repair(self._state)
            if not self._state.categories:
                self._state.categories = default_categories()
                repaired = True
            if not repaired:
                return True
            logger.info("Repaired inconsistent prompt vault state")
            refresh_prompt_counts(self._state.categories, self._state.prompts)
            change = await self._commit(StateChangeKind.RESET, metadata={"repaired": True})
        self._notifier.publish(change)
        return False

    async def persist(self) -> bool:
        """Save the current state explicitly."""
        async with self._locked():
            return await self._persist_locked()

    # ------------------------------------------------------------------ #
    # Catalogue refresh support

    async def replace_catalog(self, prompts: list[Prompt]) -> bool:
        """Swap in a refreshed catalogue while keeping all user annotations.

        Favorites, ratings and history are carried over untouched, even for ids
        the new catalogue no longer contains. Local ratings override the
        averages reported by the catalogue. Returns ``False`` for an empty set.
        """
        incoming = _unique_prompts(list(prompts))
        if not incoming:
            return False
        async with self._locked():
            now = self._clock()
            for prompt in incoming:
                if prompt.id in self._state.user_ratings:
                    prompt.average_rating = self._average_for(prompt.id)
            self._state.prompts = incoming
            metadata = self._state.cache_metadata
            metadata.last_background_refresh = now
            metadata.last_updated = now
            metadata.data_version = new_data_version()
            metadata.is_stale = False
            refresh_prompt_counts(self._state.categories, self._state.prompts)
            change = await self._commit(
                StateChangeKind.CATALOG_REFRESHED,
                metadata={"prompts": len(incoming), "data_version": metadata.data_version},
            )
        logger.info("Catalogue refreshed with %d prompts", len(incoming))
        self._notifier.publish(change)
        self._effects.notify("Prompt catalogue updated", NotificationLevel.SUCCESS)
        return True

    async def mark_cache_stale(self) -> None:
        async with self._locked():
            self._state.cache_metadata.is_stale = True
            change = await self._commit(StateChangeKind.CACHE, metadata={"is_stale": True})
        self._notifier.publish(change)

    async def update_cache_settings(
        self,
        *,
        interval_minutes: int | None = None,
        enabled: bool | None = None,
    ) -> CacheMetadata:
        """Change the refresh interval (clamped to one minute) and/or the enabled flag."""
        async with self._locked():
            metadata = self._state.cache_metadata
            if interval_minutes is not None:
                metadata.refresh_interval_minutes = max(1, int(interval_minutes))
            if enabled is not None:
                metadata.background_refresh_enabled = bool(enabled)
            change = await self._commit(
                StateChangeKind.CACHE,
                metadata={
                    "refresh_interval_minutes": metadata.refresh_interval_minutes,
                    "background_refresh_enabled": metadata.background_refresh_enabled,
                },
            )
        self._notifier.publish(change)
        return metadata

    # ------------------------------------------------------------------ #
    # Internals

    def _fresh_state(self) -> AppState:
        return AppState(
            theme=self._default_theme,
            cache_metadata=CacheMetadata(
                last_updated=self._clock(),
                refresh_interval_minutes=self._refresh_interval_minutes,
                background_refresh_enabled=self._background_refresh_enabled,
            ),
        )

    @asynccontextmanager
    async def _locked(self) -> AsyncIterator[None]:
        async with self._lock:
            if self._closed:
                raise VaultClosedError("Prompt vault is closed")
            yield

    def _index_of(self, prompt_id: str) -> int | None:
        for index, prompt in enumerate(self._state.prompts):
            if prompt.id == prompt_id:
                return index
        return None

    def _average_for(self, prompt_id: str) -> float:
        return compute_average_rating(
            rating.rating
            for rating in self._state.user_ratings.values()
            if rating.prompt_id == prompt_id
        )

    async def _seed(self) -> list[Prompt]:
        if self._seeder is None:
            return []
        try:
            prompts = await self._seeder()
        except Exception:
            logger.exception("Seeding the prompt catalogue failed")
            return []
        return _unique_prompts(list(prompts))

    def _repair(self, state: AppState) -> bool:
        """Fix structural problems in place and report whether anything changed."""
        repaired = False
        unique = _unique_prompts(state.prompts)
        if len(unique) != len(state.prompts):
            state.prompts = unique
            repaired = True
        favorites = list(dict.fromkeys(state.favorites))
        if favorites != state.favorites:
            state.favorites = favorites
            repaired = True
        history = list(dict.fromkeys(state.history))[:HISTORY_LIMIT]
        if history != state.history:
            state.history = history
            repaired = True
        for key, rating in list(state.user_ratings.items()):
            if rating.prompt_id != key:
                state.user_ratings[key] = replace(rating, prompt_id=key)
                repaired = True
        if state.theme not in THEMES:
            state.theme = self._default_theme
            repaired = True
        if state.cache_metadata.refresh_interval_minutes < 1:
            state.cache_metadata.refresh_interval_minutes = 1
            repaired = True
        return repaired

    async def _persist_locked(self) -> bool:
        try:
            saved = await self._store.save(self._state_key, self._state, AppState.to_record)
        except StateSerializationError:
            logger.exception("Prompt vault state could not be serialised")
            saved = False
        if not saved:
            logger.error("Prompt vault state was not persisted; keeping in-memory changes")
            self._effects.notify("Changes could not be saved", NotificationLevel.WARNING)
        return saved

    async def _commit(
        self,
        kind: StateChangeKind,
        *,
        prompt_id: str | None = None,
        persist: bool = True,
        metadata: Mapping[str, Any] | None = None,
    ) -> StateChange:
        persisted = await self._persist_locked() if persist else True
        details = dict(metadata or {})
        details["persisted"] = persisted
        return StateChange(
            kind=kind,
            prompt_id=prompt_id,
            timestamp=self._clock(),
            metadata=details,
        )


__all__ = [
    "EXPORT_FILENAME",
    "EXPORT_SCHEMA",
    "PromptVault",
    "STATE_KEY",
    "Seeder",
    "decode_export_payload",
]
