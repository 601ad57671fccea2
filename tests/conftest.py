"""Pytest configuration for shared test fixtures.

Updates:
  v0.2.0 - 2026-10-14 - Add frozen clock, recording effects and prompt factory fixtures.
  v0.1.0 - 2026-10-07 - Isolate settings tests from the developer's environment.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from core.byte_stores import MemoryByteStore
from core.effects import NotificationLevel
from core.storage import PersistentStore
from core.vault import PromptVault
from models.prompt_model import Prompt


class FrozenClock:
    """Deterministic clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **delta: float) -> None:
        self.current += timedelta(**delta)


class RecordingEffects:
    """Platform effects double that remembers every call."""

    def __init__(self) -> None:
        self.themes: list[str] = []
        self.downloads: list[tuple[str, str]] = []
        self.toasts: list[tuple[str, NotificationLevel]] = []

    def apply_theme(self, name: str) -> None:
        self.themes.append(name)

    def download_file(self, filename: str, content: str) -> None:
        self.downloads.append((filename, content))

    def notify(self, message: str, level: NotificationLevel) -> None:
        self.toasts.append((message, level))


def _make_prompt(prompt_id: str, **overrides: Any) -> Prompt:
    values: dict[str, Any] = {
        "id": prompt_id,
        "title": f"Prompt {prompt_id}",
        "content": f"Content for {prompt_id}",
        "category": "general",
        "created_at": datetime(2025, 6, 1, tzinfo=UTC),
        "updated_at": datetime(2025, 6, 1, tzinfo=UTC),
    }
    values.update(overrides)
    return Prompt(**values)


@pytest.fixture(autouse=True)
def _isolate_settings_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer PROMPT_VAULT_* variables and .env files out of tests."""
    import os

    for key in list(os.environ):
        if key.upper().startswith("PROMPT_VAULT_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("PROMPT_VAULT_ENV_FILE", "")


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture()
def effects() -> RecordingEffects:
    return RecordingEffects()


@pytest.fixture()
def prompt_factory() -> Callable[..., Prompt]:
    return _make_prompt


@pytest.fixture()
def byte_store() -> MemoryByteStore:
    return MemoryByteStore()


@pytest.fixture()
def store(byte_store: MemoryByteStore) -> PersistentStore:
    return PersistentStore(byte_store)


@pytest.fixture()
def make_vault(
    store: PersistentStore,
    clock: FrozenClock,
    effects: RecordingEffects,
) -> Callable[..., PromptVault]:
    """Return a builder for vaults sharing the test's store, clock and effects."""

    def _build(**kwargs: Any) -> PromptVault:
        kwargs.setdefault("clock", clock)
        kwargs.setdefault("effects", effects)
        return PromptVault(kwargs.pop("store", store), **kwargs)

    return _build
