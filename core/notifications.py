"""State change notifications for Prompt Vault consumers.

Updates:
  v0.2.0 - 2026-10-13 - Deliver changes through subscription handles instead of raw callbacks.
  v0.1.0 - 2026-10-08 - Introduce state notifier with bounded history.
"""
from __future__ import annotations

import itertools
import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger("prompt_vault.notifications")


class StateChangeKind(str, Enum):
    """What part of the state a change touched."""
    INITIALIZED = "initialized"
    PROMPT_ADDED = "prompt_added"
    PROMPT_UPDATED = "prompt_updated"
    PROMPT_DELETED = "prompt_deleted"
    FAVORITES = "favorites"
    RATING = "rating"
    HISTORY = "history"
    FILTERS = "filters"
    PREFERENCES = "preferences"
    IMPORTED = "imported"
    CLEARED = "cleared"
    RESET = "reset"
    CATALOG_REFRESHED = "catalog_refreshed"
    CACHE = "cache"


@dataclass(slots=True, frozen=True)
class StateChange:
    """Payload describing a committed state mutation."""
    kind: StateChangeKind
    prompt_id: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def persisted(self) -> bool:
        """Return ``False`` when the change could not be written to storage."""
        return bool(self.metadata.get("persisted", True))


class StateSubscription:
    """Disposable handle that removes its handler when closed."""
    def __init__(self, notifier: StateNotifier, handler: Callable[[StateChange], None]) -> None:
        self._notifier = notifier
        self._handler = handler
        self._token = next(notifier._tokens)  # noqa: SLF001
        self._closed = False

    @property
    def handler(self) -> Callable[[StateChange], None]:
        return self._handler

    @property
    def active(self) -> bool:
        return not self._closed

    def close(self) -> None:
        """Detach the handler if it is still subscribed."""
        if self._closed:
            return
        self._closed = True
        self._notifier.unsubscribe(self)

    def __enter__(self) -> StateSubscription:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    def __hash__(self) -> int:
        return hash(self._token)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, StateSubscription) and other._token == self._token


class StateNotifier:
    """Thread-safe publish/subscribe hub for state changes.

    Delivery is synchronous on the publishing thread. A handler that raises is
    logged and skipped; the remaining handlers still receive the change.
    """
    def __init__(self, history_limit: int = 100) -> None:
        self._subscriptions: list[StateSubscription] = []
        self._lock = threading.RLock()
        self._history: deque[StateChange] = deque(maxlen=history_limit)
        self._tokens = itertools.count()

    def subscribe(self, handler: Callable[[StateChange], None]) -> StateSubscription:
        """Register *handler* and return the handle that unsubscribes it."""
        subscription = StateSubscription(self, handler)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription: StateSubscription) -> None:
        """Remove *subscription*; unknown handles are ignored."""
        with self._lock:
            try:
                self._subscriptions.remove(subscription)
            except ValueError:
                pass

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def publish(self, change: StateChange) -> None:
        """Deliver *change* to every current subscriber."""
        with self._lock:
            self._history.append(change)
            subscriptions = list(self._subscriptions)

        logger.debug("State change %s (prompt=%s)", change.kind.value, change.prompt_id)

        for subscription in subscriptions:
            try:
                subscription.handler(change)
            except Exception:
                logger.exception("State subscriber raised while handling %s", change.kind.value)

    def history(self) -> tuple[StateChange, ...]:
        """Return a snapshot of recently published changes."""
        with self._lock:
            return tuple(self._history)


__all__ = [
    "StateChange",
    "StateChangeKind",
    "StateNotifier",
    "StateSubscription",
]
