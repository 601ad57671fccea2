"""Platform side effects triggered by state changes.

Theme application, file downloads and toast messages belong to the host
(a GUI, a browser shell, the CLI). The core only calls them fire-and-forget.

Updates:
  v0.1.0 - 2026-10-09 - Introduce platform effects protocol and dispatcher.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol

logger = logging.getLogger("prompt_vault.effects")


class NotificationLevel(str, Enum):
    """Severity levels for toast messages."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class PlatformEffects(Protocol):
    """Host hooks invoked by the vault."""

    def apply_theme(self, name: str) -> None: ...

    def download_file(self, filename: str, content: str) -> None: ...

    def notify(self, message: str, level: NotificationLevel) -> None: ...


class NullPlatformEffects:
    """Effects implementation for headless use; everything is logged at debug level."""

    def apply_theme(self, name: str) -> None:
        logger.debug("Theme applied: %s", name)

    def download_file(self, filename: str, content: str) -> None:
        logger.debug("Download requested: %s (%d chars)", filename, len(content))

    def notify(self, message: str, level: NotificationLevel) -> None:
        logger.debug("Toast [%s]: %s", level.value, message)


class EffectDispatcher:
    """Invoke platform effects without letting their failures reach the caller."""

    def __init__(self, effects: PlatformEffects | None = None) -> None:
        self._effects: PlatformEffects = effects or NullPlatformEffects()

    @property
    def effects(self) -> PlatformEffects:
        return self._effects

    def apply_theme(self, name: str) -> None:
        try:
            self._effects.apply_theme(name)
        except Exception:
            logger.exception("Theme effect failed for %s", name)

    def download_file(self, filename: str, content: str) -> None:
        try:
            self._effects.download_file(filename, content)
        except Exception:
            logger.exception("Download effect failed for %s", filename)

    def notify(self, message: str, level: NotificationLevel = NotificationLevel.INFO) -> None:
        try:
            self._effects.notify(message, level)
        except Exception:
            logger.exception("Toast effect failed: %s", message)


__all__ = [
    "EffectDispatcher",
    "NotificationLevel",
    "NullPlatformEffects",
    "PlatformEffects",
]
