"""Background refresh of the prompt catalogue.

The scheduler ticks on an asyncio timer, asks the vault whether the cached
catalogue is due for a refresh and, when it is, downloads and merges a new one.
At most one refresh body runs at a time; a tick that finds one in flight is
skipped, not queued.

Updates:
  v0.2.0 - 2026-10-15 - Shield in-flight refreshes from timer cancellation.
  v0.1.0 - 2026-10-14 - Introduce RefreshScheduler with single-flight guard.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from .catalog_importer import parse_catalog_payload
from .exceptions import CatalogError, CatalogParseError, VaultClosedError

if TYPE_CHECKING:
    from models.prompt_model import Prompt

    from .catalog_source import CatalogFetcher
    from .vault import PromptVault

logger = logging.getLogger("prompt_vault.refresh")


class SchedulerState(str, Enum):
    """Lifecycle of the background refresh timer."""

    STOPPED = "stopped"
    IDLE = "idle"
    REFRESHING = "refreshing"


class SingleFlightGuard:
    """Let one caller through at a time; everybody else is turned away."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @asynccontextmanager
    async def attempt(self) -> AsyncIterator[bool]:
        """Yield ``True`` while holding the guard, ``False`` when it was taken."""
        if self._lock.locked():
            yield False
            return
        async with self._lock:
            yield True


class RefreshScheduler:
    """Periodically replace the vault's catalogue with a freshly fetched one."""

    def __init__(
        self,
        vault: PromptVault,
        fetcher: CatalogFetcher,
        *,
        clock: Callable[[], datetime] | None = None,
        parser: Callable[[bytes], list[Prompt]] = parse_catalog_payload,
    ) -> None:
        self._vault = vault
        self._fetcher = fetcher
        self._clock = clock or vault.now
        self._parser = parser
        self._guard = SingleFlightGuard()
        self._state = SchedulerState.STOPPED
        self._timer: asyncio.Task[None] | None = None
        self._inflight: set[asyncio.Task[bool]] = set()
        self._last_error: str | None = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    @property
    def last_error(self) -> str | None:
        """Reason the most recent refresh attempt failed, if it did."""
        return self._last_error

    # ------------------------------------------------------------------ #
    # Timer control

    def start(self) -> bool:
        """Arm the timer; the first tick runs immediately.

        Returns ``False`` when already running or when background refresh is
        disabled in the vault's cache settings.
        """
        if self.running:
            return False
        if not self._vault.cache_metadata.background_refresh_enabled:
            logger.info("Background refresh disabled; scheduler not started")
            return False
        if self._state is SchedulerState.STOPPED:
            self._state = SchedulerState.IDLE
        self._arm(initial_delay=0.0)
        logger.debug(
            "Refresh scheduler started (every %d min)",
            self._vault.cache_metadata.refresh_interval_minutes,
        )
        return True

    def stop(self) -> None:
        """Cancel the timer; an in-flight refresh still runs to completion."""
        timer, self._timer = self._timer, None
        if timer is not None and not timer.done():
            timer.cancel()
        self._state = SchedulerState.STOPPED

    async def aclose(self) -> None:
        """Stop the timer and wait for any refresh that is still running."""
        timer = self._timer
        self.stop()
        if timer is not None:
            await asyncio.gather(timer, return_exceptions=True)
        await self.wait_idle()

    async def wait_idle(self) -> None:
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    async def set_interval(self, minutes: int) -> int:
        """Persist a new interval and re-arm a running timer with it."""
        metadata = await self._vault.update_cache_settings(interval_minutes=minutes)
        if self.running:
            self._rearm(initial_delay=self._interval_seconds())
        return metadata.refresh_interval_minutes

    async def set_enabled(self, enabled: bool) -> None:
        """Persist the enabled flag and start or stop the timer to match."""
        await self._vault.update_cache_settings(enabled=enabled)
        if enabled:
            self.start()
        else:
            self.stop()

    # ------------------------------------------------------------------ #
    # Refresh triggers

    async def tick(self) -> bool:
        """Run one refresh when enabled, idle and due; return whether it succeeded."""
        metadata = self._vault.cache_metadata
        if not metadata.background_refresh_enabled:
            return False
        if self._guard.busy:
            logger.debug("Refresh already in flight; skipping tick")
            return False
        if not metadata.is_due(self._clock()):
            return False
        return await self._launch(force=False)

    async def refresh_now(self, *, force: bool = False) -> bool:
        """Manual refresh; ``force`` ignores whether the cache is still fresh."""
        if self._guard.busy:
            logger.debug("Refresh already in flight; manual refresh skipped")
            return False
        if not force and not self._vault.cache_metadata.is_due(self._clock()):
            return False
        return await self._launch(force=force)

    # ------------------------------------------------------------------ #
    # Internals

    def _interval_seconds(self) -> float:
        return float(self._vault.cache_metadata.refresh_interval_minutes * 60)

    def _arm(self, *, initial_delay: float) -> None:
        self._timer = asyncio.create_task(
            self._run_timer(initial_delay), name="prompt-vault-refresh-timer"
        )

    def _rearm(self, *, initial_delay: float) -> None:
        timer = self._timer
        if timer is not None and not timer.done():
            timer.cancel()
        self._arm(initial_delay=initial_delay)

    async def _run_timer(self, initial_delay: float) -> None:
        delay = initial_delay
        while True:
            if delay > 0:
                await asyncio.sleep(delay)
            try:
                await self.tick()
            except Exception:
                logger.exception("Scheduled refresh tick failed")
            delay = self._interval_seconds()

    async def _launch(self, *, force: bool) -> bool:
        task = asyncio.create_task(self._guarded_refresh(force=force))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return await asyncio.shield(task)

    async def _guarded_refresh(self, *, force: bool) -> bool:
        async with self._guard.attempt() as acquired:
            if not acquired:
                logger.debug("Refresh already in flight; skipping")
                return False
            if not force and not self._vault.cache_metadata.is_due(self._clock()):
                return False
            self._state = SchedulerState.REFRESHING
            try:
                return await self._refresh_once()
            finally:
                self._state = SchedulerState.IDLE if self.running else SchedulerState.STOPPED

    async def _refresh_once(self) -> bool:
        started = time.perf_counter()
        try:
            prompts = self._parser(await self._fetcher.fetch())
            if not prompts:
                raise CatalogParseError("catalogue contained no prompts")
        except CatalogError as exc:
            return await self._fail(str(exc))
        except Exception as exc:
            logger.exception("Unexpected error while refreshing the catalogue")
            return await self._fail(f"unexpected error: {exc}")

        try:
            replaced = await self._vault.replace_catalog(prompts)
        except VaultClosedError:
            logger.info("Vault closed before the refreshed catalogue could be applied")
            return False
        self._last_error = None
        logger.info(
            "Background refresh applied %d prompts in %.2fs",
            len(prompts),
            time.perf_counter() - started,
        )
        return replaced

    async def _fail(self, reason: str) -> bool:
        self._last_error = reason
        logger.warning("Background refresh failed: %s", reason)
        try:
            await self._vault.mark_cache_stale()
        except VaultClosedError:
            logger.debug("Vault closed; stale flag not recorded")
        return False


__all__ = ["RefreshScheduler", "SchedulerState", "SingleFlightGuard"]
