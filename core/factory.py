"""Factories for constructing Prompt Vault sessions from validated settings.

Updates:
  v0.3.1 - 2026-10-17 - Build redis.asyncio clients and release the store on close.
  v0.3.0 - 2026-10-15 - Bundle vault and refresh scheduler in PromptVaultSession.
  v0.2.0 - 2026-10-12 - Degrade to the file store when Redis cannot be configured.
  v0.1.0 - 2026-10-08 - Build byte stores and vaults from settings.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from types import TracebackType
from typing import TYPE_CHECKING, Any, cast

import httpx
import redis.asyncio as aioredis

from .byte_stores import FileByteStore, MemoryByteStore, RedisByteStore, SQLiteByteStore
from .catalog_source import CatalogSeeder, HttpCatalogFetcher
from .refresh import RefreshScheduler
from .retry import RetryPolicy
from .storage import PersistentStore
from .vault import PromptVault

if TYPE_CHECKING:  # pragma: no cover - typing only
    from datetime import datetime

    from redis.asyncio import Redis

    from config import PromptVaultSettings

    from .byte_stores import ByteStore
    from .catalog_source import CatalogFetcher
    from .effects import PlatformEffects
    from .notifications import StateNotifier

factory_logger = logging.getLogger("prompt_vault.factory")


def _resolve_redis_client(
    redis_dsn: str | None,
    redis_client: Redis | None,
) -> tuple[Redis | None, str | None]:
    """Create a Redis client when a DSN is provided but no client supplied."""
    if redis_client is not None:
        return redis_client, None
    if not redis_dsn:
        reason = (
            "Redis storage disabled: no DSN configured. "
            "Set PROMPT_VAULT_REDIS_DSN or choose another storage backend."
        )
        return None, reason
    from_url = cast("Callable[[str], Redis]", aioredis.from_url)
    try:
        client = from_url(redis_dsn)
    except Exception as exc:  # noqa: BLE001 - external dependency failure
        reason = f"Redis storage disabled: unable to configure the client. error={exc}"
        return None, reason
    return client, None


def build_byte_store(
    settings: PromptVaultSettings,
    *,
    redis_client: Redis | None = None,
) -> tuple[ByteStore, str | None]:
    """Return the configured byte store plus an optional degradation notice."""
    backend = settings.storage_backend
    if backend == "memory":
        return MemoryByteStore(), None
    if backend == "sqlite":
        return SQLiteByteStore(settings.sqlite_path), None
    if backend == "redis":
        client, reason = _resolve_redis_client(settings.redis_dsn, redis_client)
        if client is not None:
            return RedisByteStore(client, namespace=settings.redis_namespace), None
        factory_logger.warning("%s Falling back to the file store.", reason)
        return FileByteStore(settings.state_directory), reason
    return FileByteStore(settings.state_directory), None


def build_catalog_fetcher(
    settings: PromptVaultSettings,
    *,
    client_factory: Callable[[], httpx.AsyncClient] | None = None,
) -> HttpCatalogFetcher:
    """Return an HTTP fetcher for the configured catalogue URL."""
    return HttpCatalogFetcher(
        url=settings.catalog_url,
        timeout=settings.catalog_timeout_seconds,
        retry_policy=RetryPolicy(max_attempts=settings.catalog_max_attempts),
        client_factory=client_factory,
    )


class PromptVaultSession:
    """A vault and its refresh scheduler, opened and closed together."""

    def __init__(
        self,
        vault: PromptVault,
        scheduler: RefreshScheduler,
        *,
        start_scheduler: bool = True,
        storage_notice: str | None = None,
    ) -> None:
        self.vault = vault
        self.scheduler = scheduler
        self.start_scheduler = start_scheduler
        self.storage_notice = storage_notice
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    async def start(self) -> PromptVault:
        """Initialise the vault and, when enabled, arm the background refresh."""
        if self._started:
            return self.vault
        await self.vault.initialize()
        if self.start_scheduler:
            self.scheduler.start()
        self._started = True
        return self.vault

    async def aclose(self) -> None:
        """Stop the scheduler, let an in-flight refresh finish, then close vault and store."""
        await self.scheduler.aclose()
        await self.vault.close()
        await self.vault.store.aclose()
        self._started = False

    async def __aenter__(self) -> PromptVault:
        return await self.start()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.aclose()


def build_session(
    settings: PromptVaultSettings,
    *,
    redis_client: Redis | None = None,
    byte_store: ByteStore | None = None,
    fetcher: CatalogFetcher | None = None,
    effects: PlatformEffects | None = None,
    notifier: StateNotifier | None = None,
    clock: Callable[[], datetime] | None = None,
    start_scheduler: bool = True,
    **vault_kwargs: Any,
) -> PromptVaultSession:
    """Return a PromptVaultSession configured from validated settings."""
    storage_notice: str | None = None
    if byte_store is None:
        byte_store, storage_notice = build_byte_store(settings, redis_client=redis_client)
    resolved_fetcher = fetcher or build_catalog_fetcher(settings)
    seeder = CatalogSeeder(
        fetcher=resolved_fetcher if settings.seed_from_remote else None,
        use_builtin_fallback=settings.builtin_catalog_fallback,
    )
    vault = PromptVault(
        PersistentStore(byte_store),
        notifier=notifier,
        seeder=seeder,
        effects=effects,
        state_key=settings.state_key,
        default_theme=settings.theme_mode,
        refresh_interval_minutes=settings.refresh_interval_minutes,
        background_refresh_enabled=settings.background_refresh_enabled,
        clock=clock,
        **vault_kwargs,
    )
    scheduler = RefreshScheduler(vault, resolved_fetcher, clock=clock)
    factory_logger.debug(
        "Built prompt vault session (storage=%s, catalogue=%s)",
        type(byte_store).__name__,
        settings.catalog_url,
    )
    return PromptVaultSession(
        vault,
        scheduler,
        start_scheduler=start_scheduler,
        storage_notice=storage_notice,
    )


__all__ = [
    "PromptVaultSession",
    "build_byte_store",
    "build_catalog_fetcher",
    "build_session",
]
