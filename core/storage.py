"""Typed JSON persistence on top of a byte store.

Updates:
  v0.3.0 - 2026-10-17 - Run blocking backends in a worker thread; close backends on shutdown.
  v0.2.0 - 2026-10-13 - Add availability check and key listing for diagnostics.
  v0.1.1 - 2026-10-10 - Drop corrupt entries instead of failing the load.
  v0.1.0 - 2026-10-07 - Introduce PersistentStore with load/save/remove/clear/exists.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar

from .exceptions import ByteStoreError, StateSerializationError

if TYPE_CHECKING:
    from .byte_stores import ByteStore

logger = logging.getLogger("prompt_vault.storage")

T = TypeVar("T")

_CHECK_KEY = "__promptvault_check__"


async def _resolve(result: Any) -> Any:
    """Await *result* when a backend hands back an awaitable."""
    if inspect.isawaitable(result):
        return await result
    return result


def _is_blocking(backend: Any, method: Callable[..., Any]) -> bool:
    if inspect.iscoroutinefunction(method):
        return False
    return bool(getattr(backend, "blocking", True))


class PersistentStore:
    """Load and save JSON documents keyed by name.

    Loads are forgiving: an entry that cannot be decoded is removed and reported
    as absent. Saves raise :class:`StateSerializationError` when the value cannot
    be encoded and return ``False`` when the backend rejects the write.

    Synchronous backends that touch disk or the network run in a worker thread
    so a slow write never stalls the event loop; backends flagged
    ``blocking = False`` are called inline and coroutine methods are awaited.
    """

    def __init__(self, backend: ByteStore) -> None:
        self._backend = backend
        self._lock = asyncio.Lock()

    @property
    def backend(self) -> ByteStore:
        return self._backend

    async def _call(self, name: str, *args: Any) -> Any:
        method = getattr(self._backend, name)
        if _is_blocking(self._backend, method):
            return await _resolve(await asyncio.to_thread(method, *args))
        return await _resolve(method(*args))

    async def load(self, key: str, factory: Callable[[Any], T]) -> T | None:
        """Return the value stored under *key* decoded through *factory*."""
        async with self._lock:
            try:
                raw = await self._call("get", key)
            except ByteStoreError as exc:
                logger.warning("Unable to read %s from storage: %s", key, exc)
                return None
            if raw is None:
                return None
            try:
                document = json.loads(raw.decode("utf-8") if isinstance(raw, bytes) else raw)
                return factory(document)
            except (UnicodeDecodeError, ValueError, TypeError, KeyError, AttributeError) as exc:
                logger.warning("Discarding corrupt entry %s: %s", key, exc)
                await self._delete_quietly(key)
                return None

    async def save(
        self,
        key: str,
        value: Any,
        encoder: Callable[[Any], Any] | None = None,
    ) -> bool:
        """Persist *value* under *key*; ``False`` means the backend write failed."""
        try:
            document = encoder(value) if encoder is not None else value
            payload = json.dumps(document, ensure_ascii=False).encode("utf-8")
        except (TypeError, ValueError, RecursionError) as exc:
            raise StateSerializationError(f"Unable to serialise {key}: {exc}") from exc
        async with self._lock:
            try:
                await self._call("put", key, payload)
            except ByteStoreError as exc:
                logger.warning("Failed to persist %s: %s", key, exc)
                return False
        logger.debug("Persisted %s (%d bytes)", key, len(payload))
        return True

    async def remove(self, key: str) -> bool:
        async with self._lock:
            return await self._delete_quietly(key)

    async def clear(self) -> bool:
        async with self._lock:
            try:
                await self._call("clear")
            except ByteStoreError as exc:
                logger.warning("Failed to clear storage: %s", exc)
                return False
            return True

    async def exists(self, key: str) -> bool:
        async with self._lock:
            try:
                return await self._call("get", key) is not None
            except ByteStoreError as exc:
                logger.warning("Unable to check %s in storage: %s", key, exc)
                return False

    async def keys(self) -> list[str]:
        """Return stored keys when the backend can enumerate them."""
        if getattr(self._backend, "keys", None) is None:
            return []
        async with self._lock:
            try:
                return [key for key in await self._call("keys") if key != _CHECK_KEY]
            except ByteStoreError as exc:
                logger.warning("Unable to list storage keys: %s", exc)
                return []

    async def is_available(self) -> bool:
        """Round-trip a check entry to confirm the backend accepts writes."""
        async with self._lock:
            try:
                await self._call("put", _CHECK_KEY, b"1")
                stored = await self._call("get", _CHECK_KEY)
                await self._call("delete", _CHECK_KEY)
            except ByteStoreError as exc:
                logger.info("Storage backend unavailable: %s", exc)
                return False
            return stored is not None

    async def aclose(self) -> None:
        """Release backend connections; backends without ``aclose`` need nothing."""
        if getattr(self._backend, "aclose", None) is None:
            return
        async with self._lock:
            try:
                await self._call("aclose")
            except ByteStoreError as exc:
                logger.warning("Failed to close storage backend: %s", exc)

    async def _delete_quietly(self, key: str) -> bool:
        try:
            await self._call("delete", key)
        except ByteStoreError as exc:
            logger.warning("Failed to remove %s from storage: %s", key, exc)
            return False
        return True


__all__ = ["PersistentStore"]
