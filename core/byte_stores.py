"""Key/value byte store backends used by the persistent store.

Every backend exposes ``get``, ``put``, ``delete`` and ``clear`` over raw bytes and
wraps its native failures in :class:`~core.exceptions.ByteStoreError`.

Updates:
  v0.4.0 - 2026-10-17 - Move the Redis backend to redis.asyncio; flag blocking backends.
  v0.3.0 - 2026-10-13 - Add Redis backend sharing the redis client used for caching.
  v0.2.0 - 2026-10-10 - Add SQLite backend with WAL pragmas.
  v0.1.0 - 2026-10-07 - Add in-memory and file directory backends.
"""

from __future__ import annotations

import logging
import os
import sqlite3
import tempfile
from contextlib import closing
from pathlib import Path
from typing import TYPE_CHECKING, Protocol
from urllib.parse import quote, unquote

from redis.exceptions import RedisError

from .exceptions import ByteStoreError

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from redis.asyncio import Redis

logger = logging.getLogger("prompt_vault.byte_stores")

_FILE_SUFFIX = ".json"


class ByteStore(Protocol):
    """Minimal key/value contract; implementations may also return awaitables.

    Synchronous implementations are assumed to block and are run in a worker
    thread unless they set ``blocking = False``.
    """

    def get(self, key: str) -> bytes | None | Awaitable[bytes | None]: ...

    def put(self, key: str, data: bytes) -> None | Awaitable[None]: ...

    def delete(self, key: str) -> None | Awaitable[None]: ...

    def clear(self) -> None | Awaitable[None]: ...


class MemoryByteStore:
    """Dictionary backed store for tests and ephemeral sessions."""

    blocking = False

    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        self._entries: dict[str, bytes] = dict(initial or {})

    def get(self, key: str) -> bytes | None:
        return self._entries.get(key)

    def put(self, key: str, data: bytes) -> None:
        self._entries[key] = bytes(data)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> list[str]:
        return sorted(self._entries)


class FileByteStore:
    """Store each key as a JSON file inside *directory*.

    Writes go to a temporary file that replaces the target, so a crash never
    leaves a half-written entry behind.
    """

    blocking = True

    def __init__(self, directory: Path) -> None:
        self._directory = Path(directory).expanduser()

    @property
    def directory(self) -> Path:
        return self._directory

    def _path_for(self, key: str) -> Path:
        return self._directory / f"{quote(key, safe='')}{_FILE_SUFFIX}"

    def get(self, key: str) -> bytes | None:
        path = self._path_for(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise ByteStoreError(f"Unable to read {path}: {exc}") from exc

    def put(self, key: str, data: bytes) -> None:
        path = self._path_for(key)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            handle, temp_name = tempfile.mkstemp(dir=self._directory, suffix=".tmp")
            try:
                with os.fdopen(handle, "wb") as stream:
                    stream.write(data)
                os.replace(temp_name, path)
            except BaseException:
                Path(temp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise ByteStoreError(f"Unable to write {path}: {exc}") from exc

    def delete(self, key: str) -> None:
        path = self._path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise ByteStoreError(f"Unable to delete {path}: {exc}") from exc

    def clear(self) -> None:
        if not self._directory.exists():
            return
        try:
            for path in self._directory.glob(f"*{_FILE_SUFFIX}"):
                path.unlink(missing_ok=True)
        except OSError as exc:
            raise ByteStoreError(f"Unable to clear {self._directory}: {exc}") from exc

    def keys(self) -> list[str]:
        if not self._directory.exists():
            return []
        return sorted(
            unquote(path.name[: -len(_FILE_SUFFIX)])
            for path in self._directory.glob(f"*{_FILE_SUFFIX}")
        )


def connect(db_path: Path) -> sqlite3.Connection:
    """Return a configured SQLite connection."""
    conn = sqlite3.connect(str(db_path))
    conn.execute("PRAGMA journal_mode = WAL;")
    conn.execute("PRAGMA synchronous = NORMAL;")
    return conn


class SQLiteByteStore:
    """Key/value table inside a SQLite database file."""

    blocking = True

    def __init__(self, db_path: Path) -> None:
        self._db_path = Path(db_path).expanduser()
        self._initialised = False

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = connect(self._db_path)
        if not self._initialised:
            conn.execute(
                "CREATE TABLE IF NOT EXISTS kv_store ("
                "key TEXT PRIMARY KEY, "
                "value BLOB NOT NULL, "
                "updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP)"
            )
            conn.commit()
            self._initialised = True
        return conn

    def get(self, key: str) -> bytes | None:
        try:
            with closing(self._connect()) as conn:
                row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        except (sqlite3.Error, OSError) as exc:
            raise ByteStoreError(f"Unable to read key {key!r}: {exc}") from exc
        if row is None:
            return None
        return bytes(row[0])

    def put(self, key: str, data: bytes) -> None:
        try:
            with closing(self._connect()) as conn, conn:
                conn.execute(
                    "INSERT INTO kv_store (key, value, updated_at) "
                    "VALUES (?, ?, CURRENT_TIMESTAMP) "
                    "ON CONFLICT(key) DO UPDATE SET "
                    "value = excluded.value, updated_at = excluded.updated_at",
                    (key, sqlite3.Binary(data)),
                )
        except (sqlite3.Error, OSError) as exc:
            raise ByteStoreError(f"Unable to write key {key!r}: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            with closing(self._connect()) as conn, conn:
                conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        except (sqlite3.Error, OSError) as exc:
            raise ByteStoreError(f"Unable to delete key {key!r}: {exc}") from exc

    def clear(self) -> None:
        try:
            with closing(self._connect()) as conn, conn:
                conn.execute("DELETE FROM kv_store")
        except (sqlite3.Error, OSError) as exc:
            raise ByteStoreError(f"Unable to clear {self._db_path}: {exc}") from exc

    def keys(self) -> list[str]:
        try:
            with closing(self._connect()) as conn:
                rows = conn.execute("SELECT key FROM kv_store ORDER BY key").fetchall()
        except (sqlite3.Error, OSError) as exc:
            raise ByteStoreError(f"Unable to list keys: {exc}") from exc
        return [str(row[0]) for row in rows]


class RedisByteStore:
    """Namespaced keys on a ``redis.asyncio`` client."""

    def __init__(self, client: Redis, *, namespace: str = "promptvault:") -> None:
        self._client = client
        self._namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self._namespace}{key}"

    async def _scan(self) -> list[bytes | str]:
        return [key async for key in self._client.scan_iter(match=f"{self._namespace}*")]

    async def get(self, key: str) -> bytes | None:
        try:
            value = await self._client.get(self._key(key))
        except RedisError as exc:
            raise ByteStoreError(f"Redis read failed for {key!r}: {exc}") from exc
        if value is None:
            return None
        if isinstance(value, str):
            return value.encode("utf-8")
        return bytes(value)

    async def put(self, key: str, data: bytes) -> None:
        try:
            await self._client.set(self._key(key), data)
        except RedisError as exc:
            raise ByteStoreError(f"Redis write failed for {key!r}: {exc}") from exc

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(self._key(key))
        except RedisError as exc:
            raise ByteStoreError(f"Redis delete failed for {key!r}: {exc}") from exc

    async def clear(self) -> None:
        try:
            stale = await self._scan()
            if stale:
                await self._client.delete(*stale)
        except RedisError as exc:
            raise ByteStoreError(f"Redis clear failed: {exc}") from exc
        logger.debug("Cleared %d redis keys under %s", len(stale), self._namespace)

    async def keys(self) -> list[str]:
        try:
            raw_keys = await self._scan()
        except RedisError as exc:
            raise ByteStoreError(f"Redis key listing failed: {exc}") from exc
        prefix = len(self._namespace)
        names = [
            (key.decode("utf-8") if isinstance(key, bytes) else str(key))[prefix:]
            for key in raw_keys
        ]
        return sorted(names)

    async def aclose(self) -> None:
        try:
            await self._client.aclose()
        except RedisError as exc:
            raise ByteStoreError(f"Redis close failed: {exc}") from exc


__all__ = [
    "ByteStore",
    "FileByteStore",
    "MemoryByteStore",
    "RedisByteStore",
    "SQLiteByteStore",
    "connect",
]
