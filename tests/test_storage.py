"""Tests for byte store backends and the JSON persistent store.

Updates:
  v0.3.0 - 2026-10-17 - Cover worker-thread dispatch and the asyncio Redis backend.
  v0.2.0 - 2026-10-13 - Cover Redis backend with an in-memory client double.
  v0.1.0 - 2026-10-07 - Cover memory, file and SQLite backends.
"""

from __future__ import annotations

import fnmatch
import threading
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any, cast

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from core.byte_stores import FileByteStore, MemoryByteStore, RedisByteStore, SQLiteByteStore
from core.exceptions import ByteStoreError, StateSerializationError
from core.storage import PersistentStore


class _FakeRedis:
    """Just enough of redis.asyncio.Redis for the byte store."""

    def __init__(self, *, fail: bool = False) -> None:
        self.data: dict[str, bytes] = {}
        self.fail = fail
        self.closed = False

    def _check(self) -> None:
        if self.fail:
            raise RedisConnectionError("connection refused")

    async def get(self, key: str) -> bytes | None:
        self._check()
        return self.data.get(key)

    async def set(self, key: str, value: bytes) -> None:
        self._check()
        self.data[key] = value

    async def delete(self, *keys: Any) -> int:
        self._check()
        removed = 0
        for key in keys:
            name = key.decode("utf-8") if isinstance(key, bytes) else key
            removed += int(self.data.pop(name, None) is not None)
        return removed

    async def scan_iter(self, match: str = "*") -> AsyncIterator[bytes]:
        self._check()
        for key in list(self.data):
            if fnmatch.fnmatch(key, match):
                yield key.encode("utf-8")

    async def aclose(self) -> None:
        self.closed = True


class _ThreadRecordingFileStore(FileByteStore):
    def __init__(self, directory: Path) -> None:
        super().__init__(directory)
        self.threads: list[int] = []

    def get(self, key: str) -> bytes | None:
        self.threads.append(threading.get_ident())
        return super().get(key)

    def put(self, key: str, data: bytes) -> None:
        self.threads.append(threading.get_ident())
        super().put(key, data)


class _ThreadRecordingMemoryStore(MemoryByteStore):
    def __init__(self) -> None:
        super().__init__()
        self.threads: list[int] = []

    def put(self, key: str, data: bytes) -> None:
        self.threads.append(threading.get_ident())
        super().put(key, data)


class _BrokenStore(MemoryByteStore):
    def put(self, key: str, data: bytes) -> None:
        raise ByteStoreError("disk full")


@pytest.mark.parametrize("backend", ["memory", "file", "sqlite"])
def test_local_backends_store_and_clear(backend: str, tmp_path: Path) -> None:
    if backend == "memory":
        store: Any = MemoryByteStore()
    elif backend == "file":
        store = FileByteStore(tmp_path / "state")
    else:
        store = SQLiteByteStore(tmp_path / "vault.db")

    assert store.get("missing") is None
    store.put("promptvault-state", b'{"a": 1}')
    store.put("other/key", b"[]")
    store.put("promptvault-state", b'{"a": 2}')

    assert store.get("promptvault-state") == b'{"a": 2}'
    assert store.keys() == ["other/key", "promptvault-state"]

    store.delete("other/key")
    store.delete("other/key")
    assert store.keys() == ["promptvault-state"]

    store.clear()
    assert store.get("promptvault-state") is None


def test_file_store_leaves_no_temporary_files(tmp_path: Path) -> None:
    store = FileByteStore(tmp_path)
    store.put("state", b"{}")
    store.put("state", b'{"b": 1}')

    assert sorted(path.name for path in tmp_path.iterdir()) == ["state.json"]


@pytest.mark.asyncio()
async def test_redis_store_namespaces_keys() -> None:
    client = _FakeRedis()
    client.data["unrelated"] = b"keep"
    store = RedisByteStore(cast(Any, client), namespace="pv:")

    await store.put("state", b"{}")

    assert client.data["pv:state"] == b"{}"
    assert await store.get("state") == b"{}"
    assert await store.keys() == ["state"]

    await store.clear()
    assert client.data == {"unrelated": b"keep"}


@pytest.mark.asyncio()
async def test_redis_store_wraps_client_errors() -> None:
    store = RedisByteStore(cast(Any, _FakeRedis(fail=True)))

    with pytest.raises(ByteStoreError):
        await store.get("state")
    with pytest.raises(ByteStoreError):
        await store.put("state", b"{}")
    with pytest.raises(ByteStoreError):
        await store.clear()


@pytest.mark.asyncio()
async def test_persistent_store_awaits_redis_and_closes_client() -> None:
    client = _FakeRedis()
    store = PersistentStore(RedisByteStore(cast(Any, client)))

    assert await store.save("state", {"favorites": ["p1"]})
    assert await store.load("state", dict) == {"favorites": ["p1"]}
    assert await store.keys() == ["state"]

    await store.aclose()
    assert client.closed is True


@pytest.mark.asyncio()
async def test_blocking_backends_run_off_the_event_loop_thread(tmp_path: Path) -> None:
    loop_thread = threading.get_ident()
    file_backend = _ThreadRecordingFileStore(tmp_path)
    memory_backend = _ThreadRecordingMemoryStore()

    assert await PersistentStore(file_backend).save("state", {"a": 1})
    assert await PersistentStore(file_backend).load("state", dict) == {"a": 1}
    assert await PersistentStore(memory_backend).save("state", {"a": 1})

    assert len(file_backend.threads) == 2
    assert loop_thread not in file_backend.threads
    assert memory_backend.threads == [loop_thread]


@pytest.mark.asyncio()
async def test_sqlite_store_works_through_worker_threads(tmp_path: Path) -> None:
    store = PersistentStore(SQLiteByteStore(tmp_path / "vault.db"))

    assert await store.save("state", {"theme": "dark"})
    assert await store.load("state", dict) == {"theme": "dark"}
    assert await store.keys() == ["state"]
    assert await store.clear()
    assert await store.keys() == []
    await store.aclose()


@pytest.mark.asyncio()
async def test_persistent_store_round_trips_documents() -> None:
    store = PersistentStore(MemoryByteStore())

    assert await store.save("prefs", {"theme": "dark"})
    assert await store.load("prefs", dict) == {"theme": "dark"}
    assert await store.exists("prefs")
    assert await store.keys() == ["prefs"]

    assert await store.remove("prefs")
    assert await store.load("prefs", dict) is None


@pytest.mark.asyncio()
async def test_persistent_store_drops_corrupt_entries() -> None:
    backend = MemoryByteStore({"state": b"{not json"})
    store = PersistentStore(backend)

    assert await store.load("state", dict) is None
    assert backend.get("state") is None


@pytest.mark.asyncio()
async def test_persistent_store_drops_entries_the_factory_rejects() -> None:
    backend = MemoryByteStore({"state": b"[1, 2]"})
    store = PersistentStore(backend)

    def _factory(document: Any) -> dict[str, Any]:
        if not isinstance(document, dict):
            raise TypeError("expected an object")
        return document

    assert await store.load("state", _factory) is None
    assert backend.keys() == []


@pytest.mark.asyncio()
async def test_persistent_store_reports_backend_write_failures() -> None:
    store = PersistentStore(_BrokenStore())

    assert await store.save("state", {"a": 1}) is False
    assert await store.is_available() is False


@pytest.mark.asyncio()
async def test_persistent_store_raises_for_unencodable_values() -> None:
    store = PersistentStore(MemoryByteStore())

    with pytest.raises(StateSerializationError):
        await store.save("state", {"when": object()})


@pytest.mark.asyncio()
async def test_persistent_store_availability_check_cleans_up(tmp_path: Path) -> None:
    backend = SQLiteByteStore(tmp_path / "check.db")
    store = PersistentStore(backend)

    assert await store.is_available()
    assert backend.keys() == []
