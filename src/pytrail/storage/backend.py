"""Key-value backends the location store writes through."""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Protocol

_logger = logging.getLogger(__name__)


class KeyValueBackend(Protocol):
    """Structural string key-value interface used by the location store.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementations concrete.
    """

    async def get_item(self, key: str) -> str | None:
        ...

    async def set_item(self, key: str, value: str) -> None:
        ...

    async def remove_item(self, key: str) -> None:
        ...


class MemoryBackend:
    """Volatile backend; contents are lost with the process."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    async def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    async def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class SqliteBackend:
    """Durable backend storing one row per key in a SQLite file.

    Blocking sqlite calls run in worker threads; a lock keeps the shared
    connection to one statement at a time. Every write commits before it
    returns, so a suspended or killed process keeps what was acknowledged.
    """

    _SCHEMA = "CREATE TABLE IF NOT EXISTS kv (key TEXT PRIMARY KEY, value TEXT NOT NULL)"

    def __init__(self, path: str | Path) -> None:
        self._path = str(path)
        self._lock = threading.Lock()
        self._conn: sqlite3.Connection | None = None

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            if self._path != ":memory:":
                Path(self._path).parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self._path, check_same_thread=False)
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute(self._SCHEMA)
            conn.commit()
            self._conn = conn
            _logger.debug("Opened sqlite backend path=%s", self._path)
        return self._conn

    def _get(self, key: str) -> str | None:
        with self._lock:
            row = self._connection().execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return None if row is None else str(row[0])

    def _set(self, key: str, value: str) -> None:
        with self._lock:
            conn = self._connection()
            conn.execute(
                "INSERT INTO kv (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, value),
            )
            conn.commit()

    def _remove(self, key: str) -> None:
        with self._lock:
            conn = self._connection()
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))
            conn.commit()

    async def get_item(self, key: str) -> str | None:
        return await asyncio.to_thread(self._get, key)

    async def set_item(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._set, key, value)

    async def remove_item(self, key: str) -> None:
        await asyncio.to_thread(self._remove, key)

    def close(self) -> None:
        with self._lock:
            conn = self._conn
            self._conn = None
        if conn is not None:
            conn.close()
            _logger.debug("Closed sqlite backend path=%s", self._path)
