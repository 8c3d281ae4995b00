from __future__ import annotations

import asyncio
import logging
import time
from importlib import resources
from pathlib import Path
from typing import Any, Protocol

import aiosqlite


MIGRATION_FILE = "001_init.sql"


def read_migration(migrations_dir: Path | None = None) -> str:
    if migrations_dir is not None:
        return (migrations_dir / MIGRATION_FILE).read_text()
    return resources.files("netlife_session").joinpath("migrations").joinpath(MIGRATION_FILE).read_text()


class DiagnosticStore(Protocol):
    """Write-mostly key/value side channel for debug tooling."""

    def put(self, key: str, value: str) -> None:
        ...

    def get(self, key: str) -> str | None:
        ...

    def delete(self, key: str) -> None:
        ...


class MemoryDiagnosticStore:
    def __init__(self) -> None:
        self.values: dict[str, str] = {}

    def put(self, key: str, value: str) -> None:
        self.values[key] = value

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def delete(self, key: str) -> None:
        self.values.pop(key, None)


class SqliteDiagnosticStore:
    """Buffered sqlite mirror of diagnostic keys.

    ``put``/``delete`` never block: they update the in-memory view and queue a
    statement for the background writer. Nothing guarantees a queued write has
    reached disk before a later read of the database.
    """

    def __init__(
        self,
        db_path: str,
        flush_interval_sec: float = 2.0,
        buffer_maxsize: int = 1000,
        migrations_dir: Path | None = None,
    ) -> None:
        self.db_path = db_path
        self.flush_interval_sec = flush_interval_sec
        self.migrations_dir = migrations_dir
        self.log = logging.getLogger("SqliteDiagnosticStore")
        self.queue: asyncio.Queue[tuple[str, tuple[Any, ...]]] = asyncio.Queue(maxsize=buffer_maxsize)
        self.values: dict[str, str] = {}
        self.dropped = 0
        self._stop = asyncio.Event()
        self._db: aiosqlite.Connection | None = None

    async def init(self) -> None:
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(self.db_path)
        self._db.row_factory = aiosqlite.Row
        try:
            await self._db.execute("PRAGMA journal_mode=WAL;")
            await self._db.executescript(read_migration(self.migrations_dir))
            await self._db.commit()
        except BaseException:
            await self._db.close()
            self._db = None
            raise
        self.values = await self.load()

    async def stop(self, flush_timeout_sec: float = 3.0) -> None:
        self._stop.set()
        await self.flush_with_timeout(flush_timeout_sec)
        if self._db is not None:
            await self._db.close()
            self._db = None

    async def run_writer(self) -> None:
        while not self._stop.is_set():
            await asyncio.sleep(self.flush_interval_sec)
            try:
                await self.flush_once()
            except Exception:
                self.log.exception("diagnostic flush failed")

    async def flush_with_timeout(self, timeout_sec: float) -> None:
        try:
            await asyncio.wait_for(self.flush_once(), timeout=timeout_sec)
        except asyncio.TimeoutError:
            self.log.error("flush timeout")

    async def flush_once(self) -> None:
        if self._db is None:
            return
        batch: list[tuple[str, tuple[Any, ...]]] = []
        while True:
            try:
                batch.append(self.queue.get_nowait())
            except asyncio.QueueEmpty:
                break
        if not batch:
            return
        await self._db.execute("BEGIN")
        for sql, params in batch:
            await self._db.execute(sql, params)
        await self._db.commit()

    def _enqueue(self, sql: str, params: tuple[Any, ...]) -> None:
        try:
            self.queue.put_nowait((sql, params))
        except asyncio.QueueFull:
            self.dropped += 1
            self.log.warning("diagnostic buffer full; dropping write")

    def put(self, key: str, value: str) -> None:
        self.values[key] = value
        self._enqueue(
            """
            INSERT INTO diagnostics(key,value,updated_ts)
            VALUES(?,?,?)
            ON CONFLICT(key) DO UPDATE SET
              value=excluded.value,
              updated_ts=excluded.updated_ts
            """,
            (key, value, time.time()),
        )

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def delete(self, key: str) -> None:
        self.values.pop(key, None)
        self._enqueue("DELETE FROM diagnostics WHERE key = ?", (key,))

    async def load(self) -> dict[str, str]:
        if self._db is None:
            raise RuntimeError("db not initialized")
        cur = await self._db.execute("SELECT key,value FROM diagnostics ORDER BY key ASC")
        rows = await cur.fetchall()
        return {row["key"]: row["value"] for row in rows}
