from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Sequence

from ..core.exceptions import QuotaExceeded, UnderlyingWriteFailure
from .backend import KeyValueBackend

PROBE_KEY = "storage_quota_test"

SCHEMA = """
CREATE TABLE IF NOT EXISTS kv (
    key   TEXT PRIMARY KEY,
    value TEXT NOT NULL
)
"""


@dataclass
class SQLiteConfig:
    path: str
    max_bytes: Optional[int] = None


class SQLiteKeyValueStore(KeyValueBackend):
    """Durable key-value store in a single SQLite table.

    One connection is kept for the lifetime of the store and guarded by a lock,
    since background jobs run on scheduler threads. `max_bytes` emulates the
    quota of a browser-style storage area.
    """

    def __init__(self, config: SQLiteConfig):
        self._config = config
        if config.path != ":memory:":
            Path(config.path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(config.path, check_same_thread=False, isolation_level=None)
        self._lock = threading.RLock()
        with self._cursor() as cur:
            cur.execute(SCHEMA)

    @property
    def path(self) -> str:
        return self._config.path

    @contextmanager
    def _cursor(self) -> Iterator[sqlite3.Cursor]:
        with self._lock:
            cur = self._conn.cursor()
            try:
                cur.execute("BEGIN")
                yield cur
                cur.execute("COMMIT")
            except Exception:
                cur.execute("ROLLBACK")
                raise
            finally:
                cur.close()

    def _usage(self, cur: sqlite3.Cursor) -> int:
        cur.execute("SELECT COALESCE(SUM(LENGTH(key) + LENGTH(value)), 0) FROM kv")
        return int(cur.fetchone()[0])

    def _check_quota(self, cur: sqlite3.Cursor, key: str, value: str) -> None:
        if self._config.max_bytes is None:
            return
        cur.execute("SELECT LENGTH(value) FROM kv WHERE key=?", (key,))
        row = cur.fetchone()
        delta = len(key) + len(value) - (len(key) + int(row[0]) if row else 0)
        if self._usage(cur) + delta > self._config.max_bytes:
            raise QuotaExceeded(f"Storage quota exceeded while writing {key!r}")

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            row = self._conn.execute("SELECT value FROM kv WHERE key=?", (key,)).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        try:
            with self._cursor() as cur:
                self._check_quota(cur, key, value)
                cur.execute(
                    "INSERT INTO kv(key, value) VALUES(?, ?) ON CONFLICT(key) DO UPDATE SET value=excluded.value",
                    (key, value),
                )
        except sqlite3.Error as e:
            if isinstance(e, sqlite3.OperationalError) and "full" in str(e).lower():
                raise QuotaExceeded(str(e)) from e
            raise UnderlyingWriteFailure(f"Failed to write {key!r}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            with self._cursor() as cur:
                cur.execute("DELETE FROM kv WHERE key=?", (key,))
        except sqlite3.Error as e:
            raise UnderlyingWriteFailure(f"Failed to delete {key!r}: {e}") from e

    def keys(self) -> Sequence[str]:
        with self._lock:
            return [r[0] for r in self._conn.execute("SELECT key FROM kv ORDER BY key")]

    def usage(self) -> int:
        with self._lock:
            cur = self._conn.cursor()
            try:
                return self._usage(cur)
            finally:
                cur.close()

    def probe_available(self, *, chunk_size: int, max_chunks: int) -> int:
        # Filler rows are written inside a transaction that is always rolled back.
        filler = "x" * chunk_size
        available = 0
        with self._lock:
            cur = self._conn.cursor()
            try:
                cur.execute("BEGIN")
                used = self._usage(cur)
                for i in range(max_chunks):
                    key = f"{PROBE_KEY}{i}"
                    size = len(key) + chunk_size
                    if self._config.max_bytes is not None and used + size > self._config.max_bytes:
                        break
                    cur.execute("INSERT OR REPLACE INTO kv(key, value) VALUES(?, ?)", (key, filler))
                    used += size
                    available += chunk_size
            except sqlite3.OperationalError:
                pass
            finally:
                cur.execute("ROLLBACK")
                cur.close()
        return available

    def data_version(self) -> int:
        """SQLite's per-connection counter of commits made by *other* connections."""
        with self._lock:
            return int(self._conn.execute("PRAGMA data_version").fetchone()[0])

    def close(self) -> None:
        with self._lock:
            self._conn.close()
