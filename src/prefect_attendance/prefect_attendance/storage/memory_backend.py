from __future__ import annotations

import threading
from typing import Optional, Sequence

from ..core.exceptions import QuotaExceeded
from .backend import KeyValueBackend

PROBE_KEY = "storage_quota_test"


class InMemoryKeyValueStore(KeyValueBackend):
    """Process-local key-value store with an optional byte capacity.

    Used as the session-scoped backend (emergency backups) and in tests.
    """

    def __init__(self, capacity: Optional[int] = None):
        self._data: dict[str, str] = {}
        self._capacity = capacity
        self._lock = threading.RLock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            if self._capacity is not None:
                current = self._data.get(key)
                delta = len(key) + len(value)
                if current is not None:
                    delta -= len(key) + len(current)
                if self.usage() + delta > self._capacity:
                    raise QuotaExceeded(f"Storage quota exceeded while writing {key!r}")
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> Sequence[str]:
        with self._lock:
            return list(self._data)

    def usage(self) -> int:
        with self._lock:
            return sum(len(k) + len(v) for k, v in self._data.items())

    def probe_available(self, *, chunk_size: int, max_chunks: int) -> int:
        filler = "x" * chunk_size
        available = 0
        written: list[str] = []
        with self._lock:
            try:
                for i in range(max_chunks):
                    key = f"{PROBE_KEY}{i}"
                    self.set(key, filler)
                    written.append(key)
                    available += chunk_size
            except QuotaExceeded:
                pass
            finally:
                for key in written:
                    self._data.pop(key, None)
        return available

    def clear(self) -> None:
        with self._lock:
            self._data.clear()
