from __future__ import annotations

from typing import Optional, Protocol, Sequence


class KeyValueBackend(Protocol):
    """Host storage interface used by the record store.

    Note (DIP): the store depends on this interface, not on a concrete engine.
    Implementations raise `QuotaExceeded` when out of space and
    `UnderlyingWriteFailure` for any other rejected write.
    """

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def keys(self) -> Sequence[str]:
        raise NotImplementedError

    def usage(self) -> int:
        """Sum of all key and value lengths."""

        raise NotImplementedError

    def probe_available(self, *, chunk_size: int, max_chunks: int) -> int:
        """Write up to `max_chunks` filler values, undo them, return what fit."""

        raise NotImplementedError
