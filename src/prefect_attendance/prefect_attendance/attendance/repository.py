from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence

from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    """Persistence interface the attendance services depend on.

    Note (DIP): `RecordStore` implements it; services never touch the backend directly.
    """

    def get_records(self) -> list[AttendanceRecord]:
        raise NotImplementedError

    def save_records(self, records: Sequence[AttendanceRecord]) -> None:
        raise NotImplementedError

    def add_record(self, record: AttendanceRecord) -> None:
        raise NotImplementedError

    def update_record(self, record_id: str, updates: Mapping[str, Any]) -> AttendanceRecord:
        raise NotImplementedError

    def delete_record(self, record_id: str) -> None:
        raise NotImplementedError
