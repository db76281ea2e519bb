"""Transport boundary.

The record set can live in the local store or behind an out-of-process store.
Callers such as `ReportService` only use `AttendanceGateway`, so either
transport can be plugged in.
"""

from __future__ import annotations

from typing import Protocol

from ..core.enums import PrefectRole
from ..storage.record_store import RecordStore
from .model import AttendanceRecord
from .service import AttendanceService


class AttendanceGateway(Protocol):
    def mark_attendance(self, prefect_number: str, role: PrefectRole | str) -> AttendanceRecord:
        raise NotImplementedError

    def list_by_date(self, date: str) -> list[AttendanceRecord]:
        raise NotImplementedError

    def list_all(self) -> list[AttendanceRecord]:
        raise NotImplementedError

    def import_backup(self, serialized: str) -> None:
        raise NotImplementedError

    def export_backup(self) -> str:
        raise NotImplementedError


class LocalAttendanceGateway(AttendanceGateway):
    def __init__(self, attendance: AttendanceService, store: RecordStore):
        self._attendance = attendance
        self._store = store

    def mark_attendance(self, prefect_number: str, role: PrefectRole | str) -> AttendanceRecord:
        return self._attendance.save(prefect_number, role)

    def list_by_date(self, date: str) -> list[AttendanceRecord]:
        return self._attendance.records_for_date(date)

    def list_all(self) -> list[AttendanceRecord]:
        return self._attendance.list_records()

    def import_backup(self, serialized: str) -> None:
        self._store.backups.restore_from_backup(serialized)

    def export_backup(self) -> str:
        return self._store.backups.create_manual_backup()
