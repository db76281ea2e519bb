from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .admin.repository import KeyValueLockoutRepository
from .admin.service import AdminAuthService
from .attendance.factory import AttendanceStrategyFactory
from .attendance.gateway import LocalAttendanceGateway
from .attendance.report import ReportService
from .attendance.service import AttendanceService
from .common.datetime_utils import now_local
from .core.constants import DEFAULT_DATE_FORMAT
from .storage.backend import KeyValueBackend
from .storage.memory_backend import InMemoryKeyValueStore
from .storage.notifications import BroadcastChannel, SQLiteChangeFeed
from .storage.record_store import RecordStore
from .storage.sqlite_backend import SQLiteConfig, SQLiteKeyValueStore


@dataclass(frozen=True)
class Container:
    backend: KeyValueBackend
    channel: Optional[BroadcastChannel]
    store: RecordStore

    attendance_service: AttendanceService
    report_service: ReportService
    admin_service: AdminAuthService
    gateway: LocalAttendanceGateway

    def close(self) -> None:
        self.store.close()
        if self.channel is not None:
            self.channel.close()
        for backend in (self.backend, self.store.backups.session_backend):
            if isinstance(backend, SQLiteKeyValueStore):
                backend.close()


def build_backend(storage_config: dict) -> KeyValueBackend:
    max_bytes = storage_config.get("max_bytes")
    max_bytes = int(max_bytes) if max_bytes else None
    if storage_config.get("backend", "sqlite") == "memory":
        return InMemoryKeyValueStore(capacity=max_bytes)
    return SQLiteKeyValueStore(SQLiteConfig(path=str(storage_config.get("path", "data/attendance.db")), max_bytes=max_bytes))


def build_session_backend(storage_config: dict) -> KeyValueBackend:
    # Emergency snapshots only outlive the process when a session path is configured
    session_path = storage_config.get("session_path")
    if session_path and storage_config.get("backend", "sqlite") != "memory":
        return SQLiteKeyValueStore(SQLiteConfig(path=str(session_path)))
    return InMemoryKeyValueStore()


def build_container(
    *,
    storage_config: dict,
    admin_pin: str,
    retention_days: Optional[int] = None,
    date_format: str = DEFAULT_DATE_FORMAT,
    channel: Optional[BroadcastChannel] = None,
    clock: Callable[[], datetime] = now_local,
) -> Container:
    backend = build_backend(storage_config)
    if channel is None and isinstance(backend, SQLiteKeyValueStore) and backend.path != ":memory:":
        channel = SQLiteChangeFeed(backend)

    store = RecordStore(backend, session_backend=build_session_backend(storage_config), channel=channel, clock=clock)

    strategy_factory = AttendanceStrategyFactory()
    attendance_service = AttendanceService(
        store,
        strategy_factory=strategy_factory,
        retention_days=retention_days,
        date_format=date_format,
        clock=clock,
    )
    gateway = LocalAttendanceGateway(attendance_service, store)
    report_service = ReportService(gateway, strategy_factory=strategy_factory, date_format=date_format, clock=clock)
    admin_service = AdminAuthService(KeyValueLockoutRepository(backend), pin=admin_pin, clock=clock)

    return Container(
        backend=backend,
        channel=channel,
        store=store,
        attendance_service=attendance_service,
        report_service=report_service,
        admin_service=admin_service,
        gateway=gateway,
    )
