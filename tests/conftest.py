from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from prefect_attendance.attendance.factory import AttendanceStrategyFactory
from prefect_attendance.attendance.service import AttendanceService
from prefect_attendance.storage.memory_backend import InMemoryKeyValueStore
from prefect_attendance.storage.record_store import RecordStore


class FakeClock:
    """Callable clock returning local, timezone-aware times that tests move by hand."""

    def __init__(self, start: datetime):
        self.now = start.astimezone() if start.tzinfo is None else start

    def __call__(self) -> datetime:
        return self.now

    def set(self, value: datetime) -> None:
        self.now = value.astimezone() if value.tzinfo is None else value

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 1, 5, 6, 30))


@pytest.fixture
def backend() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def session_backend() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def store(backend, session_backend, clock) -> RecordStore:
    s = RecordStore(backend, session_backend=session_backend, clock=clock)
    yield s
    s.close()


@pytest.fixture
def service(store, clock) -> AttendanceService:
    return AttendanceService(store, strategy_factory=AttendanceStrategyFactory(), clock=clock)
