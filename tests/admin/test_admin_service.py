from __future__ import annotations

from datetime import datetime

import pytest

from prefect_attendance.admin.model import AdminLockoutState
from prefect_attendance.admin.repository import KeyValueLockoutRepository
from prefect_attendance.admin.service import AdminAuthService
from prefect_attendance.core.constants import FAILED_ATTEMPTS_KEY, LOCKOUT_TIME_KEY
from prefect_attendance.core.exceptions import InvalidPin, LockedOut, ValidationError
from prefect_attendance.storage.memory_backend import InMemoryKeyValueStore


@pytest.fixture
def kv():
    return InMemoryKeyValueStore()


@pytest.fixture
def admin(kv, clock):
    return AdminAuthService(KeyValueLockoutRepository(kv), pin="apple", clock=clock)


def test_correct_pin_grants_access(admin):
    assert admin.check_access("apple") is True
    assert admin.state() == AdminLockoutState()


def test_wrong_pin_reports_remaining_attempts(admin):
    with pytest.raises(InvalidPin) as exc:
        admin.check_access("pear")

    assert exc.value.remaining_attempts == 9
    assert str(exc.value) == "Invalid PIN. 9 attempts remaining."


def test_last_attempt_message_is_singular(admin):
    for _ in range(8):
        with pytest.raises(InvalidPin):
            admin.check_access("pear")

    with pytest.raises(InvalidPin) as exc:
        admin.check_access("pear")

    assert str(exc.value) == "Invalid PIN. 1 attempt remaining."


def test_tenth_failure_locks_and_correct_pin_is_refused_while_locked(admin, clock):
    for _ in range(9):
        with pytest.raises(InvalidPin):
            admin.check_access("pear")

    with pytest.raises(LockedOut) as exc:
        admin.check_access("pear")
    assert str(exc.value) == "Too many failed attempts. Account locked for 15 minutes."

    with pytest.raises(LockedOut) as exc:
        admin.check_access("apple")
    assert exc.value.remaining_minutes == 15

    clock.advance(minutes=14)
    with pytest.raises(LockedOut) as exc:
        admin.check_access("apple")
    assert str(exc.value) == "Account is locked. Please try again in 1 minutes."


def test_access_after_lockout_window_resets_counters(admin, kv, clock):
    for _ in range(10):
        with pytest.raises((InvalidPin, LockedOut)):
            admin.check_access("pear")

    clock.advance(minutes=15)
    assert admin.check_access("apple") is True

    assert admin.state().failed_attempts == 0
    assert kv.get(FAILED_ATTEMPTS_KEY) is None
    assert kv.get(LOCKOUT_TIME_KEY) is None


def test_lockout_state_persists_across_instances(kv, clock):
    first = AdminAuthService(KeyValueLockoutRepository(kv), pin="apple", clock=clock)
    for _ in range(3):
        with pytest.raises(InvalidPin):
            first.check_access("pear")

    second = AdminAuthService(KeyValueLockoutRepository(kv), pin="apple", clock=clock)
    with pytest.raises(InvalidPin) as exc:
        second.check_access("")

    assert exc.value.remaining_attempts == 6


def test_lockout_time_is_stored_in_epoch_millis(admin, kv, clock):
    for _ in range(10):
        with pytest.raises((InvalidPin, LockedOut)):
            admin.check_access("pear")

    expected = int(clock().timestamp() * 1000) + 15 * 60 * 1000
    assert int(kv.get(LOCKOUT_TIME_KEY)) == expected
    assert admin.state().lockout_until > datetime(2026, 1, 1).astimezone()


def test_pin_must_be_configured(kv):
    with pytest.raises(ValidationError):
        AdminAuthService(KeyValueLockoutRepository(kv), pin="")
