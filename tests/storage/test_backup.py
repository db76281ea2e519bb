from __future__ import annotations

import json
from datetime import datetime, timedelta

import pytest

from prefect_attendance.attendance.model import AttendanceRecord
from prefect_attendance.core.constants import (
    BACKUP_METADATA_KEY,
    EMERGENCY_BACKUP_KEY,
    LAST_BACKUP_KEY,
    MANUAL_BACKUP_KEY_PREFIX,
)
from prefect_attendance.core.enums import PrefectRole
from prefect_attendance.core.exceptions import InvalidFormat
from prefect_attendance.storage.backup import backup_key_timestamp, valid_records
from prefect_attendance.storage.model import BackupSnapshot


def make_record(i: int) -> AttendanceRecord:
    ts = datetime(2026, 1, 5, 6, 30).astimezone() + timedelta(minutes=i)
    return AttendanceRecord(
        id=f"rec-{i}",
        prefect_number=f"P{i:03d}",
        role=PrefectRole.SENIOR,
        timestamp=ts,
        date="2026-01-05",
    )


def test_backup_key_timestamp():
    assert backup_key_timestamp("attendance_backup_1767594600000") == 1767594600000
    assert backup_key_timestamp("attendance_backup_manual_42") == 42
    assert backup_key_timestamp("attendance_backup_metadata") == 0


def test_valid_records_counts_discarded_entries():
    records, discarded = valid_records([make_record(1).to_dict(), {"id": "x"}, None, 7])

    assert [r.id for r in records] == ["rec-1"]
    assert discarded == 3


def test_manual_backup_round_trip(store):
    original = [make_record(1), make_record(2), make_record(3)]
    store.save_records(original)

    exported = store.backups.create_manual_backup()
    store.save_records([make_record(50)])
    store.backups.restore_from_backup(exported)

    assert store.get_records() == original


def test_manual_backup_is_pretty_printed_and_kept(store, backend, clock):
    store.save_records([make_record(1)])

    exported = store.backups.create_manual_backup()

    data = json.loads(exported)
    assert "\n  " in exported
    assert data["metadata"]["type"] == "manual"
    assert data["metadata"]["recordCount"] == 1
    assert data["version"] == "2.0.0"
    assert backend.get(f"{MANUAL_BACKUP_KEY_PREFIX}{data['timestamp']}") is not None


def test_restore_replaces_instead_of_merging(store):
    store.save_records([make_record(1), make_record(2)])
    payload = json.dumps({"records": [make_record(3).to_dict()]})

    restored = store.backups.restore_from_backup(payload)

    assert [r.id for r in restored] == ["rec-3"]
    assert [r.id for r in store.get_records()] == ["rec-3"]


def test_restore_filters_invalid_records(store):
    payload = json.dumps({"records": [make_record(1).to_dict(), {"id": "half"}]})

    store.backups.restore_from_backup(payload)

    assert [r.id for r in store.get_records()] == ["rec-1"]


@pytest.mark.parametrize("payload", ["not json", "[]", '{"records": "nope"}', '{"timestamp": 1}'])
def test_restore_rejects_invalid_format(store, payload):
    store.save_records([make_record(1)])

    with pytest.raises(InvalidFormat):
        store.backups.restore_from_backup(payload)

    assert [r.id for r in store.get_records()] == ["rec-1"]


def test_rotation_keeps_five_newest_backups(store, clock):
    store.save_records([make_record(1)])
    keys = []
    for _ in range(7):
        keys.append(store.backups.perform_automatic_backup())
        clock.advance(minutes=1)

    remaining = store.backups.backup_keys()

    assert remaining == list(reversed(keys))[:5]
    assert store.backend.get(BACKUP_METADATA_KEY) is not None


def test_check_and_perform_backup_respects_interval(store, backend, clock):
    assert store.backups.check_and_perform_backup() is True
    first = backend.get(LAST_BACKUP_KEY)

    clock.advance(hours=23)
    assert store.backups.check_and_perform_backup() is False
    assert backend.get(LAST_BACKUP_KEY) == first

    clock.advance(hours=2)
    assert store.backups.check_and_perform_backup() is True
    assert backend.get(LAST_BACKUP_KEY) != first


def test_latest_backup_is_newest_snapshot(store, clock):
    store.save_records([make_record(1)])
    store.backups.perform_automatic_backup()
    clock.advance(minutes=5)
    store.save_records([make_record(1), make_record(2)])
    store.backups.perform_automatic_backup()

    latest = store.backups.get_latest_backup()

    assert latest is not None
    assert latest.metadata.record_count == 2


def test_emergency_backup_goes_to_session_storage(store, backend, session_backend):
    store.save_records([make_record(1)])

    store.backups.perform_emergency_backup()

    snapshot = BackupSnapshot.from_dict(json.loads(session_backend.get(EMERGENCY_BACKUP_KEY)))
    assert snapshot.metadata.type.value == "emergency"
    assert store.backups.backup_keys() == []


def test_data_recovery_prefers_latest_backup(store, backend):
    store.save_records([make_record(1)])
    store.backups.perform_automatic_backup()
    store.save_records([make_record(1), make_record(2)])

    assert store.backups.attempt_data_recovery() is True

    assert [r.id for r in store.get_records()] == ["rec-1"]
