from __future__ import annotations

from datetime import datetime, timezone

import pytest

from prefect_attendance.attendance.model import AttendanceRecord
from prefect_attendance.core.enums import PrefectRole
from prefect_attendance.storage.backup import valid_records


def test_to_dict_uses_camel_case_and_utc_millis():
    ts = datetime(2026, 1, 5, 6, 30, 15, 123000, tzinfo=timezone.utc)
    record = AttendanceRecord(id="r1", prefect_number="P1", role=PrefectRole.SUPER_SENIOR, timestamp=ts, date="2026-01-05")

    assert record.to_dict() == {
        "id": "r1",
        "prefectNumber": "P1",
        "role": "Super Senior",
        "timestamp": "2026-01-05T06:30:15.123Z",
        "date": "2026-01-05",
    }


def test_from_dict_keeps_stored_date_and_optional_fields():
    record = AttendanceRecord.from_dict(
        {
            "id": "r1",
            "prefectNumber": "P1",
            "role": "Apprentice",
            "timestamp": "2026-01-05T23:30:00.000Z",
            "date": "2026-01-05",
            "version": "2.0.0",
            "migrated": True,
        }
    )

    assert record.role == PrefectRole.APPRENTICE
    assert record.date == "2026-01-05"
    assert record.timestamp == datetime(2026, 1, 5, 23, 30, tzinfo=timezone.utc)
    assert record.version == "2.0.0"
    assert record.migrated is True


@pytest.mark.parametrize(
    "data",
    [
        None,
        "r1",
        {"prefectNumber": "P1", "role": "Head", "timestamp": "2026-01-05T06:30:00.000Z"},
        {"id": "r1", "prefectNumber": "", "role": "Head", "timestamp": "2026-01-05T06:30:00.000Z"},
        {"id": "r1", "prefectNumber": "P1", "role": "Captain", "timestamp": "2026-01-05T06:30:00.000Z"},
        {"id": "r1", "prefectNumber": "P1", "role": "Head", "timestamp": "yesterday"},
    ],
)
def test_invalid_entries_are_discarded(data):
    assert valid_records([data]) == ([], 1)
