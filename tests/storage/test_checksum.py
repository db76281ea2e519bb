from __future__ import annotations

from datetime import datetime

from prefect_attendance.attendance.model import AttendanceRecord
from prefect_attendance.core.enums import PrefectRole
from prefect_attendance.storage.checksum import fingerprint


def _record(record_id: str, number: str = "P001", role: PrefectRole = PrefectRole.HEAD) -> AttendanceRecord:
    ts = datetime(2026, 1, 5, 6, 30).astimezone()
    return AttendanceRecord(id=record_id, prefect_number=number, role=role, timestamp=ts, date="2026-01-05")


def test_fingerprint_of_empty_set_is_hash_of_empty_json_array():
    # "[" -> 91, then 91 * 31 + ord("]") = 2914 -> "28y" in base 36
    assert fingerprint([]) == "28y"


def test_fingerprint_ignores_record_order():
    a, b, c = _record("a"), _record("b", "P002"), _record("c", "P003", PrefectRole.SUB)

    assert fingerprint([a, b, c]) == fingerprint([c, a, b]) == fingerprint([b, c, a])


def test_fingerprint_changes_when_a_field_changes():
    original = [_record("a"), _record("b", "P002")]
    tampered = [_record("a"), _record("b", "P999")]

    assert fingerprint(original) != fingerprint(tampered)


def test_fingerprint_accepts_records_or_persisted_dicts():
    records = [_record("a"), _record("b", "P002")]

    assert fingerprint(records) == fingerprint([r.to_dict() for r in records])
