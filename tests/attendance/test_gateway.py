from __future__ import annotations

import json

from prefect_attendance.attendance.gateway import LocalAttendanceGateway


def test_local_gateway_marks_lists_and_round_trips_backups(service, store):
    gateway = LocalAttendanceGateway(service, store)

    record = gateway.mark_attendance("P1", "Head")
    exported = gateway.export_backup()
    gateway.mark_attendance("P2", "Sub")

    assert [r.prefect_number for r in gateway.list_by_date(record.date)] == ["P1", "P2"]
    assert json.loads(exported)["metadata"]["recordCount"] == 1

    gateway.import_backup(exported)
    assert gateway.list_all() == [record]
