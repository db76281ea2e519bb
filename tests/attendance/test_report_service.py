from __future__ import annotations

from datetime import datetime

from prefect_attendance.attendance.factory import AttendanceStrategyFactory
from prefect_attendance.attendance.model import AttendanceRecord
from prefect_attendance.attendance.report import ReportService
from prefect_attendance.core.enums import PrefectRole


class FakeGateway:
    def __init__(self, records):
        self._records = records

    def list_all(self):
        return list(self._records)

    def list_by_date(self, date):
        return [r for r in self._records if r.date == date]


def _record(rid, number, role, local_dt):
    ts = local_dt.astimezone()
    return AttendanceRecord(id=rid, prefect_number=number, role=role, timestamp=ts, date=ts.strftime("%Y-%m-%d"))


RECORDS = [
    _record("1", "P100", PrefectRole.HEAD, datetime(2026, 1, 5, 7, 15)),
    _record("2", "P200", PrefectRole.SUB, datetime(2026, 1, 5, 6, 40)),
    _record("3", "P100", PrefectRole.HEAD, datetime(2026, 1, 6, 6, 55)),
]


def _service():
    return ReportService(
        FakeGateway(RECORDS),
        strategy_factory=AttendanceStrategyFactory(),
        clock=lambda: datetime(2026, 1, 7, 9, 30, 5).astimezone(),
    )


def test_daily_report_layout_and_order():
    lines = _service().export_daily_report("2026-01-05").split("\n")

    assert lines == [
        "# Prefect Board Attendance Report",
        "Date: January 5, 2026",
        "Total Prefects: 2",
        "On Time: 1",
        "Late: 1",
        "",
        "## Role Distribution",
        "Head: 1",
        "Sub: 1",
        "",
        "## Attendance Records",
        "Prefect Number,Role,Time,Status,Notes",
        "P200,Sub,06:40 AM,On Time,Regular attendance",
        "P100,Head,07:15 AM,Late,Arrived 0h 15m late",
    ]


def test_prefect_report_summary_and_newest_first():
    lines = _service().export_prefect_report("P100").split("\n")

    assert lines[:2] == ["# Prefect Attendance Report - P100", "Generated: 2026-01-07 09:30:05"]
    assert "Total Attendance Days: 2" in lines
    assert "On Time Days: 1" in lines
    assert "Late Days: 1" in lines
    assert "Attendance Rate: 50.0%" in lines
    assert "Head: 2 days" in lines
    assert lines[-3] == "Date,Role,Time,Status,Notes"
    assert lines[-2] == "2026-01-06,Head,06:55 AM,On Time,Regular attendance"
    assert lines[-1] == "2026-01-05,Head,07:15 AM,Late,Arrived 0h 15m late"


def test_daily_report_for_empty_day_has_only_headers():
    report = _service().export_daily_report("2026-02-01")

    assert "Total Prefects: 0" in report
    assert report.endswith("Prefect Number,Role,Time,Status,Notes\n")
