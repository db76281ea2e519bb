from __future__ import annotations

from datetime import datetime
from typing import Callable, Iterable, Optional

from ..common.datetime_utils import now_local, parse_record_date
from ..core.constants import DEFAULT_DATE_FORMAT
from .factory import AttendanceStrategyFactory
from .gateway import AttendanceGateway
from .model import AttendanceRecord
from .stats import compute_stats, daily_stats

PREFECT_COLUMNS = ("Date", "Role", "Time", "Status", "Notes")
DAILY_COLUMNS = ("Prefect Number", "Role", "Time", "Status", "Notes")


class ReportService:
    """Builds the Markdown-headed CSV reports (per prefect, per day)."""

    def __init__(
        self,
        gateway: AttendanceGateway,
        *,
        strategy_factory: Optional[AttendanceStrategyFactory] = None,
        date_format: str = DEFAULT_DATE_FORMAT,
        clock: Callable[[], datetime] = now_local,
    ):
        self._gateway = gateway
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._date_format = date_format
        self._clock = clock

    def _rows(self, records: Iterable[AttendanceRecord], *, first_column: Callable[[AttendanceRecord], str]) -> list[str]:
        lines = []
        for r in records:
            local = r.timestamp.astimezone()
            decision = self._factory.decide(r.timestamp)
            lines.append(
                ",".join(
                    [
                        first_column(r),
                        r.role.value,
                        local.strftime("%I:%M %p"),
                        decision.status.value,
                        decision.note,
                    ]
                )
            )
        return lines

    def _display_date(self, date: str) -> str:
        try:
            d = parse_record_date(date, self._date_format)
        except ValueError:
            return date
        return f"{d:%B} {d.day}, {d.year}"

    def export_prefect_report(self, prefect_number: str) -> str:
        needle = prefect_number.strip().lower()
        records = sorted(
            (r for r in self._gateway.list_all() if needle in r.prefect_number.lower()),
            key=lambda r: r.timestamp,
            reverse=True,
        )
        stats = compute_stats(records, self._factory)

        header = [
            f"# Prefect Attendance Report - {prefect_number}",
            f"Generated: {self._clock().strftime('%Y-%m-%d %H:%M:%S')}",
            "",
            "## Summary Statistics",
            f"Total Attendance Days: {stats.total_days}",
            f"On Time Days: {stats.on_time_days}",
            f"Late Days: {stats.late_days}",
            f"Attendance Rate: {stats.attendance_rate:.1f}%",
            "",
            "## Role Distribution",
            *[f"{role.value}: {count} days" for role, count in stats.roles.items() if count > 0],
            "",
            "## Detailed Records",
            ",".join(PREFECT_COLUMNS),
        ]
        rows = self._rows(records, first_column=lambda r: r.date)
        return "\n".join(header) + "\n" + "\n".join(rows)

    def export_daily_report(self, date: str) -> str:
        records = sorted(self._gateway.list_by_date(date), key=lambda r: r.timestamp)
        stats = daily_stats(records, self._factory)

        header = [
            "# Prefect Board Attendance Report",
            f"Date: {self._display_date(date)}",
            f"Total Prefects: {stats.total}",
            f"On Time: {stats.on_time}",
            f"Late: {stats.late}",
            "",
            "## Role Distribution",
            *[f"{role.value}: {count}" for role, count in stats.by_role.items() if count > 0],
            "",
            "## Attendance Records",
            ",".join(DAILY_COLUMNS),
        ]
        rows = self._rows(records, first_column=lambda r: r.prefect_number)
        return "\n".join(header) + "\n" + "\n".join(rows)
