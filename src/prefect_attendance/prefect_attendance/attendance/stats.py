from __future__ import annotations

from typing import Iterable, Optional

from ..core.constants import DEFAULT_RECENT_RECORDS
from ..core.enums import AttendanceStatus
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord, DailyStats, PrefectStats, empty_role_counts

_default_factory = AttendanceStrategyFactory()


def is_on_time(record: AttendanceRecord, factory: Optional[AttendanceStrategyFactory] = None) -> bool:
    decision = (factory or _default_factory).decide(record.timestamp)
    return decision.status == AttendanceStatus.ON_TIME


def daily_stats(records: Iterable[AttendanceRecord], factory: Optional[AttendanceStrategyFactory] = None) -> DailyStats:
    total = on_time = late = 0
    by_role = empty_role_counts()
    for record in records:
        total += 1
        if is_on_time(record, factory):
            on_time += 1
        else:
            late += 1
        by_role[record.role] += 1
    return DailyStats(total=total, on_time=on_time, late=late, by_role=by_role)


def compute_stats(
    records: Iterable[AttendanceRecord],
    factory: Optional[AttendanceStrategyFactory] = None,
    *,
    recent: int = DEFAULT_RECENT_RECORDS,
) -> PrefectStats:
    """Per-prefect summary; `records` are expected newest first."""
    records = list(records)
    day = daily_stats(records, factory)
    return PrefectStats(
        total_days=day.total,
        on_time_days=day.on_time,
        late_days=day.late,
        attendance_rate=day.attendance_rate,
        roles=day.by_role,
        recent_records=records[:recent],
    )
