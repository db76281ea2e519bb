from __future__ import annotations

from datetime import datetime, time

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Check-in after the cutoff; the note states how late in hours and minutes."""

    def decide(self, *, local_time: datetime, cutoff: time) -> StatusDecision:
        expected = datetime.combine(local_time.date(), cutoff, tzinfo=local_time.tzinfo)
        late_minutes = int((local_time - expected).total_seconds() // 60)
        hours, minutes = divmod(max(late_minutes, 0), 60)
        return StatusDecision(status=AttendanceStatus.LATE, note=f"Arrived {hours}h {minutes}m late")
