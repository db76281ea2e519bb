from __future__ import annotations

from datetime import datetime, time

from ...core.enums import AttendanceStatus
from .base import AttendanceStrategy, StatusDecision


class OnTimeStrategy(AttendanceStrategy):
    """Check-in at or before the cutoff."""

    def decide(self, *, local_time: datetime, cutoff: time) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.ON_TIME, note="Regular attendance")
