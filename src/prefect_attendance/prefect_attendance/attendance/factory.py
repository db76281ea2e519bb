from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time

from ..common.datetime_utils import ensure_aware
from ..core.constants import ON_TIME_CUTOFF
from .strategies.base import AttendanceStrategy, StatusDecision
from .strategies.late_strategy import LateStrategy
from .strategies.on_time_strategy import OnTimeStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules.

    A check-in is on time when its local wall-clock time is at or before the
    cutoff (07:00:00 by default), so 07:00:00 is on time and 07:00:01 is late.
    """

    cutoff: time = ON_TIME_CUTOFF

    def for_timestamp(self, timestamp: datetime) -> AttendanceStrategy:
        local = ensure_aware(timestamp).astimezone()
        if local.time() <= self.cutoff:
            return OnTimeStrategy()
        return LateStrategy()

    def decide(self, timestamp: datetime) -> StatusDecision:
        local = ensure_aware(timestamp).astimezone()
        return self.for_timestamp(local).decide(local_time=local, cutoff=self.cutoff)
