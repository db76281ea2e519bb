from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional

from ..common.datetime_utils import format_record_date, parse_iso_datetime, to_iso_utc
from ..core.enums import PrefectRole

REQUIRED_FIELDS = ("id", "prefectNumber", "role", "timestamp")


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one attendance check-in.

    Persisted as a camelCase JSON object (see `to_dict`).
    """

    id: str
    prefect_number: str
    role: PrefectRole
    timestamp: datetime
    date: str
    version: Optional[str] = None
    migrated: bool = False

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "id": self.id,
            "prefectNumber": self.prefect_number,
            "role": self.role.value,
            "timestamp": to_iso_utc(self.timestamp),
            "date": self.date,
        }
        if self.version is not None:
            data["version"] = self.version
        if self.migrated:
            data["migrated"] = True
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AttendanceRecord":
        """Build a record from its persisted form.

        Raises ValueError/TypeError/KeyError for structurally invalid entries.
        """
        if not isinstance(data, Mapping):
            raise TypeError(f"Record must be an object, got {type(data)!r}")
        missing = [k for k in REQUIRED_FIELDS if not data.get(k)]
        if missing:
            raise ValueError(f"Record is missing required fields: {', '.join(missing)}")

        timestamp = parse_iso_datetime(data["timestamp"])
        return cls(
            id=str(data["id"]),
            prefect_number=str(data["prefectNumber"]),
            role=PrefectRole(data["role"]),
            timestamp=timestamp,
            date=str(data.get("date") or format_record_date(timestamp)),
            version=data.get("version"),
            migrated=bool(data.get("migrated", False)),
        )


@dataclass(frozen=True)
class BulkSaveError:
    prefect_number: str
    role: str
    error: str


@dataclass(frozen=True)
class BulkSaveResult:
    success: list[AttendanceRecord] = field(default_factory=list)
    errors: list[BulkSaveError] = field(default_factory=list)


def empty_role_counts() -> dict[PrefectRole, int]:
    return {role: 0 for role in PrefectRole}


@dataclass(frozen=True)
class DailyStats:
    total: int
    on_time: int
    late: int
    by_role: dict[PrefectRole, int]

    @property
    def attendance_rate(self) -> float:
        return (self.on_time / self.total) * 100 if self.total else 0.0


@dataclass(frozen=True)
class PrefectStats:
    total_days: int
    on_time_days: int
    late_days: int
    attendance_rate: float
    roles: dict[PrefectRole, int]
    recent_records: list[AttendanceRecord]
