from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta
from typing import Any, Callable, Iterable, Mapping, Optional

from ..common.datetime_utils import ensure_aware, format_record_date, now_local, truncate_to_millis
from ..common.validators import require_non_empty, require_role
from ..core.constants import DEFAULT_DATE_FORMAT
from ..core.enums import PrefectRole
from ..core.exceptions import DomainError, DuplicateAttendance, NotFound, StorageError
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord, BulkSaveError, BulkSaveResult, DailyStats, PrefectStats
from .repository import AttendanceRepository
from .stats import compute_stats, daily_stats

logger = logging.getLogger(__name__)


class AttendanceService:
    """Use cases: mark, correct and query attendance.

    Business rule: a prefect can be recorded at most once per role per day.
    """

    def __init__(
        self,
        records: AttendanceRepository,
        *,
        strategy_factory: Optional[AttendanceStrategyFactory] = None,
        retention_days: Optional[int] = None,
        date_format: str = DEFAULT_DATE_FORMAT,
        clock: Callable[[], datetime] = now_local,
    ):
        self._records = records
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._retention_days = retention_days
        self._date_format = date_format
        self._clock = clock

    def record_date(self, timestamp: datetime) -> str:
        return format_record_date(timestamp, self._date_format)

    def today(self) -> str:
        return self.record_date(self._clock())

    def check_duplicate(self, prefect_number: str, role: PrefectRole | str, date: str) -> bool:
        role = require_role(role)
        return any(
            r.prefect_number == prefect_number and r.role == role and r.date == date
            for r in self._records.get_records()
        )

    def save(
        self,
        prefect_number: str,
        role: PrefectRole | str,
        timestamp: Optional[datetime] = None,
    ) -> AttendanceRecord:
        prefect_number = require_non_empty(prefect_number, "Prefect number")
        role = require_role(role)
        timestamp = truncate_to_millis(ensure_aware(timestamp or self._clock()))
        date = self.record_date(timestamp)

        if self.check_duplicate(prefect_number, role, date):
            raise DuplicateAttendance(
                f"A prefect with number {prefect_number} has already registered for role {role.value} today."
            )

        record = AttendanceRecord(
            id=str(uuid.uuid4()),
            prefect_number=prefect_number,
            role=role,
            timestamp=timestamp,
            date=date,
        )
        self._records.add_record(record)
        self.clean_old_records()
        return record

    def save_bulk(
        self,
        entries: Iterable[Mapping[str, Any]],
        timestamp: Optional[datetime] = None,
    ) -> BulkSaveResult:
        """Mark several prefects at once; one failing entry never stops the others."""
        timestamp = timestamp or self._clock()
        result = BulkSaveResult()

        for entry in entries:
            prefect_number = str(entry.get("prefect_number", entry.get("prefectNumber", "")) or "")
            role_value = entry.get("role")
            role_label = role_value.value if isinstance(role_value, PrefectRole) else str(role_value)
            try:
                result.success.append(self.save(prefect_number, role_value, timestamp))
            except DuplicateAttendance:
                result.errors.append(
                    BulkSaveError(prefect_number=prefect_number, role=role_label, error=f"Already registered for {role_label} today")
                )
            except DomainError as e:
                result.errors.append(BulkSaveError(prefect_number=prefect_number, role=role_label, error=str(e)))

        if result.errors:
            logger.info(f"Bulk attendance: {len(result.success)} saved, {len(result.errors)} failed")
        return result

    def update(self, record_id: str, updates: Mapping[str, Any]) -> AttendanceRecord:
        updates = dict(updates)
        if "prefect_number" in updates:
            updates["prefect_number"] = require_non_empty(updates["prefect_number"], "Prefect number")
        if "role" in updates:
            updates["role"] = require_role(updates["role"])
        if "date" in updates:
            updates["date"] = require_non_empty(updates["date"], "Date")
        if "timestamp" in updates:
            updates["timestamp"] = truncate_to_millis(ensure_aware(updates["timestamp"]))

        records = self._records.get_records()
        existing = next((r for r in records if r.id == record_id), None)
        if existing is None:
            raise NotFound(f"Record not found: {record_id}")

        if updates.keys() & {"prefect_number", "role", "date"}:
            date = updates.get("date") or existing.date
            prefect_number = updates.get("prefect_number") or existing.prefect_number
            role = updates.get("role") or existing.role
            clash = any(
                r.id != record_id and r.prefect_number == prefect_number and r.role == role and r.date == date
                for r in records
            )
            if clash:
                raise DuplicateAttendance(
                    f"A prefect with number {prefect_number} has already registered for role {role.value} on {date}."
                )

        return self._records.update_record(record_id, updates)

    def delete(self, record_id: str) -> None:
        self._records.delete_record(record_id)

    def list_records(self) -> list[AttendanceRecord]:
        return self._records.get_records()

    def records_for_date(self, date: str) -> list[AttendanceRecord]:
        records = [r for r in self._records.get_records() if r.date == date]
        return sorted(records, key=lambda r: r.timestamp)

    def search_prefect_records(self, query: str) -> list[AttendanceRecord]:
        needle = query.strip().lower()
        records = [r for r in self._records.get_records() if needle in r.prefect_number.lower()]
        return sorted(records, key=lambda r: r.timestamp, reverse=True)

    def prefect_stats(self, prefect_number: str) -> PrefectStats:
        return compute_stats(self.search_prefect_records(prefect_number), self._factory)

    def daily_stats(self, date: str) -> DailyStats:
        return daily_stats(self.records_for_date(date), self._factory)

    def clean_old_records(self) -> int:
        """Drop records older than the retention horizon (no-op when unbounded)."""
        if self._retention_days is None:
            return 0
        try:
            cutoff = self._clock() - timedelta(days=int(self._retention_days))
            records = self._records.get_records()
            kept = [r for r in records if r.timestamp > cutoff]
            if len(kept) != len(records):
                self._records.save_records(kept)
                logger.info(f"Cleaned {len(records) - len(kept)} old records")
            return len(records) - len(kept)
        except (OverflowError, StorageError):
            logger.exception("Failed to clean old records")
            return 0
