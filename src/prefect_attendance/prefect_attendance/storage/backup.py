"""Backup subsystem: snapshots, rotation, restore and recovery."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, Iterable, Optional

from ..attendance.model import AttendanceRecord
from ..common.datetime_utils import from_epoch_millis, to_epoch_millis, to_iso_utc
from ..core.constants import (
    BACKUP_INTERVAL,
    BACKUP_KEY_PREFIX,
    EMERGENCY_BACKUP_KEY,
    LAST_BACKUP_KEY,
    MANUAL_BACKUP_KEY_PREFIX,
    MAX_BACKUPS,
    STORAGE_VERSION,
)
from ..core.enums import BackupType
from ..core.exceptions import InvalidFormat, StorageError
from .backend import KeyValueBackend
from .model import BackupMetadata, BackupSnapshot

if TYPE_CHECKING:
    from .record_store import RecordStore

logger = logging.getLogger(__name__)


def backup_key_timestamp(key: str) -> int:
    """Creation time embedded at the end of a backup key (0 if unreadable)."""
    try:
        return int(key.rsplit("_", 1)[-1])
    except ValueError:
        return 0


def valid_records(items: Iterable[Any]) -> tuple[list[AttendanceRecord], int]:
    """Parse snapshot entries, returning the valid records and the discard count."""
    records: list[AttendanceRecord] = []
    discarded = 0
    for item in items:
        try:
            records.append(AttendanceRecord.from_dict(item))
        except (KeyError, TypeError, ValueError):
            discarded += 1
    return records, discarded


def _compact(data: dict) -> str:
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


class BackupManager:
    def __init__(
        self,
        store: "RecordStore",
        session_backend: KeyValueBackend,
        *,
        max_backups: int = MAX_BACKUPS,
        backup_interval: timedelta = BACKUP_INTERVAL,
    ):
        self._store = store
        self._session = session_backend
        self._max_backups = int(max_backups)
        self._backup_interval = backup_interval
        self._recovering = False

    @property
    def session_backend(self) -> KeyValueBackend:
        return self._session

    def _snapshot(self, backup_type: BackupType) -> BackupSnapshot:
        records = self._store.get_records()
        now = self._store.now()
        return BackupSnapshot(
            timestamp=to_epoch_millis(now),
            version=STORAGE_VERSION,
            records=[r.to_dict() for r in records],
            metadata=BackupMetadata(record_count=len(records), created_at=to_iso_utc(now), type=backup_type),
        )

    # ----- rotation -----

    def backup_keys(self) -> list[str]:
        """Rotated snapshot keys (automatic and manual), newest first.

        Only keys ending in a millisecond timestamp count, so the backup
        metadata entry that shares the prefix is never rotated away.
        """
        keys = [
            k for k in self._store.backend.keys()
            if k.startswith(BACKUP_KEY_PREFIX) and backup_key_timestamp(k) > 0
        ]
        return sorted(keys, key=backup_key_timestamp, reverse=True)

    def clean_old_backups(self) -> int:
        removed = 0
        try:
            for key in self.backup_keys()[self._max_backups:]:
                self._store.backend.delete(key)
                removed += 1
        except StorageError:
            logger.exception("Failed to clean old backups")
        if removed:
            logger.info(f"Pruned {removed} old backups")
        return removed

    def get_latest_backup(self) -> Optional[BackupSnapshot]:
        keys = self.backup_keys()
        if not keys:
            return None
        try:
            raw = self._store.backend.get(keys[0])
            return BackupSnapshot.from_dict(json.loads(raw or "{}"))
        except (StorageError, TypeError, ValueError):
            logger.exception("Failed to get latest backup")
            return None

    def last_backup_at(self) -> Optional[datetime]:
        raw = self._store.backend.get(LAST_BACKUP_KEY)
        if not raw:
            return None
        try:
            return from_epoch_millis(int(raw))
        except ValueError:
            return None

    # ----- snapshots -----

    def check_and_perform_backup(self) -> bool:
        """Run the automatic backup when the last one is older than the interval."""
        try:
            last = self.last_backup_at()
            now = self._store.now()
            if last is None or now - last > self._backup_interval:
                return self.perform_automatic_backup() is not None
        except StorageError:
            logger.exception("Failed to check backup schedule")
        return False

    def perform_automatic_backup(self) -> Optional[str]:
        try:
            snapshot = self._snapshot(BackupType.AUTOMATIC)
            key = f"{BACKUP_KEY_PREFIX}{snapshot.timestamp}"
            self._store.backend.set(key, _compact(snapshot.to_dict()))
            self._store.backend.set(LAST_BACKUP_KEY, str(snapshot.timestamp))
            self.clean_old_backups()
            logger.info(f"Automatic backup completed: {key}")
            return key
        except StorageError:
            logger.exception("Automatic backup failed")
            return None

    def perform_emergency_backup(self) -> None:
        """Teardown snapshot into session storage, outside the rotation."""
        try:
            snapshot = self._snapshot(BackupType.EMERGENCY)
            self._session.set(EMERGENCY_BACKUP_KEY, _compact(snapshot.to_dict()))
        except StorageError:
            logger.exception("Emergency backup failed")

    def create_manual_backup(self) -> str:
        try:
            snapshot = self._snapshot(BackupType.MANUAL)
            data = snapshot.to_dict()
            self._store.backend.set(f"{MANUAL_BACKUP_KEY_PREFIX}{snapshot.timestamp}", _compact(data))
        except StorageError:
            logger.exception("Manual backup failed")
            raise
        return json.dumps(data, indent=2, ensure_ascii=False)

    # ----- restore & recovery -----

    def restore_from_backup(self, serialized: str) -> list[AttendanceRecord]:
        """Replace the whole live record set with the records of a snapshot.

        Records missing from the snapshot are gone afterwards; this is not a merge.
        """
        try:
            data = json.loads(serialized)
        except (TypeError, ValueError) as e:
            raise InvalidFormat("Invalid backup format") from e

        if not isinstance(data, dict) or not isinstance(data.get("records"), list):
            raise InvalidFormat("Invalid backup format")

        records, discarded = valid_records(data["records"])
        if discarded:
            logger.warning(f"Filtered out {discarded} invalid records during restore")

        self._store.save_records(records)
        logger.info(f"Restored {len(records)} records from backup")
        return records

    def attempt_data_recovery(self) -> bool:
        # The flag only stops re-entry from the same thread; other threads wait on the store lock
        with self._store.lock:
            if self._recovering:
                logger.warning("Data recovery already in progress")
                return False

            self._recovering = True
            try:
                latest = self.get_latest_backup()
                if latest is not None:
                    records, discarded = valid_records(latest.records)
                    logger.warning(
                        f"Recovering {len(records)} records from backup taken at {latest.timestamp}"
                        + (f" ({discarded} invalid entries dropped)" if discarded else "")
                    )
                    self._store.save_records(records)
                    return True

                try:
                    items = self._store.read_raw_records()
                except ValueError:
                    items = []
                records, discarded = valid_records(items)
                if discarded:
                    logger.warning(f"Cleaned {discarded} invalid records")
                self._store.save_records(records)
                return True
            except StorageError:
                logger.exception("Data recovery failed")
                return False
            finally:
                self._recovering = False
