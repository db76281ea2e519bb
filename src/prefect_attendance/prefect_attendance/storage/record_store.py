from __future__ import annotations

import json
import logging
import threading
import warnings
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Callable, Mapping, Optional, Sequence

from ..attendance.model import AttendanceRecord
from ..common.datetime_utils import now_local, to_epoch_millis
from ..core.constants import (
    BACKUP_INTERVAL,
    BACKUP_KEY_PREFIX,
    BACKUP_METADATA_KEY,
    EVICTION_KEEP,
    EVICTION_THRESHOLD,
    INTEGRITY_CHECK_INTERVAL,
    INTEGRITY_HASH_KEY,
    LAST_BACKUP_KEY,
    MAX_BACKUPS,
    MAX_PAYLOAD_SIZE,
    QUOTA_PRESSURE_PERCENT,
    QUOTA_PROBE_CHUNK_SIZE,
    QUOTA_PROBE_ITERATIONS,
    QUOTA_WARNING_KEY,
    RECORDS_KEY,
    STORAGE_VERSION,
    STORAGE_VERSION_KEY,
    SYNC_POLL_INTERVAL,
)
from ..core.exceptions import (
    IntegrityMismatch,
    NotFound,
    QuotaExceeded,
    StorageError,
    StorageLimitExceeded,
    UnderlyingWriteFailure,
    ValidationError,
)
from .backend import KeyValueBackend
from .backup import BackupManager
from .checksum import fingerprint
from .memory_backend import InMemoryKeyValueStore
from .model import QuotaInfo, StorageInfo
from .notifications import BroadcastChannel, ChangeNotifier, Listener, Unsubscribe

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"prefect_number", "role", "timestamp", "date", "version", "migrated"})


def serialize_records(records: Sequence[AttendanceRecord]) -> tuple[list[dict], str]:
    items = [r.to_dict() for r in records]
    return items, json.dumps(items, separators=(",", ":"), ensure_ascii=False)


class RecordStore:
    """Durable, self-healing store for the attendance record set.

    The store is constructed explicitly and injected into the services that
    need it. Construction migrates old data and verifies integrity before the
    first read is served; `start()` launches the background maintenance jobs
    and `close()` stops them and writes the emergency backup.
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        *,
        session_backend: Optional[KeyValueBackend] = None,
        notifier: Optional[ChangeNotifier] = None,
        channel: Optional[BroadcastChannel] = None,
        clock: Callable[[], datetime] = now_local,
        max_payload_size: int = MAX_PAYLOAD_SIZE,
        max_backups: int = MAX_BACKUPS,
        backup_interval: timedelta = BACKUP_INTERVAL,
    ):
        self._backend = backend
        self._notifier = notifier or ChangeNotifier()
        self._channel = channel
        self._clock = clock
        self._max_payload_size = int(max_payload_size)
        self._lock = threading.RLock()
        self._scheduler = None
        self._closed = False

        self.backups = BackupManager(
            self,
            session_backend or InMemoryKeyValueStore(),
            max_backups=max_backups,
            backup_interval=backup_interval,
        )

        self._unsubscribe_channel: Optional[Unsubscribe] = None
        if channel is not None:
            self._unsubscribe_channel = channel.subscribe(self._on_broadcast)

        self._initialize()

    @property
    def backend(self) -> KeyValueBackend:
        return self._backend

    @property
    def lock(self) -> threading.RLock:
        """Reentrant lock guarding every read-modify-write of the record set."""
        return self._lock

    def now(self) -> datetime:
        return self._clock()

    # ----- lifecycle -----

    def _initialize(self) -> None:
        try:
            current_version = self._backend.get(STORAGE_VERSION_KEY)
            if current_version != STORAGE_VERSION:
                self._migrate(current_version)
                self._backend.set(STORAGE_VERSION_KEY, STORAGE_VERSION)

            if self._backend.get(RECORDS_KEY) is None:
                self.save_records([])

            self.verify_integrity()
        except StorageError:
            logger.exception("Failed to initialize storage")

    def _migrate(self, old_version: Optional[str]) -> None:
        logger.info(f"Migrating storage from {old_version or 'unknown'} to {STORAGE_VERSION}")
        records = self.get_records()
        migrated = [replace(r, version=STORAGE_VERSION, migrated=True) for r in records]
        self.save_records(migrated)
        logger.info(f"Storage migration completed ({len(migrated)} records)")

    def start(
        self,
        *,
        integrity_interval: timedelta = INTEGRITY_CHECK_INTERVAL,
        backup_interval: timedelta = BACKUP_INTERVAL,
        poll_interval: Optional[timedelta] = SYNC_POLL_INTERVAL,
    ) -> None:
        from .scheduler import MaintenanceScheduler

        self.backups.check_and_perform_backup()
        if self._scheduler is None:
            self._scheduler = MaintenanceScheduler(
                self,
                integrity_interval=integrity_interval,
                backup_interval=backup_interval,
                poll_interval=poll_interval,
                channel=self._channel,
            )
            self._scheduler.start()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._scheduler is not None:
            self._scheduler.shutdown()
            self._scheduler = None
        self.backups.perform_emergency_backup()
        if self._unsubscribe_channel is not None:
            self._unsubscribe_channel()
            self._unsubscribe_channel = None
        self._notifier.clear()

    # ----- reads -----

    def read_raw_records(self) -> list:
        """Persisted record entries as stored, without validation."""
        raw = self._backend.get(RECORDS_KEY)
        if not raw:
            return []
        data = json.loads(raw)
        if not isinstance(data, list):
            raise ValueError("Stored records are not a list")
        return data

    def get_records(self) -> list[AttendanceRecord]:
        try:
            items = self.read_raw_records()
        except Exception:
            logger.exception("Failed to get records")
            return []

        records: list[AttendanceRecord] = []
        for item in items:
            try:
                records.append(AttendanceRecord.from_dict(item))
            except (KeyError, TypeError, ValueError):
                continue
        if len(records) != len(items):
            logger.warning(f"Skipped {len(items) - len(records)} invalid stored records")
        return records

    # ----- writes -----

    def save_records(self, records: Sequence[AttendanceRecord]) -> None:
        if not isinstance(records, (list, tuple)):
            raise ValidationError("Records must be a list")
        records = list(records)

        with self._lock:
            quota = self.check_quota()
            if quota.percentage > QUOTA_PRESSURE_PERCENT:
                logger.warning(f"Storage quota nearly exceeded: {quota.percentage:.1f}% used")
                records = self._relieve_quota_pressure(records)

            items, payload = serialize_records(records)
            if len(payload) > self._max_payload_size:
                raise StorageLimitExceeded(
                    f"Data size {len(payload)} exceeds maximum storage limit {self._max_payload_size}"
                )

            try:
                self._backend.set(RECORDS_KEY, payload)
                self._backend.set(INTEGRITY_HASH_KEY, fingerprint(items))
            except QuotaExceeded:
                logger.error("Storage quota exceeded while saving records")
                self._handle_quota_exceeded()
                raise
            except UnderlyingWriteFailure:
                logger.exception("Failed to save records")
                self.backups.attempt_data_recovery()
                raise

            self._update_backup_metadata(len(records))

        self._notifier.notify(records)
        if self._channel is not None:
            self._channel.publish({"key": RECORDS_KEY})

    def add_record(self, record: AttendanceRecord) -> None:
        with self._lock:
            records = self.get_records()
            records.append(record)
            self.save_records(records)

    def update_record(self, record_id: str, updates: Mapping[str, Any]) -> AttendanceRecord:
        updates = dict(updates)
        if "id" in updates:
            if updates.pop("id") != record_id:
                raise ValidationError("Record id cannot be changed")
        unknown = sorted(set(updates) - UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown record fields: {', '.join(unknown)}")

        with self._lock:
            records = self.get_records()
            for index, record in enumerate(records):
                if record.id == record_id:
                    break
            else:
                raise NotFound(f"Record not found: {record_id}")

            updated = replace(records[index], **updates)
            records[index] = updated
            self.save_records(records)
            return updated

    def delete_record(self, record_id: str) -> None:
        with self._lock:
            records = self.get_records()
            remaining = [r for r in records if r.id != record_id]
            if len(remaining) != len(records):
                self.save_records(remaining)

    def wipe(self) -> None:
        """Remove every record, snapshot and piece of metadata, leaving an empty store."""
        managed = {RECORDS_KEY, INTEGRITY_HASH_KEY, BACKUP_METADATA_KEY, LAST_BACKUP_KEY, QUOTA_WARNING_KEY}
        with self._lock:
            for key in list(self._backend.keys()):
                if key in managed or key.startswith(BACKUP_KEY_PREFIX):
                    self._backend.delete(key)
            logger.warning("All attendance data wiped")
            self.save_records([])

    def _update_backup_metadata(self, record_count: int) -> None:
        metadata = {
            "lastUpdate": to_epoch_millis(self._clock()),
            "recordCount": record_count,
            "version": STORAGE_VERSION,
        }
        try:
            self._backend.set(BACKUP_METADATA_KEY, json.dumps(metadata))
        except StorageError:
            logger.exception("Failed to update backup metadata")

    # ----- integrity -----

    def verify_integrity(self) -> bool:
        # Records and hash must be read as one unit; a save in between looks like corruption
        try:
            with self._lock:
                records = self.get_records()
                current_hash = fingerprint(records)
                stored_hash = self._backend.get(INTEGRITY_HASH_KEY)

                if stored_hash and stored_hash != current_hash:
                    logger.warning("Data integrity check failed - attempting recovery")
                    warnings.warn("Data integrity check failed - attempting recovery", IntegrityMismatch, stacklevel=2)
                    return self.backups.attempt_data_recovery()

                self._backend.set(INTEGRITY_HASH_KEY, current_hash)
                return True
        except StorageError:
            logger.exception("Data integrity verification failed")
            return False

    # ----- quota -----

    def check_quota(self) -> QuotaInfo:
        """Approximate usage; `available` comes from a bounded, rolled-back probe."""
        try:
            used = self._backend.usage()
            available = self._backend.probe_available(
                chunk_size=QUOTA_PROBE_CHUNK_SIZE,
                max_chunks=QUOTA_PROBE_ITERATIONS,
            )
        except StorageError:
            logger.exception("Failed to check storage quota")
            return QuotaInfo(available=0, used=0, percentage=0.0)

        total = used + available
        percentage = (used / total) * 100 if total else 0.0
        return QuotaInfo(available=available, used=used, percentage=percentage)

    def _relieve_quota_pressure(self, records: list[AttendanceRecord]) -> list[AttendanceRecord]:
        self.backups.clean_old_backups()
        if len(records) > EVICTION_THRESHOLD:
            kept = sorted(records, key=lambda r: r.timestamp, reverse=True)[:EVICTION_KEEP]
            logger.warning(
                f"Removed {len(records) - len(kept)} old records due to storage limit "
                f"(kept the {len(kept)} most recent)"
            )
            records = kept
        self._stamp_quota_warning()
        return records

    def _handle_quota_exceeded(self) -> None:
        try:
            self.backups.clean_old_backups()
            records = self.get_records()
            if len(records) > EVICTION_THRESHOLD:
                kept = sorted(records, key=lambda r: r.timestamp, reverse=True)[:EVICTION_KEEP]
                items, payload = serialize_records(kept)
                self._backend.set(RECORDS_KEY, payload)
                self._backend.set(INTEGRITY_HASH_KEY, fingerprint(items))
                logger.warning(f"Removed {len(records) - len(kept)} old records due to storage limit")
            self._stamp_quota_warning()
        except StorageError:
            logger.exception("Failed to handle quota exceeded")

    def _stamp_quota_warning(self) -> None:
        try:
            self._backend.set(QUOTA_WARNING_KEY, str(to_epoch_millis(self._clock())))
        except StorageError:
            logger.exception("Failed to record quota warning")

    # ----- info & notification -----

    def get_storage_info(self) -> StorageInfo:
        quota = self.check_quota()
        records = self.get_records()
        last_backup = self.backups.last_backup_at()
        integrity = self.verify_integrity()
        return StorageInfo(
            quota=quota,
            record_count=len(records),
            last_backup=last_backup.isoformat() if last_backup else None,
            version=STORAGE_VERSION,
            integrity=integrity,
        )

    def add_listener(self, callback: Listener) -> Unsubscribe:
        return self._notifier.add_listener(callback)

    def _on_broadcast(self, message: dict) -> None:
        if message.get("key") in (None, RECORDS_KEY):
            self._notifier.notify(self.get_records())
