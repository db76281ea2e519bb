"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time, timedelta

STORAGE_VERSION = "2.0.0"

# Storage keys
RECORDS_KEY = "prefect_attendance_records"
BACKUP_METADATA_KEY = "attendance_backup_metadata"
STORAGE_VERSION_KEY = "attendance_storage_version"
LAST_BACKUP_KEY = "last_automatic_backup"
INTEGRITY_HASH_KEY = "data_integrity_hash"
QUOTA_WARNING_KEY = "storage_quota_warning"
BACKUP_KEY_PREFIX = "attendance_backup_"
MANUAL_BACKUP_KEY_PREFIX = "attendance_backup_manual_"
EMERGENCY_BACKUP_KEY = "emergency_backup"
FAILED_ATTEMPTS_KEY = "admin_failed_attempts"
LOCKOUT_TIME_KEY = "admin_lockout_time"

# 4.5 MiB, the safe payload limit of the original browser storage
MAX_PAYLOAD_SIZE = int(4.5 * 1024 * 1024)

BACKUP_INTERVAL = timedelta(hours=24)
INTEGRITY_CHECK_INTERVAL = timedelta(hours=1)
SYNC_POLL_INTERVAL = timedelta(seconds=2)
MAX_BACKUPS = 5

QUOTA_PRESSURE_PERCENT = 90
QUOTA_PROBE_CHUNK_SIZE = 1024
QUOTA_PROBE_ITERATIONS = 1024
EVICTION_THRESHOLD = 1000
EVICTION_KEEP = 800

MAX_FAILED_ATTEMPTS = 10
LOCKOUT_DURATION = timedelta(minutes=15)

ON_TIME_CUTOFF = time(7, 0, 0)
DEFAULT_RECENT_RECORDS = 10
DEFAULT_DATE_FORMAT = "%Y-%m-%d"
