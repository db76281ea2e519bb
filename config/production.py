import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

STORAGE_CONFIG = {
    "backend": os.getenv("STORAGE_BACKEND", "sqlite"),
    "path": os.getenv("STORAGE_PATH", "data/attendance.db"),
    "session_path": os.getenv("SESSION_STORAGE_PATH") or None,
    "max_bytes": int(os.getenv("STORAGE_MAX_BYTES", "0")) or None,
}

ADMIN_PIN = os.getenv("ADMIN_PIN", "apple")

RETENTION_DAYS = int(os.getenv("RETENTION_DAYS", "0")) or None
DATE_FORMAT = os.getenv("DATE_FORMAT", "%Y-%m-%d")

INTEGRITY_CHECK_MINUTES = int(os.getenv("INTEGRITY_CHECK_MINUTES", "60"))
BACKUP_INTERVAL_HOURS = int(os.getenv("BACKUP_INTERVAL_HOURS", "24"))
SYNC_POLL_SECONDS = int(os.getenv("SYNC_POLL_SECONDS", "2"))
START_BACKGROUND_TASKS = bool(int(os.getenv("START_BACKGROUND_TASKS", "1")))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_DIR = os.getenv("LOG_DIR", "logs")

DEBUG = False
