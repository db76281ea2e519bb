SECRET_KEY = "test-secret"

STORAGE_CONFIG = {
    "backend": "memory",
    "path": ":memory:",
    "session_path": None,
    "max_bytes": None,
}

ADMIN_PIN = "apple"

RETENTION_DAYS = None
DATE_FORMAT = "%Y-%m-%d"

INTEGRITY_CHECK_MINUTES = 60
BACKUP_INTERVAL_HOURS = 24
SYNC_POLL_SECONDS = 2
START_BACKGROUND_TASKS = False

LOG_LEVEL = "WARNING"
LOG_DIR = None

DEBUG = False
TESTING = True
