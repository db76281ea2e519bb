import importlib
import os

SETTING_NAMES = (
    "SECRET_KEY",
    "DEBUG",
    "TESTING",
    "STORAGE_CONFIG",
    "ADMIN_PIN",
    "RETENTION_DAYS",
    "DATE_FORMAT",
    "INTEGRITY_CHECK_MINUTES",
    "BACKUP_INTERVAL_HOURS",
    "SYNC_POLL_SECONDS",
    "START_BACKGROUND_TASKS",
    "LOG_LEVEL",
    "LOG_DIR",
)


def get_settings_module() -> str:
    # APP_ENV selects the settings module; default is 'development'
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "config.production"

    if env in {"test", "testing"}:
        return "config.testing"

    return "config.development"


def load_settings(overrides=None) -> dict:
    """Settings of the active module as a plain dict, with `overrides` applied last.

    Names a settings module does not define come back as None.
    """
    settings_module = get_settings_module()
    module = importlib.import_module(settings_module)
    settings = {name: getattr(module, name, None) for name in SETTING_NAMES}
    settings["SETTINGS_MODULE"] = settings_module
    settings.update(overrides or {})
    return settings
