from __future__ import annotations

import atexit
import logging
from datetime import timedelta
from typing import Any, Optional

from dotenv import load_dotenv
from flask import Flask

from config import load_settings

from .admin.controller import register as register_admin
from .attendance.controller import register as register_attendance
from .common.http import register_error_handlers
from .common.logging_config import setup_logging
from .container import build_container
from .storage.controller import register as register_storage

logger = logging.getLogger(__name__)


def create_app(overrides: Optional[dict[str, Any]] = None) -> Flask:
    load_dotenv(override=False)
    settings = load_settings(overrides)

    setup_logging(settings.get("LOG_LEVEL") or "INFO", settings.get("LOG_DIR"))

    app = Flask(__name__)
    app.secret_key = settings["SECRET_KEY"]
    app.config["DEBUG"] = bool(settings.get("DEBUG", False))
    app.config["TESTING"] = bool(settings.get("TESTING", False))

    storage_config = dict(settings["STORAGE_CONFIG"])
    logger.info(
        f"Starting with settings={settings['SETTINGS_MODULE']} "
        f"storage={storage_config.get('backend', 'sqlite')}:{storage_config.get('path')}"
    )

    container = build_container(
        storage_config=storage_config,
        admin_pin=settings["ADMIN_PIN"],
        retention_days=settings.get("RETENTION_DAYS"),
        date_format=settings.get("DATE_FORMAT") or "%Y-%m-%d",
    )
    app.extensions["prefect_attendance"] = container

    if settings.get("START_BACKGROUND_TASKS"):
        container.store.start(
            integrity_interval=timedelta(minutes=int(settings["INTEGRITY_CHECK_MINUTES"])),
            backup_interval=timedelta(hours=int(settings["BACKUP_INTERVAL_HOURS"])),
            poll_interval=timedelta(seconds=int(settings["SYNC_POLL_SECONDS"])),
        )
        atexit.register(container.close)

    register_error_handlers(app)
    register_attendance(app, container)
    register_admin(app, container)
    register_storage(app, container)

    return app
