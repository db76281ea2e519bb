from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING, Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler

from .notifications import BroadcastChannel

if TYPE_CHECKING:
    from .record_store import RecordStore

logger = logging.getLogger(__name__)


def run_safely(name: str, job: Callable[[], object]) -> None:
    """Background jobs are best-effort: failures are logged, never raised."""
    try:
        job()
    except Exception:
        logger.exception(f"Background task '{name}' failed")


class MaintenanceScheduler:
    """Periodic integrity check, automatic backup and change-feed polling."""

    def __init__(
        self,
        store: "RecordStore",
        *,
        integrity_interval: timedelta,
        backup_interval: timedelta,
        poll_interval: Optional[timedelta] = None,
        channel: Optional[BroadcastChannel] = None,
    ):
        self._scheduler = BackgroundScheduler(daemon=True)
        self._scheduler.add_job(
            run_safely,
            "interval",
            seconds=integrity_interval.total_seconds(),
            args=["integrity_check", store.verify_integrity],
            id="integrity_check",
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.add_job(
            run_safely,
            "interval",
            seconds=backup_interval.total_seconds(),
            args=["automatic_backup", store.backups.perform_automatic_backup],
            id="automatic_backup",
            max_instances=1,
            coalesce=True,
        )

        poll = getattr(channel, "poll", None)
        if poll is not None and poll_interval is not None:
            self._scheduler.add_job(
                run_safely,
                "interval",
                seconds=poll_interval.total_seconds(),
                args=["change_feed_poll", poll],
                id="change_feed_poll",
                max_instances=1,
                coalesce=True,
            )

    @property
    def job_ids(self) -> list[str]:
        return [job.id for job in self._scheduler.get_jobs()]

    @property
    def running(self) -> bool:
        return bool(self._scheduler.running)

    def start(self) -> None:
        self._scheduler.start()
        logger.info(f"Maintenance scheduler started ({', '.join(self.job_ids)})")

    def shutdown(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
