from __future__ import annotations

import logging
from datetime import timedelta

from prefect_attendance.core.constants import LAST_BACKUP_KEY
from prefect_attendance.storage.notifications import LocalBroadcastHub
from prefect_attendance.storage.scheduler import MaintenanceScheduler, run_safely


class PollingChannel:
    def __init__(self):
        self.polls = 0

    def poll(self):
        self.polls += 1

    def subscribe(self, handler):
        return lambda: None

    def publish(self, message):
        pass

    def close(self):
        pass


def test_run_safely_logs_instead_of_raising(caplog):
    def broken():
        raise RuntimeError("nope")

    with caplog.at_level(logging.ERROR):
        run_safely("demo", broken)

    assert "Background task 'demo' failed" in caplog.text


def test_scheduler_registers_maintenance_jobs(store):
    scheduler = MaintenanceScheduler(store, integrity_interval=timedelta(hours=1), backup_interval=timedelta(hours=24))

    assert sorted(scheduler.job_ids) == ["automatic_backup", "integrity_check"]


def test_scheduler_polls_channels_that_support_it(store):
    with_poll = MaintenanceScheduler(
        store,
        integrity_interval=timedelta(hours=1),
        backup_interval=timedelta(hours=24),
        poll_interval=timedelta(seconds=2),
        channel=PollingChannel(),
    )
    without_poll = MaintenanceScheduler(
        store,
        integrity_interval=timedelta(hours=1),
        backup_interval=timedelta(hours=24),
        poll_interval=timedelta(seconds=2),
        channel=LocalBroadcastHub().open(),
    )

    assert "change_feed_poll" in with_poll.job_ids
    assert "change_feed_poll" not in without_poll.job_ids


def test_store_start_backs_up_immediately_and_close_stops_jobs(store, backend):
    store.start(integrity_interval=timedelta(hours=1), backup_interval=timedelta(hours=24), poll_interval=None)

    assert backend.get(LAST_BACKUP_KEY) is not None
    assert store._scheduler.running

    scheduler = store._scheduler
    store.close()

    assert not scheduler.running
