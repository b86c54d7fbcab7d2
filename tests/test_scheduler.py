"""Unit tests for CronScheduler."""

import threading
from datetime import datetime, timezone

import pytest

from es_snapshot_exporter.runtime import CronScheduler

# Far enough away that only the eager run fires during a test.
YEARLY = "0 0 1 1 *"


def test_invalid_schedule_is_rejected():
    with pytest.raises(ValueError, match="invalid cron expression"):
        CronScheduler("every five minutes", lambda: None)


def test_next_fire_time():
    scheduler = CronScheduler("*/5 * * * *", lambda: None)
    after = datetime(2024, 1, 1, 10, 2, 30, tzinfo=timezone.utc)

    assert scheduler.next_fire_time(after) == datetime(2024, 1, 1, 10, 5, tzinfo=timezone.utc)


def test_runs_once_at_start():
    fired = threading.Event()
    scheduler = CronScheduler(YEARLY, fired.set)

    scheduler.start()
    try:
        assert fired.wait(5)
        assert scheduler.running
    finally:
        scheduler.stop(timeout=5)

    assert scheduler.runs == 1
    assert not scheduler.running


def test_no_eager_run_when_disabled():
    calls = []
    scheduler = CronScheduler(YEARLY, lambda: calls.append(1), run_at_start=False)

    scheduler.start()
    scheduler.stop(timeout=5)

    assert calls == []


def test_job_failure_does_not_stop_scheduler():
    attempted = threading.Event()

    def job():
        attempted.set()
        raise RuntimeError("cycle blew up")

    scheduler = CronScheduler(YEARLY, job)
    scheduler.start()
    try:
        assert attempted.wait(5)
        assert scheduler.running
    finally:
        scheduler.stop(timeout=5)


def test_start_twice_keeps_one_thread():
    scheduler = CronScheduler(YEARLY, lambda: None, run_at_start=False)
    scheduler.start()
    first = scheduler._thread
    scheduler.start()
    try:
        assert scheduler._thread is first
    finally:
        scheduler.stop(timeout=5)
