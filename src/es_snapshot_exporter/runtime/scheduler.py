"""Cron-driven background loop that triggers reconciliation cycles."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable

from croniter import croniter

logger = logging.getLogger(__name__)


class CronScheduler:
    """
    Runs `job` on a cron schedule from a single background thread.

    Behavior:
    - Runs the job once immediately when started (unless run_at_start=False)
    - Jobs never overlap: fire times that pass while a job runs are dropped
    - Exceptions from the job are logged and the schedule continues
    """

    def __init__(
        self,
        schedule: str,
        job: Callable[[], object],
        run_at_start: bool = True,
        name: str = "reconcile-scheduler",
    ) -> None:
        if not croniter.is_valid(schedule):
            raise ValueError(f"invalid cron expression: {schedule!r}")
        self.schedule = schedule
        self.job = job
        self.run_at_start = run_at_start
        self.name = name

        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()
        self.runs = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def next_fire_time(self, after: datetime) -> datetime:
        """First scheduled time strictly after `after`."""
        return croniter(self.schedule, after).get_next(datetime)

    def start(self) -> None:
        """Start the scheduler thread."""
        if self.running:
            logger.warning("Scheduler %s already running", self.name)
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()
        logger.info("Scheduler started with schedule %r", self.schedule)

    def stop(self, timeout: float = 30) -> None:
        """Signal the loop to exit and wait for an in-flight job to finish.

        Args:
            timeout: Maximum seconds to wait for the thread to stop
        """
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning("Scheduler did not stop within %ss", timeout)

    def _run(self) -> None:
        if self.run_at_start:
            self._invoke()
        while not self._stop_event.is_set():
            now = datetime.now().astimezone()
            fire_at = self.next_fire_time(now)
            delay = max(0.0, (fire_at - now).total_seconds())
            logger.debug("Next reconciliation at %s", fire_at.isoformat())
            if self._stop_event.wait(delay):
                break
            self._invoke()

    def _invoke(self) -> None:
        self.runs += 1
        try:
            self.job()
        except Exception:
            logger.exception("Scheduled job failed")
