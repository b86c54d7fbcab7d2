"""Reconciliation engine: discover snapshots, evict stale series, fetch and publish sizes."""

from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from typing import Literal, Protocol

from es_snapshot_exporter.metrics.labels import MetricKey, derive_key
from es_snapshot_exporter.metrics.sink import CycleMetrics, MetricSink
from es_snapshot_exporter.repository.errors import SnapshotClientError
from es_snapshot_exporter.repository.models import SnapshotRecord

logger = logging.getLogger(__name__)

CycleStatus = Literal["success", "failed", "skipped"]


class SnapshotSource(Protocol):
    """The part of the repository client the engine reads from."""

    def list_snapshots(self) -> list[str]: ...

    def get_snapshot_status(self, name: str) -> SnapshotRecord: ...


@dataclass
class CycleOutcome:
    """Result of one reconciliation cycle."""

    status: CycleStatus
    discovered: int = 0
    evicted: int = 0
    published: int = 0
    failed: list[str] = field(default_factory=list)
    error: str | None = None
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status == "success"


class ReconciliationEngine:
    """Keeps the metric sink in line with the snapshots in one repository.

    State carried between cycles is the set of names discovered by the last
    successful listing and the series published for each of them. Only one
    cycle runs at a time; a call made while another cycle is in progress
    returns immediately with status "skipped".
    """

    def __init__(
        self,
        client: SnapshotSource,
        sink: MetricSink,
        threads: int = 5,
        metrics: CycleMetrics | None = None,
    ) -> None:
        if threads < 1:
            raise ValueError(f"threads must be >= 1, got {threads}")
        self.client = client
        self.sink = sink
        self.threads = threads
        self.metrics = metrics
        self._previous_names: set[str] = set()
        self._published: dict[str, set[MetricKey]] = {}
        self._published_lock = threading.Lock()
        self._cycle_lock = threading.Lock()

    @property
    def previous_names(self) -> frozenset[str]:
        return frozenset(self._previous_names)

    def published_keys(self) -> set[MetricKey]:
        with self._published_lock:
            return {k for keys in self._published.values() for k in keys}

    def run_cycle(self) -> CycleOutcome:
        """Run one cycle to completion, or skip it if one is already running."""
        if not self._cycle_lock.acquire(blocking=False):
            logger.warning("Previous reconciliation cycle still running, skipping this one")
            self._count("skipped")
            return CycleOutcome(status="skipped")
        try:
            start = time.monotonic()
            outcome = self._reconcile()
            outcome.duration_seconds = time.monotonic() - start
            if self.metrics:
                self.metrics.duration.observe(outcome.duration_seconds)
            self._count(outcome.status)
            return outcome
        finally:
            self._cycle_lock.release()

    def _reconcile(self) -> CycleOutcome:
        try:
            names = self.client.list_snapshots()
        except SnapshotClientError as e:
            logger.error("Failed to list snapshots, keeping previously published series: %s", e)
            return CycleOutcome(status="failed", error=str(e))

        current = set(names)
        stale = self._previous_names - current
        evicted = self._evict(stale)

        published, failed = self._fetch_and_publish(current)
        self._previous_names = current

        if self.metrics:
            self.metrics.last_success.set_to_current_time()
        logger.info(
            "Reconciled %d snapshot(s): %d published, %d failed, %d stale series evicted",
            len(current),
            published,
            len(failed),
            evicted,
        )
        return CycleOutcome(
            status="success",
            discovered=len(current),
            evicted=evicted,
            published=published,
            failed=sorted(failed),
        )

    def _evict(self, stale: set[str]) -> int:
        """Delete every series of every stale snapshot name."""
        evicted = 0
        for name in sorted(stale):
            with self._published_lock:
                keys = self._published.pop(name, set())
            for key in keys:
                self.sink.delete(key)
                evicted += 1
                logger.debug("Evicted series %s", key)
        if evicted and self.metrics:
            self.metrics.evicted.inc(evicted)
        return evicted

    def _fetch_and_publish(self, names: set[str]) -> tuple[int, list[str]]:
        """Fetch and publish all names on a bounded pool; return (published, failed names)."""
        if not names:
            return 0, []

        work: queue.Queue[str | None] = queue.Queue()
        for name in sorted(names):
            work.put(name)
        n_workers = min(self.threads, len(names))
        for _ in range(n_workers):
            work.put(None)  # one stop marker per worker closes the queue

        published = 0
        failed: list[str] = []
        tally_lock = threading.Lock()

        def worker() -> None:
            nonlocal published
            while True:
                name = work.get()
                if name is None:
                    return
                try:
                    ok = self._publish_one(name)
                except Exception:
                    logger.exception("Failed to publish snapshot %s", name)
                    ok = False
                if ok:
                    with tally_lock:
                        published += 1
                else:
                    with tally_lock:
                        failed.append(name)

        pool = [
            threading.Thread(target=worker, name=f"snapshot-fetch-{i}", daemon=True)
            for i in range(n_workers)
        ]
        for t in pool:
            t.start()
        for t in pool:
            t.join()
        return published, failed

    def _publish_one(self, name: str) -> bool:
        try:
            record = self.client.get_snapshot_status(name)
        except Exception as e:
            logger.warning("Failed to fetch status of snapshot %s: %s", name, e)
            if self.metrics:
                self.metrics.fetch_failures.inc()
            return False

        key = derive_key(record)
        with self._published_lock:
            superseded = self._published.get(name, set()) - {key}
            self._published[name] = {key}
        # A snapshot that changed state keeps a single series.
        for old in superseded:
            self.sink.delete(old)
            logger.debug("Replaced series %s with %s", old, key)
        self.sink.set(key, float(record.total_size_bytes))
        return True

    def _count(self, status: CycleStatus) -> None:
        if self.metrics:
            self.metrics.cycles.labels(status).inc()
