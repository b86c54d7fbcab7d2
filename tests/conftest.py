"""Pytest fixtures and fakes for exporter tests."""

from __future__ import annotations

import threading
import time

import pytest

from es_snapshot_exporter.metrics.labels import MetricKey
from es_snapshot_exporter.repository.errors import ClientDecodeError, ClientTransportError
from es_snapshot_exporter.repository.models import ClusterInfo, ClusterVersion, SnapshotRecord


class FakeRepositoryClient:
    """In-memory stand-in for SnapshotRepositoryClient.

    Tracks the peak number of concurrent get_snapshot_status calls.
    """

    def __init__(self, snapshots=None, repository="backups", fetch_delay=0.0):
        self.repository = repository
        self.snapshots: dict[str, tuple[str, int]] = dict(snapshots or {})
        self.fail_names: set[str] = set()
        self.list_error: Exception | None = None
        self.list_gate: threading.Event | None = None
        self.fetch_delay = fetch_delay
        self.fetch_calls: list[str] = []

        self._lock = threading.Lock()
        self.in_flight = 0
        self.max_in_flight = 0

    def list_snapshots(self) -> list[str]:
        if self.list_gate is not None:
            self.list_gate.wait(5)
        if self.list_error is not None:
            raise self.list_error
        return list(self.snapshots)

    def get_snapshot_status(self, name: str) -> SnapshotRecord:
        with self._lock:
            self.fetch_calls.append(name)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.fetch_delay:
                time.sleep(self.fetch_delay)
            if name in self.fail_names:
                raise ClientTransportError(f"status for {name} timed out")
            if name not in self.snapshots:
                raise ClientDecodeError(f"no such snapshot {name}")
            state, size = self.snapshots[name]
            return SnapshotRecord(name=name, repository=self.repository, state=state, total_size_bytes=size)
        finally:
            with self._lock:
                self.in_flight -= 1

    def get_cluster_info(self) -> ClusterInfo:
        return ClusterInfo(name="node-1", cluster_name="test-cluster", version=ClusterVersion(number="7.17.0"))


class RecordingSink:
    """Thread-safe dict-backed sink recording every call."""

    def __init__(self):
        self.series: dict[MetricKey, float] = {}
        self.calls: list[tuple[str, MetricKey]] = []
        self._lock = threading.Lock()

    def set(self, key: MetricKey, value: float) -> None:
        with self._lock:
            self.series[key] = value
            self.calls.append(("set", key))

    def delete(self, key: MetricKey) -> None:
        with self._lock:
            self.series.pop(key, None)
            self.calls.append(("delete", key))

    def snapshot_names(self) -> set[str]:
        return {k.snapshot for k in self.series}


def _key(name: str, state: str = "SUCCESS", repository: str = "backups") -> MetricKey:
    return MetricKey(repository=repository, state=state, snapshot=name, prefix=name.split("-")[0])


@pytest.fixture
def fake_client():
    return FakeRepositoryClient()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def make_key():
    return _key


@pytest.fixture
def make_client():
    return FakeRepositoryClient
