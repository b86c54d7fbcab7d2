"""Prometheus-backed metric sink and the exporter's own cycle metrics."""

from __future__ import annotations

import logging
from typing import Protocol

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram

from es_snapshot_exporter.metrics.labels import LABEL_NAMES, MetricKey

logger = logging.getLogger(__name__)

NAMESPACE = "elasticsearch"


class MetricSink(Protocol):
    """Label-indexed gauge store. Implementations must allow concurrent calls."""

    def set(self, key: MetricKey, value: float) -> None: ...

    def delete(self, key: MetricKey) -> None: ...


class PrometheusSnapshotSink:
    """Publishes snapshot sizes as `elasticsearch_snapshot_stats_size_in_bytes_total`.

    `prometheus_client` label children are guarded by the metric's own lock,
    so `set` and `delete` are safe from multiple worker threads.
    """

    def __init__(self, registry: CollectorRegistry) -> None:
        self._gauge = Gauge(
            "size_in_bytes_total",
            "Total size of files that are referenced by the snapshot",
            labelnames=LABEL_NAMES,
            namespace=NAMESPACE,
            subsystem="snapshot_stats",
            registry=registry,
        )

    def set(self, key: MetricKey, value: float) -> None:
        self._gauge.labels(*key.values()).set(value)

    def delete(self, key: MetricKey) -> None:
        try:
            self._gauge.remove(*key.values())
        except KeyError:
            # Older prometheus_client releases raise for unknown label sets.
            logger.debug("Series %s already absent", key)


class CycleMetrics:
    """Self-observability for reconciliation cycles."""

    def __init__(self, registry: CollectorRegistry) -> None:
        self.cycles = Counter(
            "snapshot_exporter_cycles_total",
            "Reconciliation cycles by result",
            ["result"],
            registry=registry,
        )
        self.fetch_failures = Counter(
            "snapshot_exporter_fetch_failures_total",
            "Snapshot status fetches that failed",
            registry=registry,
        )
        self.evicted = Counter(
            "snapshot_exporter_evicted_series_total",
            "Series removed because their snapshot disappeared",
            registry=registry,
        )
        self.duration = Histogram(
            "snapshot_exporter_cycle_duration_seconds",
            "Duration of reconciliation cycles in seconds",
            buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
            registry=registry,
        )
        self.last_success = Gauge(
            "snapshot_exporter_last_success_timestamp_seconds",
            "Unix time of the last cycle that listed snapshots successfully",
            registry=registry,
        )
        for result in ("success", "failed", "skipped"):
            self.cycles.labels(result)
