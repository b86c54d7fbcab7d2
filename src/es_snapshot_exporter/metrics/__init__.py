"""Metrics layer: label derivation and the Prometheus gauge store."""

from es_snapshot_exporter.metrics.labels import LABEL_NAMES, MetricKey, derive_key, snapshot_prefix
from es_snapshot_exporter.metrics.sink import CycleMetrics, MetricSink, PrometheusSnapshotSink

__all__ = [
    "LABEL_NAMES",
    "MetricKey",
    "derive_key",
    "snapshot_prefix",
    "CycleMetrics",
    "MetricSink",
    "PrometheusSnapshotSink",
]
