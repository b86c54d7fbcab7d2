"""Engine: reconcile published snapshot series with the cluster."""

from es_snapshot_exporter.engine.reconciler import CycleOutcome, ReconciliationEngine, SnapshotSource

__all__ = [
    "ReconciliationEngine",
    "CycleOutcome",
    "SnapshotSource",
]
