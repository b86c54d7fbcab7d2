"""Repository layer: read snapshot state from an Elasticsearch cluster."""

from es_snapshot_exporter.repository.client import SnapshotRepositoryClient
from es_snapshot_exporter.repository.errors import (
    ClientDecodeError,
    ClientTransportError,
    SnapshotClientError,
)
from es_snapshot_exporter.repository.models import ClusterInfo, SnapshotRecord

__all__ = [
    "SnapshotRepositoryClient",
    "SnapshotClientError",
    "ClientTransportError",
    "ClientDecodeError",
    "ClusterInfo",
    "SnapshotRecord",
]
