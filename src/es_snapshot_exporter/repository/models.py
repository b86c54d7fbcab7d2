"""Typed views of the Elasticsearch snapshot APIs used by the exporter."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CatSnapshot(BaseModel):
    """One row of `_cat/snapshots?format=json`."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1)
    status: str | None = None
    indices: int | None = None
    failed_shards: int | None = None
    total_shards: int | None = None


class SizeStats(BaseModel):
    model_config = ConfigDict(extra="ignore")

    file_count: int = 0
    size_in_bytes: int = Field(default=0, ge=0)


class SnapshotStats(BaseModel):
    model_config = ConfigDict(extra="ignore")

    incremental: SizeStats = Field(default_factory=SizeStats)
    total: SizeStats
    start_time_in_millis: int | None = None
    time_in_millis: int | None = None


class SnapshotStatus(BaseModel):
    """Entry of `_snapshot/<repo>/<name>/_status`."""

    model_config = ConfigDict(extra="ignore")

    snapshot: str
    repository: str
    uuid: str | None = None
    state: str
    stats: SnapshotStats


class SnapshotStatusResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    snapshots: list[SnapshotStatus] = Field(..., min_length=1)


class SnapshotRecord(BaseModel):
    """Per-run view of one snapshot; rebuilt from live cluster state every cycle."""

    model_config = ConfigDict(frozen=True)

    name: str
    repository: str
    state: str  # passed through verbatim: SUCCESS | IN_PROGRESS | PARTIAL | FAILED | ...
    total_size_bytes: int = Field(..., ge=0)

    @classmethod
    def from_status(cls, status: SnapshotStatus) -> SnapshotRecord:
        return cls(
            name=status.snapshot,
            repository=status.repository,
            state=status.state,
            total_size_bytes=status.stats.total.size_in_bytes,
        )


class ClusterVersion(BaseModel):
    model_config = ConfigDict(extra="ignore")

    number: str


class ClusterInfo(BaseModel):
    """Response of `GET /` on an Elasticsearch node."""

    model_config = ConfigDict(extra="ignore")

    name: str
    cluster_name: str
    cluster_uuid: str | None = None
    version: ClusterVersion
