"""Label derivation for snapshot size series."""

from __future__ import annotations

from dataclasses import astuple, dataclass

from es_snapshot_exporter.repository.models import SnapshotRecord

LABEL_NAMES = ("repository", "state", "snapshot", "prefix")


@dataclass(frozen=True)
class MetricKey:
    """Label set identifying one snapshot size series.

    The same snapshot in two different states is two distinct series.
    """

    repository: str
    state: str
    snapshot: str
    prefix: str

    def as_labels(self) -> dict[str, str]:
        return dict(zip(LABEL_NAMES, self.values()))

    def values(self) -> tuple[str, ...]:
        """Label values in LABEL_NAMES order."""
        return astuple(self)


def snapshot_prefix(name: str) -> str:
    """Part of the name before the first '-', or the whole name."""
    return name.split("-", 1)[0]


def derive_key(record: SnapshotRecord) -> MetricKey:
    return MetricKey(
        repository=record.repository,
        state=record.state,
        snapshot=record.name,
        prefix=snapshot_prefix(record.name),
    )
