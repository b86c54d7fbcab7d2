"""Read-only HTTP client for the Elasticsearch snapshot APIs."""

from __future__ import annotations

import logging
import ssl
from pathlib import Path
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from es_snapshot_exporter.repository.errors import ClientDecodeError, ClientTransportError
from es_snapshot_exporter.repository.models import (
    CatSnapshot,
    ClusterInfo,
    SnapshotRecord,
    SnapshotStatusResponse,
)

logger = logging.getLogger(__name__)

_CAT_SNAPSHOTS = TypeAdapter(list[CatSnapshot])


def _build_verify(cacert: Path | None, insecure: bool) -> ssl.SSLContext | bool:
    """System trust store, extended with `cacert` when given."""
    if insecure:
        return False
    ctx = ssl.create_default_context()
    if cacert:
        try:
            ctx.load_verify_locations(cafile=str(cacert))
        except (OSError, ssl.SSLError) as e:
            raise ClientTransportError(f"failed to load CA certificates from {cacert}: {e}") from e
    return ctx


class SnapshotRepositoryClient:
    """Lists snapshots and fetches their status from one repository.

    Addresses are tried in order; the one that last answered is tried first
    on the next call. HTTP errors from a reachable node are not retried on
    other nodes.
    """

    def __init__(
        self,
        addresses: list[str],
        repository: str,
        cacert: Path | None = None,
        insecure: bool = False,
        username: str | None = None,
        password: str | None = None,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not addresses:
            raise ValueError("at least one address is required")
        self.repository = repository
        verify = _build_verify(cacert, insecure)
        auth = httpx.BasicAuth(username, password or "") if username else None
        self._clients = [
            httpx.Client(
                base_url=address,
                verify=verify,
                auth=auth,
                timeout=timeout,
                transport=transport,
                headers={"Accept": "application/json"},
            )
            for address in addresses
        ]
        # Best-effort hint shared by fetch workers; a stale value only changes
        # which address is tried first.
        self._active = 0

    def close(self) -> None:
        for c in self._clients:
            c.close()

    def __enter__(self) -> SnapshotRepositoryClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _get(self, path: str, params: dict[str, str] | None = None) -> Any:
        """GET `path` on the first reachable address and return the decoded JSON body."""
        n = len(self._clients)
        start = self._active
        last_error: Exception | None = None
        for offset in range(n):
            idx = (start + offset) % n
            c = self._clients[idx]
            try:
                response = c.get(path, params=params)
            except httpx.TransportError as e:
                logger.debug("Request to %s%s failed: %s", c.base_url, path, e)
                last_error = e
                continue
            except httpx.HTTPError as e:
                raise ClientTransportError(f"GET {path} failed: {e}") from e
            self._active = idx
            if response.is_error:
                raise ClientTransportError(
                    f"GET {path} failed with status {response.status_code}: {response.text[:200]}"
                )
            try:
                return response.json()
            except ValueError as e:
                raise ClientDecodeError(f"GET {path} returned non-JSON response") from e
        raise ClientTransportError(f"GET {path} failed on all {n} address(es): {last_error}") from last_error

    def _decode(self, model: type[BaseModel], payload: Any, what: str) -> Any:
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            raise ClientDecodeError(f"unexpected {what} response: {e}") from e

    def list_snapshots(self) -> list[str]:
        """Names of all snapshots currently in the repository."""
        payload = self._get(f"/_cat/snapshots/{quote(self.repository, safe='')}", params={"format": "json"})
        try:
            rows = _CAT_SNAPSHOTS.validate_python(payload)
        except ValidationError as e:
            raise ClientDecodeError(f"unexpected snapshot list response: {e}") from e
        return [row.id for row in rows]

    def get_snapshot_status(self, name: str) -> SnapshotRecord:
        path = f"/_snapshot/{quote(self.repository, safe='')}/{quote(name, safe='')}/_status"
        response: SnapshotStatusResponse = self._decode(SnapshotStatusResponse, self._get(path), "snapshot status")
        status = response.snapshots[0]
        if status.snapshot != name:
            raise ClientDecodeError(f"status response for {name!r} describes {status.snapshot!r}")
        return SnapshotRecord.from_status(status)

    def get_cluster_info(self) -> ClusterInfo:
        return self._decode(ClusterInfo, self._get("/"), "cluster info")
