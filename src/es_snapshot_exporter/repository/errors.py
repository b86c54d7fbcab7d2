"""Errors raised at the repository client boundary."""

from __future__ import annotations


class SnapshotClientError(Exception):
    """Base error for all repository client failures."""


class ClientTransportError(SnapshotClientError):
    """Connection, TLS, timeout or non-2xx response from the cluster."""


class ClientDecodeError(SnapshotClientError):
    """Response body did not have the expected shape."""
