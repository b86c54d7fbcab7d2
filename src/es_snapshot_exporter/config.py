"""Configuration and environment for the snapshot exporter."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

from croniter import croniter
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Exporter settings loaded from environment and .env."""

    model_config = SettingsConfigDict(
        env_prefix="ES_SNAPSHOT_EXPORTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Elasticsearch
    es_addresses: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["http://localhost:9200"],
        description="Elasticsearch addresses, comma separated; tried in order",
    )
    repository: str = Field(default="backups", min_length=1, description="Snapshot repository to watch")
    cacert: Path | None = Field(
        default=None,
        description="PEM file with CA certificates used to verify the cluster",
    )
    insecure: bool = Field(default=False, description="Skip TLS certificate verification")
    username: str | None = Field(default=None, description="HTTP basic auth user")
    password: str | None = Field(default=None, description="HTTP basic auth password")
    request_timeout: float = Field(default=10.0, gt=0, description="Per-request timeout in seconds")

    # Reconciliation
    threads: int = Field(default=5, ge=1, description="Concurrent snapshot status fetches per cycle")
    schedule: str = Field(
        default="*/5 * * * *",
        description="Cron expression for reconciliation cycles",
    )

    # Exporter HTTP surface
    listen_address: str = Field(default=":9141", description="host:port for the exporter")
    metrics_path: str = Field(default="/metrics", description="URL path for surfacing collected metrics")

    @field_validator("es_addresses", mode="before")
    @classmethod
    def _split_addresses(cls, value: object) -> object:
        if isinstance(value, str):
            value = [part.strip() for part in value.split(",")]
        if isinstance(value, list):
            value = [v.rstrip("/") for v in value if v]
            if not value:
                raise ValueError("at least one Elasticsearch address is required")
        return value

    @field_validator("schedule")
    @classmethod
    def _check_schedule(cls, value: str) -> str:
        if not croniter.is_valid(value):
            raise ValueError(f"invalid cron expression: {value!r}")
        return value

    @field_validator("listen_address")
    @classmethod
    def _check_listen_address(cls, value: str) -> str:
        _, sep, port = value.rpartition(":")
        if not sep or not port.isdigit() or not 0 <= int(port) <= 65535:
            raise ValueError(f"listen address must be host:port, got {value!r}")
        return value

    @field_validator("metrics_path")
    @classmethod
    def _check_metrics_path(cls, value: str) -> str:
        if not value.startswith("/") or value == "/":
            raise ValueError("metrics path must start with '/' and not be the root")
        return value

    @property
    def listen_host(self) -> str:
        return self.listen_address.rpartition(":")[0]

    @property
    def listen_port(self) -> int:
        return int(self.listen_address.rpartition(":")[2])


def get_settings(**overrides: object) -> Settings:
    """Return validated settings instance, with CLI overrides applied."""
    return Settings(**{k: v for k, v in overrides.items() if v is not None})
