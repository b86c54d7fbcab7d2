"""Tests for settings loading and validation."""

import pytest
from pydantic import ValidationError

from es_snapshot_exporter.config import Settings, get_settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("ES_ADDRESSES", "REPOSITORY", "THREADS", "SCHEDULE", "LISTEN_ADDRESS", "INSECURE"):
        monkeypatch.delenv(f"ES_SNAPSHOT_EXPORTER_{name}", raising=False)


def test_defaults():
    settings = Settings(_env_file=None)

    assert settings.es_addresses == ["http://localhost:9200"]
    assert settings.threads == 5
    assert settings.listen_host == ""
    assert settings.listen_port == 9141
    assert settings.metrics_path == "/metrics"


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("ES_SNAPSHOT_EXPORTER_ES_ADDRESSES", "https://es-1:9200, https://es-2:9200/")
    monkeypatch.setenv("ES_SNAPSHOT_EXPORTER_REPOSITORY", "s3-backups")
    monkeypatch.setenv("ES_SNAPSHOT_EXPORTER_THREADS", "12")
    monkeypatch.setenv("ES_SNAPSHOT_EXPORTER_INSECURE", "true")

    settings = Settings(_env_file=None)

    assert settings.es_addresses == ["https://es-1:9200", "https://es-2:9200"]
    assert settings.repository == "s3-backups"
    assert settings.threads == 12
    assert settings.insecure is True


def test_cli_overrides_skip_unset_values():
    settings = get_settings(repository="nightly", threads=None, schedule="0 * * * *")

    assert settings.repository == "nightly"
    assert settings.threads == 5
    assert settings.schedule == "0 * * * *"


@pytest.mark.parametrize(
    "field,value",
    [
        ("threads", 0),
        ("schedule", "61 * * * *"),
        ("schedule", "not a cron"),
        ("listen_address", "9141"),
        ("listen_address", "localhost:http"),
        ("metrics_path", "metrics"),
        ("repository", ""),
        ("es_addresses", ""),
        ("request_timeout", 0),
    ],
)
def test_invalid_values_are_rejected(field, value):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **{field: value})


def test_listen_address_with_host():
    settings = Settings(_env_file=None, listen_address="127.0.0.1:9200")

    assert settings.listen_host == "127.0.0.1"
    assert settings.listen_port == 9200
