"""Prometheus exporter for Elasticsearch snapshot sizes."""

__version__ = "0.1.0"
