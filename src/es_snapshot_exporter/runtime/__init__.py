"""Runtime plumbing: cron scheduling and the exporter HTTP server."""

from es_snapshot_exporter.runtime.scheduler import CronScheduler
from es_snapshot_exporter.runtime.server import build_app, start_http_server

__all__ = [
    "CronScheduler",
    "build_app",
    "start_http_server",
]
