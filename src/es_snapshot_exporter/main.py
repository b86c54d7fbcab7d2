"""CLI entrypoint for the snapshot exporter."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from pathlib import Path

from prometheus_client import CollectorRegistry
from pydantic import ValidationError
from rich.logging import RichHandler

from es_snapshot_exporter import __version__
from es_snapshot_exporter.config import Settings, get_settings
from es_snapshot_exporter.engine import ReconciliationEngine
from es_snapshot_exporter.metrics import CycleMetrics, PrometheusSnapshotSink
from es_snapshot_exporter.repository import SnapshotClientError, SnapshotRepositoryClient
from es_snapshot_exporter.runtime import CronScheduler, build_app, start_http_server

logger = logging.getLogger("es_snapshot_exporter")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Export Elasticsearch snapshot sizes as Prometheus metrics.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--es-addresses",
        default=None,
        help="Comma separated Elasticsearch addresses (default: from env or http://localhost:9200)",
    )
    parser.add_argument("--repository", "-r", default=None, help="Snapshot repository to watch")
    parser.add_argument("--cacert", type=Path, default=None, help="PEM file with extra CA certificates")
    parser.add_argument(
        "--insecure",
        action="store_true",
        default=None,
        help="Skip TLS certificate verification",
    )
    parser.add_argument("--threads", type=int, default=None, help="Concurrent snapshot status fetches")
    parser.add_argument("--schedule", default=None, help="Cron expression for reconciliation cycles")
    parser.add_argument("--listen-address", default=None, help="host:port for the exporter")
    parser.add_argument("--metrics-path", default=None, help="URL path for surfacing collected metrics")
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser.parse_args(argv)


def _load_settings(args: argparse.Namespace) -> Settings:
    return get_settings(
        es_addresses=args.es_addresses,
        repository=args.repository,
        cacert=args.cacert,
        insecure=args.insecure,
        threads=args.threads,
        schedule=args.schedule,
        listen_address=args.listen_address,
        metrics_path=args.metrics_path,
    )


def build_client(settings: Settings) -> SnapshotRepositoryClient:
    return SnapshotRepositoryClient(
        addresses=settings.es_addresses,
        repository=settings.repository,
        cacert=settings.cacert,
        insecure=settings.insecure,
        username=settings.username,
        password=settings.password,
        timeout=settings.request_timeout,
    )


def serve(settings: Settings, client: SnapshotRepositoryClient, stop: threading.Event) -> int:
    """Check connectivity, then run the exporter until `stop` is set."""
    try:
        info = client.get_cluster_info()
    except SnapshotClientError as e:
        logger.error("Cannot reach Elasticsearch at %s: %s", ", ".join(settings.es_addresses), e)
        return 1
    logger.info("Connected to cluster %s (Elasticsearch %s)", info.cluster_name, info.version.number)

    registry = CollectorRegistry()
    engine = ReconciliationEngine(
        client=client,
        sink=PrometheusSnapshotSink(registry),
        threads=settings.threads,
        metrics=CycleMetrics(registry),
    )
    try:
        httpd, _ = start_http_server(
            build_app(registry, settings.metrics_path),
            settings.listen_host,
            settings.listen_port,
        )
    except OSError as e:
        logger.error("Cannot listen on %s: %s", settings.listen_address, e)
        return 1

    scheduler = CronScheduler(settings.schedule, engine.run_cycle)
    scheduler.start()
    try:
        stop.wait()
    finally:
        logger.info("Shutting down")
        scheduler.stop()
        httpd.shutdown()
        httpd.server_close()
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for es-snapshot-exporter CLI."""
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)],
    )
    if not args.verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)

    try:
        settings = _load_settings(args)
    except ValidationError as e:
        logger.error("Invalid configuration:\n%s", e)
        return 1
    logger.info("Starting es-snapshot-exporter %s for repository %s", __version__, settings.repository)

    stop = threading.Event()
    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, lambda *_: stop.set())

    try:
        with build_client(settings) as client:
            return serve(settings, client, stop)
    except SnapshotClientError as e:
        logger.error("Invalid client configuration: %s", e)
        return 1
    except Exception as e:
        logging.exception("Exporter failed")
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
