"""HTTP surface of the exporter: metrics, health, version and a landing page."""

from __future__ import annotations

import json
import logging
import platform
import threading
from socketserver import ThreadingMixIn
from typing import Any, Callable, Iterable
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

from prometheus_client import CollectorRegistry, make_wsgi_app

from es_snapshot_exporter import __version__

logger = logging.getLogger(__name__)

WSGIApp = Callable[[dict[str, Any], Callable[..., Any]], Iterable[bytes]]

LANDING_PAGE = """<html>
<head><title>es-snapshot-exporter</title></head>
<body>
<h1>es-snapshot-exporter</h1>
<p><a href="{metrics_path}">Metrics</a></p>
<p><i>version {version}</i></p>
</body>
</html>
"""


def build_app(registry: CollectorRegistry, metrics_path: str = "/metrics") -> WSGIApp:
    """WSGI app routing `metrics_path`, /healthz, /version and / ."""
    metrics_app = make_wsgi_app(registry)
    version_body = json.dumps(
        {"version": __version__, "python_version": platform.python_version()}
    ).encode()
    landing_body = LANDING_PAGE.format(metrics_path=metrics_path, version=__version__).encode()

    def app(environ: dict[str, Any], start_response: Callable[..., Any]) -> Iterable[bytes]:
        path = environ.get("PATH_INFO") or "/"
        if path == metrics_path:
            return metrics_app(environ, start_response)
        if path == "/healthz":
            return _respond(start_response, "200 OK", "application/json", b'{"status":"ok"}\n')
        if path == "/version":
            return _respond(start_response, "200 OK", "application/json", version_body)
        if path == "/":
            return _respond(start_response, "200 OK", "text/html; charset=utf-8", landing_body)
        return _respond(start_response, "404 Not Found", "text/plain", b"Not Found\n")

    return app


def _respond(start_response: Callable[..., Any], status: str, content_type: str, body: bytes) -> list[bytes]:
    start_response(status, [("Content-Type", content_type), ("Content-Length", str(len(body)))])
    return [body]


class _ThreadingWSGIServer(ThreadingMixIn, WSGIServer):
    daemon_threads = True


class _LoggingHandler(WSGIRequestHandler):
    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


def start_http_server(app: WSGIApp, host: str, port: int) -> tuple[WSGIServer, threading.Thread]:
    """Serve `app` from a daemon thread; returns the server and its thread."""
    httpd = make_server(host, port, app, server_class=_ThreadingWSGIServer, handler_class=_LoggingHandler)
    thread = threading.Thread(target=httpd.serve_forever, name="exporter-http", daemon=True)
    thread.start()
    logger.info("Listening on %s:%d", host or "0.0.0.0", httpd.server_port)
    return httpd, thread
