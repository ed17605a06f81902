"""HTTP server for the status dashboard."""

import json
import logging
import threading
from datetime import datetime
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs, urlparse

from .collector import aggregate, collect
from .config import Config
from .fetcher import mask_password
from .models import InstanceReport, Totals
from .render import TIME_FORMAT, render_dashboard

logger = logging.getLogger(__name__)

# Query values that switch the link details table off.
_FALSE_VALUES = ("", "0", "false", "no", "off")


class ServerError(Exception):
    """Raised when the dashboard server cannot be started."""
    pass


def parse_refresh(values: Optional[List[str]], default: int) -> int:
    """Read ?refresh=N, falling back to the default on missing or bad input."""
    if not values:
        return default
    try:
        refresh = int(values[0])
    except ValueError:
        return default
    return refresh if refresh >= 1 else default


def parse_details(values: Optional[List[str]]) -> bool:
    """Read ?details=..., any value other than an explicit "off" enables it."""
    if not values:
        return False
    return values[0].strip().lower() not in _FALSE_VALUES


def _report_to_dict(report: InstanceReport) -> Dict[str, Any]:
    """Convert an InstanceReport to a JSON-serializable dictionary."""
    uptime = report.uptime
    return {
        "index": report.index,
        "name": report.instance.name,
        "url": mask_password(report.fetch.url),
        "ok": report.ok,
        "error": report.fetch.error,
        "response_time_ms": report.fetch.response_time_ms,
        "status": uptime.label if uptime else None,
        "uptime_seconds": uptime.total_seconds if uptime else None,
        "started": uptime.started.strftime(TIME_FORMAT) if uptime else None,
        "version": report.version.split("\n")[0] if report.version else None,
        "sms": {
            "received": report.received_total,
            "received_queued": report.received_queued,
            "sent": report.sent_total,
            "sent_queued": report.sent_queued,
            "inbound": report.inbound,
            "outbound": report.outbound,
        },
        "boxes": len(report.boxes),
        "links": {
            "count": report.link_count,
            **{state.value: count for state, count in report.link_states.items()},
        },
    }


def _build_status_response(reports: List[InstanceReport], totals: Totals) -> Dict[str, Any]:
    """Build the full status response with overall totals."""
    return {
        "instances": [_report_to_dict(r) for r in reports],
        "totals": {
            "received": totals.received,
            "inbound": round(totals.inbound, 2),
            "sent": totals.sent,
            "outbound": round(totals.outbound, 2),
            "queued_mo": totals.queued_mo,
            "queued_mt": totals.queued_mt,
            "links": totals.links,
            **{state.value: count for state, count in totals.link_states.items()},
        },
        "summary": {
            "total": len(reports),
            "up": sum(1 for r in reports if r.ok),
            "down": sum(1 for r in reports if not r.ok),
        },
    }


class DashboardHandler(BaseHTTPRequestHandler):
    """HTTP request handler for the dashboard and its JSON endpoints."""

    # Class-level reference set by factory
    config: Optional[Config] = None

    def log_message(self, format: str, *args: Any) -> None:
        """Override to use Python logging instead of stderr."""
        logger.debug("HTTP %s - %s", self.address_string(), format % args)

    def _send_json(self, code: int, data: Dict[str, Any]) -> None:
        """Send a JSON response with the given status code."""
        body = json.dumps(data, indent=2).encode("utf-8")
        self.send_response(code)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.send_header("Connection", "close")
        self.end_headers()
        self.wfile.write(body)

    def _send_error_json(self, code: int, message: str) -> None:
        """Send a JSON error response."""
        self._send_json(code, {"error": message})

    def _send_html(self, code: int, html: str) -> None:
        """Send an HTML response with the given status code."""
        body = html.encode("utf-8")
        self.send_response(code)
        self.send_header("Content-Type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.send_header("Cache-Control", "no-cache, no-store, must-revalidate")
        self.send_header("Connection", "close")
        self.end_headers()
        self.wfile.write(body)

    def do_GET(self) -> None:
        """Handle GET requests."""
        try:
            parsed = urlparse(self.path)
            query = parse_qs(parsed.query, keep_blank_values=True)

            if parsed.path in ("/", "/index.html"):
                self._handle_dashboard(parsed.path, query)
            elif parsed.path == "/health":
                self._handle_health()
            elif parsed.path == "/status":
                self._handle_status()
            else:
                self._send_error_json(404, "Not found")
        except Exception as e:
            logger.exception("Error handling request: %s", e)
            self._send_error_json(500, "Internal server error")

    def _handle_dashboard(self, path: str, query: Dict[str, List[str]]) -> None:
        """Handle GET / endpoint - fetch all instances and render the page."""
        if self.config is None:
            self._send_error_json(503, "Configuration not available")
            return

        monitor = self.config.monitor
        refresh = parse_refresh(query.get("refresh"), monitor.refresh)
        details = parse_details(query.get("details"))

        now = datetime.now()
        reports = collect(self.config, now=now)
        totals = aggregate(reports)
        html = render_dashboard(
            reports,
            totals,
            refresh=refresh,
            details=details,
            path=path,
            now=now,
            queue_error_threshold=monitor.queue_error_threshold,
        )
        self._send_html(200, html)

    def _handle_health(self) -> None:
        """Handle GET /health endpoint."""
        self._send_json(200, {"status": "ok"})

    def _handle_status(self) -> None:
        """Handle GET /status endpoint - instance summaries as JSON."""
        if self.config is None:
            self._send_error_json(503, "Configuration not available")
            return

        reports = collect(self.config)
        self._send_json(200, _build_status_response(reports, aggregate(reports)))


def _create_handler_class(config: Config) -> type:
    """Create a handler class with the configuration bound."""

    class BoundDashboardHandler(DashboardHandler):
        pass

    BoundDashboardHandler.config = config
    return BoundDashboardHandler


# errno values for a busy port (Linux, macOS) and for a privileged port.
_ADDRESS_IN_USE = (98, 48)
_PERMISSION_DENIED = 13


class DashboardServer:
    """Dashboard HTTP server running serve_forever() on a daemon thread.

    Each request renders from a fresh collect() pass.
    """

    def __init__(self, config: Config) -> None:
        self.config = config
        self._server: Optional[HTTPServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        """Port the server listens on (the configured one until started)."""
        if self._server is not None:
            return self._server.server_address[1]
        return self.config.server.port

    def _bind(self) -> HTTPServer:
        host, port = self.config.server.host, self.config.server.port
        try:
            return HTTPServer((host, port), _create_handler_class(self.config))
        except OSError as e:
            if e.errno in _ADDRESS_IN_USE:
                raise ServerError(f"Port {port} is already in use, is another kannelstatus running?") from e
            if e.errno == _PERMISSION_DENIED:
                raise ServerError(f"Permission denied binding port {port}, use a port >= 1024") from e
            raise ServerError(f"Cannot listen on {host or '*'}:{port}: {e}") from e

    def start(self) -> None:
        """Bind the listening socket and start serving in the background.

        Raises:
            ServerError: If the socket cannot be bound.
        """
        if self.is_running:
            logger.warning("Dashboard server is already running")
            return

        self._server = self._bind()
        self._thread = threading.Thread(
            target=self._server.serve_forever,
            kwargs={"poll_interval": 0.5},
            name="dashboard-server",
            daemon=True,
        )
        self._thread.start()
        logger.info("Dashboard server listening on port %d", self.port)

    def stop(self) -> None:
        """Stop serving and release the socket. Safe to call when not started."""
        if self._server is None:
            return

        # shutdown() blocks until serve_forever() returns, so it needs a live loop.
        if self.is_running:
            self._server.shutdown()
        self._server.server_close()
        if self._thread is not None:
            self._thread.join(timeout=5.0)

        self._server = None
        self._thread = None
        logger.info("Dashboard server stopped")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
