"""kannelstatus - Status dashboard for Kannel bearerbox clusters."""

import argparse
import logging
import signal
import sys
from threading import Event
from typing import Optional

__version__ = "0.1.0"

# Global shutdown event for signal handlers
_shutdown_event: Optional[Event] = None

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def _handle_shutdown(signum: int, frame: object) -> None:
    """Signal handler for graceful shutdown."""
    sig_name = signal.Signals(signum).name
    logger.info("Received %s, initiating shutdown...", sig_name)
    if _shutdown_event is not None:
        _shutdown_event.set()


def _cmd_run(args: argparse.Namespace) -> None:
    """Execute the run command - serve the dashboard."""
    global _shutdown_event

    _setup_logging(args.verbose)

    logger.info("kannelstatus %s starting...", __version__)

    # Import here to avoid circular imports and allow logging setup first
    from .config import ConfigError, load_config
    from .server import DashboardServer, ServerError

    # 1. Load configuration
    try:
        config = load_config(args.config)
        logger.info("Configuration loaded from %s", args.config)
        logger.info("Monitoring %d bearerbox instance(s)", len(config.instances))
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        sys.exit(1)

    # 2. Setup shutdown handler
    _shutdown_event = Event()
    signal.signal(signal.SIGTERM, _handle_shutdown)
    signal.signal(signal.SIGINT, _handle_shutdown)

    # 3. Start server
    server = DashboardServer(config)
    try:
        server.start()
    except ServerError as e:
        logger.error("Failed to start dashboard server: %s", e)
        sys.exit(1)

    try:
        logger.info("Dashboard available at http://%s:%d/", config.server.host or "localhost", config.server.port)

        # 4. Wait for shutdown signal
        _shutdown_event.wait()

    except KeyboardInterrupt:
        # Backup handler if signal doesn't work
        logger.info("Keyboard interrupt received")
    finally:
        server.stop()
        logger.info("Shutdown complete")


def _cmd_render(args: argparse.Namespace) -> None:
    """Execute the render command - write one dashboard page."""
    _setup_logging(args.verbose)

    from datetime import datetime

    from .collector import aggregate, collect
    from .config import ConfigError, load_config
    from .render import render_dashboard

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    refresh = args.refresh if args.refresh is not None else config.monitor.refresh
    if refresh < 1:
        print("Error: refresh must be at least 1 second", file=sys.stderr)
        sys.exit(1)

    now = datetime.now()
    reports = collect(config, now=now)
    html = render_dashboard(
        reports,
        aggregate(reports),
        refresh=refresh,
        details=args.details,
        path=args.path,
        now=now,
        queue_error_threshold=config.monitor.queue_error_threshold,
    )

    if args.output:
        try:
            with open(args.output, "w", encoding="utf-8") as f:
                f.write(html)
        except OSError as e:
            print(f"Error: Failed to write {args.output}: {e}", file=sys.stderr)
            sys.exit(1)
        logger.info("Dashboard written to %s", args.output)
    else:
        sys.stdout.write(html)


def _cmd_check(args: argparse.Namespace) -> None:
    """Execute the check command - print a summary line per instance."""
    _setup_logging(args.verbose)

    from .collector import aggregate, collect
    from .config import ConfigError, load_config
    from .formatting import format_decimal, format_integer
    from .models import LinkState

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    reports = collect(config)

    for report in reports:
        name = report.instance.name
        if not report.ok:
            print(f"✗ ({report.index}) {name}: {report.fetch.error}")
            continue
        online = report.link_states.get(LinkState.ONLINE, 0)
        status = report.uptime.label if report.uptime else "unknown status"
        print(
            f"✓ ({report.index}) {name}: {status}, "
            f"{online}/{report.link_count} links online, "
            f"{len(report.boxes)} box(es), "
            f"queued {format_integer(report.received_queued)} MO / {format_integer(report.sent_queued)} MT"
        )

    totals = aggregate(reports)
    failed = sum(1 for r in reports if not r.ok)
    print(
        f"\nTotal: {format_integer(totals.received)} received ({format_decimal(totals.inbound)} msgs/s), "
        f"{format_integer(totals.sent)} sent ({format_decimal(totals.outbound)} msgs/s)"
    )
    print(f"Result: {len(reports) - failed}/{len(reports)} instances reachable")

    if failed:
        sys.exit(1)


def main() -> None:
    """Main entry point for the kannelstatus package."""
    parser = argparse.ArgumentParser(
        description="kannelstatus - Status dashboard for Kannel bearerbox clusters"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"kannelstatus {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command")

    # Run subcommand (default behavior)
    run_parser = subparsers.add_parser(
        "run",
        help="Serve the status dashboard (default)",
    )
    run_parser.add_argument(
        "-c", "--config",
        default="config.yaml",
        help="Path to configuration file (default: config.yaml)",
    )
    run_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging",
    )
    run_parser.set_defaults(func=_cmd_run)

    # Render subcommand
    render_parser = subparsers.add_parser(
        "render",
        help="Fetch all instances once and write the dashboard HTML",
    )
    render_parser.add_argument(
        "-c", "--config",
        default="config.yaml",
        help="Path to configuration file (default: config.yaml)",
    )
    render_parser.add_argument(
        "-o", "--output",
        help="Write the page to this file instead of stdout",
    )
    render_parser.add_argument(
        "--refresh",
        type=int,
        help="Meta-refresh interval in seconds (overrides config)",
    )
    render_parser.add_argument(
        "--details",
        action="store_true",
        help="Include the SMSC connection details table",
    )
    render_parser.add_argument(
        "--path",
        default="/",
        help="Path the page is served at, used for refresh links (default: /)",
    )
    render_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging",
    )
    render_parser.set_defaults(func=_cmd_render)

    # Check subcommand
    check_parser = subparsers.add_parser(
        "check",
        help="Print a one-line status summary per instance",
    )
    check_parser.add_argument(
        "-c", "--config",
        default="config.yaml",
        help="Path to configuration file (default: config.yaml)",
    )
    check_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging",
    )
    check_parser.set_defaults(func=_cmd_check)

    args = parser.parse_args()

    # Default to 'run' if no command specified
    if args.command is None:
        args.config = "config.yaml"
        args.verbose = False
        args.func = _cmd_run

    args.func(args)
