"""Command line: ``tabkeeper watchdog`` and ``tabkeeper browser``.

The watchdog is what users start; it spawns ``tabkeeper browser`` and
keeps it alive. Both accept ``--data-dir`` to move the PID files, the tab
snapshot and the logs away from ``~/.tabkeeper``.
"""
import argparse
import logging
import os
import sys
import time

from .config import (
    CHECK_INTERVAL,
    MAX_RESTART_ATTEMPTS,
    RESTART_DELAY,
    SHUTDOWN_GRACE,
    ShellPaths,
)
from .registry import pid_file
from .telemetry import LifecycleEventLogger

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tabkeeper",
        description="Supervised browser shell with tab snapshots and crash recovery.",
    )
    parser.add_argument("--data-dir", default="",
                        help="per-user data directory (default: $TABKEEPER_HOME or ~/.tabkeeper)")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    wd = sub.add_parser("watchdog", help="start and supervise the browser process")
    wd.add_argument("--hidden", action="store_true", help="start the browser hidden")
    wd.add_argument("--max-restarts", type=int, default=MAX_RESTART_ATTEMPTS)
    wd.add_argument("--restart-delay", type=float, default=RESTART_DELAY)
    wd.add_argument("--check-interval", type=float, default=CHECK_INTERVAL)
    wd.add_argument("--shutdown-grace", type=float, default=SHUTDOWN_GRACE)
    wd.add_argument("--reset-after-uptime", type=float, default=None,
                    help="reset the restart budget after this many seconds of uptime "
                         "(default: never)")

    br = sub.add_parser("browser", help="run the browser UI process directly")
    br.add_argument("--hidden", action="store_true", help="run without a visible window")
    br.add_argument("--no-partitions", action="store_true",
                    help="do not persist per-tab storage state")
    return parser


def run_watchdog(args, paths: ShellPaths, run_id: str) -> int:
    from .supervisor import Watchdog

    with LifecycleEventLogger(run_id, "watchdog", log_dir=paths.log_dir) as events:
        watchdog = Watchdog(
            paths,
            start_hidden=args.hidden,
            max_restart_attempts=args.max_restarts,
            restart_delay=args.restart_delay,
            check_interval=args.check_interval,
            shutdown_grace=args.shutdown_grace,
            reset_after_uptime=args.reset_after_uptime,
            event_logger=events,
        )
        return watchdog.run()


def run_browser(args, paths: ShellPaths, run_id: str) -> int:
    # Refuse before paying for a Chromium launch.
    if pid_file.is_peer_running(paths.browser_pid):
        log.warning("Browser already running; nothing to do")
        return 0

    from playwright.sync_api import sync_playwright
    from .app import BrowserApp
    from .browser import PlaywrightHost

    partitions_dir = "" if args.no_partitions else paths.partitions_dir
    with LifecycleEventLogger(run_id, "browser", log_dir=paths.log_dir) as events:
        with sync_playwright() as playwright:
            with PlaywrightHost(playwright, headed=not args.hidden,
                                partitions_dir=partitions_dir) as host:
                return BrowserApp(paths, host, event_logger=events).run()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s [%(process)d] %(name)s: %(message)s",
    )
    paths = ShellPaths(args.data_dir) if args.data_dir else ShellPaths.default()
    run_id = time.strftime("%Y%m%d_%H%M%S") + f"_{os.getpid()}"

    if args.command == "watchdog":
        return run_watchdog(args, paths, run_id)
    return run_browser(args, paths, run_id)


if __name__ == "__main__":
    sys.exit(main())
