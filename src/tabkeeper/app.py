"""Browser process main loop.

Wires the session controller to a surface host, the snapshot store and the
in-process singleton guard, then alternates between pumping host events and
running due timers until asked to stop.

Exit codes: 0 for a requested stop or a refused second instance, 1 when the
host lost its engine (the watchdog restarts the process).
"""
import logging
import os
import signal

from .config import PUMP_INTERVAL_MS, RECOVERY_DELAY, RESTORE_DELAY, ShellPaths
from .persistence.snapshot_store import SnapshotStore
from .registry import pid_file
from .session.controller import SessionController
from .session.timers import TimerQueue

log = logging.getLogger(__name__)


class BrowserApp:
    """One browser UI process: singleton guard, session, event loop."""

    def __init__(self, paths: ShellPaths, host, *,
                 observer=None,
                 pump_interval_ms: int = PUMP_INTERVAL_MS,
                 recovery_delay: float = RECOVERY_DELAY,
                 restore_delay: float = RESTORE_DELAY,
                 timers: TimerQueue | None = None,
                 event_logger=None):
        self.paths = paths
        self.host = host
        self.store = SnapshotStore(paths.tabs_file)
        self.timers = timers or TimerQueue()
        self.controller = SessionController(
            host, self.store, self.timers, observer,
            recovery_delay=recovery_delay,
            restore_delay=restore_delay,
            event_logger=event_logger,
        )
        self._pump_interval_ms = pump_interval_ms
        self._pid = os.getpid()
        self._stop_requested = False

    def acquire(self) -> bool:
        """Claim the browser role. False if another live browser owns it."""
        if pid_file.is_peer_running(self.paths.browser_pid, own_pid=self._pid):
            log.warning("Browser already running; refusing to start a second instance")
            return False
        pid_file.write_record(self.paths.browser_pid, self._pid)
        log.info("Main process PID written: %d", self._pid)
        return True

    def start_session(self):
        """Open the first tab and schedule the replay of the previous session.

        The snapshot is read before the first tab exists, because creating a
        tab overwrites it.
        """
        snapshot = self.store.load()
        first_url = snapshot[0].url if snapshot else ""
        self.controller.create_tab(first_url)
        if len(snapshot) > 1:
            log.info("Will restore %d previous tabs", len(snapshot) - 1)
            self.controller.schedule_restore(snapshot)

    def request_stop(self, signum=None, frame=None):
        if signum is not None:
            log.info("Received %s, shutting down gracefully...", signal.Signals(signum).name)
        self._stop_requested = True

    def run_once(self) -> bool:
        """Pump host events, then due timers. False once the host is dead."""
        self.host.pump(self._pump_interval_ms)
        self.timers.run_due()
        # duck typing: hosts without an engine connection are always up
        is_connected = getattr(self.host, "is_connected", None)
        return is_connected() if callable(is_connected) else True

    def run(self) -> int:
        if not self.acquire():
            return 0

        previous = {
            sig: signal.signal(sig, self.request_stop)
            for sig in (signal.SIGINT, signal.SIGTERM)
        }
        exit_code = 0
        try:
            self.start_session()
            while not self._stop_requested:
                if not self.run_once():
                    log.error("Browser engine disconnected, exiting for restart")
                    exit_code = 1
                    break
        finally:
            self.shutdown()
            for sig, handler in previous.items():
                signal.signal(sig, handler)
        return exit_code

    def shutdown(self):
        self.controller.teardown()
        pid_file.remove_record_if_owned(self.paths.browser_pid, self._pid)
