"""Watchdog — keeps one browser UI process alive.

Single-threaded and poll-driven: ``tick()`` notices a child exit, probes a
watched peer and fires a due restart; ``run()`` calls it every
``check_interval`` seconds until shutdown or fail-stop.

Restarts are bounded by a RestartBudget. When the budget is used up the
watchdog enters STOPPED and does nothing more.

macOS and Linux only — uses signals for process management.
"""
import logging
import os
import signal
import subprocess
import sys
import time
from enum import Enum

from ..config import (
    CHECK_INTERVAL,
    MAX_RESTART_ATTEMPTS,
    RESTART_DELAY,
    SHUTDOWN_GRACE,
    ShellPaths,
)
from ..errors import FailureKind
from ..registry import pid_file
from .budget import RestartBudget

log = logging.getLogger(__name__)


class SupervisorState(Enum):
    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    MONITORING = "monitoring"   # a peer owns the browser, watch its pid only
    EXITED = "exited"           # child exited with code 0
    CRASHED = "crashed"         # non-zero code, signal, or spawn failure
    STOPPED = "stopped"         # shutdown or restart budget exhausted


def default_command(paths: ShellPaths, start_hidden: bool = False) -> list[str]:
    """Command line for the browser UI process."""
    cmd = [sys.executable, "-m", "tabkeeper", "--data-dir", paths.data_dir, "browser"]
    if start_hidden:
        cmd.append("--hidden")
    return cmd


class Watchdog:
    """Supervises the browser UI process.

    ``popen``, ``is_alive``, ``clock`` and ``sleep`` are injectable so the
    state machine can be driven without real processes or real time.
    """

    def __init__(
        self,
        paths: ShellPaths,
        command: list[str] | None = None,
        *,
        max_restart_attempts: int = MAX_RESTART_ATTEMPTS,
        restart_delay: float = RESTART_DELAY,
        check_interval: float = CHECK_INTERVAL,
        shutdown_grace: float = SHUTDOWN_GRACE,
        start_hidden: bool = False,
        reset_after_uptime: float | None = None,
        popen=subprocess.Popen,
        is_alive=pid_file.is_alive,
        clock=time.monotonic,
        sleep=time.sleep,
        event_logger=None,
    ):
        self.paths = paths
        self.command = command or default_command(paths, start_hidden)
        self.restart_delay = restart_delay
        self.check_interval = check_interval
        self.shutdown_grace = shutdown_grace
        self.budget = RestartBudget(
            max_restart_attempts, reset_after_uptime=reset_after_uptime, clock=clock,
        )
        self.state = SupervisorState.IDLE
        self.proc = None
        self.watched_pid: int | None = None
        self.spawn_count = 0
        self._popen = popen
        self._is_alive = is_alive
        self._clock = clock
        self._sleep = sleep
        self._event_logger = event_logger
        self._pid = os.getpid()
        self._restart_due: float | None = None
        self._shutting_down = False
        self._shutdown_requested = False

    @property
    def restart_pending(self) -> bool:
        return self._restart_due is not None

    def acquire(self) -> bool:
        """Claim the watchdog role. False if another live watchdog owns it."""
        if pid_file.is_peer_running(
            self.paths.watchdog_pid, own_pid=self._pid, alive=self._is_alive,
        ):
            log.warning("Another watchdog process is already running")
            return False
        pid_file.write_record(self.paths.watchdog_pid, self._pid)
        return True

    def start(self):
        """Spawn the browser, or watch the one a peer already started."""
        if self.state in (SupervisorState.RUNNING, SupervisorState.MONITORING,
                          SupervisorState.STOPPED):
            return

        if pid_file.is_peer_running(
            self.paths.browser_pid, own_pid=self._pid, alive=self._is_alive,
        ):
            self.watched_pid = pid_file.read_record(self.paths.browser_pid)
            self.state = SupervisorState.MONITORING
            log.info("Browser already running with PID %s, monitoring it", self.watched_pid)
            if self._event_logger:
                self._event_logger.log_peer_detected(self.watched_pid)
            return

        self._spawn()

    def _spawn(self):
        self.state = SupervisorState.STARTING
        self.spawn_count += 1
        log.info("Starting browser process: %s", " ".join(self.command))
        try:
            self.proc = self._popen(
                self.command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
            )
        except (OSError, ValueError) as e:
            log.error("Browser process failed to start (%s): %s", FailureKind.SPAWN_FAILED.value, e)
            if self._event_logger:
                self._event_logger.log_spawn_failed(str(e), self.spawn_count)
            self.proc = None
            self._on_child_exit(None, None)
            return

        pid_file.write_record(self.paths.browser_pid, self.proc.pid)
        self.budget.note_started()
        self.state = SupervisorState.RUNNING
        log.info("Browser process started with PID %d", self.proc.pid)
        if self._event_logger:
            self._event_logger.log_spawn(self.proc.pid, self.spawn_count)

    def _on_child_exit(self, pid: int | None, returncode: int | None):
        self.proc = None
        self.state = SupervisorState.EXITED if returncode == 0 else SupervisorState.CRASHED
        self.budget.note_exit(returncode)
        if pid is not None:
            pid_file.remove_record_if_owned(self.paths.browser_pid, pid)
            log.warning("Browser process %d exited with code %s", pid, returncode)
        if self._event_logger:
            self._event_logger.log_exit(pid, returncode, self.state.value)
        if self._shutting_down:
            return
        self._schedule_restart()

    def _schedule_restart(self):
        if not self.budget.consume():
            self.state = SupervisorState.STOPPED
            log.error("Max restart attempts reached (%d). Watchdog stopping.",
                      self.budget.max_attempts)
            if self._event_logger:
                self._event_logger.log_stopped("restart_budget_exhausted", self.budget.attempts)
            return
        self._restart_due = self._clock() + self.restart_delay
        log.info(f"Scheduling restart attempt {self.budget.attempts}/{self.budget.max_attempts} "
                 f"in {self.restart_delay:.1f}s")
        if self._event_logger:
            self._event_logger.log_restart_scheduled(
                self.budget.attempts, self.budget.max_attempts, self.restart_delay,
            )

    def tick(self):
        """One pass of the control loop."""
        if self.state is SupervisorState.STOPPED:
            return

        if self.proc is not None:
            returncode = self.proc.poll()
            if returncode is not None:
                self._on_child_exit(self.proc.pid, returncode)
        elif self.state is SupervisorState.MONITORING:
            # We never owned this process, so no exit event will ever arrive.
            if not self._is_alive(self.watched_pid):
                log.info("Monitored browser process %s died, taking over", self.watched_pid)
                if self._event_logger:
                    self._event_logger.log_peer_lost(self.watched_pid)
                self.watched_pid = None
                self.state = SupervisorState.IDLE
                self.start()

        if self._restart_due is not None and self._clock() >= self._restart_due:
            self._restart_due = None
            self.start()

    def request_shutdown(self, signum=None, frame=None):
        """Signal-handler friendly: only flips a flag the run loop checks."""
        if signum is not None:
            log.info("Received %s, shutting down gracefully...", signal.Signals(signum).name)
        self._shutdown_requested = True

    def shutdown(self):
        """Stop the child (SIGTERM, then SIGKILL) and drop both PID records."""
        was_stopped = self.state is SupervisorState.STOPPED
        self._shutting_down = True
        self._restart_due = None

        proc = self.proc
        if proc is not None:
            if proc.poll() is None:
                log.info("Stopping browser process %d...", proc.pid)
                try:
                    proc.terminate()
                    proc.wait(timeout=self.shutdown_grace)
                except subprocess.TimeoutExpired:
                    log.warning("Force killing browser process %d", proc.pid)
                    proc.kill()
                    try:
                        proc.wait(timeout=self.shutdown_grace)
                    except subprocess.TimeoutExpired:
                        log.error("Browser process %d did not die after SIGKILL", proc.pid)
                except OSError as e:
                    log.warning("Failed to signal browser process %d: %s", proc.pid, e)
            self.proc = None
            pid_file.remove_record_if_owned(self.paths.browser_pid, proc.pid)

        pid_file.remove_record_if_owned(self.paths.watchdog_pid, self._pid)
        self.state = SupervisorState.STOPPED
        if self._event_logger and not was_stopped:
            self._event_logger.log_stopped("shutdown", self.budget.attempts)
        log.info("Watchdog shutdown complete")

    def run(self) -> int:
        """Supervise until shutdown or fail-stop. Returns a process exit code."""
        if not self.acquire():
            return 0

        previous = {
            sig: signal.signal(sig, self.request_shutdown)
            for sig in (signal.SIGINT, signal.SIGTERM)
        }
        try:
            self.start()
            while not self._shutdown_requested and self.state is not SupervisorState.STOPPED:
                self._sleep(self.check_interval)
                self.tick()
        finally:
            self.shutdown()
            for sig, handler in previous.items():
                signal.signal(sig, handler)

        if self._shutdown_requested:
            return 0
        log.error(f"Watchdog gave up: {self.budget.stats}")
        return 1
