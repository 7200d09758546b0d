"""Runtime paths and timing constants.

Paths are runtime-injected — nothing is derived from the package location.
The per-user data directory defaults to ``~/.tabkeeper`` and can be moved
with the ``TABKEEPER_HOME`` environment variable.
"""
import os
from dataclasses import dataclass

from .registry.pid_file import ProcessKind

# Supervisor
MAX_RESTART_ATTEMPTS = 5
RESTART_DELAY = 2.0      # seconds between child exit and respawn
CHECK_INTERVAL = 1.0     # control-loop / health-probe period
SHUTDOWN_GRACE = 5.0     # SIGTERM -> SIGKILL escalation

# Session controller
RECOVERY_DELAY = 1.0     # crashed surface -> reload
RESTORE_DELAY = 1.0      # first surface up -> replay snapshot
PUMP_INTERVAL_MS = 100   # UI event loop slice

BLANK_URL = "about:blank"
FAILURE_PAGE_URL = (
    "data:text/html,<h1>Failed to load page</h1>"
    "<p>Please check your internet connection.</p>"
)


@dataclass(frozen=True)
class ShellPaths:
    """Well-known files under one per-user data directory."""
    data_dir: str

    @classmethod
    def default(cls) -> "ShellPaths":
        home = os.environ.get("TABKEEPER_HOME") or os.path.join(
            os.path.expanduser("~"), ".tabkeeper"
        )
        return cls(data_dir=home)

    def pid_file(self, kind: ProcessKind) -> str:
        return os.path.join(self.data_dir, f"{kind.value}.pid")

    @property
    def browser_pid(self) -> str:
        return self.pid_file(ProcessKind.MAIN)

    @property
    def watchdog_pid(self) -> str:
        return self.pid_file(ProcessKind.WATCHDOG)

    @property
    def tabs_file(self) -> str:
        return os.path.join(self.data_dir, "last-tabs.json")

    @property
    def partitions_dir(self) -> str:
        return os.path.join(self.data_dir, "partitions")

    @property
    def log_dir(self) -> str:
        return os.path.join(self.data_dir, "logs")
