"""tabkeeper — supervised browser shell.

A watchdog keeps the browser UI process alive, the session controller
snapshots and restores open tabs across restarts, and a failed tab is
recovered in place without restarting the process.
"""
from .config import ShellPaths  # noqa: F401
from .errors import FailureKind, ShellError  # noqa: F401
from .persistence import SnapshotStore, TabSnapshot, SessionSnapshot  # noqa: F401
from .session import SessionController, SurfaceEvent, SurfaceEventKind  # noqa: F401
from .supervisor import Watchdog, SupervisorState  # noqa: F401
