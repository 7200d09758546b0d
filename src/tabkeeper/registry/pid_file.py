"""Process-identity markers: one decimal pid per well-known file.

Used at startup by the watchdog and by the browser process to refuse running
a second instance of the same role. There is no lock between the check and
the write; a brief double instance resolves itself once the loser's liveness
probe sees the other process.

macOS and Linux only — liveness is probed with signal 0.
"""
import logging
import os
from enum import Enum

log = logging.getLogger(__name__)


class ProcessKind(Enum):
    """Roles that keep a PID record; the value names the file."""
    MAIN = "browser"
    WATCHDOG = "watchdog"


def write_record(path: str, pid: int) -> None:
    """Overwrite *path* with *pid*. Never raises."""
    try:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(str(pid))
    except OSError as e:
        log.error("Failed to write PID file %s: %s", path, e)


def read_record(path: str) -> int | None:
    """Return the recorded pid, or None if missing or unparsable."""
    if not os.path.exists(path):
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = f.read().strip()
    except (OSError, UnicodeDecodeError) as e:
        log.warning("Failed to read PID file %s: %s", path, e)
        return None
    try:
        pid = int(raw)
    except ValueError:
        log.warning("Ignoring malformed PID file %s: %r", path, raw[:32])
        return None
    return pid if pid > 0 else None


def is_alive(pid: int | None) -> bool:
    """Zero-effect liveness probe. Any probe failure counts as not alive."""
    # pid 0 and negative pids address process groups, never probe them
    if not pid or pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except (OSError, OverflowError):
        return False
    return True


def remove_record(path: str) -> None:
    """Best-effort delete."""
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        log.warning("Failed to remove PID file %s: %s", path, e)


def remove_record_if_owned(path: str, pid: int) -> None:
    """Delete *path* only while it still names *pid*."""
    if read_record(path) == pid:
        remove_record(path)


def is_peer_running(path: str, *, own_pid: int | None = None, alive=is_alive) -> bool:
    """True if another live process owns the role recorded at *path*.

    A record naming a dead process, or the caller itself, is stale: it is
    removed and False is returned.
    """
    if own_pid is None:
        own_pid = os.getpid()
    pid = read_record(path)
    if pid is not None and pid != own_pid and alive(pid):
        log.info("Peer already running with PID %d (%s)", pid, os.path.basename(path))
        return True
    if pid != own_pid and os.path.exists(path):
        log.info("Cleaning up stale PID file %s (pid %s)", path, pid)
        remove_record(path)
    return False
